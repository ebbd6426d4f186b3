"""no-magic-numbers: unexplained numeric literals."""

import re
from typing import Sequence

from reviewgate.rules.base import RuleMatch, is_comment
from reviewgate.rules.custom._configured import ConfiguredRule


class MagicNumberRule(ConfiguredRule):
  """Flags integer literals of two or more digits.

  Round powers of ten are common enough to be left alone.
  """

  _PATTERN = re.compile(r"\b\d{2,}\b")
  ACCEPTABLE = frozenset([10, 100, 1000])

  def check(self, file_path: str, content: str) -> Sequence[RuleMatch]:
    matches: list[RuleMatch] = []

    for i, line in enumerate(content.split("\n"), start=1):
      if is_comment(line):
        continue
      for literal in self._PATTERN.findall(line):
        number = int(literal)
        if number in self.ACCEPTABLE:
          continue
        matches.append(RuleMatch(
          line=i,
          severity=self.severity,
          message=f"Magic number detected: {number}",
          suggestion="Consider using a named constant instead",
        ))

    return matches

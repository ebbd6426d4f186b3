"""no-deep-nesting: bracket nesting deeper than a configured limit."""

from typing import Sequence

from reviewgate.rules.base import RuleMatch, is_comment
from reviewgate.rules.custom._configured import ConfiguredRule

_OPENING = "{(["
_CLOSING = "})]"


class NestingDepthRule(ConfiguredRule):
  """Reports the line where nesting first exceeds `configuration.maxDepth`.

  One match is produced per excursion: after depth falls back to the
  limit, the next line that exceeds it is reported again.
  """

  DEFAULT_MAX_DEPTH = 4

  @property
  def max_depth(self) -> int:
    return int(self.option("maxDepth", self.DEFAULT_MAX_DEPTH))

  def check(self, file_path: str, content: str) -> Sequence[RuleMatch]:
    matches: list[RuleMatch] = []
    depth = 0
    reported = False

    for i, line in enumerate(content.split("\n"), start=1):
      if is_comment(line):
        continue

      peak = depth + sum(line.count(c) for c in _OPENING)
      depth = max(0, peak - sum(line.count(c) for c in _CLOSING))

      if peak > self.max_depth and not reported:
        matches.append(RuleMatch(
          line=i,
          severity=self.severity,
          message=f"Deep nesting detected: {peak} levels (max: {self.max_depth})",
          suggestion="Consider refactoring to reduce nesting depth",
        ))
        reported = True
      elif depth <= self.max_depth:
        reported = False

    return matches

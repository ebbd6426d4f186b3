"""Pattern-based security and performance rules."""

import re
from typing import Sequence

from reviewgate.models import IssueSeverity
from reviewgate.rules.base import RuleMatch, is_comment
from reviewgate.rules.custom._configured import ConfiguredRule


class _PatternRule(ConfiguredRule):
  PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = ()
  SUGGESTION = ""

  def check(self, file_path: str, content: str) -> Sequence[RuleMatch]:
    matches: list[RuleMatch] = []

    for i, line in enumerate(content.split("\n"), start=1):
      if is_comment(line):
        continue
      for pattern, message in self.PATTERNS:
        if pattern.search(line):
          matches.append(RuleMatch(
            line=i,
            severity=self.severity,
            message=message,
            suggestion=self.SUGGESTION,
            code=line.strip(),
          ))

    return matches


class SecurityPatternRule(_PatternRule):
  """Flags DOM and evaluation sinks. Always reported as errors."""

  PATTERNS = (
    (re.compile(r"\beval\s*\("), "Use of eval() is dangerous and should be avoided"),
    (re.compile(r"\.innerHTML\s*=(?!=)"), "Direct innerHTML assignment can lead to XSS vulnerabilities"),
    (re.compile(r"\bdocument\.write\s*\("), "document.write() should be avoided for security reasons"),
  )
  SUGGESTION = "Use safer alternatives like textContent or DOM manipulation"

  @property
  def severity(self) -> IssueSeverity:
    return IssueSeverity.ERROR


class PerformancePatternRule(_PatternRule):
  """Flags loop and allocation patterns with cheaper equivalents."""

  PATTERNS = (
    (
      re.compile(r"for\s*\(\s*(?:let\s+|var\s+)?\w+\s*=\s*0\s*;\s*\w+\s*<\s*[\w.]+\.length\s*;"),
      "Consider caching array length in for loops",
    ),
    (
      re.compile(r"new\s+Array\(\)"),
      "Use array literals [] instead of new Array() for better performance",
    ),
  )
  SUGGESTION = "Optimize for better performance"

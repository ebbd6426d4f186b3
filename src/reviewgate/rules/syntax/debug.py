"""no-console: debug statements left in source."""

import re
from typing import Sequence

from reviewgate.models import IssueKind, IssueSeverity
from reviewgate.rules.base import RuleMatch, extension_of, is_comment
from reviewgate.rules.registry import register_rule


class DebugStatementRule:
  """Detects debug statements that should not reach production.

  Supports multiple languages:
  - Python: breakpoint(), pdb
  - JavaScript/TypeScript: console.log/debug/warn/error, debugger
  - Go: fmt.Print*, log.Print*
  - Ruby: puts, p, pp, binding.pry
  """

  _JS_TS_PATTERN = re.compile(
    r"^\s*(?:console\.(?:log|debug|warn|error|trace|info)\s*\(|debugger\b)"
  )

  PATTERNS: dict[str, re.Pattern[str]] = {
    ".py": re.compile(r"^\s*(?:breakpoint\s*\(|import\s+pdb|pdb\.set_trace\s*\()"),
    ".js": _JS_TS_PATTERN,
    ".jsx": _JS_TS_PATTERN,
    ".ts": _JS_TS_PATTERN,
    ".tsx": _JS_TS_PATTERN,
    ".go": re.compile(r"^\s*(?:fmt\.Print|log\.Print)"),
    ".rb": re.compile(r"^\s*(?:puts\s|p\s+[^=]|pp\s|binding\.pry)"),
  }

  @property
  def id(self) -> str:
    return "no-console"

  @property
  def name(self) -> str:
    return "No debug statements"

  @property
  def kind(self) -> IssueKind:
    return IssueKind.SYNTAX

  def check(self, file_path: str, content: str) -> Sequence[RuleMatch]:
    pattern = self.PATTERNS.get(extension_of(file_path))
    if pattern is None:
      return []

    matches: list[RuleMatch] = []
    for i, line in enumerate(content.split("\n"), start=1):
      if is_comment(line):
        continue
      if pattern.search(line):
        matches.append(RuleMatch(
          line=i,
          severity=IssueSeverity.WARNING,
          message="Debug statement should be removed in production code",
          suggestion="Use a logger or remove the statement",
          code=line.strip(),
        ))

    return matches


def _create_debug_statement() -> DebugStatementRule:
  return DebugStatementRule()


register_rule("no-console", _create_debug_statement)

"""Rule abstractions for heuristic static checks."""

import re
from dataclasses import dataclass
from typing import Protocol, Sequence

from reviewgate.models import IssueKind, IssueSeverity


@dataclass(frozen=True)
class RuleMatch:
  """A single rule match found during analysis.

  This is an intermediate representation that the heuristic backend
  converts into an Issue, stamping it with the rule's id and kind.
  """

  line: int
  severity: IssueSeverity
  message: str
  suggestion: str | None = None
  code: str | None = None


class Rule(Protocol):
  """Protocol for heuristic check rules.

  Rules are stateless apart from their construction-time thresholds
  and operate on raw file content only. A rule that does not apply to
  a file's language returns no matches.

  Example:
    class MyRule:
      @property
      def id(self) -> str:
        return "no-eval"

      @property
      def name(self) -> str:
        return "No eval"

      @property
      def kind(self) -> IssueKind:
        return IssueKind.BEST_PRACTICE

      def check(self, file_path: str, content: str) -> Sequence[RuleMatch]:
        return []
  """

  @property
  def id(self) -> str:
    """Unique identifier for this rule (e.g., 'brace-style')."""
    ...

  @property
  def name(self) -> str:
    """Human-readable rule name."""
    ...

  @property
  def kind(self) -> IssueKind:
    """Which issue list this rule's matches belong to."""
    ...

  def check(self, file_path: str, content: str) -> Sequence[RuleMatch]:
    """Check content for issues.

    Args:
      file_path: Path to file (for file-type detection).
      content: Raw file content.

    Returns:
      Sequence of RuleMatch objects. Empty if no issues found.
    """
    ...


_JSDOC_CONTINUATION = re.compile(r"\*(\s|/|$)")


def is_comment(line: str) -> bool:
  stripped = line.strip()
  if stripped.startswith(("#", "//", "/*")):
    return True
  return bool(_JSDOC_CONTINUATION.match(stripped))


def extension_of(file_path: str) -> str:
  dot = file_path.rfind(".")
  return file_path[dot:].lower() if dot != -1 else ""

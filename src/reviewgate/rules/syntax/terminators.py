"""semi: declarations missing a statement terminator."""

from typing import Sequence

from reviewgate.models import IssueKind, IssueSeverity
from reviewgate.rules.base import RuleMatch, extension_of, is_comment
from reviewgate.rules.registry import register_rule

_DECLARATION_PREFIXES = ("const ", "let ", "var ")
# A trailing character that means the statement continues or opens a block.
_CONTINUATIONS = (";", "{", "}", "(", "[", ",", "=", "=>", "+", "-", "?", ":", "&&", "||", "`")


class MissingSemicolonRule:
  """Flags JavaScript/TypeScript declarations that do not end in `;`."""

  EXTENSIONS = frozenset([".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs"])

  @property
  def id(self) -> str:
    return "semi"

  @property
  def name(self) -> str:
    return "Missing semicolon"

  @property
  def kind(self) -> IssueKind:
    return IssueKind.SYNTAX

  def check(self, file_path: str, content: str) -> Sequence[RuleMatch]:
    if extension_of(file_path) not in self.EXTENSIONS:
      return []

    matches: list[RuleMatch] = []
    for i, line in enumerate(content.split("\n"), start=1):
      stripped = line.strip()
      if not stripped or is_comment(line):
        continue
      if not stripped.startswith(_DECLARATION_PREFIXES):
        continue
      if stripped.endswith(_CONTINUATIONS):
        continue
      matches.append(RuleMatch(
        line=i,
        severity=IssueSeverity.WARNING,
        message="Missing semicolon",
        code=stripped,
      ))

    return matches


def _create_missing_semicolon() -> MissingSemicolonRule:
  return MissingSemicolonRule()


register_rule("semi", _create_missing_semicolon)

"""brace-style: net bracket, brace and parenthesis balance."""

import re
from typing import Sequence

from reviewgate.models import IssueKind, IssueSeverity
from reviewgate.rules.base import RuleMatch, extension_of
from reviewgate.rules.registry import register_rule

# String literals are blanked out before counting so that "{" in a
# message does not unbalance the file.
_STRING_LITERAL = re.compile(r"""(["'`])(?:\\.|(?!\1).)*\1""")

_C_STYLE = frozenset([
  ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".java", ".cs", ".cpp",
  ".cc", ".c", ".h", ".hpp", ".go", ".rs", ".kt", ".swift", ".scala",
])
_HASH_COMMENT = frozenset([".py", ".rb"])


class BracketBalanceRule:
  """Flags files whose brackets do not balance by the last line.

  Each bracket family is counted separately across the whole file and
  one error is reported per family with a non-zero net count, anchored
  at the final line.
  """

  _PAIRS = (
    ("{", "}", "braces"),
    ("(", ")", "parentheses"),
    ("[", "]", "brackets"),
  )

  @property
  def id(self) -> str:
    return "brace-style"

  @property
  def name(self) -> str:
    return "Balanced brackets"

  @property
  def kind(self) -> IssueKind:
    return IssueKind.SYNTAX

  def check(self, file_path: str, content: str) -> Sequence[RuleMatch]:
    ext = extension_of(file_path)
    if ext not in _C_STYLE and ext not in _HASH_COMMENT:
      return []

    counts = {label: 0 for _, _, label in self._PAIRS}
    lines = content.split("\n")
    in_block = False

    for line in lines:
      code = _STRING_LITERAL.sub('""', line)
      if ext in _C_STYLE:
        code, in_block = _strip_block_comments(code, in_block)
      code = self._strip_trailing_comment(code, ext)
      for opening, closing, label in self._PAIRS:
        counts[label] += code.count(opening) - code.count(closing)

    matches: list[RuleMatch] = []
    for _, _, label in self._PAIRS:
      net = counts[label]
      if net == 0:
        continue
      direction = f"missing closing {label}" if net > 0 else f"too many closing {label}"
      matches.append(RuleMatch(
        line=len(lines),
        severity=IssueSeverity.ERROR,
        message=f"Unbalanced {label}: {direction}",
      ))

    return matches

  def _strip_trailing_comment(self, code: str, ext: str) -> str:
    marker = "#" if ext in _HASH_COMMENT else "//"
    index = code.find(marker)
    return code[:index] if index != -1 else code


def _strip_block_comments(code: str, in_block: bool) -> tuple[str, bool]:
  """Drop `/* ... */` spans from a line, carrying open blocks across lines."""
  kept: list[str] = []
  i = 0
  while i < len(code):
    if in_block:
      end = code.find("*/", i)
      if end == -1:
        break
      i = end + 2
      in_block = False
    else:
      start = code.find("/*", i)
      line_comment = code.find("//", i)
      if start == -1 or -1 < line_comment < start:
        kept.append(code[i:])
        break
      kept.append(code[i:start])
      i = start + 2
      in_block = True
  return "".join(kept), in_block


def _create_bracket_balance() -> BracketBalanceRule:
  return BracketBalanceRule()


register_rule("brace-style", _create_bracket_balance)

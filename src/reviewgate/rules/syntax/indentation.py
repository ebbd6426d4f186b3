"""Python-specific heuristics: indentation and print statements."""

import re
from typing import Sequence

from reviewgate.models import IssueKind, IssueSeverity
from reviewgate.rules.base import RuleMatch, extension_of
from reviewgate.rules.registry import register_rule

_INDENT_WIDTH = 4


class PythonIndentationRule:
  """Flags indentation that increases without a preceding block opener.

  Lines inside an open bracket are continuation lines and may be
  indented freely.
  """

  @property
  def id(self) -> str:
    return "indent"

  @property
  def name(self) -> str:
    return "Unexpected indentation"

  @property
  def kind(self) -> IssueKind:
    return IssueKind.SYNTAX

  def check(self, file_path: str, content: str) -> Sequence[RuleMatch]:
    if extension_of(file_path) != ".py":
      return []

    matches: list[RuleMatch] = []
    expected = 0
    statement_level = 0
    open_brackets = 0
    continued = False

    for i, line in enumerate(content.split("\n"), start=1):
      code = line.split("#", 1)[0].rstrip()
      if not code.strip():
        continue

      level = (len(line) - len(line.lstrip())) // _INDENT_WIDTH

      if open_brackets == 0 and not continued:
        statement_level = level
        if level > expected:
          matches.append(RuleMatch(
            line=i,
            severity=IssueSeverity.ERROR,
            message="Unexpected indentation increase",
            code=line,
          ))
        else:
          expected = level

      open_brackets = max(0, open_brackets + _net_brackets(code))
      continued = code.endswith("\\")

      # A block opener may close a multi-line statement.
      if open_brackets == 0 and not continued and code.endswith(":"):
        expected = statement_level + 1

    return matches


def _net_brackets(code: str) -> int:
  return sum(code.count(c) for c in "([{") - sum(code.count(c) for c in ")]}")


class PrintStatementRule:
  """Flags Python 2 style `print x` statements."""

  _PATTERN = re.compile(r"^\s*print\s+[^\s(=]")

  @property
  def id(self) -> str:
    return "print-statement"

  @property
  def name(self) -> str:
    return "Print statement"

  @property
  def kind(self) -> IssueKind:
    return IssueKind.SYNTAX

  def check(self, file_path: str, content: str) -> Sequence[RuleMatch]:
    if extension_of(file_path) != ".py":
      return []

    return [
      RuleMatch(
        line=i,
        severity=IssueSeverity.WARNING,
        message="Consider using print() function syntax",
        code=line.strip(),
      )
      for i, line in enumerate(content.split("\n"), start=1)
      if self._PATTERN.match(line)
    ]


def _create_indentation() -> PythonIndentationRule:
  return PythonIndentationRule()


def _create_print_statement() -> PrintStatementRule:
  return PrintStatementRule()


register_rule("indent", _create_indentation)
register_rule("print-statement", _create_print_statement)

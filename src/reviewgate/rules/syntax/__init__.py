"""Built-in syntax heuristics."""

from reviewgate.rules.syntax.brackets import BracketBalanceRule
from reviewgate.rules.syntax.debug import DebugStatementRule
from reviewgate.rules.syntax.indentation import PrintStatementRule, PythonIndentationRule
from reviewgate.rules.syntax.terminators import MissingSemicolonRule

__all__ = [
  "BracketBalanceRule",
  "DebugStatementRule",
  "MissingSemicolonRule",
  "PrintStatementRule",
  "PythonIndentationRule",
]

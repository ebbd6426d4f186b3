"""Size and complexity metrics computed from raw source text."""

import math
import re

from reviewgate.models import CodeMetrics

_BRANCH_WORDS = ("if", "else", "for", "while", "case", "catch", "switch")
_BRANCH_SYMBOLS = ("&&", "||", "?")

_HALSTEAD_OPERATORS = (
  "+", "-", "*", "/", "=", "==", "!=", "<", ">", "<=", ">=",
  "&&", "||", "!", "&", "|", "^", "~", "<<", ">>",
)
_HALSTEAD_KEYWORDS = (
  "if", "else", "for", "while", "do", "switch", "case", "default", "try",
  "catch", "finally", "return", "break", "continue", "function", "const",
  "let", "var", "class", "interface", "extends", "implements",
)

_BRANCH_PATTERNS = [re.compile(rf"\b{word}\b") for word in _BRANCH_WORDS]
_KEYWORD_PATTERN = re.compile(rf"\b(?:{'|'.join(_HALSTEAD_KEYWORDS)})\b")

COGNITIVE_FACTOR = 1.2


def code_lines(content: str) -> list[str]:
  """Non-blank lines that are not line comments."""
  return [
    line for line in content.split("\n")
    if line.strip() and not line.strip().startswith(("//", "#"))
  ]


def cyclomatic_complexity(lines: list[str]) -> int:
  """1 plus one for each branching keyword or operator present on a line."""
  complexity = 1
  for line in lines:
    lowered = line.lower()
    complexity += sum(1 for p in _BRANCH_PATTERNS if p.search(lowered))
    complexity += sum(1 for s in _BRANCH_SYMBOLS if s in lowered)
  return complexity


def halstead_proxy(content: str) -> int:
  """Count of a fixed operator and keyword vocabulary.

  Operators are counted as substrings, so `==` also counts twice as
  `=`. This is a volume proxy, not Halstead's measure.
  """
  lowered = content.lower()
  operators = sum(lowered.count(op) for op in _HALSTEAD_OPERATORS)
  keywords = len(_KEYWORD_PATTERN.findall(lowered))
  return operators + keywords


def maintainability_index(loc: int, halstead: int, complexity: int) -> int:
  """Clamped 0-100 maintainability index. An empty file scores 100."""
  if loc == 0:
    return 100
  raw = 171 - 5.2 * math.log(loc) - 0.23 * halstead - 16.2 * math.log(complexity)
  return round(max(0.0, min(100.0, raw)))


def compute_metrics(content: str) -> CodeMetrics:
  lines = code_lines(content)
  complexity = cyclomatic_complexity(lines)
  halstead = halstead_proxy(content)

  return CodeMetrics(
    cyclomatic_complexity=complexity,
    cognitive_complexity=round(complexity * COGNITIVE_FACTOR, 2),
    maintainability_index=maintainability_index(len(lines), halstead, complexity),
    lines_of_code=len(lines),
    halstead_proxy=halstead,
  )

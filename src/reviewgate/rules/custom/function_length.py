"""max-function-length: functions longer than a configured limit."""

import re
from typing import Sequence

from reviewgate.rules.base import RuleMatch, extension_of
from reviewgate.rules.custom._configured import ConfiguredRule


class FunctionLengthRule(ConfiguredRule):
  """Detects functions that exceed `configuration.maxLength` lines.

  Brace languages are measured from the declaration to the brace that
  closes the body; Python by indentation.

  Default threshold: 50 lines
  """

  DEFAULT_MAX_LENGTH = 50

  _BRACE_START = re.compile(
    r"^\s*(?:export\s+)?(?:async\s+)?(?:"
    r"function\s*\*?\s*(\w+)\s*\(|"
    r"(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s+)?\([^)]*\)\s*=>\s*\{"
    r")"
  )
  _PYTHON_START = re.compile(r"^\s*(?:async\s+)?def\s+(\w+)\s*\(")

  @property
  def max_length(self) -> int:
    return int(self.option("maxLength", self.DEFAULT_MAX_LENGTH))

  def check(self, file_path: str, content: str) -> Sequence[RuleMatch]:
    lines = content.split("\n")
    is_python = extension_of(file_path) == ".py"
    pattern = self._PYTHON_START if is_python else self._BRACE_START

    matches: list[RuleMatch] = []
    i = 0
    while i < len(lines):
      match = pattern.search(lines[i])
      if not match:
        i += 1
        continue

      func_name = next((g for g in match.groups() if g), "function")
      if is_python:
        length = self._measure_by_indent(lines, i)
      else:
        length = self._measure_by_braces(lines, i)

      if length > self.max_length:
        matches.append(RuleMatch(
          line=i + 1,
          severity=self.severity,
          message=f"Function '{func_name}' too long: {length} lines (max: {self.max_length})",
          suggestion="Consider breaking this function into smaller functions",
        ))
        i += length
        continue
      i += 1

    return matches

  def _measure_by_braces(self, lines: list[str], start: int) -> int:
    depth = 0
    opened = False

    for i in range(start, len(lines)):
      line = lines[i]
      if "{" in line:
        opened = True
      depth += line.count("{") - line.count("}")
      if opened and depth <= 0:
        return i - start + 1

    return len(lines) - start if opened else 1

  def _measure_by_indent(self, lines: list[str], start: int) -> int:
    base = len(lines[start]) - len(lines[start].lstrip())
    last_body_line = start

    for i in range(start + 1, len(lines)):
      stripped = lines[i].strip()
      if not stripped or stripped.startswith("#"):
        continue
      if len(lines[i]) - len(lines[i].lstrip()) <= base:
        break
      last_body_line = i

    return last_body_line - start + 1

"""Static check backends: external tools and in-process heuristics."""

import asyncio
import json
import logging
import re
from typing import Any, Sequence

from reviewgate.analysis.base import BackendReport, StaticCheckBackend
from reviewgate.errors import StaticCheckBackendError
from reviewgate.models import Issue, IssueKind, IssueSeverity
from reviewgate.rules import Rule, RuleRegistry, get_all_rules

logger = logging.getLogger(__name__)

# tsc --pretty false: src/a.ts(3,7): error TS2322: Type 'string' is not ...
_PAREN_DIAGNOSTIC = re.compile(
  r"^(?P<file>.+?)\((?P<line>\d+),(?P<column>\d+)\):\s*"
  r"(?P<severity>error|warning|info)\s+(?P<code>[A-Z]+\d+):\s*(?P<message>.+)$"
)
# mypy / gcc style: src/a.py:3:7: error: Incompatible types  [assignment]
_COLON_DIAGNOSTIC = re.compile(
  r"^(?P<file>.+?):(?P<line>\d+):(?:(?P<column>\d+):)?\s*"
  r"(?P<severity>error|warning|note|info):\s*(?P<message>.+?)(?:\s+\[(?P<code>[\w-]+)\])?$"
)

_SEVERITIES = {
  "error": IssueSeverity.ERROR,
  "warning": IssueSeverity.WARNING,
  "note": IssueSeverity.INFO,
  "info": IssueSeverity.INFO,
}


def _is_syntax_code(code: str | None) -> bool:
  """tsc reserves TS1000-TS1999 for syntax errors."""
  if not code or not code.startswith("TS"):
    return False
  number = code[2:]
  return number.isdigit() and 1000 <= int(number) < 2000


def _position(value: Any, tool: str, default: int | None = None) -> int | None:
  """Line or column number from tool JSON output."""
  if not value:
    return default
  try:
    return int(value)
  except (TypeError, ValueError) as e:
    raise StaticCheckBackendError(f"{tool} reported an invalid position: {value!r}") from e


class ExternalToolBackend(StaticCheckBackend):
  """Runs an external checker as a subprocess under a hard timeout.

  The file path is appended to `command`. Exit code 0 means no
  diagnostics. A non-zero exit must produce parsable diagnostics,
  either a JSON list of objects with `line`, `column`, `severity`,
  `code`, `message` (and optionally `kind`), or one diagnostic per
  line in tsc or mypy text format. Anything else is treated as a
  crash.

  Example:
    backend = TypeCheckerBackend(["npx", "tsc", "--noEmit"], timeout_seconds=30)
    report = await backend.check("/tmp/x/a.ts", content)
  """

  def __init__(self, name: str, command: Sequence[str], timeout_seconds: float = 30.0):
    if not command:
      raise ValueError("command must not be empty")
    self._name = name
    self._command = list(command)
    self._timeout = timeout_seconds

  @property
  def name(self) -> str:
    return self._name

  async def check(self, path: str, content: str) -> BackendReport:
    returncode, stdout, stderr = await self._run(path)
    return self.parse_output(returncode, stdout, stderr)

  async def _run(self, path: str) -> tuple[int, str, str]:
    try:
      process = await asyncio.create_subprocess_exec(
        *self._command,
        path,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
      )
    except OSError as e:
      raise StaticCheckBackendError(f"{self._name} could not be started: {e}") from e

    try:
      stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
    except asyncio.TimeoutError as e:
      process.kill()
      await process.wait()
      raise StaticCheckBackendError(
        f"{self._name} timed out after {self._timeout:g}s"
      ) from e

    return (
      process.returncode or 0,
      stdout.decode("utf-8", errors="replace"),
      stderr.decode("utf-8", errors="replace"),
    )

  def parse_output(self, returncode: int, stdout: str, stderr: str) -> BackendReport:
    if returncode == 0:
      return BackendReport()

    output = stdout if stdout.strip() else stderr
    issues = self._parse_json(output)
    if issues is None:
      issues = self._parse_text(output)

    if not issues:
      detail = (stderr or stdout).strip().splitlines()
      raise StaticCheckBackendError(
        f"{self._name} exited with code {returncode}"
        + (f": {detail[0]}" if detail else " without diagnostics")
      )

    report = BackendReport()
    for issue in issues:
      if issue.kind == IssueKind.SYNTAX:
        report.syntax_issues.append(issue)
      elif issue.kind == IssueKind.BEST_PRACTICE:
        report.best_practice_issues.append(issue)
      else:
        report.type_issues.append(issue)
    return report

  def _parse_json(self, output: str) -> list[Issue] | None:
    try:
      data = json.loads(output)
    except json.JSONDecodeError:
      return None
    if not isinstance(data, list):
      return None

    issues = []
    for item in data:
      if not isinstance(item, dict) or "message" not in item:
        continue
      code = item.get("code")
      kind = item.get("kind")
      issues.append(Issue(
        kind=IssueKind(kind) if kind in {k.value for k in IssueKind} else (
          IssueKind.SYNTAX if _is_syntax_code(code) else IssueKind.TYPE
        ),
        line=_position(item.get("line"), self._name, default=1),
        column=_position(item.get("column"), self._name),
        message=str(item["message"]),
        severity=_SEVERITIES.get(str(item.get("severity", "error")).lower(), IssueSeverity.ERROR),
        rule_id=code,
      ))
    return issues

  def _parse_text(self, output: str) -> list[Issue]:
    issues = []
    for raw in output.splitlines():
      line = raw.strip()
      match = _PAREN_DIAGNOSTIC.match(line) or _COLON_DIAGNOSTIC.match(line)
      if not match:
        continue
      code = match.group("code")
      column = match.group("column")
      issues.append(Issue(
        kind=IssueKind.SYNTAX if _is_syntax_code(code) else IssueKind.TYPE,
        line=int(match.group("line")),
        column=int(column) if column else None,
        message=match.group("message").strip(),
        severity=_SEVERITIES[match.group("severity")],
        rule_id=code,
      ))
    return issues


class TypeCheckerBackend(ExternalToolBackend):
  """External type checker (tsc by default)."""

  def __init__(self, command: Sequence[str], timeout_seconds: float = 30.0):
    super().__init__("type-checker", command, timeout_seconds)


class LinterBackend(ExternalToolBackend):
  """ESLint-style linter emitting `--format json` results.

  Every message becomes a best-practice issue. ESLint severity 2 is an
  error, anything else a warning. Exit code 1 means lint problems were
  found; higher codes mean the linter itself failed.
  """

  def __init__(self, command: Sequence[str], timeout_seconds: float = 30.0):
    super().__init__("linter", command, timeout_seconds)

  def parse_output(self, returncode: int, stdout: str, stderr: str) -> BackendReport:
    if returncode > 1:
      detail = stderr.strip().splitlines()
      raise StaticCheckBackendError(
        f"{self.name} exited with code {returncode}"
        + (f": {detail[0]}" if detail else "")
      )
    if not stdout.strip():
      return BackendReport()

    try:
      results: Any = json.loads(stdout)
    except json.JSONDecodeError as e:
      raise StaticCheckBackendError(f"{self.name} produced invalid JSON: {e}") from e

    report = BackendReport()
    for file_result in results if isinstance(results, list) else []:
      if not isinstance(file_result, dict):
        raise StaticCheckBackendError(f"{self.name} produced an unexpected result: {file_result!r}")
      for message in file_result.get("messages") or []:
        if not isinstance(message, dict):
          raise StaticCheckBackendError(f"{self.name} produced an unexpected message: {message!r}")
        rule_id = message.get("ruleId") or "unknown"
        report.best_practice_issues.append(Issue(
          kind=IssueKind.BEST_PRACTICE,
          line=_position(message.get("line"), self.name, default=1),
          column=_position(message.get("column"), self.name),
          message=str(message.get("message", "")),
          severity=IssueSeverity.ERROR if message.get("severity") == 2 else IssueSeverity.WARNING,
          rule_id=rule_id,
          rule_name=message.get("ruleId") or "Unknown Rule",
          auto_fixable="fix" in message,
        ))
    return report


class HeuristicBackend(StaticCheckBackend):
  """Pure in-process checks built from the rule registry.

  Never raises for well-formed input, so it is always available as
  the fallback.
  """

  def __init__(self, rules: list[Rule] | None = None):
    if rules is None:
      RuleRegistry.load_all()
      rules = get_all_rules()
    self._rules = rules

  @property
  def name(self) -> str:
    return "heuristic"

  @property
  def rule_ids(self) -> list[str]:
    return [rule.id for rule in self._rules]

  async def check(self, path: str, content: str) -> BackendReport:
    return self.check_sync(path, content)

  def check_sync(self, path: str, content: str) -> BackendReport:
    report = BackendReport()
    for rule in self._rules:
      for match in rule.check(path, content):
        issue = Issue(
          kind=rule.kind,
          line=match.line,
          message=match.message,
          severity=match.severity,
          rule_id=rule.id,
          rule_name=rule.name,
          code=match.code,
          suggestion=match.suggestion,
        )
        if rule.kind == IssueKind.SYNTAX:
          report.syntax_issues.append(issue)
        elif rule.kind == IssueKind.TYPE:
          report.type_issues.append(issue)
        else:
          report.best_practice_issues.append(issue)
    return report

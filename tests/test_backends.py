"""Tests for static check backends."""

import asyncio
import json
import shutil

import pytest
from reviewgate.analysis import HeuristicBackend, LinterBackend, TypeCheckerBackend
from reviewgate.analysis.backends import ExternalToolBackend
from reviewgate.errors import StaticCheckBackendError
from reviewgate.models import IssueKind, IssueSeverity

needs_sh = pytest.mark.skipif(shutil.which("sh") is None, reason="requires a POSIX shell")


class TestTypeCheckerOutput:
  def test_exit_zero_means_clean(self) -> None:
    report = TypeCheckerBackend(["tsc"]).parse_output(0, "ignored", "")
    assert report.syntax_issues == []
    assert report.type_issues == []

  def test_parses_tsc_diagnostics(self) -> None:
    output = (
      "/tmp/x/app.ts(3,7): error TS2322: Type 'string' is not assignable to type 'number'.\n"
      "/tmp/x/app.ts(5,1): error TS1005: ';' expected.\n"
    )

    report = TypeCheckerBackend(["tsc"]).parse_output(2, output, "")

    assert len(report.type_issues) == 1
    assert len(report.syntax_issues) == 1
    type_issue = report.type_issues[0]
    assert (type_issue.line, type_issue.column) == (3, 7)
    assert type_issue.rule_id == "TS2322"
    assert type_issue.kind == IssueKind.TYPE
    assert report.syntax_issues[0].message == "';' expected."

  def test_parses_mypy_diagnostics(self) -> None:
    output = "app.py:3: error: Incompatible types in assignment  [assignment]\n"

    report = TypeCheckerBackend(["mypy"]).parse_output(1, output, "")

    issue = report.type_issues[0]
    assert issue.line == 3
    assert issue.column is None
    assert issue.rule_id == "assignment"
    assert issue.message == "Incompatible types in assignment"

  def test_parses_json_diagnostics(self) -> None:
    output = json.dumps([
      {"line": 2, "column": 4, "severity": "warning", "code": "W1", "message": "Unused", "kind": "best-practice"},
      {"line": 9, "message": "Unexpected token", "code": "TS1109"},
    ])

    report = TypeCheckerBackend(["checker"]).parse_output(1, output, "")

    assert report.best_practice_issues[0].severity == IssueSeverity.WARNING
    assert report.syntax_issues[0].line == 9
    assert report.syntax_issues[0].severity == IssueSeverity.ERROR

  def test_json_positions_coerced(self) -> None:
    output = json.dumps([{"line": "4", "column": "2", "message": "Cannot find name 'foo'.", "code": "TS2304"}])

    issue = TypeCheckerBackend(["checker"]).parse_output(1, output, "").type_issues[0]

    assert (issue.line, issue.column) == (4, 2)

  def test_malformed_json_position_is_a_crash(self) -> None:
    output = json.dumps([{"message": "x", "line": "abc"}])

    with pytest.raises(StaticCheckBackendError, match="invalid position: 'abc'"):
      TypeCheckerBackend(["checker"]).parse_output(2, output, "")

  def test_unparsable_failure_is_a_crash(self) -> None:
    with pytest.raises(StaticCheckBackendError, match="exited with code 2: Segmentation fault"):
      TypeCheckerBackend(["tsc"]).parse_output(2, "", "Segmentation fault\n")

  def test_empty_command_rejected(self) -> None:
    with pytest.raises(ValueError):
      TypeCheckerBackend([])


class TestLinterOutput:
  def test_parses_eslint_json(self) -> None:
    output = json.dumps([{
      "filePath": "/tmp/x/app.ts",
      "messages": [
        {"ruleId": "no-unused-vars", "severity": 2, "message": "'x' is unused.", "line": 1, "column": 7},
        {"ruleId": "semi", "severity": 1, "message": "Missing semicolon.", "line": 2, "column": 10,
         "fix": {"range": [10, 10], "text": ";"}},
      ],
    }])

    report = LinterBackend(["eslint"]).parse_output(1, output, "")

    first, second = report.best_practice_issues
    assert first.severity == IssueSeverity.ERROR
    assert first.rule_id == "no-unused-vars"
    assert first.auto_fixable is False
    assert second.severity == IssueSeverity.WARNING
    assert second.auto_fixable is True
    assert report.syntax_issues == []

  def test_clean_run(self) -> None:
    assert LinterBackend(["eslint"]).parse_output(0, "[]", "").best_practice_issues == []

  def test_crash_exit_code(self) -> None:
    with pytest.raises(StaticCheckBackendError, match="exited with code 2"):
      LinterBackend(["eslint"]).parse_output(2, "", "Oops! Something went wrong!")

  def test_non_object_result_is_a_crash(self) -> None:
    with pytest.raises(StaticCheckBackendError, match="unexpected result"):
      LinterBackend(["eslint"]).parse_output(1, json.dumps(["app.ts"]), "")

  def test_non_object_message_is_a_crash(self) -> None:
    output = json.dumps([{"filePath": "app.ts", "messages": ["Missing semicolon."]}])

    with pytest.raises(StaticCheckBackendError, match="unexpected message"):
      LinterBackend(["eslint"]).parse_output(1, output, "")

  def test_malformed_line_is_a_crash(self) -> None:
    output = json.dumps([{"messages": [{"ruleId": "semi", "message": "Missing semicolon.", "line": [2]}]}])

    with pytest.raises(StaticCheckBackendError, match="invalid position"):
      LinterBackend(["eslint"]).parse_output(1, output, "")

  def test_invalid_json(self) -> None:
    with pytest.raises(StaticCheckBackendError, match="invalid JSON"):
      LinterBackend(["eslint"]).parse_output(1, "not json", "")


class TestExternalToolSubprocess:
  def test_missing_tool_raises(self) -> None:
    backend = ExternalToolBackend("checker", ["reviewgate-no-such-checker"])

    with pytest.raises(StaticCheckBackendError, match="could not be started"):
      asyncio.run(backend.check("/tmp/a.ts", ""))

  @needs_sh
  def test_clean_exit(self) -> None:
    backend = ExternalToolBackend("checker", ["sh", "-c", "exit 0"])
    report = asyncio.run(backend.check("/tmp/a.ts", ""))
    assert report.type_issues == []

  @needs_sh
  def test_diagnostics_from_tool(self) -> None:
    script = "echo \"$0(1,5): error TS2304: Cannot find name 'foo'.\"; exit 2"
    backend = ExternalToolBackend("checker", ["sh", "-c", script])

    report = asyncio.run(backend.check("a.ts", ""))

    assert report.type_issues[0].message == "Cannot find name 'foo'."

  @needs_sh
  def test_timeout(self) -> None:
    backend = ExternalToolBackend("checker", ["sh", "-c", "sleep 5"], timeout_seconds=0.1)

    with pytest.raises(StaticCheckBackendError, match="timed out"):
      asyncio.run(backend.check("a.ts", ""))


class TestHeuristicBackend:
  def test_uses_registered_rules(self) -> None:
    backend = HeuristicBackend()

    report = asyncio.run(backend.check("a.ts", "function f() {\n  console.log(1);\n"))

    rule_ids = {i.rule_id for i in report.syntax_issues}
    assert {"brace-style", "no-console"} <= rule_ids
    assert "brace-style" in backend.rule_ids
    assert backend.name == "heuristic"

  def test_explicit_rule_list(self) -> None:
    backend = HeuristicBackend(rules=[])
    report = backend.check_sync("a.ts", "function f() {\n")
    assert report.syntax_issues == []
    assert backend.rule_ids == []

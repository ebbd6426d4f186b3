"""Pytest fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest
from reviewgate.analysis.base import BackendReport, StaticCheckBackend
from reviewgate.errors import StaticCheckBackendError
from reviewgate.events import Event, EventBus, EventType
from reviewgate.models import (
  AIReviewFinding,
  AIReviewResult,
  CodeMetrics,
  FindingCategory,
  Issue,
  IssueKind,
  IssueSeverity,
  Severity,
  SourceFile,
  StaticAnalysisResult,
)
from reviewgate.providers.base import CompletionProvider


class FakeProvider(CompletionProvider):
  """Completion provider returning canned text."""

  def __init__(
    self,
    response: str = '{"findings": []}',
    error: Exception | None = None,
    fail_when: str | None = None,
  ):
    self.response = response
    self.error = error
    self.fail_when = fail_when
    self.calls: list[str] = []

  async def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
    self.calls.append(prompt)
    if self.error is not None and (self.fail_when is None or self.fail_when in prompt):
      raise self.error
    return self.response

  @property
  def name(self) -> str:
    return "fake"

  @property
  def model(self) -> str:
    return "fake-model"

  def is_available(self) -> bool:
    return True


class FakeBackend(StaticCheckBackend):
  """Static check backend returning a fixed report, or failing."""

  def __init__(self, report: BackendReport | None = None, error: str | None = None, name: str = "fake"):
    self.report = report or BackendReport()
    self.error = error
    self._name = name
    self.calls: list[str] = []

  @property
  def name(self) -> str:
    return self._name

  async def check(self, path: str, content: str) -> BackendReport:
    self.calls.append(path)
    if self.error is not None:
      raise StaticCheckBackendError(self.error)
    return self.report


class EventRecorder:
  """Collects every event published on a bus."""

  def __init__(self, bus: EventBus):
    self.events: list[Event] = []
    bus.subscribe_all(self.events.append)

  def types(self) -> list[EventType]:
    return [e.type for e in self.events]

  def of(self, event_type: EventType) -> list[Event]:
    return [e for e in self.events if e.type == event_type]


class FrozenClock:
  """Manually advanced clock."""

  def __init__(self, now: datetime):
    self.now = now

  def __call__(self) -> datetime:
    return self.now

  def advance(self, minutes: float) -> None:
    self.now += timedelta(minutes=minutes)


@pytest.fixture
def fake_provider() -> FakeProvider:
  return FakeProvider()


@pytest.fixture
def make_provider() -> Callable[..., FakeProvider]:
  return FakeProvider


@pytest.fixture
def failing_backend() -> FakeBackend:
  return FakeBackend(error="tsc could not be started: No such file or directory", name="type-checker")


@pytest.fixture
def make_backend() -> Callable[..., FakeBackend]:
  return FakeBackend


@pytest.fixture
def event_bus() -> EventBus:
  return EventBus()


@pytest.fixture
def recorder(event_bus: EventBus) -> EventRecorder:
  return EventRecorder(event_bus)


@pytest.fixture
def clock() -> FrozenClock:
  return FrozenClock(datetime(2024, 5, 1, 0, 30, tzinfo=timezone.utc))


@pytest.fixture
def ts_file() -> SourceFile:
  return SourceFile(
    id="src/app.ts",
    path="src/app.ts",
    content="const total = items.length;\nexport function add(a: number, b: number) {\n  return a + b;\n}\n",
    language="typescript",
  )


@pytest.fixture
def py_file() -> SourceFile:
  return SourceFile(
    id="pkg/util.py",
    path="pkg/util.py",
    content="def add(a, b):\n    return a + b\n",
    language="python",
  )


@pytest.fixture
def make_issue() -> Callable[..., Issue]:
  def factory(
    kind: IssueKind = IssueKind.SYNTAX,
    severity: IssueSeverity = IssueSeverity.ERROR,
    line: int = 1,
    message: str = "Unbalanced braces: missing closing braces",
  ) -> Issue:
    return Issue(kind=kind, line=line, message=message, severity=severity)

  return factory


@pytest.fixture
def make_static_result(make_issue: Callable[..., Issue]) -> Callable[..., StaticAnalysisResult]:
  def factory(
    file_id: str = "src/app.ts",
    syntax_errors: int = 0,
    type_errors: int = 0,
    warnings: int = 0,
  ) -> StaticAnalysisResult:
    return StaticAnalysisResult(
      file_id=file_id,
      file_path=file_id,
      syntax_issues=tuple(make_issue(line=i + 1) for i in range(syntax_errors)),
      type_issues=tuple(
        make_issue(IssueKind.TYPE, message="Type 'string' is not assignable to type 'number'")
        for _ in range(type_errors)
      ),
      best_practice_issues=tuple(
        make_issue(IssueKind.BEST_PRACTICE, IssueSeverity.WARNING, message="Magic number detected: 42")
        for _ in range(warnings)
      ),
      metrics=CodeMetrics(
        cyclomatic_complexity=1,
        cognitive_complexity=1.2,
        maintainability_index=100,
        lines_of_code=3,
      ),
    )

  return factory


@pytest.fixture
def make_finding() -> Callable[..., AIReviewFinding]:
  def factory(
    category: FindingCategory = FindingCategory.LOGIC,
    severity: Severity = Severity.MEDIUM,
    confidence: float = 1.0,
    auto_fixable: bool = False,
  ) -> AIReviewFinding:
    return AIReviewFinding(
      id=f"ai_test_{category.value}_{severity.value}",
      category=category,
      severity=severity,
      message="Off-by-one in loop bound",
      explanation="The loop reads one element past the end of the array.",
      confidence=confidence,
      auto_fixable=auto_fixable,
    )

  return factory


@pytest.fixture
def make_ai_result(make_finding: Callable[..., AIReviewFinding]) -> Callable[..., AIReviewResult]:
  def factory(
    score: int = 95,
    file_id: str = "src/app.ts",
    critical: int = 0,
  ) -> AIReviewResult:
    return AIReviewResult(
      file_id=file_id,
      file_path=file_id,
      overall_score=score,
      findings=tuple(
        make_finding(FindingCategory.SECURITY, Severity.CRITICAL) for _ in range(critical)
      ),
      summary="Analysis found 0 issues across 0 categories.",
    )

  return factory

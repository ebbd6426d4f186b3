"""Tests for review orchestration."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest
from reviewgate.config import Settings
from reviewgate.errors import NoActiveSessionError, SessionActiveError
from reviewgate.events import EventType
from reviewgate.models import Decision, SessionStatus, SourceFile
from reviewgate.review import ReviewOrchestrator, combined_score, run_review, static_score

CLEAN_TS = "export const add = (a: number, b: number): number => a + b;\n"
BROKEN_TS = "export function broken() {\n  return 1;\n"

LOW_SCORE = json.dumps({"findings": [
  {
    "category": category,
    "severity": "critical",
    "message": "Unvalidated input",
    "explanation": "Input flows into a shell command.",
    "confidence": 1.0,
  }
  for category in ("security", "logic", "performance", "architecture")
  for _ in range(4)
]})


def _settings(**overrides) -> Settings:
  settings = Settings(chunk_delay_seconds=0, **overrides)
  static = settings.static.model_copy(update={"enable_type_checker": False, "enable_linter": False})
  ai = settings.ai.model_copy(update={"batch_delay_seconds": 0})
  return settings.model_copy(update={"static": static, "ai": ai})


def _file(path: str, content: str = CLEAN_TS) -> SourceFile:
  return SourceFile(id=path, path=path, content=content, language="typescript")


@pytest.fixture
def orchestrator(fake_provider, event_bus) -> ReviewOrchestrator:
  return ReviewOrchestrator(_settings(), provider=fake_provider, events=event_bus)


class TestScores:
  def test_static_score_penalties(self, make_static_result) -> None:
    assert static_score(make_static_result()) == 100
    assert static_score(make_static_result(syntax_errors=1, type_errors=1, warnings=2)) == 78

  def test_static_score_floor(self, make_static_result) -> None:
    assert static_score(make_static_result(syntax_errors=11)) == 0

  def test_combined_score(self, make_static_result, make_ai_result) -> None:
    static = make_static_result(syntax_errors=1)
    ai = make_ai_result(score=81)

    assert combined_score(static, ai) == 86
    assert combined_score(None, ai) == 81
    assert combined_score(static, None) == 90
    assert combined_score(None, None) is None


class TestSessions:
  def test_start_and_complete(self, orchestrator, recorder) -> None:
    session_id = orchestrator.start_review_session("web-app", user_id="dev-1")
    session = orchestrator.complete_review_session()

    assert session.id == session_id
    assert session.status == SessionStatus.COMPLETED
    assert session.completed_at is not None
    assert recorder.types() == [EventType.SESSION_STARTED, EventType.SESSION_COMPLETED]

  def test_second_session_while_open(self, orchestrator) -> None:
    orchestrator.start_review_session("web-app")
    with pytest.raises(SessionActiveError):
      orchestrator.start_review_session("web-app")

  def test_new_session_after_completion(self, orchestrator) -> None:
    first = orchestrator.start_review_session("web-app")
    orchestrator.complete_review_session()

    assert orchestrator.start_review_session("web-app") != first
    assert orchestrator.get_current_session().files_reviewed == 0

  def test_review_requires_session(self, orchestrator) -> None:
    with pytest.raises(NoActiveSessionError):
      asyncio.run(orchestrator.review_file(_file("src/a.ts")))

  def test_complete_requires_session(self, orchestrator) -> None:
    with pytest.raises(NoActiveSessionError):
      orchestrator.complete_review_session()


class TestReviewFile:
  def test_clean_file_is_approved(self, orchestrator, recorder) -> None:
    orchestrator.start_review_session("web-app")

    result = asyncio.run(orchestrator.review_file(_file("src/add.ts")))

    assert result.static_analysis is not None
    assert result.ai_review is not None
    assert result.overall_score == 100
    assert result.approval_decision.decision == Decision.APPROVED
    session = orchestrator.get_current_session()
    assert session.status == SessionStatus.IN_PROGRESS
    assert session.files_reviewed == 1
    assert session.files_approved == 1
    completed = recorder.of(EventType.FILE_COMPLETED)
    assert completed[0].payload["decision"] == "approved"

  def test_static_errors_queue_for_review(self, orchestrator) -> None:
    orchestrator.start_review_session("web-app")

    result = asyncio.run(orchestrator.review_file(_file("src/broken.ts", BROKEN_TS)))

    assert result.approval_decision.decision == Decision.REQUIRES_MANUAL_REVIEW
    session = orchestrator.get_current_session()
    assert session.files_pending == 1
    assert session.critical_issues == 1
    assert [p.file_id for p in orchestrator.approval_engine.get_pending_approvals()] == ["src/broken.ts"]

  def test_low_ai_score_counts_as_rejected(self, make_provider, event_bus) -> None:
    orchestrator = ReviewOrchestrator(
      _settings(approval={"auto_approval_threshold": 10, "require_approval_threshold": 0}),
      provider=make_provider(LOW_SCORE),
      events=event_bus,
    )
    orchestrator.start_review_session("web-app")

    result = asyncio.run(orchestrator.review_file(_file("src/exec.ts")))

    assert result.ai_review.overall_score < 50
    assert result.approval_decision.decision == Decision.REJECTED
    session = orchestrator.get_current_session()
    assert session.files_rejected == 1
    assert session.critical_issues == 16

  def test_ai_failure_does_not_fail_file(self, make_provider) -> None:
    orchestrator = ReviewOrchestrator(
      _settings(), provider=make_provider(error=RuntimeError("503 Service Unavailable"))
    )
    orchestrator.start_review_session("web-app")

    result = asyncio.run(orchestrator.review_file(_file("src/add.ts")))

    assert result.ai_review is None
    assert result.static_analysis is not None
    assert result.overall_score == 100
    assert result.approval_decision is not None

  def test_static_failure_does_not_fail_file(self, fake_provider) -> None:
    settings = _settings()
    settings = settings.model_copy(
      update={"static": settings.static.model_copy(update={"max_file_size": 1024})}
    )
    orchestrator = ReviewOrchestrator(settings, provider=fake_provider)
    orchestrator.start_review_session("web-app")

    result = asyncio.run(orchestrator.review_file(_file("src/huge.ts", "x" * 5000)))

    assert result.static_analysis is None
    assert result.ai_review is not None

  def test_disabled_layers_are_skipped(self, fake_provider) -> None:
    orchestrator = ReviewOrchestrator(
      _settings(enable_static_analysis=False, enable_user_approval=False),
      provider=fake_provider,
    )
    orchestrator.start_review_session("web-app")

    result = asyncio.run(orchestrator.review_file(_file("src/add.ts")))

    assert orchestrator.enabled_layers == ["AI Review"]
    assert result.static_analysis is None
    assert result.approval_decision is None
    assert orchestrator.get_current_session().files_reviewed == 1

  def test_ai_disabled_builds_no_reviewer(self) -> None:
    orchestrator = ReviewOrchestrator(_settings(enable_ai_review=False))
    assert orchestrator.ai_reviewer is None
    assert orchestrator.enabled_layers == ["Static Analysis", "User Approval"]

  def test_provider_resolved_from_settings(self, fake_provider) -> None:
    with patch("reviewgate.review.get_provider", return_value=fake_provider) as get_provider:
      orchestrator = ReviewOrchestrator(_settings(ai={"provider": "openai", "model": "gpt-4o"}))

    get_provider.assert_called_once_with("openai", "gpt-4o")
    assert orchestrator.ai_reviewer.provider is fake_provider


class TestReviewFiles:
  def test_batch_report(self, orchestrator, recorder) -> None:
    orchestrator.start_review_session("web-app")
    files = [_file(f"src/f{i}.ts") for i in range(6)]
    files.append(_file("src/broken.ts", BROKEN_TS))

    report = asyncio.run(orchestrator.review_files(files))

    summary = report.summary
    assert summary.total_files == 7
    assert summary.approved == 6
    assert summary.requires_review == 1
    assert summary.failed == 0
    assert report.has_rejections is False
    assert len(recorder.of(EventType.FILE_COMPLETED)) == 7
    assert orchestrator.get_current_session().files_reviewed == 7

  def test_failing_file_reported_with_error(self, orchestrator) -> None:
    orchestrator.start_review_session("web-app")
    real_record = orchestrator._record

    def record(session, result) -> None:
      if result.file_id == "src/f1.ts":
        raise RuntimeError("counter overflow")
      real_record(session, result)

    with patch.object(orchestrator, "_record", side_effect=record):
      report = asyncio.run(orchestrator.review_files([_file(f"src/f{i}.ts") for i in range(3)]))

    failed = [r for r in report.results if r.error]
    assert [r.file_id for r in failed] == ["src/f1.ts"]
    assert failed[0].error == "counter overflow"
    assert report.summary.failed == 1
    assert report.summary.approved == 2

  def test_chunks_pause_between_windows(self, fake_provider) -> None:
    settings = _settings(chunk_size=2).model_copy(update={"chunk_delay_seconds": 0.5})
    orchestrator = ReviewOrchestrator(settings, provider=fake_provider)
    orchestrator.start_review_session("web-app")

    with patch("reviewgate.batch.asyncio.sleep", new_callable=AsyncMock) as sleep:
      asyncio.run(orchestrator.review_files([_file(f"src/f{i}.ts") for i in range(5)]))

    assert sleep.await_count == 2


class TestStatsAndLifecycle:
  def test_get_stats(self, orchestrator) -> None:
    orchestrator.start_review_session("web-app")
    asyncio.run(orchestrator.review_file(_file("src/add.ts")))

    stats = orchestrator.get_stats()

    assert stats["session"].files_reviewed == 1
    assert stats["performance"]["rejection_rate"] == 0.0
    assert stats["layers"]["ai_review"]["enabled"] is True
    assert stats["layers"]["approval"]["decisions_made"] == 1

  def test_close_seals_in_progress_session(self, orchestrator, fake_provider) -> None:
    orchestrator.start_review_session("web-app")
    asyncio.run(orchestrator.review_file(_file("src/add.ts")))

    orchestrator.close()

    assert orchestrator.get_current_session().status == SessionStatus.COMPLETED
    assert orchestrator.ai_reviewer.cache_stats().size == 0

  def test_close_cancels_unused_session(self, orchestrator) -> None:
    orchestrator.start_review_session("web-app")

    orchestrator.close()

    session = orchestrator.get_current_session()
    assert session.status == SessionStatus.CANCELLED
    assert session.is_open is False
    assert session.completed_at is not None

  def test_fail_session(self, orchestrator) -> None:
    orchestrator.start_review_session("web-app")

    session = orchestrator.fail_review_session()

    assert session.status == SessionStatus.FAILED
    assert session.is_open is False
    with pytest.raises(NoActiveSessionError):
      orchestrator.fail_review_session()

  def test_update_settings_reaches_stages(self, orchestrator) -> None:
    settings = _settings(enable_user_approval=False)
    settings = settings.model_copy(
      update={"approval": settings.approval.model_copy(update={"max_ignorable_issues": 3})}
    )

    orchestrator.update_settings(settings)

    assert orchestrator.approval_engine.settings.max_ignorable_issues == 3
    assert "User Approval" not in orchestrator.enabled_layers


class TestRunReview:
  def test_single_session_round_trip(self, fake_provider, event_bus, recorder) -> None:
    report = asyncio.run(run_review(
      [_file("src/a.ts"), _file("src/b.ts")],
      settings=_settings(),
      provider=fake_provider,
      project_id="web-app",
      events=event_bus,
    ))

    assert report.summary.approved == 2
    assert recorder.types()[0] == EventType.SESSION_STARTED
    assert recorder.types()[-1] == EventType.SESSION_COMPLETED

  def test_batch_crash_fails_session(self, fake_provider, event_bus, recorder) -> None:
    crash = AsyncMock(side_effect=RuntimeError("event loop exploded"))
    real_seal = ReviewOrchestrator._seal

    with (
      patch.object(ReviewOrchestrator, "review_files", crash),
      patch.object(ReviewOrchestrator, "_seal", autospec=True, side_effect=real_seal) as seal,
    ):
      with pytest.raises(RuntimeError, match="event loop exploded"):
        asyncio.run(run_review([_file("src/a.ts")], settings=_settings(), provider=fake_provider, events=event_bus))

    assert [c.args[2] for c in seal.call_args_list] == [SessionStatus.FAILED]
    assert EventType.SESSION_COMPLETED not in recorder.types()

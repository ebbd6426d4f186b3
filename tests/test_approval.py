"""Tests for the approval policy and engine."""

import asyncio
import contextlib

import pytest
from reviewgate.approval import (
  AUTO_APPROVED_REASONING,
  AUTO_REJECTED_REASONING,
  MANUAL_REVIEW_REASONING,
  ApprovalEngine,
  ApprovalPolicy,
)
from reviewgate.config import ApprovalSettings
from reviewgate.errors import ApprovalValidationError
from reviewgate.events import EventType
from reviewgate.models import (
  ApprovalRequest,
  Decision,
  ExperienceLevel,
  HumanDecision,
  ReviewerMetadata,
)


@pytest.fixture
def make_request(make_static_result, make_ai_result):
  def factory(
    file_id: str = "src/app.ts",
    syntax_errors: int = 0,
    warnings: int = 0,
    score: int | None = 95,
    critical: int = 0,
  ) -> ApprovalRequest:
    return ApprovalRequest(
      review_id="session-1",
      file_id=file_id,
      file_path=file_id,
      static_analysis=make_static_result(file_id, syntax_errors=syntax_errors, warnings=warnings),
      ai_review=make_ai_result(score, file_id, critical=critical) if score is not None else None,
    )

  return factory


@pytest.fixture
def engine(event_bus, clock) -> ApprovalEngine:
  return ApprovalEngine(ApprovalSettings(), events=event_bus, clock=clock)


class TestRequiresApproval:
  def test_static_errors_always_require_approval(self, make_request) -> None:
    policy = ApprovalPolicy(ApprovalSettings())
    assert policy.requires_approval(make_request(syntax_errors=1, score=100))

  def test_low_ai_score(self, make_request) -> None:
    policy = ApprovalPolicy(ApprovalSettings())
    assert policy.requires_approval(make_request(score=69))

  def test_high_ai_score_skips_issue_count(self, make_request) -> None:
    policy = ApprovalPolicy(ApprovalSettings())
    assert not policy.requires_approval(make_request(score=90, warnings=25))

  def test_critical_findings_in_middle_band(self, make_request) -> None:
    policy = ApprovalPolicy(ApprovalSettings())
    assert policy.requires_approval(make_request(score=80, critical=1))

    lenient = ApprovalPolicy(ApprovalSettings(auto_reject_critical_issues=False))
    assert not lenient.requires_approval(make_request(score=80, critical=1))

  def test_issue_count_in_middle_band(self, make_request) -> None:
    policy = ApprovalPolicy(ApprovalSettings())
    assert not policy.requires_approval(make_request(score=80, warnings=10))
    assert policy.requires_approval(make_request(score=80, warnings=11))

  def test_nothing_to_judge(self) -> None:
    policy = ApprovalPolicy(ApprovalSettings())
    assert not policy.requires_approval(ApprovalRequest(review_id="r", file_id="a", file_path="a"))


class TestShouldAutoReject:
  def test_syntax_error_with_critical_flag(self, make_request) -> None:
    request = make_request(syntax_errors=1, score=None)

    assert ApprovalPolicy(ApprovalSettings()).should_auto_reject(request)
    assert not ApprovalPolicy(
      ApprovalSettings(auto_reject_critical_issues=False)
    ).should_auto_reject(request)

  def test_score_below_fifty(self, make_request) -> None:
    policy = ApprovalPolicy(ApprovalSettings())
    assert policy.should_auto_reject(make_request(score=49))
    assert not policy.should_auto_reject(make_request(score=50))

  def test_three_critical_findings(self, make_request) -> None:
    policy = ApprovalPolicy(ApprovalSettings())
    assert not policy.should_auto_reject(make_request(score=92, critical=2))
    assert policy.should_auto_reject(make_request(score=92, critical=3))


class TestProcessApprovalRequest:
  def test_clean_file_is_auto_approved(self, engine, make_request, recorder) -> None:
    decision = engine.process_approval_request(make_request(score=95))

    assert decision.decision == Decision.APPROVED
    assert decision.reasoning == AUTO_APPROVED_REASONING
    assert "Auto-approved" in decision.reasoning
    assert engine.get_approval_history("src/app.ts") == [decision]
    assert recorder.types() == [EventType.APPROVAL_DECISION]

  def test_flagged_file_is_queued(self, engine, make_request, recorder) -> None:
    decision = engine.process_approval_request(make_request(score=60), user_id="dev-1")

    assert decision.decision == Decision.REQUIRES_MANUAL_REVIEW
    assert decision.reasoning == MANUAL_REVIEW_REASONING
    assert decision.user_id == "dev-1"
    assert decision.reviewer_metadata.experience_level == ExperienceLevel.MID
    assert [p.file_id for p in engine.get_pending_approvals()] == ["src/app.ts"]
    assert engine.get_approval_history("src/app.ts") == []
    assert recorder.types() == [EventType.APPROVAL_REQUIRED]

  def test_queued_even_when_rejection_would_apply(self, engine, make_request) -> None:
    decision = engine.process_approval_request(make_request(syntax_errors=2, score=40))
    assert decision.decision == Decision.REQUIRES_MANUAL_REVIEW

  def test_auto_rejected_without_review(self, engine, make_request) -> None:
    decision = engine.process_approval_request(make_request(score=92, critical=3))

    assert decision.decision == Decision.REJECTED
    assert decision.reasoning == AUTO_REJECTED_REASONING
    assert engine.get_pending_approvals() == []

  def test_auto_approval_disabled(self, event_bus, clock, make_request) -> None:
    engine = ApprovalEngine(ApprovalSettings(enable_auto_approval=False), event_bus, clock)

    decision = engine.process_approval_request(make_request(score=99))

    assert decision.decision == Decision.REQUIRES_MANUAL_REVIEW
    assert len(engine.get_pending_approvals()) == 1


class TestProcessApprovalDecision:
  def test_records_decision_and_releases_queue(self, engine, make_request) -> None:
    engine.process_approval_request(make_request(score=60))

    recorded = engine.process_approval_decision(HumanDecision(
      review_id="session-1",
      file_id="src/app.ts",
      decision="approved",
      user_id="lead",
      reasoning="Risk accepted for this release",
      approved_issues=("ai_1",),
      reviewer_metadata=ReviewerMetadata(time_spent_seconds=300),
    ))

    assert recorded.decision == Decision.APPROVED
    assert recorded.reviewer_metadata.experience_level == ExperienceLevel.MID
    assert recorded.reviewer_metadata.time_spent_seconds == 300
    assert engine.get_pending_approvals() == []
    assert engine.get_approval_history("src/app.ts") == [recorded]

  def test_needs_changes_requires_changes(self, engine, make_request) -> None:
    engine.process_approval_request(make_request(score=60))

    with pytest.raises(ApprovalValidationError, match="Requested changes must be provided"):
      engine.process_approval_decision(HumanDecision(
        review_id="session-1",
        file_id="src/app.ts",
        decision=Decision.NEEDS_CHANGES,
      ))

    assert engine.get_approval_history("src/app.ts") == []
    assert len(engine.get_pending_approvals()) == 1

  def test_needs_changes_with_changes(self, engine) -> None:
    recorded = engine.process_approval_decision(HumanDecision(
      review_id="session-1",
      file_id="src/app.ts",
      decision=Decision.NEEDS_CHANGES,
      requested_changes=("Escape the query parameters",),
    ))
    assert recorded.requested_changes == ("Escape the query parameters",)

  def test_unknown_decision(self, engine) -> None:
    with pytest.raises(ApprovalValidationError, match="Invalid approval decision"):
      engine.process_approval_decision(HumanDecision(review_id="r", file_id="a", decision="maybe"))

  def test_too_many_approved_issues(self, engine) -> None:
    with pytest.raises(ApprovalValidationError, match="Cannot approve more than 10 issues"):
      engine.process_approval_decision(HumanDecision(
        review_id="r",
        file_id="a",
        decision=Decision.APPROVED,
        approved_issues=tuple(f"issue-{i}" for i in range(11)),
      ))
    assert engine.get_approval_history("a") == []


class TestProcessBatchApproval:
  def test_each_request_lands_in_one_group(self, engine, make_request) -> None:
    requests = [
      make_request("src/broken.ts", syntax_errors=2, score=40),
      make_request("src/clean.ts", score=95),
      make_request("src/noisy.ts", score=80, warnings=11),
    ]

    result = engine.process_batch_approval(requests)

    assert [d.file_id for d in result.rejected] == ["src/broken.ts"]
    assert [d.file_id for d in result.auto_approved] == ["src/clean.ts"]
    assert [r.file_id for r in result.requires_review] == ["src/noisy.ts"]
    assert result.total_files == 3
    assert [p.file_id for p in engine.get_pending_approvals()] == ["src/noisy.ts"]

  def test_requires_approval_is_recomputed(self, engine, make_request) -> None:
    result = engine.process_batch_approval([make_request(score=80, warnings=11)])
    assert result.requires_review[0].requires_approval is True
    assert result.requires_review[0].auto_approve_threshold == 90


class TestQueueRetention:
  def test_auto_decided_requests_not_retained(self, engine, make_request) -> None:
    for i in range(50):
      engine.process_approval_request(make_request(f"src/f{i}.ts"))
    engine.process_batch_approval([make_request("src/bad.ts", syntax_errors=1, score=30)])

    assert engine._pending == {}
    assert engine.get_approval_stats().pending_approvals == 0

  def test_decision_releases_request(self, engine, make_request) -> None:
    engine.process_approval_request(make_request(score=60))

    engine.process_approval_decision(HumanDecision(
      review_id="session-1",
      file_id="src/app.ts",
      decision=Decision.REJECTED,
    ))

    assert engine._pending == {}


class TestExpiry:
  def test_expired_entry_converted_exactly_once(self, engine, make_request, clock, recorder) -> None:
    engine.process_approval_request(make_request(score=60))
    clock.advance(1439)
    assert engine.cleanup_expired_approvals().cleaned_count == 0

    clock.advance(1)
    report = engine.cleanup_expired_approvals()

    assert report.cleaned_count == 1
    assert report.expired_files == ("src/app.ts",)
    assert engine.get_pending_approvals() == []
    history = engine.get_approval_history("src/app.ts")
    assert [d.decision for d in history] == [Decision.REQUIRES_MANUAL_REVIEW]
    assert history[0].reasoning == "Approval request timed out after 1440 minutes"
    assert len(recorder.of(EventType.APPROVAL_EXPIRED)) == 1
    assert engine._pending == {}

    assert engine.cleanup_expired_approvals().cleaned_count == 0
    assert len(engine.get_approval_history("src/app.ts")) == 1

  def test_pending_age(self, engine, make_request, clock) -> None:
    engine.process_approval_request(make_request(score=60))
    clock.advance(30.5)

    assert engine.get_pending_approvals()[0].age_minutes == 30

  def test_periodic_sweep(self, engine, make_request, clock) -> None:
    engine.process_approval_request(make_request(score=60))
    clock.advance(2000)

    async def run() -> None:
      task = asyncio.create_task(engine.sweep_expired_forever(interval_seconds=0.01))
      await asyncio.sleep(0.05)
      task.cancel()
      with contextlib.suppress(asyncio.CancelledError):
        await task

    asyncio.run(run())

    assert engine.get_pending_approvals() == []
    assert len(engine.get_approval_history("src/app.ts")) == 1


class TestApprovalStats:
  def test_counts_today(self, engine, make_request, clock) -> None:
    engine.process_approval_request(make_request("src/a.ts", score=95))
    engine.process_approval_request(make_request("src/b.ts", score=92, critical=3))
    engine.process_approval_request(make_request("src/c.ts", score=60))
    clock.advance(1200)

    stats = engine.get_approval_stats()

    assert stats.pending_approvals == 1
    assert stats.auto_approved_today == 1
    assert stats.manual_reviews_today == 1
    assert stats.rejection_rate == 50.0
    assert stats.timeout_risk_count == 1

  def test_engine_stats(self, engine, make_request) -> None:
    engine.process_approval_request(make_request(score=95))

    stats = engine.stats()

    assert stats["auto_approval_rate"] == 100.0
    assert stats["settings"]["auto_approval_threshold"] == 90

"""Third review stage: approval decisions and the pending queue."""

import asyncio
import logging
import math
import time
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable

from reviewgate.approval.policy import ApprovalPolicy
from reviewgate.config.settings import ApprovalSettings
from reviewgate.errors import ApprovalValidationError
from reviewgate.events import EventBus, EventType
from reviewgate.models import (
  ApprovalDecision,
  ApprovalRequest,
  ApprovalStats,
  BatchApprovalResult,
  CleanupReport,
  Decision,
  HumanDecision,
  PendingApproval,
  ReviewerMetadata,
  utcnow,
)

logger = logging.getLogger(__name__)

AUTO_APPROVED_REASONING = "Auto-approved based on analysis results"
AUTO_REJECTED_REASONING = "Auto-rejected due to critical issues"
MANUAL_REVIEW_REASONING = "Manual review required due to identified issues"

# Pending entries older than this share of the timeout are "at risk".
TIMEOUT_RISK_RATIO = 0.8

Clock = Callable[[], datetime]


class ApprovalEngine:
  """Decides files automatically where policy allows, queues the rest.

  The engine owns the pending queue and an append-only decision
  history per file. Time is read from `clock` so expiry can be driven
  deterministically.

  Example:
    engine = ApprovalEngine(settings.approval)
    decision = engine.process_approval_request(request)
    if decision.decision == Decision.REQUIRES_MANUAL_REVIEW:
      engine.process_approval_decision(HumanDecision(...))
  """

  def __init__(
    self,
    settings: ApprovalSettings | None = None,
    events: EventBus | None = None,
    clock: Clock = utcnow,
  ):
    self.settings = settings or ApprovalSettings()
    self.events = events or EventBus()
    self.policy = ApprovalPolicy(self.settings)
    self._clock = clock
    # Queued requests with their enqueue time; entries leave on decision or expiry.
    self._pending: dict[str, tuple[ApprovalRequest, datetime]] = {}
    self._history: dict[str, list[ApprovalDecision]] = {}

  def update_settings(self, settings: ApprovalSettings) -> None:
    self.settings = settings
    self.policy = ApprovalPolicy(settings)
    logger.info("Approval settings updated")

  @property
  def _default_metadata(self) -> ReviewerMetadata:
    defaults = self.settings.default_reviewer_metadata
    return ReviewerMetadata(
      experience_level=defaults.experience_level,
      domain_expertise=tuple(defaults.domain_expertise),
    )

  def _evaluate(self, request: ApprovalRequest) -> ApprovalRequest:
    evaluated = replace(
      request,
      requires_approval=False,
      auto_approve_threshold=self.settings.auto_approval_threshold,
    )
    return replace(evaluated, requires_approval=self.policy.requires_approval(evaluated))

  def process_approval_request(
    self,
    request: ApprovalRequest,
    user_id: str | None = None,
  ) -> ApprovalDecision:
    """Decide a file, or queue it for a human.

    A queued file gets a `requires_manual_review` placeholder; the real
    decision arrives through `process_approval_decision`.
    """
    logger.info("Processing approval request for %s", request.file_path)
    evaluated = self._evaluate(request)

    if evaluated.requires_approval:
      return self._enqueue(evaluated, user_id)

    if self.policy.should_auto_reject(evaluated):
      return self._store(self._auto_decision(evaluated, Decision.REJECTED))

    if not self.settings.enable_auto_approval:
      return self._enqueue(evaluated, user_id)

    decision = self._store(self._auto_decision(evaluated, Decision.APPROVED))
    logger.info("File %s auto-approved", request.file_path)
    return decision

  def _enqueue(self, request: ApprovalRequest, user_id: str | None = None) -> ApprovalDecision:
    self._pending[request.file_id] = (request, self._clock())
    self.events.emit(
      EventType.APPROVAL_REQUIRED,
      review_id=request.review_id,
      file_id=request.file_id,
      file_path=request.file_path,
    )
    logger.info("Approval required for %s", request.file_path)
    return ApprovalDecision(
      review_id=request.review_id,
      file_id=request.file_id,
      decision=Decision.REQUIRES_MANUAL_REVIEW,
      reasoning=MANUAL_REVIEW_REASONING,
      user_id=user_id,
      reviewer_metadata=self._default_metadata,
      timestamp=self._clock(),
    )

  def _auto_decision(self, request: ApprovalRequest, outcome: Decision) -> ApprovalDecision:
    return ApprovalDecision(
      review_id=request.review_id,
      file_id=request.file_id,
      decision=outcome,
      reasoning=AUTO_APPROVED_REASONING if outcome == Decision.APPROVED else AUTO_REJECTED_REASONING,
      timestamp=self._clock(),
    )

  def _store(self, decision: ApprovalDecision) -> ApprovalDecision:
    self._history.setdefault(decision.file_id, []).append(decision)
    self.events.emit(
      EventType.APPROVAL_DECISION,
      review_id=decision.review_id,
      file_id=decision.file_id,
      decision=decision.decision.value,
      user_id=decision.user_id,
    )
    logger.debug("Stored %s decision for %s", decision.decision.value, decision.file_id)
    return decision

  def process_approval_decision(self, decision: HumanDecision) -> ApprovalDecision:
    """Record a human decision and release the file from the queue.

    Raises:
      ApprovalValidationError: The payload violates the approval policy.
        Nothing is recorded.
    """
    outcome = self._validate(decision)

    recorded = self._store(ApprovalDecision(
      review_id=decision.review_id,
      file_id=decision.file_id,
      decision=outcome,
      reasoning=decision.reasoning,
      user_id=decision.user_id,
      requested_changes=tuple(decision.requested_changes),
      approved_issues=tuple(decision.approved_issues),
      reviewer_metadata=self._default_metadata.merged(decision.reviewer_metadata),
      timestamp=self._clock(),
    ))
    self._pending.pop(decision.file_id, None)

    logger.info(
      "Approval decision for %s: %s by %s",
      decision.file_id, outcome.value, decision.user_id or "unknown",
    )
    return recorded

  def _validate(self, decision: HumanDecision) -> Decision:
    try:
      outcome = Decision(decision.decision)
    except ValueError as e:
      raise ApprovalValidationError(
        f"Invalid approval decision: {decision.decision!r}"
      ) from e

    if outcome == Decision.NEEDS_CHANGES and not decision.requested_changes:
      raise ApprovalValidationError(
        "Requested changes must be provided when decision is needs_changes"
      )

    if len(decision.approved_issues) > self.settings.max_ignorable_issues:
      raise ApprovalValidationError(
        f"Cannot approve more than {self.settings.max_ignorable_issues} issues"
      )

    return outcome

  def process_batch_approval(self, requests: list[ApprovalRequest]) -> BatchApprovalResult:
    """Classify each request into exactly one group.

    Decisions for the auto-approved and rejected groups are recorded
    immediately. A request that raises lands in `failed`.
    """
    start = time.perf_counter()
    logger.info("Starting batch approval of %d files", len(requests))

    auto_approved: list[ApprovalDecision] = []
    requires_review: list[ApprovalRequest] = []
    rejected: list[ApprovalDecision] = []
    failed: list[str] = []

    for request in requests:
      try:
        evaluated = self._evaluate(request)
        if self.policy.should_auto_reject(evaluated):
          rejected.append(self._store(self._auto_decision(evaluated, Decision.REJECTED)))
        elif evaluated.requires_approval or not self.settings.enable_auto_approval:
          self._enqueue(evaluated)
          requires_review.append(evaluated)
        else:
          auto_approved.append(self._store(self._auto_decision(evaluated, Decision.APPROVED)))
      except Exception as e:
        logger.warning("Batch approval failed for %s: %s", request.file_id, e)
        failed.append(request.file_id)

    result = BatchApprovalResult(
      auto_approved=tuple(auto_approved),
      requires_review=tuple(requires_review),
      rejected=tuple(rejected),
      failed=tuple(failed),
      processing_time_ms=(time.perf_counter() - start) * 1000,
    )
    logger.info(
      "Batch approval completed: %d approved, %d for review, %d rejected, %d failed",
      len(auto_approved), len(requires_review), len(rejected), len(failed),
    )
    return result

  def _age_minutes(self, created_at: datetime, now: datetime) -> float:
    return (now - created_at).total_seconds() / 60

  def get_pending_approvals(self) -> list[PendingApproval]:
    now = self._clock()
    pending = []
    for file_id, (request, created_at) in self._pending.items():
      pending.append(PendingApproval(
        file_id=file_id,
        file_path=request.file_path,
        review_id=request.review_id,
        created_at=created_at,
        age_minutes=math.floor(self._age_minutes(created_at, now)),
      ))
    return pending

  def get_approval_history(self, file_id: str) -> list[ApprovalDecision]:
    return list(self._history.get(file_id, []))

  def cleanup_expired_approvals(self) -> CleanupReport:
    """Expire pending entries at or past the timeout.

    Each expired entry is removed from the queue and gets exactly one
    `requires_manual_review` decision, so repeated sweeps are harmless.
    """
    now = self._clock()
    timeout = self.settings.approval_timeout_minutes
    expired = [
      file_id for file_id, (_, created_at) in self._pending.items()
      if self._age_minutes(created_at, now) >= timeout
    ]

    for file_id in expired:
      request, _ = self._pending.pop(file_id)
      self._store(ApprovalDecision(
        review_id=request.review_id,
        file_id=file_id,
        decision=Decision.REQUIRES_MANUAL_REVIEW,
        reasoning=f"Approval request timed out after {timeout:g} minutes",
        timestamp=now,
      ))
      self.events.emit(
        EventType.APPROVAL_EXPIRED,
        review_id=request.review_id,
        file_id=file_id,
        file_path=request.file_path,
      )

    if expired:
      logger.info("Expired %d pending approvals: %s", len(expired), ", ".join(expired))
    return CleanupReport(cleaned_count=len(expired), expired_files=tuple(expired))

  async def sweep_expired_forever(self, interval_seconds: float = 60.0) -> None:
    """Run the expiry sweep every `interval_seconds` until cancelled."""
    while True:
      await asyncio.sleep(interval_seconds)
      self.cleanup_expired_approvals()

  def get_approval_stats(self) -> ApprovalStats:
    now = self._clock()
    today = now.date()

    auto_approved = manual = rejected_today = 0
    time_spent: list[float] = []

    for decisions in self._history.values():
      for decision in decisions:
        if decision.timestamp.date() == today:
          if decision.decision == Decision.APPROVED and decision.reasoning == AUTO_APPROVED_REASONING:
            auto_approved += 1
          else:
            manual += 1
          if decision.decision == Decision.REJECTED:
            rejected_today += 1
        metadata = decision.reviewer_metadata
        if metadata is not None and metadata.time_spent_seconds:
          time_spent.append(metadata.time_spent_seconds)

    risk_minutes = self.settings.approval_timeout_minutes * TIMEOUT_RISK_RATIO
    timeout_risk = sum(
      1 for _, created_at in self._pending.values()
      if self._age_minutes(created_at, now) > risk_minutes
    )

    total = auto_approved + manual
    return ApprovalStats(
      pending_approvals=len(self._pending),
      auto_approved_today=auto_approved,
      manual_reviews_today=manual,
      rejection_rate=rejected_today / total * 100 if total else 0.0,
      average_processing_time_seconds=sum(time_spent) / len(time_spent) if time_spent else 0.0,
      timeout_risk_count=timeout_risk,
    )

  def stats(self) -> dict[str, Any]:
    approval = self.get_approval_stats()
    total_today = approval.auto_approved_today + approval.manual_reviews_today
    return {
      "settings": self.settings.model_dump(mode="json"),
      "pending_approvals": approval.pending_approvals,
      "total_requests_today": total_today,
      "auto_approval_rate": approval.auto_approved_today / total_today * 100 if total_today else 0.0,
      "average_approval_time_minutes": approval.average_processing_time_seconds / 60,
      "timeout_rate": (
        approval.timeout_risk_count / approval.pending_approvals * 100
        if approval.pending_approvals else 0.0
      ),
    }

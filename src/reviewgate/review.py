"""Review orchestration: sessions, per-file pipeline and batches."""

import logging
import time
import uuid
from typing import Any

from reviewgate.ai import AIReviewer
from reviewgate.analysis import StaticAnalyzer
from reviewgate.approval import ApprovalEngine
from reviewgate.batch import run_in_windows
from reviewgate.config import Settings
from reviewgate.errors import NoActiveSessionError, SessionActiveError
from reviewgate.events import EventBus, EventType
from reviewgate.models import (
  AIReviewRequest,
  AIReviewResult,
  ApprovalDecision,
  ApprovalRequest,
  BatchReviewReport,
  BatchReviewSummary,
  Decision,
  FileReviewResult,
  FileReviewSummary,
  IssueSeverity,
  ReviewContext,
  ReviewSession,
  SessionStatus,
  SourceFile,
  StaticAnalysisResult,
  utcnow,
)
from reviewgate.providers import CompletionProvider, ProviderRegistry, get_provider

logger = logging.getLogger(__name__)

# Static score penalties per issue.
SYNTAX_ERROR_PENALTY = 10
TYPE_ERROR_PENALTY = 8
BEST_PRACTICE_ERROR_PENALTY = 5
BEST_PRACTICE_WARNING_PENALTY = 2


def static_score(result: StaticAnalysisResult) -> int:
  """100 minus penalties for error and warning counts, clamped to [0, 100]."""
  def count(issues, severity: IssueSeverity) -> int:
    return sum(1 for i in issues if i.severity == severity)

  score = 100
  score -= count(result.syntax_issues, IssueSeverity.ERROR) * SYNTAX_ERROR_PENALTY
  score -= count(result.type_issues, IssueSeverity.ERROR) * TYPE_ERROR_PENALTY
  score -= count(result.best_practice_issues, IssueSeverity.ERROR) * BEST_PRACTICE_ERROR_PENALTY
  score -= count(result.best_practice_issues, IssueSeverity.WARNING) * BEST_PRACTICE_WARNING_PENALTY
  return max(0, min(100, score))


def combined_score(
  static: StaticAnalysisResult | None,
  ai: AIReviewResult | None,
) -> int | None:
  """Average of the static and AI scores, or whichever one exists."""
  if static is not None and ai is not None:
    return round((static_score(static) + ai.overall_score) / 2)
  if ai is not None:
    return ai.overall_score
  if static is not None:
    return static_score(static)
  return None


class ReviewOrchestrator:
  """Drives files through static analysis, AI review and approval.

  One session is open at a time. Each stage may fail for a file
  without failing the file: the failure is logged and later stages
  run with whatever results exist.

  Example:
    orchestrator = ReviewOrchestrator(settings, provider=provider)
    orchestrator.start_review_session("my-project")
    report = await orchestrator.review_files(files)
    session = orchestrator.complete_review_session()
  """

  def __init__(
    self,
    settings: Settings | None = None,
    provider: CompletionProvider | None = None,
    events: EventBus | None = None,
    static_analyzer: StaticAnalyzer | None = None,
    ai_reviewer: AIReviewer | None = None,
    approval_engine: ApprovalEngine | None = None,
  ):
    self.settings = settings or Settings()
    self.events = events or EventBus()
    self.static_analyzer = static_analyzer or StaticAnalyzer(self.settings.static, self.events)
    self.ai_reviewer = ai_reviewer or self._build_ai_reviewer(provider)
    self.approval_engine = approval_engine or ApprovalEngine(self.settings.approval, self.events)
    self._session: ReviewSession | None = None
    self._stage_times: dict[str, list[float]] = {}
    self._reset_stage_times()

  def _build_ai_reviewer(self, provider: CompletionProvider | None) -> AIReviewer | None:
    if provider is None:
      if not self.settings.enable_ai_review:
        return None
      ProviderRegistry.load_all()
      provider = get_provider(self.settings.ai.provider, self.settings.ai.model)
    return AIReviewer(provider, self.settings.ai, self.events)

  def _reset_stage_times(self) -> None:
    self._stage_times = {"static_analysis": [], "ai_review": [], "approval": []}

  @property
  def enabled_layers(self) -> list[str]:
    layers = []
    if self.settings.enable_static_analysis:
      layers.append("Static Analysis")
    if self.settings.enable_ai_review and self.ai_reviewer is not None:
      layers.append("AI Review")
    if self.settings.enable_user_approval:
      layers.append("User Approval")
    return layers

  def start_review_session(self, project_id: str, user_id: str | None = None) -> str:
    """Open a new session with zeroed counters and return its id.

    Raises:
      SessionActiveError: A session is already open.
    """
    if self._session is not None and self._session.is_open:
      raise SessionActiveError(
        f"Session {self._session.id} is still open. Complete it before starting another."
      )

    self._session = ReviewSession(
      id=str(uuid.uuid4()),
      project_id=project_id,
      user_id=user_id,
    )
    self._reset_stage_times()

    self.events.emit(
      EventType.SESSION_STARTED,
      session_id=self._session.id,
      project_id=project_id,
      user_id=user_id,
    )
    logger.info("Review session %s started for %s", self._session.id, project_id)
    return self._session.id

  def _require_session(self) -> ReviewSession:
    if self._session is None or not self._session.is_open:
      raise NoActiveSessionError("No active review session. Call start_review_session first.")
    return self._session

  def get_current_session(self) -> ReviewSession | None:
    return self._session

  async def review_file(
    self,
    file: SourceFile,
    context: ReviewContext | None = None,
  ) -> FileReviewResult:
    """Run every enabled stage for one file and update the session.

    Raises:
      NoActiveSessionError: No session is open.
    """
    session = self._require_session()
    session.status = SessionStatus.IN_PROGRESS
    start = time.perf_counter()
    logger.info("Starting review of %s in session %s", file.path, session.id)

    static = await self._run_static(file)
    ai = await self._run_ai(file, context)
    score = combined_score(static, ai)
    decision = self._run_approval(session, file, static, ai)

    elapsed = (time.perf_counter() - start) * 1000
    result = FileReviewResult(
      session_id=session.id,
      file_id=file.id,
      file_path=file.path,
      static_analysis=static,
      ai_review=ai,
      approval_decision=decision,
      overall_score=score,
      processing_time_ms=elapsed,
    )
    self._record(session, result)

    self.events.emit(
      EventType.FILE_COMPLETED,
      session_id=session.id,
      file_id=file.id,
      file_path=file.path,
      overall_score=score,
      decision=decision.decision.value if decision else None,
      processing_time_ms=elapsed,
    )
    logger.info(
      "Review of %s completed in %.0fms: %s",
      file.path, elapsed, decision.decision.value if decision else "no decision",
    )
    return result

  async def _run_static(self, file: SourceFile) -> StaticAnalysisResult | None:
    if not self.settings.enable_static_analysis:
      return None
    start = time.perf_counter()
    try:
      return await self.static_analyzer.analyze_file(file)
    except Exception as e:
      logger.error("Static analysis failed for %s: %s", file.path, e)
      return None
    finally:
      self._stage_times["static_analysis"].append((time.perf_counter() - start) * 1000)

  async def _run_ai(self, file: SourceFile, context: ReviewContext | None) -> AIReviewResult | None:
    if not self.settings.enable_ai_review or self.ai_reviewer is None or not file.content:
      return None
    request = AIReviewRequest(
      file_id=file.id,
      file_path=file.path,
      content=file.content,
      language=file.language or self.settings.default_language,
      context=context,
    )
    start = time.perf_counter()
    try:
      return await self.ai_reviewer.review_file(request)
    except Exception as e:
      logger.error("AI review failed for %s: %s", file.path, e)
      return None
    finally:
      self._stage_times["ai_review"].append((time.perf_counter() - start) * 1000)

  def _run_approval(
    self,
    session: ReviewSession,
    file: SourceFile,
    static: StaticAnalysisResult | None,
    ai: AIReviewResult | None,
  ) -> ApprovalDecision | None:
    if not self.settings.enable_user_approval:
      return None
    request = ApprovalRequest(
      review_id=session.id,
      file_id=file.id,
      file_path=file.path,
      static_analysis=static,
      ai_review=ai,
      reviewer_notes=f"Review session {session.id}",
    )
    start = time.perf_counter()
    try:
      return self.approval_engine.process_approval_request(request, user_id=session.user_id)
    except Exception as e:
      logger.error("Approval failed for %s: %s", file.path, e)
      return None
    finally:
      self._stage_times["approval"].append((time.perf_counter() - start) * 1000)

  def _record(self, session: ReviewSession, result: FileReviewResult) -> None:
    session.files_reviewed += 1
    session.total_issues += result.issue_count

    if result.static_analysis is not None:
      session.critical_issues += result.static_analysis.error_count
    if result.ai_review is not None:
      session.critical_issues += result.ai_review.critical_count

    decision = result.approval_decision.decision if result.approval_decision else None
    if decision == Decision.APPROVED:
      session.files_approved += 1
    elif decision in (Decision.REJECTED, Decision.NEEDS_CHANGES):
      session.files_rejected += 1
    elif decision == Decision.REQUIRES_MANUAL_REVIEW:
      session.files_pending += 1

    stats = session.processing_stats
    stats.static_analysis_time_ms = sum(self._stage_times["static_analysis"])
    stats.ai_review_time_ms = sum(self._stage_times["ai_review"])
    stats.user_review_time_ms = sum(self._stage_times["approval"])
    stats.total_time_ms = (
      stats.static_analysis_time_ms + stats.ai_review_time_ms + stats.user_review_time_ms
    )

  async def review_files(
    self,
    files: list[SourceFile],
    context: ReviewContext | None = None,
  ) -> BatchReviewReport:
    """Review files in chunks of `chunk_size`, pausing between chunks.

    Each chunk completes before the next starts. A file whose review
    raises is reported with its error and counted as failed.

    Raises:
      NoActiveSessionError: No session is open.
    """
    session = self._require_session()
    start = time.perf_counter()
    logger.info("Starting batch review of %d files in session %s", len(files), session.id)

    async def review_one(file: SourceFile) -> FileReviewSummary:
      try:
        result = await self.review_file(file, context)
      except Exception as e:
        logger.error("Batch review failed for %s: %s", file.path, e)
        return FileReviewSummary(file_id=file.id, file_path=file.path, error=str(e))
      return FileReviewSummary(
        file_id=file.id,
        file_path=file.path,
        decision=result.approval_decision.decision if result.approval_decision else None,
        overall_score=result.overall_score,
        issues_count=result.issue_count,
        processing_time_ms=result.processing_time_ms,
      )

    outcome = await run_in_windows(
      files,
      review_one,
      window_size=self.settings.chunk_size,
      item_id=lambda f: f.id,
      delay_seconds=self.settings.chunk_delay_seconds,
    )
    rows = list(outcome.results)
    rows.extend(
      FileReviewSummary(file_id=f.item_id, file_path=f.item_id, error=f.message)
      for f in outcome.failures
    )

    summary = self._summarize(rows, (time.perf_counter() - start) * 1000)
    logger.info(
      "Batch review completed: %d approved, %d rejected, %d for review, %d failed",
      summary.approved, summary.rejected, summary.requires_review, summary.failed,
    )
    return BatchReviewReport(session_id=session.id, results=tuple(rows), summary=summary)

  def _summarize(self, rows: list[FileReviewSummary], elapsed_ms: float) -> BatchReviewSummary:
    def count(decision: Decision) -> int:
      return sum(1 for r in rows if r.decision == decision)

    scores = [r.overall_score for r in rows if r.overall_score is not None]
    return BatchReviewSummary(
      total_files=len(rows),
      approved=count(Decision.APPROVED),
      rejected=count(Decision.REJECTED),
      requires_review=count(Decision.REQUIRES_MANUAL_REVIEW),
      needs_changes=count(Decision.NEEDS_CHANGES),
      failed=sum(1 for r in rows if r.error is not None),
      average_score=sum(scores) / len(scores) if scores else 0.0,
      total_processing_time_ms=elapsed_ms,
    )

  def complete_review_session(self) -> ReviewSession:
    """Seal the open session and return it.

    Raises:
      NoActiveSessionError: No session is open.
    """
    session = self._require_session()
    self._seal(session, SessionStatus.COMPLETED)

    self.events.emit(
      EventType.SESSION_COMPLETED,
      session_id=session.id,
      files_reviewed=session.files_reviewed,
      files_approved=session.files_approved,
      files_rejected=session.files_rejected,
    )
    logger.info(
      "Review session %s completed: %d reviewed, %d approved, %d rejected",
      session.id, session.files_reviewed, session.files_approved, session.files_rejected,
    )
    return session

  def fail_review_session(self) -> ReviewSession:
    """Seal the open session as failed.

    Raises:
      NoActiveSessionError: No session is open.
    """
    session = self._require_session()
    self._seal(session, SessionStatus.FAILED)
    logger.error("Review session %s failed after %d files", session.id, session.files_reviewed)
    return session

  def _seal(self, session: ReviewSession, status: SessionStatus) -> None:
    session.completed_at = utcnow()
    session.status = status

  def get_stats(self) -> dict[str, Any]:
    session = self._session
    reviewed = session.files_reviewed if session else 0
    rejected = session.files_rejected if session else 0
    total_ms = session.processing_stats.total_time_ms if session else 0.0

    def average(times: list[float]) -> float:
      return sum(times) / len(times) if times else 0.0

    return {
      "session": session,
      "enabled_layers": self.enabled_layers,
      "performance": {
        "average_processing_time_ms": round(total_ms / reviewed) if reviewed else 0,
        "throughput_files_per_minute": (
          round(reviewed / (total_ms / 60_000), 2) if reviewed and total_ms > 0 else 0.0
        ),
        "rejection_rate": round(rejected / reviewed * 100, 2) if reviewed else 0.0,
      },
      "layers": {
        "static_analysis": {
          "enabled": self.settings.enable_static_analysis,
          "avg_time_ms": average(self._stage_times["static_analysis"]),
        },
        "ai_review": {
          "enabled": self.settings.enable_ai_review and self.ai_reviewer is not None,
          "avg_time_ms": average(self._stage_times["ai_review"]),
        },
        "approval": {
          "enabled": self.settings.enable_user_approval,
          "avg_time_ms": average(self._stage_times["approval"]),
          "decisions_made": (session.files_approved + rejected) if session else 0,
        },
      },
    }

  def update_settings(self, settings: Settings) -> None:
    """Replace the configuration and push each section to its stage."""
    self.settings = settings
    self.static_analyzer.update_settings(settings.static)
    if self.ai_reviewer is not None:
      self.ai_reviewer.update_settings(settings.ai)
    self.approval_engine.update_settings(settings.approval)
    logger.info("Orchestrator settings updated; enabled layers: %s", ", ".join(self.enabled_layers))

  def close(self) -> None:
    """Seal any open session and drop cached AI results.

    An in-progress session is completed. A session that never reviewed
    a file is cancelled.
    """
    session = self._session
    if session is not None and session.status == SessionStatus.IN_PROGRESS:
      self.complete_review_session()
    elif session is not None and session.status == SessionStatus.PENDING:
      self._seal(session, SessionStatus.CANCELLED)
      logger.info("Review session %s cancelled before any file was reviewed", session.id)
    if self.ai_reviewer is not None:
      self.ai_reviewer.clear_cache()
    logger.info("Review orchestrator closed")


async def run_review(
  files: list[SourceFile],
  settings: Settings | None = None,
  provider: CompletionProvider | None = None,
  project_id: str = "default",
  user_id: str | None = None,
  events: EventBus | None = None,
) -> BatchReviewReport:
  """Review `files` in a single session from start to completion."""
  orchestrator = ReviewOrchestrator(settings, provider=provider, events=events)
  orchestrator.start_review_session(project_id, user_id=user_id)
  try:
    report = await orchestrator.review_files(files)
  except Exception:
    orchestrator.fail_review_session()
    raise
  else:
    orchestrator.complete_review_session()
  finally:
    orchestrator.close()
  return report

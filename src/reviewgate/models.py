"""Core domain models for the review pipeline."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Sequence


def utcnow() -> datetime:
  return datetime.now(timezone.utc)


class IssueSeverity(Enum):
  """Severity of a static-analysis issue."""

  ERROR = "error"
  WARNING = "warning"
  INFO = "info"


class IssueKind(Enum):
  """Which static check produced an issue."""

  SYNTAX = "syntax"
  TYPE = "type"
  BEST_PRACTICE = "best-practice"


class Severity(Enum):
  """AI finding severity levels."""

  CRITICAL = "critical"
  HIGH = "high"
  MEDIUM = "medium"
  LOW = "low"
  INFO = "info"


class FindingCategory(Enum):
  """Dimension an AI finding belongs to."""

  LOGIC = "logic"
  ARCHITECTURE = "architecture"
  SECURITY = "security"
  PERFORMANCE = "performance"
  MAINTAINABILITY = "maintainability"
  READABILITY = "readability"


# Categories that carry a weight in the overall AI score.
SCORED_CATEGORIES = (
  FindingCategory.LOGIC,
  FindingCategory.SECURITY,
  FindingCategory.PERFORMANCE,
  FindingCategory.ARCHITECTURE,
  FindingCategory.READABILITY,
)


class Decision(Enum):
  """Terminal outcome for a reviewed file."""

  APPROVED = "approved"
  REJECTED = "rejected"
  NEEDS_CHANGES = "needs_changes"
  REQUIRES_MANUAL_REVIEW = "requires_manual_review"


class SessionStatus(Enum):
  """Lifecycle state of a review session."""

  PENDING = "pending"
  IN_PROGRESS = "in_progress"
  COMPLETED = "completed"
  FAILED = "failed"
  CANCELLED = "cancelled"


class RuleCategory(Enum):
  """Category of a configurable validation rule."""

  SYNTAX = "syntax"
  TYPE = "type"
  BEST_PRACTICE = "best-practice"
  SECURITY = "security"
  PERFORMANCE = "performance"


class ExperienceLevel(Enum):
  """Self-reported experience of a human reviewer."""

  JUNIOR = "junior"
  MID = "mid"
  SENIOR = "senior"
  EXPERT = "expert"


@dataclass(frozen=True)
class SourceFile:
  """A file submitted for review."""

  id: str
  path: str
  content: str
  language: str | None = None

  @property
  def size_bytes(self) -> int:
    return len(self.content.encode("utf-8"))


@dataclass(frozen=True)
class Issue:
  """A single structural finding from static checks."""

  kind: IssueKind
  line: int
  message: str
  severity: IssueSeverity
  column: int | None = None
  rule_id: str | None = None
  rule_name: str | None = None
  code: str | None = None
  suggestion: str | None = None
  auto_fixable: bool = False

  @property
  def is_error(self) -> bool:
    return self.severity == IssueSeverity.ERROR


@dataclass(frozen=True)
class CodeMetrics:
  """Size and complexity metrics for one file."""

  cyclomatic_complexity: int
  cognitive_complexity: float
  maintainability_index: int
  lines_of_code: int
  halstead_proxy: int = 0


@dataclass(frozen=True)
class StaticAnalysisResult:
  """Aggregate static outcome for one file.

  `syntax_valid` and `type_check_passed` are derived from the issue lists
  so they can never disagree with them.
  """

  file_id: str
  file_path: str
  syntax_issues: Sequence[Issue]
  type_issues: Sequence[Issue]
  best_practice_issues: Sequence[Issue]
  metrics: CodeMetrics
  backend: str = "heuristic"
  processing_time_ms: float = 0.0
  timestamp: datetime = field(default_factory=utcnow)

  @property
  def syntax_valid(self) -> bool:
    return not any(i.is_error for i in self.syntax_issues)

  @property
  def type_check_passed(self) -> bool:
    return not any(i.is_error for i in self.type_issues)

  @property
  def all_issues(self) -> list[Issue]:
    return [*self.syntax_issues, *self.type_issues, *self.best_practice_issues]

  @property
  def issue_count(self) -> int:
    return len(self.syntax_issues) + len(self.type_issues) + len(self.best_practice_issues)

  @property
  def error_count(self) -> int:
    """Count of error-severity syntax and type issues."""
    return sum(1 for i in [*self.syntax_issues, *self.type_issues] if i.is_error)


@dataclass(frozen=True)
class ReviewContext:
  """Project context handed to the AI reviewer."""

  project_type: str | None = None
  framework: str | None = None
  dependencies: Sequence[str] = ()
  file_dependencies: Sequence[str] = ()

  def as_dict(self) -> dict[str, Any]:
    return {
      "project_type": self.project_type,
      "framework": self.framework,
      "dependencies": list(self.dependencies),
      "file_dependencies": list(self.file_dependencies),
    }


@dataclass(frozen=True)
class AIReviewRequest:
  """Input to one AI review."""

  file_id: str
  file_path: str
  content: str
  language: str
  context: ReviewContext | None = None


@dataclass(frozen=True)
class AIReviewFinding:
  """One LLM-sourced observation."""

  id: str
  category: FindingCategory
  severity: Severity
  message: str
  explanation: str
  confidence: float
  line: int | None = None
  suggestion: str | None = None
  code_example: str | None = None
  references: Sequence[str] = ()
  auto_fixable: bool = False


@dataclass(frozen=True)
class AIReviewResult:
  """Aggregate AI outcome for one file."""

  file_id: str
  file_path: str
  overall_score: int
  findings: Sequence[AIReviewFinding]
  summary: str
  recommendations: Sequence[str] = ()
  strengths: Sequence[str] = ()
  weaknesses: Sequence[str] = ()
  processing_time_ms: float = 0.0
  timestamp: datetime = field(default_factory=utcnow)

  def __post_init__(self) -> None:
    object.__setattr__(self, "overall_score", max(0, min(100, int(self.overall_score))))

  def count(self, severity: Severity) -> int:
    return sum(1 for f in self.findings if f.severity == severity)

  @property
  def critical_count(self) -> int:
    return self.count(Severity.CRITICAL)


@dataclass(frozen=True)
class ReviewerMetadata:
  """Who made a decision and how long it took."""

  experience_level: ExperienceLevel | None = None
  domain_expertise: Sequence[str] = ()
  time_spent_seconds: float | None = None

  def merged(self, override: "ReviewerMetadata | None") -> "ReviewerMetadata":
    """Overlay the set fields of `override` onto this metadata."""
    if override is None:
      return self
    return replace(
      self,
      experience_level=override.experience_level or self.experience_level,
      domain_expertise=override.domain_expertise or self.domain_expertise,
      time_spent_seconds=(
        override.time_spent_seconds
        if override.time_spent_seconds is not None
        else self.time_spent_seconds
      ),
    )


@dataclass(frozen=True)
class ApprovalRequest:
  """Snapshot of the analysis results fed to the approval policy."""

  review_id: str
  file_id: str
  file_path: str
  static_analysis: StaticAnalysisResult | None = None
  ai_review: AIReviewResult | None = None
  reviewer_notes: str | None = None
  requires_approval: bool = False
  auto_approve_threshold: int = 90

  @property
  def total_issue_count(self) -> int:
    static = self.static_analysis.issue_count if self.static_analysis else 0
    ai = len(self.ai_review.findings) if self.ai_review else 0
    return static + ai


@dataclass(frozen=True)
class ApprovalDecision:
  """Terminal outcome for a file."""

  review_id: str
  file_id: str
  decision: Decision
  reasoning: str | None = None
  user_id: str | None = None
  requested_changes: Sequence[str] = ()
  approved_issues: Sequence[str] = ()
  reviewer_metadata: ReviewerMetadata | None = None
  timestamp: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class HumanDecision:
  """Decision payload submitted by a human reviewer.

  `decision` may be given as a raw string; it is validated by the
  approval engine before anything is recorded.
  """

  review_id: str
  file_id: str
  decision: Decision | str
  user_id: str | None = None
  reasoning: str | None = None
  requested_changes: Sequence[str] = ()
  approved_issues: Sequence[str] = ()
  reviewer_metadata: ReviewerMetadata | None = None


@dataclass(frozen=True)
class PendingApproval:
  """A file awaiting a human decision."""

  file_id: str
  file_path: str
  review_id: str
  created_at: datetime
  age_minutes: int


@dataclass(frozen=True)
class BatchApprovalResult:
  """Classification of a batch of approval requests."""

  auto_approved: Sequence[ApprovalDecision]
  requires_review: Sequence[ApprovalRequest]
  rejected: Sequence[ApprovalDecision]
  failed: Sequence[str] = ()
  processing_time_ms: float = 0.0

  @property
  def total_files(self) -> int:
    return len(self.auto_approved) + len(self.requires_review) + len(self.rejected) + len(self.failed)


@dataclass(frozen=True)
class CleanupReport:
  """Outcome of one expiry sweep."""

  cleaned_count: int
  expired_files: Sequence[str]


@dataclass(frozen=True)
class ApprovalStats:
  """Read-only view of the approval engine's activity."""

  pending_approvals: int
  auto_approved_today: int
  manual_reviews_today: int
  rejection_rate: float
  average_processing_time_seconds: float
  timeout_risk_count: int


@dataclass
class ProcessingStats:
  """Cumulative per-stage durations for a session, in milliseconds."""

  static_analysis_time_ms: float = 0.0
  ai_review_time_ms: float = 0.0
  user_review_time_ms: float = 0.0
  total_time_ms: float = 0.0


@dataclass
class ReviewSession:
  """One run of the orchestrator over a set of files.

  Counters only ever grow while the session is open.
  """

  id: str
  project_id: str
  started_at: datetime = field(default_factory=utcnow)
  user_id: str | None = None
  status: SessionStatus = SessionStatus.PENDING
  completed_at: datetime | None = None
  files_reviewed: int = 0
  files_approved: int = 0
  files_rejected: int = 0
  files_pending: int = 0
  total_issues: int = 0
  critical_issues: int = 0
  processing_stats: ProcessingStats = field(default_factory=ProcessingStats)

  @property
  def is_open(self) -> bool:
    return self.status in (SessionStatus.PENDING, SessionStatus.IN_PROGRESS)


@dataclass(frozen=True)
class FileReviewResult:
  """Everything the pipeline produced for one file."""

  session_id: str
  file_id: str
  file_path: str
  static_analysis: StaticAnalysisResult | None = None
  ai_review: AIReviewResult | None = None
  approval_decision: ApprovalDecision | None = None
  overall_score: int | None = None
  processing_time_ms: float = 0.0

  @property
  def issue_count(self) -> int:
    static = self.static_analysis.issue_count if self.static_analysis else 0
    ai = len(self.ai_review.findings) if self.ai_review else 0
    return static + ai


@dataclass(frozen=True)
class FileReviewSummary:
  """One row of a batch review report."""

  file_id: str
  file_path: str
  decision: Decision | None = None
  overall_score: int | None = None
  issues_count: int = 0
  processing_time_ms: float = 0.0
  error: str | None = None


@dataclass(frozen=True)
class BatchReviewSummary:
  """Totals for a batch review."""

  total_files: int
  approved: int
  rejected: int
  requires_review: int
  needs_changes: int
  failed: int
  average_score: float
  total_processing_time_ms: float


@dataclass(frozen=True)
class BatchReviewReport:
  """Result of reviewing a batch of files in a session."""

  session_id: str
  results: Sequence[FileReviewSummary]
  summary: BatchReviewSummary

  @property
  def has_rejections(self) -> bool:
    return self.summary.rejected > 0

"""Application settings."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from reviewgate.models import ExperienceLevel, IssueSeverity, RuleCategory


class ValidationRule(BaseModel):
  """A configurable best-practice, security or performance rule."""

  model_config = ConfigDict(frozen=True)

  id: str
  name: str
  description: str = ""
  severity: IssueSeverity = IssueSeverity.WARNING
  category: RuleCategory = RuleCategory.BEST_PRACTICE
  enabled: bool = True
  configuration: dict[str, Any] = Field(default_factory=dict)


class StaticAnalyzerSettings(BaseModel):
  """Static analysis configuration."""

  enable_type_checker: bool = True
  enable_linter: bool = True
  max_file_size: int = Field(default=1_048_576, ge=1024)
  supported_extensions: list[str] = Field(
    default_factory=lambda: [".ts", ".tsx", ".js", ".jsx", ".py", ".java", ".cs", ".cpp"]
  )
  type_checked_extensions: list[str] = Field(default_factory=lambda: [".ts", ".tsx"])
  linted_extensions: list[str] = Field(
    default_factory=lambda: [".ts", ".tsx", ".js", ".jsx"]
  )
  type_checker_command: list[str] = Field(
    default_factory=lambda: ["npx", "tsc", "--noEmit", "--pretty", "false", "--strict"]
  )
  linter_command: list[str] = Field(
    default_factory=lambda: ["npx", "eslint", "--format", "json"]
  )
  tool_timeout_seconds: float = Field(default=30.0, gt=0)
  batch_concurrency: int = Field(default=5, ge=1)
  custom_rules: list[ValidationRule] = Field(default_factory=list)


class ScoringWeights(BaseModel):
  """Weight of each scored category in the overall AI score."""

  logic: float = Field(default=0.25, ge=0)
  security: float = Field(default=0.25, ge=0)
  performance: float = Field(default=0.2, ge=0)
  architecture: float = Field(default=0.15, ge=0)
  readability: float = Field(default=0.15, ge=0)

  def weight_for(self, category: str) -> float:
    return float(getattr(self, category))


class AnalysisContext(BaseModel):
  """Project-wide context included in every AI prompt."""

  project_type: str | None = None
  framework: str | None = None
  language_version: str | None = None
  deployment_environment: str | None = None


class AIReviewerSettings(BaseModel):
  """AI reviewer configuration."""

  provider: str = "anthropic"
  model: str | None = None
  temperature: float = Field(default=0.1, ge=0, le=2)
  max_tokens: int = Field(default=2048, ge=1)
  enable_logic_analysis: bool = True
  enable_security_analysis: bool = True
  enable_performance_analysis: bool = True
  enable_architecture_analysis: bool = True
  enable_readability_analysis: bool = True
  scoring_weights: ScoringWeights = Field(default_factory=ScoringWeights)
  min_confidence_threshold: float = Field(default=0.7, ge=0, le=1)
  max_findings_per_category: int = Field(default=10, ge=1)
  batch_concurrency: int = Field(default=3, ge=1)
  batch_delay_seconds: float = Field(default=1.0, ge=0)
  cache_max_entries: int = Field(default=1000, ge=1)
  analysis_context: AnalysisContext = Field(default_factory=AnalysisContext)

  def enabled_analysis_types(self) -> list[str]:
    types = []
    if self.enable_logic_analysis:
      types.append("Logic Analysis")
    if self.enable_security_analysis:
      types.append("Security Analysis")
    if self.enable_performance_analysis:
      types.append("Performance Analysis")
    if self.enable_architecture_analysis:
      types.append("Architecture Analysis")
    if self.enable_readability_analysis:
      types.append("Readability Analysis")
    return types


class ReviewerMetadataSettings(BaseModel):
  """Default metadata attached to recorded decisions."""

  experience_level: ExperienceLevel = ExperienceLevel.MID
  domain_expertise: list[str] = Field(default_factory=list)


class ApprovalSettings(BaseModel):
  """Approval policy configuration."""

  enable_auto_approval: bool = True
  auto_approval_threshold: int = Field(default=90, ge=0, le=100)
  require_approval_threshold: int = Field(default=70, ge=0, le=100)
  auto_reject_critical_issues: bool = True
  max_ignorable_issues: int = Field(default=10, ge=0)
  approval_timeout_minutes: float = Field(default=1440, gt=0)
  default_reviewer_metadata: ReviewerMetadataSettings = Field(
    default_factory=ReviewerMetadataSettings
  )

  @model_validator(mode="after")
  def _check_thresholds(self) -> "ApprovalSettings":
    if self.require_approval_threshold > self.auto_approval_threshold:
      raise ValueError(
        "require_approval_threshold "
        f"({self.require_approval_threshold}) must not exceed "
        f"auto_approval_threshold ({self.auto_approval_threshold})"
      )
    return self


class Settings(BaseModel):
  """Application configuration."""

  model_config = ConfigDict(use_enum_values=False)

  enable_static_analysis: bool = True
  enable_ai_review: bool = True
  enable_user_approval: bool = True
  chunk_size: int = Field(default=5, ge=1)
  chunk_delay_seconds: float = Field(default=1.0, ge=0)
  default_language: str = "typescript"
  exclude_patterns: list[str] = Field(
    default_factory=lambda: ["node_modules", "dist", "build", ".git"]
  )
  include_patterns: list[str] = Field(
    default_factory=lambda: ["**/*.ts", "**/*.js", "**/*.py", "**/*.java", "**/*.cs", "**/*.cpp"]
  )
  static: StaticAnalyzerSettings = Field(default_factory=StaticAnalyzerSettings)
  ai: AIReviewerSettings = Field(default_factory=AIReviewerSettings)
  approval: ApprovalSettings = Field(default_factory=ApprovalSettings)

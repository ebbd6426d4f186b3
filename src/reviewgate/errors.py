"""Exception hierarchy for the review pipeline."""


class ReviewGateError(Exception):
  """Base class for all review pipeline errors."""


class ConfigError(ReviewGateError):
  """Configuration could not be loaded or failed validation."""


class FileTooLargeError(ReviewGateError):
  """File exceeds the configured maximum size."""

  def __init__(self, path: str, size: int, limit: int):
    super().__init__(
      f"{path} is {size} bytes, exceeds maximum allowed size of {limit} bytes"
    )
    self.path = path
    self.size = size
    self.limit = limit


class StaticCheckBackendError(ReviewGateError):
  """External static-check tool is unavailable, crashed or timed out."""


class AIResponseUnparsableError(ReviewGateError):
  """Completion text contained no parsable JSON object."""


class CompletionError(ReviewGateError):
  """Completion service call failed."""


class ApprovalValidationError(ReviewGateError):
  """A human decision payload violated the approval policy."""


class NoActiveSessionError(ReviewGateError):
  """Operation requires an open review session."""


class SessionActiveError(ReviewGateError):
  """A review session is already open on this orchestrator."""

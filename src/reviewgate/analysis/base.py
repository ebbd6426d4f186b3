"""Static check backend protocol."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from reviewgate.models import Issue


@dataclass
class BackendReport:
  """Issues produced by one backend run, grouped by kind."""

  syntax_issues: list[Issue] = field(default_factory=list)
  type_issues: list[Issue] = field(default_factory=list)
  best_practice_issues: list[Issue] = field(default_factory=list)

  def extend(self, other: "BackendReport") -> None:
    self.syntax_issues.extend(other.syntax_issues)
    self.type_issues.extend(other.type_issues)
    self.best_practice_issues.extend(other.best_practice_issues)


class StaticCheckBackend(ABC):
  """Abstract base for structural checkers.

  A backend that cannot run (tool missing, crash, timeout) raises
  StaticCheckBackendError so the caller can fall back.
  """

  @property
  @abstractmethod
  def name(self) -> str:
    """Backend name, recorded on results."""
    ...

  @abstractmethod
  async def check(self, path: str, content: str) -> BackendReport:
    """Check one file.

    Args:
      path: Location of the file on disk. Its extension matches the
        file under review.
      content: The file content, identical to what is at `path`.
    """
    ...

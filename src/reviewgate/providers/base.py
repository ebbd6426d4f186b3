"""Base completion provider."""

from abc import ABC, abstractmethod


class CompletionProvider(ABC):
  """Abstract base for text-completion services.

  Providers only move text: prompt in, raw completion out. Parsing the
  JSON embedded in the completion is the reviewer's job.
  """

  @abstractmethod
  async def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
    """Return the raw completion text for `prompt`."""
    ...

  @property
  @abstractmethod
  def name(self) -> str:
    """Provider name."""
    ...

  @property
  @abstractmethod
  def model(self) -> str:
    """Model being used."""
    ...

  @abstractmethod
  def is_available(self) -> bool:
    """Check if provider is configured and available."""
    ...

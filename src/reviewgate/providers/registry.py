"""Provider discovery and registration."""

import os
from typing import Callable

from reviewgate.errors import ReviewGateError
from reviewgate.providers.base import CompletionProvider


class ProviderNotFoundError(ReviewGateError):
  """Requested provider not found."""


class ProviderUnavailableError(ReviewGateError):
  """Provider found but not available (missing API key, etc)."""


ProviderFactory = Callable[[str | None], CompletionProvider]

_providers: dict[str, ProviderFactory] = {}

# Providers configured through an API key rather than a reachable host.
API_KEY_ENV_VARS = {
  "anthropic": "ANTHROPIC_API_KEY",
  "openai": "OPENAI_API_KEY",
  "gemini": "GEMINI_API_KEY",
}


def register_provider(name: str, factory: ProviderFactory) -> None:
  """Register a provider factory."""
  _providers[name] = factory


def get_provider(name: str, model: str | None = None) -> CompletionProvider:
  """Get a provider by name.

  Raises:
    ProviderNotFoundError: No provider registered under `name`.
    ProviderUnavailableError: The provider is not configured.
  """
  if name not in _providers:
    available = ", ".join(_providers.keys()) or "none"
    raise ProviderNotFoundError(
      f"Provider '{name}' not found. Available: {available}"
    )

  provider = _providers[name](model)

  if not provider.is_available():
    raise ProviderUnavailableError(_unavailable_message(name))

  return provider


def _unavailable_message(name: str) -> str:
  lines = [f"Provider '{name}' is not available."]
  env_var = API_KEY_ENV_VARS.get(name)
  if env_var and not os.environ.get(env_var):
    lines.append(f"Set {env_var} to use {name}.")
  elif name == "ollama":
    lines.append("Start Ollama or set OLLAMA_HOST to a reachable server.")
  return "\n".join(lines)


def list_providers() -> list[str]:
  """List registered provider names."""
  return list(_providers.keys())


class ProviderRegistry:
  """Registry for lazy provider loading."""

  @staticmethod
  def load_all() -> None:
    """Load all provider modules to trigger registration."""
    from reviewgate.providers import anthropic, gemini, ollama, openai  # noqa: F401

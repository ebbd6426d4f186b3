"""Completion providers for the AI reviewer."""

from reviewgate.providers.base import CompletionProvider
from reviewgate.providers.parser import extract_json
from reviewgate.providers.prompt import build_review_prompt
from reviewgate.providers.registry import (
  ProviderNotFoundError,
  ProviderRegistry,
  ProviderUnavailableError,
  get_provider,
  list_providers,
  register_provider,
)

__all__ = [
  "CompletionProvider",
  "ProviderNotFoundError",
  "ProviderRegistry",
  "ProviderUnavailableError",
  "build_review_prompt",
  "extract_json",
  "get_provider",
  "list_providers",
  "register_provider",
]

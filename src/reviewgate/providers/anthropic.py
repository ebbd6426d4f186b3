"""Anthropic Claude provider."""

import os
from typing import Any

from reviewgate.providers.base import CompletionProvider
from reviewgate.providers.registry import register_provider


class AnthropicProvider(CompletionProvider):
  """Anthropic Claude completion provider."""

  DEFAULT_MODEL = "claude-sonnet-4-5"

  def __init__(self, model: str | None = None):
    self._model = model or self.DEFAULT_MODEL
    self._api_key = os.environ.get("ANTHROPIC_API_KEY")
    self._client: Any = None

  @property
  def name(self) -> str:
    return "anthropic"

  @property
  def model(self) -> str:
    return self._model

  def is_available(self) -> bool:
    return self._api_key is not None

  def _get_client(self) -> Any:
    if self._client is None:
      try:
        from anthropic import AsyncAnthropic
        self._client = AsyncAnthropic(api_key=self._api_key)
      except ImportError as e:
        raise ImportError(
          "anthropic not installed. Install with: pip install 'reviewgate[anthropic]'"
        ) from e
    return self._client

  async def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
    client = self._get_client()

    response = await client.messages.create(
      model=self._model,
      max_tokens=max_tokens,
      temperature=temperature,
      messages=[{"role": "user", "content": prompt}],
    )

    return "".join(
      block.text for block in response.content if getattr(block, "type", "text") == "text"
    )


def _create_anthropic(model: str | None) -> CompletionProvider:
  return AnthropicProvider(model)


register_provider("anthropic", _create_anthropic)

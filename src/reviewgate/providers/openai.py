"""OpenAI provider."""

import os
from typing import Any

from reviewgate.providers.base import CompletionProvider
from reviewgate.providers.registry import register_provider


class OpenAIProvider(CompletionProvider):
  """OpenAI chat completion provider."""

  DEFAULT_MODEL = "gpt-4o-mini"

  def __init__(self, model: str | None = None):
    self._model = model or self.DEFAULT_MODEL
    self._api_key = os.environ.get("OPENAI_API_KEY")
    self._client: Any = None

  @property
  def name(self) -> str:
    return "openai"

  @property
  def model(self) -> str:
    return self._model

  def is_available(self) -> bool:
    return self._api_key is not None

  def _get_client(self) -> Any:
    if self._client is None:
      try:
        from openai import AsyncOpenAI
        self._client = AsyncOpenAI(api_key=self._api_key)
      except ImportError as e:
        raise ImportError(
          "openai not installed. Install with: pip install 'reviewgate[openai]'"
        ) from e
    return self._client

  async def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
    client = self._get_client()

    response = await client.chat.completions.create(
      model=self._model,
      messages=[{"role": "user", "content": prompt}],
      max_tokens=max_tokens,
      temperature=temperature,
      response_format={"type": "json_object"},
    )

    return response.choices[0].message.content or ""


def _create_openai(model: str | None) -> CompletionProvider:
  return OpenAIProvider(model)


register_provider("openai", _create_openai)

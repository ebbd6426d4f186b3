"""Google Gemini provider."""

import os
from typing import Any

from reviewgate.errors import CompletionError
from reviewgate.providers.base import CompletionProvider
from reviewgate.providers.registry import register_provider


class GeminiProvider(CompletionProvider):
  """Google Gemini completion provider."""

  DEFAULT_MODEL = "gemini-1.5-flash"

  def __init__(self, model: str | None = None):
    self._model = model or self.DEFAULT_MODEL
    self._api_key = os.environ.get("GEMINI_API_KEY")
    self._client: Any = None

  @property
  def name(self) -> str:
    return "gemini"

  @property
  def model(self) -> str:
    return self._model

  def is_available(self) -> bool:
    return self._api_key is not None

  def _get_client(self) -> Any:
    if self._client is None:
      try:
        import google.generativeai as genai
        genai.configure(api_key=self._api_key)
        self._client = genai.GenerativeModel(self._model)
      except ImportError as e:
        raise ImportError(
          "google-generativeai not installed. "
          "Install with: pip install 'reviewgate[gemini]'"
        ) from e
    return self._client

  async def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
    client = self._get_client()

    response = await client.generate_content_async(
      prompt,
      generation_config={
        "response_mime_type": "application/json",
        "max_output_tokens": max_tokens,
        "temperature": temperature,
      },
    )

    if not response.text:
      raise CompletionError("Gemini returned empty response")

    return response.text


def _create_gemini(model: str | None) -> CompletionProvider:
  return GeminiProvider(model)


register_provider("gemini", _create_gemini)

"""Ollama local LLM provider."""

import os

import httpx

from reviewgate.errors import CompletionError
from reviewgate.providers.base import CompletionProvider
from reviewgate.providers.registry import register_provider


class OllamaProvider(CompletionProvider):
  """Ollama local completion provider."""

  DEFAULT_MODEL = "codellama"
  DEFAULT_HOST = "http://localhost:11434"
  DEFAULT_HEALTH_TIMEOUT = 5.0
  REQUEST_TIMEOUT = 120.0

  def __init__(self, model: str | None = None):
    self._model = model or self.DEFAULT_MODEL
    self._host = os.environ.get("OLLAMA_HOST", self.DEFAULT_HOST)
    self._health_timeout = float(
      os.environ.get("OLLAMA_HEALTH_TIMEOUT", self.DEFAULT_HEALTH_TIMEOUT)
    )

  @property
  def name(self) -> str:
    return "ollama"

  @property
  def model(self) -> str:
    return self._model

  def is_available(self) -> bool:
    try:
      response = httpx.get(f"{self._host}/api/tags", timeout=self._health_timeout)
      return response.status_code == 200
    except httpx.RequestError:
      return False

  async def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
    response = await self._request_with_retry({
      "model": self._model,
      "prompt": prompt,
      "stream": False,
      "format": "json",
      "options": {"num_predict": max_tokens, "temperature": temperature},
    })
    return response.json().get("response", "")

  async def _request_with_retry(self, payload: dict, max_retries: int = 2) -> httpx.Response:
    """Make request with retry on transient failures."""
    last_error: Exception | None = None

    async with httpx.AsyncClient(timeout=self.REQUEST_TIMEOUT) as client:
      for attempt in range(max_retries + 1):
        try:
          response = await client.post(f"{self._host}/api/generate", json=payload)
          response.raise_for_status()
          return response
        except (httpx.ConnectError, httpx.ReadTimeout) as e:
          last_error = e
          if attempt < max_retries:
            continue
        except httpx.HTTPStatusError as e:
          raise CompletionError(
            f"Ollama returned HTTP {e.response.status_code}"
          ) from e

    raise CompletionError(f"Ollama request failed: {last_error}") from last_error


def _create_ollama(model: str | None) -> CompletionProvider:
  return OllamaProvider(model)


register_provider("ollama", _create_ollama)

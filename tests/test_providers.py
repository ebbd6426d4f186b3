"""Tests for completion providers and prompt construction."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from reviewgate.config import AIReviewerSettings
from reviewgate.config.settings import AnalysisContext
from reviewgate.models import AIReviewRequest, ReviewContext
from reviewgate.providers import (
  ProviderNotFoundError,
  ProviderRegistry,
  ProviderUnavailableError,
  build_review_prompt,
  get_provider,
  list_providers,
  register_provider,
)
from reviewgate.providers.anthropic import AnthropicProvider
from reviewgate.providers.ollama import OllamaProvider
from reviewgate.providers.prompt import build_context_block


def _request(context: ReviewContext | None = None) -> AIReviewRequest:
  return AIReviewRequest(
    file_id="src/app.py",
    file_path="src/app.py",
    content="def f():\n    return 1\n",
    language="python",
    context=context,
  )


class TestProviderRegistry:
  def test_builtin_providers_registered(self) -> None:
    ProviderRegistry.load_all()
    for name in ("anthropic", "openai", "gemini", "ollama"):
      assert name in list_providers()

  def test_unknown_provider(self) -> None:
    ProviderRegistry.load_all()
    with pytest.raises(ProviderNotFoundError, match="Provider 'nope' not found"):
      get_provider("nope")

  def test_missing_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    ProviderRegistry.load_all()

    with pytest.raises(ProviderUnavailableError, match="Set ANTHROPIC_API_KEY"):
      get_provider("anthropic")

  def test_configured_provider(self, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    ProviderRegistry.load_all()

    provider = get_provider("anthropic", "claude-haiku-4-5")

    assert isinstance(provider, AnthropicProvider)
    assert provider.name == "anthropic"
    assert provider.model == "claude-haiku-4-5"

  def test_custom_registration(self, fake_provider) -> None:
    register_provider("fake", lambda model: fake_provider)
    assert get_provider("fake") is fake_provider


class TestAnthropicProvider:
  def test_complete_joins_text_blocks(self, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    provider = AnthropicProvider()
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=SimpleNamespace(content=[
      SimpleNamespace(type="text", text='{"findings": '),
      SimpleNamespace(type="text", text="[]}"),
    ]))
    provider._client = client

    text = asyncio.run(provider.complete("review this", max_tokens=512, temperature=0.1))

    assert text == '{"findings": []}'
    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["model"] == AnthropicProvider.DEFAULT_MODEL
    assert kwargs["max_tokens"] == 512
    assert kwargs["messages"] == [{"role": "user", "content": "review this"}]


class TestOllamaProvider:
  def test_unreachable_host_is_unavailable(self) -> None:
    with patch("reviewgate.providers.ollama.httpx.get", side_effect=httpx.ConnectError("refused")):
      assert OllamaProvider().is_available() is False

  def test_reachable_host_is_available(self) -> None:
    with patch("reviewgate.providers.ollama.httpx.get", return_value=httpx.Response(200)):
      assert OllamaProvider().is_available() is True


class TestPrompt:
  def test_prompt_contains_code_and_format(self) -> None:
    prompt = build_review_prompt(_request(), AIReviewerSettings())

    assert "File: src/app.py" in prompt
    assert "```python\ndef f():" in prompt
    assert '"findings": [' in prompt
    assert "No additional context provided." in prompt

  def test_context_block_prefers_request_context(self) -> None:
    settings = AIReviewerSettings(analysis_context=AnalysisContext(
      project_type="library",
      framework="flask",
      language_version="3.12",
    ))
    context = ReviewContext(framework="fastapi", file_dependencies=("src/db.py",))

    block = build_context_block(_request(context), settings)

    assert block.splitlines() == [
      "Project Type: library",
      "Framework: fastapi",
      "Language Version: 3.12",
      "Related Files: src/db.py",
    ]

"""Second review stage: model-backed quality review."""

import hashlib
import json
import logging
import time
from dataclasses import replace
from typing import Any

from reviewgate.ai.findings import parse_findings, relabel_findings, unparsable_response_finding
from reviewgate.ai.scoring import (
  calculate_overall_score,
  generate_recommendations,
  generate_summary,
  identify_strengths,
  identify_weaknesses,
)
from reviewgate.batch import BatchOutcome, run_in_windows
from reviewgate.config.settings import AIReviewerSettings
from reviewgate.errors import AIResponseUnparsableError, CompletionError, ReviewGateError
from reviewgate.events import EventBus, EventType
from reviewgate.models import AIReviewRequest, AIReviewResult
from reviewgate.providers.base import CompletionProvider
from reviewgate.providers.prompt import build_review_prompt
from reviewgate.store import CacheStats, LRUCache

logger = logging.getLogger(__name__)


class AIReviewer:
  """Reviews files through a completion provider.

  Results are cached by a fingerprint of the content, the request
  context and the full reviewer settings, so an identical request
  never reaches the provider twice while its entry is cached.

  Example:
    reviewer = AIReviewer(get_provider("anthropic"), settings.ai)
    result = await reviewer.review_file(request)
  """

  def __init__(
    self,
    provider: CompletionProvider,
    settings: AIReviewerSettings | None = None,
    events: EventBus | None = None,
  ):
    self.provider = provider
    self.settings = settings or AIReviewerSettings()
    self.events = events or EventBus()
    self._cache: LRUCache[str, AIReviewResult] = LRUCache(self.settings.cache_max_entries)
    self._completions = 0

  def update_settings(self, settings: AIReviewerSettings) -> None:
    """Replace the configuration. Every cached result is discarded."""
    self.settings = settings
    self._cache = LRUCache(settings.cache_max_entries)
    logger.info("AI reviewer settings updated; cache cleared")

  def cache_key(self, request: AIReviewRequest) -> str:
    context = json.dumps(request.context.as_dict() if request.context else {}, sort_keys=True)
    fingerprint = f"{request.content}_{context}_{self.settings.model_dump_json()}"
    return hashlib.sha256(fingerprint.encode("utf-8")).hexdigest()

  async def review_file(self, request: AIReviewRequest) -> AIReviewResult:
    """Review one file.

    An unparsable completion still yields a result, holding a single
    informational finding. Provider failures raise CompletionError.
    """
    start = time.perf_counter()
    self.events.emit(EventType.REVIEW_STARTED, file_id=request.file_id, file_path=request.file_path)
    logger.info("Starting AI review of %s (%d chars)", request.file_path, len(request.content))

    key = self.cache_key(request)
    cached = self._cache.get(key)
    if cached is not None:
      logger.debug("Returning cached AI review for %s", request.file_path)
      result = replace(
        cached,
        file_id=request.file_id,
        file_path=request.file_path,
        findings=relabel_findings(cached.findings, cached.file_id, request.file_id),
      )
      self.events.emit(
        EventType.REVIEW_COMPLETED,
        file_id=request.file_id,
        file_path=request.file_path,
        overall_score=result.overall_score,
        findings_count=len(result.findings),
        cached=True,
      )
      return result

    try:
      prompt = build_review_prompt(request, self.settings)
      text = await self._complete(prompt)
    except Exception as e:
      elapsed = (time.perf_counter() - start) * 1000
      logger.error("AI review of %s failed: %s", request.file_path, e)
      self.events.emit(
        EventType.REVIEW_ERROR,
        file_id=request.file_id,
        file_path=request.file_path,
        error=str(e),
        processing_time_ms=elapsed,
      )
      raise

    try:
      findings = parse_findings(
        text,
        request.file_id,
        min_confidence=self.settings.min_confidence_threshold,
        max_per_category=self.settings.max_findings_per_category,
      )
    except AIResponseUnparsableError as e:
      logger.error("Failed to parse AI response for %s: %s", request.file_path, e)
      findings = [unparsable_response_finding(request.file_id)]

    elapsed = (time.perf_counter() - start) * 1000
    result = AIReviewResult(
      file_id=request.file_id,
      file_path=request.file_path,
      overall_score=calculate_overall_score(findings, self.settings.scoring_weights),
      findings=tuple(findings),
      summary=generate_summary(findings),
      recommendations=tuple(generate_recommendations(findings)),
      strengths=tuple(identify_strengths(findings)),
      weaknesses=tuple(identify_weaknesses(findings)),
      processing_time_ms=elapsed,
    )
    self._cache.put(key, result)

    self.events.emit(
      EventType.REVIEW_COMPLETED,
      file_id=request.file_id,
      file_path=request.file_path,
      overall_score=result.overall_score,
      findings_count=len(result.findings),
      processing_time_ms=elapsed,
      cached=False,
    )
    logger.info(
      "AI review of %s completed: score %d, %d findings in %.0fms",
      request.file_path, result.overall_score, len(result.findings), elapsed,
    )
    return result

  async def _complete(self, prompt: str) -> str:
    self._completions += 1
    try:
      return await self.provider.complete(
        prompt,
        max_tokens=self.settings.max_tokens,
        temperature=self.settings.temperature,
      )
    except ReviewGateError:
      raise
    except Exception as e:
      raise CompletionError(f"{self.provider.name} completion failed: {e}") from e

  async def review_files(self, requests: list[AIReviewRequest]) -> BatchOutcome[AIReviewResult]:
    """Review files `batch_concurrency` at a time, pausing between windows.

    A failing review is reported in `failures` and never aborts the batch.
    """
    logger.info("Starting batch AI review of %d files", len(requests))
    outcome = await run_in_windows(
      requests,
      self.review_file,
      window_size=self.settings.batch_concurrency,
      item_id=lambda r: r.file_id,
      delay_seconds=self.settings.batch_delay_seconds,
    )
    logger.info(
      "Batch AI review completed: %d succeeded, %d failed in %d windows",
      len(outcome.results), len(outcome.failures), outcome.windows,
    )
    return outcome

  def clear_cache(self) -> None:
    self._cache.clear()
    logger.info("AI review cache cleared")

  def cache_stats(self) -> CacheStats:
    return self._cache.stats()

  def stats(self) -> dict[str, Any]:
    cache = self._cache.stats()
    return {
      "provider": self.provider.name,
      "model": self.settings.model or self.provider.model,
      "enabled_analysis_types": self.settings.enabled_analysis_types(),
      "min_confidence_threshold": self.settings.min_confidence_threshold,
      "completions_requested": self._completions,
      "cache_size": cache.size,
      "cache_hit_rate": cache.hit_rate,
    }

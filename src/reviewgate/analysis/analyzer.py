"""First review stage: structural checks and code metrics."""

import logging
import tempfile
import time
from pathlib import Path
from typing import Any

from reviewgate.analysis.backends import HeuristicBackend, LinterBackend, TypeCheckerBackend
from reviewgate.analysis.base import BackendReport, StaticCheckBackend
from reviewgate.analysis.metrics import compute_metrics
from reviewgate.batch import BatchOutcome, run_in_windows
from reviewgate.config.settings import StaticAnalyzerSettings
from reviewgate.errors import FileTooLargeError, StaticCheckBackendError
from reviewgate.events import EventBus, EventType
from reviewgate.models import Issue, SourceFile, StaticAnalysisResult
from reviewgate.rules import Rule, build_custom_rules
from reviewgate.rules.base import extension_of

logger = logging.getLogger(__name__)


class StaticAnalyzer:
  """Runs structural checks over source files.

  Statically typed files are handed to the external type checker; when
  it is disabled or fails, the in-process heuristics run instead. The
  linter and configured custom rules add best-practice issues on top.

  Example:
    analyzer = StaticAnalyzer(settings.static)
    result = await analyzer.analyze_file(source_file)
  """

  def __init__(
    self,
    settings: StaticAnalyzerSettings | None = None,
    events: EventBus | None = None,
    type_checker: StaticCheckBackend | None = None,
    linter: StaticCheckBackend | None = None,
    heuristics: HeuristicBackend | None = None,
  ):
    self.settings = settings or StaticAnalyzerSettings()
    self.events = events or EventBus()
    self._custom_type_checker = type_checker
    self._custom_linter = linter
    self._heuristics = heuristics or HeuristicBackend()
    self._configure()

  def _configure(self) -> None:
    self._type_checker = self._custom_type_checker or TypeCheckerBackend(
      self.settings.type_checker_command, self.settings.tool_timeout_seconds
    )
    self._linter = self._custom_linter or LinterBackend(
      self.settings.linter_command, self.settings.tool_timeout_seconds
    )
    self._custom_rules: list[Rule] = build_custom_rules(self.settings.custom_rules)

  def update_settings(self, settings: StaticAnalyzerSettings) -> None:
    """Replace the configuration and rebuild backends and custom rules."""
    self.settings = settings
    self._configure()
    logger.info("Static analyzer settings updated")

  async def analyze_file(self, file: SourceFile) -> StaticAnalysisResult:
    """Analyze one file.

    Raises:
      FileTooLargeError: The file exceeds `max_file_size`.
    """
    start = time.perf_counter()
    self.events.emit(EventType.ANALYSIS_STARTED, file_id=file.id, file_path=file.path)
    logger.info("Starting static analysis of %s (%d bytes)", file.path, file.size_bytes)

    try:
      if file.size_bytes > self.settings.max_file_size:
        raise FileTooLargeError(file.path, file.size_bytes, self.settings.max_file_size)

      with tempfile.TemporaryDirectory(prefix="reviewgate-") as scratch:
        scratch_path = Path(scratch) / (Path(file.path).name or "source")
        scratch_path.write_text(file.content, encoding="utf-8")
        report, backend = await self._run_backends(file, str(scratch_path))

      report.best_practice_issues.extend(self._apply_custom_rules(file))
      metrics = compute_metrics(file.content)
    except Exception as e:
      elapsed = (time.perf_counter() - start) * 1000
      logger.error("Static analysis of %s failed: %s", file.path, e)
      self.events.emit(
        EventType.ANALYSIS_ERROR,
        file_id=file.id,
        file_path=file.path,
        error=str(e),
        processing_time_ms=elapsed,
      )
      raise

    elapsed = (time.perf_counter() - start) * 1000
    result = StaticAnalysisResult(
      file_id=file.id,
      file_path=file.path,
      syntax_issues=tuple(report.syntax_issues),
      type_issues=tuple(report.type_issues),
      best_practice_issues=tuple(report.best_practice_issues),
      metrics=metrics,
      backend=backend,
      processing_time_ms=elapsed,
    )

    self.events.emit(
      EventType.ANALYSIS_COMPLETED,
      file_id=file.id,
      file_path=file.path,
      issues_found=result.issue_count,
      processing_time_ms=elapsed,
    )
    logger.info(
      "Static analysis of %s completed: %d issues in %.0fms",
      file.path, result.issue_count, elapsed,
    )
    return result

  async def _run_backends(self, file: SourceFile, scratch_path: str) -> tuple[BackendReport, str]:
    ext = extension_of(file.path)
    report = BackendReport()
    backend = self._heuristics.name

    if self.settings.enable_type_checker and ext in self.settings.type_checked_extensions:
      try:
        report.extend(await self._type_checker.check(scratch_path, file.content))
        backend = self._type_checker.name
      except StaticCheckBackendError as e:
        logger.warning("%s; falling back to heuristic checks for %s", e, file.path)
        report.extend(self._heuristics.check_sync(file.path, file.content))
    else:
      report.extend(self._heuristics.check_sync(file.path, file.content))

    if self.settings.enable_linter and ext in self.settings.linted_extensions:
      try:
        lint = await self._linter.check(scratch_path, file.content)
        report.best_practice_issues.extend(lint.best_practice_issues)
      except StaticCheckBackendError as e:
        logger.warning("Linting %s skipped: %s", file.path, e)

    return report, backend

  def _apply_custom_rules(self, file: SourceFile) -> list[Issue]:
    issues: list[Issue] = []
    for rule in self._custom_rules:
      try:
        matches = rule.check(file.path, file.content)
      except Exception as e:
        logger.warning("Custom rule %s failed on %s: %s", rule.id, file.path, e)
        continue
      issues.extend(
        Issue(
          kind=rule.kind,
          line=m.line,
          message=m.message,
          severity=m.severity,
          rule_id=rule.id,
          rule_name=rule.name,
          code=m.code,
          suggestion=m.suggestion,
        )
        for m in matches
      )
    return issues

  async def analyze_files(self, files: list[SourceFile]) -> BatchOutcome[StaticAnalysisResult]:
    """Analyze files with at most `batch_concurrency` in flight.

    A failing file is reported in `failures` and never aborts the batch.
    """
    logger.info("Starting batch static analysis of %d files", len(files))
    outcome = await run_in_windows(
      files,
      self.analyze_file,
      window_size=self.settings.batch_concurrency,
      item_id=lambda f: f.id,
    )
    logger.info(
      "Batch static analysis completed: %d succeeded, %d failed",
      len(outcome.results), len(outcome.failures),
    )
    return outcome

  def stats(self) -> dict[str, Any]:
    return {
      "type_checker_enabled": self.settings.enable_type_checker,
      "linter_enabled": self.settings.enable_linter,
      "max_file_size": self.settings.max_file_size,
      "supported_extensions": list(self.settings.supported_extensions),
      "custom_rules": [rule.id for rule in self._custom_rules],
      "heuristic_rules": self._heuristics.rule_ids,
      "backends": [self._type_checker.name, self._linter.name, self._heuristics.name],
    }

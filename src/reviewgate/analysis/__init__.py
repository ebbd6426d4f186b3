"""Static analysis: external checkers, heuristic fallback and metrics."""

from reviewgate.analysis.analyzer import StaticAnalyzer
from reviewgate.analysis.backends import (
  ExternalToolBackend,
  HeuristicBackend,
  LinterBackend,
  TypeCheckerBackend,
)
from reviewgate.analysis.base import BackendReport, StaticCheckBackend
from reviewgate.analysis.metrics import compute_metrics

__all__ = [
  "BackendReport",
  "ExternalToolBackend",
  "HeuristicBackend",
  "LinterBackend",
  "StaticAnalyzer",
  "StaticCheckBackend",
  "TypeCheckerBackend",
  "compute_metrics",
]

"""Configuration management."""

from reviewgate.config.loader import load_config, parse_config
from reviewgate.config.settings import (
  AIReviewerSettings,
  AnalysisContext,
  ApprovalSettings,
  ScoringWeights,
  Settings,
  StaticAnalyzerSettings,
  ValidationRule,
)

__all__ = [
  "AIReviewerSettings",
  "AnalysisContext",
  "ApprovalSettings",
  "ScoringWeights",
  "Settings",
  "StaticAnalyzerSettings",
  "ValidationRule",
  "load_config",
  "parse_config",
]

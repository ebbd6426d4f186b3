"""Shared behaviour for rules built from a ValidationRule."""

from typing import Any

from reviewgate.config.settings import ValidationRule
from reviewgate.models import IssueKind, IssueSeverity


class ConfiguredRule:
  """Takes its id, name and severity from configuration."""

  def __init__(self, config: ValidationRule):
    self._config = config

  @property
  def id(self) -> str:
    return self._config.id

  @property
  def name(self) -> str:
    return self._config.name

  @property
  def kind(self) -> IssueKind:
    return IssueKind.BEST_PRACTICE

  @property
  def severity(self) -> IssueSeverity:
    return self._config.severity

  def option(self, key: str, default: Any) -> Any:
    value = self._config.configuration.get(key)
    return value if value else default

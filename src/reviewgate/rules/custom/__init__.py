"""Configurable best-practice, security and performance rules."""

import logging
from typing import Callable

from reviewgate.config.settings import ValidationRule
from reviewgate.models import RuleCategory
from reviewgate.rules.base import Rule
from reviewgate.rules.custom.function_length import FunctionLengthRule
from reviewgate.rules.custom.magic_numbers import MagicNumberRule
from reviewgate.rules.custom.nesting import NestingDepthRule
from reviewgate.rules.custom.patterns import PerformancePatternRule, SecurityPatternRule

logger = logging.getLogger(__name__)

_BEST_PRACTICE_RULES: dict[str, Callable[[ValidationRule], Rule]] = {
  "no-magic-numbers": MagicNumberRule,
  "max-function-length": FunctionLengthRule,
  "no-deep-nesting": NestingDepthRule,
}


def build_custom_rules(rules: list[ValidationRule]) -> list[Rule]:
  """Instantiate the enabled configured rules.

  Best-practice rules are looked up by id. Security and performance
  rules apply the built-in pattern sets under the configured id.
  Rules with an unknown id or an uncheckable category are skipped.
  """
  built: list[Rule] = []

  for config in rules:
    if not config.enabled:
      continue

    if config.category == RuleCategory.SECURITY:
      built.append(SecurityPatternRule(config))
    elif config.category == RuleCategory.PERFORMANCE:
      built.append(PerformancePatternRule(config))
    elif config.category == RuleCategory.BEST_PRACTICE and config.id in _BEST_PRACTICE_RULES:
      built.append(_BEST_PRACTICE_RULES[config.id](config))
    else:
      logger.debug("Skipping custom rule %s (%s)", config.id, config.category.value)

  return built


__all__ = [
  "FunctionLengthRule",
  "MagicNumberRule",
  "NestingDepthRule",
  "PerformancePatternRule",
  "SecurityPatternRule",
  "build_custom_rules",
]

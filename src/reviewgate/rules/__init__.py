"""Heuristic rules used when no external checker is available."""

from reviewgate.rules.base import Rule, RuleMatch
from reviewgate.rules.custom import build_custom_rules
from reviewgate.rules.registry import RuleRegistry, get_all_rules, list_rules, register_rule

__all__ = [
  "Rule",
  "RuleMatch",
  "RuleRegistry",
  "build_custom_rules",
  "get_all_rules",
  "list_rules",
  "register_rule",
]

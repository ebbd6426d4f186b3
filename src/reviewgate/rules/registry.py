"""Rule registration and discovery."""

from typing import Callable

from reviewgate.rules.base import Rule

RuleFactory = Callable[[], Rule]

_rules: dict[str, RuleFactory] = {}


def register_rule(rule_id: str, factory: RuleFactory) -> None:
  """Register a rule factory.

  Args:
    rule_id: Unique identifier for the rule (e.g., 'brace-style').
    factory: Callable that returns a Rule instance.
  """
  _rules[rule_id] = factory


def get_all_rules() -> list[Rule]:
  """Get instances of all registered rules."""
  return [factory() for factory in _rules.values()]


def list_rules() -> list[str]:
  """List all registered rule IDs."""
  return list(_rules.keys())


class RuleRegistry:
  """Registry for lazy rule loading."""

  @staticmethod
  def load_all() -> None:
    """Load the built-in syntax rule modules to trigger registration."""
    from reviewgate.rules.syntax import (  # noqa: F401
      brackets,
      debug,
      indentation,
      terminators,
    )

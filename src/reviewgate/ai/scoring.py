"""Weighted quality score and derived review text."""

from typing import Sequence

from reviewgate.config.settings import ScoringWeights
from reviewgate.models import SCORED_CATEGORIES, AIReviewFinding, FindingCategory, Severity

SEVERITY_PENALTIES = {
  Severity.CRITICAL: 25,
  Severity.HIGH: 15,
  Severity.MEDIUM: 8,
  Severity.LOW: 3,
  Severity.INFO: 1,
}


def category_scores(findings: Sequence[AIReviewFinding]) -> dict[FindingCategory, float]:
  """Per-category scores, each starting at 100 and clamped to [0, 100].

  Each finding subtracts its severity penalty scaled by confidence.
  Categories without a weight (maintainability) are not scored.
  """
  scores = {category: 100.0 for category in SCORED_CATEGORIES}
  for finding in findings:
    if finding.category in scores:
      scores[finding.category] -= SEVERITY_PENALTIES[finding.severity] * finding.confidence
  return {category: max(0.0, min(100.0, score)) for category, score in scores.items()}


def calculate_overall_score(findings: Sequence[AIReviewFinding], weights: ScoringWeights) -> int:
  """Weighted average of the category scores, rounded. 0 when all weights are 0."""
  total_score = 0.0
  total_weight = 0.0
  for category, score in category_scores(findings).items():
    weight = weights.weight_for(category.value)
    total_score += score * weight
    total_weight += weight

  if total_weight <= 0:
    return 0
  return round(total_score / total_weight)


def _count(findings: Sequence[AIReviewFinding], severity: Severity) -> int:
  return sum(1 for f in findings if f.severity == severity)


def _count_category(findings: Sequence[AIReviewFinding], category: FindingCategory) -> int:
  return sum(1 for f in findings if f.category == category)


def generate_summary(findings: Sequence[AIReviewFinding]) -> str:
  categories = {f.category for f in findings}
  summary = f"Analysis found {len(findings)} issues across {len(categories)} categories."

  clauses = (
    (Severity.CRITICAL, "critical issues require immediate attention"),
    (Severity.HIGH, "high-severity issues should be addressed soon"),
    (Severity.MEDIUM, "medium-severity issues should be reviewed"),
    (Severity.LOW, "low-severity issues for improvement"),
  )
  for severity, text in clauses:
    count = _count(findings, severity)
    if count:
      summary += f" {count} {text}."

  return summary


_CATEGORY_RECOMMENDATIONS = (
  (FindingCategory.SECURITY, "Review and improve security practices ({n} security issues found)"),
  (FindingCategory.LOGIC, "Verify logic and edge cases ({n} logic issues found)"),
  (FindingCategory.PERFORMANCE, "Optimize performance bottlenecks ({n} performance issues identified)"),
  (FindingCategory.ARCHITECTURE, "Revisit design and structure ({n} architecture issues)"),
  (FindingCategory.MAINTAINABILITY, "Reduce maintenance burden ({n} maintainability issues)"),
  (FindingCategory.READABILITY, "Improve code readability and documentation ({n} readability issues)"),
)


def generate_recommendations(findings: Sequence[AIReviewFinding]) -> list[str]:
  """Severity-driven recommendations first, then per-category, then auto-fixes."""
  recommendations: list[str] = []

  critical = _count(findings, Severity.CRITICAL)
  if critical:
    recommendations.append(f"Address {critical} critical issues immediately")
  high = _count(findings, Severity.HIGH)
  if high:
    recommendations.append(f"Prioritize fixing {high} high-severity issues")

  for category, template in _CATEGORY_RECOMMENDATIONS:
    n = _count_category(findings, category)
    if n:
      recommendations.append(template.format(n=n))

  auto_fixable = sum(1 for f in findings if f.auto_fixable)
  if auto_fixable:
    recommendations.append(f"Consider using automated fixes for {auto_fixable} issues")

  return recommendations


def identify_strengths(findings: Sequence[AIReviewFinding]) -> list[str]:
  strengths: list[str] = []

  if not any(f.severity in (Severity.CRITICAL, Severity.HIGH) for f in findings):
    strengths.append("No critical or high-severity issues detected")
  if not any(f.severity in (Severity.LOW, Severity.INFO) for f in findings):
    strengths.append("Code quality is excellent with minimal issues")
  if len({f.category for f in findings}) >= 4:
    strengths.append("Comprehensive code analysis performed across multiple dimensions")

  return strengths


_CATEGORY_WEAKNESSES = {
  FindingCategory.SECURITY: "Security vulnerabilities present",
  FindingCategory.LOGIC: "Logic errors or unhandled edge cases",
  FindingCategory.PERFORMANCE: "Performance optimization opportunities identified",
  FindingCategory.ARCHITECTURE: "Architectural concerns noted",
  FindingCategory.MAINTAINABILITY: "Maintainability concerns noted",
  FindingCategory.READABILITY: "Readability could be improved",
}


def identify_weaknesses(findings: Sequence[AIReviewFinding]) -> list[str]:
  weaknesses: list[str] = []

  critical = _count(findings, Severity.CRITICAL)
  if critical:
    weaknesses.append(f"{critical} critical issues require immediate attention")

  for category, text in _CATEGORY_WEAKNESSES.items():
    n = _count_category(findings, category)
    if n:
      weaknesses.append(f"{text} ({n} issues)")

  return weaknesses

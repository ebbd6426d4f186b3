"""Validation and normalization of findings returned by the model."""

import re
import uuid
from dataclasses import replace
from typing import Any, Iterable, Sequence

from reviewgate.models import AIReviewFinding, FindingCategory, Severity
from reviewgate.providers.parser import extract_json

_WHITESPACE = re.compile(r"\s+")

PARSE_FAILURE_MESSAGE = "AI analysis completed but response format could not be parsed"
PARSE_FAILURE_EXPLANATION = (
  "The AI returned an unexpected response format. Manual review may be needed."
)


def is_valid_finding(raw: Any) -> bool:
  """A raw finding needs category, severity, message, explanation and a confidence in [0, 1]."""
  if not isinstance(raw, dict):
    return False
  for key in ("category", "severity", "message", "explanation"):
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
      return False
  confidence = raw.get("confidence")
  if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
    return False
  return 0 <= confidence <= 1


def normalize_category(value: str) -> FindingCategory:
  try:
    return FindingCategory(value.strip().lower())
  except ValueError:
    return FindingCategory.READABILITY


def normalize_severity(value: str) -> Severity:
  try:
    return Severity(value.strip().lower())
  except ValueError:
    return Severity.INFO


def clean_text(text: str) -> str:
  """Collapse runs of whitespace into single spaces."""
  return _WHITESPACE.sub(" ", text).strip()


def _optional_text(value: Any) -> str | None:
  if isinstance(value, str) and value.strip():
    return clean_text(value)
  return None


def _line_number(value: Any) -> int | None:
  if isinstance(value, bool):
    return None
  if isinstance(value, int) and value > 0:
    return value
  if isinstance(value, str) and value.strip().isdigit():
    return int(value) or None
  return None


def normalize_finding(raw: dict[str, Any], file_id: str) -> AIReviewFinding:
  """Convert a validated raw finding into an AIReviewFinding."""
  code_example = raw.get("code_example")
  references = raw.get("references") or []

  return AIReviewFinding(
    id=f"ai_{file_id}_{uuid.uuid4().hex[:12]}",
    category=normalize_category(raw["category"]),
    severity=normalize_severity(raw["severity"]),
    message=clean_text(raw["message"]),
    explanation=clean_text(raw["explanation"]),
    confidence=float(raw["confidence"]),
    line=_line_number(raw.get("line")),
    suggestion=_optional_text(raw.get("suggestion")),
    code_example=code_example.strip() if isinstance(code_example, str) and code_example.strip() else None,
    references=tuple(str(r) for r in references) if isinstance(references, list) else (),
    auto_fixable=bool(raw.get("auto_fixable", False)),
  )


def relabel_findings(
  findings: Sequence[AIReviewFinding],
  old_file_id: str,
  new_file_id: str,
) -> tuple[AIReviewFinding, ...]:
  """Re-derive finding ids for a result reused under another file id."""
  relabeled = []
  for finding in findings:
    finding_id = finding.id
    for prefix in ("ai_", "parse_error_"):
      head = f"{prefix}{old_file_id}"
      if finding_id.startswith(head):
        finding_id = f"{prefix}{new_file_id}{finding_id[len(head):]}"
        break
    relabeled.append(replace(finding, id=finding_id))
  return tuple(relabeled)

def cap_per_category(
  findings: Iterable[AIReviewFinding],
  max_per_category: int,
) -> list[AIReviewFinding]:
  """Keep at most `max_per_category` findings of each category, in encounter order."""
  kept: list[AIReviewFinding] = []
  counts: dict[FindingCategory, int] = {}
  for finding in findings:
    seen = counts.get(finding.category, 0)
    if seen < max_per_category:
      kept.append(finding)
      counts[finding.category] = seen + 1
  return kept


def parse_findings(
  text: str,
  file_id: str,
  *,
  min_confidence: float,
  max_per_category: int,
) -> list[AIReviewFinding]:
  """Turn a raw completion into the findings that survive filtering.

  Invalid findings are dropped silently. Unknown categories and
  severities are normalized rather than rejected.

  Raises:
    AIResponseUnparsableError: The completion holds no JSON object.
  """
  data = extract_json(text)
  raw_findings = data.get("findings")
  if not isinstance(raw_findings, list):
    raw_findings = []

  findings = [
    normalize_finding(raw, file_id)
    for raw in raw_findings
    if is_valid_finding(raw)
  ]
  confident = [f for f in findings if f.confidence >= min_confidence]
  return cap_per_category(confident, max_per_category)


def unparsable_response_finding(file_id: str) -> AIReviewFinding:
  """The single finding reported when a completion could not be parsed."""
  return AIReviewFinding(
    id=f"parse_error_{file_id}",
    category=FindingCategory.READABILITY,
    severity=Severity.INFO,
    message=PARSE_FAILURE_MESSAGE,
    explanation=PARSE_FAILURE_EXPLANATION,
    confidence=0.5,
  )

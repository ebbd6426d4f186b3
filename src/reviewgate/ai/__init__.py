"""AI review: prompting, finding validation and scoring."""

from reviewgate.ai.findings import parse_findings, unparsable_response_finding
from reviewgate.ai.reviewer import AIReviewer
from reviewgate.ai.scoring import SEVERITY_PENALTIES, calculate_overall_score

__all__ = [
  "AIReviewer",
  "SEVERITY_PENALTIES",
  "calculate_overall_score",
  "parse_findings",
  "unparsable_response_finding",
]

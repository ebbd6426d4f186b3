"""Approval policy: when a human must look, and when to reject outright."""

from reviewgate.config.settings import ApprovalSettings
from reviewgate.models import ApprovalRequest, IssueSeverity

# AI score below which a file is rejected without review.
AUTO_REJECT_SCORE = 50
# Number of critical AI findings that triggers rejection.
AUTO_REJECT_CRITICAL_FINDINGS = 3


class ApprovalPolicy:
  """Threshold rules applied to the combined analysis results.

  Both checks treat a missing static result as "no static issues" and
  skip the AI rules when there is no AI result.
  """

  def __init__(self, settings: ApprovalSettings):
    self.settings = settings

  def requires_approval(self, request: ApprovalRequest) -> bool:
    """Whether a human must decide. The first matching rule wins."""
    static = request.static_analysis
    ai = request.ai_review

    if static is not None and static.error_count > 0:
      return True

    if ai is not None:
      if ai.overall_score < self.settings.require_approval_threshold:
        return True
      if ai.overall_score >= self.settings.auto_approval_threshold:
        return False
      if ai.critical_count > 0 and self.settings.auto_reject_critical_issues:
        return True

    return request.total_issue_count > self.settings.max_ignorable_issues

  def should_auto_reject(self, request: ApprovalRequest) -> bool:
    static = request.static_analysis
    ai = request.ai_review

    if static is not None and self.settings.auto_reject_critical_issues:
      if any(i.severity == IssueSeverity.ERROR for i in static.syntax_issues):
        return True

    if ai is not None:
      if ai.overall_score < AUTO_REJECT_SCORE:
        return True
      if ai.critical_count >= AUTO_REJECT_CRITICAL_FINDINGS:
        return True

    return False

"""Approval policy and decision engine."""

from reviewgate.approval.engine import (
  AUTO_APPROVED_REASONING,
  AUTO_REJECTED_REASONING,
  MANUAL_REVIEW_REASONING,
  ApprovalEngine,
)
from reviewgate.approval.policy import ApprovalPolicy

__all__ = [
  "AUTO_APPROVED_REASONING",
  "AUTO_REJECTED_REASONING",
  "MANUAL_REVIEW_REASONING",
  "ApprovalEngine",
  "ApprovalPolicy",
]

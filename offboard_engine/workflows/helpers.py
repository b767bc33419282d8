"""
Workflow Helper Functions for the Offboarding Engine.

Validation of submissions and stage decisions, run before the
workflow engine touches any store.
"""

import logging
from typing import List

from ..models import Decision, ResignationSubmission, Stage

logger = logging.getLogger(__name__)


def validate_submission(submission: ResignationSubmission) -> List[str]:
    """
    Validate a resignation submission for completeness.

    Args:
        submission: The submission to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if not submission.identity or not submission.identity.strip():
        errors.append("Employee identity is required")

    if not submission.fullname or not submission.fullname.strip():
        errors.append("Full name is required")

    if not submission.reason or not submission.reason.strip():
        errors.append("Reason for resignation is required")

    return errors


def validate_decision(stage: str, decision: str, note: str) -> List[str]:
    """
    Validate a stage decision.

    Args:
        stage: Stage being decided
        decision: Decision to record
        note: Justification text

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    try:
        Stage(stage)
    except ValueError:
        errors.append(f"Unknown stage: {stage}")

    try:
        if Decision(decision) == Decision.PENDING:
            errors.append("Decision must be Approved or Rejected")
    except ValueError:
        errors.append(f"Unknown decision: {decision}")

    if not note or not note.strip():
        errors.append("A note is required to approve or reject")

    return errors

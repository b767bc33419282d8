"""
Pure state transitions for resignation requests.

Record store implementations call these inside their critical section
so the engine's derivation rules are applied atomically with the write.
"""

import logging
from datetime import datetime

from ..models import Decision, OverallStatus, ResignationRequest, ResignationSubmission, Stage
from .derivation import derive_overall_status

logger = logging.getLogger(__name__)


def normalize_identity(identity: str) -> str:
    """Canonical form of an employee identity."""
    return (identity or "").strip().lower()


def new_request(submission: ResignationSubmission, submitted_at: datetime) -> ResignationRequest:
    """Build a fresh all-Pending record from a validated submission."""
    return ResignationRequest(
        identity=normalize_identity(submission.identity),
        fullname=submission.fullname.strip(),
        department=(submission.department or "").strip(),
        designation=(submission.designation or "").strip(),
        reason=submission.reason.strip(),
        submitted_at=submitted_at,
    )


def apply_decision(
    record: ResignationRequest,
    stage: Stage,
    decision: Decision,
    note: str,
    decided_at: datetime,
) -> ResignationRequest:
    """
    Apply one stage decision and re-derive the overall status.

    The caller must already have checked that the stage is Pending.
    relieved_at is stamped only on the transition to Approved and is
    never overwritten.

    Returns:
        A new record; the input is left untouched
    """
    prefix = Stage(stage).value
    update = {
        f"{prefix}_decision": Decision(decision),
        f"{prefix}_note": note.strip(),
        f"{prefix}_decided_at": decided_at,
    }
    updated = record.model_copy(update=update)
    updated.overall_status = derive_overall_status(updated.manager_decision, updated.hr_decision)

    if updated.overall_status == OverallStatus.APPROVED and updated.relieved_at is None:
        updated.relieved_at = decided_at
        logger.info(f"Request {record.id} fully approved; {record.identity} relieved at {decided_at.isoformat()}")

    return updated

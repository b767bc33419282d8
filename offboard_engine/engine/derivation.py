"""
Status derivation for the Offboarding Engine.

Every read path (engine, review queue, status view, CLI) derives the
overall status and progress steps from the raw stage fields through
this module only.
"""

from typing import List, Optional

from ..models import (
    Decision,
    OverallStatus,
    ProgressStep,
    ResignationRequest,
    Stage,
    StepState,
)

PROGRESS_LABELS = ("Applied", "Manager decision", "HR decision", "Relieved")

_DECISION_STEP_STATE = {
    Decision.PENDING: StepState.PENDING,
    Decision.APPROVED: StepState.APPROVED,
    Decision.REJECTED: StepState.REJECTED,
}


def derive_overall_status(manager_decision: Decision, hr_decision: Decision) -> OverallStatus:
    """
    Aggregate both stage decisions.

    Args:
        manager_decision: Manager stage decision
        hr_decision: HR stage decision

    Returns:
        Rejected if either stage rejected, Approved if both approved,
        Pending otherwise
    """
    if Decision.REJECTED in (manager_decision, hr_decision):
        return OverallStatus.REJECTED
    if manager_decision == Decision.APPROVED and hr_decision == Decision.APPROVED:
        return OverallStatus.APPROVED
    return OverallStatus.PENDING


def is_awaiting(record: ResignationRequest, stage: Stage) -> bool:
    """True if the record is active and the given stage has not decided yet."""
    return record.is_active and record.decision_for(stage) == Decision.PENDING


def progress_steps(record: Optional[ResignationRequest]) -> List[ProgressStep]:
    """
    Project a record onto the four progress steps.

    Args:
        record: The resignation request, or None when nothing was submitted

    Returns:
        Applied, Manager decision, HR decision and Relieved steps
    """
    if record is None:
        return [ProgressStep(label=label, state=StepState.NOT_STARTED) for label in PROGRESS_LABELS]

    steps = [ProgressStep(label=PROGRESS_LABELS[0], state=StepState.COMPLETED, at=record.submitted_at)]

    for label, decision, note, at in (
        (PROGRESS_LABELS[1], record.manager_decision, record.manager_note, record.manager_decided_at),
        (PROGRESS_LABELS[2], record.hr_decision, record.hr_note, record.hr_decided_at),
    ):
        state = _DECISION_STEP_STATE[decision]
        # A stage left Pending on a rejected request is never going to move
        if state == StepState.PENDING and record.overall_status == OverallStatus.REJECTED:
            state = StepState.NOT_STARTED
        steps.append(ProgressStep(label=label, state=state, note=note or None, at=at))

    relieved = record.relieved_at is not None and record.hr_decision == Decision.APPROVED
    if relieved:
        relieved_state = StepState.COMPLETED
    elif record.overall_status == OverallStatus.REJECTED:
        relieved_state = StepState.NOT_STARTED
    else:
        relieved_state = StepState.PENDING
    steps.append(ProgressStep(label=PROGRESS_LABELS[3], state=relieved_state, at=record.relieved_at))

    return steps

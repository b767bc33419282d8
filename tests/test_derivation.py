"""
Tests for status derivation and pure transitions.
"""

from datetime import datetime, timezone

import pytest

from offboard_engine.engine import (
    PROGRESS_LABELS,
    apply_decision,
    derive_overall_status,
    is_awaiting,
    new_request,
    progress_steps,
)
from offboard_engine.models import (
    Decision,
    OverallStatus,
    ResignationRequest,
    ResignationSubmission,
    Stage,
    StepState,
)

AT = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def pending_record():
    return ResignationRequest(identity="a@x.com", fullname="Ada Xu", reason="relocating")


class TestDeriveOverallStatus:
    """The aggregate status over every combination of stage decisions."""

    @pytest.mark.parametrize("manager", list(Decision))
    @pytest.mark.parametrize("hr", list(Decision))
    def test_status_matrix(self, manager, hr):
        status = derive_overall_status(manager, hr)

        assert (status == OverallStatus.APPROVED) == (
            manager == Decision.APPROVED and hr == Decision.APPROVED
        )
        assert (status == OverallStatus.REJECTED) == (Decision.REJECTED in (manager, hr))

    def test_one_approval_is_still_pending(self):
        assert derive_overall_status(Decision.APPROVED, Decision.PENDING) == OverallStatus.PENDING
        assert derive_overall_status(Decision.PENDING, Decision.APPROVED) == OverallStatus.PENDING


class TestTransitions:
    """Tests for new_request and apply_decision."""

    def test_new_request_normalises_identity(self):
        submission = ResignationSubmission(
            identity="  A@X.com ", fullname=" Ada Xu ", reason=" relocating ", department="Ops"
        )
        record = new_request(submission, AT)

        assert record.identity == "a@x.com"
        assert record.fullname == "Ada Xu"
        assert record.reason == "relocating"
        assert record.submitted_at == AT
        assert record.manager_decision == Decision.PENDING
        assert record.hr_decision == Decision.PENDING
        assert record.overall_status == OverallStatus.PENDING

    def test_apply_decision_does_not_mutate_input(self, pending_record):
        updated = apply_decision(pending_record, Stage.MANAGER, Decision.APPROVED, "ok", AT)

        assert pending_record.manager_decision == Decision.PENDING
        assert updated.manager_decision == Decision.APPROVED
        assert updated.manager_note == "ok"
        assert updated.manager_decided_at == AT

    def test_second_approval_stamps_relieved_at(self, pending_record):
        first = apply_decision(pending_record, Stage.HR, Decision.APPROVED, "cleared", AT)
        assert first.relieved_at is None

        second = apply_decision(first, Stage.MANAGER, Decision.APPROVED, "ok", AT)
        assert second.overall_status == OverallStatus.APPROVED
        assert second.relieved_at == AT

    def test_rejection_never_stamps_relieved_at(self, pending_record):
        updated = apply_decision(pending_record, Stage.MANAGER, Decision.REJECTED, "no handover", AT)

        assert updated.overall_status == OverallStatus.REJECTED
        assert updated.relieved_at is None
        assert updated.hr_decision == Decision.PENDING


class TestProgressSteps:
    """Tests for the four-step progress projection."""

    def test_no_record(self):
        steps = progress_steps(None)

        assert [s.label for s in steps] == list(PROGRESS_LABELS)
        assert all(s.state == StepState.NOT_STARTED for s in steps)

    def test_fresh_request(self, pending_record):
        states = [s.state for s in progress_steps(pending_record)]

        assert states == [StepState.COMPLETED, StepState.PENDING, StepState.PENDING, StepState.PENDING]

    def test_fully_approved(self, pending_record):
        record = apply_decision(pending_record, Stage.MANAGER, Decision.APPROVED, "ok", AT)
        record = apply_decision(record, Stage.HR, Decision.APPROVED, "cleared", AT)
        steps = progress_steps(record)

        assert [s.state for s in steps] == [
            StepState.COMPLETED, StepState.APPROVED, StepState.APPROVED, StepState.COMPLETED
        ]
        assert steps[1].note == "ok"
        assert steps[2].note == "cleared"
        assert steps[3].at == AT

    def test_manager_rejection(self, pending_record):
        record = apply_decision(pending_record, Stage.MANAGER, Decision.REJECTED, "incomplete handover", AT)
        states = [s.state for s in progress_steps(record)]

        assert states == [StepState.COMPLETED, StepState.REJECTED, StepState.NOT_STARTED, StepState.NOT_STARTED]


class TestIsAwaiting:
    """Tests for review queue membership."""

    def test_pending_record_awaits_both_stages(self, pending_record):
        assert is_awaiting(pending_record, Stage.MANAGER)
        assert is_awaiting(pending_record, Stage.HR)

    def test_decided_stage_no_longer_awaits(self, pending_record):
        record = apply_decision(pending_record, Stage.MANAGER, Decision.APPROVED, "ok", AT)

        assert not is_awaiting(record, Stage.MANAGER)
        assert is_awaiting(record, Stage.HR)

    def test_rejected_record_awaits_nobody(self, pending_record):
        record = apply_decision(pending_record, Stage.MANAGER, Decision.REJECTED, "no", AT)

        assert not is_awaiting(record, Stage.HR)

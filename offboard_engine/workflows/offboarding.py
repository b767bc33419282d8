"""
Offboarding Workflow for the Offboarding Engine.

Validates resignation submissions, applies manager and HR stage
decisions, and answers the read queries both clients poll.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..audit.audit_logger import AuditLogger
from ..config import Settings
from ..engine.derivation import is_awaiting
from ..engine.transitions import new_request, normalize_identity
from ..exceptions import NotFound, OffboardingError, ValidationError
from ..models import (
    AuditRecord,
    Decision,
    OverallStatus,
    ResignationRequest,
    ResignationSubmission,
    Stage,
    WorkflowSummary,
    utcnow,
)
from ..store import HttpProfileStore, LocalRecordStore, ProfileStore, RecordStore
from .helpers import validate_decision, validate_submission

logger = logging.getLogger(__name__)


class OffboardingWorkflow:
    """
    Workflow engine for employee resignation requests.

    Sits in front of the record store: every write goes through
    validation first, and the store applies each write atomically.
    """

    def __init__(
        self,
        record_store: RecordStore,
        profile_store: Optional[ProfileStore] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the workflow.

        Args:
            record_store: Store holding resignation requests
            profile_store: Employee profile store for the best-effort reason write
            audit_logger: Audit logger; audit is skipped when None
            clock: Source of the current time
        """
        self.record_store = record_store
        self.profile_store = profile_store
        self.audit_logger = audit_logger
        self.clock = clock

    def submit(self, submission: ResignationSubmission) -> ResignationRequest:
        """
        Submit a new resignation request.

        Args:
            submission: Identity, profile snapshot and reason

        Returns:
            The created request, both stages Pending

        Raises:
            ValidationError: If a required field is missing or empty
            DuplicateActiveRequest: If the identity already has a pending request
        """
        identity = normalize_identity(submission.identity)

        try:
            errors = validate_submission(submission)
            if errors:
                raise ValidationError("; ".join(errors))

            record = self.record_store.create(new_request(submission, self.clock()))

        except OffboardingError as e:
            logger.info(f"Rejected resignation submission for {identity or '<missing>'}: {e}")
            self._log_audit_event(identity, "submit", "submit_resignation", success=False, error=e.message)
            raise

        self._log_audit_event(
            identity,
            "submit",
            "submit_resignation",
            success=True,
            request_id=record.id,
            metadata={"department": record.department, "designation": record.designation},
        )
        self._update_profile(record)
        return record

    def decide(self, request_id: str, stage: Stage, decision: Decision, note: str) -> ResignationRequest:
        """
        Record a manager or HR decision on a pending request.

        Args:
            request_id: The resignation request
            stage: Stage being decided
            decision: Approved or Rejected
            note: Mandatory justification

        Returns:
            The updated request with its re-derived overall status

        Raises:
            ValidationError: If the note is empty or the stage/decision is invalid
            NotFound: If the request does not exist
            AlreadyDecided: If the stage or the request is no longer Pending
        """
        try:
            errors = validate_decision(stage, decision, note)
            if errors:
                raise ValidationError("; ".join(errors))

            record = self.record_store.patch(request_id, Stage(stage), Decision(decision), note, self.clock())

        except OffboardingError as e:
            action = _decision_action(stage, decision)
            logger.info(f"Rejected {action} on request {request_id}: {e}")
            existing = self.record_store.get(request_id)
            self._log_audit_event(
                existing.identity if existing else "",
                "decide",
                action,
                success=False,
                request_id=request_id,
                stage=_as_stage(stage),
                error=e.message,
            )
            raise

        stage = Stage(stage)
        self._log_audit_event(
            record.identity,
            "decide",
            _decision_action(stage, decision),
            success=True,
            request_id=record.id,
            stage=stage,
            metadata={"note": note.strip(), "overall_status": record.overall_status.value},
        )
        return record

    def get(self, request_id: str) -> ResignationRequest:
        """Return a request by id, raising NotFound if it does not exist."""
        record = self.record_store.get(request_id)
        if not record:
            raise NotFound(f"Resignation request {request_id} not found")
        return record

    def find_active_for(self, identity: str) -> Optional[ResignationRequest]:
        """Return the identity's pending request, or None."""
        return self.record_store.find_active(normalize_identity(identity))

    def list_requests(
        self, identity: Optional[str] = None, status: Optional[OverallStatus] = None
    ) -> List[ResignationRequest]:
        """List requests, oldest first, optionally filtered by identity and overall status."""
        records = self.record_store.list(identity)
        if status is not None:
            records = [r for r in records if r.overall_status == OverallStatus(status)]
        return records

    def review_queue(self, stage: Stage) -> List[ResignationRequest]:
        """Pending requests still awaiting the given stage's decision."""
        stage = Stage(stage)
        return [r for r in self.record_store.list() if is_awaiting(r, stage)]

    def reviewed(self, stage: Stage) -> List[ResignationRequest]:
        """Requests the given stage has already decided, most recent decision first."""
        stage = Stage(stage)
        decided = [r for r in self.record_store.list() if r.decision_for(stage) != Decision.PENDING]
        at_field = f"{stage.value}_decided_at"
        return sorted(decided, key=lambda r: getattr(r, at_field) or r.submitted_at, reverse=True)

    def summary(self) -> WorkflowSummary:
        """Counts of requests by overall status and by awaiting stage."""
        records = self.record_store.list()
        summary = WorkflowSummary(
            total_requests=len(records),
            by_status={status.value: 0 for status in OverallStatus},
            awaiting_stage={stage.value: 0 for stage in Stage},
        )

        for record in records:
            summary.by_status[record.overall_status.value] += 1
            for stage in Stage:
                if is_awaiting(record, stage):
                    summary.awaiting_stage[stage.value] += 1
            if record.relieved_at is not None:
                summary.relieved += 1

        return summary

    def _update_profile(self, record: ResignationRequest):
        """Copy the reason onto the employee profile; failures never undo the submission."""
        if not self.profile_store:
            return

        try:
            self.profile_store.record_resignation_reason(record.identity, record.reason)
        except Exception as e:
            logger.warning(f"Failed to update profile of {record.identity} with resignation reason: {e}")

    def _log_audit_event(
        self,
        identity: str,
        event_type: str,
        action: str,
        success: bool,
        request_id: Optional[str] = None,
        stage: Optional[Stage] = None,
        error: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        """
        Log an audit event.

        Returns:
            Audit record ID, or None when auditing is disabled or failed
        """
        if not self.audit_logger:
            return None

        audit_record = AuditRecord(
            event_type=event_type,
            identity=identity,
            request_id=request_id,
            stage=stage,
            action=action,
            success=success,
            error_message=error,
            metadata=metadata or {},
        )

        try:
            return self.audit_logger.log_event(audit_record)
        except OSError as e:
            logger.error(f"Failed to write audit event for {identity}: {e}")
            return None


def build_workflow(settings: Settings) -> OffboardingWorkflow:
    """
    Wire an OffboardingWorkflow from settings.

    Args:
        settings: Resolved settings

    Returns:
        Workflow backed by a local record store
    """
    profile_store = None
    if settings.profile_store_url:
        profile_store = HttpProfileStore(settings.profile_store_url, timeout=settings.request_timeout_seconds)

    return OffboardingWorkflow(
        record_store=LocalRecordStore(settings.state_file),
        profile_store=profile_store,
        audit_logger=AuditLogger(settings.audit_dir) if settings.audit_dir else None,
    )


def _as_stage(value: Any) -> Optional[Stage]:
    try:
        return Stage(value)
    except ValueError:
        return None


def _decision_action(stage: Any, decision: Any) -> str:
    """Audit action name such as ``manager_approved``."""
    stage_value = getattr(stage, "value", stage)
    decision_value = getattr(decision, "value", decision)
    return f"{stage_value}_{str(decision_value).lower()}"

"""
Core data models for the Offboarding Engine.

This module defines the Pydantic models used throughout the system
for resignation requests, stage decisions, progress projection and
audit records.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class Stage(str, Enum):
    """Independent approval checkpoints on a resignation request."""
    MANAGER = "manager"
    HR = "hr"


class Decision(str, Enum):
    """Decision recorded against a single stage."""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class OverallStatus(str, Enum):
    """Aggregate status derived from both stage decisions."""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class StepState(str, Enum):
    """Visual state of one progress step."""
    NOT_STARTED = "not_started"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class ResignationRequest(BaseModel):
    """One offboarding attempt for an employee."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Record identifier")
    identity: str = Field(..., description="Stable employee identifier (e.g. email)")
    fullname: str = Field(..., description="Full name at submission time")
    department: str = Field("", description="Department at submission time")
    designation: str = Field("", description="Designation at submission time")
    reason: str = Field(..., description="Reason for resignation")
    manager_decision: Decision = Decision.PENDING
    manager_note: str = ""
    manager_decided_at: Optional[datetime] = None
    hr_decision: Decision = Decision.PENDING
    hr_note: str = ""
    hr_decided_at: Optional[datetime] = None
    overall_status: OverallStatus = OverallStatus.PENDING
    submitted_at: datetime = Field(default_factory=utcnow)
    relieved_at: Optional[datetime] = None

    def decision_for(self, stage: Stage) -> Decision:
        """Current decision of the given stage."""
        return self.manager_decision if stage == Stage.MANAGER else self.hr_decision

    def note_for(self, stage: Stage) -> str:
        """Current note of the given stage."""
        return self.manager_note if stage == Stage.MANAGER else self.hr_note

    @property
    def is_active(self) -> bool:
        return self.overall_status == OverallStatus.PENDING


class ResignationSubmission(BaseModel):
    """Resignation submission payload."""
    identity: str = Field(..., description="Employee identifier (e.g. email)")
    fullname: str = Field(..., description="Full name")
    department: str = Field("", description="Department")
    designation: str = Field("", description="Designation")
    reason: str = Field(..., description="Reason for resignation")


class StageDecisionRequest(BaseModel):
    """Stage decision payload."""
    stage: Stage = Field(..., description="Stage being decided (manager or hr)")
    decision: Decision = Field(..., description="Approved or Rejected")
    note: str = Field("", description="Mandatory justification for the decision")


class ProgressStep(BaseModel):
    """One step of the four-stage progress projection."""
    label: str
    state: StepState
    note: Optional[str] = None
    at: Optional[datetime] = None


class AuditRecord(BaseModel):
    """Audit record for every submission and decision attempt."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique audit record ID")
    timestamp: datetime = Field(default_factory=utcnow)
    event_type: str = Field(..., description="Type of event (submit, decide)")
    identity: str
    request_id: Optional[str] = Field(None, description="Resignation request affected")
    stage: Optional[Stage] = None
    action: str = Field(..., description="Specific action taken")
    success: bool = Field(..., description="Whether the action succeeded")
    error_message: Optional[str] = Field(None, description="Error details if failed")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ActionOutcome(BaseModel):
    """Result of a client action, phrased for the person who took it."""
    success: bool
    message: str
    error_code: Optional[str] = None
    request: Optional[ResignationRequest] = None


class WorkflowSummary(BaseModel):
    """Counts of resignation requests for dashboards."""
    total_requests: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    awaiting_stage: Dict[str, int] = Field(default_factory=dict)
    relieved: int = 0


# Type aliases for convenience
ResignationRequests = List[ResignationRequest]
AuditRecords = List[AuditRecord]

"""
Approval Client (manager / HR review queue).

Polls the requests awaiting one stage, holds the reviewer's draft
notes and submits stage decisions. Decide failures are turned into an
actionable message followed by an immediate refresh.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional

from ..exceptions import AlreadyDecided, NotFound, OffboardingError, ValidationError
from ..models import ActionOutcome, Decision, ResignationRequest, Stage, utcnow
from .backend import WorkflowBackend
from .poller import PeriodicPoller

logger = logging.getLogger(__name__)

NOTE_REQUIRED_MESSAGE = "Please add a note before approving or rejecting."

_FAILURE_MESSAGES = {
    AlreadyDecided: "This request was already decided - refreshing.",
    NotFound: "This request no longer exists - refreshing.",
}


class ApprovalClient:
    """Review queue for one approval stage."""

    def __init__(self, backend: WorkflowBackend, stage: Stage, interval: float = 30.0):
        """
        Initialize the approval client.

        Args:
            backend: Workflow backend to poll
            stage: Stage this reviewer decides (manager or hr)
            interval: Polling interval in seconds
        """
        self.backend = backend
        self.stage = Stage(stage)
        self.pending: List[ResignationRequest] = []
        self.notes: Dict[str, str] = {}
        self.last_message: Optional[str] = None
        self.last_refreshed_at: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self._lock = threading.Lock()
        self._poller = PeriodicPoller(
            fetch=lambda: self.backend.review_queue(self.stage),
            on_result=self._apply,
            on_error=self._record_error,
            interval=interval,
            name=f"review-{self.stage.value}",
        )

    def refresh(self) -> bool:
        """Fetch the queue now. Returns False if the fetch failed."""
        return self._poller.poll_once()

    def set_note(self, request_id: str, note: str) -> None:
        """Store the reviewer's draft note for a request."""
        with self._lock:
            self.notes[request_id] = note

    def can_decide(self, request_id: str) -> bool:
        """Approve/reject controls are enabled only once a note is written."""
        return bool(self.notes.get(request_id, "").strip())

    def approve(self, request_id: str) -> ActionOutcome:
        return self.decide(request_id, Decision.APPROVED)

    def reject(self, request_id: str) -> ActionOutcome:
        return self.decide(request_id, Decision.REJECTED)

    def decide(self, request_id: str, decision: Decision) -> ActionOutcome:
        """
        Submit this stage's decision using the stored note.

        Returns:
            ActionOutcome describing what happened
        """
        if not self.can_decide(request_id):
            return self._outcome(False, NOTE_REQUIRED_MESSAGE, error_code=ValidationError.code)

        decision = Decision(decision)
        try:
            record = self.backend.decide(request_id, self.stage, decision, self.notes[request_id])
        except OffboardingError as e:
            message = _FAILURE_MESSAGES.get(type(e), f"Could not record decision: {e.message} - refreshing.")
            logger.info(f"{self.stage.value} decision on {request_id} failed: {e}")
            self.refresh()
            return self._outcome(False, message, error_code=e.code)

        with self._lock:
            self.pending = [r for r in self.pending if r.id != request_id]
            self.notes.pop(request_id, None)

        label = record.fullname or record.identity
        return self._outcome(True, f"{label}'s resignation {decision.value.lower()}.", request=record)

    def reviewed(self) -> List[ResignationRequest]:
        """Requests this stage has already decided (fetched on demand, not polled)."""
        return self.backend.reviewed(self.stage)

    def start(self) -> None:
        """Start polling."""
        self._poller.start()

    def stop(self) -> None:
        """Stop polling; no timer survives this call."""
        self._poller.stop()

    @property
    def polling(self) -> bool:
        return self._poller.running

    def _outcome(self, success: bool, message: str, error_code: Optional[str] = None,
                 request: Optional[ResignationRequest] = None) -> ActionOutcome:
        self.last_message = message
        return ActionOutcome(success=success, message=message, error_code=error_code, request=request)

    def _apply(self, records: List[ResignationRequest]):
        with self._lock:
            self.pending = list(records)
            self.last_refreshed_at = utcnow()
            self.last_error = None
            live = {r.id for r in records}
            for request_id in [rid for rid in self.notes if rid not in live]:
                del self.notes[request_id]

    def _record_error(self, error: Exception):
        with self._lock:
            self.last_error = str(error)

    def __enter__(self) -> "ApprovalClient":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

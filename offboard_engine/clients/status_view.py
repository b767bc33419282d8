"""
Status Client (employee self-view).

Polls the employee's own latest request, projects it onto the progress
steps and guards the submit action against duplicate submissions.
"""

import logging
import threading
from datetime import datetime
from typing import List, Optional

from ..engine.derivation import progress_steps
from ..exceptions import DuplicateActiveRequest, OffboardingError, ValidationError
from ..models import ActionOutcome, ProgressStep, ResignationRequest, ResignationSubmission, utcnow
from .backend import WorkflowBackend
from .poller import PeriodicPoller

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "You already have a pending resignation request; wait for it to be decided."


class StatusClient:
    """
    Employee view of their own offboarding request.

    Holds the last successfully fetched record; a failed refresh leaves
    it in place.
    """

    def __init__(self, backend: WorkflowBackend, identity: str, interval: float = 30.0):
        """
        Initialize the status client.

        Args:
            backend: Workflow backend to poll
            identity: The employee this view belongs to
            interval: Polling interval in seconds
        """
        self.backend = backend
        self.identity = identity
        self.record: Optional[ResignationRequest] = None
        self.last_refreshed_at: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self._lock = threading.Lock()
        self._poller = PeriodicPoller(
            fetch=self._fetch_latest,
            on_result=self._apply,
            on_error=self._record_error,
            interval=interval,
            name=f"status-{identity}",
        )

    @property
    def progress(self) -> List[ProgressStep]:
        """Progress steps derived from the last known record."""
        return progress_steps(self.record)

    @property
    def can_submit(self) -> bool:
        """False while the last known record is still pending."""
        return self.record is None or not self.record.is_active

    def refresh(self) -> bool:
        """Fetch the latest request now. Returns False if the fetch failed."""
        return self._poller.poll_once()

    def submit(self, fullname: str, department: str, designation: str, reason: str) -> ActionOutcome:
        """
        Submit a resignation for this client's identity.

        The active request is re-checked first, so a stale view never
        lets a duplicate through.
        """
        try:
            active = self.backend.find_active_for(self.identity)
        except OffboardingError as e:
            logger.warning(f"Could not check active request for {self.identity}: {e}")
            return ActionOutcome(success=False, message=f"Could not check your current request: {e.message}",
                                 error_code=e.code)

        if active:
            self._apply(active)
            return ActionOutcome(success=False, message=DUPLICATE_MESSAGE,
                                 error_code=DuplicateActiveRequest.code, request=active)

        submission = ResignationSubmission(
            identity=self.identity,
            fullname=fullname,
            department=department,
            designation=designation,
            reason=reason,
        )

        try:
            record = self.backend.submit(submission)
        except DuplicateActiveRequest as e:
            self.refresh()
            return ActionOutcome(success=False, message=DUPLICATE_MESSAGE, error_code=e.code)
        except ValidationError as e:
            return ActionOutcome(success=False, message=f"Please complete the form: {e.message}", error_code=e.code)
        except OffboardingError as e:
            logger.warning(f"Resignation submission for {self.identity} failed: {e}")
            return ActionOutcome(success=False, message=f"Submission failed: {e.message}", error_code=e.code)

        self._apply(record)
        return ActionOutcome(success=True, message="Resignation submitted successfully.", request=record)

    def start(self) -> None:
        """Start polling."""
        self._poller.start()

    def stop(self) -> None:
        """Stop polling; no timer survives this call."""
        self._poller.stop()

    @property
    def polling(self) -> bool:
        return self._poller.running

    def _fetch_latest(self) -> Optional[ResignationRequest]:
        """The active request, or else the most recent finished one."""
        active = self.backend.find_active_for(self.identity)
        if active:
            return active
        history = self.backend.list_requests(self.identity)
        return history[-1] if history else None

    def _apply(self, record: Optional[ResignationRequest]):
        with self._lock:
            self.record = record
            self.last_refreshed_at = utcnow()
            self.last_error = None

    def _record_error(self, error: Exception):
        with self._lock:
            self.last_error = str(error)

    def __enter__(self) -> "StatusClient":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

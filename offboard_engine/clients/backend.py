"""
Workflow backends for the polling clients.

Both clients talk to the workflow through this interface, so they run
unchanged against the in-process engine or against the REST API.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from ..exceptions import BackendUnavailable, OffboardingError, ValidationError, error_from_code
from ..models import Decision, ResignationRequest, ResignationSubmission, Stage, WorkflowSummary
from ..workflows.offboarding import OffboardingWorkflow

logger = logging.getLogger(__name__)


class WorkflowBackend(ABC):
    """Operations the status and approval clients need."""

    @abstractmethod
    def submit(self, submission: ResignationSubmission) -> ResignationRequest:
        """Submit a resignation request."""

    @abstractmethod
    def decide(self, request_id: str, stage: Stage, decision: Decision, note: str) -> ResignationRequest:
        """Record a stage decision."""

    @abstractmethod
    def find_active_for(self, identity: str) -> Optional[ResignationRequest]:
        """Return the identity's pending request, or None."""

    @abstractmethod
    def review_queue(self, stage: Stage) -> List[ResignationRequest]:
        """Pending requests awaiting the given stage."""

    @abstractmethod
    def reviewed(self, stage: Stage) -> List[ResignationRequest]:
        """Requests the given stage has already decided."""

    @abstractmethod
    def list_requests(self, identity: Optional[str] = None) -> List[ResignationRequest]:
        """All requests, optionally for one identity."""

    @abstractmethod
    def summary(self) -> WorkflowSummary:
        """Counts of requests by status and by awaiting stage."""


class LocalBackend(WorkflowBackend):
    """Backend calling an in-process OffboardingWorkflow."""

    def __init__(self, workflow: OffboardingWorkflow):
        self.workflow = workflow

    def submit(self, submission: ResignationSubmission) -> ResignationRequest:
        return self.workflow.submit(submission)

    def decide(self, request_id: str, stage: Stage, decision: Decision, note: str) -> ResignationRequest:
        return self.workflow.decide(request_id, stage, decision, note)

    def find_active_for(self, identity: str) -> Optional[ResignationRequest]:
        return self.workflow.find_active_for(identity)

    def review_queue(self, stage: Stage) -> List[ResignationRequest]:
        return self.workflow.review_queue(stage)

    def reviewed(self, stage: Stage) -> List[ResignationRequest]:
        return self.workflow.reviewed(stage)

    def list_requests(self, identity: Optional[str] = None) -> List[ResignationRequest]:
        return self.workflow.list_requests(identity=identity)

    def summary(self) -> WorkflowSummary:
        return self.workflow.summary()


class HttpBackend(WorkflowBackend):
    """Backend calling the Offboarding Engine REST API."""

    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        """
        Initialize the HTTP backend.

        Args:
            base_url: Base URL of the Offboarding Engine API
            timeout: Request timeout in seconds
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def submit(self, submission: ResignationSubmission) -> ResignationRequest:
        data = self._request("POST", "/resignations", json=submission.model_dump())
        return ResignationRequest.model_validate(data)

    def decide(self, request_id: str, stage: Stage, decision: Decision, note: str) -> ResignationRequest:
        payload = {
            "stage": getattr(stage, "value", stage),
            "decision": getattr(decision, "value", decision),
            "note": note,
        }
        data = self._request("PATCH", f"/resignations/{request_id}", json=payload)
        return ResignationRequest.model_validate(data)

    def find_active_for(self, identity: str) -> Optional[ResignationRequest]:
        data = self._request("GET", f"/resignations/active/{quote(identity, safe='')}")
        return ResignationRequest.model_validate(data) if data else None

    def review_queue(self, stage: Stage) -> List[ResignationRequest]:
        data = self._request("GET", f"/review-queue/{Stage(stage).value}")
        return [ResignationRequest.model_validate(item) for item in data]

    def reviewed(self, stage: Stage) -> List[ResignationRequest]:
        data = self._request("GET", f"/review-queue/{Stage(stage).value}/reviewed")
        return [ResignationRequest.model_validate(item) for item in data]

    def list_requests(self, identity: Optional[str] = None) -> List[ResignationRequest]:
        params = {"identity": identity} if identity else None
        data = self._request("GET", "/resignations", params=params)
        return [ResignationRequest.model_validate(item) for item in data]

    def summary(self) -> WorkflowSummary:
        return WorkflowSummary.model_validate(self._request("GET", "/stats"))

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """
        Send a request and translate error responses into workflow exceptions.

        Raises:
            BackendUnavailable: On connection failures and unexpected server errors
            OffboardingError: The workflow error reported by the server
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise BackendUnavailable(f"Cannot reach {url}: {e}") from e

        if response.status_code < 400:
            return response.json()

        raise self._error_from_response(response)

    @staticmethod
    def _error_from_response(response: requests.Response) -> OffboardingError:
        try:
            body: Dict[str, Any] = response.json()
        except ValueError:
            body = {}

        detail = body.get("detail") if isinstance(body, dict) else None

        if isinstance(detail, dict) and "error" in detail:
            return error_from_code(detail["error"], detail.get("message", ""))

        if response.status_code == 422:
            return ValidationError(f"Invalid request: {detail}")

        return BackendUnavailable(f"Server error ({response.status_code}): {detail or response.text}")

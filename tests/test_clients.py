"""
Tests for the status and approval clients and their backends.
"""

from unittest.mock import MagicMock

import pytest
import requests

from offboard_engine.clients import ApprovalClient, HttpBackend, LocalBackend, StatusClient
from offboard_engine.clients.review_queue import NOTE_REQUIRED_MESSAGE
from offboard_engine.clients.status_view import DUPLICATE_MESSAGE
from offboard_engine.exceptions import (
    AlreadyDecided,
    BackendUnavailable,
    DuplicateActiveRequest,
    NotFound,
    ValidationError,
)
from offboard_engine.models import Decision, OverallStatus, Stage, StepState, WorkflowSummary


@pytest.fixture
def backend(workflow):
    return LocalBackend(workflow)


@pytest.fixture
def status_client(backend):
    return StatusClient(backend, "a@x.com")


def submit_form(client, reason="relocating"):
    return client.submit("Ada Xu", "Engineering", "Software Engineer", reason)


class TestStatusClient:
    """Employee self-view."""

    def test_initial_state(self, status_client):
        assert status_client.refresh()

        assert status_client.record is None
        assert status_client.can_submit
        assert all(s.state == StepState.NOT_STARTED for s in status_client.progress)

    def test_submit_updates_view(self, status_client):
        outcome = submit_form(status_client)

        assert outcome.success
        assert status_client.record.id == outcome.request.id
        assert not status_client.can_submit
        assert status_client.progress[0].state == StepState.COMPLETED

    def test_stale_view_cannot_submit_duplicate(self, backend, status_client, make_submission):
        assert status_client.refresh()
        backend.submit(make_submission())
        assert status_client.can_submit

        outcome = submit_form(status_client, reason="again")

        assert not outcome.success
        assert outcome.message == DUPLICATE_MESSAGE
        assert outcome.error_code == DuplicateActiveRequest.code
        assert not status_client.can_submit
        assert len(backend.list_requests("a@x.com")) == 1

    def test_backend_duplicate_is_reported(self, status_client):
        racing = MagicMock(wraps=status_client.backend)
        racing.find_active_for.return_value = None
        racing.submit.side_effect = DuplicateActiveRequest("already pending")
        status_client.backend = racing

        outcome = submit_form(status_client)

        assert outcome.message == DUPLICATE_MESSAGE

    def test_incomplete_form(self, status_client):
        outcome = submit_form(status_client, reason="")

        assert not outcome.success
        assert outcome.error_code == ValidationError.code
        assert outcome.message.startswith("Please complete the form")

    def test_finished_request_stays_visible(self, workflow, status_client):
        submit_form(status_client)
        workflow.decide(status_client.record.id, Stage.MANAGER, Decision.REJECTED, "incomplete handover")

        status_client.refresh()

        assert status_client.record.overall_status == OverallStatus.REJECTED
        assert status_client.can_submit
        assert [s.state for s in status_client.progress][1:] == [
            StepState.REJECTED, StepState.NOT_STARTED, StepState.NOT_STARTED
        ]

    def test_failed_refresh_keeps_last_record(self, status_client):
        submit_form(status_client)
        known = status_client.record
        status_client.backend = MagicMock()
        status_client.backend.find_active_for.side_effect = BackendUnavailable("down")

        assert not status_client.refresh()

        assert status_client.record == known
        assert status_client.last_error == "down"

    def test_context_manager_stops_polling(self, backend):
        with StatusClient(backend, "a@x.com", interval=60) as client:
            assert client.polling

        assert not client.polling


class TestApprovalClient:
    """Manager and HR review queues."""

    @pytest.fixture
    def pending_id(self, workflow, make_submission):
        return workflow.submit(make_submission()).id

    def test_refresh_loads_queue(self, backend, pending_id):
        client = ApprovalClient(backend, Stage.MANAGER)

        assert client.refresh()

        assert [r.id for r in client.pending] == [pending_id]
        assert client.last_refreshed_at is not None

    def test_decision_requires_note(self, backend, workflow, pending_id):
        client = ApprovalClient(backend, Stage.MANAGER)
        client.refresh()
        assert not client.can_decide(pending_id)

        client.set_note(pending_id, "   ")
        outcome = client.approve(pending_id)

        assert not outcome.success
        assert outcome.message == NOTE_REQUIRED_MESSAGE
        assert workflow.get(pending_id).manager_decision == Decision.PENDING

    def test_approve_removes_from_queue(self, backend, workflow, pending_id):
        client = ApprovalClient(backend, Stage.MANAGER)
        client.refresh()
        client.set_note(pending_id, "ok")

        outcome = client.approve(pending_id)

        assert outcome.success
        assert outcome.message == "Ada Xu's resignation approved."
        assert client.pending == []
        assert pending_id not in client.notes
        assert workflow.get(pending_id).manager_decision == Decision.APPROVED

    def test_reject_message(self, backend, pending_id):
        client = ApprovalClient(backend, Stage.HR)
        client.set_note(pending_id, "notice period")

        outcome = client.reject(pending_id)

        assert outcome.message == "Ada Xu's resignation rejected."

    def test_decided_elsewhere_refreshes(self, backend, workflow, pending_id):
        client = ApprovalClient(backend, Stage.MANAGER)
        client.refresh()
        workflow.decide(pending_id, Stage.MANAGER, Decision.APPROVED, "decided elsewhere")
        client.set_note(pending_id, "ok")

        outcome = client.reject(pending_id)

        assert not outcome.success
        assert outcome.error_code == AlreadyDecided.code
        assert "already decided" in outcome.message
        assert client.pending == []
        assert pending_id not in client.notes

    def test_missing_request(self, backend):
        client = ApprovalClient(backend, Stage.HR)
        client.set_note("missing", "ok")

        outcome = client.approve("missing")

        assert outcome.error_code == NotFound.code

    def test_hr_queue_drops_rejected_request(self, backend, workflow, pending_id):
        client = ApprovalClient(backend, Stage.HR)
        client.refresh()
        assert len(client.pending) == 1

        workflow.decide(pending_id, Stage.MANAGER, Decision.REJECTED, "no")
        client.refresh()

        assert client.pending == []

    def test_reviewed(self, backend, pending_id):
        client = ApprovalClient(backend, Stage.MANAGER)
        client.set_note(pending_id, "ok")
        client.approve(pending_id)

        assert [r.id for r in client.reviewed()] == [pending_id]

    def test_failed_refresh_keeps_queue(self, backend, pending_id):
        client = ApprovalClient(backend, Stage.MANAGER)
        client.refresh()
        client.backend = MagicMock()
        client.backend.review_queue.side_effect = BackendUnavailable("down")

        assert not client.refresh()

        assert [r.id for r in client.pending] == [pending_id]
        assert client.last_error == "down"


def _response(status_code, body):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    response.text = str(body)
    return response


class TestHttpBackend:
    """REST client error mapping."""

    @pytest.fixture
    def session(self):
        return MagicMock()

    @pytest.fixture
    def http(self, session):
        return HttpBackend("http://engine:8000/", timeout=5, session=session)

    def test_find_active_none(self, http, session):
        session.request.return_value = _response(200, None)

        assert http.find_active_for("a@x.com") is None
        session.request.assert_called_once_with(
            "GET", "http://engine:8000/resignations/active/a%40x.com", timeout=5
        )

    def test_decide_payload(self, http, session, workflow, make_submission):
        record = workflow.submit(make_submission())
        session.request.return_value = _response(200, record.model_dump(mode="json"))

        result = http.decide(record.id, Stage.HR, Decision.APPROVED, "cleared")

        assert result.id == record.id
        _, kwargs = session.request.call_args
        assert kwargs["json"] == {"stage": "hr", "decision": "Approved", "note": "cleared"}

    @pytest.mark.parametrize("code,exc", [
        ("already_decided", AlreadyDecided),
        ("duplicate_active_request", DuplicateActiveRequest),
        ("not_found", NotFound),
        ("validation_error", ValidationError),
    ])
    def test_error_codes_map_to_exceptions(self, http, session, code, exc):
        session.request.return_value = _response(409, {"detail": {"error": code, "message": "nope"}})

        with pytest.raises(exc, match="nope"):
            http.decide("r1", Stage.MANAGER, Decision.APPROVED, "ok")

    def test_unprocessable_body(self, http, session):
        session.request.return_value = _response(422, {"detail": [{"msg": "field required"}]})

        with pytest.raises(ValidationError):
            http.review_queue(Stage.MANAGER)

    def test_connection_error(self, http, session):
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(BackendUnavailable):
            http.list_requests()

    def test_server_error(self, http, session):
        session.request.return_value = _response(500, {"detail": "boom"})

        with pytest.raises(BackendUnavailable):
            http.reviewed(Stage.HR)

    def test_identity_is_quoted_in_path(self, http, session):
        session.request.return_value = _response(200, None)

        http.find_active_for("ops/a?b#c@x.com")

        args, _ = session.request.call_args
        assert args[1] == "http://engine:8000/resignations/active/ops%2Fa%3Fb%23c%40x.com"

    def test_summary(self, http, session):
        body = {"total_requests": 2, "by_status": {"Pending": 2}, "awaiting_stage": {"manager": 2, "hr": 1}, "relieved": 0}
        session.request.return_value = _response(200, body)

        summary = http.summary()

        assert summary == WorkflowSummary(**body)
        args, _ = session.request.call_args
        assert args == ("GET", "http://engine:8000/stats")

    def test_local_summary(self, backend, workflow, make_submission):
        workflow.submit(make_submission())

        assert backend.summary().total_requests == 1

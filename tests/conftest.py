"""
Shared fixtures for the Offboarding Engine tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from offboard_engine.audit import AuditLogger
from offboard_engine.models import ResignationSubmission
from offboard_engine.store import InMemoryProfileStore, LocalRecordStore
from offboard_engine.workflows import OffboardingWorkflow


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: end-to-end tests across components")


class FakeClock:
    """Clock advancing one minute per reading."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        current = self.now
        self.now = self.now + timedelta(minutes=1)
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def profile_store():
    return InMemoryProfileStore()


@pytest.fixture
def audit_logger(tmp_path):
    return AuditLogger(tmp_path / "audit")


@pytest.fixture
def workflow(clock, profile_store, audit_logger):
    """Workflow over an in-memory store."""
    return OffboardingWorkflow(
        record_store=LocalRecordStore(),
        profile_store=profile_store,
        audit_logger=audit_logger,
        clock=clock,
    )


@pytest.fixture
def make_submission():
    """Factory for resignation submissions."""
    def _make(identity="a@x.com", reason="relocating", **overrides):
        data = {
            "identity": identity,
            "fullname": "Ada Xu",
            "department": "Engineering",
            "designation": "Software Engineer",
            "reason": reason,
        }
        data.update(overrides)
        return ResignationSubmission(**data)

    return _make

"""
Employee Profile Store collaborators.

The workflow engine copies the resignation reason onto the employee's
canonical profile for audit visibility. The write is best effort: the
engine logs and ignores any failure raised from here.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)


class ProfileStore(ABC):
    """Interface of the external employee profile store."""

    @abstractmethod
    def record_resignation_reason(self, identity: str, reason: str) -> None:
        """Write the resignation reason onto the employee's profile."""


class InMemoryProfileStore(ProfileStore):
    """Profile store kept in a dictionary; used locally and in tests."""

    def __init__(self):
        self.reasons: Dict[str, str] = {}

    def record_resignation_reason(self, identity: str, reason: str) -> None:
        self.reasons[identity] = reason


class HttpProfileStore(ProfileStore):
    """Profile store behind the employee directory REST API."""

    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        """
        Initialize the HTTP profile store.

        Args:
            base_url: Base URL of the employee directory API
            timeout: Request timeout in seconds
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def record_resignation_reason(self, identity: str, reason: str) -> None:
        url = f"{self.base_url}/employees/{identity}/"
        response = self.session.patch(url, json={"reason_for_resignation": reason}, timeout=self.timeout)
        response.raise_for_status()
        logger.debug(f"Updated profile of {identity} with resignation reason")

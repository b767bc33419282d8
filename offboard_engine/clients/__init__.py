"""
Clients Package.

Polling clients for the employee status view and the manager/HR
review queues, plus the backends they talk to.
"""

from .backend import HttpBackend, LocalBackend, WorkflowBackend
from .poller import PeriodicPoller
from .review_queue import ApprovalClient
from .status_view import StatusClient

__all__ = [
    "WorkflowBackend",
    "LocalBackend",
    "HttpBackend",
    "PeriodicPoller",
    "ApprovalClient",
    "StatusClient",
]

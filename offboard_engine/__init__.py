"""
Offboarding Engine

Employee resignation approval workflow: an employee submits a
resignation, manager and HR record independent stage decisions, and
polling clients converge on the derived status of the request.
"""

__version__ = "1.0.0"
__author__ = "Offboarding Engine Team"
__email__ = "team@example.com"

from .engine.derivation import derive_overall_status, progress_steps
from .store.record_store import LocalRecordStore
from .workflows.offboarding import OffboardingWorkflow, build_workflow

__all__ = [
    "OffboardingWorkflow",
    "LocalRecordStore",
    "build_workflow",
    "derive_overall_status",
    "progress_steps",
]

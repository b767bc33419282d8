"""
Workflows Package for the Offboarding Engine.

This package provides the resignation approval workflow and its
validation helpers.
"""

from .helpers import validate_decision, validate_submission
from .offboarding import OffboardingWorkflow, build_workflow

__all__ = [
    "OffboardingWorkflow",
    "build_workflow",
    "validate_submission",
    "validate_decision",
]

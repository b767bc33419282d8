"""
Offboarding Engine Package.

Single source of status derivation and the pure state transitions
applied to resignation requests.
"""

from .derivation import PROGRESS_LABELS, derive_overall_status, is_awaiting, progress_steps
from .transitions import apply_decision, new_request, normalize_identity

__all__ = [
    "PROGRESS_LABELS",
    "derive_overall_status",
    "is_awaiting",
    "progress_steps",
    "apply_decision",
    "new_request",
    "normalize_identity",
]

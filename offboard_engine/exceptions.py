"""
Workflow exceptions for the Offboarding Engine.

Every error carries a stable ``code`` used on the wire so the HTTP
client backend can raise the same exception class the engine raised.
"""

from typing import Dict, Type


class OffboardingError(Exception):
    """Base exception for offboarding workflow rule violations."""

    code = "offboarding_error"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        """Serialisable error payload."""
        return {"error": self.code, "message": self.message}


class ValidationError(OffboardingError):
    """Raised when a required field is missing or empty."""

    code = "validation_error"
    status_code = 400


class DuplicateActiveRequest(OffboardingError):
    """Raised when the identity already has a Pending request."""

    code = "duplicate_active_request"
    status_code = 409


class NotFound(OffboardingError):
    """Raised when the target request does not exist."""

    code = "not_found"
    status_code = 404


class AlreadyDecided(OffboardingError):
    """Raised when the targeted stage (or the whole request) is no longer Pending."""

    code = "already_decided"
    status_code = 409


class BackendUnavailable(OffboardingError):
    """Raised when the workflow backend cannot be reached."""

    code = "backend_unavailable"
    status_code = 503


_ERRORS_BY_CODE: Dict[str, Type[OffboardingError]] = {
    cls.code: cls
    for cls in (ValidationError, DuplicateActiveRequest, NotFound, AlreadyDecided, BackendUnavailable)
}


def error_from_code(code: str, message: str) -> OffboardingError:
    """Rebuild a workflow exception from its wire code."""
    return _ERRORS_BY_CODE.get(code, OffboardingError)(message)

"""Tagged failures raised by the lifecycle engine.

Every error is terminal for the request. The route layer maps ``status_code``
and ``code`` onto the HTTP response.
"""

from __future__ import annotations


class LifecycleError(Exception):
    """Base error for lifecycle and moderation operations."""

    code = "lifecycle_error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LifecycleError):
    """Malformed input such as an unknown enumeration value."""

    code = "validation_error"


class InvalidStatus(ValidationError):
    """Unknown target status, or a transition the active policy forbids."""

    code = "invalid_status"


class InvalidCoordinates(ValidationError):
    """Non-finite or out-of-range longitude/latitude."""

    code = "invalid_coordinates"


class NotFound(LifecycleError):
    code = "not_found"
    status_code = 404


class Forbidden(LifecycleError):
    """Role or ownership violation, or an action on a hidden issue."""

    code = "forbidden"
    status_code = 403


class DuplicateFlag(LifecycleError):
    code = "duplicate_flag"
    status_code = 409


class FlagAlreadyReviewed(LifecycleError):
    """Raised only when re-review of terminal flags is switched off."""

    code = "flag_already_reviewed"
    status_code = 409

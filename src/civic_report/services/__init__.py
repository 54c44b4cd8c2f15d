"""Business logic services for the Civic Report application.

``LifecycleEngine`` lives in :mod:`civic_report.services.lifecycle`; it is not
re-exported here because it depends on the repositories, which in turn use
the geo helpers from this package.
"""

from .errors import (
    DuplicateFlag,
    FlagAlreadyReviewed,
    Forbidden,
    InvalidCoordinates,
    InvalidStatus,
    LifecycleError,
    NotFound,
    ValidationError,
)
from .moderation import ModerationPolicy
from .transitions import ForwardOnlyTransitions, PermissiveTransitions, TransitionPolicy

__all__ = [
    "LifecycleError", "ValidationError", "InvalidStatus", "InvalidCoordinates",
    "NotFound", "Forbidden", "DuplicateFlag", "FlagAlreadyReviewed",
    "ModerationPolicy",
    "ForwardOnlyTransitions", "PermissiveTransitions", "TransitionPolicy",
]

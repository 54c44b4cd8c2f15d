"""SQLAlchemy models for the Civic Report application."""

from .flag import Flag
from .issue import Issue, IssueTag, IssueUpvote
from .status_log import StatusLogEntry

__all__ = [
    "Flag",
    "Issue", "IssueTag", "IssueUpvote",
    "StatusLogEntry",
]

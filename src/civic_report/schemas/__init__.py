"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .common import ErrorResponse, MessageResponse, Pagination
from .flag import FlagCreate, FlagFiled, FlagList, FlagResponse, FlagReview, FlagReviewed, FlagStats
from .issue import (
    IssueCreate,
    IssueDetail,
    IssueList,
    IssueResponse,
    StatusChangeResponse,
    StatusUpdate,
    VisibilityUpdate,
    VoteRequest,
    VoteResponse,
)
from .status_log import StatusLogEntryResponse

__all__ = [
    "ErrorResponse", "MessageResponse", "Pagination",
    "FlagCreate", "FlagFiled", "FlagList", "FlagResponse", "FlagReview", "FlagReviewed",
    "FlagStats",
    "IssueCreate", "IssueDetail", "IssueList", "IssueResponse",
    "StatusChangeResponse", "StatusUpdate", "VisibilityUpdate",
    "VoteRequest", "VoteResponse",
    "StatusLogEntryResponse",
]

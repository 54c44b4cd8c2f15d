"""Flag-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field

from civic_report.models.enums import (
    FlagAction,
    FlagPriority,
    FlagReason,
    FlagStatus,
    Source,
)

from .common import Pagination, UTCDateTime


class FlagCreate(BaseModel):
    """Schema for flagging an issue."""

    reason: FlagReason
    description: str = Field(..., min_length=1, max_length=500)
    priority: FlagPriority = FlagPriority.MEDIUM
    source: Source = Source.WEB


class FlagReview(BaseModel):
    """Schema for an admin decision on a flag."""

    status: FlagStatus = Field(..., description="Reviewed, Dismissed or Approved")
    action_taken: FlagAction
    review_notes: str | None = Field(None, max_length=1000)


class FlagResponse(BaseModel):
    """Schema for flag information returned by the API."""

    id: int
    issue_id: int
    flagged_by: str
    reason: FlagReason
    description: str
    status: FlagStatus
    priority: FlagPriority
    reviewed_by: str | None
    reviewed_at: UTCDateTime | None
    review_notes: str | None
    action_taken: FlagAction | None
    source: Source
    created_at: UTCDateTime

    model_config = ConfigDict(from_attributes=True)


class FlagFiled(BaseModel):
    flag: FlagResponse
    flag_count: int
    issue_hidden: bool
    auto_hidden: bool


class FlagReviewed(BaseModel):
    flag: FlagResponse
    issue_hidden: bool


class FlagList(BaseModel):
    items: list[FlagResponse]
    pagination: Pagination


class FlagStats(BaseModel):
    by_status: dict[str, int]
    by_reason: dict[str, int]

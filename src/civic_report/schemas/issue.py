"""Issue-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from civic_report.models.enums import IssueCategory, IssuePriority, IssueStatus, Source

from .common import Pagination, UTCDateTime
from .status_log import StatusLogEntryResponse


class IssueImage(BaseModel):
    """Reference to an externally hosted image."""

    url: str = Field(..., min_length=1, max_length=2048)
    public_id: str | None = Field(None, max_length=255)
    caption: str = Field("", max_length=100)


class Location(BaseModel):
    longitude: float
    latitude: float


class IssueCreate(BaseModel):
    """Schema for reporting a new issue."""

    title: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=10, max_length=2000)
    category: IssueCategory
    priority: IssuePriority = IssuePriority.MEDIUM
    location: Location
    address: str | None = Field(None, max_length=500)
    landmark: str | None = Field(None, max_length=200)
    images: list[IssueImage] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    source: Source = Source.WEB


class StatusUpdate(BaseModel):
    """Schema for moving an issue through its lifecycle."""

    status: str = Field(..., description="Reported, In Progress, Resolved or Closed")
    comment: str | None = Field(None, max_length=1000)
    assigned_to: str | None = Field(None, max_length=64)
    estimated_resolution_date: UTCDateTime | None = None
    source: Source = Source.WEB


class VoteRequest(BaseModel):
    action: Literal["upvote", "remove"]


class VoteResponse(BaseModel):
    message: str
    changed: bool
    upvote_count: int
    has_upvoted: bool


class VisibilityUpdate(BaseModel):
    is_hidden: bool
    hidden_reason: str | None = Field(None, max_length=500)


class IssueResponse(BaseModel):
    """Schema for issue information returned by the API.

    Accepts either an ``Issue`` row or an engine ``IssueView``; views add the
    tags, the distance from a search center and the caller's vote/flag state.
    """

    id: int
    title: str
    description: str
    category: IssueCategory
    status: IssueStatus
    priority: IssuePriority
    location: Location
    address: str | None
    landmark: str | None
    images: list[IssueImage]
    tags: list[str] = Field(default_factory=list)
    created_by: str
    assigned_to: str | None
    estimated_resolution_date: UTCDateTime | None
    resolved_at: UTCDateTime | None
    is_hidden: bool
    hidden_reason: str | None
    upvote_count: int
    flag_count: int
    source: Source
    created_at: UTCDateTime
    updated_at: UTCDateTime
    distance_km: float | None = None
    has_upvoted: bool | None = None
    has_flagged: bool | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_view(cls, data: object) -> object:
        if isinstance(data, dict):
            return data

        view = data if hasattr(data, "issue") else None
        issue = view.issue if view is not None else data
        extracted: dict[str, object | None] = {}
        for field_name in cls.model_fields:
            if view is not None and hasattr(view, field_name):
                extracted[field_name] = getattr(view, field_name)
            else:
                extracted[field_name] = getattr(issue, field_name, None)
        extracted["location"] = {"longitude": issue.longitude, "latitude": issue.latitude}
        # Plain rows carry no projections; let the field defaults apply.
        for optional in ("tags", "timeline"):
            if extracted.get(optional) is None:
                extracted.pop(optional, None)
        return extracted

    model_config = ConfigDict(from_attributes=True)


class IssueDetail(IssueResponse):
    timeline: list[StatusLogEntryResponse] = Field(default_factory=list)


class IssueList(BaseModel):
    items: list[IssueResponse]
    pagination: Pagination


class StatusChangeResponse(BaseModel):
    issue: IssueResponse
    entry: StatusLogEntryResponse

"""Issue-related endpoints: reporting, listing, status, votes and flags."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from civic_report.api.v1.dependencies import (
    ERROR_RESPONSES,
    CurrentPrincipalDep,
    EngineDep,
    OptionalPrincipalDep,
)
from civic_report.models.enums import IssueCategory, IssuePriority, IssueStatus
from civic_report.schemas import (
    FlagCreate,
    FlagFiled,
    FlagResponse,
    IssueCreate,
    IssueDetail,
    IssueList,
    IssueResponse,
    MessageResponse,
    Pagination,
    StatusChangeResponse,
    StatusLogEntryResponse,
    StatusUpdate,
    VoteRequest,
    VoteResponse,
)
from civic_report.services.errors import ValidationError
from civic_report.services.lifecycle import IssueFilter

router = APIRouter(prefix="/issues", tags=["issues"], responses=ERROR_RESPONSES)


@router.get("", response_model=IssueList)
async def list_issues(
    engine: EngineDep,
    principal: OptionalPrincipalDep,
    category: IssueCategory | None = Query(None),
    issue_status: IssueStatus | None = Query(None, alias="status"),
    priority: IssuePriority | None = Query(None),
    tags: list[str] | None = Query(None),
    search: str | None = Query(None, max_length=200),
    created_by: str | None = Query(None),
    include_hidden: bool = Query(False),
    longitude: float | None = Query(None),
    latitude: float | None = Query(None),
    radius_km: float | None = Query(None),
    sort: str = Query("-created_at"),
    page: int = Query(1),
    limit: int = Query(10),
) -> IssueList:
    """List issues, optionally restricted to a radius around a point."""
    if (longitude is None) != (latitude is None):
        raise ValidationError("longitude and latitude must be supplied together")
    center = None if longitude is None else (longitude, latitude)

    result = engine.list_issues(
        IssueFilter(
            category=category,
            status=issue_status,
            priority=priority,
            tags=tags or (),
            search=search,
            created_by=created_by,
            include_hidden=include_hidden,
        ),
        principal=principal,
        center=center,
        radius_km=radius_km,
        sort=sort,
        page=page,
        limit=limit,
    )
    return IssueList(
        items=[IssueResponse.model_validate(view) for view in result.items],
        pagination=Pagination.build(page=result.page, limit=result.limit, total=result.total),
    )


@router.post("", response_model=IssueResponse, status_code=status.HTTP_201_CREATED)
async def create_issue(
    payload: IssueCreate,
    principal: CurrentPrincipalDep,
    engine: EngineDep,
) -> IssueResponse:
    """Report a new issue; it starts in the Reported state."""
    view = engine.create_issue(
        principal,
        title=payload.title,
        description=payload.description,
        category=payload.category,
        priority=payload.priority,
        longitude=payload.location.longitude,
        latitude=payload.location.latitude,
        address=payload.address,
        landmark=payload.landmark,
        images=[image.model_dump() for image in payload.images],
        tags=payload.tags,
        source=payload.source,
    )
    return IssueResponse.model_validate(view)


@router.get("/{issue_id}", response_model=IssueDetail)
async def get_issue(
    issue_id: int,
    engine: EngineDep,
    principal: OptionalPrincipalDep,
) -> IssueDetail:
    """Return one issue with its status history."""
    return IssueDetail.model_validate(engine.get_issue(issue_id, principal))


@router.get("/{issue_id}/status-log", response_model=list[StatusLogEntryResponse])
async def get_status_log(
    issue_id: int,
    engine: EngineDep,
    principal: OptionalPrincipalDep,
) -> list[StatusLogEntryResponse]:
    entries = engine.get_timeline(issue_id, principal)
    return [StatusLogEntryResponse.model_validate(entry) for entry in entries]


@router.put("/{issue_id}/status", response_model=StatusChangeResponse)
async def update_status(
    issue_id: int,
    payload: StatusUpdate,
    principal: CurrentPrincipalDep,
    engine: EngineDep,
) -> StatusChangeResponse:
    """Move an issue to a new status (agents and admins)."""
    result = engine.transition_status(
        issue_id,
        principal,
        payload.status,
        comment=payload.comment,
        assigned_to=payload.assigned_to,
        estimated_resolution_date=payload.estimated_resolution_date,
        source=payload.source,
    )
    return StatusChangeResponse(
        issue=IssueResponse.model_validate(result.view),
        entry=StatusLogEntryResponse.model_validate(result.entry),
    )


@router.post("/{issue_id}/vote", response_model=VoteResponse)
async def vote(
    issue_id: int,
    payload: VoteRequest,
    principal: CurrentPrincipalDep,
    engine: EngineDep,
) -> VoteResponse:
    """Upvote an issue or withdraw an upvote; repeats are no-ops."""
    result = engine.apply_vote(issue_id, principal, payload.action)
    return VoteResponse(
        message=result.message,
        changed=result.changed,
        upvote_count=result.upvote_count,
        has_upvoted=result.has_upvoted,
    )


@router.post("/{issue_id}/flag", response_model=FlagFiled, status_code=status.HTTP_201_CREATED)
async def flag_issue(
    issue_id: int,
    payload: FlagCreate,
    principal: CurrentPrincipalDep,
    engine: EngineDep,
) -> FlagFiled:
    """Flag an issue for moderator attention; one flag per user per issue."""
    result = engine.file_flag(
        issue_id,
        principal,
        reason=payload.reason,
        description=payload.description,
        priority=payload.priority,
        source=payload.source,
    )
    return FlagFiled(
        flag=FlagResponse.model_validate(result.flag),
        flag_count=result.flag_count,
        issue_hidden=result.issue_hidden,
        auto_hidden=result.auto_hidden,
    )


@router.delete("/{issue_id}", response_model=MessageResponse)
async def delete_issue(
    issue_id: int,
    principal: CurrentPrincipalDep,
    engine: EngineDep,
) -> MessageResponse:
    """Delete an issue together with its history, flags and votes (admins)."""
    engine.delete_issue(issue_id, principal)
    return MessageResponse(message="Issue deleted successfully")

"""Administrative moderation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query

from civic_report.api.v1.dependencies import ERROR_RESPONSES, CurrentPrincipalDep, EngineDep
from civic_report.models.enums import FlagPriority, FlagReason, FlagStatus
from civic_report.schemas import (
    FlagList,
    FlagResponse,
    FlagReview,
    FlagReviewed,
    FlagStats,
    IssueResponse,
    MessageResponse,
    Pagination,
    StatusLogEntryResponse,
    VisibilityUpdate,
)

router = APIRouter(
    prefix="/admin",
    tags=["admin", "moderation"],
    responses=ERROR_RESPONSES,
)


@router.get("/flags", response_model=FlagList)
async def list_flags(
    principal: CurrentPrincipalDep,
    engine: EngineDep,
    flag_status: FlagStatus | None = Query(None, alias="status"),
    reason: FlagReason | None = Query(None),
    priority: FlagPriority | None = Query(None),
    sort: str = Query("-created_at"),
    page: int = Query(1),
    limit: int = Query(10),
) -> FlagList:
    """Moderation queue of flags, newest first by default."""
    flags, total = engine.list_flags(
        principal,
        status=flag_status,
        reason=reason,
        priority=priority,
        sort=sort,
        page=page,
        limit=limit,
    )
    return FlagList(
        items=[FlagResponse.model_validate(flag) for flag in flags],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.get("/flags/stats", response_model=FlagStats)
async def flag_stats(principal: CurrentPrincipalDep, engine: EngineDep) -> FlagStats:
    return FlagStats(**engine.flag_stats(principal))


@router.put("/flags/{flag_id}/review", response_model=FlagReviewed)
async def review_flag(
    flag_id: int,
    payload: FlagReview,
    principal: CurrentPrincipalDep,
    engine: EngineDep,
) -> FlagReviewed:
    """Record a review decision; "Issue Hidden" hides the flagged issue."""
    result = engine.review_flag(
        flag_id,
        principal,
        status=payload.status,
        action_taken=payload.action_taken,
        notes=payload.review_notes,
    )
    return FlagReviewed(
        flag=FlagResponse.model_validate(result.flag),
        issue_hidden=result.issue_hidden,
    )


@router.delete("/flags/{flag_id}", response_model=MessageResponse)
async def delete_flag(
    flag_id: int,
    principal: CurrentPrincipalDep,
    engine: EngineDep,
) -> MessageResponse:
    """Remove a flag. The issue's visibility is left as it is."""
    engine.delete_flag(flag_id, principal)
    return MessageResponse(message="Flag deleted successfully")


@router.put("/issues/{issue_id}/visibility", response_model=IssueResponse)
async def set_visibility(
    issue_id: int,
    payload: VisibilityUpdate,
    principal: CurrentPrincipalDep,
    engine: EngineDep,
) -> IssueResponse:
    view = engine.set_visibility(
        issue_id,
        principal,
        is_hidden=payload.is_hidden,
        reason=payload.hidden_reason,
    )
    return IssueResponse.model_validate(view)


@router.get("/status-updates", response_model=list[StatusLogEntryResponse])
async def recent_status_updates(
    principal: CurrentPrincipalDep,
    engine: EngineDep,
    limit: int = Query(10),
) -> list[StatusLogEntryResponse]:
    """Latest status changes across all issues."""
    entries = engine.recent_updates(principal, limit)
    return [StatusLogEntryResponse.model_validate(entry) for entry in entries]

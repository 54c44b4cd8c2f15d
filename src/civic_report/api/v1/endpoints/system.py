"""System and transparency endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from civic_report.core.settings import settings
from civic_report.models.enums import (
    FlagAction,
    FlagReason,
    IssueCategory,
    IssuePriority,
    IssueStatus,
)

router = APIRouter(prefix="/system", tags=["system", "transparency"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings; suitable for client UIs that need
    the moderation thresholds and the accepted enumeration values.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "jwt_algorithm": settings.jwt_algorithm,
            "debug": settings.debug,
        },
        "moderation": {
            "thresholds": settings.moderation_thresholds,
            "allow_flag_rereview": settings.allow_flag_rereview,
        },
        "issues": {
            "status_transition_policy": settings.status_transition_policy,
            "max_images": settings.max_issue_images,
            "default_search_radius_km": settings.default_search_radius_km,
            "max_page_size": settings.max_page_size,
            "statuses": [member.value for member in IssueStatus],
            "categories": [member.value for member in IssueCategory],
            "priorities": [member.value for member in IssuePriority],
        },
        "flags": {
            "reasons": [member.value for member in FlagReason],
            "actions": [member.value for member in FlagAction],
        },
    }

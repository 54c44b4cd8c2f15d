"""Issue lifecycle and moderation engine.

``LifecycleEngine`` orchestrates every state change an issue goes through:
creation, status transitions (with the audit ledger), votes, flags, flag
review, explicit visibility changes and deletion. Each public operation runs
in the caller's session and commits exactly once on success. Failures are
raised as the tagged errors from :mod:`civic_report.services.errors`.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from civic_report.core.security import Principal
from civic_report.core.settings import settings
from civic_report.db.time import utcnow
from civic_report.models import Flag, Issue, StatusLogEntry
from civic_report.models.enums import (
    FlagAction,
    FlagPriority,
    FlagReason,
    FlagStatus,
    IssueCategory,
    IssuePriority,
    IssueStatus,
    Source,
)
from civic_report.repositories import FlagRepository, IssueRepository, StatusLedger
from civic_report.repositories.flag_repo import FLAG_SORT_FIELDS
from civic_report.repositories.issue_repo import SORT_FIELDS
from civic_report.services import geo
from civic_report.services.errors import (
    DuplicateFlag,
    FlagAlreadyReviewed,
    Forbidden,
    InvalidStatus,
    NotFound,
    ValidationError,
)
from civic_report.services.moderation import (
    AUTO_HIDE_REASON,
    REVIEW_HIDE_REASON,
    ModerationPolicy,
)
from civic_report.services.transitions import (
    TransitionPolicy,
    transition_policy_from_name,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

MAX_TAG_LENGTH = 50
REVIEW_OUTCOMES = frozenset({FlagStatus.REVIEWED, FlagStatus.DISMISSED, FlagStatus.APPROVED})


class VoteAction(str, Enum):
    UPVOTE = "upvote"
    REMOVE = "remove"


@dataclass
class IssueFilter:
    """SQL-side listing filters; all optional."""

    category: IssueCategory | str | None = None
    status: IssueStatus | str | None = None
    priority: IssuePriority | str | None = None
    tags: Sequence[str] = ()
    search: str | None = None
    created_by: str | None = None
    include_hidden: bool = False


@dataclass
class IssueView:
    """An issue plus the projections the route layer needs."""

    issue: Issue
    tags: list[str] = field(default_factory=list)
    distance_km: float | None = None
    has_upvoted: bool | None = None
    has_flagged: bool | None = None
    timeline: list[StatusLogEntry] | None = None


@dataclass
class IssuePage:
    items: list[IssueView]
    total: int
    page: int
    limit: int


@dataclass
class TransitionResult:
    view: IssueView
    entry: StatusLogEntry

    @property
    def issue(self) -> Issue:
        return self.view.issue


@dataclass
class VoteResult:
    changed: bool
    message: str
    upvote_count: int
    has_upvoted: bool


@dataclass
class FlagResult:
    flag: Flag
    flag_count: int
    auto_hidden: bool
    issue_hidden: bool


@dataclass
class ReviewResult:
    flag: Flag
    issue_hidden: bool


def _coerce(
    enum_cls: type[E],
    value: E | str,
    label: str,
    error: type[ValidationError] = ValidationError,
) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as err:
        raise error(f"Invalid {label}: {value!r}") from err


def _optional_enum(enum_cls: type[E], value: E | str | None, label: str) -> E | None:
    return None if value is None else _coerce(enum_cls, value, label)


def _issue_point(issue: Issue) -> geo.Point:
    return geo.Point(issue.longitude, issue.latitude)


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Trim, lowercase and de-duplicate tags, preserving first-seen order."""
    seen: dict[str, None] = {}
    for raw in tags:
        tag = str(raw).strip().lower()
        if not tag:
            raise ValidationError("Tags cannot be empty")
        if len(tag) > MAX_TAG_LENGTH:
            raise ValidationError(f"Tags cannot exceed {MAX_TAG_LENGTH} characters")
        seen.setdefault(tag, None)
    return list(seen)


def _normalize_images(images: Sequence[Mapping[str, Any]], limit: int) -> list[dict[str, Any]]:
    if len(images) > limit:
        raise ValidationError(f"Maximum {limit} images allowed per issue")
    normalized = []
    for image in images:
        url = image.get("url")
        if not url:
            raise ValidationError("Every image needs a url")
        normalized.append(
            {
                "url": str(url),
                "public_id": image.get("public_id"),
                "caption": image.get("caption") or "",
            }
        )
    return normalized


def _required_text(value: str, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} is required")
    return text


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class LifecycleEngine:
    """Orchestrates issue state changes over one database session."""

    def __init__(
        self,
        session: Session,
        *,
        moderation_policy: ModerationPolicy | None = None,
        transition_policy: TransitionPolicy | None = None,
        max_images: int | None = None,
        allow_flag_rereview: bool | None = None,
    ) -> None:
        self.session = session
        self.issues = IssueRepository(session)
        self.ledger = StatusLedger(session)
        self.flags = FlagRepository(session)
        self.moderation_policy = moderation_policy or ModerationPolicy(
            flag_threshold=settings.auto_hide_flag_threshold
        )
        self.transition_policy = transition_policy or transition_policy_from_name(
            settings.status_transition_policy
        )
        self.max_images = settings.max_issue_images if max_images is None else max_images
        self.allow_flag_rereview = (
            settings.allow_flag_rereview if allow_flag_rereview is None else allow_flag_rereview
        )

    # Guards ------------------------------------------------------------

    @staticmethod
    def _require_staff(principal: Principal, action: str) -> None:
        if not principal.is_staff:
            raise Forbidden(f"Only agents and admins may {action}")

    @staticmethod
    def _require_admin(principal: Principal, action: str) -> None:
        if not principal.is_admin:
            raise Forbidden(f"Only admins may {action}")

    def _locked_issue(self, issue_id: int) -> Issue:
        issue = self.issues.get_for_update(issue_id)
        if issue is None:
            raise NotFound("Issue not found")
        return issue

    def _visible_issue(self, issue_id: int, principal: Principal | None) -> Issue:
        issue = self.issues.get(issue_id)
        # Hidden issues do not exist as far as citizens are concerned.
        if issue is None or (issue.is_hidden and not (principal and principal.is_staff)):
            raise NotFound("Issue not found")
        return issue

    def _view(self, issue: Issue) -> IssueView:
        return IssueView(issue=issue, tags=self.issues.tags_for([issue.id])[issue.id])

    # Creation ----------------------------------------------------------

    def create_issue(
        self,
        principal: Principal,
        *,
        title: str,
        description: str,
        category: IssueCategory | str,
        longitude: float,
        latitude: float,
        priority: IssuePriority | str = IssuePriority.MEDIUM,
        address: str | None = None,
        landmark: str | None = None,
        images: Sequence[Mapping[str, Any]] = (),
        tags: Iterable[str] = (),
        source: Source | str = Source.WEB,
    ) -> IssueView:
        """Persist a new Reported issue and its system-generated ledger entry."""
        point = geo.validate_coordinates(longitude, latitude)
        issue = Issue(
            title=_required_text(title, "Title"),
            description=_required_text(description, "Description"),
            category=_coerce(IssueCategory, category, "category"),
            priority=_coerce(IssuePriority, priority, "priority"),
            status=IssueStatus.REPORTED,
            longitude=point.longitude,
            latitude=point.latitude,
            address=_optional_text(address),
            landmark=_optional_text(landmark),
            images=_normalize_images(images, self.max_images),
            created_by=principal.id,
            source=_coerce(Source, source, "source"),
            upvote_count=0,
            flag_count=0,
            is_hidden=False,
        )
        normalized_tags = normalize_tags(tags)

        self.session.add(issue)
        self.session.flush()
        self.issues.set_tags(issue.id, normalized_tags)
        self.ledger.append(
            issue_id=issue.id,
            status=IssueStatus.REPORTED,
            updated_by=principal.id,
            comment="Issue reported",
            is_system_generated=True,
            source=issue.source,
        )
        self.session.commit()
        logger.info("Issue %s reported by %s", issue.id, principal.id)
        return IssueView(issue=issue, tags=sorted(normalized_tags))

    # Status state machine ----------------------------------------------

    def transition_status(
        self,
        issue_id: int,
        principal: Principal,
        status: IssueStatus | str,
        *,
        comment: str | None = None,
        assigned_to: str | None = None,
        estimated_resolution_date: datetime | None = None,
        source: Source | str = Source.WEB,
    ) -> TransitionResult:
        """Move an issue to ``status`` and append the matching ledger entry."""
        self._require_staff(principal, "change issue status")
        target = _coerce(IssueStatus, status, "status", InvalidStatus)
        issue = self._locked_issue(issue_id)

        previous = issue.status
        if not self.transition_policy.allows(previous, target):
            raise InvalidStatus(
                f"Transition from {previous.value} to {target.value} is not allowed"
            )

        issue.status = target
        if assigned_to is not None:
            issue.assigned_to = assigned_to
        if estimated_resolution_date is not None:
            issue.estimated_resolution_date = estimated_resolution_date
        if target.is_terminal and issue.resolved_at is None:
            issue.resolved_at = utcnow()

        entry = self.ledger.append(
            issue_id=issue.id,
            status=target,
            previous_status=previous,
            updated_by=principal.id,
            comment=_optional_text(comment),
            estimated_resolution_date=estimated_resolution_date,
            source=_coerce(Source, source, "source"),
        )
        self.session.commit()
        logger.info(
            "Issue %s moved %s -> %s by %s",
            issue.id,
            previous.value,
            target.value,
            principal.id,
        )
        return TransitionResult(view=self._view(issue), entry=entry)

    # Voting ------------------------------------------------------------

    def apply_vote(
        self,
        issue_id: int,
        principal: Principal,
        action: VoteAction | str,
    ) -> VoteResult:
        """Add or remove the caller from the issue's voter set.

        Both actions are idempotent; repeats report ``changed=False``.
        """
        vote_action = _coerce(VoteAction, action, "vote action")
        issue = self._locked_issue(issue_id)
        if issue.is_hidden:
            raise Forbidden("Cannot vote on hidden issue")

        user_id = principal.id
        if vote_action is VoteAction.UPVOTE:
            changed = False
            if not self.issues.has_upvoted(issue.id, user_id):
                try:
                    self.issues.add_upvote(issue.id, user_id)
                    changed = True
                except IntegrityError:
                    # A concurrent request inserted the same vote first.
                    self.session.rollback()
                    logger.warning(
                        "Concurrent duplicate upvote on issue %s by %s", issue_id, user_id
                    )
                    issue = self._locked_issue(issue_id)
            if changed:
                message = "Issue upvoted successfully"
            else:
                message = "You have already upvoted this issue"
        else:
            changed = self.issues.remove_upvote(issue.id, user_id)
            if changed:
                message = "Upvote removed successfully"
            else:
                message = "You have not upvoted this issue"

        upvote_count = self.issues.refresh_upvote_count(issue)
        has_upvoted = self.issues.has_upvoted(issue.id, user_id)
        self.session.commit()
        if not changed:
            logger.debug("No-op %s on issue %s by %s", vote_action.value, issue.id, user_id)
        return VoteResult(
            changed=changed,
            message=message,
            upvote_count=upvote_count,
            has_upvoted=has_upvoted,
        )

    # Flags -------------------------------------------------------------

    def file_flag(
        self,
        issue_id: int,
        principal: Principal,
        *,
        reason: FlagReason | str,
        description: str,
        priority: FlagPriority | str = FlagPriority.MEDIUM,
        source: Source | str = Source.WEB,
    ) -> FlagResult:
        """Register a Pending flag and re-run the auto-hide rule."""
        flag_reason = _coerce(FlagReason, reason, "flag reason")
        flag_priority = _coerce(FlagPriority, priority, "flag priority")
        text = _required_text(description, "Flag description")
        issue = self._locked_issue(issue_id)
        if issue.is_hidden:
            raise Forbidden("Cannot flag hidden issue")
        if self.flags.has_user_flagged(issue.id, principal.id):
            raise DuplicateFlag("You have already flagged this issue")

        try:
            flag = self.flags.create(
                issue_id=issue.id,
                flagged_by=principal.id,
                reason=flag_reason,
                description=text,
                priority=flag_priority,
                source=_coerce(Source, source, "source"),
            )
        except IntegrityError as err:
            self.session.rollback()
            raise DuplicateFlag("You have already flagged this issue") from err

        flag_count = self.issues.refresh_flag_count(issue)
        auto_hidden = False
        if self.moderation_policy.evaluate(flag_count, issue.is_hidden):
            auto_hidden = self.issues.hide_if_visible(
                issue, reason=AUTO_HIDE_REASON, hidden_by=None
            )
        self.session.commit()

        logger.info("Flag %s filed on issue %s (%d flags)", flag.id, issue.id, flag_count)
        if auto_hidden:
            logger.info("Issue %s auto-hidden at %d flags", issue.id, flag_count)
        return FlagResult(
            flag=flag,
            flag_count=flag_count,
            auto_hidden=auto_hidden,
            issue_hidden=issue.is_hidden,
        )

    def review_flag(
        self,
        flag_id: int,
        principal: Principal,
        *,
        status: FlagStatus | str,
        action_taken: FlagAction | str,
        notes: str | None = None,
    ) -> ReviewResult:
        """Record an admin decision on a flag.

        ``Issue Hidden`` forces the parent issue hidden whatever its flag count;
        every other action is recorded for audit only.
        """
        self._require_admin(principal, "review flags")
        outcome = _coerce(FlagStatus, status, "flag status")
        if outcome not in REVIEW_OUTCOMES:
            raise ValidationError("Review status must be Reviewed, Dismissed or Approved")
        action = _coerce(FlagAction, action_taken, "action")

        flag = self.flags.get(flag_id, for_update=True)
        if flag is None:
            raise NotFound("Flag not found")
        if not self.allow_flag_rereview and flag.status is not FlagStatus.PENDING:
            raise FlagAlreadyReviewed(f"Flag {flag_id} was already {flag.status.value}")

        flag.status = outcome
        flag.reviewed_by = principal.id
        flag.reviewed_at = utcnow()
        flag.review_notes = _optional_text(notes)
        flag.action_taken = action

        issue_hidden = False
        if action is FlagAction.ISSUE_HIDDEN:
            issue = self.issues.get_for_update(flag.issue_id)
            if issue is not None:
                issue.is_hidden = True
                issue.hidden_reason = REVIEW_HIDE_REASON
                issue.hidden_by = principal.id
                issue_hidden = True
        self.session.commit()
        logger.info(
            "Flag %s reviewed by %s: %s / %s",
            flag.id,
            principal.id,
            outcome.value,
            action.value,
        )
        return ReviewResult(flag=flag, issue_hidden=issue_hidden)

    def delete_flag(self, flag_id: int, principal: Principal) -> Issue | None:
        """Remove a flag and recompute the issue's count; never unhides."""
        self._require_admin(principal, "delete flags")
        flag = self.flags.get(flag_id, for_update=True)
        if flag is None:
            raise NotFound("Flag not found")

        issue = self.issues.get_for_update(flag.issue_id)
        self.flags.delete(flag)
        if issue is not None:
            self.issues.refresh_flag_count(issue)
        self.session.commit()
        logger.info("Flag %s deleted by %s", flag_id, principal.id)
        return issue

    def list_flags(
        self,
        principal: Principal,
        *,
        status: FlagStatus | str | None = None,
        reason: FlagReason | str | None = None,
        priority: FlagPriority | str | None = None,
        sort: str = "-created_at",
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Flag], int]:
        self._require_admin(principal, "list flags")
        self._check_paging(page, limit)
        if sort not in FLAG_SORT_FIELDS:
            raise ValidationError(f"Unsupported sort: {sort!r}")
        return self.flags.list_flags(
            status=_optional_enum(FlagStatus, status, "flag status"),
            reason=_optional_enum(FlagReason, reason, "flag reason"),
            priority=_optional_enum(FlagPriority, priority, "flag priority"),
            sort=sort,
            offset=(page - 1) * limit,
            limit=limit,
        )

    def flag_stats(self, principal: Principal) -> dict[str, dict[str, int]]:
        self._require_admin(principal, "view flag statistics")
        return self.flags.stats()

    # Visibility and deletion -------------------------------------------

    def set_visibility(
        self,
        issue_id: int,
        principal: Principal,
        *,
        is_hidden: bool,
        reason: str | None = None,
    ) -> IssueView:
        """Explicitly hide or restore an issue; the only path back to visible."""
        self._require_admin(principal, "change issue visibility")
        issue = self._locked_issue(issue_id)
        issue.is_hidden = is_hidden
        issue.hidden_reason = _optional_text(reason) if is_hidden else None
        issue.hidden_by = principal.id if is_hidden else None
        self.session.commit()
        logger.info(
            "Issue %s %s by %s",
            issue.id,
            "hidden" if is_hidden else "made visible",
            principal.id,
        )
        return self._view(issue)

    def delete_issue(self, issue_id: int, principal: Principal) -> None:
        """Delete an issue and everything that references it."""
        self._require_admin(principal, "delete issues")
        issue = self._locked_issue(issue_id)
        self.issues.delete_cascade(issue)
        self.session.commit()
        logger.info("Issue %s deleted by %s", issue_id, principal.id)

    # Reads -------------------------------------------------------------

    def get_issue(self, issue_id: int, principal: Principal | None = None) -> IssueView:
        """Single issue with its timeline and the caller's vote/flag state."""
        issue = self._visible_issue(issue_id, principal)
        view = self._view(issue)
        view.timeline = self.ledger.timeline(issue.id)
        if principal is not None:
            view.has_upvoted = self.issues.has_upvoted(issue.id, principal.id)
            view.has_flagged = self.flags.has_user_flagged(issue.id, principal.id)
        return view

    def get_timeline(
        self,
        issue_id: int,
        principal: Principal | None = None,
    ) -> list[StatusLogEntry]:
        issue = self._visible_issue(issue_id, principal)
        return self.ledger.timeline(issue.id)

    def recent_updates(self, principal: Principal, limit: int = 10) -> list[StatusLogEntry]:
        self._require_staff(principal, "view recent status updates")
        self._check_paging(1, limit)
        return self.ledger.recent(limit)

    def _check_paging(self, page: int, limit: int) -> None:
        if page < 1:
            raise ValidationError("Page must be at least 1")
        if not 1 <= limit <= settings.max_page_size:
            raise ValidationError(f"Limit must be between 1 and {settings.max_page_size}")

    def list_issues(
        self,
        filters: IssueFilter | None = None,
        *,
        principal: Principal | None = None,
        center: Sequence[float] | None = None,
        radius_km: float | None = None,
        sort: str = "-created_at",
        page: int = 1,
        limit: int = 10,
    ) -> IssuePage:
        """Filter issues in SQL, then optionally by distance from ``center``.

        When ``center`` is supplied every returned view carries ``distance_km``.
        Hidden issues are included only for staff who ask for them.
        """
        filters = filters or IssueFilter()
        self._check_paging(page, limit)
        if sort not in SORT_FIELDS:
            raise ValidationError(f"Unsupported sort: {sort!r}")
        if sort == "distance" and center is None:
            raise ValidationError("Sorting by distance requires a center point")

        include_hidden = bool(filters.include_hidden and principal and principal.is_staff)
        query_args: dict[str, Any] = {
            "category": _optional_enum(IssueCategory, filters.category, "category"),
            "status": _optional_enum(IssueStatus, filters.status, "status"),
            "priority": _optional_enum(IssuePriority, filters.priority, "priority"),
            "tags": normalize_tags(filters.tags),
            "search": (filters.search or "").strip() or None,
            "created_by": filters.created_by,
            "include_hidden": include_hidden,
        }

        if center is None:
            stmt = self.issues.build_listing_query(**query_args)
            total = self.issues.count(stmt)
            rows = self.issues.fetch(stmt, sort=sort, offset=(page - 1) * limit, limit=limit)
            tags = self.issues.tags_for([issue.id for issue in rows])
            items = [IssueView(issue=issue, tags=tags[issue.id]) for issue in rows]
            return IssuePage(items=items, total=total, page=page, limit=limit)

        origin = geo.validate_coordinates(*center)
        radius = settings.default_search_radius_km if radius_km is None else radius_km
        box = geo.radius_bounding_box(origin, radius)
        stmt = self.issues.build_listing_query(box=box, **query_args)
        candidates = self.issues.fetch(stmt, sort=sort)
        nearby = geo.within_radius(origin, radius, candidates, key=_issue_point)
        annotated = [(issue, geo.distance(origin, _issue_point(issue))) for issue in nearby]
        if sort == "distance":
            annotated.sort(key=lambda pair: pair[1])

        total = len(annotated)
        window = annotated[(page - 1) * limit : page * limit]
        tags = self.issues.tags_for([issue.id for issue, _ in window])
        items = [
            IssueView(issue=issue, tags=tags[issue.id], distance_km=km)
            for issue, km in window
        ]
        return IssuePage(items=items, total=total, page=page, limit=limit)

"""Data access helpers for issues, their voter sets and tags."""
from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy import Select, case, delete, func, insert, or_, select, update
from sqlalchemy.orm import Session

from civic_report.models import Flag, Issue, IssueTag, IssueUpvote, StatusLogEntry
from civic_report.models.enums import IssueCategory, IssuePriority, IssueStatus
from civic_report.services.geo import BoundingBox

__all__ = ["IssueRepository", "SORT_FIELDS"]

_PRIORITY_RANK = case(
    *[(Issue.priority == priority, rank) for rank, priority in enumerate(IssuePriority)],
    else_=len(IssuePriority),
)

# "distance" is applied by the caller after the haversine pass.
SORT_FIELDS = {
    "created_at": (Issue.created_at.asc(), Issue.id.asc()),
    "-created_at": (Issue.created_at.desc(), Issue.id.desc()),
    "updated_at": (Issue.updated_at.asc(), Issue.id.asc()),
    "-updated_at": (Issue.updated_at.desc(), Issue.id.desc()),
    "upvote_count": (Issue.upvote_count.asc(), Issue.id.asc()),
    "-upvote_count": (Issue.upvote_count.desc(), Issue.id.desc()),
    "flag_count": (Issue.flag_count.asc(), Issue.id.asc()),
    "-flag_count": (Issue.flag_count.desc(), Issue.id.desc()),
    "priority": (_PRIORITY_RANK.asc(), Issue.id.desc()),
    "-priority": (_PRIORITY_RANK.desc(), Issue.id.desc()),
    "distance": (Issue.id.desc(),),
}


class IssueRepository:
    """Thin wrapper around database access for issue entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, issue_id: int) -> Issue | None:
        return self.session.get(Issue, issue_id)

    def get_for_update(self, issue_id: int) -> Issue | None:
        """Load an issue holding its row lock until the transaction ends.

        Backends without row locks (SQLite) serialise writers at the database
        level instead.
        """
        return self.session.get(Issue, issue_id, with_for_update=True, populate_existing=True)

    # Voter set ---------------------------------------------------------

    def has_upvoted(self, issue_id: int, user_id: str) -> bool:
        found = self.session.execute(
            select(IssueUpvote.user_id).where(
                IssueUpvote.issue_id == issue_id,
                IssueUpvote.user_id == user_id,
            )
        ).first()
        return found is not None

    def add_upvote(self, issue_id: int, user_id: str) -> None:
        """Insert into the voter set; a duplicate raises ``IntegrityError``."""
        self.session.execute(insert(IssueUpvote).values(issue_id=issue_id, user_id=user_id))

    def remove_upvote(self, issue_id: int, user_id: str) -> bool:
        result = self.session.execute(
            delete(IssueUpvote).where(
                IssueUpvote.issue_id == issue_id,
                IssueUpvote.user_id == user_id,
            )
        )
        return bool(result.rowcount)

    def refresh_upvote_count(self, issue: Issue) -> int:
        """Recompute ``upvote_count`` as the size of the voter set."""
        self.session.flush()
        voters = (
            select(func.count())
            .select_from(IssueUpvote)
            .where(IssueUpvote.issue_id == issue.id)
            .scalar_subquery()
        )
        self.session.execute(
            update(Issue)
            .where(Issue.id == issue.id)
            .values(upvote_count=voters)
            .execution_options(synchronize_session=False)
        )
        self.session.refresh(issue, attribute_names=["upvote_count", "updated_at"])
        return issue.upvote_count

    # Flags -------------------------------------------------------------

    def refresh_flag_count(self, issue: Issue) -> int:
        """Recompute ``flag_count`` from the flags that reference the issue."""
        self.session.flush()
        flags = (
            select(func.count())
            .select_from(Flag)
            .where(Flag.issue_id == issue.id)
            .scalar_subquery()
        )
        self.session.execute(
            update(Issue)
            .where(Issue.id == issue.id)
            .values(flag_count=flags)
            .execution_options(synchronize_session=False)
        )
        self.session.refresh(issue, attribute_names=["flag_count", "updated_at"])
        return issue.flag_count

    def hide_if_visible(self, issue: Issue, *, reason: str, hidden_by: str | None) -> bool:
        """Hide the issue unless it is already hidden; return True if this call hid it.

        The ``is_hidden = false`` predicate makes this a compare-and-set, so the
        reason of an earlier hide is never overwritten.
        """
        self.session.flush()
        result = self.session.execute(
            update(Issue)
            .where(Issue.id == issue.id, Issue.is_hidden.is_(False))
            .values(is_hidden=True, hidden_reason=reason, hidden_by=hidden_by)
            .execution_options(synchronize_session=False)
        )
        self.session.refresh(
            issue, attribute_names=["is_hidden", "hidden_reason", "hidden_by", "updated_at"]
        )
        return bool(result.rowcount)

    # Tags --------------------------------------------------------------

    def set_tags(self, issue_id: int, tags: Iterable[str]) -> None:
        for tag in tags:
            self.session.add(IssueTag(issue_id=issue_id, tag=tag))

    def tags_for(self, issue_ids: Sequence[int]) -> dict[int, list[str]]:
        """Return sorted tags keyed by issue id (issues without tags map to [])."""
        result: dict[int, list[str]] = {issue_id: [] for issue_id in issue_ids}
        if not issue_ids:
            return result
        rows = self.session.execute(
            select(IssueTag.issue_id, IssueTag.tag)
            .where(IssueTag.issue_id.in_(issue_ids))
            .order_by(IssueTag.issue_id, IssueTag.tag)
        )
        for issue_id, tag in rows:
            result[issue_id].append(tag)
        return result

    # Listing -----------------------------------------------------------

    def build_listing_query(
        self,
        *,
        category: IssueCategory | None = None,
        status: IssueStatus | None = None,
        priority: IssuePriority | None = None,
        tags: Sequence[str] = (),
        search: str | None = None,
        created_by: str | None = None,
        include_hidden: bool = False,
        box: BoundingBox | None = None,
    ) -> Select[tuple[Issue]]:
        """Compose the SQL-side filters for an issue listing."""
        stmt = select(Issue)
        if category is not None:
            stmt = stmt.where(Issue.category == category)
        if status is not None:
            stmt = stmt.where(Issue.status == status)
        if priority is not None:
            stmt = stmt.where(Issue.priority == priority)
        if created_by is not None:
            stmt = stmt.where(Issue.created_by == created_by)
        if tags:
            tagged = select(IssueTag.issue_id).where(IssueTag.tag.in_(list(tags)))
            stmt = stmt.where(Issue.id.in_(tagged))
        if search:
            needle = search.lower()
            stmt = stmt.where(
                or_(
                    func.lower(Issue.title).contains(needle, autoescape=True),
                    func.lower(Issue.description).contains(needle, autoescape=True),
                    func.lower(Issue.address).contains(needle, autoescape=True),
                    func.lower(Issue.landmark).contains(needle, autoescape=True),
                )
            )
        if not include_hidden:
            stmt = stmt.where(Issue.is_hidden.is_(False))
        if box is not None:
            stmt = stmt.where(
                Issue.longitude.between(box.min_longitude, box.max_longitude),
                Issue.latitude.between(box.min_latitude, box.max_latitude),
            )
        return stmt

    def count(self, stmt: Select[tuple[Issue]]) -> int:
        counted = select(func.count()).select_from(stmt.order_by(None).subquery())
        return int(self.session.execute(counted).scalar_one())

    def fetch(
        self,
        stmt: Select[tuple[Issue]],
        *,
        sort: str,
        offset: int | None = None,
        limit: int | None = None,
    ) -> list[Issue]:
        stmt = stmt.order_by(*SORT_FIELDS[sort])
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    # Deletion ----------------------------------------------------------

    def delete_cascade(self, issue: Issue) -> None:
        """Delete an issue together with its ledger, flags, voters and tags."""
        issue_id = issue.id
        for model in (StatusLogEntry, Flag, IssueUpvote, IssueTag):
            self.session.execute(
                delete(model)
                .where(model.issue_id == issue_id)
                .execution_options(synchronize_session=False)
            )
        self.session.delete(issue)
        self.session.flush()

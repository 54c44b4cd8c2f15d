"""Data access helpers for the flag registry."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from civic_report.models import Flag
from civic_report.models.enums import FlagPriority, FlagReason, FlagStatus, Source

__all__ = ["FlagRepository", "FLAG_SORT_FIELDS"]

FLAG_SORT_FIELDS = {
    "created_at": (Flag.created_at.asc(), Flag.id.asc()),
    "-created_at": (Flag.created_at.desc(), Flag.id.desc()),
    "reviewed_at": (Flag.reviewed_at.asc(), Flag.id.asc()),
    "-reviewed_at": (Flag.reviewed_at.desc(), Flag.id.desc()),
}


class FlagRepository:
    """Thin wrapper around database access for flag entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, flag_id: int, *, for_update: bool = False) -> Flag | None:
        return self.session.get(Flag, flag_id, with_for_update=for_update or None)

    def has_user_flagged(self, issue_id: int, user_id: str) -> bool:
        found = self.session.execute(
            select(Flag.id).where(Flag.issue_id == issue_id, Flag.flagged_by == user_id)
        ).first()
        return found is not None

    def create(
        self,
        *,
        issue_id: int,
        flagged_by: str,
        reason: FlagReason,
        description: str,
        priority: FlagPriority = FlagPriority.MEDIUM,
        source: Source = Source.WEB,
    ) -> Flag:
        """Insert a Pending flag; a duplicate (issue, user) raises ``IntegrityError``."""
        flag = Flag(
            issue_id=issue_id,
            flagged_by=flagged_by,
            reason=reason,
            description=description,
            priority=priority,
            status=FlagStatus.PENDING,
            source=source,
        )
        self.session.add(flag)
        self.session.flush()
        return flag

    def delete(self, flag: Flag) -> None:
        self.session.delete(flag)
        self.session.flush()

    def list_flags(
        self,
        *,
        status: FlagStatus | None = None,
        reason: FlagReason | None = None,
        priority: FlagPriority | None = None,
        sort: str = "-created_at",
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Flag], int]:
        """Return one page of flags matching the filters plus the total count."""
        stmt = select(Flag)
        if status is not None:
            stmt = stmt.where(Flag.status == status)
        if reason is not None:
            stmt = stmt.where(Flag.reason == reason)
        if priority is not None:
            stmt = stmt.where(Flag.priority == priority)

        total = self.session.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar_one()
        page = self.session.execute(
            stmt.order_by(*FLAG_SORT_FIELDS[sort]).offset(offset).limit(limit)
        )
        return list(page.scalars()), int(total)

    def stats(self) -> dict[str, dict[str, int]]:
        """Flag counts grouped by status and by reason."""
        by_status = self.session.execute(
            select(Flag.status, func.count()).group_by(Flag.status)
        ).all()
        by_reason = self.session.execute(
            select(Flag.reason, func.count()).group_by(Flag.reason).order_by(func.count().desc())
        ).all()
        return {
            "by_status": {status.value: int(count) for status, count in by_status},
            "by_reason": {reason.value: int(count) for reason, count in by_reason},
        }

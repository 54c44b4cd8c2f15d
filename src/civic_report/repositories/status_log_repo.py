"""Append-only access to the status ledger."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from civic_report.models import StatusLogEntry
from civic_report.models.enums import IssueStatus, Source

__all__ = ["StatusLedger"]


class StatusLedger:
    """Per-issue ordered log of status transitions.

    The ledger exposes no update or delete operations; entries leave the table
    only through the cascading delete of their issue.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def append(
        self,
        *,
        issue_id: int,
        status: IssueStatus,
        updated_by: str,
        previous_status: IssueStatus | None = None,
        comment: str | None = None,
        estimated_resolution_date: datetime | None = None,
        is_system_generated: bool = False,
        source: Source = Source.WEB,
    ) -> StatusLogEntry:
        entry = StatusLogEntry(
            issue_id=issue_id,
            status=status,
            previous_status=previous_status,
            updated_by=updated_by,
            comment=comment,
            estimated_resolution_date=estimated_resolution_date,
            is_system_generated=is_system_generated,
            source=source,
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def timeline(self, issue_id: int) -> list[StatusLogEntry]:
        """Entries for one issue, oldest first."""
        result = self.session.execute(
            select(StatusLogEntry)
            .where(StatusLogEntry.issue_id == issue_id)
            .order_by(StatusLogEntry.created_at.asc(), StatusLogEntry.id.asc())
        )
        return list(result.scalars())

    def recent(self, limit: int = 10) -> list[StatusLogEntry]:
        """Most recent entries across all issues, newest first."""
        result = self.session.execute(
            select(StatusLogEntry)
            .order_by(StatusLogEntry.created_at.desc(), StatusLogEntry.id.desc())
            .limit(limit)
        )
        return list(result.scalars())

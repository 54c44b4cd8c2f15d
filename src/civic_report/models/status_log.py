"""Append-only audit trail of issue status transitions."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from civic_report.db.session import Base
from civic_report.db.time import utcnow
from civic_report.models.enums import IssueStatus, Source, db_enum


class StatusLogEntry(Base):
    """Immutable record of one status transition.

    Rows are only ever inserted; they disappear solely through the cascading
    delete of their issue.
    """

    __tablename__ = "status_log"
    __table_args__ = (
        Index("ix_status_log_issue_created", "issue_id", "created_at"),
        Index("ix_status_log_updated_by", "updated_by"),
        Index("ix_status_log_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    issue_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("issue.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[IssueStatus] = mapped_column(
        db_enum(IssueStatus, "status_log_status"), nullable=False
    )
    # Null only for the initial system-generated Reported entry.
    previous_status: Mapped[IssueStatus | None] = mapped_column(
        db_enum(IssueStatus, "status_log_previous_status"), nullable=True
    )
    updated_by: Mapped[str] = mapped_column(String(64), nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    estimated_resolution_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_system_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    source: Mapped[Source] = mapped_column(
        db_enum(Source, "status_log_source"), nullable=False, default=Source.WEB
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

"""Models tracking community flags raised against issues."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from civic_report.db.session import Base
from civic_report.db.time import utcnow
from civic_report.models.enums import (
    FlagAction,
    FlagPriority,
    FlagReason,
    FlagStatus,
    Source,
    db_enum,
)


class Flag(Base):
    """Moderation complaint filed by one user against one issue."""

    __tablename__ = "flag"
    __table_args__ = (
        # One flag per (issue, user) regardless of the flag's review history.
        UniqueConstraint("issue_id", "flagged_by", name="uq_flag_issue_user"),
        Index("ix_flag_issue_created", "issue_id", "created_at"),
        Index("ix_flag_flagged_by", "flagged_by"),
        Index("ix_flag_status_created", "status", "created_at"),
        Index("ix_flag_priority_status", "priority", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    issue_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("issue.id", ondelete="CASCADE"),
        nullable=False,
    )
    flagged_by: Mapped[str] = mapped_column(String(64), nullable=False)
    reason: Mapped[FlagReason] = mapped_column(db_enum(FlagReason, "flag_reason"), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[FlagStatus] = mapped_column(
        db_enum(FlagStatus, "flag_status"),
        nullable=False,
        default=FlagStatus.PENDING,
    )
    priority: Mapped[FlagPriority] = mapped_column(
        db_enum(FlagPriority, "flag_priority"),
        nullable=False,
        default=FlagPriority.MEDIUM,
    )

    # Review metadata, filled in by an admin.
    reviewed_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    action_taken: Mapped[FlagAction | None] = mapped_column(
        db_enum(FlagAction, "flag_action"), nullable=True
    )

    source: Mapped[Source] = mapped_column(
        db_enum(Source, "flag_source"), nullable=False, default=Source.WEB
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

"""SQLAlchemy models for issues, their voter sets and tags."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from civic_report.db.session import Base
from civic_report.db.time import utcnow
from civic_report.models.enums import (
    IssueCategory,
    IssuePriority,
    IssueStatus,
    Source,
    db_enum,
)


class Issue(Base):
    """A reported civic problem.

    The row owns nothing through ORM relationships; status log entries, flags,
    voters and tags reference it by ``issue_id`` and are looked up by index.
    """

    __tablename__ = "issue"
    __table_args__ = (
        CheckConstraint("longitude >= -180 AND longitude <= 180", name="ck_issue_longitude"),
        CheckConstraint("latitude >= -90 AND latitude <= 90", name="ck_issue_latitude"),
        CheckConstraint("upvote_count >= 0", name="ck_issue_upvote_count"),
        CheckConstraint("flag_count >= 0", name="ck_issue_flag_count"),
        Index("ix_issue_status_category", "status", "category"),
        Index("ix_issue_created_by_status", "created_by", "status"),
        Index("ix_issue_hidden_status", "is_hidden", "status"),
        Index("ix_issue_lat_lon", "latitude", "longitude"),
        Index("ix_issue_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[IssueCategory] = mapped_column(
        db_enum(IssueCategory, "issue_category"), nullable=False
    )
    status: Mapped[IssueStatus] = mapped_column(
        db_enum(IssueStatus, "issue_status"),
        nullable=False,
        default=IssueStatus.REPORTED,
    )
    priority: Mapped[IssuePriority] = mapped_column(
        db_enum(IssuePriority, "issue_priority"),
        nullable=False,
        default=IssuePriority.MEDIUM,
    )

    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    landmark: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # List of {"url", "public_id", "caption"}; length capped by the engine.
    images: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Principal ids from the identity system.
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    assigned_to: Mapped[str | None] = mapped_column(String(64), nullable=True)

    estimated_resolution_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # Stamped once on first entry into Resolved/Closed; never cleared.
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    is_hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hidden_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Null when hidden by the moderation policy.
    hidden_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Projections of issue_upvote / flag row counts; recomputed, never incremented.
    upvote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    flag_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    source: Mapped[Source] = mapped_column(
        db_enum(Source, "record_source"), nullable=False, default=Source.WEB
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class IssueUpvote(Base):
    """Membership of one user in an issue's voter set."""

    __tablename__ = "issue_upvote"

    issue_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("issue.id", ondelete="CASCADE"),
        primary_key=True,
    )
    # Composite primary key prevents duplicate votes from the same user.
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class IssueTag(Base):
    """Free-form lowercase tag attached to an issue."""

    __tablename__ = "issue_tag"
    __table_args__ = (Index("ix_issue_tag_tag", "tag"),)

    issue_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("issue.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag: Mapped[str] = mapped_column(String(50), primary_key=True)

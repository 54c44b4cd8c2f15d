"""initial issue lifecycle schema

Revision ID: 5c1e2a7d9b40
Revises:
Create Date: 2026-10-19 09:12:41.318204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e2a7d9b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ISSUE_STATUSES = ("Reported", "In Progress", "Resolved", "Closed")
ISSUE_CATEGORIES = (
    "Road & Transportation",
    "Water & Sanitation",
    "Electricity",
    "Waste Management",
    "Public Safety",
    "Parks & Recreation",
    "Street Lighting",
    "Public Health",
    "Noise Pollution",
    "Air Pollution",
    "Building & Construction",
    "Other",
)
ISSUE_PRIORITIES = ("Low", "Medium", "High", "Critical")
SOURCES = ("web", "mobile", "api", "system")
FLAG_REASONS = (
    "Inappropriate Content",
    "Spam",
    "False Information",
    "Offensive Language",
    "Duplicate Issue",
    "Not a Valid Issue",
    "Personal Attack",
    "Off Topic",
    "Other",
)
FLAG_STATUSES = ("Pending", "Reviewed", "Dismissed", "Approved")
FLAG_ACTIONS = (
    "No Action",
    "Issue Hidden",
    "Issue Deleted",
    "User Warned",
    "User Banned",
    "Content Modified",
    "Other",
)
FLAG_PRIORITIES = ("Low", "Medium", "High")


def _enum(values: Sequence[str], name: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=True)


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    """Create issues, voter sets, tags, the status ledger and flags."""
    op.create_table(
        "issue",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", _enum(ISSUE_CATEGORIES, "issue_category"), nullable=False),
        sa.Column("status", _enum(ISSUE_STATUSES, "issue_status"), nullable=False),
        sa.Column("priority", _enum(ISSUE_PRIORITIES, "issue_priority"), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("landmark", sa.String(length=200), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("assigned_to", sa.String(length=64), nullable=True),
        _timestamp("estimated_resolution_date", nullable=True),
        _timestamp("resolved_at", nullable=True),
        sa.Column("is_hidden", sa.Boolean(), nullable=False),
        sa.Column("hidden_reason", sa.Text(), nullable=True),
        sa.Column("hidden_by", sa.String(length=64), nullable=True),
        sa.Column("upvote_count", sa.Integer(), nullable=False),
        sa.Column("flag_count", sa.Integer(), nullable=False),
        sa.Column("source", _enum(SOURCES, "record_source"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("longitude >= -180 AND longitude <= 180", name="ck_issue_longitude"),
        sa.CheckConstraint("latitude >= -90 AND latitude <= 90", name="ck_issue_latitude"),
        sa.CheckConstraint("upvote_count >= 0", name="ck_issue_upvote_count"),
        sa.CheckConstraint("flag_count >= 0", name="ck_issue_flag_count"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_issue_status_category", "issue", ["status", "category"])
    op.create_index("ix_issue_created_by_status", "issue", ["created_by", "status"])
    op.create_index("ix_issue_hidden_status", "issue", ["is_hidden", "status"])
    op.create_index("ix_issue_lat_lon", "issue", ["latitude", "longitude"])
    op.create_index("ix_issue_created_at", "issue", ["created_at"])

    op.create_table(
        "issue_upvote",
        sa.Column("issue_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["issue_id"], ["issue.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("issue_id", "user_id"),
    )

    op.create_table(
        "issue_tag",
        sa.Column("issue_id", sa.Integer(), nullable=False),
        sa.Column("tag", sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(["issue_id"], ["issue.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("issue_id", "tag"),
    )
    op.create_index("ix_issue_tag_tag", "issue_tag", ["tag"])

    op.create_table(
        "status_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("issue_id", sa.Integer(), nullable=False),
        sa.Column("status", _enum(ISSUE_STATUSES, "status_log_status"), nullable=False),
        sa.Column(
            "previous_status",
            _enum(ISSUE_STATUSES, "status_log_previous_status"),
            nullable=True,
        ),
        sa.Column("updated_by", sa.String(length=64), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        _timestamp("estimated_resolution_date", nullable=True),
        sa.Column("is_system_generated", sa.Boolean(), nullable=False),
        sa.Column("source", _enum(SOURCES, "status_log_source"), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["issue_id"], ["issue.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_status_log_issue_created", "status_log", ["issue_id", "created_at"])
    op.create_index("ix_status_log_updated_by", "status_log", ["updated_by"])
    op.create_index("ix_status_log_created_at", "status_log", ["created_at"])

    op.create_table(
        "flag",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("issue_id", sa.Integer(), nullable=False),
        sa.Column("flagged_by", sa.String(length=64), nullable=False),
        sa.Column("reason", _enum(FLAG_REASONS, "flag_reason"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", _enum(FLAG_STATUSES, "flag_status"), nullable=False),
        sa.Column("priority", _enum(FLAG_PRIORITIES, "flag_priority"), nullable=False),
        sa.Column("reviewed_by", sa.String(length=64), nullable=True),
        _timestamp("reviewed_at", nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("action_taken", _enum(FLAG_ACTIONS, "flag_action"), nullable=True),
        sa.Column("source", _enum(SOURCES, "flag_source"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["issue_id"], ["issue.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("issue_id", "flagged_by", name="uq_flag_issue_user"),
    )
    op.create_index("ix_flag_issue_created", "flag", ["issue_id", "created_at"])
    op.create_index("ix_flag_flagged_by", "flag", ["flagged_by"])
    op.create_index("ix_flag_status_created", "flag", ["status", "created_at"])
    op.create_index("ix_flag_priority_status", "flag", ["priority", "status"])


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_table("flag")
    op.drop_table("status_log")
    op.drop_index("ix_issue_tag_tag", table_name="issue_tag")
    op.drop_table("issue_tag")
    op.drop_table("issue_upvote")
    op.drop_table("issue")

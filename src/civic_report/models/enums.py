"""Enumerations shared by the issue, status log and flag models."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import Enum as SAEnum


class IssueStatus(str, Enum):
    """Lifecycle states of an issue, in their nominal order."""

    REPORTED = "Reported"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    @property
    def is_terminal(self) -> bool:
        """Resolved and Closed both stamp the resolution date."""
        return self in (IssueStatus.RESOLVED, IssueStatus.CLOSED)


_STATUS_ORDER = list(IssueStatus)


class IssueCategory(str, Enum):
    ROAD_TRANSPORTATION = "Road & Transportation"
    WATER_SANITATION = "Water & Sanitation"
    ELECTRICITY = "Electricity"
    WASTE_MANAGEMENT = "Waste Management"
    PUBLIC_SAFETY = "Public Safety"
    PARKS_RECREATION = "Parks & Recreation"
    STREET_LIGHTING = "Street Lighting"
    PUBLIC_HEALTH = "Public Health"
    NOISE_POLLUTION = "Noise Pollution"
    AIR_POLLUTION = "Air Pollution"
    BUILDING_CONSTRUCTION = "Building & Construction"
    OTHER = "Other"


class IssuePriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class Source(str, Enum):
    """Channel a record was submitted through."""

    WEB = "web"
    MOBILE = "mobile"
    API = "api"
    SYSTEM = "system"


class FlagReason(str, Enum):
    INAPPROPRIATE_CONTENT = "Inappropriate Content"
    SPAM = "Spam"
    FALSE_INFORMATION = "False Information"
    OFFENSIVE_LANGUAGE = "Offensive Language"
    DUPLICATE_ISSUE = "Duplicate Issue"
    NOT_A_VALID_ISSUE = "Not a Valid Issue"
    PERSONAL_ATTACK = "Personal Attack"
    OFF_TOPIC = "Off Topic"
    OTHER = "Other"


class FlagStatus(str, Enum):
    PENDING = "Pending"
    REVIEWED = "Reviewed"
    DISMISSED = "Dismissed"
    APPROVED = "Approved"


class FlagAction(str, Enum):
    NO_ACTION = "No Action"
    ISSUE_HIDDEN = "Issue Hidden"
    ISSUE_DELETED = "Issue Deleted"
    USER_WARNED = "User Warned"
    USER_BANNED = "User Banned"
    CONTENT_MODIFIED = "Content Modified"
    OTHER = "Other"


class FlagPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


def db_enum(enum_cls: type[Enum], name: str) -> SAEnum:
    """Store ``enum_cls`` by value in a VARCHAR column with a CHECK constraint."""
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        values_callable=lambda members: [member.value for member in members],
    )

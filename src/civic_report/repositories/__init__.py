"""Repositories wrapping SQLAlchemy access for the lifecycle engine."""

from .flag_repo import FlagRepository
from .issue_repo import IssueRepository
from .status_log_repo import StatusLedger

__all__ = ["FlagRepository", "IssueRepository", "StatusLedger"]

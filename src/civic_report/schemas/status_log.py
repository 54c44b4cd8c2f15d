"""Status ledger schemas."""

from pydantic import BaseModel, ConfigDict

from civic_report.models.enums import IssueStatus, Source

from .common import UTCDateTime


class StatusLogEntryResponse(BaseModel):
    """One ledger entry as returned by the API."""

    id: int
    issue_id: int
    status: IssueStatus
    previous_status: IssueStatus | None
    updated_by: str
    comment: str | None
    estimated_resolution_date: UTCDateTime | None
    is_system_generated: bool
    source: Source
    created_at: UTCDateTime

    model_config = ConfigDict(from_attributes=True)

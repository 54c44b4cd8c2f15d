"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

from civic_report.db.time import as_utc

# Timestamps always leave the API timezone-aware.
UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]


class Pagination(BaseModel):
    """Page metadata returned by list endpoints."""

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    pages: int = Field(..., ge=0, description="Total number of pages for this query.")

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> Pagination:
        return cls(page=page, limit=limit, total=total, pages=(total + limit - 1) // limit)


class ErrorResponse(BaseModel):
    """Body returned for domain failures."""

    detail: str
    code: str


class MessageResponse(BaseModel):
    message: str

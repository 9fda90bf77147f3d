# ruff: noqa: TC001, TC003
from __future__ import annotations

import re
import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from leave_engine.models.enums import LeaveStatus

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateLeavePayload(BaseModel):
    """Request body for creating a leave request."""

    employee_id: uuid.UUID
    type: str = Field(min_length=1, max_length=50)
    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=2000)

    @field_validator("type")
    @classmethod
    def _strip_type(cls, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "type must not be blank"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        return self


class TransitionPayload(BaseModel):
    """Request body for moving a leave request to Approved or Rejected.

    ``reason`` replaces the stored reason when non-empty (approver comment).
    ``paid`` is recorded on approval only and never affects the balance.
    """

    status: LeaveStatus
    reason: str | None = Field(default=None, max_length=2000)
    overlap_threshold: int | None = Field(default=None, ge=1)
    paid: bool | None = None


class LeaveListFilters(BaseModel):
    """Query filters for the leave listing."""

    date_from: date | None = None
    date_to: date | None = None
    month: str | None = None
    status: LeaveStatus | None = None
    type: str | None = None
    department: str | None = None
    employee_id: uuid.UUID | None = None
    q: str | None = None
    page: int = Field(default=1, ge=1)
    size: int | None = Field(default=None, ge=1)

    @field_validator("month")
    @classmethod
    def _validate_month(cls, value: str | None) -> str | None:
        if value is not None and not _MONTH_RE.match(value):
            msg = "month must be formatted as YYYY-MM"
            raise ValueError(msg)
        return value


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    employee_id: uuid.UUID
    type: str
    start_date: date
    end_date: date
    days: int
    status: LeaveStatus
    reason: str | None
    is_paid: bool | None
    paid_category: bool
    created_at: datetime


class LeaveListItem(LeaveResponse):
    """Leave request row enriched with the owning employee's details."""

    employee_name: str | None
    employee_email: str | None
    department: str | None
    leave_balance: float | None


class Pagination(BaseModel):
    """Pagination metadata for list responses."""

    page: int
    size: int
    total: int
    total_pages: int


class LeaveListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[LeaveListItem]
    pagination: Pagination

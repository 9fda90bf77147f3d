# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase
from leave_engine.models.enums import LeaveStatus


class LeaveRequest(UUIDBase, TimestampMixin, table=True):
    """An employee's leave request over an inclusive date range."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_request_status_window", "status", "start_date", "end_date"),
        sa.CheckConstraint("start_date <= end_date", name="ck_leave_request_date_order"),
    )

    # Not a foreign key: requests for an unknown employee are stored as Pending.
    employee_id: uuid.UUID = Field(index=True)
    type: str = Field(max_length=50, index=True)
    start_date: date
    end_date: date
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "Pending"}
    )
    reason: str | None = None
    is_paid: bool | None = None

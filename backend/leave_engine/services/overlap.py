"""Department overlap policy.

Two date ranges overlap when they share at least one calendar day:
``existing.start_date <= end AND existing.end_date >= start`` (inclusive on
both ends). ``overlap_window`` is the single definition of that predicate; the
approval gate, the auto-approval decision and the listing window all use it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_engine.config import get_settings
from leave_engine.models.employee import Employee
from leave_engine.models.enums import LeaveStatus
from leave_engine.models.leave import LeaveRequest

if TYPE_CHECKING:
    import uuid
    from datetime import date

    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession


def overlap_window(start: date | None, end: date | None) -> list[ColumnElement[bool]]:
    """Return filters matching requests that cover any day of [start, end].

    An open side (None) leaves that bound unconstrained.
    """
    clauses: list[ColumnElement[bool]] = []
    if end is not None:
        clauses.append(col(LeaveRequest.start_date) <= end)
    if start is not None:
        clauses.append(col(LeaveRequest.end_date) >= start)
    return clauses


async def count_approved_overlaps(
    session: AsyncSession,
    department: str,
    start: date,
    end: date,
    exclude_request_id: uuid.UUID | None = None,
) -> int:
    """Count Approved requests in ``department`` whose range intersects [start, end]."""
    query = (
        select(func.count())
        .select_from(LeaveRequest)
        .join(Employee, col(Employee.id) == col(LeaveRequest.employee_id))
        .where(
            col(LeaveRequest.status) == LeaveStatus.APPROVED.value,
            col(Employee.department) == department,
            *overlap_window(start, end),
        )
    )
    if exclude_request_id is not None:
        query = query.where(col(LeaveRequest.id) != exclude_request_id)

    result = await session.execute(query)
    return int(result.scalar_one())


def allow(count: int, threshold: int | None = None) -> bool:
    """Return True while ``count`` stays below the threshold (configured default: 2)."""
    if threshold is None:
        threshold = get_settings().overlap_threshold
    return count < threshold

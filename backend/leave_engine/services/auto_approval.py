from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from leave_engine.config import get_settings
from leave_engine.models.enums import LeaveStatus
from leave_engine.services.overlap import allow, count_approved_overlaps

if TYPE_CHECKING:
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.models.employee import Employee

logger = logging.getLogger(__name__)


async def decide(
    session: AsyncSession,
    employee: Employee | None,
    request_days: int,
    start_date: date,
    end_date: date,
) -> LeaveStatus:
    """Decide whether a new request skips manual review.

    Approved only when the employee can cover every day from their balance and
    fewer than the configured number of approved leaves in their department
    already overlap the range. An unknown employee always goes to review.
    Reads only; the caller applies the decision.
    """
    if employee is None:
        return LeaveStatus.PENDING

    overlaps = await count_approved_overlaps(session, employee.department, start_date, end_date)
    ok_balance = employee.leave_balance >= request_days
    ok_overlap = allow(overlaps, get_settings().auto_approve_overlap_threshold)

    logger.debug(
        "Auto-approval for employee %s: days=%d balance=%s overlaps=%d",
        employee.id,
        request_days,
        employee.leave_balance,
        overlaps,
    )
    if ok_balance and ok_overlap:
        return LeaveStatus.APPROVED
    return LeaveStatus.PENDING

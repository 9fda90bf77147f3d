"""Balance ledger: the only writer of ``Employee.leave_balance``.

Every operation runs inside the caller's transaction and takes a row lock on
the employee (``SELECT ... FOR UPDATE``), so concurrent debits and credits for
the same employee serialize in the store instead of losing updates. Nothing
here commits.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_engine.exceptions import NotFoundError
from leave_engine.models.employee import Employee

if TYPE_CHECKING:
    import uuid

    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def _employee_for_update_query(employee_id: uuid.UUID) -> Select[tuple[Employee]]:
    return (
        select(Employee)
        .where(col(Employee.id) == employee_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )


async def get_employee_for_update(session: AsyncSession, employee_id: uuid.UUID) -> Employee | None:
    """Fetch the employee row with a FOR UPDATE lock. Returns None if not found.

    ``populate_existing`` refreshes any copy already in the identity map, so the
    balance seen is the one committed before the lock was granted.
    """
    result = await session.execute(_employee_for_update_query(employee_id))
    return result.scalar_one_or_none()


async def _lock_or_404(session: AsyncSession, employee_id: uuid.UUID) -> Employee:
    employee = await get_employee_for_update(session, employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


async def debit(session: AsyncSession, employee_id: uuid.UUID, days: float) -> float:
    """Subtract ``days`` from the balance, clamping at zero. Returns the new balance."""
    if days < 0:
        msg = f"debit amount must be non-negative, got {days}"
        raise ValueError(msg)

    employee = await _lock_or_404(session, employee_id)
    before = employee.leave_balance
    employee.leave_balance = max(0.0, before - days)
    await session.flush()

    logger.debug("Debited %s day(s) from employee %s: %s -> %s", days, employee_id, before, employee.leave_balance)
    return employee.leave_balance


async def credit(session: AsyncSession, employee_id: uuid.UUID, days: float) -> float:
    """Add ``days`` back to the balance (no upper clamp). Returns the new balance."""
    if days < 0:
        msg = f"credit amount must be non-negative, got {days}"
        raise ValueError(msg)

    employee = await _lock_or_404(session, employee_id)
    before = employee.leave_balance
    employee.leave_balance = before + days
    await session.flush()

    logger.debug("Credited %s day(s) to employee %s: %s -> %s", days, employee_id, before, employee.leave_balance)
    return employee.leave_balance

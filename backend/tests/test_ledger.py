"""Tests for the balance ledger: clamped debit, credit, locking."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.dialects import postgresql

from leave_engine.exceptions import NotFoundError
from leave_engine.services import ledger
from leave_engine.services.ledger import _employee_for_update_query

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def test_debit_subtracts_days(db_session: AsyncSession, make_employee, balance_of) -> None:
    employee = await make_employee(leave_balance=10)

    new_balance = await ledger.debit(db_session, employee.id, 3)
    await db_session.commit()

    assert new_balance == 7
    assert await balance_of(employee.id) == 7


async def test_debit_clamps_at_zero(db_session: AsyncSession, make_employee, balance_of) -> None:
    employee = await make_employee(leave_balance=2)

    new_balance = await ledger.debit(db_session, employee.id, 5)
    await db_session.commit()

    assert new_balance == 0
    assert await balance_of(employee.id) == 0


async def test_credit_adds_days_without_upper_clamp(db_session: AsyncSession, make_employee, balance_of) -> None:
    employee = await make_employee(leave_balance=29.5)

    new_balance = await ledger.credit(db_session, employee.id, 3)
    await db_session.commit()

    assert new_balance == 32.5
    assert await balance_of(employee.id) == 32.5


async def test_debit_then_credit_round_trip(db_session: AsyncSession, make_employee, balance_of) -> None:
    employee = await make_employee(leave_balance=10)

    await ledger.debit(db_session, employee.id, 4)
    await ledger.credit(db_session, employee.id, 4)
    await db_session.commit()

    assert await balance_of(employee.id) == 10


async def test_debit_unknown_employee(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await ledger.debit(db_session, uuid.uuid4(), 1)


async def test_credit_unknown_employee(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await ledger.credit(db_session, uuid.uuid4(), 1)


async def test_negative_amount_rejected(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee()
    with pytest.raises(ValueError, match="non-negative"):
        await ledger.debit(db_session, employee.id, -1)
    with pytest.raises(ValueError, match="non-negative"):
        await ledger.credit(db_session, employee.id, -1)


async def test_uncommitted_debit_rolls_back(db_session: AsyncSession, make_employee, balance_of) -> None:
    """Nothing in the ledger commits; the caller's rollback discards the debit."""
    employee = await make_employee(leave_balance=10)

    await ledger.debit(db_session, employee.id, 3)
    await db_session.rollback()

    assert await balance_of(employee.id) == 10


async def test_get_employee_for_update_missing(db_session: AsyncSession) -> None:
    assert await ledger.get_employee_for_update(db_session, uuid.uuid4()) is None


def test_employee_lookup_takes_row_lock() -> None:
    sql = str(_employee_for_update_query(uuid.uuid4()).compile(dialect=postgresql.dialect()))
    assert "FOR UPDATE" in sql

from __future__ import annotations

import os
import uuid
from datetime import date
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from leave_engine.db import get_session
from leave_engine.main import app
from leave_engine.models import Employee, LeaveRequest, LeaveStatus, SQLModel
from leave_engine.services.audit import DatabaseAuditRecorder, InMemoryAuditRecorder, set_audit_recorder

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine

    MakeEmployee = Callable[..., Awaitable[Employee]]
    MakeLeave = Callable[..., Awaitable[LeaveRequest]]


def _test_database_url(tmp_path: Path) -> str:
    """TEST_DATABASE_URL (e.g. a disposable Postgres) or a per-test SQLite file."""
    return os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'leave_engine.db'}"


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """Create an async engine with a fresh schema for each test."""
    _engine = create_async_engine(_test_database_url(tmp_path))
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Session for arranging data and asserting on it. Seeds must be committed."""
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def audit_recorder() -> Iterator[InMemoryAuditRecorder]:
    """Capture audit entries in memory for every test."""
    recorder = InMemoryAuditRecorder()
    set_audit_recorder(recorder)
    yield recorder
    set_audit_recorder(DatabaseAuditRecorder())


@pytest.fixture
async def async_client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncClient]:
    """Async HTTP client whose requests each get their own session on the test database."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_employee(session_factory: async_sessionmaker[AsyncSession]) -> MakeEmployee:
    """Factory that inserts and commits an employee in a session of its own.

    The returned row is detached, so a rollback in ``db_session`` never expires it.
    """

    async def _make(
        department: str = "Eng",
        leave_balance: float = 10.0,
        first_name: str = "Erin",
        last_name: str = "Example",
        email: str | None = None,
    ) -> Employee:
        employee_id = uuid.uuid4()
        employee = Employee(
            id=employee_id,
            first_name=first_name,
            last_name=last_name,
            email=email or f"{employee_id.hex[:12]}@example.com",
            department=department,
            leave_balance=leave_balance,
        )
        async with session_factory() as session:
            session.add(employee)
            await session.commit()
        return employee

    return _make


@pytest.fixture
def make_leave(session_factory: async_sessionmaker[AsyncSession]) -> MakeLeave:
    """Factory that inserts and commits a leave request directly, bypassing the engine.

    Like ``make_employee`` the returned row is detached from ``db_session``.
    """

    async def _make(
        employee_id: uuid.UUID,
        start_date: date,
        end_date: date,
        status: LeaveStatus = LeaveStatus.APPROVED,
        leave_type: str = "Annual",
        reason: str | None = None,
    ) -> LeaveRequest:
        leave = LeaveRequest(
            employee_id=employee_id,
            type=leave_type,
            start_date=start_date,
            end_date=end_date,
            status=status.value,
            reason=reason,
        )
        async with session_factory() as session:
            session.add(leave)
            await session.commit()
        return leave

    return _make


async def current_balance(session: AsyncSession, employee_id: uuid.UUID) -> float:
    """Read an employee's committed balance, bypassing the identity map."""
    employee = await session.get(Employee, employee_id, populate_existing=True)
    assert employee is not None
    return employee.leave_balance


@pytest.fixture
def balance_of(db_session: AsyncSession) -> Callable[[uuid.UUID], Awaitable[float]]:
    async def _balance(employee_id: uuid.UUID) -> float:
        return await current_balance(db_session, employee_id)

    return _balance

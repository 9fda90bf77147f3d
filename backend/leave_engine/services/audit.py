# ruff: noqa: TC003
"""Audit recorder: a fire-and-forget side channel for lifecycle outcomes.

The engine calls :func:`record_best_effort` after its transaction commits.
Recorder failures are logged and swallowed; they never undo or fail a
transition.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from leave_engine.models.audit import AuditLog
from leave_engine.models.base import now_utc

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from leave_engine.models.enums import AuditAction

logger = logging.getLogger(__name__)


class AuditRecord(BaseModel):
    """A single audit entry as handed to a recorder."""

    action: str
    by: str
    employee_id: uuid.UUID
    leave_request_id: uuid.UUID | None = None
    timestamp: datetime = Field(default_factory=now_utc)


@runtime_checkable
class AuditRecorder(Protocol):
    """Interface for audit sinks."""

    async def record(self, entry: AuditRecord) -> None:
        """Persist or forward one audit entry. May raise; callers tolerate it."""
        ...


class DatabaseAuditRecorder:
    """Writes entries to the ``audit_log`` table in a session of its own."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_factory = session_factory

    def _factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            from leave_engine.db import get_session_factory

            self._session_factory = get_session_factory()
        return self._session_factory

    async def record(self, entry: AuditRecord) -> None:
        async with self._factory()() as session:
            session.add(
                AuditLog(
                    action=entry.action,
                    by=entry.by,
                    employee_id=entry.employee_id,
                    leave_request_id=entry.leave_request_id,
                    created_at=entry.timestamp,
                )
            )
            await session.commit()


class InMemoryAuditRecorder:
    """In-memory recorder for development and tests."""

    def __init__(self) -> None:
        self.entries: list[AuditRecord] = []

    async def record(self, entry: AuditRecord) -> None:
        self.entries.append(entry)

    def actions(self) -> list[str]:
        """Recorded actions in insertion order."""
        return [e.action for e in self.entries]


_audit_recorder: AuditRecorder = DatabaseAuditRecorder()


def get_audit_recorder() -> AuditRecorder:
    """FastAPI dependency for the audit recorder."""
    return _audit_recorder


def set_audit_recorder(recorder: AuditRecorder) -> None:
    """Override the recorder (for testing or production wiring)."""
    global _audit_recorder
    _audit_recorder = recorder


async def record_best_effort(
    recorder: AuditRecorder,
    *,
    action: AuditAction,
    by: str,
    employee_id: uuid.UUID,
    leave_request_id: uuid.UUID | None = None,
) -> bool:
    """Hand an entry to ``recorder``, logging instead of raising on failure.

    Returns True if the recorder accepted the entry.
    """
    entry = AuditRecord(action=action.value, by=by, employee_id=employee_id, leave_request_id=leave_request_id)
    try:
        await recorder.record(entry)
    except Exception:
        logger.exception("Audit write failed for %s on employee %s", entry.action, employee_id)
        return False
    return True

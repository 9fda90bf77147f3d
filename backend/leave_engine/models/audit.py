# ruff: noqa: TC003
from __future__ import annotations

import uuid

from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase


class AuditLog(UUIDBase, TimestampMixin, table=True):
    """Append-only record of a leave lifecycle outcome.

    Written after the lifecycle transaction commits, so a row here is evidence
    that the transition happened, never a precondition for it.
    """

    __tablename__ = "audit_log"

    action: str = Field(max_length=50, index=True)
    by: str = Field(max_length=255)
    employee_id: uuid.UUID = Field(index=True)
    leave_request_id: uuid.UUID | None = Field(default=None, index=True)

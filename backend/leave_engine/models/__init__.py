from sqlmodel import SQLModel

from leave_engine.models.audit import AuditLog
from leave_engine.models.base import TimestampMixin, UUIDBase
from leave_engine.models.employee import Employee
from leave_engine.models.enums import AuditAction, LeaveStatus, LeaveType
from leave_engine.models.leave import LeaveRequest

__all__ = [
    "AuditAction",
    "AuditLog",
    "Employee",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
]

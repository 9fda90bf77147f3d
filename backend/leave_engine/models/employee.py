from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase


class Employee(UUIDBase, TimestampMixin, table=True):
    """Leave-relevant projection of an employee record.

    ``leave_balance`` is owned by the ledger service and must never go negative.
    """

    __tablename__ = "employee"
    __table_args__ = (sa.CheckConstraint("leave_balance >= 0", name="ck_employee_leave_balance_non_negative"),)

    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: str = Field(max_length=255, unique=True, index=True)
    department: str = Field(max_length=100, index=True)
    leave_balance: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

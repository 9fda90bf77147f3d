"""Create employee, leave_request and audit_log tables

Revision ID: 0001_leave_lifecycle
Revises:
Create Date: 2026-10-19 09:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_leave_lifecycle"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "employee",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=False),
        sa.Column("leave_balance", sa.Float(), server_default="0", nullable=False),
        sa.CheckConstraint("leave_balance >= 0", name="ck_employee_leave_balance_non_negative"),
    )
    op.create_index("ix_employee_created_at", "employee", ["created_at"])
    op.create_index("ix_employee_email", "employee", ["email"], unique=True)
    op.create_index("ix_employee_department", "employee", ["department"])

    op.create_table(
        "leave_request",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="Pending", nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("is_paid", sa.Boolean(), nullable=True),
        sa.CheckConstraint("start_date <= end_date", name="ck_leave_request_date_order"),
    )
    op.create_index("ix_leave_request_created_at", "leave_request", ["created_at"])
    op.create_index("ix_leave_request_employee_id", "leave_request", ["employee_id"])
    op.create_index("ix_leave_request_type", "leave_request", ["type"])
    op.create_index("ix_leave_request_status", "leave_request", ["status"])
    op.create_index("ix_leave_request_status_window", "leave_request", ["status", "start_date", "end_date"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("by", sa.String(length=255), nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("leave_request_id", sa.Uuid(), nullable=True),
    )
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])
    op.create_index("ix_audit_log_action", "audit_log", ["action"])
    op.create_index("ix_audit_log_employee_id", "audit_log", ["employee_id"])
    op.create_index("ix_audit_log_leave_request_id", "audit_log", ["leave_request_id"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("leave_request")
    op.drop_table("employee")

from __future__ import annotations

import enum
import re


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class LeaveType(enum.StrEnum):
    """Known leave categories.

    The stored type is free-form; these are the values the HR screens offer.
    """

    ANNUAL = "Annual"
    SICK = "Sick"
    CASUAL = "Casual"
    EMERGENCY = "Emergency"
    VACATION = "Vacation"
    UNPAID = "Unpaid"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log, one per lifecycle outcome."""

    LEAVE_PENDING = "LEAVE_PENDING"
    LEAVE_APPROVED = "LEAVE_APPROVED"
    LEAVE_REJECTED = "LEAVE_REJECTED"

    @classmethod
    def for_status(cls, status: LeaveStatus) -> AuditAction:
        return cls(f"LEAVE_{status.value.upper()}")


PAID_LEAVE_TYPES = frozenset({LeaveType.ANNUAL, LeaveType.SICK, LeaveType.VACATION})

# Matched anywhere in the free-form type, so "Summer Vacation" counts as paid.
_PAID_CATEGORY_RE = re.compile("|".join(sorted(t.value.lower() for t in PAID_LEAVE_TYPES)), re.IGNORECASE)


def is_paid_category(leave_type: str) -> bool:
    """Classify a leave type as paid when it names one of ``PAID_LEAVE_TYPES``."""
    return _PAID_CATEGORY_RE.search(leave_type) is not None

# ruff: noqa: TC003
"""Leave lifecycle engine: creation, status transitions and the read path.

Each create/transition is one unit of work: every read that feeds a balance
change and the write itself happen in a single transaction, with the request
row and the employee row locked ``FOR UPDATE``. Balance mutations are decided
from the *stored* status seen under that lock, which makes retried or
duplicated calls safe:

    before \\ target   Approved           Rejected
    Pending            debit days         -
    Approved           - (idempotent)     credit days
    Rejected           InvalidTransition  - (idempotent)

Audit entries are emitted after commit and are best effort.
"""

from __future__ import annotations

import logging
import math
import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlmodel import col

from leave_engine.config import get_settings
from leave_engine.exceptions import (
    ConflictError,
    InfrastructureError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from leave_engine.models.employee import Employee
from leave_engine.models.enums import AuditAction, LeaveStatus, is_paid_category
from leave_engine.models.leave import LeaveRequest
from leave_engine.schemas.leave import LeaveListItem, LeaveListResponse, LeaveResponse, Pagination
from leave_engine.services import auto_approval, ledger
from leave_engine.services.audit import get_audit_recorder, record_best_effort
from leave_engine.services.duration import leave_days, resolve_window
from leave_engine.services.overlap import allow, count_approved_overlaps, overlap_window

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.schemas.leave import CreateLeavePayload, LeaveListFilters
    from leave_engine.services.audit import AuditRecorder

logger = logging.getLogger(__name__)

_TRANSITION_TARGETS = (LeaveStatus.APPROVED, LeaveStatus.REJECTED)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_leave_response(leave: LeaveRequest) -> LeaveResponse:
    """Map a leave request model to its response schema."""
    return LeaveResponse(
        id=leave.id,
        employee_id=leave.employee_id,
        type=leave.type,
        start_date=leave.start_date,
        end_date=leave.end_date,
        days=leave_days(leave.start_date, leave.end_date),
        status=LeaveStatus(leave.status),
        reason=leave.reason,
        is_paid=leave.is_paid,
        paid_category=is_paid_category(leave.type),
        created_at=leave.created_at,
    )


def _build_list_item(leave: LeaveRequest, employee: Employee | None) -> LeaveListItem:
    """Map a leave request and its (possibly missing) employee to a list row."""
    base = _build_leave_response(leave)
    return LeaveListItem(
        **base.model_dump(),
        employee_name=employee.full_name if employee else None,
        employee_email=employee.email if employee else None,
        department=employee.department if employee else None,
        leave_balance=employee.leave_balance if employee else None,
    )


async def _get_leave_or_404(session: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
    """Fetch a leave request by ID. Raises 404 if not found."""
    leave = await session.get(LeaveRequest, request_id)
    if leave is None:
        raise NotFoundError("Leave request not found")
    return leave


async def _get_leave_for_update(session: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
    """Load a leave request under a FOR UPDATE lock, refreshing the identity map. Raises 404."""
    result = await session.execute(
        select(LeaveRequest)
        .where(col(LeaveRequest.id) == request_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    leave = result.scalar_one_or_none()
    if leave is None:
        raise NotFoundError("Leave request not found")
    return leave


@asynccontextmanager
async def _unit_of_work(session: AsyncSession) -> AsyncIterator[None]:
    """Commit on success; roll back fully on any error.

    Driver and connection failures surface as InfrastructureError (retryable),
    constraint violations as ConflictError, domain errors unchanged.
    """
    try:
        yield
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Leave request conflicts with stored data") from exc
    except DBAPIError as exc:
        logger.exception("Leave transaction failed, rolled back")
        await session.rollback()
        raise InfrastructureError from exc
    except Exception:
        await session.rollback()
        raise


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_leave_request(
    session: AsyncSession,
    payload: CreateLeavePayload,
    *,
    actor: str = "system",
    audit: AuditRecorder | None = None,
) -> LeaveResponse:
    """Create a leave request whose initial status is decided by auto-approval.

    Flow:
    1. Count inclusive days.
    2. Lock the employee row (missing employee: stay Pending, fail open).
    3. Decide Approved/Pending from balance and department overlaps.
    4. Insert the request with the decided status.
    5. If Approved, debit the balance in the same transaction.
    6. Commit, then audit LEAVE_<STATUS> best effort.

    Insufficient balance is not an error; the request simply waits for review.
    """
    days = leave_days(payload.start_date, payload.end_date)

    async with _unit_of_work(session):
        employee = await ledger.get_employee_for_update(session, payload.employee_id)
        decision = await auto_approval.decide(session, employee, days, payload.start_date, payload.end_date)

        leave = LeaveRequest(
            employee_id=payload.employee_id,
            type=payload.type,
            start_date=payload.start_date,
            end_date=payload.end_date,
            reason=payload.reason or None,
            status=decision.value,
        )
        session.add(leave)
        await session.flush()

        if decision is LeaveStatus.APPROVED:
            await ledger.debit(session, payload.employee_id, days)

    await session.refresh(leave)
    logger.info("Leave request %s created for employee %s as %s", leave.id, leave.employee_id, decision.value)

    await record_best_effort(
        audit or get_audit_recorder(),
        action=AuditAction.for_status(decision),
        by=actor,
        employee_id=leave.employee_id,
        leave_request_id=leave.id,
    )
    return _build_leave_response(leave)


async def transition_leave_request(
    session: AsyncSession,
    request_id: uuid.UUID,
    next_status: LeaveStatus,
    *,
    reason: str | None = None,
    overlap_threshold: int | None = None,
    paid: bool | None = None,
    actor: str = "system",
    audit: AuditRecorder | None = None,
) -> LeaveResponse:
    """Move a request to Approved or Rejected, adjusting the balance exactly once.

    Approval is refused with 409 when ``overlap_threshold`` (default from
    settings) or more other approved leaves in the same department overlap the
    request. ``reason``, when non-empty, replaces the stored reason. ``paid`` is
    recorded on approval and never gates the debit.
    """
    if next_status not in _TRANSITION_TARGETS:
        msg = f"Cannot transition a leave request to {next_status.value}"
        raise ValidationError(msg)

    async with _unit_of_work(session):
        leave = await _get_leave_for_update(session, request_id)
        before = LeaveStatus(leave.status)
        days = leave_days(leave.start_date, leave.end_date)

        if before is LeaveStatus.REJECTED and next_status is LeaveStatus.APPROVED:
            raise InvalidTransitionError("Rejected leave requests cannot be approved")

        if next_status is LeaveStatus.APPROVED:
            employee = await session.get(Employee, leave.employee_id)
            if employee is None:
                raise NotFoundError("Employee not found")
            threshold = overlap_threshold if overlap_threshold is not None else get_settings().overlap_threshold
            overlaps = await count_approved_overlaps(
                session, employee.department, leave.start_date, leave.end_date, exclude_request_id=leave.id
            )
            if not allow(overlaps, threshold):
                msg = f"Too many overlapping leaves in department ({overlaps}/{threshold})"
                raise ConflictError(msg)

        leave.status = next_status.value
        if reason:
            leave.reason = reason

        if next_status is LeaveStatus.APPROVED:
            if paid is not None:
                leave.is_paid = paid
            # First approval only; a retried approve must not debit twice.
            if before is not LeaveStatus.APPROVED:
                await ledger.debit(session, leave.employee_id, days)
        elif before is LeaveStatus.APPROVED:
            await ledger.credit(session, leave.employee_id, days)

        await session.flush()

    await session.refresh(leave)
    logger.info("Leave request %s moved %s -> %s by %s", leave.id, before.value, next_status.value, actor)

    await record_best_effort(
        audit or get_audit_recorder(),
        action=AuditAction.for_status(next_status),
        by=actor,
        employee_id=leave.employee_id,
        leave_request_id=leave.id,
    )
    return _build_leave_response(leave)


async def get_leave_request(session: AsyncSession, request_id: uuid.UUID) -> LeaveResponse:
    """Get a single leave request by ID."""
    leave = await _get_leave_or_404(session, request_id)
    return _build_leave_response(leave)


async def delete_leave_request(session: AsyncSession, request_id: uuid.UUID) -> LeaveResponse:
    """Hard-delete a leave request (admin escape hatch).

    Not a lifecycle transition: the employee's balance is left untouched even
    if the request was approved.
    """
    async with _unit_of_work(session):
        leave = await _get_leave_or_404(session, request_id)
        response = _build_leave_response(leave)
        await session.delete(leave)

    logger.warning("Leave request %s hard-deleted (status was %s)", request_id, response.status.value)
    return response


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_leave_requests(session: AsyncSession, filters: LeaveListFilters) -> LeaveListResponse:
    """List leave requests with filters and pagination, newest start date first.

    The date window (month intersected with date_from/date_to) uses the same
    overlap predicate as the approval policy.
    """
    settings = get_settings()
    size = min(filters.size or settings.default_page_size, settings.max_page_size)

    window_start, window_end = resolve_window(filters.date_from, filters.date_to, filters.month)
    conditions = overlap_window(window_start, window_end)

    if filters.status is not None:
        conditions.append(col(LeaveRequest.status) == filters.status.value)
    if filters.type is not None:
        conditions.append(col(LeaveRequest.type) == filters.type)
    if filters.employee_id is not None:
        conditions.append(col(LeaveRequest.employee_id) == filters.employee_id)
    if filters.department is not None:
        conditions.append(col(Employee.department) == filters.department)
    if filters.q:
        pattern = f"%{_escape_like(filters.q.strip())}%"
        conditions.append(
            or_(
                col(Employee.first_name).ilike(pattern, escape="\\"),
                col(Employee.last_name).ilike(pattern, escape="\\"),
                col(Employee.email).ilike(pattern, escape="\\"),
            )
        )

    employee_join = col(Employee.id) == col(LeaveRequest.employee_id)

    count_result = await session.execute(
        select(func.count()).select_from(LeaveRequest).outerjoin(Employee, employee_join).where(*conditions)
    )
    total = int(count_result.scalar_one())

    result = await session.execute(
        select(LeaveRequest, Employee)
        .outerjoin(Employee, employee_join)
        .where(*conditions)
        .order_by(col(LeaveRequest.start_date).desc(), col(LeaveRequest.created_at).desc())
        .offset((filters.page - 1) * size)
        .limit(size)
    )
    rows = result.all()

    return LeaveListResponse(
        items=[_build_list_item(leave, employee) for leave, employee in rows],
        pagination=Pagination(
            page=filters.page,
            size=size,
            total=total,
            total_pages=math.ceil(total / size),
        ),
    )

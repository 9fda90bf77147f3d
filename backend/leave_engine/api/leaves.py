# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from leave_engine.api.deps import AdminDep, AuditDep, AuthDep
from leave_engine.db import SessionDep
from leave_engine.models.enums import LeaveStatus
from leave_engine.schemas.leave import (
    CreateLeavePayload,
    LeaveListFilters,
    LeaveListResponse,
    LeaveResponse,
    TransitionPayload,
)
from leave_engine.services import leave as leave_service

leaves_router = APIRouter(prefix="/leave-requests", tags=["leave-requests"])


@leaves_router.post("", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_request(
    payload: CreateLeavePayload,
    session: SessionDep,
    auth: AuthDep,
    audit: AuditDep,
) -> LeaveResponse:
    """Create a leave request; it is auto-approved when balance and overlap allow."""
    return await leave_service.create_leave_request(session, payload, actor=auth.actor, audit=audit)


@leaves_router.get("", response_model=LeaveListResponse)
async def list_leave_requests(
    session: SessionDep,
    auth: AuthDep,
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    month: str | None = Query(default=None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    leave_type: str | None = Query(default=None, alias="type"),
    department: str | None = Query(default=None),
    employee_id: uuid.UUID | None = Query(default=None),
    q: str | None = Query(default=None, max_length=100),
    page: int = Query(default=1, ge=1),
    size: int | None = Query(default=None, ge=1),
) -> LeaveListResponse:
    """List leave requests with date-window, status, type, department and employee filters."""
    filters = LeaveListFilters(
        date_from=date_from,
        date_to=date_to,
        month=month,
        status=status_filter,
        type=leave_type,
        department=department,
        employee_id=employee_id,
        q=q,
        page=page,
        size=size,
    )
    return await leave_service.list_leave_requests(session, filters)


@leaves_router.get("/{request_id}", response_model=LeaveResponse)
async def get_leave_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveResponse:
    """Get a single leave request."""
    return await leave_service.get_leave_request(session, request_id)


@leaves_router.post("/{request_id}/transition", response_model=LeaveResponse)
async def transition_leave_request(
    request_id: uuid.UUID,
    payload: TransitionPayload,
    session: SessionDep,
    auth: AdminDep,
    audit: AuditDep,
) -> LeaveResponse:
    """Approve or reject a leave request (admin only)."""
    return await leave_service.transition_leave_request(
        session,
        request_id,
        payload.status,
        reason=payload.reason,
        overlap_threshold=payload.overlap_threshold,
        paid=payload.paid,
        actor=auth.actor,
        audit=audit,
    )


@leaves_router.delete("/{request_id}", response_model=LeaveResponse)
async def delete_leave_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> LeaveResponse:
    """Hard-delete a leave request without touching the balance (admin only)."""
    return await leave_service.delete_leave_request(session, request_id)

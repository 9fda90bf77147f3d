# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from leave_engine.api.deps import AdminDep, AuthDep
from leave_engine.db import SessionDep
from leave_engine.schemas.employee import EmployeeListResponse, EmployeeResponse, UpsertEmployeeRequest
from leave_engine.services import employee as employee_service

employees_router = APIRouter(prefix="/employees", tags=["employees"])


@employees_router.put("/{employee_id}", response_model=EmployeeResponse)
async def upsert_employee(
    employee_id: uuid.UUID,
    payload: UpsertEmployeeRequest,
    session: SessionDep,
    auth: AdminDep,
) -> EmployeeResponse:
    """Create or update an employee (admin only)."""
    return await employee_service.upsert_employee(session, employee_id, payload)


@employees_router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> EmployeeResponse:
    """Get an employee with their current leave balance."""
    return await employee_service.get_employee(session, employee_id)


@employees_router.get("", response_model=EmployeeListResponse)
async def list_employees(
    session: SessionDep,
    auth: AuthDep,
    department: str | None = Query(default=None),
) -> EmployeeListResponse:
    """List employees, optionally filtered by department."""
    return await employee_service.list_employees(session, department)

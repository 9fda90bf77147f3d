# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_engine.exceptions import ConflictError, NotFoundError
from leave_engine.models.employee import Employee
from leave_engine.schemas.employee import EmployeeListResponse, EmployeeResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.schemas.employee import UpsertEmployeeRequest


def _build_employee_response(employee: Employee) -> EmployeeResponse:
    """Map an employee model to its response schema."""
    return EmployeeResponse(
        id=employee.id,
        first_name=employee.first_name,
        last_name=employee.last_name,
        email=employee.email,
        department=employee.department,
        leave_balance=employee.leave_balance,
        created_at=employee.created_at,
    )


async def upsert_employee(
    session: AsyncSession,
    employee_id: uuid.UUID,
    payload: UpsertEmployeeRequest,
) -> EmployeeResponse:
    """Create an employee, or update the profile fields of an existing one.

    The opening balance is only written on creation. Once the row exists its
    balance changes exclusively through the ledger.
    """
    employee = await session.get(Employee, employee_id)
    if employee is None:
        employee = Employee(
            id=employee_id,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            department=payload.department,
            leave_balance=payload.opening_balance,
        )
        session.add(employee)
    else:
        employee.first_name = payload.first_name
        employee.last_name = payload.last_name
        employee.email = payload.email
        employee.department = payload.department

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Email already in use by another employee") from None

    await session.commit()
    await session.refresh(employee)
    return _build_employee_response(employee)


async def get_employee(session: AsyncSession, employee_id: uuid.UUID) -> EmployeeResponse:
    """Get a single employee by ID."""
    employee = await session.get(Employee, employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    return _build_employee_response(employee)


async def list_employees(session: AsyncSession, department: str | None = None) -> EmployeeListResponse:
    """List employees, optionally restricted to one department, ordered by name."""
    query = select(Employee)
    if department is not None:
        query = query.where(col(Employee.department) == department)
    result = await session.execute(query.order_by(col(Employee.last_name), col(Employee.first_name)))
    employees = list(result.scalars().all())
    return EmployeeListResponse(
        items=[_build_employee_response(e) for e in employees],
        total=len(employees),
    )

# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, status

from leave_engine.exceptions import AppError
from leave_engine.schemas.auth import AuthContext
from leave_engine.services.audit import AuditRecorder, get_audit_recorder


async def get_auth_context(
    x_actor: str = Header(default="system"),
    x_role: str = Header(default="employee"),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(actor=x_actor, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if not auth.is_admin:
        raise AppError("Admin access required", status_code=status.HTTP_403_FORBIDDEN)
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]

AuditDep = Annotated[AuditRecorder, Depends(get_audit_recorder)]

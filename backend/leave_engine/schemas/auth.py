from __future__ import annotations

from pydantic import BaseModel


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers.

    ``actor`` is recorded verbatim as the ``by`` column of audit entries.
    """

    actor: str = "system"
    role: str = "employee"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from hrms.models.enums import Role

ADMIN_ROLES = frozenset({Role.ADMIN, Role.HR})


class AuthContext(BaseModel):
    """Caller identity decoded from the bearer token plus request metadata."""

    user_id: uuid.UUID
    role: Role = Role.EMPLOYEE
    employee_id: uuid.UUID | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def recipient_id(self) -> uuid.UUID:
        """Id notifications are addressed to: the employee when linked, else the user."""
        return self.employee_id or self.user_id

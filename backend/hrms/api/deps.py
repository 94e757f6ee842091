# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hrms.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError
from hrms.models.enums import Role
from hrms.schemas.auth import AuthContext
from hrms.security import decode_access_token

_bearer = HTTPBearer(auto_error=False)


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> AuthContext:
    """Build the caller's context from a bearer JWT."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    claims = decode_access_token(credentials.credentials)
    try:
        role = Role(claims.get("role", Role.EMPLOYEE.value))
        user_id = uuid.UUID(str(claims["sub"]))
        employee_id = uuid.UUID(str(claims["employee_id"])) if claims.get("employee_id") else None
    except ValueError:
        raise AuthenticationError("Invalid token") from None

    return AuthContext(
        user_id=user_id,
        role=role,
        employee_id=employee_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require the ADMIN or HR role."""
    if not auth.is_admin:
        raise PermissionDeniedError("Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def require_employee_id(
    auth: AuthDep,
) -> uuid.UUID:
    """The employee profile linked to the caller's account."""
    if auth.employee_id is None:
        raise NotFoundError("Employee profile not found")
    return auth.employee_id


EmployeeIdDep = Annotated[uuid.UUID, Depends(require_employee_id)]

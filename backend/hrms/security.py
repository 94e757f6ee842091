"""JWT access token helpers.

Login and password handling live outside this service; it only issues tokens
for development tooling and verifies the bearer tokens it receives.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from hrms.config import get_settings
from hrms.exceptions import AuthenticationError


def create_access_token(
    user_id: uuid.UUID,
    role: str,
    employee_id: uuid.UUID | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Encode a signed access token for the given user."""
    settings = get_settings()
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": expire,
        "jti": str(uuid.uuid4()),
    }
    if employee_id is not None:
        payload["employee_id"] = str(employee_id)
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify a token's signature and expiry and return its claims."""
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired") from None
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token") from None

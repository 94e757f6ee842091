from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from hrms.models.audit import AuditLog

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from hrms.models.enums import AuditAction, AuditEntityType
    from hrms.schemas.auth import AuthContext


def to_audit_value(value: Any) -> Any:
    """Convert a single value to its JSON-safe audit form."""
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, dict):
        return {k: to_audit_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_audit_value(v) for v in value]
    return value


def model_to_audit_dict(model: SQLModel) -> dict[str, Any]:
    """Serialize a SQLModel instance to a JSON-safe dict for audit logging."""
    return {key: to_audit_value(value) for key, value in model.model_dump().items()}


async def write_audit_log(
    session: AsyncSession,
    auth: AuthContext,
    *,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID | None,
    action: AuditAction,
    old_values: dict[str, Any] | None = None,
    new_values: dict[str, Any] | None = None,
) -> AuditLog:
    """Write an immutable audit log entry within the caller's transaction."""
    entry = AuditLog(
        action=action.value,
        performed_by=auth.user_id,
        entity_type=entity_type.value,
        entity_id=entity_id,
        old_values=old_values,
        new_values=new_values,
        ip_address=auth.ip_address,
        user_agent=auth.user_agent,
    )
    session.add(entry)
    return entry

# ruff: noqa: TC003
from __future__ import annotations

import uuid

from sqlmodel import Field

from hrms.models.base import TimestampMixin, UUIDBase
from hrms.models.enums import NotificationType


class Notification(UUIDBase, TimestampMixin, table=True):
    """An in-app message addressed to one user."""

    __tablename__ = "notification"

    user_id: uuid.UUID = Field(index=True)
    title: str = Field(max_length=255)
    message: str
    type: str = Field(default=NotificationType.GENERAL.value, max_length=20)
    is_read: bool = Field(default=False, index=True)

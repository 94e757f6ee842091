# ruff: noqa: TC003
from __future__ import annotations

import uuid

from sqlmodel import Field

from hrms.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from hrms.models.enums import SettingType


class SystemSetting(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """A typed key/value setting. The value is always stored as text."""

    __tablename__ = "system_setting"

    setting_key: str = Field(max_length=100, unique=True, index=True)
    setting_value: str
    setting_type: str = Field(default=SettingType.STRING.value, max_length=20)
    description: str | None = None
    is_editable: bool = True
    updated_by: uuid.UUID | None = None

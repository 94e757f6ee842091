# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from hrms.models.enums import SettingCategory, SettingType


class CreateSettingRequest(BaseModel):
    """Request body for adding a new setting key."""

    setting_key: str = Field(min_length=1, max_length=100, pattern=r"^[A-Z][A-Z0-9_]*$")
    setting_value: Any
    setting_type: SettingType = SettingType.STRING
    description: str | None = Field(default=None, max_length=500)
    is_editable: bool = True


class UpdateSettingRequest(BaseModel):
    value: Any


class UpdateMultipleRequest(BaseModel):
    """Key to new value. Each key is applied independently."""

    settings: dict[str, Any] = Field(min_length=1)


class ExportedSetting(BaseModel):
    value: Any
    type: SettingType
    description: str | None = None


class ImportSettingsRequest(BaseModel):
    settings: dict[str, ExportedSetting] = Field(min_length=1)


class ResetSettingsRequest(BaseModel):
    confirm: bool = False


class SettingResponse(BaseModel):
    id: uuid.UUID
    setting_key: str
    setting_value: str
    value: Any
    setting_type: SettingType
    category: SettingCategory
    description: str | None
    is_editable: bool
    updated_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime


class SettingsByCategoryResponse(BaseModel):
    company: list[SettingResponse]
    attendance: list[SettingResponse]
    leave: list[SettingResponse]
    payroll: list[SettingResponse]
    system: list[SettingResponse]


class InitializeSettingsResponse(BaseModel):
    created: list[str]
    created_count: int


class ResetSettingsResponse(BaseModel):
    reset: list[str]
    reset_count: int


class WorkingHoursSettings(BaseModel):
    working_hours_per_day: float
    working_days_per_week: float
    late_mark_threshold: float
    half_day_threshold: float
    overtime_threshold: float


class PayrollSettings(BaseModel):
    payroll_cutoff_date: float


class LeaveSettings(BaseModel):
    leave_approval_required: bool
    auto_approve_sick_leave: bool


class CompanySettings(BaseModel):
    company_name: str
    company_address: str

# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid

from pydantic import BaseModel, Field

from hrms.models.enums import HolidayType


class CreateHolidayRequest(BaseModel):
    """Request body for creating a holiday."""

    name: str = Field(min_length=2, max_length=255)
    date: datetime.date
    type: HolidayType = HolidayType.PUBLIC
    description: str | None = Field(default=None, max_length=500)


class UpdateHolidayRequest(BaseModel):
    """Partial update of a holiday."""

    name: str | None = Field(default=None, min_length=2, max_length=255)
    date: datetime.date | None = None
    type: HolidayType | None = None
    description: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None


class BulkHolidayRequest(BaseModel):
    holidays: list[CreateHolidayRequest] = Field(min_length=1)


class HolidayResponse(BaseModel):
    """Response schema for a holiday."""

    id: uuid.UUID
    name: str
    date: datetime.date
    type: HolidayType
    description: str | None
    is_active: bool


class HolidayTypeStats(BaseModel):
    type: HolidayType
    count: int
    holidays: list[str]


class HolidayListResponse(BaseModel):
    """Holidays for a year plus a per-type breakdown."""

    items: list[HolidayResponse]
    total: int
    year: int
    stats: list[HolidayTypeStats]


class BulkHolidayResponse(BaseModel):
    """Rows actually inserted; duplicates are skipped silently."""

    created: list[HolidayResponse]
    created_count: int
    skipped_count: int


class WorkingDaysResponse(BaseModel):
    year: int
    month: int
    working_days: int
    holidays: list[HolidayResponse]


class WorkingDayCheckResponse(BaseModel):
    date: datetime.date
    is_working_day: bool

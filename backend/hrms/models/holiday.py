# ruff: noqa: TC003
from __future__ import annotations

import datetime

import sqlalchemy as sa
from sqlmodel import Field

from hrms.models.base import TimestampMixin, UUIDBase
from hrms.models.enums import HolidayType


class Holiday(UUIDBase, TimestampMixin, table=True):
    """A company holiday that is not a working day while active."""

    __tablename__ = "holiday"
    __table_args__ = (sa.UniqueConstraint("date", "name", name="uq_holiday_date_name"),)

    name: str = Field(max_length=255)
    date: datetime.date = Field(index=True)
    type: str = Field(default=HolidayType.PUBLIC.value, max_length=50)
    description: str | None = None
    is_active: bool = True

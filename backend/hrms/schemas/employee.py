# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field


class UpsertEmployeeRequest(BaseModel):
    """Request body for upserting an employee in the development directory."""

    employee_code: str = Field(min_length=1, max_length=50)
    full_name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=255)
    department: str | None = Field(default=None, max_length=100)
    designation: str | None = Field(default=None, max_length=100)
    joining_date: date | None = None
    is_active: bool = True


class EmployeeResponse(BaseModel):
    """Response schema for an employee."""

    id: uuid.UUID
    employee_code: str
    full_name: str
    email: str
    department: str | None
    designation: str | None
    joining_date: date | None
    is_active: bool


class EmployeeListResponse(BaseModel):
    """List of employees."""

    items: list[EmployeeResponse]
    total: int

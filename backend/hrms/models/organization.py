# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from sqlmodel import Field

from hrms.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase


class Department(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """An organizational unit. Employees reference it by name."""

    __tablename__ = "department"

    name: str = Field(max_length=100, index=True)
    description: str | None = Field(default=None, max_length=500)
    head_id: uuid.UUID | None = None
    is_active: bool = True


class EmployeeManager(UUIDBase, TimestampMixin, table=True):
    """Time-bounded reporting edge from an employee to their manager.

    At most one edge per employee is active; assigning a new manager closes
    the previous edge at the new edge's effective_from.
    """

    __tablename__ = "employee_manager"

    employee_id: uuid.UUID = Field(index=True)
    manager_id: uuid.UUID = Field(index=True)
    effective_from: date
    effective_to: date | None = None
    is_active: bool = Field(default=True, index=True)

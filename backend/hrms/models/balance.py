# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from hrms.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase


class EmployeeLeaveBalance(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Per-employee, per-leave-type, per-year leave ledger row.

    remaining_days is stored for querying and kept equal to
    allocated_days + carried_forward_days - used_days on every write.
    """

    __tablename__ = "employee_leave_balance"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "leave_type", "year", name="uq_balance_employee_type_year"),
    )

    employee_id: uuid.UUID = Field(index=True)
    leave_type: str = Field(max_length=50)
    year: int = Field(index=True)
    allocated_days: float = 0
    carried_forward_days: float = 0
    used_days: float = 0
    remaining_days: float = 0

    def recompute_remaining(self) -> None:
        self.remaining_days = self.allocated_days + self.carried_forward_days - self.used_days

# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from hrms.models.enums import LeaveType
from hrms.schemas.policy import LeavePolicyResponse


class LeaveBalanceResponse(BaseModel):
    """Leave balance for one employee, leave type and year."""

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: LeaveType
    year: int
    allocated_days: float
    carried_forward_days: float
    used_days: float
    remaining_days: float


class LeaveBalanceWithPolicy(LeaveBalanceResponse):
    """A balance joined with the policy fields shown next to it."""

    annual_limit: int
    carry_forward_allowed: bool


class EmployeeBalancesResponse(BaseModel):
    """All of an employee's balances for a year."""

    employee_id: uuid.UUID
    year: int
    balances: list[LeaveBalanceWithPolicy]


class LeaveValidationResult(BaseModel):
    """Outcome of checking a leave request. Lists every violation found."""

    is_valid: bool
    errors: list[str]
    policy: LeavePolicyResponse
    balance: LeaveBalanceResponse

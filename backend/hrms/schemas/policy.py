# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from hrms.models.enums import ApprovalLevel, LeaveType

# ---------------------------------------------------------------------------
# Leave policy schemas
# ---------------------------------------------------------------------------


class CreateLeavePolicyRequest(BaseModel):
    """Request body for creating a leave policy."""

    leave_type: LeaveType
    annual_limit: int = Field(ge=0, le=365)
    carry_forward_allowed: bool = False
    carry_forward_limit: int = Field(default=0, ge=0, le=30)
    min_notice_days: int = Field(default=1, ge=0, le=30)
    max_consecutive_days: int | None = Field(default=None, ge=1, le=365)
    requires_approval: bool = True
    approval_level: ApprovalLevel = ApprovalLevel.MANAGER


class UpdateLeavePolicyRequest(BaseModel):
    """Partial update of a leave policy. Unset fields are left unchanged."""

    annual_limit: int | None = Field(default=None, ge=0, le=365)
    carry_forward_allowed: bool | None = None
    carry_forward_limit: int | None = Field(default=None, ge=0, le=30)
    min_notice_days: int | None = Field(default=None, ge=0, le=30)
    max_consecutive_days: int | None = Field(default=None, ge=1, le=365)
    requires_approval: bool | None = None
    approval_level: ApprovalLevel | None = None


class LeavePolicyResponse(BaseModel):
    """Response schema for a leave policy."""

    id: uuid.UUID
    leave_type: LeaveType
    annual_limit: int
    carry_forward_allowed: bool
    carry_forward_limit: int
    min_notice_days: int
    max_consecutive_days: int | None
    requires_approval: bool
    approval_level: ApprovalLevel
    is_active: bool
    created_at: datetime
    updated_at: datetime


class LeaveTypeStats(BaseModel):
    """Usage of one leave type across employees for a year."""

    leave_type: LeaveType
    annual_limit: int
    employees_with_balance: int
    avg_used_days: float
    avg_remaining_days: float


class LeavePolicyListResponse(BaseModel):
    """Active leave policies with per-type usage for the current year."""

    policies: list[LeavePolicyResponse]
    stats: list[LeaveTypeStats]
    total: int


# ---------------------------------------------------------------------------
# Leave validation schemas
# ---------------------------------------------------------------------------


class ValidateLeaveRequest(BaseModel):
    """A prospective leave request to check against policy and balance."""

    employee_id: uuid.UUID | None = None
    leave_type: LeaveType
    start_date: date
    end_date: date
    requested_days: float = Field(gt=0)

    @model_validator(mode="after")
    def _end_not_before_start(self) -> Self:
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self

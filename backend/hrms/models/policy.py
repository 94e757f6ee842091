from __future__ import annotations

from sqlmodel import Field

from hrms.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from hrms.models.enums import ApprovalLevel


class LeavePolicy(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Rules for one leave type. Soft-deleted through is_active."""

    __tablename__ = "leave_policy"

    leave_type: str = Field(max_length=50, unique=True, index=True)
    annual_limit: int
    carry_forward_allowed: bool = False
    carry_forward_limit: int = 0
    min_notice_days: int = 1
    max_consecutive_days: int | None = None
    requires_approval: bool = True
    approval_level: str = Field(default=ApprovalLevel.MANAGER.value, max_length=50)
    is_active: bool = Field(default=True, index=True)

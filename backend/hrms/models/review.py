# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from hrms.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from hrms.models.enums import ReviewStatus


class PerformanceReview(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """A review of one employee over one period, moving DRAFT to APPROVED."""

    __tablename__ = "performance_review"

    employee_id: uuid.UUID = Field(index=True)
    reviewer_id: uuid.UUID = Field(index=True)
    review_period_start: date
    review_period_end: date
    goals_achievement: float | None = None
    technical_skills: float | None = None
    communication_skills: float | None = None
    leadership_skills: float | None = None
    overall_rating: float | None = None
    feedback: str | None = None
    employee_comments: str | None = None
    status: str = Field(default=ReviewStatus.DRAFT.value, max_length=20, index=True)
    submitted_at: datetime | None = Field(
        default=None,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
    )
    reviewed_at: datetime | None = Field(
        default=None,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
    )
    approved_at: datetime | None = Field(
        default=None,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
    )

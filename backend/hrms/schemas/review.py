# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Annotated, Self

from pydantic import BaseModel, Field, model_validator

from hrms.models.enums import ReviewStatus

Rating = Annotated[float, Field(ge=1.0, le=5.0)]


class ReviewRatings(BaseModel):
    """The four weighted sub-ratings of a review. Missing ratings score 0."""

    goals_achievement: Rating | None = None
    technical_skills: Rating | None = None
    communication_skills: Rating | None = None
    leadership_skills: Rating | None = None


class CreateReviewRequest(ReviewRatings):
    """Request body for creating a performance review in DRAFT."""

    employee_id: uuid.UUID
    reviewer_id: uuid.UUID
    review_period_start: date
    review_period_end: date
    feedback: str | None = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def _period_is_ordered(self) -> Self:
        if self.review_period_end <= self.review_period_start:
            raise ValueError("review_period_end must be after review_period_start")
        return self


class UpdateReviewRequest(ReviewRatings):
    """Editable review fields. Status only changes through the workflow actions."""

    feedback: str | None = Field(default=None, max_length=2000)
    employee_comments: str | None = Field(default=None, max_length=2000)


class ReviewFeedbackRequest(BaseModel):
    feedback: str | None = Field(default=None, max_length=2000)


class AnnualCycleRequest(BaseModel):
    year: int = Field(ge=2020, le=2030)
    reviewer_id: uuid.UUID


class ReviewResponse(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str | None
    reviewer_id: uuid.UUID
    reviewer_name: str | None
    review_period_start: date
    review_period_end: date
    goals_achievement: float | None
    technical_skills: float | None
    communication_skills: float | None
    leadership_skills: float | None
    overall_rating: float | None
    feedback: str | None
    employee_comments: str | None
    status: ReviewStatus
    submitted_at: datetime | None
    reviewed_at: datetime | None
    approved_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ReviewListResponse(BaseModel):
    items: list[ReviewResponse]
    total: int


class CycleItemResult(BaseModel):
    """Outcome for one employee of an annual review cycle."""

    employee_id: uuid.UUID
    success: bool
    review_id: uuid.UUID | None = None
    error: str | None = None


class AnnualCycleResponse(BaseModel):
    year: int
    results: list[CycleItemResult]
    created_count: int
    failed_count: int


class AverageRatings(BaseModel):
    avg_overall_rating: float | None
    avg_goals_achievement: float | None
    avg_technical_skills: float | None
    avg_communication_skills: float | None
    avg_leadership_skills: float | None
    total_reviews: int


class EmployeeReviewHistory(BaseModel):
    employee_id: uuid.UUID
    reviews: list[ReviewResponse]
    average_ratings: AverageRatings


class PerformanceStats(BaseModel):
    avg_rating: float
    total_reviews: int
    high_performers: int
    low_performers: int


class PerformanceAnalytics(BaseModel):
    year: int
    department: str
    analytics: PerformanceStats


class ReviewDueEntry(BaseModel):
    employee_id: uuid.UUID
    employee_code: str
    full_name: str
    department: str | None
    joining_date: date | None
    last_review_date: date | None
    days_since_last_review: int | None


class ReviewsDueResponse(BaseModel):
    employees_due_for_review: int
    employees: list[ReviewDueEntry]


class TeamReviewsResponse(BaseModel):
    is_manager: bool
    reviews: list[ReviewResponse]

# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from hrms.api.deps import AdminDep, AuthDep, EmployeeIdDep, get_auth_context
from hrms.db import SessionDep
from hrms.models.enums import ReviewStatus
from hrms.schemas.common import ApiResponse
from hrms.schemas.review import (
    AnnualCycleRequest,
    AnnualCycleResponse,
    CreateReviewRequest,
    EmployeeReviewHistory,
    PerformanceAnalytics,
    ReviewFeedbackRequest,
    ReviewListResponse,
    ReviewResponse,
    ReviewsDueResponse,
    TeamReviewsResponse,
    UpdateReviewRequest,
)
from hrms.services import review as review_service

router = APIRouter(
    prefix="/api/performance",
    tags=["performance"],
    dependencies=[Depends(get_auth_context)],
)


@router.get("/my-reviews", response_model=ApiResponse[ReviewListResponse])
async def get_my_reviews(
    session: SessionDep,
    employee_id: EmployeeIdDep,
) -> ApiResponse[ReviewListResponse]:
    return ApiResponse(data=await review_service.list_reviews(session, employee_id=employee_id, limit=1000))


@router.get("/my-team-reviews", response_model=ApiResponse[TeamReviewsResponse])
async def get_my_team_reviews(
    session: SessionDep,
    employee_id: EmployeeIdDep,
) -> ApiResponse[TeamReviewsResponse]:
    """Reviews where the caller is the reviewer."""
    return ApiResponse(data=await review_service.get_team_reviews(session, employee_id))


@router.get("", response_model=ApiResponse[ReviewListResponse])
async def list_reviews(
    session: SessionDep,
    auth: AdminDep,
    employee_id: uuid.UUID | None = Query(default=None),
    reviewer_id: uuid.UUID | None = Query(default=None),
    review_status: ReviewStatus | None = Query(default=None, alias="status"),
    year: int | None = Query(default=None, ge=2000, le=2100),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> ApiResponse[ReviewListResponse]:
    reviews = await review_service.list_reviews(session, employee_id, reviewer_id, review_status, year, offset, limit)
    return ApiResponse(data=reviews)


@router.post("", response_model=ApiResponse[ReviewResponse], status_code=status.HTTP_201_CREATED)
async def create_review(
    payload: CreateReviewRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[ReviewResponse]:
    review = await review_service.create_review(session, auth, payload)
    return ApiResponse(message="Performance review created successfully", data=review)


@router.get("/analytics", response_model=ApiResponse[PerformanceAnalytics])
async def get_performance_analytics(
    session: SessionDep,
    auth: AdminDep,
    department: str | None = Query(default=None),
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> ApiResponse[PerformanceAnalytics]:
    return ApiResponse(data=await review_service.get_performance_analytics(session, department, year))


@router.get("/reviews-due", response_model=ApiResponse[ReviewsDueResponse])
async def get_reviews_due(session: SessionDep, auth: AdminDep) -> ApiResponse[ReviewsDueResponse]:
    return ApiResponse(data=await review_service.get_reviews_due(session))


@router.post(
    "/annual-cycle",
    response_model=ApiResponse[AnnualCycleResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_annual_review_cycle(
    payload: AnnualCycleRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[AnnualCycleResponse]:
    """Create a DRAFT review for every active employee. Failures are reported per employee."""
    result = await review_service.create_annual_review_cycle(session, auth, payload.year, payload.reviewer_id)
    return ApiResponse(
        message=f"Annual review cycle created for {result.created_count} employees",
        data=result,
    )


@router.get("/employee/{employee_id}/history", response_model=ApiResponse[EmployeeReviewHistory])
async def get_employee_history(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[EmployeeReviewHistory]:
    return ApiResponse(data=await review_service.get_employee_history(session, employee_id))


# ---------------------------------------------------------------------------
# Single review
# ---------------------------------------------------------------------------


@router.get("/{review_id}", response_model=ApiResponse[ReviewResponse])
async def get_review(review_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> ApiResponse[ReviewResponse]:
    return ApiResponse(data=await review_service.get_review(session, auth, review_id))


@router.put("/{review_id}", response_model=ApiResponse[ReviewResponse])
async def update_review(
    review_id: uuid.UUID,
    payload: UpdateReviewRequest,
    session: SessionDep,
    auth: AuthDep,
) -> ApiResponse[ReviewResponse]:
    review = await review_service.update_review(session, auth, review_id, payload)
    return ApiResponse(message="Performance review updated successfully", data=review)


@router.delete("/{review_id}", response_model=ApiResponse[None])
async def delete_review(review_id: uuid.UUID, session: SessionDep, auth: AdminDep) -> ApiResponse[None]:
    await review_service.delete_review(session, auth, review_id)
    return ApiResponse(message="Performance review deleted successfully")


@router.put("/{review_id}/submit", response_model=ApiResponse[ReviewResponse])
async def submit_review(review_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> ApiResponse[ReviewResponse]:
    review = await review_service.submit_review(session, auth, review_id)
    return ApiResponse(message="Performance review submitted successfully", data=review)


@router.put("/{review_id}/review", response_model=ApiResponse[ReviewResponse])
async def complete_review(
    review_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: ReviewFeedbackRequest | None = None,
) -> ApiResponse[ReviewResponse]:
    feedback = payload.feedback if payload is not None else None
    review = await review_service.complete_review(session, auth, review_id, feedback)
    return ApiResponse(message="Performance review completed successfully", data=review)


@router.put("/{review_id}/approve", response_model=ApiResponse[ReviewResponse])
async def approve_review(review_id: uuid.UUID, session: SessionDep, auth: AdminDep) -> ApiResponse[ReviewResponse]:
    review = await review_service.approve_review(session, auth, review_id)
    return ApiResponse(message="Performance review approved successfully", data=review)

"""Performance review workflow.

A review moves DRAFT -> SUBMITTED -> REVIEWED -> APPROVED and never back.
Each move is a conditional UPDATE on the expected prior status, so two
concurrent callers cannot both advance the same review.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select, update
from sqlmodel import col

from hrms.exceptions import InvalidTransitionError, NotFoundError, PermissionDeniedError
from hrms.models.base import now_utc
from hrms.models.enums import AuditAction, AuditEntityType, ReviewAction, ReviewStatus
from hrms.models.review import PerformanceReview
from hrms.schemas.review import (
    AnnualCycleResponse,
    AverageRatings,
    CycleItemResult,
    EmployeeReviewHistory,
    PerformanceAnalytics,
    PerformanceStats,
    ReviewDueEntry,
    ReviewListResponse,
    ReviewResponse,
    ReviewsDueResponse,
    TeamReviewsResponse,
)
from hrms.services import notification as notify
from hrms.services.audit import model_to_audit_dict, write_audit_log
from hrms.services.employee import get_employee_service, require_employee
from hrms.services.organization import is_manager

if TYPE_CHECKING:
    import uuid
    from collections.abc import Mapping

    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.auth import AuthContext
    from hrms.schemas.review import CreateReviewRequest, UpdateReviewRequest

logger = logging.getLogger(__name__)

RATING_WEIGHTS: dict[str, Decimal] = {
    "goals_achievement": Decimal("0.4"),
    "technical_skills": Decimal("0.3"),
    "communication_skills": Decimal("0.2"),
    "leadership_skills": Decimal("0.1"),
}
HIGH_PERFORMER_RATING = 4.0
LOW_PERFORMER_RATING = 3.0

_TRANSITIONS: dict[ReviewAction, tuple[ReviewStatus, ReviewStatus]] = {
    ReviewAction.SUBMIT: (ReviewStatus.DRAFT, ReviewStatus.SUBMITTED),
    ReviewAction.REVIEW: (ReviewStatus.SUBMITTED, ReviewStatus.REVIEWED),
    ReviewAction.APPROVE: (ReviewStatus.REVIEWED, ReviewStatus.APPROVED),
}

_AUDIT_ACTIONS: dict[ReviewAction, AuditAction] = {
    ReviewAction.SUBMIT: AuditAction.SUBMIT,
    ReviewAction.REVIEW: AuditAction.REVIEW,
    ReviewAction.APPROVE: AuditAction.APPROVE,
}


# ---------------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------------


def calculate_overall_score(ratings: Mapping[str, float | None]) -> float:
    """Weighted average: goals 0.4, technical 0.3, communication 0.2, leadership 0.1.

    Missing ratings count as 0. Rounded half-up to 2 decimal places.
    """
    total = sum(
        (Decimal(str(ratings.get(name) or 0)) * weight for name, weight in RATING_WEIGHTS.items()),
        Decimal(0),
    )
    return float(total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def next_status(current: ReviewStatus, action: ReviewAction) -> ReviewStatus:
    """Return the status an action leads to, or raise InvalidTransitionError."""
    expected, target = _TRANSITIONS[action]
    if current != expected:
        raise InvalidTransitionError(current.value, action.value)
    return target


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _name_of(employee_id: uuid.UUID) -> str | None:
    employee = await get_employee_service().get_employee(employee_id)
    return employee.full_name if employee is not None else None


async def _build_review_response(review: PerformanceReview) -> ReviewResponse:
    return ReviewResponse(
        id=review.id,
        employee_id=review.employee_id,
        employee_name=await _name_of(review.employee_id),
        reviewer_id=review.reviewer_id,
        reviewer_name=await _name_of(review.reviewer_id),
        review_period_start=review.review_period_start,
        review_period_end=review.review_period_end,
        goals_achievement=review.goals_achievement,
        technical_skills=review.technical_skills,
        communication_skills=review.communication_skills,
        leadership_skills=review.leadership_skills,
        overall_rating=review.overall_rating,
        feedback=review.feedback,
        employee_comments=review.employee_comments,
        status=ReviewStatus(review.status),
        submitted_at=review.submitted_at,
        reviewed_at=review.reviewed_at,
        approved_at=review.approved_at,
        created_at=review.created_at,
        updated_at=review.updated_at,
    )


async def _build_review_list(reviews: list[PerformanceReview]) -> list[ReviewResponse]:
    return [await _build_review_response(r) for r in reviews]


async def _get_review_or_404(session: AsyncSession, review_id: uuid.UUID) -> PerformanceReview:
    result = await session.execute(select(PerformanceReview).where(col(PerformanceReview.id) == review_id))
    review = result.scalar_one_or_none()
    if review is None:
        raise NotFoundError("Performance review not found")
    return review


def _ensure_participant(auth: AuthContext, review: PerformanceReview) -> None:
    if auth.is_admin:
        return
    if auth.employee_id is None or auth.employee_id not in (review.employee_id, review.reviewer_id):
        raise PermissionDeniedError("Access denied to this performance review")


def _year_filter(year: int) -> list[Any]:
    return [
        col(PerformanceReview.review_period_end) >= date(year, 1, 1),
        col(PerformanceReview.review_period_end) <= date(year, 12, 31),
    ]


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # 29 February in a non-leap target year
        return day.replace(year=day.year - years, day=28)


def _stats(ratings: list[float]) -> PerformanceStats:
    return PerformanceStats(
        avg_rating=round(sum(ratings) / len(ratings), 2) if ratings else 0,
        total_reviews=len(ratings),
        high_performers=sum(1 for r in ratings if r >= HIGH_PERFORMER_RATING),
        low_performers=sum(1 for r in ratings if r < LOW_PERFORMER_RATING),
    )


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


def _new_review(
    employee_id: uuid.UUID,
    reviewer_id: uuid.UUID,
    period_start: date,
    period_end: date,
    ratings: dict[str, float | None] | None = None,
    feedback: str | None = None,
) -> PerformanceReview:
    ratings = ratings or {}
    overall = calculate_overall_score(ratings) if any(v is not None for v in ratings.values()) else None
    return PerformanceReview(
        employee_id=employee_id,
        reviewer_id=reviewer_id,
        review_period_start=period_start,
        review_period_end=period_end,
        overall_rating=overall,
        feedback=feedback,
        status=ReviewStatus.DRAFT.value,
        **ratings,
    )


async def create_review(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateReviewRequest,
) -> ReviewResponse:
    """Create a DRAFT review and notify the employee."""
    await require_employee(payload.employee_id)
    await require_employee(payload.reviewer_id, "Reviewer")

    review = _new_review(
        payload.employee_id,
        payload.reviewer_id,
        payload.review_period_start,
        payload.review_period_end,
        {name: getattr(payload, name) for name in RATING_WEIGHTS},
        payload.feedback,
    )
    session.add(review)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.PERFORMANCE_REVIEW,
        entity_id=review.id,
        action=AuditAction.CREATE,
        new_values=model_to_audit_dict(review),
    )
    notify.notify_review_created(session, review.employee_id, review.review_period_start, review.review_period_end)

    await session.commit()
    await session.refresh(review)
    return await _build_review_response(review)


async def list_reviews(
    session: AsyncSession,
    employee_id: uuid.UUID | None = None,
    reviewer_id: uuid.UUID | None = None,
    status: ReviewStatus | None = None,
    year: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> ReviewListResponse:
    """List reviews, newest period first, with optional filters."""
    filters: list[Any] = []
    if employee_id is not None:
        filters.append(col(PerformanceReview.employee_id) == employee_id)
    if reviewer_id is not None:
        filters.append(col(PerformanceReview.reviewer_id) == reviewer_id)
    if status is not None:
        filters.append(col(PerformanceReview.status) == status.value)
    if year is not None:
        filters.extend(_year_filter(year))

    count_result = await session.execute(select(func.count()).select_from(PerformanceReview).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(PerformanceReview)
        .where(*filters)
        .order_by(col(PerformanceReview.review_period_end).desc(), col(PerformanceReview.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    return ReviewListResponse(items=await _build_review_list(list(result.scalars().all())), total=total)


async def get_review(session: AsyncSession, auth: AuthContext, review_id: uuid.UUID) -> ReviewResponse:
    review = await _get_review_or_404(session, review_id)
    _ensure_participant(auth, review)
    return await _build_review_response(review)


async def update_review(
    session: AsyncSession,
    auth: AuthContext,
    review_id: uuid.UUID,
    payload: UpdateReviewRequest,
) -> ReviewResponse:
    """Edit ratings, feedback or comments. The reviewed employee may only edit their comments.

    The overall rating is recomputed whenever a sub-rating changes.
    """
    review = await _get_review_or_404(session, review_id)
    _ensure_participant(auth, review)

    changes = payload.model_dump(exclude_unset=True)
    is_subject_only = not auth.is_admin and auth.employee_id != review.reviewer_id
    if is_subject_only and set(changes) - {"employee_comments"}:
        raise PermissionDeniedError("Employees can only add comments to their own review")

    before = model_to_audit_dict(review)
    for field, value in changes.items():
        setattr(review, field, value)

    if any(name in changes for name in RATING_WEIGHTS):
        review.overall_rating = calculate_overall_score({name: getattr(review, name) for name in RATING_WEIGHTS})
    review.updated_at = now_utc()
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.PERFORMANCE_REVIEW,
        entity_id=review.id,
        action=AuditAction.UPDATE,
        old_values=before,
        new_values=model_to_audit_dict(review),
    )

    await session.commit()
    await session.refresh(review)
    return await _build_review_response(review)


async def delete_review(session: AsyncSession, auth: AuthContext, review_id: uuid.UUID) -> None:
    """Delete a review in any status. Irreversible."""
    review = await _get_review_or_404(session, review_id)
    before = model_to_audit_dict(review)

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.PERFORMANCE_REVIEW,
        entity_id=review.id,
        action=AuditAction.DELETE,
        old_values=before,
    )
    await session.delete(review)
    await session.commit()


# ---------------------------------------------------------------------------
# Workflow transitions
# ---------------------------------------------------------------------------


async def _transition(
    session: AsyncSession,
    auth: AuthContext,
    review: PerformanceReview,
    action: ReviewAction,
    values: dict[str, Any],
) -> PerformanceReview:
    current = ReviewStatus(review.status)
    target = next_status(current, action)

    result = await session.execute(
        update(PerformanceReview)
        .where(col(PerformanceReview.id) == review.id, col(PerformanceReview.status) == current.value)
        .values(status=target.value, updated_at=now_utc(), **values)
    )
    if result.rowcount == 0:
        # Another request moved the review on between our read and this update.
        raise InvalidTransitionError(current.value, action.value)

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.PERFORMANCE_REVIEW,
        entity_id=review.id,
        action=_AUDIT_ACTIONS[action],
        old_values={"status": current.value},
        new_values={"status": target.value, **{k: v for k, v in values.items() if isinstance(v, str)}},
    )
    return review


async def submit_review(session: AsyncSession, auth: AuthContext, review_id: uuid.UUID) -> ReviewResponse:
    """DRAFT -> SUBMITTED. Notifies the reviewer."""
    review = await _get_review_or_404(session, review_id)
    _ensure_participant(auth, review)

    await _transition(session, auth, review, ReviewAction.SUBMIT, {"submitted_at": now_utc()})
    notify.notify_review_submitted(session, review.reviewer_id)

    await session.commit()
    await session.refresh(review)
    return await _build_review_response(review)


async def complete_review(
    session: AsyncSession,
    auth: AuthContext,
    review_id: uuid.UUID,
    feedback: str | None = None,
) -> ReviewResponse:
    """SUBMITTED -> REVIEWED, recording the reviewer's feedback. Notifies the employee."""
    review = await _get_review_or_404(session, review_id)
    if not auth.is_admin and auth.employee_id != review.reviewer_id:
        raise PermissionDeniedError("Only the assigned reviewer can review this performance review")

    values: dict[str, Any] = {"reviewed_at": now_utc()}
    if feedback is not None:
        values["feedback"] = feedback
    await _transition(session, auth, review, ReviewAction.REVIEW, values)
    notify.notify_review_reviewed(session, review.employee_id)

    await session.commit()
    await session.refresh(review)
    return await _build_review_response(review)


async def approve_review(session: AsyncSession, auth: AuthContext, review_id: uuid.UUID) -> ReviewResponse:
    """REVIEWED -> APPROVED. Notifies the employee."""
    review = await _get_review_or_404(session, review_id)

    await _transition(session, auth, review, ReviewAction.APPROVE, {"approved_at": now_utc()})
    notify.notify_review_approved(session, review.employee_id)

    await session.commit()
    await session.refresh(review)
    return await _build_review_response(review)


# ---------------------------------------------------------------------------
# Annual cycle
# ---------------------------------------------------------------------------


async def create_annual_review_cycle(
    session: AsyncSession,
    auth: AuthContext,
    year: int,
    reviewer_id: uuid.UUID,
) -> AnnualCycleResponse:
    """Create one DRAFT review per active employee for the calendar year.

    Each employee's review is inserted in its own savepoint; a failure is
    logged and reported for that employee without undoing the others.
    """
    await require_employee(reviewer_id, "Reviewer")

    results: list[CycleItemResult] = []
    for employee in await get_employee_service().list_employees(active_only=True):
        try:
            async with session.begin_nested():
                review = _new_review(employee.id, reviewer_id, date(year, 1, 1), date(year, 12, 31))
                session.add(review)
                await session.flush()
                notify.notify_review_created(
                    session, employee.id, review.review_period_start, review.review_period_end
                )
                await session.flush()
            results.append(CycleItemResult(employee_id=employee.id, success=True, review_id=review.id))
        except Exception as exc:
            logger.exception("Annual review creation failed for employee=%s year=%s", employee.id, year)
            results.append(CycleItemResult(employee_id=employee.id, success=False, error=str(exc)))

    created = [r for r in results if r.success]
    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.PERFORMANCE_REVIEW,
        entity_id=None,
        action=AuditAction.BULK_CREATE,
        new_values={
            "year": year,
            "reviewer_id": str(reviewer_id),
            "review_ids": [str(r.review_id) for r in created],
        },
    )
    await session.commit()

    return AnnualCycleResponse(
        year=year,
        results=results,
        created_count=len(created),
        failed_count=len(results) - len(created),
    )


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


async def get_employee_average_rating(
    session: AsyncSession,
    employee_id: uuid.UUID,
    years: int = 2,
    today: date | None = None,
) -> AverageRatings:
    """Average ratings of approved reviews whose period ended within the last `years` years."""
    today = today or date.today()
    since = _years_before(today, years)
    result = await session.execute(
        select(
            func.avg(col(PerformanceReview.overall_rating)),
            func.avg(col(PerformanceReview.goals_achievement)),
            func.avg(col(PerformanceReview.technical_skills)),
            func.avg(col(PerformanceReview.communication_skills)),
            func.avg(col(PerformanceReview.leadership_skills)),
            func.count(),
        ).where(
            col(PerformanceReview.employee_id) == employee_id,
            col(PerformanceReview.status) == ReviewStatus.APPROVED.value,
            col(PerformanceReview.review_period_end) >= since,
        )
    )
    overall, goals, technical, communication, leadership, total = result.one()

    def _round(value: float | None) -> float | None:
        return round(float(value), 2) if value is not None else None

    return AverageRatings(
        avg_overall_rating=_round(overall),
        avg_goals_achievement=_round(goals),
        avg_technical_skills=_round(technical),
        avg_communication_skills=_round(communication),
        avg_leadership_skills=_round(leadership),
        total_reviews=total,
    )


async def _approved_ratings(
    session: AsyncSession,
    year: int,
    employee_ids: set[uuid.UUID] | None = None,
) -> list[float]:
    filters = [col(PerformanceReview.status) == ReviewStatus.APPROVED.value, *_year_filter(year)]
    if employee_ids is not None:
        filters.append(col(PerformanceReview.employee_id).in_(list(employee_ids)))
    result = await session.execute(select(PerformanceReview.overall_rating).where(*filters))
    return [float(rating or 0) for rating in result.scalars().all()]


async def get_department_stats(session: AsyncSession, department: str, year: int) -> PerformanceStats:
    members = await get_employee_service().list_by_department(department)
    if not members:
        return _stats([])
    return _stats(await _approved_ratings(session, year, {m.id for m in members}))


async def get_performance_analytics(
    session: AsyncSession,
    department: str | None = None,
    year: int | None = None,
) -> PerformanceAnalytics:
    """Approved-review statistics for a year, company-wide or for one department."""
    year = year or date.today().year
    if department:
        stats = await get_department_stats(session, department, year)
    else:
        stats = _stats(await _approved_ratings(session, year))
    return PerformanceAnalytics(year=year, department=department or "All Departments", analytics=stats)


async def get_reviews_due(session: AsyncSession, today: date | None = None) -> ReviewsDueResponse:
    """Active employees whose last approved review (or joining date) is over a year old."""
    today = today or date.today()
    result = await session.execute(
        select(PerformanceReview.employee_id, func.max(col(PerformanceReview.review_period_end)))
        .where(col(PerformanceReview.status) == ReviewStatus.APPROVED.value)
        .group_by(col(PerformanceReview.employee_id))
    )
    last_reviews: dict[uuid.UUID, date] = {row[0]: row[1] for row in result.all()}
    cutoff = _years_before(today, 1)

    due: list[ReviewDueEntry] = []
    for employee in await get_employee_service().list_employees(active_only=True):
        last = last_reviews.get(employee.id) or employee.joining_date
        if last is None or last >= cutoff:
            continue
        due.append(
            ReviewDueEntry(
                employee_id=employee.id,
                employee_code=employee.employee_code,
                full_name=employee.full_name,
                department=employee.department,
                joining_date=employee.joining_date,
                last_review_date=last,
                days_since_last_review=(today - last).days,
            )
        )
    due.sort(key=lambda entry: entry.days_since_last_review or 0, reverse=True)
    return ReviewsDueResponse(employees_due_for_review=len(due), employees=due)


async def get_employee_history(session: AsyncSession, employee_id: uuid.UUID) -> EmployeeReviewHistory:
    """All reviews of an employee with their recent average ratings."""
    reviews = await list_reviews(session, employee_id=employee_id, limit=1000)
    return EmployeeReviewHistory(
        employee_id=employee_id,
        reviews=reviews.items,
        average_ratings=await get_employee_average_rating(session, employee_id),
    )


async def get_team_reviews(session: AsyncSession, reviewer_id: uuid.UUID) -> TeamReviewsResponse:
    reviews = await list_reviews(session, reviewer_id=reviewer_id, limit=1000)
    return TeamReviewsResponse(is_manager=await is_manager(session, reviewer_id), reviews=reviews.items)

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from hrms.exceptions import ConflictError, NotFoundError
from hrms.models.enums import AuditAction, AuditEntityType, HolidayType
from hrms.models.holiday import Holiday
from hrms.schemas.holiday import (
    BulkHolidayResponse,
    CreateHolidayRequest,
    HolidayListResponse,
    HolidayResponse,
    HolidayTypeStats,
    WorkingDaysResponse,
)
from hrms.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.auth import AuthContext
    from hrms.schemas.holiday import UpdateHolidayRequest

SATURDAY = 5

# Columns a partial update may not clear.
_NON_NULLABLE_FIELDS = frozenset({"name", "type", "is_active"})

_DEFAULT_HOLIDAYS: tuple[tuple[str, int, int, str], ...] = (
    ("New Year's Day", 1, 1, "New Year celebration"),
    ("Republic Day", 1, 26, "Indian Republic Day"),
    ("Independence Day", 8, 15, "Indian Independence Day"),
    ("Gandhi Jayanti", 10, 2, "Mahatma Gandhi's Birthday"),
    ("Christmas Day", 12, 25, "Christmas celebration"),
)


def _build_holiday_response(holiday: Holiday) -> HolidayResponse:
    return HolidayResponse(
        id=holiday.id,
        name=holiday.name,
        date=holiday.date,
        type=HolidayType(holiday.type),
        description=holiday.description,
        is_active=holiday.is_active,
    )


# ---------------------------------------------------------------------------
# Working-day arithmetic
# ---------------------------------------------------------------------------


def is_weekend(day: date) -> bool:
    return day.weekday() >= SATURDAY


def count_working_days(year: int, month: int, holiday_dates: Iterable[date]) -> int:
    """Count the month's days that are neither weekend days nor in holiday_dates."""
    holidays = set(holiday_dates)
    _, days_in_month = calendar.monthrange(year, month)
    return sum(
        1
        for day_number in range(1, days_in_month + 1)
        if not is_weekend(day := date(year, month, day_number)) and day not in holidays
    )


def get_default_holidays(year: int) -> list[CreateHolidayRequest]:
    """The fixed national-holiday template for a year."""
    return [
        CreateHolidayRequest(
            name=name,
            date=date(year, month, day),
            type=HolidayType.PUBLIC,
            description=description,
        )
        for name, month, day, description in _DEFAULT_HOLIDAYS
    ]


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_holidays_in_range(
    session: AsyncSession,
    start: date,
    end: date,
    active_only: bool = True,
) -> list[Holiday]:
    """Holidays with start <= date <= end, ordered by date."""
    filters = [col(Holiday.date) >= start, col(Holiday.date) <= end]
    if active_only:
        filters.append(col(Holiday.is_active).is_(True))
    result = await session.execute(select(Holiday).where(*filters).order_by(col(Holiday.date), col(Holiday.name)))
    return list(result.scalars().all())


async def get_holidays_in_month(session: AsyncSession, year: int, month: int) -> list[Holiday]:
    _, days_in_month = calendar.monthrange(year, month)
    return await get_holidays_in_range(session, date(year, month, 1), date(year, month, days_in_month))


async def is_working_day(session: AsyncSession, day: date) -> bool:
    """False on weekends and active holidays, True otherwise."""
    if is_weekend(day):
        return False
    return not await get_holidays_in_range(session, day, day)


async def get_working_days_in_month(session: AsyncSession, year: int, month: int) -> WorkingDaysResponse:
    """Working days of a month, using a single holiday lookup for the whole month."""
    holidays = await get_holidays_in_month(session, year, month)
    return WorkingDaysResponse(
        year=year,
        month=month,
        working_days=count_working_days(year, month, (h.date for h in holidays)),
        holidays=[_build_holiday_response(h) for h in holidays],
    )


async def get_upcoming_holidays(
    session: AsyncSession,
    days: int,
    today: date | None = None,
) -> list[HolidayResponse]:
    today = today or date.today()
    holidays = await get_holidays_in_range(session, today, today + timedelta(days=days))
    return [_build_holiday_response(h) for h in holidays]


def _build_type_stats(holidays: list[Holiday]) -> list[HolidayTypeStats]:
    stats: list[HolidayTypeStats] = []
    for holiday_type in HolidayType:
        names = [h.name for h in holidays if h.type == holiday_type.value]
        if names:
            stats.append(HolidayTypeStats(type=holiday_type, count=len(names), holidays=names))
    return stats


async def get_holiday_stats(session: AsyncSession, year: int) -> list[HolidayTypeStats]:
    """Count and names of the year's active holidays per type."""
    return _build_type_stats(await get_holidays_in_range(session, date(year, 1, 1), date(year, 12, 31)))


async def list_holidays(
    session: AsyncSession,
    year: int | None = None,
    active_only: bool = True,
) -> HolidayListResponse:
    """Holidays for a year (default: current) with a per-type summary."""
    year = year or date.today().year
    holidays = await get_holidays_in_range(session, date(year, 1, 1), date(year, 12, 31), active_only)
    return HolidayListResponse(
        items=[_build_holiday_response(h) for h in holidays],
        total=len(holidays),
        year=year,
        stats=await get_holiday_stats(session, year),
    )


async def get_holiday(session: AsyncSession, holiday_id: uuid.UUID) -> Holiday:
    """Get a single holiday or raise 404."""
    result = await session.execute(select(Holiday).where(col(Holiday.id) == holiday_id))
    holiday = result.scalar_one_or_none()
    if holiday is None:
        raise NotFoundError("Holiday not found")
    return holiday


async def _exists(session: AsyncSession, day: date, name: str, exclude_id: uuid.UUID | None = None) -> bool:
    query = select(Holiday.id).where(col(Holiday.date) == day, col(Holiday.name) == name)
    if exclude_id is not None:
        query = query.where(col(Holiday.id) != exclude_id)
    result = await session.execute(query)
    return result.first() is not None


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def create_holiday(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateHolidayRequest,
) -> HolidayResponse:
    """Create a holiday. The (date, name) pair must be unique."""
    if await _exists(session, payload.date, payload.name):
        raise ConflictError("Holiday already exists for this date")

    holiday = Holiday(
        name=payload.name,
        date=payload.date,
        type=payload.type.value,
        description=payload.description,
    )
    session.add(holiday)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.CREATE,
        new_values=model_to_audit_dict(holiday),
    )

    await session.commit()
    await session.refresh(holiday)
    return _build_holiday_response(holiday)


async def update_holiday(
    session: AsyncSession,
    auth: AuthContext,
    holiday_id: uuid.UUID,
    payload: UpdateHolidayRequest,
) -> HolidayResponse:
    holiday = await get_holiday(session, holiday_id)
    changes = payload.model_dump(mode="json", exclude_unset=True, exclude={"date"})
    new_date = payload.date or holiday.date
    new_name = payload.name or holiday.name
    if (new_date, new_name) != (holiday.date, holiday.name) and await _exists(
        session, new_date, new_name, exclude_id=holiday.id
    ):
        raise ConflictError("Holiday already exists for this date")

    before = model_to_audit_dict(holiday)
    for field, value in changes.items():
        if value is None and field in _NON_NULLABLE_FIELDS:
            continue
        setattr(holiday, field, value)
    holiday.date = new_date
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.UPDATE,
        old_values=before,
        new_values=model_to_audit_dict(holiday),
    )

    await session.commit()
    await session.refresh(holiday)
    return _build_holiday_response(holiday)


async def delete_holiday(
    session: AsyncSession,
    auth: AuthContext,
    holiday_id: uuid.UUID,
) -> None:
    """Soft-delete a holiday so it no longer affects working days."""
    holiday = await get_holiday(session, holiday_id)
    before = model_to_audit_dict(holiday)
    holiday.is_active = False
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.DELETE,
        old_values=before,
    )
    await session.commit()


async def create_bulk_holidays(
    session: AsyncSession,
    auth: AuthContext,
    holidays: list[CreateHolidayRequest],
) -> BulkHolidayResponse:
    """Insert a batch of holidays, silently skipping (date, name) pairs that already exist.

    Pairs repeated inside the batch are inserted once, so repeating a call is a no-op.
    """
    result = await session.execute(
        select(Holiday.date, Holiday.name).where(col(Holiday.date).in_(list({h.date for h in holidays})))
    )
    seen: set[tuple[date, str]] = {(row[0], row[1]) for row in result.all()}

    created: list[Holiday] = []
    for payload in holidays:
        key = (payload.date, payload.name)
        if key in seen:
            continue
        seen.add(key)
        holiday = Holiday(
            name=payload.name,
            date=payload.date,
            type=payload.type.value,
            description=payload.description,
        )
        session.add(holiday)
        created.append(holiday)

    if created:
        await session.flush()
        await write_audit_log(
            session,
            auth,
            entity_type=AuditEntityType.HOLIDAY,
            entity_id=None,
            action=AuditAction.BULK_CREATE,
            new_values={"holidays": [model_to_audit_dict(h) for h in created]},
        )
    await session.commit()

    return BulkHolidayResponse(
        created=[_build_holiday_response(h) for h in created],
        created_count=len(created),
        skipped_count=len(holidays) - len(created),
    )


async def create_default_holidays(
    session: AsyncSession,
    auth: AuthContext,
    year: int,
) -> BulkHolidayResponse:
    """Seed the default template for a year. Safe to repeat."""
    return await create_bulk_holidays(session, auth, get_default_holidays(year))

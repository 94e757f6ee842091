"""Tests for the leave balance engine and leave request validation.

Covers lazy initialization, carry-forward with caps, re-initialization that
keeps used days, the lookback floor, and every validation rule.
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlmodel import col

from hrms.exceptions import PolicyNotFoundError
from hrms.models.audit import AuditLog
from hrms.models.balance import EmployeeLeaveBalance
from hrms.models.enums import LeaveType, Role
from hrms.models.policy import LeavePolicy
from hrms.services import balance as balance_service
from hrms.services.employee import EmployeeInfo

if TYPE_CHECKING:
    from collections.abc import Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.services.employee import InMemoryEmployeeService

EMPLOYEE_ID = uuid.UUID("00000000-0000-0000-0000-000000000101")
THIS_YEAR = date.today().year

POLICIES_URL = "/api/policies/leave-policies"
VALIDATE_URL = "/api/policies/validate-leave"


async def _add_policy(session: AsyncSession, leave_type: LeaveType, **fields: Any) -> LeavePolicy:
    policy = LeavePolicy(leave_type=leave_type.value, **fields)
    session.add(policy)
    await session.commit()
    return policy


async def _add_annual(session: AsyncSession) -> LeavePolicy:
    return await _add_policy(
        session,
        LeaveType.ANNUAL,
        annual_limit=18,
        carry_forward_allowed=True,
        carry_forward_limit=5,
        min_notice_days=7,
        max_consecutive_days=15,
    )


async def _add_casual(session: AsyncSession) -> LeavePolicy:
    return await _add_policy(session, LeaveType.CASUAL, annual_limit=8, min_notice_days=1, max_consecutive_days=3)


def _seed_employee(directory: InMemoryEmployeeService) -> None:
    directory.seed(
        EmployeeInfo(
            id=EMPLOYEE_ID,
            employee_code="EMP101",
            full_name="Meera Iyer",
            email="meera@example.com",
            department="Engineering",
            joining_date=date(2023, 1, 2),
        )
    )


# ---------------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("allowed", "limit", "previous", "expected"),
    [
        (True, 5, 8, 5),
        (True, 5, 3, 3),
        (True, 5, 0, 0),
        (True, 5, -2, 0),
        (True, 5, None, 0),
        (False, 5, 8, 0),
    ],
)
def test_calculate_carry_forward(allowed: bool, limit: int, previous: float | None, expected: float) -> None:
    policy = LeavePolicy(
        leave_type="ANNUAL",
        annual_limit=18,
        carry_forward_allowed=allowed,
        carry_forward_limit=limit,
    )
    assert balance_service.calculate_carry_forward(policy, previous) == expected


def test_carry_forward_floor_uses_configured_lookback() -> None:
    assert balance_service.carry_forward_floor(date(2025, 6, 1)) == 2015


def test_recompute_remaining() -> None:
    balance = EmployeeLeaveBalance(
        employee_id=EMPLOYEE_ID,
        leave_type="ANNUAL",
        year=2025,
        allocated_days=18,
        carried_forward_days=4,
        used_days=6.5,
    )
    balance.recompute_remaining()
    assert balance.remaining_days == 15.5


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


async def test_fresh_balance_without_carry_forward(db_session: AsyncSession) -> None:
    await _add_casual(db_session)
    balance = await balance_service.get_employee_leave_balance(db_session, EMPLOYEE_ID, LeaveType.CASUAL, THIS_YEAR)
    assert balance.used_days == 0
    assert balance.allocated_days == 8
    assert balance.carried_forward_days == 0
    assert balance.remaining_days == 8


async def test_fresh_balance_is_created_once(db_session: AsyncSession) -> None:
    await _add_casual(db_session)
    first = await balance_service.get_employee_leave_balance(db_session, EMPLOYEE_ID, LeaveType.CASUAL, THIS_YEAR)
    second = await balance_service.get_employee_leave_balance(db_session, EMPLOYEE_ID, LeaveType.CASUAL, THIS_YEAR)
    assert first.id == second.id


async def test_carry_forward_uses_previous_remaining(db_session: AsyncSession) -> None:
    await _add_annual(db_session)
    previous = await balance_service.update_leave_balance(
        db_session, EMPLOYEE_ID, LeaveType.ANNUAL, THIS_YEAR - 1, 20
    )
    assert previous.remaining_days == previous.allocated_days + previous.carried_forward_days - 20

    current = await balance_service.get_employee_leave_balance(db_session, EMPLOYEE_ID, LeaveType.ANNUAL, THIS_YEAR)
    assert current.allocated_days == 18
    assert current.used_days == 0
    assert current.carried_forward_days == min(previous.remaining_days, 5)


async def test_carry_forward_is_capped(db_session: AsyncSession) -> None:
    await _add_annual(db_session)
    previous = await balance_service.get_employee_leave_balance(
        db_session, EMPLOYEE_ID, LeaveType.ANNUAL, THIS_YEAR - 1
    )
    assert previous.remaining_days > 5

    current = await balance_service.get_employee_leave_balance(db_session, EMPLOYEE_ID, LeaveType.ANNUAL, THIS_YEAR)
    assert current.carried_forward_days == 5
    assert current.remaining_days == 23


async def test_overdrawn_previous_year_carries_nothing(db_session: AsyncSession) -> None:
    await _add_annual(db_session)
    await balance_service.update_leave_balance(db_session, EMPLOYEE_ID, LeaveType.ANNUAL, THIS_YEAR - 1, 40)

    current = await balance_service.get_employee_leave_balance(db_session, EMPLOYEE_ID, LeaveType.ANNUAL, THIS_YEAR)
    assert current.carried_forward_days == 0


async def test_missing_years_are_materialized(db_session: AsyncSession) -> None:
    await _add_annual(db_session)
    await balance_service.get_employee_leave_balance(db_session, EMPLOYEE_ID, LeaveType.ANNUAL, THIS_YEAR)

    result = await db_session.execute(
        select(EmployeeLeaveBalance.year)
        .where(col(EmployeeLeaveBalance.employee_id) == EMPLOYEE_ID)
        .order_by(col(EmployeeLeaveBalance.year))
    )
    years = list(result.scalars().all())
    floor = balance_service.carry_forward_floor()
    assert years == list(range(floor, THIS_YEAR + 1))


async def test_floor_year_never_carries(db_session: AsyncSession) -> None:
    await _add_annual(db_session)
    floor = balance_service.carry_forward_floor()
    balance = await balance_service.get_employee_leave_balance(db_session, EMPLOYEE_ID, LeaveType.ANNUAL, floor)
    assert balance.carried_forward_days == 0
    assert balance.remaining_days == 18


async def test_reinitialize_keeps_used_days(db_session: AsyncSession) -> None:
    policy = await _add_casual(db_session)
    await balance_service.update_leave_balance(db_session, EMPLOYEE_ID, LeaveType.CASUAL, THIS_YEAR, 2)

    policy.annual_limit = 10
    await db_session.commit()

    balance = await balance_service.initialize_leave_balance(db_session, EMPLOYEE_ID, LeaveType.CASUAL, THIS_YEAR)
    assert balance.allocated_days == 10
    assert balance.used_days == 2
    assert balance.remaining_days == 8


async def test_negative_delta_restores_days(db_session: AsyncSession) -> None:
    await _add_casual(db_session)
    await balance_service.update_leave_balance(db_session, EMPLOYEE_ID, LeaveType.CASUAL, THIS_YEAR, 3)
    balance = await balance_service.update_leave_balance(db_session, EMPLOYEE_ID, LeaveType.CASUAL, THIS_YEAR, -1)
    assert balance.used_days == 2
    assert balance.remaining_days == 6


async def test_missing_policy_raises(db_session: AsyncSession) -> None:
    with pytest.raises(PolicyNotFoundError):
        await balance_service.get_employee_leave_balance(db_session, EMPLOYEE_ID, LeaveType.SICK, THIS_YEAR)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


async def test_validation_passes_within_rules(db_session: AsyncSession) -> None:
    await _add_casual(db_session)
    today = date.today()
    result = await balance_service.validate_leave_request(
        db_session,
        EMPLOYEE_ID,
        LeaveType.CASUAL,
        today + timedelta(days=3),
        today + timedelta(days=4),
        2,
    )
    assert result.is_valid is True
    assert result.errors == []
    assert result.balance.remaining_days == 8


async def test_validation_short_notice(db_session: AsyncSession) -> None:
    await _add_annual(db_session)
    today = date.today()
    result = await balance_service.validate_leave_request(
        db_session,
        EMPLOYEE_ID,
        LeaveType.ANNUAL,
        today + timedelta(days=2),
        today + timedelta(days=3),
        2,
    )
    assert result.is_valid is False
    assert "Minimum 7 days notice required for ANNUAL leave" in result.errors


async def test_validation_reports_every_violation(db_session: AsyncSession) -> None:
    await _add_casual(db_session)
    today = date.today()
    result = await balance_service.validate_leave_request(
        db_session,
        EMPLOYEE_ID,
        LeaveType.CASUAL,
        today,
        today + timedelta(days=9),
        10,
    )
    assert result.is_valid is False
    assert result.errors == [
        "Minimum 1 days notice required for CASUAL leave",
        "Maximum 3 consecutive days allowed for CASUAL leave",
        "Insufficient leave balance. Available: 8 days, Requested: 10 days",
    ]


async def test_validation_half_days_formatted(db_session: AsyncSession) -> None:
    await _add_casual(db_session)
    await balance_service.update_leave_balance(db_session, EMPLOYEE_ID, LeaveType.CASUAL, THIS_YEAR, 6.5)
    today = date.today()
    result = await balance_service.validate_leave_request(
        db_session,
        EMPLOYEE_ID,
        LeaveType.CASUAL,
        today + timedelta(days=5),
        today + timedelta(days=6),
        2,
    )
    assert result.errors == ["Insufficient leave balance. Available: 1.5 days, Requested: 2 days"]


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


async def test_validate_leave_for_self(
    async_client: AsyncClient,
    db_session: AsyncSession,
    make_headers: Callable[..., dict[str, str]],
) -> None:
    await _add_casual(db_session)
    start = date.today() + timedelta(days=2)
    resp = await async_client.post(
        VALIDATE_URL,
        json={
            "leave_type": "CASUAL",
            "start_date": start.isoformat(),
            "end_date": start.isoformat(),
            "requested_days": 1,
        },
        headers=make_headers(Role.EMPLOYEE, EMPLOYEE_ID),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["is_valid"] is True
    assert data["balance"]["employee_id"] == str(EMPLOYEE_ID)
    assert data["policy"]["leave_type"] == "CASUAL"


async def test_validate_leave_rejects_reversed_dates(
    async_client: AsyncClient,
    make_headers: Callable[..., dict[str, str]],
) -> None:
    resp = await async_client.post(
        VALIDATE_URL,
        json={"leave_type": "CASUAL", "start_date": "2025-05-10", "end_date": "2025-05-09", "requested_days": 1},
        headers=make_headers(Role.EMPLOYEE, EMPLOYEE_ID),
    )
    assert resp.status_code == 400


async def test_validate_leave_unknown_policy_returns_404(
    async_client: AsyncClient,
    make_headers: Callable[..., dict[str, str]],
) -> None:
    start = date.today() + timedelta(days=10)
    resp = await async_client.post(
        VALIDATE_URL,
        json={
            "leave_type": "SICK",
            "start_date": start.isoformat(),
            "end_date": start.isoformat(),
            "requested_days": 1,
        },
        headers=make_headers(Role.EMPLOYEE, EMPLOYEE_ID),
    )
    assert resp.status_code == 404
    assert resp.json()["message"] == "Leave policy not found for SICK"


async def test_validate_leave_without_profile_returns_404(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
) -> None:
    start = date.today() + timedelta(days=10)
    resp = await async_client.post(
        VALIDATE_URL,
        json={
            "leave_type": "CASUAL",
            "start_date": start.isoformat(),
            "end_date": start.isoformat(),
            "requested_days": 1,
        },
        headers=admin_headers,
    )
    assert resp.status_code == 404
    assert resp.json()["message"] == "Employee profile not found"


async def test_initialize_balances_for_employee(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    db_session: AsyncSession,
    directory: InMemoryEmployeeService,
) -> None:
    _seed_employee(directory)
    await _add_casual(db_session)
    await _add_annual(db_session)

    resp = await async_client.post(
        f"/api/policies/employee/{EMPLOYEE_ID}/initialize-balances",
        params={"year": THIS_YEAR},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["year"] == THIS_YEAR
    assert [b["leave_type"] for b in data["balances"]] == ["ANNUAL", "CASUAL"]
    casual = data["balances"][1]
    assert casual["annual_limit"] == 8
    assert casual["remaining_days"] == 8

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_type) == "LEAVE_BALANCE", col(AuditLog.action) == "INITIALIZE")
    )
    entry = result.scalar_one()
    assert entry.new_values is not None
    assert entry.new_values["leave_types"] == ["ANNUAL", "CASUAL"]


async def test_initialize_balances_unknown_employee(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    resp = await async_client.post(
        f"/api/policies/employee/{uuid.uuid4()}/initialize-balances",
        headers=admin_headers,
    )
    assert resp.status_code == 404
    assert resp.json()["message"] == "Employee not found"


async def test_my_leave_balances(
    async_client: AsyncClient,
    db_session: AsyncSession,
    directory: InMemoryEmployeeService,
    make_headers: Callable[..., dict[str, str]],
) -> None:
    _seed_employee(directory)
    await _add_casual(db_session)
    await balance_service.update_leave_balance(db_session, EMPLOYEE_ID, LeaveType.CASUAL, THIS_YEAR, 1)

    resp = await async_client.get("/api/policies/my-leave-balances", headers=make_headers(Role.EMPLOYEE, EMPLOYEE_ID))
    assert resp.status_code == 200
    balances = resp.json()["data"]["balances"]
    assert len(balances) == 1
    assert balances[0]["used_days"] == 1
    assert balances[0]["remaining_days"] == 7


async def test_policy_stats_reflect_balances(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    db_session: AsyncSession,
) -> None:
    await _add_casual(db_session)
    await balance_service.update_leave_balance(db_session, EMPLOYEE_ID, LeaveType.CASUAL, THIS_YEAR, 2)

    resp = await async_client.get(POLICIES_URL, headers=admin_headers)
    stats = resp.json()["data"]["stats"]
    assert stats == [
        {
            "leave_type": "CASUAL",
            "annual_limit": 8,
            "employees_with_balance": 1,
            "avg_used_days": 2.0,
            "avg_remaining_days": 6.0,
        }
    ]

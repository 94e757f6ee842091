"""Leave balance engine.

Balances are kept per employee, leave type and year. A year's row is created
lazily the first time it is read; when the policy allows carry-forward the
unused days of the previous year (capped by the policy) are credited into it.
Missing previous years are materialized on the way, walking back no further
than the configured lookback window.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from hrms.config import get_settings
from hrms.models.balance import EmployeeLeaveBalance
from hrms.models.base import now_utc
from hrms.models.enums import AuditAction, AuditEntityType, LeaveType
from hrms.models.policy import LeavePolicy
from hrms.schemas.balance import (
    EmployeeBalancesResponse,
    LeaveBalanceResponse,
    LeaveBalanceWithPolicy,
    LeaveValidationResult,
)
from hrms.services.audit import write_audit_log
from hrms.services.employee import require_employee
from hrms.services.policy import build_policy_response, get_active_policy

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.auth import AuthContext

logger = logging.getLogger(__name__)


def build_balance_response(balance: EmployeeLeaveBalance) -> LeaveBalanceResponse:
    return LeaveBalanceResponse(
        id=balance.id,
        employee_id=balance.employee_id,
        leave_type=LeaveType(balance.leave_type),
        year=balance.year,
        allocated_days=balance.allocated_days,
        carried_forward_days=balance.carried_forward_days,
        used_days=balance.used_days,
        remaining_days=balance.remaining_days,
    )


def calculate_carry_forward(policy: LeavePolicy, previous_remaining: float | None) -> float:
    """Days credited from the previous year: min(remaining, cap) when allowed and positive."""
    if not policy.carry_forward_allowed or previous_remaining is None or previous_remaining <= 0:
        return 0
    return min(previous_remaining, policy.carry_forward_limit)


def carry_forward_floor(today: date | None = None) -> int:
    """Oldest year a carry-forward chain may reach back to."""
    today = today or date.today()
    return today.year - get_settings().carry_forward_max_lookback_years


def _format_days(days: float) -> str:
    return str(int(days)) if float(days).is_integer() else str(days)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _fetch_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: str,
    year: int,
    *,
    for_update: bool = False,
) -> EmployeeLeaveBalance | None:
    query = select(EmployeeLeaveBalance).where(
        col(EmployeeLeaveBalance.employee_id) == employee_id,
        col(EmployeeLeaveBalance.leave_type) == leave_type,
        col(EmployeeLeaveBalance.year) == year,
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def _upsert_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    policy: LeavePolicy,
    year: int,
    carried_forward_days: float,
) -> EmployeeLeaveBalance:
    """Insert the year's row or overwrite its allocation. used_days is never reset."""
    balance = await _fetch_balance(session, employee_id, policy.leave_type, year, for_update=True)

    if balance is None:
        balance = EmployeeLeaveBalance(
            employee_id=employee_id,
            leave_type=policy.leave_type,
            year=year,
            allocated_days=policy.annual_limit,
            carried_forward_days=carried_forward_days,
        )
        balance.recompute_remaining()
        try:
            async with session.begin_nested():
                session.add(balance)
                await session.flush()
            return balance
        except IntegrityError:
            # A concurrent initializer inserted the row first; fall through to update it.
            balance = await _fetch_balance(session, employee_id, policy.leave_type, year, for_update=True)
            if balance is None:
                raise

    balance.allocated_days = policy.annual_limit
    balance.carried_forward_days = carried_forward_days
    balance.recompute_remaining()
    balance.updated_at = now_utc()
    await session.flush()
    return balance


async def _initialize(
    session: AsyncSession,
    employee_id: uuid.UUID,
    policy: LeavePolicy,
    year: int,
) -> EmployeeLeaveBalance:
    floor = carry_forward_floor()
    if not policy.carry_forward_allowed or year <= floor:
        return await _upsert_balance(session, employee_id, policy, year, 0)

    # Walk back to the nearest existing year, collecting the gaps to fill.
    previous: EmployeeLeaveBalance | None = None
    missing: list[int] = []
    prior_year = year - 1
    while prior_year >= floor:
        previous = await _fetch_balance(session, employee_id, policy.leave_type, prior_year)
        if previous is not None:
            break
        missing.append(prior_year)
        prior_year -= 1

    previous_remaining = previous.remaining_days if previous is not None else None
    for gap_year in reversed(missing):
        carried = calculate_carry_forward(policy, previous_remaining) if gap_year > floor else 0
        gap_balance = await _upsert_balance(session, employee_id, policy, gap_year, carried)
        logger.debug("Materialized %s balance for employee=%s year=%s", policy.leave_type, employee_id, gap_year)
        previous_remaining = gap_balance.remaining_days

    carried = calculate_carry_forward(policy, previous_remaining)
    return await _upsert_balance(session, employee_id, policy, year, carried)


async def _get_or_initialize(
    session: AsyncSession,
    employee_id: uuid.UUID,
    policy: LeavePolicy,
    year: int,
) -> EmployeeLeaveBalance:
    balance = await _fetch_balance(session, employee_id, policy.leave_type, year)
    if balance is None:
        balance = await _initialize(session, employee_id, policy, year)
    return balance


# ---------------------------------------------------------------------------
# Engine operations
# ---------------------------------------------------------------------------


async def initialize_leave_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    year: int,
) -> LeaveBalanceResponse:
    """(Re)compute the year's allocation and carry-forward, keeping used days."""
    policy = await get_active_policy(session, leave_type.value)
    balance = await _initialize(session, employee_id, policy, year)
    await session.commit()
    return build_balance_response(balance)


async def get_employee_leave_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    year: int,
) -> LeaveBalanceResponse:
    """Return the year's balance, initializing it on first access."""
    policy = await get_active_policy(session, leave_type.value)
    balance = await _get_or_initialize(session, employee_id, policy, year)
    await session.commit()
    return build_balance_response(balance)


async def update_leave_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    year: int,
    used_days_delta: float,
) -> LeaveBalanceResponse:
    """Add used_days_delta to used_days. Negative deltas undo cancelled leave."""
    policy = await get_active_policy(session, leave_type.value)
    balance = await _get_or_initialize(session, employee_id, policy, year)
    balance.used_days += used_days_delta
    balance.recompute_remaining()
    balance.updated_at = now_utc()
    await session.commit()
    await session.refresh(balance)
    return build_balance_response(balance)


async def validate_leave_request(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    start_date: date,
    end_date: date,
    requested_days: float,
    today: date | None = None,
) -> LeaveValidationResult:
    """Check a leave request against its policy and the current year's balance.

    Every rule is evaluated; the result lists all violations, not just the first.
    """
    today = today or date.today()
    policy = await get_active_policy(session, leave_type.value)
    errors: list[str] = []

    notice_days = (start_date - today).days
    if notice_days < policy.min_notice_days:
        errors.append(f"Minimum {policy.min_notice_days} days notice required for {leave_type.value} leave")

    if policy.max_consecutive_days is not None and requested_days > policy.max_consecutive_days:
        errors.append(
            f"Maximum {policy.max_consecutive_days} consecutive days allowed for {leave_type.value} leave"
        )

    balance = await _get_or_initialize(session, employee_id, policy, today.year)
    if requested_days > balance.remaining_days:
        errors.append(
            f"Insufficient leave balance. Available: {_format_days(balance.remaining_days)} days, "
            f"Requested: {_format_days(requested_days)} days"
        )

    await session.commit()
    return LeaveValidationResult(
        is_valid=not errors,
        errors=errors,
        policy=build_policy_response(policy),
        balance=build_balance_response(balance),
    )


# ---------------------------------------------------------------------------
# Employee-wide helpers
# ---------------------------------------------------------------------------


async def get_all_employee_balances(
    session: AsyncSession,
    employee_id: uuid.UUID,
    year: int,
) -> EmployeeBalancesResponse:
    """List an employee's existing balances for a year with their policy limits."""
    await require_employee(employee_id)
    result = await session.execute(
        select(EmployeeLeaveBalance, LeavePolicy)
        .join(LeavePolicy, col(LeavePolicy.leave_type) == col(EmployeeLeaveBalance.leave_type))
        .where(
            col(EmployeeLeaveBalance.employee_id) == employee_id,
            col(EmployeeLeaveBalance.year) == year,
        )
        .order_by(col(EmployeeLeaveBalance.leave_type))
    )
    balances = [
        LeaveBalanceWithPolicy(
            **build_balance_response(balance).model_dump(),
            annual_limit=policy.annual_limit,
            carry_forward_allowed=policy.carry_forward_allowed,
        )
        for balance, policy in result.all()
    ]
    return EmployeeBalancesResponse(employee_id=employee_id, year=year, balances=balances)


async def initialize_all_balances_for_employee(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    year: int,
) -> EmployeeBalancesResponse:
    """Initialize the year's balance for every active policy."""
    await require_employee(employee_id)
    policies_result = await session.execute(
        select(LeavePolicy).where(col(LeavePolicy.is_active).is_(True)).order_by(col(LeavePolicy.leave_type))
    )
    initialized: list[str] = []
    for policy in policies_result.scalars().all():
        await _initialize(session, employee_id, policy, year)
        initialized.append(policy.leave_type)

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.LEAVE_BALANCE,
        entity_id=employee_id,
        action=AuditAction.INITIALIZE,
        new_values={"employee_id": str(employee_id), "year": year, "leave_types": initialized},
    )
    await session.commit()
    return await get_all_employee_balances(session, employee_id, year)

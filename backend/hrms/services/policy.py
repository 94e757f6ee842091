from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from hrms.exceptions import ConflictError, NotFoundError, PolicyNotFoundError
from hrms.models.balance import EmployeeLeaveBalance
from hrms.models.base import now_utc
from hrms.models.enums import ApprovalLevel, AuditAction, AuditEntityType, LeaveType
from hrms.models.policy import LeavePolicy
from hrms.schemas.policy import LeavePolicyListResponse, LeavePolicyResponse, LeaveTypeStats
from hrms.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.auth import AuthContext
    from hrms.schemas.policy import CreateLeavePolicyRequest, UpdateLeavePolicyRequest


def build_policy_response(policy: LeavePolicy) -> LeavePolicyResponse:
    return LeavePolicyResponse(
        id=policy.id,
        leave_type=LeaveType(policy.leave_type),
        annual_limit=policy.annual_limit,
        carry_forward_allowed=policy.carry_forward_allowed,
        carry_forward_limit=policy.carry_forward_limit,
        min_notice_days=policy.min_notice_days,
        max_consecutive_days=policy.max_consecutive_days,
        requires_approval=policy.requires_approval,
        approval_level=ApprovalLevel(policy.approval_level),
        is_active=policy.is_active,
        created_at=policy.created_at,
        updated_at=policy.updated_at,
    )


async def _find_policy_by_type(session: AsyncSession, leave_type: str) -> LeavePolicy | None:
    result = await session.execute(select(LeavePolicy).where(col(LeavePolicy.leave_type) == leave_type))
    return result.scalar_one_or_none()


async def get_active_policy(session: AsyncSession, leave_type: str) -> LeavePolicy:
    """Return the active policy for a leave type or raise PolicyNotFoundError."""
    policy = await _find_policy_by_type(session, leave_type)
    if policy is None or not policy.is_active:
        raise PolicyNotFoundError(leave_type)
    return policy


async def get_policy(session: AsyncSession, policy_id: uuid.UUID) -> LeavePolicy:
    """Get a single active policy by id or raise 404."""
    result = await session.execute(
        select(LeavePolicy).where(col(LeavePolicy.id) == policy_id, col(LeavePolicy.is_active).is_(True))
    )
    policy = result.scalar_one_or_none()
    if policy is None:
        raise NotFoundError("Leave policy not found")
    return policy


async def create_policy(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateLeavePolicyRequest,
) -> LeavePolicyResponse:
    """Create a leave policy.

    A soft-deleted policy for the same leave type is revived with the new
    values instead of inserting a second row for the type.
    """
    existing = await _find_policy_by_type(session, payload.leave_type.value)
    if existing is not None and existing.is_active:
        raise ConflictError("Leave policy for this leave type already exists")

    values = payload.model_dump(mode="json")
    if existing is not None:
        before = model_to_audit_dict(existing)
        for field, value in values.items():
            setattr(existing, field, value)
        existing.is_active = True
        existing.updated_at = now_utc()
        policy = existing
        await session.flush()
        await write_audit_log(
            session,
            auth,
            entity_type=AuditEntityType.LEAVE_POLICY,
            entity_id=policy.id,
            action=AuditAction.UPDATE,
            old_values=before,
            new_values=model_to_audit_dict(policy),
        )
    else:
        policy = LeavePolicy(**values)
        session.add(policy)
        await session.flush()
        await write_audit_log(
            session,
            auth,
            entity_type=AuditEntityType.LEAVE_POLICY,
            entity_id=policy.id,
            action=AuditAction.CREATE,
            new_values=model_to_audit_dict(policy),
        )

    await session.commit()
    await session.refresh(policy)
    return build_policy_response(policy)


async def get_leave_type_stats(session: AsyncSession, year: int) -> list[LeaveTypeStats]:
    """Balance usage per active leave type for a year."""
    policies_result = await session.execute(
        select(LeavePolicy).where(col(LeavePolicy.is_active).is_(True)).order_by(col(LeavePolicy.leave_type))
    )
    policies = list(policies_result.scalars().all())

    usage_result = await session.execute(
        select(
            col(EmployeeLeaveBalance.leave_type),
            func.count(func.distinct(col(EmployeeLeaveBalance.employee_id))),
            func.avg(col(EmployeeLeaveBalance.used_days)),
            func.avg(col(EmployeeLeaveBalance.remaining_days)),
        )
        .where(col(EmployeeLeaveBalance.year) == year)
        .group_by(col(EmployeeLeaveBalance.leave_type))
    )
    usage = {row[0]: row[1:] for row in usage_result.all()}

    stats: list[LeaveTypeStats] = []
    for policy in policies:
        employees, avg_used, avg_remaining = usage.get(policy.leave_type, (0, None, None))
        stats.append(
            LeaveTypeStats(
                leave_type=LeaveType(policy.leave_type),
                annual_limit=policy.annual_limit,
                employees_with_balance=employees,
                avg_used_days=round(float(avg_used or 0), 2),
                avg_remaining_days=round(float(avg_remaining or 0), 2),
            )
        )
    return stats


async def list_policies(session: AsyncSession, year: int | None = None) -> LeavePolicyListResponse:
    """List active policies along with usage stats for the year (default: current)."""
    result = await session.execute(
        select(LeavePolicy).where(col(LeavePolicy.is_active).is_(True)).order_by(col(LeavePolicy.leave_type))
    )
    policies = list(result.scalars().all())
    stats = await get_leave_type_stats(session, year or date.today().year)

    return LeavePolicyListResponse(
        policies=[build_policy_response(p) for p in policies],
        stats=stats,
        total=len(policies),
    )


async def get_policy_by_type(session: AsyncSession, leave_type: LeaveType) -> LeavePolicyResponse:
    return build_policy_response(await get_active_policy(session, leave_type.value))


async def update_policy(
    session: AsyncSession,
    auth: AuthContext,
    policy_id: uuid.UUID,
    payload: UpdateLeavePolicyRequest,
) -> LeavePolicyResponse:
    """Apply a partial update to an active policy."""
    policy = await get_policy(session, policy_id)
    before = model_to_audit_dict(policy)

    for field, value in payload.model_dump(mode="json", exclude_unset=True).items():
        if value is None and field != "max_consecutive_days":
            continue
        setattr(policy, field, value)
    policy.updated_at = now_utc()
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.LEAVE_POLICY,
        entity_id=policy.id,
        action=AuditAction.UPDATE,
        old_values=before,
        new_values=model_to_audit_dict(policy),
    )

    await session.commit()
    await session.refresh(policy)
    return build_policy_response(policy)


async def delete_policy(
    session: AsyncSession,
    auth: AuthContext,
    policy_id: uuid.UUID,
) -> None:
    """Soft-delete a policy. Existing balances are kept."""
    policy = await get_policy(session, policy_id)
    before = model_to_audit_dict(policy)

    policy.is_active = False
    policy.updated_at = now_utc()
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.LEAVE_POLICY,
        entity_id=policy.id,
        action=AuditAction.DELETE,
        old_values=before,
    )
    await session.commit()

"""Departments and the time-versioned employee to manager graph."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select, update
from sqlmodel import col

from hrms.config import get_settings
from hrms.exceptions import ConflictError, HierarchyCycleError, NotFoundError, SelfAssignmentError
from hrms.models.base import now_utc
from hrms.models.enums import AuditAction, AuditEntityType
from hrms.models.organization import Department, EmployeeManager
from hrms.schemas.organization import (
    DepartmentDetailResponse,
    DepartmentResponse,
    DepartmentStats,
    EmployeeManagerResponse,
    EmployeeSummary,
    ManagerRelationshipResponse,
    ManagerTeamResponse,
    MyManagerResponse,
    MyTeamResponse,
    OrgChartDepartment,
    OrgChartEmployee,
    TeamHierarchyResponse,
    TeamLevel,
)
from hrms.services.audit import model_to_audit_dict, write_audit_log
from hrms.services.employee import EmployeeInfo, get_employee_service, require_employee

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.auth import AuthContext
    from hrms.schemas.organization import (
        AssignManagerRequest,
        CreateDepartmentRequest,
        UpdateDepartmentRequest,
        UpdateRelationshipRequest,
    )

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def summarize_employee(employee_id: uuid.UUID, info: EmployeeInfo | None) -> EmployeeSummary:
    if info is None:
        return EmployeeSummary(id=employee_id)
    return EmployeeSummary(
        id=info.id,
        employee_code=info.employee_code,
        full_name=info.full_name,
        designation=info.designation,
        department=info.department,
        is_active=info.is_active,
    )


async def _employee_summary(employee_id: uuid.UUID) -> EmployeeSummary:
    return summarize_employee(employee_id, await get_employee_service().get_employee(employee_id))


async def _build_relationship_response(edge: EmployeeManager) -> ManagerRelationshipResponse:
    return ManagerRelationshipResponse(
        id=edge.id,
        employee_id=edge.employee_id,
        manager_id=edge.manager_id,
        effective_from=edge.effective_from,
        effective_to=edge.effective_to,
        is_active=edge.is_active,
        employee=await _employee_summary(edge.employee_id),
        manager=await _employee_summary(edge.manager_id),
    )


async def _build_relationship_list(edges: list[EmployeeManager]) -> list[ManagerRelationshipResponse]:
    return [await _build_relationship_response(edge) for edge in edges]


async def _build_department_response(department: Department) -> DepartmentResponse:
    members = await get_employee_service().list_by_department(department.name)
    return DepartmentResponse(
        id=department.id,
        name=department.name,
        description=department.description,
        head_id=department.head_id,
        is_active=department.is_active,
        employee_count=sum(1 for m in members if m.is_active),
        created_at=department.created_at,
        updated_at=department.updated_at,
    )


# ---------------------------------------------------------------------------
# Departments
# ---------------------------------------------------------------------------


async def get_department(session: AsyncSession, department_id: uuid.UUID) -> Department:
    """Get an active department or raise 404."""
    result = await session.execute(
        select(Department).where(col(Department.id) == department_id, col(Department.is_active).is_(True))
    )
    department = result.scalar_one_or_none()
    if department is None:
        raise NotFoundError("Department not found")
    return department


async def _ensure_unique_name(session: AsyncSession, name: str, exclude_id: uuid.UUID | None = None) -> None:
    query = select(Department.id).where(
        func.lower(col(Department.name)) == name.lower(),
        col(Department.is_active).is_(True),
    )
    if exclude_id is not None:
        query = query.where(col(Department.id) != exclude_id)
    result = await session.execute(query)
    if result.first() is not None:
        raise ConflictError("Department with this name already exists")


async def create_department(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateDepartmentRequest,
) -> DepartmentResponse:
    await _ensure_unique_name(session, payload.name)

    department = Department(name=payload.name, description=payload.description, head_id=payload.head_id)
    session.add(department)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.DEPARTMENT,
        entity_id=department.id,
        action=AuditAction.CREATE,
        new_values=model_to_audit_dict(department),
    )

    await session.commit()
    await session.refresh(department)
    return await _build_department_response(department)


async def list_departments(session: AsyncSession) -> list[DepartmentResponse]:
    """Active departments ordered by name, with active headcount."""
    result = await session.execute(
        select(Department).where(col(Department.is_active).is_(True)).order_by(col(Department.name))
    )
    return [await _build_department_response(d) for d in result.scalars().all()]


async def get_department_detail(session: AsyncSession, department_id: uuid.UUID) -> DepartmentDetailResponse:
    department = await get_department(session, department_id)
    members = await get_employee_service().list_by_department(department.name)
    active = sum(1 for m in members if m.is_active)
    return DepartmentDetailResponse(
        department=await _build_department_response(department),
        employees=[summarize_employee(m.id, m) for m in members],
        stats=DepartmentStats(
            total_employees=len(members),
            active_employees=active,
            inactive_employees=len(members) - active,
        ),
    )


async def update_department(
    session: AsyncSession,
    auth: AuthContext,
    department_id: uuid.UUID,
    payload: UpdateDepartmentRequest,
) -> DepartmentResponse:
    department = await get_department(session, department_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name") is not None and changes["name"] != department.name:
        await _ensure_unique_name(session, changes["name"], exclude_id=department.id)

    before = model_to_audit_dict(department)
    for field, value in changes.items():
        if value is None and field == "name":
            continue
        setattr(department, field, value)
    department.updated_at = now_utc()
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.DEPARTMENT,
        entity_id=department.id,
        action=AuditAction.UPDATE,
        old_values=before,
        new_values=model_to_audit_dict(department),
    )

    await session.commit()
    await session.refresh(department)
    return await _build_department_response(department)


async def delete_department(
    session: AsyncSession,
    auth: AuthContext,
    department_id: uuid.UUID,
) -> None:
    """Soft-delete a department."""
    department = await get_department(session, department_id)
    before = model_to_audit_dict(department)
    department.is_active = False
    department.updated_at = now_utc()
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.DEPARTMENT,
        entity_id=department.id,
        action=AuditAction.DELETE,
        old_values=before,
    )
    await session.commit()


# ---------------------------------------------------------------------------
# Manager edges
# ---------------------------------------------------------------------------


async def find_current_manager(
    session: AsyncSession,
    employee_id: uuid.UUID,
    today: date | None = None,
) -> EmployeeManager | None:
    """The active edge of an employee that has not yet ended."""
    today = today or date.today()
    result = await session.execute(
        select(EmployeeManager)
        .where(
            col(EmployeeManager.employee_id) == employee_id,
            col(EmployeeManager.is_active).is_(True),
            or_(col(EmployeeManager.effective_to).is_(None), col(EmployeeManager.effective_to) > today),
        )
        .order_by(col(EmployeeManager.effective_from).desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_manager_history(session: AsyncSession, employee_id: uuid.UUID) -> list[EmployeeManager]:
    """Every edge of an employee, newest first."""
    result = await session.execute(
        select(EmployeeManager)
        .where(col(EmployeeManager.employee_id) == employee_id)
        .order_by(col(EmployeeManager.effective_from).desc(), col(EmployeeManager.created_at).desc())
    )
    return list(result.scalars().all())


async def find_team_members(session: AsyncSession, manager_id: uuid.UUID) -> list[EmployeeManager]:
    """Active direct reports of a manager, excluding deactivated employees."""
    result = await session.execute(
        select(EmployeeManager).where(
            col(EmployeeManager.manager_id) == manager_id,
            col(EmployeeManager.is_active).is_(True),
            or_(col(EmployeeManager.effective_to).is_(None), col(EmployeeManager.effective_to) > date.today()),
        )
    )
    service = get_employee_service()
    members: list[tuple[str, EmployeeManager]] = []
    for edge in result.scalars().all():
        info = await service.get_employee(edge.employee_id)
        if info is not None and not info.is_active:
            continue
        members.append((info.full_name if info else "", edge))
    return [edge for _, edge in sorted(members, key=lambda pair: pair[0])]


async def is_manager(session: AsyncSession, employee_id: uuid.UUID) -> bool:
    result = await session.execute(
        select(func.count())
        .select_from(EmployeeManager)
        .where(col(EmployeeManager.manager_id) == employee_id, col(EmployeeManager.is_active).is_(True))
    )
    return result.scalar_one() > 0


async def can_approve(session: AsyncSession, manager_id: uuid.UUID, employee_id: uuid.UUID) -> bool:
    """True when manager_id is the employee's current direct manager."""
    current = await find_current_manager(session, employee_id)
    return current is not None and current.manager_id == manager_id


async def get_manager_hierarchy(
    session: AsyncSession,
    employee_id: uuid.UUID,
    max_levels: int | None = None,
) -> list[EmployeeManager]:
    """Walk up current managers, closest first, stopping at the top or the level cap.

    Raises HierarchyCycleError when the chain returns to an employee already visited.
    """
    if max_levels is None:
        max_levels = get_settings().manager_hierarchy_max_levels
    chain: list[EmployeeManager] = []
    visited = {employee_id}
    current_id = employee_id

    while len(chain) < max_levels:
        edge = await find_current_manager(session, current_id)
        if edge is None:
            break
        if edge.manager_id in visited:
            raise HierarchyCycleError(edge.manager_id)
        chain.append(edge)
        visited.add(edge.manager_id)
        current_id = edge.manager_id

    return chain


async def get_team_hierarchy(
    session: AsyncSession,
    manager_id: uuid.UUID,
    max_levels: int | None = None,
) -> TeamHierarchyResponse:
    """Breadth-first reports of a manager, one entry per level, up to the level cap.

    Raises HierarchyCycleError when a report is reached twice.
    """
    if max_levels is None:
        max_levels = get_settings().team_hierarchy_max_levels
    levels: list[TeamLevel] = []
    visited = {manager_id}
    frontier = [manager_id]

    for level in range(1, max_levels + 1):
        members: list[EmployeeManager] = []
        for current_manager in frontier:
            members.extend(await find_team_members(session, current_manager))
        if not members:
            break
        for edge in members:
            if edge.employee_id in visited:
                raise HierarchyCycleError(edge.employee_id)
            visited.add(edge.employee_id)
        levels.append(TeamLevel(level=level, members=await _build_relationship_list(members)))
        frontier = [edge.employee_id for edge in members]

    return TeamHierarchyResponse(manager_id=manager_id, levels=levels)


async def _reaches(session: AsyncSession, start_id: uuid.UUID, target_id: uuid.UUID) -> bool:
    """True when target_id appears in start_id's chain of current managers."""
    visited = {start_id}
    current_id = start_id
    while True:
        edge = await find_current_manager(session, current_id)
        if edge is None:
            return False
        if edge.manager_id == target_id:
            return True
        if edge.manager_id in visited:
            logger.warning("Existing manager chain of %s loops at %s", start_id, edge.manager_id)
            return False
        visited.add(edge.manager_id)
        current_id = edge.manager_id


async def assign_manager(
    session: AsyncSession,
    auth: AuthContext,
    payload: AssignManagerRequest,
) -> ManagerRelationshipResponse:
    """Make manager_id the employee's manager from effective_from on.

    Every active edge of the employee is closed at effective_from before the
    new edge is inserted, so exactly one edge stays active.
    """
    if payload.employee_id == payload.manager_id:
        raise SelfAssignmentError()

    await require_employee(payload.employee_id)
    await require_employee(payload.manager_id, "Manager")

    if await _reaches(session, payload.manager_id, payload.employee_id):
        raise HierarchyCycleError(payload.employee_id)

    effective_from = payload.effective_from or date.today()
    previous = await find_current_manager(session, payload.employee_id)

    await session.execute(
        update(EmployeeManager)
        .where(
            col(EmployeeManager.employee_id) == payload.employee_id,
            col(EmployeeManager.is_active).is_(True),
        )
        .values(is_active=False, effective_to=effective_from)
    )

    edge = EmployeeManager(
        employee_id=payload.employee_id,
        manager_id=payload.manager_id,
        effective_from=effective_from,
    )
    session.add(edge)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.EMPLOYEE_MANAGER,
        entity_id=edge.id,
        action=AuditAction.ASSIGN,
        old_values={"manager_id": str(previous.manager_id)} if previous is not None else None,
        new_values=model_to_audit_dict(edge),
    )

    await session.commit()
    await session.refresh(edge)
    return await _build_relationship_response(edge)


async def update_relationship(
    session: AsyncSession,
    auth: AuthContext,
    relationship_id: uuid.UUID,
    payload: UpdateRelationshipRequest,
) -> ManagerRelationshipResponse:
    result = await session.execute(select(EmployeeManager).where(col(EmployeeManager.id) == relationship_id))
    edge = result.scalar_one_or_none()
    if edge is None:
        raise NotFoundError("Manager relationship not found")

    before = model_to_audit_dict(edge)
    if payload.effective_to is not None:
        edge.effective_to = payload.effective_to
    if payload.is_active is not None:
        edge.is_active = payload.is_active
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.EMPLOYEE_MANAGER,
        entity_id=edge.id,
        action=AuditAction.UPDATE,
        old_values=before,
        new_values=model_to_audit_dict(edge),
    )

    await session.commit()
    await session.refresh(edge)
    return await _build_relationship_response(edge)


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


async def get_employee_manager(session: AsyncSession, employee_id: uuid.UUID) -> EmployeeManagerResponse:
    employee = await require_employee(employee_id)
    current = await find_current_manager(session, employee_id)
    return EmployeeManagerResponse(
        employee=summarize_employee(employee_id, employee),
        current_manager=await _build_relationship_response(current) if current else None,
        manager_history=await _build_relationship_list(await get_manager_history(session, employee_id)),
        hierarchy=await _build_relationship_list(await get_manager_hierarchy(session, employee_id)),
    )


async def get_manager_team(session: AsyncSession, manager_id: uuid.UUID) -> ManagerTeamResponse:
    manager = await require_employee(manager_id, "Manager")
    return ManagerTeamResponse(
        manager=summarize_employee(manager_id, manager),
        team_members=await _build_relationship_list(await find_team_members(session, manager_id)),
        team_hierarchy=await get_team_hierarchy(session, manager_id),
    )


async def get_my_team(session: AsyncSession, employee_id: uuid.UUID) -> MyTeamResponse:
    members = await find_team_members(session, employee_id)
    return MyTeamResponse(
        is_manager=await is_manager(session, employee_id),
        team_members=await _build_relationship_list(members),
        team_size=len(members),
    )


async def get_my_manager(session: AsyncSession, employee_id: uuid.UUID) -> MyManagerResponse:
    current = await find_current_manager(session, employee_id)
    return MyManagerResponse(
        current_manager=await _build_relationship_response(current) if current else None,
        hierarchy=await _build_relationship_list(await get_manager_hierarchy(session, employee_id)),
    )


async def get_organization_chart(session: AsyncSession) -> list[OrgChartDepartment]:
    """Every active department with its employees, their manager and team size."""
    service = get_employee_service()
    result = await session.execute(
        select(Department).where(col(Department.is_active).is_(True)).order_by(col(Department.name))
    )
    chart: list[OrgChartDepartment] = []
    for department in result.scalars().all():
        entries: list[OrgChartEmployee] = []
        for member in await service.list_by_department(department.name):
            current = await find_current_manager(session, member.id)
            team = await find_team_members(session, member.id)
            entries.append(
                OrgChartEmployee(
                    employee=summarize_employee(member.id, member),
                    current_manager=await _build_relationship_response(current) if current else None,
                    team_size=len(team),
                    is_manager=bool(team),
                )
            )
        chart.append(
            OrgChartDepartment(department=await _build_department_response(department), employees=entries)
        )
    return chart

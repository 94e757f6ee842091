"""Tests for departments and the employee to manager graph."""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlmodel import col

from hrms.exceptions import HierarchyCycleError
from hrms.models.audit import AuditLog
from hrms.models.enums import Role
from hrms.models.organization import EmployeeManager
from hrms.services import organization as organization_service
from hrms.services.employee import EmployeeInfo

if TYPE_CHECKING:
    from collections.abc import Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.services.employee import InMemoryEmployeeService

ASHA_ID = uuid.UUID("00000000-0000-0000-0000-000000000201")
RAVI_ID = uuid.UUID("00000000-0000-0000-0000-000000000202")
MEERA_ID = uuid.UUID("00000000-0000-0000-0000-000000000203")
KARAN_ID = uuid.UUID("00000000-0000-0000-0000-000000000204")

ORG_URL = "/api/organization"
DEPARTMENTS_URL = f"{ORG_URL}/departments"


@pytest.fixture(autouse=True)
def _seed_directory(directory: InMemoryEmployeeService) -> None:
    people = [
        (ASHA_ID, "EMP201", "Asha Rao", "Engineering", True),
        (RAVI_ID, "EMP202", "Ravi Kumar", "Engineering", True),
        (MEERA_ID, "EMP203", "Meera Iyer", "Engineering", True),
        (KARAN_ID, "EMP204", "Karan Shah", "Engineering", False),
    ]
    for employee_id, code, name, department, active in people:
        directory.seed(
            EmployeeInfo(
                id=employee_id,
                employee_code=code,
                full_name=name,
                email=f"{code.lower()}@example.com",
                department=department,
                is_active=active,
            )
        )


async def _assign(
    client: AsyncClient,
    headers: dict[str, str],
    employee_id: uuid.UUID,
    manager_id: uuid.UUID,
    **extra: Any,
) -> Any:
    return await client.post(
        f"{ORG_URL}/assign-manager",
        json={"employee_id": str(employee_id), "manager_id": str(manager_id), **extra},
        headers=headers,
    )


# ---------------------------------------------------------------------------
# Assigning managers
# ---------------------------------------------------------------------------


async def test_assign_manager(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    resp = await _assign(async_client, admin_headers, RAVI_ID, ASHA_ID)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["employee_id"] == str(RAVI_ID)
    assert data["manager_id"] == str(ASHA_ID)
    assert data["is_active"] is True
    assert data["effective_to"] is None
    assert data["effective_from"] == date.today().isoformat()
    assert data["manager"]["full_name"] == "Asha Rao"


async def test_self_assignment_rejected(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    resp = await _assign(async_client, admin_headers, RAVI_ID, RAVI_ID, effective_from="2020-01-01")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Employee cannot be their own manager"


async def test_self_assignment_rejected_for_unknown_employee(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
) -> None:
    stranger = uuid.uuid4()
    resp = await _assign(async_client, admin_headers, stranger, stranger)
    assert resp.status_code == 400


async def test_unknown_manager_returns_404(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    resp = await _assign(async_client, admin_headers, RAVI_ID, uuid.uuid4())
    assert resp.status_code == 404
    assert resp.json()["message"] == "Manager not found"


async def test_reassignment_keeps_one_active_edge(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    db_session: AsyncSession,
) -> None:
    start = date.today() - timedelta(days=30)
    await _assign(async_client, admin_headers, MEERA_ID, ASHA_ID, effective_from=start.isoformat())
    resp = await _assign(async_client, admin_headers, MEERA_ID, RAVI_ID)
    assert resp.status_code == 201

    result = await db_session.execute(select(EmployeeManager).where(col(EmployeeManager.employee_id) == MEERA_ID))
    edges = list(result.scalars().all())
    assert len(edges) == 2
    active = [e for e in edges if e.is_active]
    assert len(active) == 1
    assert active[0].manager_id == RAVI_ID
    closed = next(e for e in edges if not e.is_active)
    assert closed.effective_to == date.today()


async def test_cycle_rejected(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    await _assign(async_client, admin_headers, RAVI_ID, ASHA_ID)
    await _assign(async_client, admin_headers, MEERA_ID, RAVI_ID)

    resp = await _assign(async_client, admin_headers, ASHA_ID, MEERA_ID)
    assert resp.status_code == 409


async def test_assign_manager_is_audited(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    db_session: AsyncSession,
) -> None:
    await _assign(async_client, admin_headers, MEERA_ID, ASHA_ID)
    await _assign(async_client, admin_headers, MEERA_ID, RAVI_ID)

    result = await db_session.execute(
        select(AuditLog)
        .where(col(AuditLog.entity_type) == "EMPLOYEE_MANAGER", col(AuditLog.action) == "ASSIGN")
        .order_by(col(AuditLog.created_at))
    )
    entries = list(result.scalars().all())
    assert len(entries) == 2
    assert entries[0].old_values is None
    assert entries[1].old_values == {"manager_id": str(ASHA_ID)}


async def test_assign_manager_requires_admin(
    async_client: AsyncClient,
    make_headers: Callable[..., dict[str, str]],
) -> None:
    resp = await _assign(async_client, make_headers(Role.MANAGER, ASHA_ID), RAVI_ID, ASHA_ID)
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Reading the graph
# ---------------------------------------------------------------------------


async def test_employee_manager_view(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    await _assign(async_client, admin_headers, RAVI_ID, ASHA_ID)
    await _assign(async_client, admin_headers, MEERA_ID, ASHA_ID, effective_from="2024-01-01")
    await _assign(async_client, admin_headers, MEERA_ID, RAVI_ID)

    resp = await async_client.get(f"{ORG_URL}/employee/{MEERA_ID}/manager", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["employee"]["full_name"] == "Meera Iyer"
    assert data["current_manager"]["manager_id"] == str(RAVI_ID)
    assert len(data["manager_history"]) == 2
    assert [edge["manager_id"] for edge in data["hierarchy"]] == [str(RAVI_ID), str(ASHA_ID)]


async def test_my_manager_and_my_team(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    make_headers: Callable[..., dict[str, str]],
) -> None:
    await _assign(async_client, admin_headers, RAVI_ID, ASHA_ID)
    await _assign(async_client, admin_headers, MEERA_ID, ASHA_ID)

    team = await async_client.get(f"{ORG_URL}/my-team", headers=make_headers(Role.MANAGER, ASHA_ID))
    assert team.status_code == 200
    team_data = team.json()["data"]
    assert team_data["is_manager"] is True
    assert team_data["team_size"] == 2
    assert [m["employee"]["full_name"] for m in team_data["team_members"]] == ["Meera Iyer", "Ravi Kumar"]

    manager = await async_client.get(f"{ORG_URL}/my-manager", headers=make_headers(Role.EMPLOYEE, RAVI_ID))
    assert manager.json()["data"]["current_manager"]["manager_id"] == str(ASHA_ID)

    nobody = await async_client.get(f"{ORG_URL}/my-manager", headers=make_headers(Role.MANAGER, ASHA_ID))
    assert nobody.json()["data"]["current_manager"] is None
    assert nobody.json()["data"]["hierarchy"] == []


async def test_team_excludes_inactive_employees(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    make_headers: Callable[..., dict[str, str]],
) -> None:
    await _assign(async_client, admin_headers, RAVI_ID, ASHA_ID)
    await _assign(async_client, admin_headers, KARAN_ID, ASHA_ID)

    team = await async_client.get(f"{ORG_URL}/my-team", headers=make_headers(Role.MANAGER, ASHA_ID))
    assert team.json()["data"]["team_size"] == 1


async def test_manager_team_levels(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    await _assign(async_client, admin_headers, RAVI_ID, ASHA_ID)
    await _assign(async_client, admin_headers, MEERA_ID, RAVI_ID)

    resp = await async_client.get(f"{ORG_URL}/manager/{ASHA_ID}/team", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [m["employee_id"] for m in data["team_members"]] == [str(RAVI_ID)]
    levels = data["team_hierarchy"]["levels"]
    assert [level["level"] for level in levels] == [1, 2]
    assert levels[1]["members"][0]["employee_id"] == str(MEERA_ID)


async def test_ended_edge_is_not_current(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
) -> None:
    resp = await _assign(async_client, admin_headers, RAVI_ID, ASHA_ID, effective_from="2024-01-01")
    relationship_id = resp.json()["data"]["id"]

    resp = await async_client.put(
        f"{ORG_URL}/manager-relationship/{relationship_id}",
        json={"effective_to": (date.today() - timedelta(days=1)).isoformat()},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["is_active"] is True

    view = await async_client.get(f"{ORG_URL}/employee/{RAVI_ID}/manager", headers=admin_headers)
    assert view.json()["data"]["current_manager"] is None

    team = await async_client.get(f"{ORG_URL}/manager/{ASHA_ID}/team", headers=admin_headers)
    data = team.json()["data"]
    assert data["team_members"] == []
    assert data["team_hierarchy"]["levels"] == []


async def test_update_unknown_relationship_returns_404(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
) -> None:
    resp = await async_client.put(
        f"{ORG_URL}/manager-relationship/{uuid.uuid4()}",
        json={"is_active": False},
        headers=admin_headers,
    )
    assert resp.status_code == 404


async def test_hierarchy_walk_detects_existing_cycle(db_session: AsyncSession) -> None:
    today = date.today()
    db_session.add(EmployeeManager(employee_id=ASHA_ID, manager_id=RAVI_ID, effective_from=today))
    db_session.add(EmployeeManager(employee_id=RAVI_ID, manager_id=ASHA_ID, effective_from=today))
    await db_session.commit()

    with pytest.raises(HierarchyCycleError):
        await organization_service.get_manager_hierarchy(db_session, ASHA_ID)
    with pytest.raises(HierarchyCycleError):
        await organization_service.get_team_hierarchy(db_session, ASHA_ID)


async def test_hierarchy_walk_respects_level_cap(db_session: AsyncSession) -> None:
    today = date.today()
    db_session.add(EmployeeManager(employee_id=MEERA_ID, manager_id=RAVI_ID, effective_from=today))
    db_session.add(EmployeeManager(employee_id=RAVI_ID, manager_id=ASHA_ID, effective_from=today))
    await db_session.commit()

    chain = await organization_service.get_manager_hierarchy(db_session, MEERA_ID, max_levels=1)
    assert [edge.manager_id for edge in chain] == [RAVI_ID]

    assert await organization_service.get_manager_hierarchy(db_session, MEERA_ID, max_levels=0) == []
    team = await organization_service.get_team_hierarchy(db_session, ASHA_ID, max_levels=0)
    assert team.levels == []


async def test_can_approve_only_direct_manager(db_session: AsyncSession) -> None:
    today = date.today()
    db_session.add(EmployeeManager(employee_id=MEERA_ID, manager_id=RAVI_ID, effective_from=today))
    db_session.add(EmployeeManager(employee_id=RAVI_ID, manager_id=ASHA_ID, effective_from=today))
    await db_session.commit()

    assert await organization_service.can_approve(db_session, RAVI_ID, MEERA_ID)
    assert not await organization_service.can_approve(db_session, ASHA_ID, MEERA_ID)


# ---------------------------------------------------------------------------
# Departments
# ---------------------------------------------------------------------------


async def _create_department(client: AsyncClient, headers: dict[str, str], name: str) -> dict[str, Any]:
    resp = await client.post(DEPARTMENTS_URL, json={"name": name, "head_id": str(ASHA_ID)}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def test_create_department_counts_active_members(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
) -> None:
    data = await _create_department(async_client, admin_headers, "Engineering")
    assert data["name"] == "Engineering"
    assert data["head_id"] == str(ASHA_ID)
    assert data["employee_count"] == 3


async def test_duplicate_department_name_conflicts(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    await _create_department(async_client, admin_headers, "Engineering")
    resp = await async_client.post(DEPARTMENTS_URL, json={"name": "engineering"}, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["message"] == "Department with this name already exists"


async def test_department_detail(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    department = await _create_department(async_client, admin_headers, "Engineering")
    resp = await async_client.get(f"{DEPARTMENTS_URL}/{department['id']}", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["stats"] == {"total_employees": 4, "active_employees": 3, "inactive_employees": 1}
    assert len(data["employees"]) == 4


async def test_update_and_delete_department(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    department = await _create_department(async_client, admin_headers, "Engineering")
    await _create_department(async_client, admin_headers, "Finance")

    clash = await async_client.put(
        f"{DEPARTMENTS_URL}/{department['id']}",
        json={"name": "Finance"},
        headers=admin_headers,
    )
    assert clash.status_code == 409

    resp = await async_client.put(
        f"{DEPARTMENTS_URL}/{department['id']}",
        json={"description": "Builds the product"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["description"] == "Builds the product"
    assert resp.json()["data"]["name"] == "Engineering"

    resp = await async_client.delete(f"{DEPARTMENTS_URL}/{department['id']}", headers=admin_headers)
    assert resp.status_code == 200

    listing = await async_client.get(DEPARTMENTS_URL, headers=admin_headers)
    assert [d["name"] for d in listing.json()["data"]] == ["Finance"]

    gone = await async_client.get(f"{DEPARTMENTS_URL}/{department['id']}", headers=admin_headers)
    assert gone.status_code == 404


async def test_organization_chart(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    await _create_department(async_client, admin_headers, "Engineering")
    await _assign(async_client, admin_headers, RAVI_ID, ASHA_ID)

    resp = await async_client.get(f"{ORG_URL}/chart", headers=admin_headers)
    assert resp.status_code == 200
    chart = resp.json()["data"]
    assert len(chart) == 1
    entries = {e["employee"]["full_name"]: e for e in chart[0]["employees"]}
    assert entries["Asha Rao"]["is_manager"] is True
    assert entries["Asha Rao"]["team_size"] == 1
    assert entries["Ravi Kumar"]["current_manager"]["manager_id"] == str(ASHA_ID)

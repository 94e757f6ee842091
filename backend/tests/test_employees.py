"""Tests for the in-memory employee directory and its development endpoints."""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

import pytest

from hrms.exceptions import NotFoundError
from hrms.models.enums import Role
from hrms.services.employee import EmployeeInfo, EmployeeService, InMemoryEmployeeService, require_employee

if TYPE_CHECKING:
    from collections.abc import Callable

    from httpx import AsyncClient

BASE_URL = "/api/employees"


def _employee(name: str, department: str | None = "Engineering", *, is_active: bool = True) -> EmployeeInfo:
    return EmployeeInfo(
        id=uuid.uuid4(),
        employee_code=f"EMP-{name[:3].upper()}",
        full_name=name,
        email=f"{name.split()[0].lower()}@example.com",
        department=department,
        is_active=is_active,
    )


# ---------------------------------------------------------------------------
# In-memory directory
# ---------------------------------------------------------------------------


class TestInMemoryEmployeeService:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(InMemoryEmployeeService(), EmployeeService)

    async def test_get_unknown_returns_none(self) -> None:
        assert await InMemoryEmployeeService().get_employee(uuid.uuid4()) is None

    async def test_list_sorted_and_filtered(self) -> None:
        service = InMemoryEmployeeService()
        service.seed(_employee("Zara Khan"))
        service.seed(_employee("Arjun Mehta"))
        service.seed(_employee("Leela Nair", is_active=False))

        active = await service.list_employees()
        everyone = await service.list_employees(active_only=False)
        assert [e.full_name for e in active] == ["Arjun Mehta", "Zara Khan"]
        assert [e.full_name for e in everyone] == ["Arjun Mehta", "Leela Nair", "Zara Khan"]

    async def test_list_by_department_includes_inactive(self) -> None:
        service = InMemoryEmployeeService()
        service.seed(_employee("Zara Khan"))
        service.seed(_employee("Leela Nair", is_active=False))
        service.seed(_employee("Omar Sheikh", "Finance"))

        members = await service.list_by_department("Engineering")
        assert [e.full_name for e in members] == ["Leela Nair", "Zara Khan"]

    async def test_seed_replaces_existing(self) -> None:
        service = InMemoryEmployeeService()
        employee = _employee("Zara Khan")
        service.seed(employee)
        service.seed(employee.model_copy(update={"department": "Finance"}))

        fetched = await service.get_employee(employee.id)
        assert fetched is not None
        assert fetched.department == "Finance"


async def test_require_employee(directory: InMemoryEmployeeService) -> None:
    employee = _employee("Zara Khan")
    directory.seed(employee)

    assert await require_employee(employee.id) == employee
    with pytest.raises(NotFoundError, match="Manager not found"):
        await require_employee(uuid.uuid4(), "Manager")


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


async def test_upsert_and_get_employee(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    employee_id = uuid.uuid4()
    payload = {
        "employee_code": "EMP900",
        "full_name": "Sara Thomas",
        "email": "sara@example.com",
        "department": "Finance",
        "joining_date": "2024-02-01",
    }
    resp = await async_client.put(f"{BASE_URL}/{employee_id}", json=payload, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == str(employee_id)

    fetched = await async_client.get(f"{BASE_URL}/{employee_id}", headers=admin_headers)
    data = fetched.json()["data"]
    assert data["full_name"] == "Sara Thomas"
    assert data["joining_date"] == date(2024, 2, 1).isoformat()
    assert data["is_active"] is True


async def test_get_unknown_employee_returns_404(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    resp = await async_client.get(f"{BASE_URL}/{uuid.uuid4()}", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Employee not found"


async def test_list_employees(
    async_client: AsyncClient,
    directory: InMemoryEmployeeService,
    make_headers: Callable[..., dict[str, str]],
) -> None:
    directory.seed(_employee("Zara Khan"))
    directory.seed(_employee("Leela Nair", is_active=False))
    headers = make_headers(Role.EMPLOYEE, uuid.uuid4())

    active = await async_client.get(BASE_URL, headers=headers)
    everyone = await async_client.get(BASE_URL, params={"active_only": False}, headers=headers)
    assert active.json()["data"]["total"] == 1
    assert everyone.json()["data"]["total"] == 2


async def test_upsert_requires_admin(
    async_client: AsyncClient,
    make_headers: Callable[..., dict[str, str]],
) -> None:
    resp = await async_client.put(
        f"{BASE_URL}/{uuid.uuid4()}",
        json={"employee_code": "EMP901", "full_name": "Nope", "email": "nope@example.com"},
        headers=make_headers(Role.MANAGER, uuid.uuid4()),
    )
    assert resp.status_code == 403

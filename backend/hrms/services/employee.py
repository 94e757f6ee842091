# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from hrms.exceptions import NotFoundError


class EmployeeInfo(BaseModel):
    """Employee metadata from the Employee Service."""

    id: uuid.UUID
    employee_code: str
    full_name: str
    email: str
    department: str | None = None  # department name, matched against Department.name
    designation: str | None = None
    joining_date: date | None = None
    is_active: bool = True


@runtime_checkable
class EmployeeService(Protocol):
    """Interface for the Employee Service."""

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        ...

    async def list_employees(self, active_only: bool = True) -> list[EmployeeInfo]:
        """List employees, by default only active ones."""
        ...

    async def list_by_department(self, department: str) -> list[EmployeeInfo]:
        """List employees (active or not) belonging to a department."""
        ...


class InMemoryEmployeeService:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._employees: dict[uuid.UUID, EmployeeInfo] = {}

    def seed(self, employee: EmployeeInfo) -> None:
        """Seed an employee for testing."""
        self._employees[employee.id] = employee

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        return self._employees.get(employee_id)

    async def list_employees(self, active_only: bool = True) -> list[EmployeeInfo]:
        """List employees, by default only active ones."""
        employees = sorted(self._employees.values(), key=lambda e: e.full_name)
        if active_only:
            return [e for e in employees if e.is_active]
        return employees

    async def list_by_department(self, department: str) -> list[EmployeeInfo]:
        """List employees (active or not) belonging to a department."""
        return [e for e in await self.list_employees(active_only=False) if e.department == department]


_employee_service: EmployeeService = InMemoryEmployeeService()


def get_employee_service() -> EmployeeService:
    """FastAPI dependency for the Employee Service."""
    return _employee_service


def set_employee_service(service: EmployeeService) -> None:
    """Override the service (for testing or production wiring)."""
    global _employee_service
    _employee_service = service


async def require_employee(employee_id: uuid.UUID, label: str = "Employee") -> EmployeeInfo:
    """Fetch an employee or raise a 404 naming the role they were looked up for."""
    employee = await get_employee_service().get_employee(employee_id)
    if employee is None:
        raise NotFoundError(f"{label} not found")
    return employee

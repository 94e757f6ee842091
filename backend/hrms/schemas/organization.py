# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Department schemas
# ---------------------------------------------------------------------------


class CreateDepartmentRequest(BaseModel):
    """Request body for creating a department."""

    name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    head_id: uuid.UUID | None = None


class UpdateDepartmentRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    head_id: uuid.UUID | None = None


class EmployeeSummary(BaseModel):
    """Directory fields shown wherever an employee is referenced."""

    id: uuid.UUID
    employee_code: str | None = None
    full_name: str | None = None
    designation: str | None = None
    department: str | None = None
    is_active: bool = True


class DepartmentResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    head_id: uuid.UUID | None
    is_active: bool
    employee_count: int
    created_at: datetime
    updated_at: datetime


class DepartmentStats(BaseModel):
    total_employees: int
    active_employees: int
    inactive_employees: int


class DepartmentDetailResponse(BaseModel):
    department: DepartmentResponse
    employees: list[EmployeeSummary]
    stats: DepartmentStats


# ---------------------------------------------------------------------------
# Manager relationship schemas
# ---------------------------------------------------------------------------


class AssignManagerRequest(BaseModel):
    """Request body for assigning a manager to an employee."""

    employee_id: uuid.UUID
    manager_id: uuid.UUID
    effective_from: date | None = None


class UpdateRelationshipRequest(BaseModel):
    """Partial update of a manager edge. Unset fields are left unchanged."""

    effective_to: date | None = None
    is_active: bool | None = None


class ManagerRelationshipResponse(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    manager_id: uuid.UUID
    effective_from: date
    effective_to: date | None
    is_active: bool
    employee: EmployeeSummary
    manager: EmployeeSummary


class EmployeeManagerResponse(BaseModel):
    """Current manager, full history and upward chain of one employee."""

    employee: EmployeeSummary
    current_manager: ManagerRelationshipResponse | None
    manager_history: list[ManagerRelationshipResponse]
    hierarchy: list[ManagerRelationshipResponse]


class TeamLevel(BaseModel):
    level: int
    members: list[ManagerRelationshipResponse]


class TeamHierarchyResponse(BaseModel):
    manager_id: uuid.UUID
    levels: list[TeamLevel]


class ManagerTeamResponse(BaseModel):
    manager: EmployeeSummary
    team_members: list[ManagerRelationshipResponse]
    team_hierarchy: TeamHierarchyResponse


class MyTeamResponse(BaseModel):
    is_manager: bool
    team_members: list[ManagerRelationshipResponse]
    team_size: int


class MyManagerResponse(BaseModel):
    current_manager: ManagerRelationshipResponse | None
    hierarchy: list[ManagerRelationshipResponse]


class OrgChartEmployee(BaseModel):
    employee: EmployeeSummary
    current_manager: ManagerRelationshipResponse | None
    team_size: int
    is_manager: bool


class OrgChartDepartment(BaseModel):
    department: DepartmentResponse
    employees: list[OrgChartEmployee]

# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from hrms.api.deps import AdminDep, EmployeeIdDep, get_auth_context
from hrms.db import SessionDep
from hrms.schemas.common import ApiResponse
from hrms.schemas.organization import (
    AssignManagerRequest,
    CreateDepartmentRequest,
    DepartmentDetailResponse,
    DepartmentResponse,
    EmployeeManagerResponse,
    ManagerRelationshipResponse,
    ManagerTeamResponse,
    MyManagerResponse,
    MyTeamResponse,
    OrgChartDepartment,
    UpdateDepartmentRequest,
    UpdateRelationshipRequest,
)
from hrms.services import organization as organization_service

router = APIRouter(
    prefix="/api/organization",
    tags=["organization"],
    dependencies=[Depends(get_auth_context)],
)


@router.get("/my-team", response_model=ApiResponse[MyTeamResponse])
async def get_my_team(session: SessionDep, employee_id: EmployeeIdDep) -> ApiResponse[MyTeamResponse]:
    return ApiResponse(data=await organization_service.get_my_team(session, employee_id))


@router.get("/my-manager", response_model=ApiResponse[MyManagerResponse])
async def get_my_manager(session: SessionDep, employee_id: EmployeeIdDep) -> ApiResponse[MyManagerResponse]:
    return ApiResponse(data=await organization_service.get_my_manager(session, employee_id))


@router.get("/chart", response_model=ApiResponse[list[OrgChartDepartment]])
async def get_organization_chart(session: SessionDep) -> ApiResponse[list[OrgChartDepartment]]:
    return ApiResponse(data=await organization_service.get_organization_chart(session))


# ---------------------------------------------------------------------------
# Departments
# ---------------------------------------------------------------------------


@router.get("/departments", response_model=ApiResponse[list[DepartmentResponse]])
async def list_departments(session: SessionDep) -> ApiResponse[list[DepartmentResponse]]:
    return ApiResponse(data=await organization_service.list_departments(session))


@router.post("/departments", response_model=ApiResponse[DepartmentResponse], status_code=status.HTTP_201_CREATED)
async def create_department(
    payload: CreateDepartmentRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[DepartmentResponse]:
    department = await organization_service.create_department(session, auth, payload)
    return ApiResponse(message="Department created successfully", data=department)


@router.get("/departments/{department_id}", response_model=ApiResponse[DepartmentDetailResponse])
async def get_department(
    department_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[DepartmentDetailResponse]:
    return ApiResponse(data=await organization_service.get_department_detail(session, department_id))


@router.put("/departments/{department_id}", response_model=ApiResponse[DepartmentResponse])
async def update_department(
    department_id: uuid.UUID,
    payload: UpdateDepartmentRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[DepartmentResponse]:
    department = await organization_service.update_department(session, auth, department_id, payload)
    return ApiResponse(message="Department updated successfully", data=department)


@router.delete("/departments/{department_id}", response_model=ApiResponse[None])
async def delete_department(
    department_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[None]:
    await organization_service.delete_department(session, auth, department_id)
    return ApiResponse(message="Department deleted successfully")


# ---------------------------------------------------------------------------
# Reporting lines
# ---------------------------------------------------------------------------


@router.post(
    "/assign-manager",
    response_model=ApiResponse[ManagerRelationshipResponse],
    status_code=status.HTTP_201_CREATED,
)
async def assign_manager(
    payload: AssignManagerRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[ManagerRelationshipResponse]:
    """Make manager_id the employee's current manager, closing any previous assignment."""
    relationship = await organization_service.assign_manager(session, auth, payload)
    return ApiResponse(message="Manager assigned successfully", data=relationship)


@router.get("/employee/{employee_id}/manager", response_model=ApiResponse[EmployeeManagerResponse])
async def get_employee_manager(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[EmployeeManagerResponse]:
    return ApiResponse(data=await organization_service.get_employee_manager(session, employee_id))


@router.get("/manager/{manager_id}/team", response_model=ApiResponse[ManagerTeamResponse])
async def get_manager_team(
    manager_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[ManagerTeamResponse]:
    return ApiResponse(data=await organization_service.get_manager_team(session, manager_id))


@router.put("/manager-relationship/{relationship_id}", response_model=ApiResponse[ManagerRelationshipResponse])
async def update_manager_relationship(
    relationship_id: uuid.UUID,
    payload: UpdateRelationshipRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[ManagerRelationshipResponse]:
    relationship = await organization_service.update_relationship(session, auth, relationship_id, payload)
    return ApiResponse(message="Manager relationship updated successfully", data=relationship)

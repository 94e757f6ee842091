# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from hrms.api.deps import AdminDep, get_auth_context
from hrms.schemas.common import ApiResponse
from hrms.schemas.employee import EmployeeListResponse, EmployeeResponse, UpsertEmployeeRequest
from hrms.services.employee import EmployeeInfo, get_employee_service, require_employee

employees_router = APIRouter(
    prefix="/api/employees",
    tags=["employees"],
    dependencies=[Depends(get_auth_context)],
)


def _build_employee_response(employee: EmployeeInfo) -> EmployeeResponse:
    return EmployeeResponse(**employee.model_dump())


@employees_router.put("/{employee_id}", response_model=ApiResponse[EmployeeResponse])
async def upsert_employee(
    employee_id: uuid.UUID,
    payload: UpsertEmployeeRequest,
    auth: AdminDep,
) -> ApiResponse[EmployeeResponse]:
    """Create or update an employee in the in-memory directory (admin only)."""
    employee = EmployeeInfo(id=employee_id, **payload.model_dump())
    get_employee_service().seed(employee)  # ty: ignore[unresolved-attribute]
    return ApiResponse(data=_build_employee_response(employee))


@employees_router.get("/{employee_id}", response_model=ApiResponse[EmployeeResponse])
async def get_employee(employee_id: uuid.UUID) -> ApiResponse[EmployeeResponse]:
    return ApiResponse(data=_build_employee_response(await require_employee(employee_id)))


@employees_router.get("", response_model=ApiResponse[EmployeeListResponse])
async def list_employees(
    active_only: bool = Query(default=True),
) -> ApiResponse[EmployeeListResponse]:
    employees = await get_employee_service().list_employees(active_only=active_only)
    items = [_build_employee_response(e) for e in employees]
    return ApiResponse(data=EmployeeListResponse(items=items, total=len(items)))

# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import datetime
import uuid

from fastapi import APIRouter, Depends, Query, status

from hrms.api.deps import AdminDep, AuthDep, EmployeeIdDep, get_auth_context
from hrms.config import get_settings
from hrms.db import SessionDep
from hrms.exceptions import NotFoundError
from hrms.models.enums import LeaveType
from hrms.schemas.balance import EmployeeBalancesResponse, LeaveValidationResult
from hrms.schemas.common import ApiResponse
from hrms.schemas.holiday import (
    BulkHolidayRequest,
    BulkHolidayResponse,
    CreateHolidayRequest,
    HolidayListResponse,
    HolidayResponse,
    UpdateHolidayRequest,
    WorkingDayCheckResponse,
    WorkingDaysResponse,
)
from hrms.schemas.policy import (
    CreateLeavePolicyRequest,
    LeavePolicyListResponse,
    LeavePolicyResponse,
    UpdateLeavePolicyRequest,
    ValidateLeaveRequest,
)
from hrms.services import balance as balance_service
from hrms.services import holiday as holiday_service
from hrms.services import policy as policy_service

router = APIRouter(
    prefix="/api/policies",
    tags=["policies"],
    dependencies=[Depends(get_auth_context)],
)


# ---------------------------------------------------------------------------
# Leave policies
# ---------------------------------------------------------------------------


@router.get("/leave-policies", response_model=ApiResponse[LeavePolicyListResponse])
async def list_leave_policies(
    session: SessionDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> ApiResponse[LeavePolicyListResponse]:
    """List active leave policies with usage stats for the year."""
    return ApiResponse(data=await policy_service.list_policies(session, year))


@router.post(
    "/leave-policies",
    response_model=ApiResponse[LeavePolicyResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_leave_policy(
    payload: CreateLeavePolicyRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[LeavePolicyResponse]:
    policy = await policy_service.create_policy(session, auth, payload)
    return ApiResponse(message="Leave policy created successfully", data=policy)


@router.get("/leave-policies/type/{leave_type}", response_model=ApiResponse[LeavePolicyResponse])
async def get_leave_policy_by_type(leave_type: LeaveType, session: SessionDep) -> ApiResponse[LeavePolicyResponse]:
    return ApiResponse(data=await policy_service.get_policy_by_type(session, leave_type))


@router.put("/leave-policies/{policy_id}", response_model=ApiResponse[LeavePolicyResponse])
async def update_leave_policy(
    policy_id: uuid.UUID,
    payload: UpdateLeavePolicyRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[LeavePolicyResponse]:
    policy = await policy_service.update_policy(session, auth, policy_id, payload)
    return ApiResponse(message="Leave policy updated successfully", data=policy)


@router.delete("/leave-policies/{policy_id}", response_model=ApiResponse[None])
async def delete_leave_policy(
    policy_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[None]:
    await policy_service.delete_policy(session, auth, policy_id)
    return ApiResponse(message="Leave policy deleted successfully")


# ---------------------------------------------------------------------------
# Leave balances
# ---------------------------------------------------------------------------


@router.get("/my-leave-balances", response_model=ApiResponse[EmployeeBalancesResponse])
async def get_my_leave_balances(
    session: SessionDep,
    employee_id: EmployeeIdDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> ApiResponse[EmployeeBalancesResponse]:
    """The caller's balances for the year."""
    year = year or datetime.date.today().year
    return ApiResponse(data=await balance_service.get_all_employee_balances(session, employee_id, year))


@router.get("/employee/{employee_id}/leave-balances", response_model=ApiResponse[EmployeeBalancesResponse])
async def get_employee_leave_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> ApiResponse[EmployeeBalancesResponse]:
    year = year or datetime.date.today().year
    return ApiResponse(data=await balance_service.get_all_employee_balances(session, employee_id, year))


@router.post(
    "/employee/{employee_id}/initialize-balances",
    response_model=ApiResponse[EmployeeBalancesResponse],
    status_code=status.HTTP_201_CREATED,
)
async def initialize_employee_leave_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> ApiResponse[EmployeeBalancesResponse]:
    year = year or datetime.date.today().year
    balances = await balance_service.initialize_all_balances_for_employee(session, auth, employee_id, year)
    return ApiResponse(message="Leave balances initialized successfully", data=balances)


@router.post("/validate-leave", response_model=ApiResponse[LeaveValidationResult])
async def validate_leave(
    payload: ValidateLeaveRequest,
    session: SessionDep,
    auth: AuthDep,
) -> ApiResponse[LeaveValidationResult]:
    """Check a prospective leave request against policy and balance.

    Non-admins can only validate for themselves.
    """
    employee_id = payload.employee_id if auth.is_admin and payload.employee_id else auth.employee_id
    if employee_id is None:
        raise NotFoundError("Employee profile not found")
    result = await balance_service.validate_leave_request(
        session,
        employee_id,
        payload.leave_type,
        payload.start_date,
        payload.end_date,
        payload.requested_days,
    )
    return ApiResponse(data=result)


# ---------------------------------------------------------------------------
# Holidays
# ---------------------------------------------------------------------------


@router.get("/holidays", response_model=ApiResponse[HolidayListResponse])
async def list_holidays(
    session: SessionDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> ApiResponse[HolidayListResponse]:
    return ApiResponse(data=await holiday_service.list_holidays(session, year))


@router.get("/holidays/upcoming", response_model=ApiResponse[list[HolidayResponse]])
async def list_upcoming_holidays(
    session: SessionDep,
    days: int | None = Query(default=None, ge=1, le=365),
) -> ApiResponse[list[HolidayResponse]]:
    days = days or get_settings().upcoming_holidays_days
    return ApiResponse(data=await holiday_service.get_upcoming_holidays(session, days))


@router.post("/holidays", response_model=ApiResponse[HolidayResponse], status_code=status.HTTP_201_CREATED)
async def create_holiday(
    payload: CreateHolidayRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[HolidayResponse]:
    holiday = await holiday_service.create_holiday(session, auth, payload)
    return ApiResponse(message="Holiday created successfully", data=holiday)


@router.post("/holidays/bulk", response_model=ApiResponse[BulkHolidayResponse], status_code=status.HTTP_201_CREATED)
async def create_bulk_holidays(
    payload: BulkHolidayRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[BulkHolidayResponse]:
    """Create many holidays, skipping ones that already exist."""
    result = await holiday_service.create_bulk_holidays(session, auth, payload.holidays)
    return ApiResponse(message=f"{result.created_count} holidays created successfully", data=result)


@router.post(
    "/holidays/create-defaults",
    response_model=ApiResponse[BulkHolidayResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_default_holidays(
    session: SessionDep,
    auth: AdminDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> ApiResponse[BulkHolidayResponse]:
    year = year or datetime.date.today().year
    result = await holiday_service.create_default_holidays(session, auth, year)
    return ApiResponse(message=f"{result.created_count} default holidays created for {year}", data=result)


@router.put("/holidays/{holiday_id}", response_model=ApiResponse[HolidayResponse])
async def update_holiday(
    holiday_id: uuid.UUID,
    payload: UpdateHolidayRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[HolidayResponse]:
    holiday = await holiday_service.update_holiday(session, auth, holiday_id, payload)
    return ApiResponse(message="Holiday updated successfully", data=holiday)


@router.delete("/holidays/{holiday_id}", response_model=ApiResponse[None])
async def delete_holiday(
    holiday_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[None]:
    await holiday_service.delete_holiday(session, auth, holiday_id)
    return ApiResponse(message="Holiday deleted successfully")


@router.get("/working-days", response_model=ApiResponse[WorkingDaysResponse])
async def get_working_days(
    session: SessionDep,
    year: int = Query(ge=2000, le=2100),
    month: int = Query(ge=1, le=12),
) -> ApiResponse[WorkingDaysResponse]:
    return ApiResponse(data=await holiday_service.get_working_days_in_month(session, year, month))


@router.get("/working-days/{day}", response_model=ApiResponse[WorkingDayCheckResponse])
async def check_working_day(
    day: datetime.date,
    session: SessionDep,
) -> ApiResponse[WorkingDayCheckResponse]:
    is_working = await holiday_service.is_working_day(session, day)
    return ApiResponse(data=WorkingDayCheckResponse(date=day, is_working_day=is_working))

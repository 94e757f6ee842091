# ruff: noqa: TC001, TC003
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from hrms.api.deps import AdminDep, require_admin
from hrms.db import SessionDep
from hrms.schemas.common import ApiResponse, BulkResult
from hrms.schemas.setting import (
    CompanySettings,
    CreateSettingRequest,
    ExportedSetting,
    ImportSettingsRequest,
    InitializeSettingsResponse,
    LeaveSettings,
    PayrollSettings,
    ResetSettingsRequest,
    ResetSettingsResponse,
    SettingResponse,
    SettingsByCategoryResponse,
    UpdateMultipleRequest,
    UpdateSettingRequest,
    WorkingHoursSettings,
)
from hrms.services import setting as setting_service

router = APIRouter(
    prefix="/api/settings",
    tags=["settings"],
    dependencies=[Depends(require_admin)],
)


def _bulk_message(result: BulkResult, verb: str) -> str:
    message = f"{result.success_count} settings {verb} successfully"
    if result.failure_count:
        message += f", {result.failure_count} failed"
    return message


@router.get("", response_model=ApiResponse[list[SettingResponse]])
async def list_settings(session: SessionDep) -> ApiResponse[list[SettingResponse]]:
    return ApiResponse(data=await setting_service.list_settings(session))


@router.get("/by-category", response_model=ApiResponse[SettingsByCategoryResponse])
async def get_settings_by_category(session: SessionDep) -> ApiResponse[SettingsByCategoryResponse]:
    return ApiResponse(data=await setting_service.get_settings_by_category(session))


@router.post("", response_model=ApiResponse[SettingResponse], status_code=status.HTTP_201_CREATED)
async def create_setting(
    payload: CreateSettingRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[SettingResponse]:
    setting = await setting_service.create_setting(session, auth, payload)
    return ApiResponse(message="Setting created successfully", data=setting)


@router.put("", response_model=ApiResponse[BulkResult])
async def update_multiple_settings(
    payload: UpdateMultipleRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[BulkResult]:
    """Apply several key updates; each key succeeds or fails on its own."""
    result = await setting_service.update_multiple(session, auth, payload.settings)
    return ApiResponse(message=_bulk_message(result, "updated"), data=result)


@router.get("/export", response_model=ApiResponse[dict[str, ExportedSetting]])
async def export_settings(session: SessionDep) -> ApiResponse[dict[str, ExportedSetting]]:
    return ApiResponse(message="Settings exported successfully", data=await setting_service.export_settings(session))


@router.post("/import", response_model=ApiResponse[BulkResult])
async def import_settings(
    payload: ImportSettingsRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[BulkResult]:
    result = await setting_service.import_settings(session, auth, payload.settings)
    return ApiResponse(message=_bulk_message(result, "imported"), data=result)


@router.post(
    "/initialize-defaults",
    response_model=ApiResponse[InitializeSettingsResponse],
    status_code=status.HTTP_201_CREATED,
)
async def initialize_default_settings(
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[InitializeSettingsResponse]:
    result = await setting_service.initialize_default_settings(session, auth)
    return ApiResponse(message=f"{result.created_count} default settings initialized", data=result)


@router.post("/reset-defaults", response_model=ApiResponse[ResetSettingsResponse])
async def reset_to_defaults(
    payload: ResetSettingsRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[ResetSettingsResponse]:
    result = await setting_service.reset_to_defaults(session, auth, confirm=payload.confirm)
    return ApiResponse(message="Settings reset to defaults successfully", data=result)


# ---------------------------------------------------------------------------
# Category readers
# ---------------------------------------------------------------------------


@router.get("/category/working-hours", response_model=ApiResponse[WorkingHoursSettings])
async def get_working_hours_settings(session: SessionDep) -> ApiResponse[WorkingHoursSettings]:
    return ApiResponse(data=await setting_service.get_working_hours_settings(session))


@router.get("/category/payroll", response_model=ApiResponse[PayrollSettings])
async def get_payroll_settings(session: SessionDep) -> ApiResponse[PayrollSettings]:
    return ApiResponse(data=await setting_service.get_payroll_settings(session))


@router.get("/category/leave", response_model=ApiResponse[LeaveSettings])
async def get_leave_settings(session: SessionDep) -> ApiResponse[LeaveSettings]:
    return ApiResponse(data=await setting_service.get_leave_settings(session))


@router.get("/category/company", response_model=ApiResponse[CompanySettings])
async def get_company_settings(session: SessionDep) -> ApiResponse[CompanySettings]:
    return ApiResponse(data=await setting_service.get_company_settings(session))


# ---------------------------------------------------------------------------
# Single key
# ---------------------------------------------------------------------------


@router.get("/{key}", response_model=ApiResponse[SettingResponse])
async def get_setting(key: str, session: SessionDep) -> ApiResponse[SettingResponse]:
    return ApiResponse(data=await setting_service.get_setting(session, key))


@router.put("/{key}", response_model=ApiResponse[SettingResponse])
async def update_setting(
    key: str,
    payload: UpdateSettingRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[SettingResponse]:
    setting = await setting_service.set_value(session, auth, key, payload.value)
    return ApiResponse(message="Setting updated successfully", data=setting)

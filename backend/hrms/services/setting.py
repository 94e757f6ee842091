"""Typed key/value system settings.

Values are stored as text and decoded on read according to the setting's
type. Bulk updates and imports apply each key independently.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlmodel import col

from hrms.exceptions import AppError, ConflictError, NotFoundError, SettingNotEditableError, ValidationError
from hrms.models.base import now_utc
from hrms.models.enums import AuditAction, AuditEntityType, SettingCategory, SettingType
from hrms.models.setting import SystemSetting
from hrms.schemas.common import BulkResult, ItemResult
from hrms.schemas.setting import (
    CompanySettings,
    ExportedSetting,
    InitializeSettingsResponse,
    LeaveSettings,
    PayrollSettings,
    ResetSettingsResponse,
    SettingResponse,
    SettingsByCategoryResponse,
    WorkingHoursSettings,
)
from hrms.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.auth import AuthContext
    from hrms.schemas.setting import CreateSettingRequest

logger = logging.getLogger(__name__)

# key -> (stored value, type, description)
DEFAULT_SETTINGS: dict[str, tuple[str, SettingType, str]] = {
    "WORKING_HOURS_PER_DAY": ("8", SettingType.NUMBER, "Standard working hours per day"),
    "WORKING_DAYS_PER_WEEK": ("5", SettingType.NUMBER, "Standard working days per week"),
    "PAYROLL_CUTOFF_DATE": ("25", SettingType.NUMBER, "Monthly payroll cutoff date"),
    "LATE_MARK_THRESHOLD": ("15", SettingType.NUMBER, "Minutes after which employee is marked late"),
    "HALF_DAY_THRESHOLD": ("4", SettingType.NUMBER, "Minimum hours for full day attendance"),
    "OVERTIME_THRESHOLD": ("8", SettingType.NUMBER, "Hours after which overtime is calculated"),
    "COMPANY_NAME": ("Dayflow Technologies", SettingType.STRING, "Company name"),
    "COMPANY_ADDRESS": ("Tech Park, Innovation City", SettingType.STRING, "Company address"),
    "LEAVE_APPROVAL_REQUIRED": ("true", SettingType.BOOLEAN, "Whether leave requests require approval"),
    "AUTO_APPROVE_SICK_LEAVE": ("false", SettingType.BOOLEAN, "Auto approve sick leave requests"),
}

_ATTENDANCE_KEYWORDS = ("attendance", "working", "late", "overtime")


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def decode_value(raw: str, setting_type: SettingType, default: Any = None) -> Any:
    """Decode a stored text value. Unparseable NUMBER or JSON yields the default."""
    if setting_type == SettingType.NUMBER:
        try:
            return float(raw)
        except ValueError:
            logger.warning("Stored NUMBER setting is not numeric: %r", raw)
            return default
    if setting_type == SettingType.BOOLEAN:
        return raw.strip().lower() == "true"
    if setting_type == SettingType.JSON:
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return default
    return raw


def encode_value(value: Any, setting_type: SettingType) -> str:
    """Encode a value for storage, raising ValidationError for bad NUMBER or BOOLEAN input."""
    if setting_type == SettingType.JSON:
        return json.dumps(value)
    if setting_type == SettingType.NUMBER:
        if isinstance(value, bool):
            raise ValidationError("Value must be a number")
        if isinstance(value, (int, float)):
            return str(value)
        try:
            float(str(value))
        except ValueError:
            raise ValidationError("Value must be a number") from None
        return str(value).strip()
    if setting_type == SettingType.BOOLEAN:
        if isinstance(value, bool):
            return "true" if value else "false"
        text = str(value).strip().lower()
        if text not in ("true", "false"):
            raise ValidationError("Value must be true or false")
        return text
    return str(value)


def categorize_key(key: str) -> SettingCategory:
    lowered = key.lower()
    if "company" in lowered:
        return SettingCategory.COMPANY
    if any(word in lowered for word in _ATTENDANCE_KEYWORDS):
        return SettingCategory.ATTENDANCE
    if "leave" in lowered:
        return SettingCategory.LEAVE
    if "payroll" in lowered:
        return SettingCategory.PAYROLL
    return SettingCategory.SYSTEM


def build_setting_response(setting: SystemSetting) -> SettingResponse:
    setting_type = SettingType(setting.setting_type)
    return SettingResponse(
        id=setting.id,
        setting_key=setting.setting_key,
        setting_value=setting.setting_value,
        value=decode_value(setting.setting_value, setting_type),
        setting_type=setting_type,
        category=categorize_key(setting.setting_key),
        description=setting.description,
        is_editable=setting.is_editable,
        updated_by=setting.updated_by,
        created_at=setting.created_at,
        updated_at=setting.updated_at,
    )


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def _find_setting(session: AsyncSession, key: str) -> SystemSetting | None:
    result = await session.execute(select(SystemSetting).where(col(SystemSetting.setting_key) == key))
    return result.scalar_one_or_none()


async def _get_setting_or_404(session: AsyncSession, key: str) -> SystemSetting:
    setting = await _find_setting(session, key)
    if setting is None:
        raise NotFoundError(f"Setting '{key}' not found")
    return setting


async def _all_settings(session: AsyncSession) -> list[SystemSetting]:
    result = await session.execute(select(SystemSetting).order_by(col(SystemSetting.setting_key)))
    return list(result.scalars().all())


async def get_value(session: AsyncSession, key: str, default: Any = None) -> Any:
    """Typed value of a setting, or `default` when the key does not exist."""
    setting = await _find_setting(session, key)
    if setting is None:
        return default
    return decode_value(setting.setting_value, SettingType(setting.setting_type), default)


async def get_setting(session: AsyncSession, key: str) -> SettingResponse:
    return build_setting_response(await _get_setting_or_404(session, key))


async def list_settings(session: AsyncSession) -> list[SettingResponse]:
    return [build_setting_response(s) for s in await _all_settings(session)]


async def get_settings_by_category(session: AsyncSession) -> SettingsByCategoryResponse:
    grouped: dict[SettingCategory, list[SettingResponse]] = {category: [] for category in SettingCategory}
    for setting in await _all_settings(session):
        grouped[categorize_key(setting.setting_key)].append(build_setting_response(setting))
    return SettingsByCategoryResponse(**{category.value: items for category, items in grouped.items()})


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def create_setting(session: AsyncSession, auth: AuthContext, payload: CreateSettingRequest) -> SettingResponse:
    if await _find_setting(session, payload.setting_key) is not None:
        raise ConflictError("Setting with this key already exists")

    setting = SystemSetting(
        setting_key=payload.setting_key,
        setting_value=encode_value(payload.setting_value, payload.setting_type),
        setting_type=payload.setting_type.value,
        description=payload.description,
        is_editable=payload.is_editable,
        updated_by=auth.user_id,
    )
    session.add(setting)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.SYSTEM_SETTING,
        entity_id=setting.id,
        action=AuditAction.CREATE,
        new_values=model_to_audit_dict(setting),
    )

    await session.commit()
    await session.refresh(setting)
    return build_setting_response(setting)


async def _apply_value(session: AsyncSession, auth: AuthContext, key: str, value: Any) -> SystemSetting:
    """Encode and stage a new value for an editable setting, with its audit entry."""
    setting = await _get_setting_or_404(session, key)
    if not setting.is_editable:
        raise SettingNotEditableError(key)

    old_value = setting.setting_value
    setting.setting_value = encode_value(value, SettingType(setting.setting_type))
    setting.updated_by = auth.user_id
    setting.updated_at = now_utc()
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.SYSTEM_SETTING,
        entity_id=setting.id,
        action=AuditAction.UPDATE,
        old_values={"key": key, "value": old_value},
        new_values={"key": key, "value": setting.setting_value},
    )
    return setting


async def set_value(session: AsyncSession, auth: AuthContext, key: str, value: Any) -> SettingResponse:
    setting = await _apply_value(session, auth, key, value)
    await session.commit()
    await session.refresh(setting)
    return build_setting_response(setting)


async def _apply_many(
    session: AsyncSession,
    auth: AuthContext,
    items: Iterable[tuple[str, Any]],
) -> BulkResult:
    results: list[ItemResult] = []
    for key, value in items:
        try:
            async with session.begin_nested():
                setting = await _apply_value(session, auth, key, value)
            results.append(
                ItemResult(
                    key=key,
                    success=True,
                    value=decode_value(setting.setting_value, SettingType(setting.setting_type)),
                )
            )
        except AppError as exc:
            results.append(ItemResult(key=key, success=False, error=exc.message))
        except Exception as exc:
            logger.exception("Setting update failed for key=%s", key)
            results.append(ItemResult(key=key, success=False, error=str(exc)))
    await session.commit()
    return BulkResult.from_items(results)


async def update_multiple(session: AsyncSession, auth: AuthContext, settings: dict[str, Any]) -> BulkResult:
    """Set several keys. A missing or locked key fails alone."""
    return await _apply_many(session, auth, settings.items())


async def import_settings(
    session: AsyncSession,
    auth: AuthContext,
    data: dict[str, ExportedSetting],
) -> BulkResult:
    """Apply exported values to existing keys. Unknown keys are reported, never created."""
    return await _apply_many(session, auth, ((key, item.value) for key, item in data.items()))


async def export_settings(session: AsyncSession) -> dict[str, ExportedSetting]:
    """Typed values of all settings, in the shape `import_settings` accepts."""
    return {
        s.setting_key: ExportedSetting(
            value=decode_value(s.setting_value, SettingType(s.setting_type)),
            type=SettingType(s.setting_type),
            description=s.description,
        )
        for s in await _all_settings(session)
    }


async def initialize_default_settings(session: AsyncSession, auth: AuthContext) -> InitializeSettingsResponse:
    """Create any default settings that do not exist yet. Existing keys are untouched."""
    existing_result = await session.execute(
        select(SystemSetting.setting_key).where(col(SystemSetting.setting_key).in_(list(DEFAULT_SETTINGS)))
    )
    existing = set(existing_result.scalars().all())

    created: list[str] = []
    for key, (value, setting_type, description) in DEFAULT_SETTINGS.items():
        if key in existing:
            continue
        session.add(
            SystemSetting(
                setting_key=key,
                setting_value=value,
                setting_type=setting_type.value,
                description=description,
                updated_by=auth.user_id,
            )
        )
        created.append(key)

    if created:
        await write_audit_log(
            session,
            auth,
            entity_type=AuditEntityType.SYSTEM_SETTING,
            entity_id=None,
            action=AuditAction.INITIALIZE,
            new_values={"created": created},
        )
    await session.commit()
    return InitializeSettingsResponse(created=created, created_count=len(created))


async def reset_to_defaults(session: AsyncSession, auth: AuthContext, *, confirm: bool) -> ResetSettingsResponse:
    """Restore every default key to its default value, creating missing ones.

    Non-default keys are left alone.
    """
    if not confirm:
        raise ValidationError("Confirmation required to reset settings to defaults")

    result = await session.execute(
        select(SystemSetting).where(col(SystemSetting.setting_key).in_(list(DEFAULT_SETTINGS)))
    )
    by_key = {s.setting_key: s for s in result.scalars().all()}

    old_values: dict[str, str] = {}
    for key, (value, setting_type, description) in DEFAULT_SETTINGS.items():
        setting = by_key.get(key)
        if setting is None:
            session.add(
                SystemSetting(
                    setting_key=key,
                    setting_value=value,
                    setting_type=setting_type.value,
                    description=description,
                    updated_by=auth.user_id,
                )
            )
            continue
        old_values[key] = setting.setting_value
        setting.setting_value = value
        setting.setting_type = setting_type.value
        setting.updated_by = auth.user_id
        setting.updated_at = now_utc()

    reset = list(DEFAULT_SETTINGS)
    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.SYSTEM_SETTING,
        entity_id=None,
        action=AuditAction.RESET,
        old_values=old_values,
        new_values={key: DEFAULT_SETTINGS[key][0] for key in reset},
    )
    await session.commit()
    return ResetSettingsResponse(reset=reset, reset_count=len(reset))


# ---------------------------------------------------------------------------
# Category readers
# ---------------------------------------------------------------------------


async def _default_typed(session: AsyncSession, key: str) -> Any:
    raw, setting_type, _ = DEFAULT_SETTINGS[key]
    return await get_value(session, key, decode_value(raw, setting_type))


async def get_working_hours_settings(session: AsyncSession) -> WorkingHoursSettings:
    return WorkingHoursSettings(
        working_hours_per_day=await _default_typed(session, "WORKING_HOURS_PER_DAY"),
        working_days_per_week=await _default_typed(session, "WORKING_DAYS_PER_WEEK"),
        late_mark_threshold=await _default_typed(session, "LATE_MARK_THRESHOLD"),
        half_day_threshold=await _default_typed(session, "HALF_DAY_THRESHOLD"),
        overtime_threshold=await _default_typed(session, "OVERTIME_THRESHOLD"),
    )


async def get_payroll_settings(session: AsyncSession) -> PayrollSettings:
    return PayrollSettings(payroll_cutoff_date=await _default_typed(session, "PAYROLL_CUTOFF_DATE"))


async def get_leave_settings(session: AsyncSession) -> LeaveSettings:
    return LeaveSettings(
        leave_approval_required=await _default_typed(session, "LEAVE_APPROVAL_REQUIRED"),
        auto_approve_sick_leave=await _default_typed(session, "AUTO_APPROVE_SICK_LEAVE"),
    )


async def get_company_settings(session: AsyncSession) -> CompanySettings:
    return CompanySettings(
        company_name=await _default_typed(session, "COMPANY_NAME"),
        company_address=await _default_typed(session, "COMPANY_ADDRESS"),
    )

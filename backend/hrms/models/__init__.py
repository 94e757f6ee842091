from sqlmodel import SQLModel

from hrms.models.audit import AuditLog
from hrms.models.balance import EmployeeLeaveBalance
from hrms.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from hrms.models.document import Document
from hrms.models.enums import (
    ApprovalLevel,
    AuditAction,
    AuditEntityType,
    DocumentType,
    HolidayType,
    LeaveType,
    NotificationType,
    ReviewAction,
    ReviewStatus,
    Role,
    SettingCategory,
    SettingType,
)
from hrms.models.holiday import Holiday
from hrms.models.notification import Notification
from hrms.models.organization import Department, EmployeeManager
from hrms.models.policy import LeavePolicy
from hrms.models.review import PerformanceReview
from hrms.models.setting import SystemSetting

__all__ = [
    "ApprovalLevel",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "Department",
    "Document",
    "DocumentType",
    "EmployeeLeaveBalance",
    "EmployeeManager",
    "Holiday",
    "HolidayType",
    "LeavePolicy",
    "LeaveType",
    "Notification",
    "NotificationType",
    "PerformanceReview",
    "ReviewAction",
    "ReviewStatus",
    "Role",
    "SQLModel",
    "SettingCategory",
    "SettingType",
    "SystemSetting",
    "TimestampMixin",
    "UUIDBase",
    "UpdatedAtMixin",
]

from __future__ import annotations

import enum


class Role(enum.StrEnum):
    """Role carried in the access token."""

    ADMIN = "ADMIN"
    HR = "HR"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class LeaveType(enum.StrEnum):
    """Kind of leave governed by a policy."""

    SICK = "SICK"
    CASUAL = "CASUAL"
    ANNUAL = "ANNUAL"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"
    EMERGENCY = "EMERGENCY"


class ApprovalLevel(enum.StrEnum):
    """Organizational rank required to approve a leave type."""

    MANAGER = "MANAGER"
    HR = "HR"
    ADMIN = "ADMIN"


class HolidayType(enum.StrEnum):
    PUBLIC = "PUBLIC"
    OPTIONAL = "OPTIONAL"
    RESTRICTED = "RESTRICTED"


class ReviewStatus(enum.StrEnum):
    """Lifecycle of a performance review. Only moves forward."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    REVIEWED = "REVIEWED"
    APPROVED = "APPROVED"


class ReviewAction(enum.StrEnum):
    """Action that advances a performance review."""

    SUBMIT = "SUBMIT"
    REVIEW = "REVIEW"
    APPROVE = "APPROVE"


class SettingType(enum.StrEnum):
    """How a system setting value is encoded as text."""

    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    JSON = "JSON"


class SettingCategory(enum.StrEnum):
    COMPANY = "company"
    ATTENDANCE = "attendance"
    LEAVE = "leave"
    PAYROLL = "payroll"
    SYSTEM = "system"


class DocumentType(enum.StrEnum):
    CONTRACT = "CONTRACT"
    ID_PROOF = "ID_PROOF"
    ADDRESS_PROOF = "ADDRESS_PROOF"
    EDUCATION = "EDUCATION"
    EXPERIENCE = "EXPERIENCE"
    MEDICAL = "MEDICAL"
    OTHER = "OTHER"


class NotificationType(enum.StrEnum):
    """Event category of an in-app notification."""

    GENERAL = "GENERAL"
    LEAVE_APPROVED = "LEAVE_APPROVED"
    LEAVE_REJECTED = "LEAVE_REJECTED"
    PAYROLL_GENERATED = "PAYROLL_GENERATED"
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    LEAVE_POLICY = "LEAVE_POLICY"
    LEAVE_BALANCE = "LEAVE_BALANCE"
    HOLIDAY = "HOLIDAY"
    DEPARTMENT = "DEPARTMENT"
    EMPLOYEE_MANAGER = "EMPLOYEE_MANAGER"
    PERFORMANCE_REVIEW = "PERFORMANCE_REVIEW"
    SYSTEM_SETTING = "SYSTEM_SETTING"
    DOCUMENT = "DOCUMENT"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    BULK_CREATE = "BULK_CREATE"
    ASSIGN = "ASSIGN"
    SUBMIT = "SUBMIT"
    REVIEW = "REVIEW"
    APPROVE = "APPROVE"
    IMPORT = "IMPORT"
    RESET = "RESET"
    INITIALIZE = "INITIALIZE"

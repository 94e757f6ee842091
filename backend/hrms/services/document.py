"""Employee document metadata. File bytes live in external storage."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlmodel import col

from hrms.config import get_settings
from hrms.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from hrms.models.document import Document
from hrms.models.enums import AuditAction, AuditEntityType, DocumentType
from hrms.schemas.document import (
    DocumentDownloadResponse,
    DocumentListResponse,
    DocumentResponse,
    DocumentTypeStats,
    EmployeeDocumentsResponse,
)
from hrms.services import notification as notify
from hrms.services.audit import model_to_audit_dict, write_audit_log
from hrms.services.employee import get_employee_service, require_employee
from hrms.services.organization import summarize_employee

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.auth import AuthContext
    from hrms.schemas.document import RegisterDocumentRequest

logger = logging.getLogger(__name__)


def get_document_types() -> list[DocumentType]:
    return list(DocumentType)


def validate_file(mime_type: str, file_size: int) -> None:
    """Reject files whose type or size the configured limits do not allow."""
    settings = get_settings()
    if mime_type.lower() not in settings.document_allowed_mime_types:
        raise ValidationError("Invalid file type. Only PDF, DOC, DOCX, JPG, JPEG, PNG files are allowed.")
    if file_size > settings.document_max_size_bytes:
        limit_mb = settings.document_max_size_bytes // (1024 * 1024)
        raise ValidationError(f"File size exceeds {limit_mb}MB limit")


async def _build_document_response(document: Document) -> DocumentResponse:
    employee = await get_employee_service().get_employee(document.employee_id)
    return DocumentResponse(
        id=document.id,
        employee_id=document.employee_id,
        employee_name=employee.full_name if employee is not None else None,
        document_type=DocumentType(document.document_type),
        document_name=document.document_name,
        file_url=document.file_url,
        file_size=document.file_size,
        mime_type=document.mime_type,
        uploaded_by=document.uploaded_by,
        uploaded_at=document.uploaded_at,
    )


async def _get_document_or_404(session: AsyncSession, document_id: uuid.UUID) -> Document:
    result = await session.execute(
        select(Document).where(col(Document.id) == document_id, col(Document.is_active).is_(True))
    )
    document = result.scalar_one_or_none()
    if document is None:
        raise NotFoundError("Document not found")
    return document


async def _find_documents(
    session: AsyncSession,
    employee_id: uuid.UUID | None = None,
    document_type: DocumentType | None = None,
) -> list[DocumentResponse]:
    filters: list[Any] = [col(Document.is_active).is_(True)]
    if employee_id is not None:
        filters.append(col(Document.employee_id) == employee_id)
    if document_type is not None:
        filters.append(col(Document.document_type) == document_type.value)

    result = await session.execute(select(Document).where(*filters).order_by(col(Document.uploaded_at).desc()))
    return [await _build_document_response(d) for d in result.scalars().all()]


async def get_document_stats(session: AsyncSession, employee_id: uuid.UUID | None = None) -> list[DocumentTypeStats]:
    """Count and total size of active documents per type, most common first."""
    count = func.count().label("count")
    query = select(
        col(Document.document_type),
        count,
        func.coalesce(func.sum(col(Document.file_size)), 0),
    ).where(col(Document.is_active).is_(True))
    if employee_id is not None:
        query = query.where(col(Document.employee_id) == employee_id)
    query = query.group_by(col(Document.document_type)).order_by(count.desc())

    result = await session.execute(query)
    return [
        DocumentTypeStats(document_type=DocumentType(row[0]), count=row[1], total_size=int(row[2]))
        for row in result.all()
    ]


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def register_document(
    session: AsyncSession,
    auth: AuthContext,
    payload: RegisterDocumentRequest,
) -> DocumentResponse:
    """Record a stored file against an employee and notify them."""
    validate_file(payload.mime_type, payload.file_size)
    await require_employee(payload.employee_id)

    document = Document(
        employee_id=payload.employee_id,
        document_type=payload.document_type.value,
        document_name=payload.document_name,
        file_url=payload.file_url,
        file_size=payload.file_size,
        mime_type=payload.mime_type.lower(),
        uploaded_by=auth.user_id,
    )
    session.add(document)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.DOCUMENT,
        entity_id=document.id,
        action=AuditAction.CREATE,
        new_values=model_to_audit_dict(document),
    )
    notify.notify_document_uploaded(session, document.employee_id, document.document_type, document.document_name)

    await session.commit()
    await session.refresh(document)
    logger.info("Registered document %s for employee %s", document.id, document.employee_id)
    return await _build_document_response(document)


async def list_documents(
    session: AsyncSession,
    employee_id: uuid.UUID | None = None,
    document_type: DocumentType | None = None,
) -> DocumentListResponse:
    return DocumentListResponse(
        documents=await _find_documents(session, employee_id, document_type),
        stats=await get_document_stats(session),
        document_types=get_document_types(),
    )


async def get_employee_documents(session: AsyncSession, employee_id: uuid.UUID) -> EmployeeDocumentsResponse:
    employee = await require_employee(employee_id)
    return EmployeeDocumentsResponse(
        employee=summarize_employee(employee_id, employee),
        documents=await _find_documents(session, employee_id),
        stats=await get_document_stats(session, employee_id),
    )


async def get_my_documents(session: AsyncSession, employee_id: uuid.UUID) -> DocumentListResponse:
    return DocumentListResponse(
        documents=await _find_documents(session, employee_id),
        stats=await get_document_stats(session, employee_id),
        document_types=get_document_types(),
    )


async def get_download_info(
    session: AsyncSession,
    auth: AuthContext,
    document_id: uuid.UUID,
) -> DocumentDownloadResponse:
    """Storage location of a document. Non-admins may only fetch their own."""
    document = await _get_document_or_404(session, document_id)
    if not auth.is_admin and auth.employee_id != document.employee_id:
        raise PermissionDeniedError("Access denied")
    return DocumentDownloadResponse(
        id=document.id,
        document_name=document.document_name,
        file_url=document.file_url,
        mime_type=document.mime_type,
        file_size=document.file_size,
    )


async def delete_document(session: AsyncSession, auth: AuthContext, document_id: uuid.UUID) -> None:
    document = await _get_document_or_404(session, document_id)
    before = model_to_audit_dict(document)
    document.is_active = False

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.DOCUMENT,
        entity_id=document.id,
        action=AuditAction.DELETE,
        old_values=before,
    )
    await session.commit()

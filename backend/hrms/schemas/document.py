# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from hrms.models.enums import DocumentType
from hrms.schemas.organization import EmployeeSummary


class RegisterDocumentRequest(BaseModel):
    """Metadata for a file already stored elsewhere, registered against an employee."""

    employee_id: uuid.UUID
    document_type: DocumentType
    document_name: str = Field(min_length=1, max_length=255)
    file_url: str = Field(min_length=1, max_length=1024)
    file_size: int = Field(gt=0)
    mime_type: str = Field(min_length=1, max_length=255)


class DocumentResponse(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str | None
    document_type: DocumentType
    document_name: str
    file_url: str
    file_size: int
    mime_type: str
    uploaded_by: uuid.UUID
    uploaded_at: datetime


class DocumentTypeStats(BaseModel):
    document_type: DocumentType
    count: int
    total_size: int


class DocumentListResponse(BaseModel):
    documents: list[DocumentResponse]
    stats: list[DocumentTypeStats]
    document_types: list[DocumentType]


class EmployeeDocumentsResponse(BaseModel):
    employee: EmployeeSummary
    documents: list[DocumentResponse]
    stats: list[DocumentTypeStats]


class DocumentDownloadResponse(BaseModel):
    """What a client needs to fetch the file from storage."""

    id: uuid.UUID
    document_name: str
    file_url: str
    mime_type: str
    file_size: int

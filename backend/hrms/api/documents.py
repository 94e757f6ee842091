# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from hrms.api.deps import AdminDep, AuthDep, EmployeeIdDep, get_auth_context
from hrms.db import SessionDep
from hrms.models.enums import DocumentType
from hrms.schemas.common import ApiResponse
from hrms.schemas.document import (
    DocumentDownloadResponse,
    DocumentListResponse,
    DocumentResponse,
    EmployeeDocumentsResponse,
    RegisterDocumentRequest,
)
from hrms.services import document as document_service

router = APIRouter(
    prefix="/api/documents",
    tags=["documents"],
    dependencies=[Depends(get_auth_context)],
)


@router.get("/my-documents", response_model=ApiResponse[DocumentListResponse])
async def get_my_documents(session: SessionDep, employee_id: EmployeeIdDep) -> ApiResponse[DocumentListResponse]:
    return ApiResponse(data=await document_service.get_my_documents(session, employee_id))


@router.get("/types", response_model=ApiResponse[list[DocumentType]])
async def get_document_types() -> ApiResponse[list[DocumentType]]:
    return ApiResponse(data=document_service.get_document_types())


@router.get("/download/{document_id}", response_model=ApiResponse[DocumentDownloadResponse])
async def get_download_info(
    document_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> ApiResponse[DocumentDownloadResponse]:
    """Where to fetch a document's file. Employees may only fetch their own."""
    return ApiResponse(data=await document_service.get_download_info(session, auth, document_id))


@router.get("", response_model=ApiResponse[DocumentListResponse])
async def list_documents(
    session: SessionDep,
    auth: AdminDep,
    employee_id: uuid.UUID | None = Query(default=None),
    document_type: DocumentType | None = Query(default=None),
) -> ApiResponse[DocumentListResponse]:
    return ApiResponse(data=await document_service.list_documents(session, employee_id, document_type))


@router.post("", response_model=ApiResponse[DocumentResponse], status_code=status.HTTP_201_CREATED)
async def register_document(
    payload: RegisterDocumentRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[DocumentResponse]:
    document = await document_service.register_document(session, auth, payload)
    return ApiResponse(message="Document uploaded successfully", data=document)


@router.get("/employee/{employee_id}", response_model=ApiResponse[EmployeeDocumentsResponse])
async def get_employee_documents(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[EmployeeDocumentsResponse]:
    return ApiResponse(data=await document_service.get_employee_documents(session, employee_id))


@router.delete("/{document_id}", response_model=ApiResponse[None])
async def delete_document(document_id: uuid.UUID, session: SessionDep, auth: AdminDep) -> ApiResponse[None]:
    await document_service.delete_document(session, auth, document_id)
    return ApiResponse(message="Document deleted successfully")

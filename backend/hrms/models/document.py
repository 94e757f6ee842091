# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from hrms.models.base import UUIDBase, now_utc


class Document(UUIDBase, table=True):
    """Metadata for a file stored outside the service."""

    __tablename__ = "document"

    employee_id: uuid.UUID = Field(index=True)
    document_type: str = Field(max_length=50)
    document_name: str = Field(max_length=255)
    file_url: str = Field(max_length=1024)
    file_size: int
    mime_type: str = Field(max_length=255)
    uploaded_by: uuid.UUID
    is_active: bool = True
    uploaded_at: datetime = Field(
        default_factory=now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )

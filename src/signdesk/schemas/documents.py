"""Document, signing and upload schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from signdesk.billing.modes import ProcessingMode
from signdesk.models.document import DocumentStatus
from signdesk.schemas.base import PaginationInfo


class SignerCreate(BaseModel):
    """A signer attached to a document."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr


class SignerResponse(BaseModel):
    """Signer with signing progress."""

    id: UUID
    name: str
    email: str
    signed: bool
    signed_at: datetime | None

    model_config = {"from_attributes": True}


class DocumentCreate(BaseModel):
    """Schema for creating a document."""

    title: str = Field(..., min_length=1, max_length=255)
    message: str | None = Field(None, max_length=5000)
    file_url: str | None = Field(None, max_length=1024)
    mode: ProcessingMode = ProcessingMode.PREVIEW
    signers: list[SignerCreate] = Field(default_factory=list, max_length=50)


class DocumentUpdate(BaseModel):
    """Partial document update. ``signers`` replaces the whole list."""

    title: str | None = Field(None, min_length=1, max_length=255)
    message: str | None = Field(None, max_length=5000)
    file_url: str | None = Field(None, max_length=1024)
    mode: ProcessingMode | None = None
    signers: list[SignerCreate] | None = Field(None, max_length=50)


class DocumentResponse(BaseModel):
    """Full document with its signers."""

    id: UUID
    title: str
    message: str | None
    file_url: str | None
    mode: ProcessingMode
    status: DocumentStatus
    signers: list[SignerResponse]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DocumentSummary(BaseModel):
    """Document row in list views."""

    id: UUID
    title: str
    mode: ProcessingMode
    status: DocumentStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class DocumentListResponse(BaseModel):
    """Paginated documents."""

    items: list[DocumentSummary]
    pagination: PaginationInfo


class SignRequest(BaseModel):
    """Sign a document on behalf of one of its signers."""

    document_id: UUID
    signer_id: UUID
    mode: ProcessingMode = ProcessingMode.PREVIEW


class SignResponse(BaseModel):
    """Signing result."""

    success: bool = True
    message: str
    mode: ProcessingMode
    document_id: UUID
    signer_id: UUID
    document_status: DocumentStatus
    signed_at: datetime | None = None


class UploadResponse(BaseModel):
    """Uploaded (or simulated) file location."""

    success: bool = True
    file_url: str
    file_name: str
    size: int
    mode: ProcessingMode

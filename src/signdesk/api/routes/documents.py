"""Document routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from signdesk.api.dependencies.auth import CurrentUser
from signdesk.api.dependencies.database import get_db
from signdesk.documents.service import DocumentService
from signdesk.models.document import DocumentStatus
from signdesk.schemas.base import ErrorResponse, MessageResponse, PaginationInfo
from signdesk.schemas.documents import (
    DocumentCreate,
    DocumentListResponse,
    DocumentResponse,
    DocumentSummary,
    DocumentUpdate,
)

router = APIRouter()

QUOTA_RESPONSES = {
    status.HTTP_403_FORBIDDEN: {
        "model": ErrorResponse,
        "description": "LIVE mode not available (upgrade required or quota exceeded)",
    },
}


async def get_document_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DocumentService:
    """Dependency to get document service."""
    return DocumentService(db)


DocumentServiceDep = Annotated[DocumentService, Depends(get_document_service)]


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    current_user: CurrentUser,
    document_service: DocumentServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
    status_filter: Annotated[DocumentStatus | None, Query(alias="status")] = None,
) -> DocumentListResponse:
    """List the caller's documents, newest first."""
    documents, total = await document_service.list_documents(
        current_user.id,
        page=page,
        page_size=page_size,
        status=status_filter,
    )
    return DocumentListResponse(
        items=[DocumentSummary.model_validate(d) for d in documents],
        pagination=PaginationInfo.calculate(total=total, page=page, page_size=page_size),
    )


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: UUID,
    current_user: CurrentUser,
    document_service: DocumentServiceDep,
) -> DocumentResponse:
    """Get one of the caller's documents."""
    document = await document_service.get_document(current_user.id, document_id)
    return DocumentResponse.model_validate(document)


@router.post(
    "",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=QUOTA_RESPONSES,
)
async def create_document(
    data: DocumentCreate,
    current_user: CurrentUser,
    document_service: DocumentServiceDep,
) -> DocumentResponse:
    """Create a document. LIVE documents consume one unit of quota."""
    outcome = await document_service.create_document(current_user.id, data)
    return DocumentResponse.model_validate(outcome.value)


@router.put("/{document_id}", response_model=DocumentResponse, responses=QUOTA_RESPONSES)
async def update_document(
    document_id: UUID,
    data: DocumentUpdate,
    current_user: CurrentUser,
    document_service: DocumentServiceDep,
) -> DocumentResponse:
    """Update a document. Switching it from PREVIEW to LIVE consumes quota."""
    outcome = await document_service.update_document(current_user.id, document_id, data)
    return DocumentResponse.model_validate(outcome.value)


@router.delete("/{document_id}", response_model=MessageResponse)
async def delete_document(
    document_id: UUID,
    current_user: CurrentUser,
    document_service: DocumentServiceDep,
) -> MessageResponse:
    """Delete a document and its signers."""
    await document_service.delete_document(current_user.id, document_id)
    return MessageResponse(message="Document deleted successfully")

"""File upload route."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from signdesk.api.dependencies.auth import CurrentUser
from signdesk.api.dependencies.database import get_db
from signdesk.api.dependencies.providers import get_blob_storage
from signdesk.api.routes.documents import QUOTA_RESPONSES
from signdesk.billing.admission import ModeGate
from signdesk.billing.modes import ProcessingMode
from signdesk.core.config import get_settings
from signdesk.documents.uploads import UploadService
from signdesk.integrations.storage import BlobStorage
from signdesk.schemas.documents import UploadResponse

router = APIRouter()


async def get_upload_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    storage: Annotated[BlobStorage, Depends(get_blob_storage)],
) -> UploadService:
    """Dependency to get upload service."""
    return UploadService(
        ModeGate(db),
        storage,
        preview_base_url=get_settings().preview_storage_url,
    )


@router.post("", response_model=UploadResponse, responses=QUOTA_RESPONSES)
async def upload_file(
    current_user: CurrentUser,
    upload_service: Annotated[UploadService, Depends(get_upload_service)],
    file: Annotated[UploadFile, File()],
    mode: Annotated[ProcessingMode, Form()] = ProcessingMode.PREVIEW,
    file_name: Annotated[str | None, Form()] = None,
) -> UploadResponse:
    """Upload a document file.

    LIVE stores the file and consumes quota; PREVIEW returns a preview URL
    and stores nothing.
    """
    # One byte past the limit is enough to reject an oversized file.
    data = await file.read(upload_service.max_bytes + 1)
    outcome = await upload_service.upload(
        current_user.id,
        file_name or file.filename,
        data,
        file.content_type,
        mode,
    )
    return UploadResponse(
        file_url=outcome.value.file_url,
        file_name=outcome.value.file_name,
        size=outcome.value.size,
        mode=outcome.mode,
    )

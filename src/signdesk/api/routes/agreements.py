"""Client agreement routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from signdesk.agreements.service import AgreementService
from signdesk.api.dependencies.auth import CurrentUser
from signdesk.api.dependencies.database import get_db
from signdesk.api.dependencies.providers import get_mailer
from signdesk.api.routes.documents import QUOTA_RESPONSES
from signdesk.billing.modes import ProcessingMode
from signdesk.core.config import get_settings
from signdesk.integrations.mailer import Mailer
from signdesk.schemas.agreements import (
    AgreementCreate,
    AgreementListResponse,
    AgreementResponse,
    AgreementSummary,
    SendLinkRequest,
    SendLinkResponse,
)
from signdesk.schemas.base import PaginationInfo

router = APIRouter()


async def get_agreement_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
) -> AgreementService:
    """Dependency to get agreement service."""
    return AgreementService(db, mailer, public_app_url=get_settings().public_app_url)


AgreementServiceDep = Annotated[AgreementService, Depends(get_agreement_service)]


@router.get("", response_model=AgreementListResponse)
async def list_agreements(
    current_user: CurrentUser,
    agreement_service: AgreementServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
) -> AgreementListResponse:
    """List the caller's agreements, newest first."""
    agreements, total = await agreement_service.list_agreements(
        current_user.id,
        page=page,
        page_size=page_size,
    )
    return AgreementListResponse(
        items=[AgreementSummary.model_validate(a) for a in agreements],
        pagination=PaginationInfo.calculate(total=total, page=page, page_size=page_size),
    )


@router.post("/send-link", response_model=SendLinkResponse, responses=QUOTA_RESPONSES)
async def send_agreement_link(
    data: SendLinkRequest,
    current_user: CurrentUser,
    agreement_service: AgreementServiceDep,
) -> SendLinkResponse:
    """Send the signer link to the client.

    LIVE agreements are emailed and consume quota.
    """
    outcome = await agreement_service.send_link(current_user.id, data.agreement_id)
    agreement = outcome.value
    verb = "would be" if outcome.mode == ProcessingMode.PREVIEW else "was"

    return SendLinkResponse(
        message=f"Signer link {verb} sent to {agreement.client_email}",
        mode=outcome.mode,
        signer_link=agreement.signer_link or "",
        link_sent=agreement.link_sent,
    )


@router.get("/{agreement_id}", response_model=AgreementResponse)
async def get_agreement(
    agreement_id: UUID,
    current_user: CurrentUser,
    agreement_service: AgreementServiceDep,
) -> AgreementResponse:
    """Get one of the caller's agreements."""
    agreement = await agreement_service.get_agreement(current_user.id, agreement_id)
    return AgreementResponse.model_validate(agreement)


@router.post("", response_model=AgreementResponse, status_code=status.HTTP_201_CREATED)
async def create_agreement(
    data: AgreementCreate,
    current_user: CurrentUser,
    agreement_service: AgreementServiceDep,
) -> AgreementResponse:
    """Create a pending agreement with its signer link. Does not consume quota."""
    agreement = await agreement_service.create_agreement(current_user.id, data)
    return AgreementResponse.model_validate(agreement)

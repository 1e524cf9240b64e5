"""Client agreement schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from signdesk.billing.modes import ProcessingMode
from signdesk.models.agreement import AgreementStatus
from signdesk.schemas.base import PaginationInfo


class AgreementCreate(BaseModel):
    """Schema for creating an agreement."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: EmailStr
    payment_amount: Decimal = Field(Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    mode: ProcessingMode = ProcessingMode.PREVIEW


class AgreementResponse(BaseModel):
    """Full agreement."""

    id: UUID
    title: str
    description: str | None
    client_name: str
    client_email: str
    payment_amount: Decimal
    status: AgreementStatus
    mode: ProcessingMode
    signer_link: str | None
    link_sent: bool
    link_sent_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class AgreementSummary(BaseModel):
    """Agreement row in list views."""

    id: UUID
    title: str
    client_name: str
    status: AgreementStatus
    mode: ProcessingMode
    created_at: datetime

    model_config = {"from_attributes": True}


class AgreementListResponse(BaseModel):
    """Paginated agreements."""

    items: list[AgreementSummary]
    pagination: PaginationInfo


class SendLinkResponse(BaseModel):
    """Result of sending the signer link."""

    success: bool = True
    message: str
    mode: ProcessingMode
    signer_link: str
    link_sent: bool


class SendLinkRequest(BaseModel):
    """Which agreement's signer link to send."""

    agreement_id: UUID

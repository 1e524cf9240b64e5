"""One-off payment routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from signdesk.api.dependencies.auth import CurrentUser
from signdesk.api.dependencies.providers import get_payment_provider
from signdesk.billing.service import PaymentService
from signdesk.core.config import get_settings
from signdesk.integrations.payments import PaymentProvider
from signdesk.schemas.payments import (
    PaymentConfirmRequest,
    PaymentConfirmResponse,
    PaymentIntentCreate,
    PaymentIntentResponse,
)

router = APIRouter()


async def get_payment_service(
    payments: Annotated[PaymentProvider, Depends(get_payment_provider)],
) -> PaymentService:
    """Dependency to get payment service."""
    return PaymentService(payments, currency=get_settings().payment_currency)


PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]


@router.post("/create-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    data: PaymentIntentCreate,
    current_user: CurrentUser,
    payment_service: PaymentServiceDep,
) -> PaymentIntentResponse:
    """Create a payment intent, or a simulated one in PREVIEW mode."""
    client_secret, intent_id = await payment_service.create_intent(
        current_user.id,
        data.amount,
        data.mode,
    )
    return PaymentIntentResponse(
        client_secret=client_secret,
        payment_intent_id=intent_id,
        mode=data.mode,
    )


@router.post("/confirm", response_model=PaymentConfirmResponse)
async def confirm_payment(
    data: PaymentConfirmRequest,
    current_user: CurrentUser,
    payment_service: PaymentServiceDep,
) -> PaymentConfirmResponse:
    """Confirm a payment with the provider, or simulate it in PREVIEW mode."""
    message, intent_status = await payment_service.confirm(
        current_user.id,
        data.payment_intent_id,
        data.mode,
    )
    return PaymentConfirmResponse(message=message, mode=data.mode, status=intent_status)

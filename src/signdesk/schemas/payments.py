"""One-off payment schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field

from signdesk.billing.modes import ProcessingMode


class PaymentIntentCreate(BaseModel):
    """Amount is in dollars; it is converted to cents for the provider."""

    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    mode: ProcessingMode = ProcessingMode.PREVIEW


class PaymentIntentResponse(BaseModel):
    success: bool = True
    client_secret: str
    payment_intent_id: str | None = None
    mode: ProcessingMode


class PaymentConfirmRequest(BaseModel):
    payment_intent_id: str = Field(..., min_length=1, max_length=255)
    mode: ProcessingMode = ProcessingMode.PREVIEW


class PaymentConfirmResponse(BaseModel):
    success: bool = True
    message: str
    mode: ProcessingMode
    status: str

"""Pydantic schemas for the billing and subscription API."""

from pydantic import BaseModel, Field

from signdesk.billing.tier_catalog import SubscriptionTier, TierPlan


class PlanResponse(BaseModel):
    """A catalog plan as shown on the pricing page."""

    id: SubscriptionTier
    name: str
    monthly_live_quota: int = Field(..., ge=0)
    monthly_price_cents: int = Field(..., ge=0)
    features: list[str] = Field(default_factory=list)
    recommended: bool = False

    @classmethod
    def from_plan(cls, plan: TierPlan) -> "PlanResponse":
        return cls(
            id=plan.id,
            name=plan.name,
            monthly_live_quota=plan.monthly_live_quota,
            monthly_price_cents=plan.monthly_price_cents,
            features=list(plan.features),
            recommended=plan.recommended,
        )


class PackageResponse(BaseModel):
    """Current tier and LIVE counters of the caller."""

    tier: SubscriptionTier
    live_quota: int
    live_used: int


class QuotaResponse(BaseModel):
    """Whether the caller can run another LIVE action."""

    tier: SubscriptionTier
    has_quota: bool
    quota_remaining: int = Field(..., ge=0)


class SubscriptionIntentRequest(BaseModel):
    """Start checkout for a paid tier."""

    tier: SubscriptionTier


class SubscriptionIntentResponse(BaseModel):
    """Client secret the browser uses to complete payment."""

    client_secret: str
    payment_intent_id: str
    tier: SubscriptionTier
    amount_cents: int
    currency: str


class SubscriptionConfirmRequest(BaseModel):
    """Finish checkout once the payment intent has succeeded."""

    tier: SubscriptionTier
    payment_intent_id: str = Field(..., min_length=1, max_length=255)


class SubscriptionResponse(BaseModel):
    """Account state after a subscription change."""

    success: bool = True
    message: str
    tier: SubscriptionTier
    live_quota: int
    live_used: int

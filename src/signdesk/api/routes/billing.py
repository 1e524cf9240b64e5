"""Subscription and LIVE quota routes."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from signdesk.api.dependencies.auth import CurrentUser
from signdesk.api.dependencies.database import get_db
from signdesk.api.dependencies.providers import get_payment_provider
from signdesk.billing.quota_ledger import AccountSnapshot
from signdesk.billing.schemas import (
    PackageResponse,
    PlanResponse,
    QuotaResponse,
    SubscriptionConfirmRequest,
    SubscriptionIntentRequest,
    SubscriptionIntentResponse,
    SubscriptionResponse,
)
from signdesk.billing.service import SubscriptionService
from signdesk.core.config import get_settings
from signdesk.integrations.payments import PaymentProvider

router = APIRouter()


async def get_subscription_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    payments: Annotated[PaymentProvider, Depends(get_payment_provider)],
) -> SubscriptionService:
    """Dependency to get subscription service.

    Args:
        db: Database session
        payments: Payment provider

    Returns:
        SubscriptionService instance
    """
    return SubscriptionService(db, payments, currency=get_settings().payment_currency)


SubscriptionServiceDep = Annotated[SubscriptionService, Depends(get_subscription_service)]


def _subscription_response(account: AccountSnapshot, message: str) -> SubscriptionResponse:
    return SubscriptionResponse(
        message=message,
        tier=account.tier,
        live_quota=account.live_quota,
        live_used=account.live_used,
    )


@router.get("/plans", response_model=list[PlanResponse])
async def list_plans() -> list[PlanResponse]:
    """List the subscription catalog, cheapest first."""
    return [PlanResponse.from_plan(plan) for plan in SubscriptionService.list_plans()]


@router.get("/package", response_model=PackageResponse)
async def get_package(
    current_user: CurrentUser,
    subscription_service: SubscriptionServiceDep,
) -> PackageResponse:
    """Get the caller's tier and LIVE counters."""
    account = await subscription_service.get_package(current_user.id)
    return PackageResponse(
        tier=account.tier,
        live_quota=account.live_quota,
        live_used=account.live_used,
    )


@router.get("/quota", response_model=QuotaResponse)
async def check_quota(
    current_user: CurrentUser,
    subscription_service: SubscriptionServiceDep,
) -> QuotaResponse:
    """Check whether the caller can run another LIVE action."""
    account, has_quota, remaining = await subscription_service.check_quota(current_user.id)
    return QuotaResponse(tier=account.tier, has_quota=has_quota, quota_remaining=remaining)


@router.post("/subscription/intent", response_model=SubscriptionIntentResponse)
async def create_subscription_intent(
    data: SubscriptionIntentRequest,
    current_user: CurrentUser,
    subscription_service: SubscriptionServiceDep,
) -> SubscriptionIntentResponse:
    """Start checkout for a paid tier."""
    plan, intent = await subscription_service.create_subscription_intent(
        current_user,
        data.tier,
    )
    return SubscriptionIntentResponse(
        client_secret=intent.client_secret,
        payment_intent_id=intent.id,
        tier=plan.id,
        amount_cents=intent.amount_cents,
        currency=intent.currency,
    )


@router.post("/subscription/confirm", response_model=SubscriptionResponse)
async def confirm_subscription(
    data: SubscriptionConfirmRequest,
    current_user: CurrentUser,
    subscription_service: SubscriptionServiceDep,
) -> SubscriptionResponse:
    """Apply a paid tier once its payment has succeeded."""
    account = await subscription_service.confirm_subscription(
        current_user,
        data.tier,
        data.payment_intent_id,
    )
    return _subscription_response(account, f"Subscribed to the {account.tier.value} plan")


@router.post("/subscription/downgrade", response_model=SubscriptionResponse)
async def downgrade_subscription(
    current_user: CurrentUser,
    subscription_service: SubscriptionServiceDep,
) -> SubscriptionResponse:
    """Return to the free tier. LIVE usage is cleared."""
    account = await subscription_service.downgrade(current_user)
    return _subscription_response(account, "Downgraded to the free plan")

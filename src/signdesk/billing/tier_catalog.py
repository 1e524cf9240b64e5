"""Subscription tier catalog.

Static, process-wide table of plan tiers with their monthly LIVE quota
and price. Lookups never fail: any unrecognized tier resolves to the
free plan.
"""

import enum
from dataclasses import dataclass, field


class SubscriptionTier(str, enum.Enum):
    """Subscription tier enum."""

    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


@dataclass(frozen=True)
class TierPlan:
    """Entitlements and price of one subscription tier."""

    id: SubscriptionTier
    name: str
    monthly_live_quota: int
    monthly_price_cents: int
    features: tuple[str, ...] = field(default_factory=tuple)
    recommended: bool = False

    @property
    def is_paid(self) -> bool:
        return self.monthly_price_cents > 0


TIER_PLANS: dict[SubscriptionTier, TierPlan] = {
    SubscriptionTier.FREE: TierPlan(
        id=SubscriptionTier.FREE,
        name="Free",
        monthly_live_quota=0,
        monthly_price_cents=0,
        features=(
            "Document storage",
            "Basic document templates",
            "Preview mode only (unlimited)",
            "Email support",
            "0 LIVE mode documents",
        ),
    ),
    SubscriptionTier.PRO: TierPlan(
        id=SubscriptionTier.PRO,
        name="Pro",
        monthly_live_quota=30,
        monthly_price_cents=4900,
        features=(
            "Everything in Free plan",
            "30 LIVE mode documents",
            "Advanced document templates",
            "Custom branding",
            "Priority support",
        ),
        recommended=True,
    ),
    SubscriptionTier.ENTERPRISE: TierPlan(
        id=SubscriptionTier.ENTERPRISE,
        name="Enterprise",
        monthly_live_quota=100,
        monthly_price_cents=14900,
        features=(
            "Everything in Pro plan",
            "100 LIVE mode documents",
            "API access",
            "Advanced security features",
            "Dedicated account manager",
        ),
    ),
}


def parse_tier(tier: SubscriptionTier | str | None) -> SubscriptionTier:
    """Normalize a tier value, treating anything unrecognized as free."""
    if isinstance(tier, SubscriptionTier):
        return tier
    try:
        return SubscriptionTier(str(tier).strip().lower())
    except ValueError:
        return SubscriptionTier.FREE


def plan_for(tier: SubscriptionTier | str | None) -> TierPlan:
    """Get the plan for a tier.

    Args:
        tier: Tier enum member or raw tier string

    Returns:
        The tier's plan, or the free plan for unknown values
    """
    return TIER_PLANS[parse_tier(tier)]


def paid_tiers() -> list[SubscriptionTier]:
    """Tiers a subscription checkout may target, cheapest first."""
    plans = sorted(
        (plan for plan in TIER_PLANS.values() if plan.is_paid),
        key=lambda plan: plan.monthly_price_cents,
    )
    return [plan.id for plan in plans]


def all_plans() -> list[TierPlan]:
    """All plans ordered by price."""
    return sorted(TIER_PLANS.values(), key=lambda plan: plan.monthly_price_cents)

"""Subscription tiers, LIVE quota accounting and mode admission."""

from signdesk.billing.modes import ActionKind, ProcessingMode
from signdesk.billing.tier_catalog import TIER_PLANS, SubscriptionTier, TierPlan, plan_for

__all__ = [
    "TIER_PLANS",
    "ActionKind",
    "ProcessingMode",
    "SubscriptionTier",
    "TierPlan",
    "plan_for",
]

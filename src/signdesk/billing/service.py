"""Subscription checkout, tier changes and one-off payments."""

import hashlib
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from signdesk.billing.admission import can_use_live
from signdesk.billing.modes import ProcessingMode
from signdesk.billing.quota_ledger import AccountSnapshot, QuotaLedger
from signdesk.billing.tier_catalog import (
    SubscriptionTier,
    TierPlan,
    all_plans,
    paid_tiers,
    parse_tier,
    plan_for,
)
from signdesk.core.exceptions import (
    InvalidTierError,
    PaymentNotCompletedError,
    ResourceAccessDeniedError,
    ValidationError,
)
from signdesk.core.logging import LoggerMixin
from signdesk.integrations.payments import PaymentIntent, PaymentProvider
from signdesk.models.user import User


class SubscriptionService(LoggerMixin):
    """Service for plan lookups and subscription changes."""

    def __init__(
        self,
        db: AsyncSession,
        payments: PaymentProvider,
        currency: str = "usd",
    ) -> None:
        """Initialize subscription service.

        Args:
            db: Database session
            payments: Payment provider used for checkout
            currency: ISO currency code for subscription charges
        """
        self.db = db
        self.payments = payments
        self.currency = currency
        self.ledger = QuotaLedger(db)

    @staticmethod
    def list_plans() -> list[TierPlan]:
        return all_plans()

    async def get_package(self, account_id: UUID) -> AccountSnapshot:
        """Current tier and LIVE counters for an account."""
        return await self.ledger.get_account(account_id)

    async def check_quota(self, account_id: UUID) -> tuple[AccountSnapshot, bool, int]:
        """Return the account, whether LIVE is usable and the units left."""
        account = await self.ledger.get_account(account_id)
        return account, can_use_live(account), QuotaLedger.remaining(account)

    async def create_subscription_intent(
        self,
        user: User,
        tier: SubscriptionTier | str,
    ) -> tuple[TierPlan, PaymentIntent]:
        """Open a payment intent for a paid tier.

        Args:
            user: Subscribing user
            tier: Target tier; must be a paid tier

        Returns:
            The target plan and the provider's payment intent

        Raises:
            InvalidTierError: If the tier cannot be purchased
            PaymentProviderError: If the provider call fails
        """
        plan = self._paid_plan(tier)
        intent = await self.payments.create_payment_intent(
            plan.monthly_price_cents,
            self.currency,
            metadata={"user_id": str(user.id), "tier": plan.id.value},
        )

        self.logger.info(
            "subscription_intent_created",
            user_id=str(user.id),
            tier=plan.id.value,
            payment_intent_id=intent.id,
        )

        return plan, intent

    async def confirm_subscription(
        self,
        user: User,
        tier: SubscriptionTier | str,
        payment_intent_id: str,
    ) -> AccountSnapshot:
        """Apply a paid tier once its payment has gone through.

        The intent must have succeeded, be for the plan's price and, when
        the provider echoes our metadata, belong to this user and tier.

        Raises:
            InvalidTierError: If the tier cannot be purchased
            PaymentNotCompletedError: If the intent has not succeeded
            ValidationError: If the intent does not match the purchase
        """
        plan = self._paid_plan(tier)
        intent = await self.payments.retrieve_payment_intent(payment_intent_id)

        if not intent.succeeded:
            raise PaymentNotCompletedError(
                f"Payment intent {intent.id} is {intent.status}",
                details={"payment_intent_id": intent.id, "status": intent.status},
            )

        if intent.amount_cents != plan.monthly_price_cents:
            raise ValidationError(
                "Payment amount does not match the selected plan",
                field="payment_intent_id",
                value=intent.id,
            )

        owner = intent.metadata.get("user_id")
        paid_tier = intent.metadata.get("tier")
        if (owner and owner != str(user.id)) or (paid_tier and paid_tier != plan.id.value):
            raise ValidationError(
                "Payment intent does not belong to this subscription",
                field="payment_intent_id",
                value=intent.id,
            )

        account = await self.ledger.change_tier(user.id, plan.id)

        user.stripe_customer_id = intent.customer_id
        user.stripe_subscription_id = intent.id
        await self.db.flush()

        self.logger.info(
            "subscription_confirmed",
            user_id=str(user.id),
            tier=plan.id.value,
            payment_intent_id=intent.id,
        )

        return account

    async def downgrade(self, user: User) -> AccountSnapshot:
        """Move the user back to the free tier and clear provider references."""
        account = await self.ledger.change_tier(user.id, SubscriptionTier.FREE)

        user.stripe_customer_id = None
        user.stripe_subscription_id = None
        await self.db.flush()

        self.logger.info("subscription_downgraded", user_id=str(user.id))

        return account

    @staticmethod
    def _paid_plan(tier: SubscriptionTier | str) -> TierPlan:
        requested = parse_tier(tier)
        if requested not in paid_tiers():
            raise InvalidTierError(
                "Only paid tiers can be purchased",
                field="tier",
                value=getattr(tier, "value", tier),
            )
        return plan_for(requested)


class PaymentService(LoggerMixin):
    """One-off payments (e.g. an agreement's fee).

    PREVIEW never reaches the provider. Payments do not consume LIVE quota.
    """

    def __init__(self, payments: PaymentProvider, currency: str = "usd") -> None:
        self.payments = payments
        self.currency = currency

    @staticmethod
    def to_cents(amount: Decimal) -> int:
        return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @staticmethod
    def preview_client_secret(user_id: UUID, amount_cents: int) -> str:
        digest = hashlib.sha256(f"{user_id}:{amount_cents}".encode()).hexdigest()
        return f"mock_pi_{digest[:9]}_secret_{digest[9:18]}"

    async def create_intent(
        self,
        user_id: UUID,
        amount: Decimal,
        mode: ProcessingMode,
    ) -> tuple[str, str | None]:
        """Create a payment intent for ``amount`` dollars.

        Returns:
            Client secret and provider intent id (``None`` in PREVIEW)
        """
        amount_cents = self.to_cents(amount)
        if mode == ProcessingMode.PREVIEW:
            return self.preview_client_secret(user_id, amount_cents), None

        intent = await self.payments.create_payment_intent(
            amount_cents,
            self.currency,
            metadata={"user_id": str(user_id)},
        )
        self.logger.info(
            "payment_intent_created",
            user_id=str(user_id),
            payment_intent_id=intent.id,
            amount_cents=amount_cents,
        )
        return intent.client_secret, intent.id

    async def confirm(
        self,
        user_id: UUID,
        payment_intent_id: str,
        mode: ProcessingMode,
    ) -> tuple[str, str]:
        """Check that a payment went through.

        Returns:
            User-facing message and the intent status

        Raises:
            PaymentNotCompletedError: If the intent has not succeeded
            ResourceAccessDeniedError: If the intent belongs to another user
        """
        if mode == ProcessingMode.PREVIEW:
            return "Payment simulated successfully in PREVIEW mode", "simulated"

        intent = await self.payments.retrieve_payment_intent(payment_intent_id)
        owner = intent.metadata.get("user_id")
        if owner and owner != str(user_id):
            raise ResourceAccessDeniedError(
                "Payment intent belongs to another user",
                details={"payment_intent_id": intent.id},
            )
        if not intent.succeeded:
            raise PaymentNotCompletedError(
                f"Payment intent {intent.id} is {intent.status}",
                details={"payment_intent_id": intent.id, "status": intent.status},
            )

        self.logger.info(
            "payment_confirmed",
            user_id=str(user_id),
            payment_intent_id=intent.id,
        )
        return "Payment processed successfully", intent.status

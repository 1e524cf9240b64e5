"""LIVE quota ledger.

Owns the ``tier`` / ``live_quota`` / ``live_used`` columns of a user
account. The ledger records consumption and tier changes; deciding
whether an action may run is the admission gate's job.

Both mutations are single UPDATE statements so concurrent consumption
and tier changes serialize on the account row instead of racing through
read-modify-write cycles in Python.
"""

from dataclasses import dataclass
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import Row, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.util import identity_key
from sqlalchemy.orm.attributes import set_committed_value

from signdesk.billing.tier_catalog import SubscriptionTier, parse_tier, plan_for
from signdesk.core.exceptions import (
    AccountNotFoundError,
    QuotaExhaustedError,
    TierIneligibleError,
)
from signdesk.core.logging import LoggerMixin
from signdesk.models.user import User


class QuotaAccount(Protocol):
    """Anything carrying the quota fields of an account."""

    tier: SubscriptionTier
    live_quota: int
    live_used: int


@dataclass(frozen=True)
class AccountSnapshot:
    """Immutable view of an account's quota state."""

    id: UUID
    tier: SubscriptionTier
    live_quota: int
    live_used: int

    @classmethod
    def from_user(cls, user: User) -> "AccountSnapshot":
        return cls(
            id=user.id,
            tier=parse_tier(user.tier),
            live_quota=user.live_quota,
            live_used=user.live_used,
        )


class QuotaLedger(LoggerMixin):
    """Persistence primitives for LIVE quota accounting."""

    def __init__(self, db: AsyncSession) -> None:
        """Initialize quota ledger.

        Args:
            db: Database session
        """
        self.db = db

    @staticmethod
    def remaining(account: QuotaAccount) -> int:
        """LIVE actions left in the current cycle (always 0 on the free tier)."""
        if parse_tier(account.tier) == SubscriptionTier.FREE:
            return 0
        return max(0, account.live_quota - account.live_used)

    async def get_account(
        self,
        account_id: UUID,
        for_update: bool = False,
    ) -> AccountSnapshot:
        """Read the current quota state of an account.

        Args:
            account_id: Account to read
            for_update: Lock the account row until the transaction ends

        Raises:
            AccountNotFoundError: If the account does not exist
        """
        query = select(User.id, User.tier, User.live_quota, User.live_used).where(
            User.id == account_id,
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        row = result.one_or_none()
        if row is None:
            raise AccountNotFoundError(resource_type="Account", resource_id=account_id)

        return AccountSnapshot(
            id=row.id,
            tier=parse_tier(row.tier),
            live_quota=row.live_quota,
            live_used=row.live_used,
        )

    async def consume(self, account_id: UUID) -> AccountSnapshot:
        """Record one LIVE action against the account.

        The increment only applies while the account is on a paid tier and
        below its cap, so concurrent callers can never push ``live_used``
        past ``live_quota``.

        Args:
            account_id: Account to charge

        Returns:
            Account state after the increment

        Raises:
            AccountNotFoundError: If the account does not exist
            TierIneligibleError: If the account is on the free tier
            QuotaExhaustedError: If the account is already at its cap
        """
        result = await self.db.execute(
            update(User)
            .where(
                User.id == account_id,
                User.tier != SubscriptionTier.FREE,
                User.live_used < User.live_quota,
            )
            .values(live_used=User.live_used + 1)
            .returning(User.id, User.tier, User.live_quota, User.live_used)
            .execution_options(synchronize_session=False),
        )
        row = result.one_or_none()

        if row is None:
            account = await self.get_account(account_id)
            if account.tier == SubscriptionTier.FREE:
                raise TierIneligibleError(account_id=account_id)
            raise QuotaExhaustedError(
                account_id=account_id,
                details={
                    "live_used": account.live_used,
                    "live_quota": account.live_quota,
                },
            )

        self._sync_cached_user(row)

        self.logger.info(
            "live_quota_consumed",
            account_id=str(account_id),
            live_used=row.live_used,
            live_quota=row.live_quota,
        )

        return AccountSnapshot(
            id=row.id,
            tier=parse_tier(row.tier),
            live_quota=row.live_quota,
            live_used=row.live_used,
        )

    async def change_tier(
        self,
        account_id: UUID,
        new_tier: SubscriptionTier | str,
    ) -> AccountSnapshot:
        """Move an account to a new tier.

        ``live_quota`` is re-snapshotted from the catalog. ``live_used`` is
        cleared only when moving to the free tier; switching between paid
        tiers keeps the current cycle's usage against the new cap.

        Raises:
            AccountNotFoundError: If the account does not exist
        """
        tier = parse_tier(new_tier)
        plan = plan_for(tier)

        values: dict[str, object] = {
            "tier": tier,
            "live_quota": plan.monthly_live_quota,
        }
        if tier == SubscriptionTier.FREE:
            values["live_used"] = 0

        result = await self.db.execute(
            update(User)
            .where(User.id == account_id)
            .values(**values)
            .returning(User.id, User.tier, User.live_quota, User.live_used)
            .execution_options(synchronize_session=False),
        )
        row = result.one_or_none()
        if row is None:
            raise AccountNotFoundError(resource_type="Account", resource_id=account_id)

        self._sync_cached_user(row)

        self.logger.info(
            "subscription_tier_changed",
            account_id=str(account_id),
            tier=tier.value,
            live_quota=row.live_quota,
            live_used=row.live_used,
        )

        return AccountSnapshot(
            id=row.id,
            tier=parse_tier(row.tier),
            live_quota=row.live_quota,
            live_used=row.live_used,
        )

    def _sync_cached_user(self, row: Row[Any]) -> None:
        """Mirror new counters onto an identity-map copy of the user, if loaded."""
        user = self.db.sync_session.identity_map.get(identity_key(User, row.id))
        if user is None:
            return
        set_committed_value(user, "tier", parse_tier(row.tier))
        set_committed_value(user, "live_quota", row.live_quota)
        set_committed_value(user, "live_used", row.live_used)

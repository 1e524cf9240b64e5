"""Mode admission gate.

Decides whether an action may run in LIVE mode and wraps the action so
quota is charged only after its effect succeeds:

    PREVIEW -> effect, no quota read or write
    LIVE    -> evaluate -> effect -> commit (consume one unit)

A rejected LIVE request never reaches the effect. A failed effect never
reaches ``commit``. A failed ``commit`` after a successful effect is a
ledger inconsistency: it is logged and counted for reconciliation and
the effect's result is still returned.

A LIVE run owns the whole transaction of its session: the account row is
locked when it is evaluated and the transaction is committed before the
per-account lock is released, so a concurrent request for the same
account only evaluates once the previous charge is durable.
"""

import asyncio
import enum
import weakref
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from signdesk.billing.modes import ActionKind, ProcessingMode
from signdesk.billing.quota_ledger import AccountSnapshot, QuotaAccount, QuotaLedger
from signdesk.billing.tier_catalog import SubscriptionTier, parse_tier
from signdesk.core.exceptions import (
    LedgerInconsistencyError,
    QuotaExhaustedError,
    QuotaPolicyError,
    SignDeskException,
    TierIneligibleError,
)
from signdesk.core.logging import LoggerMixin
from signdesk.core.metrics import (
    track_admission,
    track_ledger_inconsistency,
    track_quota_consumed,
)

T = TypeVar("T")


class RejectionReason(str, enum.Enum):
    """Why a LIVE request was refused."""

    TIER_INELIGIBLE = "tier_ineligible"
    QUOTA_EXHAUSTED = "quota_exhausted"

    @property
    def user_message(self) -> str:
        if self is RejectionReason.TIER_INELIGIBLE:
            return TierIneligibleError.user_message or ""
        return QuotaExhaustedError.user_message or ""


@dataclass(frozen=True)
class Allowed:
    """The action may run in the given mode."""

    mode: ProcessingMode
    account: AccountSnapshot | None = None


@dataclass(frozen=True)
class Rejected:
    """The action may not run in LIVE mode."""

    reason: RejectionReason
    account: AccountSnapshot | None = None

    def to_exception(self) -> QuotaPolicyError:
        account_id = self.account.id if self.account is not None else None
        if self.reason is RejectionReason.TIER_INELIGIBLE:
            return TierIneligibleError(account_id=account_id)
        details = {}
        if self.account is not None:
            details = {
                "live_used": self.account.live_used,
                "live_quota": self.account.live_quota,
            }
        return QuotaExhaustedError(account_id=account_id, details=details)


Decision = Allowed | Rejected


@dataclass
class ActionOutcome(Generic[T]):
    """Result of an action run through the gate."""

    value: T
    mode: ProcessingMode
    quota_consumed: bool = False
    account: AccountSnapshot | None = None
    inconsistency: LedgerInconsistencyError | None = None

    @property
    def ledger_inconsistent(self) -> bool:
        return self.inconsistency is not None


def can_use_live(account: QuotaAccount) -> bool:
    """Whether the account may run one more LIVE action right now."""
    return (
        parse_tier(account.tier) != SubscriptionTier.FREE
        and QuotaLedger.remaining(account) > 0
    )


def evaluate_account(
    account: QuotaAccount,
    mode: ProcessingMode | str,
) -> Decision:
    """Pure admission decision for an already-loaded account.

    Args:
        account: Object exposing ``tier``, ``live_quota`` and ``live_used``
        mode: Requested processing mode

    Returns:
        ``Allowed`` or ``Rejected`` with the reason
    """
    mode = ProcessingMode(mode)
    snapshot = account if isinstance(account, AccountSnapshot) else None

    if mode == ProcessingMode.PREVIEW:
        return Allowed(mode=mode, account=snapshot)

    if can_use_live(account):
        return Allowed(mode=mode, account=snapshot)

    if parse_tier(account.tier) == SubscriptionTier.FREE:
        return Rejected(reason=RejectionReason.TIER_INELIGIBLE, account=snapshot)
    return Rejected(reason=RejectionReason.QUOTA_EXHAUSTED, account=snapshot)


# One lock per account, held from evaluation until the transaction commits.
_account_locks: "weakref.WeakValueDictionary[UUID, asyncio.Lock]" = (
    weakref.WeakValueDictionary()
)


def _lock_for(account_id: UUID) -> asyncio.Lock:
    lock = _account_locks.get(account_id)
    if lock is None:
        lock = asyncio.Lock()
        _account_locks[account_id] = lock
    return lock


class ModeGate(LoggerMixin):
    """Single decision point for LIVE mode actions."""

    def __init__(self, db: AsyncSession) -> None:
        """Initialize mode gate.

        Args:
            db: Database session
        """
        self.db = db
        self.ledger = QuotaLedger(db)

    async def evaluate(
        self,
        account_id: UUID,
        mode: ProcessingMode | str,
    ) -> Decision:
        """Decide whether ``account_id`` may act in ``mode``.

        PREVIEW is always allowed and does not read the account.

        Raises:
            AccountNotFoundError: If a LIVE request names a missing account
        """
        mode = ProcessingMode(mode)
        if mode == ProcessingMode.PREVIEW:
            return Allowed(mode=mode)

        account = await self.ledger.get_account(account_id)
        return evaluate_account(account, mode)

    async def commit(
        self,
        account_id: UUID,
        kind: ActionKind | str = ActionKind.CREATE_DOCUMENT,
    ) -> AccountSnapshot:
        """Charge one LIVE unit after an allowed action succeeded.

        Runs in a SAVEPOINT so a failed charge leaves the effect's own
        writes in the enclosing transaction untouched.

        Raises:
            TierIneligibleError: If the account lost its paid tier meanwhile
            QuotaExhaustedError: If the quota ran out meanwhile
            AccountNotFoundError: If the account was removed meanwhile
        """
        kind = ActionKind(kind)
        async with self.db.begin_nested():
            account = await self.ledger.consume(account_id)
        track_quota_consumed(kind.value)
        return account

    async def run(
        self,
        account_id: UUID,
        mode: ProcessingMode | str,
        kind: ActionKind | str,
        effect: Callable[[], Awaitable[T]],
    ) -> ActionOutcome[T]:
        """Run ``effect`` under the admission policy.

        Args:
            account_id: Acting account
            mode: Requested processing mode
            kind: Action being performed
            effect: Zero-argument coroutine function performing the action

        A LIVE run commits the session's transaction before it returns,
        so the effect's writes and the charge become durable together.

        Returns:
            The effect's value together with the accounting result

        Raises:
            TierIneligibleError: LIVE request from a free account
            QuotaExhaustedError: LIVE request with no quota left
            AccountNotFoundError: LIVE request for a missing account
        """
        mode = ProcessingMode(mode)
        kind = ActionKind(kind)

        if mode == ProcessingMode.PREVIEW:
            track_admission(kind.value, mode.value, "allowed")
            value = await effect()
            return ActionOutcome(value=value, mode=mode)

        async with _lock_for(account_id):
            account = await self.ledger.get_account(account_id, for_update=True)
            decision = evaluate_account(account, mode)
            if isinstance(decision, Rejected):
                track_admission(kind.value, mode.value, decision.reason.value)
                self.logger.warning(
                    "live_admission_rejected",
                    account_id=str(account_id),
                    action_kind=kind.value,
                    reason=decision.reason.value,
                )
                raise decision.to_exception()

            track_admission(kind.value, mode.value, "allowed")
            value = await effect()

            try:
                account = await self.commit(account_id, kind)
            except (SignDeskException, SQLAlchemyError) as exc:
                inconsistency = self._report_inconsistency(account_id, kind, exc)
                await self.db.commit()
                return ActionOutcome(
                    value=value,
                    mode=mode,
                    inconsistency=inconsistency,
                )

            await self.db.commit()

        return ActionOutcome(
            value=value,
            mode=mode,
            quota_consumed=True,
            account=account,
        )

    def _report_inconsistency(
        self,
        account_id: UUID,
        kind: ActionKind,
        exc: Exception,
    ) -> LedgerInconsistencyError:
        inconsistency = LedgerInconsistencyError(
            details={
                "account_id": str(account_id),
                "action_kind": kind.value,
                "cause": type(exc).__name__,
            },
        )
        track_ledger_inconsistency(kind.value)
        self.logger.error(
            "ledger_inconsistency",
            account_id=str(account_id),
            action_kind=kind.value,
            error_code=inconsistency.error_code.value,
            error_type=type(exc).__name__,
            error_message=str(exc),
        )
        return inconsistency

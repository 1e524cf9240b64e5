"""Tests for the mode admission gate."""

import asyncio
from uuid import uuid4

import pytest
from prometheus_client import REGISTRY
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from signdesk.billing.admission import (
    Allowed,
    ModeGate,
    Rejected,
    RejectionReason,
    can_use_live,
    evaluate_account,
)
from signdesk.billing.modes import ActionKind, ProcessingMode
from signdesk.billing.quota_ledger import AccountSnapshot, QuotaLedger
from signdesk.billing.tier_catalog import SubscriptionTier
from signdesk.core.exceptions import (
    AccountNotFoundError,
    QuotaExhaustedError,
    StorageProviderError,
    TierIneligibleError,
)
from signdesk.models.document import Document
from signdesk.models.user import User


def _account(tier: SubscriptionTier, live_quota: int, live_used: int) -> AccountSnapshot:
    return AccountSnapshot(id=uuid4(), tier=tier, live_quota=live_quota, live_used=live_used)


def _metric(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestCanUseLive:
    """Pure admission rules."""

    @pytest.mark.parametrize(
        ("live_quota", "live_used"),
        [(0, 0), (30, 0), (100, 50), (30, 30), (0, 5)],
    )
    def test_free_tier_never_live(self, live_quota: int, live_used: int) -> None:
        assert can_use_live(_account(SubscriptionTier.FREE, live_quota, live_used)) is False

    @pytest.mark.parametrize("tier", [SubscriptionTier.PRO, SubscriptionTier.ENTERPRISE])
    @pytest.mark.parametrize(("live_quota", "live_used"), [(30, 0), (30, 29), (30, 30), (100, 101)])
    def test_paid_tier_live_while_below_cap(
        self,
        tier: SubscriptionTier,
        live_quota: int,
        live_used: int,
    ) -> None:
        account = _account(tier, live_quota, live_used)
        assert can_use_live(account) is (live_used < live_quota)


class TestEvaluateAccount:
    """Decisions for already-loaded accounts."""

    def test_preview_always_allowed(self) -> None:
        for account in (
            _account(SubscriptionTier.FREE, 0, 0),
            _account(SubscriptionTier.PRO, 30, 30),
        ):
            decision = evaluate_account(account, ProcessingMode.PREVIEW)
            assert isinstance(decision, Allowed)
            assert decision.mode == ProcessingMode.PREVIEW

    def test_free_live_is_tier_ineligible(self) -> None:
        decision = evaluate_account(_account(SubscriptionTier.FREE, 0, 0), "live")

        assert isinstance(decision, Rejected)
        assert decision.reason == RejectionReason.TIER_INELIGIBLE
        assert decision.reason.user_message == "upgrade required"
        assert isinstance(decision.to_exception(), TierIneligibleError)

    def test_paid_at_cap_is_quota_exhausted(self) -> None:
        decision = evaluate_account(_account(SubscriptionTier.PRO, 30, 30), "live")

        assert isinstance(decision, Rejected)
        assert decision.reason == RejectionReason.QUOTA_EXHAUSTED
        assert decision.reason.user_message == "quota exceeded for this billing cycle"
        exc = decision.to_exception()
        assert isinstance(exc, QuotaExhaustedError)
        assert exc.details["live_used"] == 30

    def test_paid_with_quota_is_allowed(self) -> None:
        decision = evaluate_account(_account(SubscriptionTier.ENTERPRISE, 100, 3), "live")
        assert isinstance(decision, Allowed)
        assert decision.mode == ProcessingMode.LIVE


class TestModeGateScenarios:
    """End-to-end gate behaviour against the database."""

    @pytest.mark.asyncio
    async def test_free_account_live_is_rejected(
        self,
        db_session: AsyncSession,
        free_user: User,
    ) -> None:
        gate = ModeGate(db_session)
        calls: list[str] = []

        async def effect() -> str:
            calls.append("ran")
            return "done"

        with pytest.raises(TierIneligibleError):
            await gate.run(free_user.id, ProcessingMode.LIVE, ActionKind.SIGN, effect)

        assert calls == []

    @pytest.mark.asyncio
    async def test_last_unit_then_exhausted(
        self,
        db_session: AsyncSession,
        pro_user_last_unit: User,
    ) -> None:
        gate = ModeGate(db_session)

        async def effect() -> str:
            return "signed"

        outcome = await gate.run(
            pro_user_last_unit.id,
            ProcessingMode.LIVE,
            ActionKind.SIGN,
            effect,
        )

        assert outcome.value == "signed"
        assert outcome.quota_consumed is True
        assert outcome.ledger_inconsistent is False
        assert outcome.account is not None
        assert outcome.account.live_used == 30

        with pytest.raises(QuotaExhaustedError):
            await gate.run(pro_user_last_unit.id, ProcessingMode.LIVE, ActionKind.SIGN, effect)

        account = await QuotaLedger(db_session).get_account(pro_user_last_unit.id)
        assert account.live_used == 30

    @pytest.mark.asyncio
    async def test_preview_never_touches_quota(
        self,
        db_session: AsyncSession,
        make_user,
    ) -> None:
        user = await make_user(SubscriptionTier.PRO, live_used=30)
        gate = ModeGate(db_session)

        async def effect() -> int:
            return 1

        for _ in range(5):
            outcome = await gate.run(user.id, ProcessingMode.PREVIEW, ActionKind.UPLOAD, effect)
            assert outcome.mode == ProcessingMode.PREVIEW
            assert outcome.quota_consumed is False
            decision = await gate.evaluate(user.id, ProcessingMode.PREVIEW)
            assert isinstance(decision, Allowed)

        account = await QuotaLedger(db_session).get_account(user.id)
        assert account.live_used == 30

    @pytest.mark.asyncio
    async def test_downgraded_account_is_tier_ineligible(
        self,
        db_session: AsyncSession,
        make_user,
    ) -> None:
        user = await make_user(SubscriptionTier.ENTERPRISE, live_used=12)
        gate = ModeGate(db_session)

        account = await gate.ledger.change_tier(user.id, SubscriptionTier.FREE)
        assert account.live_used == 0

        decision = await gate.evaluate(user.id, ProcessingMode.LIVE)
        assert isinstance(decision, Rejected)
        assert decision.reason == RejectionReason.TIER_INELIGIBLE

    @pytest.mark.asyncio
    async def test_live_run_commits_effect_and_charge(
        self,
        db_session: AsyncSession,
        pro_user: User,
    ) -> None:
        gate = ModeGate(db_session)

        async def effect() -> Document:
            document = Document(user_id=pro_user.id, title="Lease", mode=ProcessingMode.LIVE)
            db_session.add(document)
            await db_session.flush()
            return document

        outcome = await gate.run(pro_user.id, "live", "create_document", effect)
        assert db_session.in_transaction() is False

        # A later rollback of the caller's work cannot undo the run.
        await db_session.rollback()

        assert await db_session.get(Document, outcome.value.id) is not None
        assert (await gate.ledger.get_account(pro_user.id)).live_used == 1

    @pytest.mark.asyncio
    async def test_evaluate_missing_account(self, db_session: AsyncSession) -> None:
        gate = ModeGate(db_session)

        assert isinstance(await gate.evaluate(uuid4(), ProcessingMode.PREVIEW), Allowed)
        with pytest.raises(AccountNotFoundError):
            await gate.evaluate(uuid4(), ProcessingMode.LIVE)


class TestModeGateFailures:
    """Effect and commit failures."""

    @pytest.mark.asyncio
    async def test_failed_effect_is_not_charged(
        self,
        db_session: AsyncSession,
        pro_user: User,
    ) -> None:
        gate = ModeGate(db_session)

        async def effect() -> None:
            raise StorageProviderError("Blob store unreachable")

        with pytest.raises(StorageProviderError):
            await gate.run(pro_user.id, ProcessingMode.LIVE, ActionKind.UPLOAD, effect)

        account = await QuotaLedger(db_session).get_account(pro_user.id)
        assert account.live_used == 0

    @pytest.mark.asyncio
    async def test_failed_commit_reports_inconsistency(
        self,
        db_session: AsyncSession,
        pro_user_last_unit: User,
    ) -> None:
        gate = ModeGate(db_session)
        before = _metric(
            "signdesk_ledger_inconsistency_total",
            kind=ActionKind.CREATE_DOCUMENT.value,
        )

        async def effect() -> str:
            # Another writer takes the last unit while the effect is running.
            await QuotaLedger(db_session).consume(pro_user_last_unit.id)
            return "created"

        outcome = await gate.run(
            pro_user_last_unit.id,
            ProcessingMode.LIVE,
            ActionKind.CREATE_DOCUMENT,
            effect,
        )

        assert outcome.value == "created"
        assert outcome.quota_consumed is False
        assert outcome.ledger_inconsistent is True
        assert outcome.inconsistency is not None
        assert outcome.inconsistency.details["action_kind"] == "create_document"
        assert outcome.inconsistency.details["cause"] == "QuotaExhaustedError"
        assert (
            _metric("signdesk_ledger_inconsistency_total", kind="create_document")
            == before + 1
        )

    @pytest.mark.asyncio
    async def test_commit_counts_consumption(
        self,
        db_session: AsyncSession,
        pro_user: User,
    ) -> None:
        gate = ModeGate(db_session)
        before = _metric("signdesk_live_quota_consumed_total", kind="send_agreement")

        account = await gate.commit(pro_user.id, ActionKind.SEND_AGREEMENT)

        assert account.live_used == 1
        assert _metric("signdesk_live_quota_consumed_total", kind="send_agreement") == before + 1

    @pytest.mark.asyncio
    async def test_rejections_are_counted(self, db_session: AsyncSession, free_user: User) -> None:
        gate = ModeGate(db_session)
        before = _metric(
            "signdesk_live_admission_total",
            kind="sign",
            mode="live",
            outcome="tier_ineligible",
        )

        async def effect() -> None:
            return None

        with pytest.raises(TierIneligibleError):
            await gate.run(free_user.id, "live", "sign", effect)

        after = _metric(
            "signdesk_live_admission_total",
            kind="sign",
            mode="live",
            outcome="tier_ineligible",
        )
        assert after == before + 1


class TestConcurrentGate:
    """Concurrent LIVE requests, each with its own session and transaction."""

    @pytest.mark.asyncio
    async def test_only_one_request_gets_the_last_unit(
        self,
        file_session_factory: async_sessionmaker[AsyncSession],
        make_file_user,
    ) -> None:
        user = await make_file_user(SubscriptionTier.PRO, live_used=29)

        async def request() -> str:
            async with file_session_factory() as session:

                async def effect() -> Document:
                    document = Document(
                        user_id=user.id,
                        title="Master services agreement",
                        mode=ProcessingMode.LIVE,
                    )
                    session.add(document)
                    await session.flush()
                    return document

                try:
                    outcome = await ModeGate(session).run(
                        user.id,
                        ProcessingMode.LIVE,
                        ActionKind.CREATE_DOCUMENT,
                        effect,
                    )
                except QuotaExhaustedError:
                    await session.rollback()
                    return "rejected"
                # Request teardown commits whatever the handler left behind.
                await session.commit()
                return "inconsistent" if outcome.ledger_inconsistent else "charged"

        results = await asyncio.gather(*(request() for _ in range(5)))

        async with file_session_factory() as session:
            documents = await session.scalar(
                select(func.count()).select_from(Document).where(Document.user_id == user.id),
            )
            account = await QuotaLedger(session).get_account(user.id)

        assert sorted(results) == ["charged", "rejected", "rejected", "rejected", "rejected"]
        assert documents == 1
        assert account.live_used == 30

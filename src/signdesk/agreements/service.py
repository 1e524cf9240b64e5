"""Agreement creation and signer-link delivery."""

from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from signdesk.billing.admission import ActionOutcome, ModeGate
from signdesk.billing.modes import ActionKind, ProcessingMode
from signdesk.core.exceptions import AgreementNotFoundError, ResourceAccessDeniedError
from signdesk.core.logging import LoggerMixin
from signdesk.integrations.mailer import Mailer
from signdesk.models.agreement import Agreement, AgreementStatus
from signdesk.models.base import utcnow
from signdesk.schemas.agreements import AgreementCreate

SIGNER_LINK_PATH = "/client-engagement"


def build_signer_link(base_url: str, agreement_id: UUID) -> str:
    return f"{base_url.rstrip('/')}{SIGNER_LINK_PATH}?agreementId={agreement_id}"


class AgreementService(LoggerMixin):
    """Service for client agreements."""

    def __init__(
        self,
        db: AsyncSession,
        mailer: Mailer,
        public_app_url: str,
        gate: ModeGate | None = None,
    ) -> None:
        """Initialize agreement service.

        Args:
            db: Database session
            mailer: Delivers signer links for LIVE agreements
            public_app_url: Base URL signer links point at
            gate: Mode admission gate; one bound to ``db`` is created if omitted
        """
        self.db = db
        self.mailer = mailer
        self.public_app_url = public_app_url
        self.gate = gate or ModeGate(db)

    async def list_agreements(
        self,
        user_id: UUID,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[Agreement], int]:
        result = await self.db.execute(
            select(Agreement)
            .where(Agreement.user_id == user_id)
            .order_by(Agreement.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size),
        )
        total = await self.db.scalar(
            select(func.count()).select_from(Agreement).where(Agreement.user_id == user_id),
        )
        return list(result.scalars().all()), total or 0

    async def get_agreement(self, user_id: UUID, agreement_id: UUID) -> Agreement:
        """Get an agreement owned by ``user_id``.

        Raises:
            AgreementNotFoundError: If the agreement does not exist
            ResourceAccessDeniedError: If another user owns it
        """
        agreement = await self.db.get(Agreement, agreement_id)
        if agreement is None:
            raise AgreementNotFoundError(resource_type="Agreement", resource_id=agreement_id)
        if agreement.user_id != user_id:
            raise ResourceAccessDeniedError(
                "Not authorized to access this agreement",
                details={"agreement_id": str(agreement_id)},
            )
        return agreement

    async def create_agreement(self, user_id: UUID, data: AgreementCreate) -> Agreement:
        """Create a pending agreement and its signer link.

        Creating an agreement is free in both modes; quota is charged when
        a LIVE agreement's link is actually sent.
        """
        agreement_id = uuid4()
        agreement = Agreement(
            id=agreement_id,
            user_id=user_id,
            title=data.title,
            description=data.description,
            client_name=data.client_name,
            client_email=str(data.client_email),
            payment_amount=data.payment_amount,
            mode=data.mode,
            status=AgreementStatus.PENDING,
            signer_link=build_signer_link(self.public_app_url, agreement_id),
        )
        self.db.add(agreement)
        await self.db.flush()
        await self.db.refresh(agreement)

        self.logger.info(
            "agreement_created",
            agreement_id=str(agreement.id),
            mode=agreement.mode.value,
        )

        return agreement

    async def send_link(self, user_id: UUID, agreement_id: UUID) -> ActionOutcome[Agreement]:
        """Send the signer link to the client.

        LIVE agreements go through the admission gate and the mailer.
        PREVIEW agreements are only marked as sent.
        """
        agreement = await self.get_agreement(user_id, agreement_id)
        link = agreement.signer_link or build_signer_link(self.public_app_url, agreement.id)

        async def effect() -> Agreement:
            if agreement.mode == ProcessingMode.LIVE:
                await self.mailer.send_signer_link(
                    agreement.client_email,
                    link,
                    agreement.title,
                )
            agreement.signer_link = link
            agreement.link_sent = True
            agreement.link_sent_at = utcnow()
            await self.db.flush()
            return agreement

        outcome = await self.gate.run(
            user_id,
            agreement.mode,
            ActionKind.SEND_AGREEMENT,
            effect,
        )

        self.logger.info(
            "agreement_link_sent",
            agreement_id=str(agreement.id),
            mode=outcome.mode.value,
        )

        return outcome

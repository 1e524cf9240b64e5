"""Document CRUD and signing."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from signdesk.billing.admission import ActionOutcome, ModeGate
from signdesk.billing.modes import ActionKind, ProcessingMode
from signdesk.core.exceptions import (
    DocumentNotFoundError,
    ResourceAccessDeniedError,
    SignerNotFoundError,
    ValidationError,
)
from signdesk.core.logging import LoggerMixin
from signdesk.models.base import utcnow
from signdesk.models.document import Document, DocumentStatus, Signer
from signdesk.schemas.documents import (
    DocumentCreate,
    DocumentUpdate,
    SignerCreate,
    SignRequest,
)


@dataclass(frozen=True)
class SignResult:
    """Outcome of one signer signing a document."""

    document_id: UUID
    signer_id: UUID
    document_status: DocumentStatus
    signed_at: datetime | None


def _build_signers(signers: list[SignerCreate]) -> list[Signer]:
    return [Signer(name=s.name, email=str(s.email)) for s in signers]


def _already_signed(signer_id: UUID) -> ValidationError:
    return ValidationError(
        "Signer has already signed this document",
        field="signer_id",
        value=signer_id,
    )


class DocumentService(LoggerMixin):
    """Service for documents and their signers."""

    def __init__(self, db: AsyncSession, gate: ModeGate | None = None) -> None:
        """Initialize document service.

        Args:
            db: Database session
            gate: Mode admission gate; one bound to ``db`` is created if omitted
        """
        self.db = db
        self.gate = gate or ModeGate(db)

    async def list_documents(
        self,
        user_id: UUID,
        page: int = 1,
        page_size: int = 10,
        status: DocumentStatus | None = None,
    ) -> tuple[list[Document], int]:
        """List a user's documents, newest first.

        ``total`` counts every document the user owns, whatever the
        status filter.

        Returns:
            The requested page and the total count
        """
        query = select(Document).where(Document.user_id == user_id)
        if status is not None:
            query = query.where(Document.status == status)
        query = (
            query.order_by(Document.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(query)
        documents = list(result.scalars().all())

        total = await self.db.scalar(
            select(func.count()).select_from(Document).where(Document.user_id == user_id),
        )

        return documents, total or 0

    async def get_document(self, user_id: UUID, document_id: UUID) -> Document:
        """Get a document owned by ``user_id``.

        Raises:
            DocumentNotFoundError: If the document does not exist
            ResourceAccessDeniedError: If another user owns it
        """
        document = await self.db.get(Document, document_id)
        if document is None:
            raise DocumentNotFoundError(resource_type="Document", resource_id=document_id)
        if document.user_id != user_id:
            raise ResourceAccessDeniedError(
                "You don't have permission to access this document",
                details={"document_id": str(document_id)},
            )
        return document

    async def _lock_document(self, document_id: UUID) -> Document:
        """Re-read a document and its signers, locking the row until commit."""
        result = await self.db.execute(
            select(Document)
            .where(Document.id == document_id)
            .with_for_update()
            .execution_options(populate_existing=True),
        )
        document = result.scalar_one_or_none()
        if document is None:
            raise DocumentNotFoundError(resource_type="Document", resource_id=document_id)
        return document

    async def create_document(
        self,
        user_id: UUID,
        data: DocumentCreate,
    ) -> ActionOutcome[Document]:
        """Create a document with its signers.

        A LIVE document consumes one unit of quota.
        """

        async def effect() -> Document:
            document = Document(
                user_id=user_id,
                title=data.title,
                message=data.message,
                file_url=data.file_url,
                mode=data.mode,
                status=DocumentStatus.DRAFT,
                signers=_build_signers(data.signers),
            )
            self.db.add(document)
            await self.db.flush()
            await self.db.refresh(document)
            return document

        outcome = await self.gate.run(user_id, data.mode, ActionKind.CREATE_DOCUMENT, effect)

        self.logger.info(
            "document_created",
            document_id=str(outcome.value.id),
            mode=outcome.mode.value,
            signer_count=len(data.signers),
        )

        return outcome

    async def update_document(
        self,
        user_id: UUID,
        document_id: UUID,
        data: DocumentUpdate,
    ) -> ActionOutcome[Document]:
        """Update a document.

        Switching a PREVIEW document to LIVE goes through the admission gate.
        Every other edit leaves quota alone.

        Raises:
            DocumentNotFoundError: If the document does not exist
            ResourceAccessDeniedError: If another user owns it
            ValidationError: If the document went live concurrently
        """
        document = await self.get_document(user_id, document_id)
        changes = data.model_dump(exclude_unset=True, exclude={"signers", "mode"})
        going_live = (
            data.mode == ProcessingMode.LIVE and document.mode == ProcessingMode.PREVIEW
        )

        async def effect() -> Document:
            if going_live:
                await self._lock_document(document_id)
                if document.mode == ProcessingMode.LIVE:
                    raise ValidationError(
                        "Document is already live",
                        field="mode",
                        value=document_id,
                    )
            for field, value in changes.items():
                setattr(document, field, value)
            if data.mode is not None:
                document.mode = data.mode
            if data.signers is not None:
                document.signers = _build_signers(data.signers)
                document.status = DocumentStatus.DRAFT
            await self.db.flush()
            await self.db.refresh(document)
            return document

        if going_live:
            outcome = await self.gate.run(
                user_id,
                ProcessingMode.LIVE,
                ActionKind.UPDATE_DOCUMENT_MODE,
                effect,
            )
        else:
            outcome = ActionOutcome(value=await effect(), mode=document.mode)

        self.logger.info(
            "document_updated",
            document_id=str(document_id),
            mode=document.mode.value,
            went_live=going_live,
        )

        return outcome

    async def delete_document(self, user_id: UUID, document_id: UUID) -> None:
        """Delete a document and its signers."""
        document = await self.get_document(user_id, document_id)
        await self.db.delete(document)
        await self.db.flush()

        self.logger.info("document_deleted", document_id=str(document_id))

    async def sign(self, user_id: UUID, request: SignRequest) -> ActionOutcome[SignResult]:
        """Record a signature.

        LIVE marks the signer as signed and moves the document to
        ``waiting`` or, once everyone has signed, ``completed``. PREVIEW
        reports what would happen without writing anything.

        Raises:
            DocumentNotFoundError: If the document does not exist
            ResourceAccessDeniedError: If another user owns it
            SignerNotFoundError: If the signer is not on the document
            ValidationError: If the signer has already signed
        """
        document = await self.get_document(user_id, request.document_id)
        signer = next((s for s in document.signers if s.id == request.signer_id), None)
        if signer is None:
            raise SignerNotFoundError(resource_type="Signer", resource_id=request.signer_id)
        if signer.signed:
            raise _already_signed(request.signer_id)

        async def live_effect() -> SignResult:
            await self._lock_document(document.id)
            await self.db.refresh(signer)
            if signer.signed:
                raise _already_signed(request.signer_id)
            signer.signed = True
            signer.signed_at = utcnow()
            document.status = (
                DocumentStatus.COMPLETED if document.all_signed else DocumentStatus.WAITING
            )
            await self.db.flush()
            return SignResult(
                document_id=document.id,
                signer_id=signer.id,
                document_status=document.status,
                signed_at=signer.signed_at,
            )

        async def preview_effect() -> SignResult:
            everyone_signed = all(s.signed or s.id == signer.id for s in document.signers)
            return SignResult(
                document_id=document.id,
                signer_id=signer.id,
                document_status=(
                    DocumentStatus.COMPLETED if everyone_signed else DocumentStatus.WAITING
                ),
                signed_at=None,
            )

        effect = live_effect if request.mode == ProcessingMode.LIVE else preview_effect
        outcome = await self.gate.run(user_id, request.mode, ActionKind.SIGN, effect)

        self.logger.info(
            "document_signed",
            document_id=str(document.id),
            signer_id=str(signer.id),
            mode=outcome.mode.value,
            document_status=outcome.value.document_status.value,
        )

        return outcome

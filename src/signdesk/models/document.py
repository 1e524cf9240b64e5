"""Document and signer models."""

import enum
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from signdesk.billing.modes import ProcessingMode
from signdesk.models.base import Base, TimestampMixin


class DocumentStatus(str, enum.Enum):
    """Signing progress of a document."""

    DRAFT = "draft"
    WAITING = "waiting"
    COMPLETED = "completed"


class Document(Base, TimestampMixin):
    """A document routed to one or more signers."""

    __tablename__ = "documents"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    file_url: Mapped[str | None] = mapped_column(
        String(1024),
        nullable=True,
    )
    mode: Mapped[ProcessingMode] = mapped_column(
        Enum(
            ProcessingMode,
            name="processingmode",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ProcessingMode.PREVIEW,
        nullable=False,
    )
    status: Mapped[DocumentStatus] = mapped_column(
        Enum(
            DocumentStatus,
            name="documentstatus",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=DocumentStatus.DRAFT,
        nullable=False,
        index=True,
    )

    signers: Mapped[list["Signer"]] = relationship(
        back_populates="document",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Signer.created_at",
    )

    @property
    def all_signed(self) -> bool:
        return bool(self.signers) and all(signer.signed for signer in self.signers)


class Signer(Base, TimestampMixin):
    """A person asked to sign a document."""

    __tablename__ = "signers"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    document_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    signed: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
    )
    signed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    document: Mapped["Document"] = relationship(back_populates="signers")

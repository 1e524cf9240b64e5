"""Client engagement agreement model."""

import enum
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Enum, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from signdesk.billing.modes import ProcessingMode
from signdesk.models.base import Base, TimestampMixin


class AgreementStatus(str, enum.Enum):
    """Lifecycle of a client agreement."""

    PENDING = "pending"
    SIGNED = "signed"
    PAID = "paid"


class Agreement(Base, TimestampMixin):
    """An agreement sent to a client through a signer link."""

    __tablename__ = "agreements"

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
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    client_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    client_email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    payment_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        default=Decimal("0.00"),
        nullable=False,
    )
    status: Mapped[AgreementStatus] = mapped_column(
        Enum(
            AgreementStatus,
            name="agreementstatus",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=AgreementStatus.PENDING,
        nullable=False,
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
    signer_link: Mapped[str | None] = mapped_column(
        String(512),
        nullable=True,
    )
    link_sent: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
    )
    link_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

"""User account model."""

from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Enum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from signdesk.billing.tier_catalog import SubscriptionTier
from signdesk.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """A SignDesk account.

    ``live_quota`` is a snapshot of the tier's quota taken when the
    subscription last changed. Quota columns are written only through
    ``QuotaLedger``.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("live_used >= 0", name="live_used_non_negative"),
        CheckConstraint("live_quota >= 0", name="live_quota_non_negative"),
    )

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    full_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        default=True,
        nullable=False,
    )
    tier: Mapped[SubscriptionTier] = mapped_column(
        Enum(
            SubscriptionTier,
            name="subscriptiontier",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=SubscriptionTier.FREE,
        nullable=False,
    )
    live_quota: Mapped[int] = mapped_column(
        default=0,
        nullable=False,
    )
    live_used: Mapped[int] = mapped_column(
        default=0,
        nullable=False,
    )
    stripe_customer_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    stripe_subscription_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

"""Initial migration - create users, documents, signers and agreements tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

subscription_tier = postgresql.ENUM(
    "free", "pro", "enterprise", name="subscriptiontier", create_type=False
)
processing_mode = postgresql.ENUM("preview", "live", name="processingmode", create_type=False)
document_status = postgresql.ENUM(
    "draft", "waiting", "completed", name="documentstatus", create_type=False
)
agreement_status = postgresql.ENUM(
    "pending", "signed", "paid", name="agreementstatus", create_type=False
)

ENUM_TYPES = (subscription_tier, processing_mode, document_status, agreement_status)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUM_TYPES:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("tier", subscription_tier, nullable=False, server_default="free"),
        sa.Column("live_quota", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("live_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stripe_customer_id", sa.String(255), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.CheckConstraint("live_used >= 0", name="ck_users_live_used_non_negative"),
        sa.CheckConstraint("live_quota >= 0", name="ck_users_live_quota_non_negative"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "documents",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("file_url", sa.String(1024), nullable=True),
        sa.Column("mode", processing_mode, nullable=False, server_default="preview"),
        sa.Column("status", document_status, nullable=False, server_default="draft"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_documents"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_documents_user_id_users",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_documents_user_id", "documents", ["user_id"])
    op.create_index("ix_documents_status", "documents", ["status"])

    op.create_table(
        "signers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("document_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("signed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_signers"),
        sa.ForeignKeyConstraint(
            ["document_id"],
            ["documents.id"],
            name="fk_signers_document_id_documents",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_signers_document_id", "signers", ["document_id"])

    op.create_table(
        "agreements",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("client_email", sa.String(255), nullable=False),
        sa.Column("payment_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("status", agreement_status, nullable=False, server_default="pending"),
        sa.Column("mode", processing_mode, nullable=False, server_default="preview"),
        sa.Column("signer_link", sa.String(512), nullable=True),
        sa.Column("link_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("link_sent_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_agreements"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_agreements_user_id_users",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_agreements_user_id", "agreements", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_agreements_user_id", table_name="agreements")
    op.drop_table("agreements")

    op.drop_index("ix_signers_document_id", table_name="signers")
    op.drop_table("signers")

    op.drop_index("ix_documents_status", table_name="documents")
    op.drop_index("ix_documents_user_id", table_name="documents")
    op.drop_table("documents")

    op.drop_index("ix_users_username", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in reversed(ENUM_TYPES):
        enum_type.drop(bind, checkfirst=True)

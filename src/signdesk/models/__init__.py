"""SQLAlchemy models."""

from signdesk.models.agreement import Agreement, AgreementStatus
from signdesk.models.base import Base, TimestampMixin
from signdesk.models.document import Document, DocumentStatus, Signer
from signdesk.models.user import User

__all__ = [
    "Agreement",
    "AgreementStatus",
    "Base",
    "Document",
    "DocumentStatus",
    "Signer",
    "TimestampMixin",
    "User",
]

"""External capabilities: payments, blob storage and mail."""

from signdesk.integrations.mailer import LogMailer, Mailer, RecordingMailer
from signdesk.integrations.payments import (
    FakePaymentProvider,
    PaymentIntent,
    PaymentProvider,
    StripePaymentProvider,
)
from signdesk.integrations.storage import (
    BlobStorage,
    HttpBlobStorage,
    InMemoryBlobStorage,
    StoredBlob,
)

__all__ = [
    "BlobStorage",
    "FakePaymentProvider",
    "HttpBlobStorage",
    "InMemoryBlobStorage",
    "LogMailer",
    "Mailer",
    "PaymentIntent",
    "PaymentProvider",
    "RecordingMailer",
    "StoredBlob",
    "StripePaymentProvider",
]

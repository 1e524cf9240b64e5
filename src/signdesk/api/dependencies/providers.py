"""External capability dependencies.

Which implementation is wired is decided by settings. Tests replace
these through ``app.dependency_overrides``.
"""

from functools import lru_cache

from signdesk.core.config import get_settings
from signdesk.integrations.mailer import LogMailer, Mailer
from signdesk.integrations.payments import (
    FakePaymentProvider,
    PaymentProvider,
    StripePaymentProvider,
)
from signdesk.integrations.storage import BlobStorage, HttpBlobStorage, InMemoryBlobStorage


@lru_cache
def get_payment_provider() -> PaymentProvider:
    settings = get_settings()
    if settings.payment_provider == "stripe":
        return StripePaymentProvider(settings.stripe_secret_key or "")
    return FakePaymentProvider()


@lru_cache
def get_blob_storage() -> BlobStorage:
    settings = get_settings()
    if settings.blob_storage_provider == "http":
        return HttpBlobStorage(
            settings.blob_storage_url,
            token=settings.blob_storage_token,
            timeout=settings.blob_storage_timeout_seconds,
        )
    return InMemoryBlobStorage(settings.blob_storage_url)


@lru_cache
def get_mailer() -> Mailer:
    return LogMailer()

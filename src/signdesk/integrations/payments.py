"""Payment provider capability.

``PaymentProvider`` is the only surface the rest of the application sees.
``StripePaymentProvider`` talks to Stripe; ``FakePaymentProvider`` hands
out predictable intents so tests and local development never touch the
network.
"""

import asyncio
import itertools
from dataclasses import dataclass, field, replace
from functools import partial
from typing import Any, Protocol

import stripe

from signdesk.core.exceptions import PaymentProviderError
from signdesk.core.logging import LoggerMixin

SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class PaymentIntent:
    """Provider-neutral view of a payment intent."""

    id: str
    client_secret: str
    amount_cents: int
    currency: str
    status: str
    metadata: dict[str, str] = field(default_factory=dict)
    customer_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED


class PaymentProvider(Protocol):
    """Protocol for payment processors."""

    async def create_payment_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str] | None = None,
    ) -> PaymentIntent:
        """Create a payment intent.

        Raises:
            PaymentProviderError: If the processor rejects the request
        """
        ...

    async def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        """Fetch the current state of a payment intent.

        Raises:
            PaymentProviderError: If the intent cannot be fetched
        """
        ...


class StripePaymentProvider(LoggerMixin):
    """Stripe implementation of ``PaymentProvider``.

    The Stripe SDK is synchronous, so calls run in the default executor.
    """

    def __init__(self, secret_key: str) -> None:
        if not secret_key:
            raise PaymentProviderError("Stripe secret key is not configured", source="stripe")
        self._api_key = secret_key

    async def create_payment_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str] | None = None,
    ) -> PaymentIntent:
        intent = await self._call(
            stripe.PaymentIntent.create,
            amount=amount_cents,
            currency=currency,
            metadata=metadata or {},
        )
        self.logger.info(
            "payment_intent_created",
            intent_id=intent.id,
            amount_cents=amount_cents,
            currency=currency,
        )
        return intent

    async def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        return await self._call(stripe.PaymentIntent.retrieve, intent_id)

    async def _call(self, func: Any, *args: Any, **kwargs: Any) -> PaymentIntent:
        loop = asyncio.get_running_loop()
        try:
            obj = await loop.run_in_executor(
                None,
                partial(func, *args, api_key=self._api_key, **kwargs),
            )
        except stripe.StripeError as e:
            self.logger.warning(
                "stripe_request_failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise PaymentProviderError(
                f"Stripe request failed: {e}",
                source="stripe",
                status_code=getattr(e, "http_status", None),
            ) from e

        metadata = getattr(obj, "metadata", None) or kwargs.get("metadata") or {}
        return PaymentIntent(
            id=obj.id,
            client_secret=getattr(obj, "client_secret", None) or "",
            amount_cents=int(obj.amount),
            currency=obj.currency,
            status=obj.status,
            metadata={str(k): str(v) for k, v in dict(metadata).items()},
            customer_id=getattr(obj, "customer", None),
        )


class FakePaymentProvider:
    """In-process payment provider with deterministic ids.

    Intent ids run ``pi_fake_0001``, ``pi_fake_0002``, ... and every new
    intent starts in ``initial_status``.
    """

    def __init__(self, initial_status: str = SUCCEEDED) -> None:
        self.initial_status = initial_status
        self.intents: dict[str, PaymentIntent] = {}
        self._counter = itertools.count(1)

    async def create_payment_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str] | None = None,
    ) -> PaymentIntent:
        if amount_cents <= 0:
            raise PaymentProviderError(
                "Amount must be positive",
                source="fake_payments",
                status_code=400,
            )
        intent_id = f"pi_fake_{next(self._counter):04d}"
        intent = PaymentIntent(
            id=intent_id,
            client_secret=f"{intent_id}_secret",
            amount_cents=amount_cents,
            currency=currency,
            status=self.initial_status,
            metadata=dict(metadata or {}),
        )
        self.intents[intent_id] = intent
        return intent

    async def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        intent = self.intents.get(intent_id)
        if intent is None:
            raise PaymentProviderError(
                f"No such payment intent: {intent_id}",
                source="fake_payments",
                status_code=404,
            )
        return intent

    def set_status(self, intent_id: str, status: str) -> None:
        """Move a stored intent to ``status``."""
        self.intents[intent_id] = replace(self.intents[intent_id], status=status)

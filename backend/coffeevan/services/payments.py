# backend/coffeevan/services/payments.py
"""
Payment processor wrapper (Stripe PaymentIntents).

create_payment_intent(amount_minor_units, currency) → PaymentIntent(id, client_secret)
confirm_payment(intent_id, payment_method=None)     → True on success

Declines and processor errors raise PaymentFailure carrying the processor
message verbatim; connectivity errors raise BackendUnavailable.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import stripe

from ..config import settings
from ..errors import BackendUnavailable, PaymentFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str
    status: str


def to_minor_units(amount: float) -> int:
    """Convert a currency amount to minor units (pence / cents)."""
    return int(round(amount * 100))


def _processor_message(error: stripe.StripeError) -> str:
    return getattr(error, "user_message", None) or str(error) or "Payment failed"


class PaymentProcessor:
    """Thin Stripe client bound to one API key."""

    def __init__(self, api_key: Optional[str] = None, currency: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key
        self.currency = currency or settings.currency

    def _require_key(self) -> str:
        if not self.api_key:
            raise BackendUnavailable("Payment processor is not configured")
        return self.api_key

    def create_payment_intent(self, amount_minor_units: int, currency: Optional[str] = None) -> PaymentIntent:
        if amount_minor_units <= 0:
            raise PaymentFailure("Payment amount must be greater than zero")

        api_key = self._require_key()
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_minor_units,
                currency=currency or self.currency,
                automatic_payment_methods={"enabled": True},
                api_key=api_key,
            )
        except stripe.APIConnectionError as e:
            logger.error(f"Payment processor unreachable: {e}")
            raise BackendUnavailable("Payment processor unavailable") from e
        except stripe.StripeError as e:
            logger.error(f"Error creating payment intent: {e}")
            raise PaymentFailure(_processor_message(e)) from e

        logger.info(f"Payment intent created: {intent.id} ({amount_minor_units} {currency or self.currency})")
        return PaymentIntent(id=intent.id, client_secret=intent.client_secret, status=intent.status)

    def confirm_payment(self, intent_id: str, payment_method: Optional[str] = None) -> bool:
        """
        Confirm (with a payment method) or re-check an intent.

        Returns True when the intent succeeded, False while it still awaits
        customer action (e.g. 3-D Secure). Raises PaymentFailure on decline.
        """
        api_key = self._require_key()
        try:
            if payment_method:
                intent = stripe.PaymentIntent.confirm(
                    intent_id,
                    payment_method=payment_method,
                    api_key=api_key,
                )
            else:
                intent = stripe.PaymentIntent.retrieve(intent_id, api_key=api_key)
        except stripe.APIConnectionError as e:
            logger.error(f"Payment processor unreachable: {e}")
            raise BackendUnavailable("Payment processor unavailable") from e
        except stripe.StripeError as e:
            logger.warning(f"Payment declined for {intent_id}: {e}")
            raise PaymentFailure(_processor_message(e)) from e

        if intent.status == "succeeded":
            return True

        if intent.status in ("requires_payment_method", "canceled"):
            error = getattr(intent, "last_payment_error", None)
            message = getattr(error, "message", None) if error else None
            raise PaymentFailure(message or f"Payment {intent.status.replace('_', ' ')}")

        return False

"""Test the Stripe payment wrapper (Stripe calls patched)."""
from unittest.mock import Mock, patch

import pytest
import stripe

from coffeevan.errors import BackendUnavailable, PaymentFailure
from coffeevan.services.payments import PaymentProcessor, to_minor_units


@pytest.fixture
def processor():
    return PaymentProcessor(api_key="sk_test_123", currency="gbp")


def _intent(status="requires_payment_method", **extra):
    return Mock(id="pi_123", client_secret="pi_123_secret_abc", status=status, **extra)


class TestMinorUnits:
    @pytest.mark.parametrize("amount,expected", [
        (9.00, 900),
        (18.0, 1800),
        (3.2, 320),
        (0.1 + 0.2, 30),
    ])
    def test_to_minor_units(self, amount, expected):
        assert to_minor_units(amount) == expected


class TestCreatePaymentIntent:
    def test_creates_intent(self, processor):
        with patch.object(stripe.PaymentIntent, "create", return_value=_intent()) as create:
            intent = processor.create_payment_intent(900)

        assert intent.id == "pi_123"
        assert intent.client_secret == "pi_123_secret_abc"
        create.assert_called_once_with(
            amount=900,
            currency="gbp",
            automatic_payment_methods={"enabled": True},
            api_key="sk_test_123",
        )

    def test_zero_amount_rejected(self, processor):
        with pytest.raises(PaymentFailure):
            processor.create_payment_intent(0)

    def test_processor_error_message_passed_through(self, processor):
        error = stripe.InvalidRequestError("Amount must be at least £0.30 gbp", param="amount")
        with patch.object(stripe.PaymentIntent, "create", side_effect=error):
            with pytest.raises(PaymentFailure) as exc_info:
                processor.create_payment_intent(10)

        assert exc_info.value.message == "Amount must be at least £0.30 gbp"

    def test_connection_error_is_backend_unavailable(self, processor):
        with patch.object(stripe.PaymentIntent, "create", side_effect=stripe.APIConnectionError("timeout")):
            with pytest.raises(BackendUnavailable):
                processor.create_payment_intent(900)

    def test_missing_key(self):
        with pytest.raises(BackendUnavailable):
            PaymentProcessor(api_key="", currency="gbp").create_payment_intent(900)


class TestConfirmPayment:
    def test_succeeded(self, processor):
        with patch.object(stripe.PaymentIntent, "retrieve", return_value=_intent("succeeded")):
            assert processor.confirm_payment("pi_123") is True

    def test_confirm_with_payment_method(self, processor):
        with patch.object(stripe.PaymentIntent, "confirm", return_value=_intent("succeeded")) as confirm:
            assert processor.confirm_payment("pi_123", "pm_card_visa") is True

        confirm.assert_called_once_with("pi_123", payment_method="pm_card_visa", api_key="sk_test_123")

    def test_requires_action_is_not_yet_paid(self, processor):
        with patch.object(stripe.PaymentIntent, "retrieve", return_value=_intent("requires_action")):
            assert processor.confirm_payment("pi_123") is False

    def test_card_declined(self, processor):
        error = stripe.CardError("Your card was declined.", param=None, code="card_declined")
        with patch.object(stripe.PaymentIntent, "confirm", side_effect=error):
            with pytest.raises(PaymentFailure) as exc_info:
                processor.confirm_payment("pi_123", "pm_card_chargeDeclined")

        assert exc_info.value.message == "Your card was declined."

    def test_failed_intent_reports_last_error(self, processor):
        intent = _intent("requires_payment_method", last_payment_error=Mock(message="Insufficient funds."))
        with patch.object(stripe.PaymentIntent, "retrieve", return_value=intent):
            with pytest.raises(PaymentFailure) as exc_info:
                processor.confirm_payment("pi_123")

        assert exc_info.value.message == "Insufficient funds."

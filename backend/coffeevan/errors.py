# backend/coffeevan/errors.py
"""
Domain errors raised by services and mapped to HTTP responses in main.py.

ValidationError       → 422, nothing written
AvailabilityConflict  → 409, client must pick another time
BackendUnavailable    → 503, database / cache / processor unreachable
PaymentFailure        → 402, processor message passed through verbatim
"""


class ShopError(Exception):
    """Base class for coffee van domain errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ShopError):
    status_code = 422


class AvailabilityConflict(ShopError):
    status_code = 409


class BackendUnavailable(ShopError):
    status_code = 503


class PaymentFailure(ShopError):
    status_code = 402

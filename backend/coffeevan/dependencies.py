# backend/coffeevan/dependencies.py
# Shared FastAPI dependencies: admin guard and process-wide services

import hmac
import logging
from functools import lru_cache

from fastapi import Depends, Header, HTTPException, status

from .config import settings
from .database import SessionLocal
from .services.cart import CartPricing
from .services.payments import PaymentProcessor
from .services.settings_service import SettingsService

logger = logging.getLogger(__name__)


def require_admin(x_admin_token: str | None = Header(None)) -> None:
    """Admin guard: X-Admin-Token must match ADMIN_TOKEN (unset token denies)."""
    if not settings.admin_token or not x_admin_token:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    if not hmac.compare_digest(x_admin_token.encode(), settings.admin_token.encode()):
        logger.warning("Admin request with invalid token")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


@lru_cache
def get_settings_service() -> SettingsService:
    return SettingsService(SessionLocal)


def get_cart_pricing(
    settings_service: SettingsService = Depends(get_settings_service),
) -> CartPricing:
    return CartPricing(settings_service)


def get_payment_processor() -> PaymentProcessor:
    return PaymentProcessor(settings.stripe_secret_key, settings.currency)

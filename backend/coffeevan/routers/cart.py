# backend/coffeevan/routers/cart.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_cart_pricing, get_settings_service
from ..schemas.cart import CartLineRead, CartQuoteRequest, CartQuoteResponse
from ..services.cart import CartPricing
from ..services.checkout import CheckoutItem, CheckoutRequest, CheckoutService
from ..services.settings_service import SettingsService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.post("/quote", response_model=CartQuoteResponse)
def quote_cart(
    data: CartQuoteRequest,
    db: Session = Depends(get_db),
    settings_service: SettingsService = Depends(get_settings_service),
    pricing: CartPricing = Depends(get_cart_pricing),
):
    """Price cart items the same way checkout will; duplicate lines are merged."""
    checkout = CheckoutService(db, settings_service, pricing)
    cart = checkout.build_cart(CheckoutRequest(
        items=[CheckoutItem(**item.model_dump()) for item in data.items],
    ))

    priced = pricing.quote(cart.lines)

    return CartQuoteResponse(
        lines=[
            CartLineRead(
                product_id=pl.line.product_id,
                name=pl.line.product_name,
                unit_price=pl.line.unit_price,
                quantity=pl.line.quantity,
                selected_option_id=pl.line.selected_option_id,
                option_price=pl.option_price,
                total=pl.total,
            )
            for pl in priced.lines
        ],
        total=priced.total,
        priced=priced.priced,
    )

# backend/coffeevan/services/checkout.py
"""
Checkout: turn a cart into an order with a reserved collection slot.

Steps:
1. Validate terms, cart and collection date/time (no writes)
2. Build the cart from active products and price it (strict)
3. Reject blocked dates, slots inside the lead window, full slots
4. Under the slot lock: insert order → booking attempt → commit

Either both the order and its reservation are committed, or neither is.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import AvailabilityConflict, BackendUnavailable, ShopError, ValidationError
from ..models.generated import Orders as DBOrders
from .booking import BookingCoordinator
from .cart import Cart, CartLine, CartPricing, PricedCart
from .document_store import DocumentStore
from .settings_service import SettingsService, ShopSettings
from .slots.config import BookingConfig, get_booking_config

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "Sorry, this time slot is no longer available. Please select another time."


@dataclass
class CheckoutItem:
    product_id: int
    quantity: int = 1
    selected_option_id: Optional[str] = None


@dataclass
class CheckoutRequest:
    items: list[CheckoutItem] = field(default_factory=list)
    pickup_date: Optional[date] = None
    pickup_time: Optional[str] = None
    terms_accepted: bool = False
    user_id: str = "guest"
    user_email: str = "guest"
    notes: Optional[str] = None
    expected_total: Optional[float] = None


def _parse_option_ids(raw: Optional[str]) -> list[str]:
    try:
        ids = json.loads(raw) if raw else []
    except (json.JSONDecodeError, TypeError):
        return []
    return [str(i) for i in ids]


def order_items_snapshot(priced: PricedCart, snapshot: ShopSettings) -> list[dict]:
    """Items as stored on the order: name, price, quantity, option snapshot."""
    items = []
    for pl in priced.lines:
        option = snapshot.get_option(pl.line.selected_option_id) if pl.line.selected_option_id else None
        items.append({
            "product_id": pl.line.product_id,
            "name": pl.line.product_name,
            "price": pl.line.unit_price,
            "quantity": pl.line.quantity,
            "selected_option": option.to_dict() if option else None,
            "line_total": pl.total,
        })
    return items


class CheckoutService:
    """Places orders; the only writer of orders together with reservations."""

    def __init__(
        self,
        db: Session,
        settings_service: SettingsService,
        pricing: Optional[CartPricing] = None,
        config: Optional[BookingConfig] = None,
    ):
        self.db = db
        self.store = DocumentStore(db)
        self.settings_service = settings_service
        self.pricing = pricing or CartPricing(settings_service)
        self.config = config or get_booking_config()
        self.coordinator = BookingCoordinator(db, settings_service)

    # ── Validation ───────────────────────────────────────────────────────

    def _validate_request(self, request: CheckoutRequest) -> None:
        if not request.terms_accepted:
            raise ValidationError("Please accept the terms and conditions")
        if not request.items:
            raise ValidationError("Your cart is empty")
        if request.pickup_date is None or not request.pickup_time:
            raise ValidationError("Please select a collection date and time")
        if not self.config.is_on_grid(request.pickup_time):
            raise ValidationError(f"{request.pickup_time} is not a collection time")
        if request.pickup_date.weekday() not in self.config.allowed_weekdays:
            raise ValidationError(f"Collection is not offered on {request.pickup_date:%A}s")

    def build_cart(self, request: CheckoutRequest) -> Cart:
        """Cart from active product rows; duplicate keys are merged."""
        cart = Cart()
        for item in request.items:
            if item.quantity < 1:
                raise ValidationError("Quantity must be at least 1")

            product = self.store.get("products", item.product_id)
            if product is None or not product.is_active:
                raise ValidationError(f"Unknown product: {item.product_id}")

            if item.selected_option_id and item.selected_option_id not in _parse_option_ids(product.available_options):
                raise ValidationError(f"Option {item.selected_option_id} is not available for {product.name}")

            cart.add_item(CartLine(
                product_id=product.id,
                unit_price=product.price,
                quantity=item.quantity,
                selected_option_id=item.selected_option_id or None,
                product_name=product.name,
            ))

        cart.set_collection_time(request.pickup_date, request.pickup_time)
        return cart

    def _check_options(self, cart: Cart, snapshot: ShopSettings) -> None:
        for line in cart.lines:
            if line.selected_option_id and snapshot.get_option(line.selected_option_id) is None:
                raise ValidationError(f"Unknown product option: {line.selected_option_id}")

    def _check_collection_slot(self, pickup_date: date, pickup_time: str, snapshot: ShopSettings, now: datetime) -> None:
        if pickup_date.isoformat() in snapshot.blocked_dates:
            raise AvailabilityConflict("Collection is not available on this date. Please select another date.")

        slot_dt = datetime.combine(pickup_date, datetime.strptime(pickup_time, "%H:%M").time())
        if slot_dt <= now + timedelta(minutes=self.config.lead_time_minutes):
            raise AvailabilityConflict(SLOT_TAKEN_MESSAGE)

    # ── Checkout ─────────────────────────────────────────────────────────

    def place_order(self, request: CheckoutRequest, now: Optional[datetime] = None) -> DBOrders:
        """
        Validate, price and persist an order with its slot reservation.

        Raises:
            ValidationError: bad request, nothing written
            AvailabilityConflict: date blocked or slot full, nothing written
            BackendUnavailable: store unreachable, nothing written
        """
        now = now or datetime.now()
        self._validate_request(request)

        cart = self.build_cart(request)

        # One fresh snapshot prices the cart and sizes the slot
        snapshot = self.settings_service.load()
        priced = self.pricing.price_with(cart.lines, snapshot)
        self._check_options(cart, snapshot)

        if request.expected_total is not None and abs(request.expected_total - priced.total) > 0.005:
            raise ValidationError(
                f"Cart total has changed to {priced.total:.2f}. Please review your order."
            )

        date_str = request.pickup_date.isoformat()
        self._check_collection_slot(request.pickup_date, request.pickup_time, snapshot, now)

        with self.coordinator.hold_slot(date_str, request.pickup_time):
            try:
                order = self.store.add("orders", {
                    "items": order_items_snapshot(priced, snapshot),
                    "total": priced.total,
                    "pickup_date": date_str,
                    "pickup_time": request.pickup_time,
                    "status": "new",
                    "payment_status": "completed" if settings.demo_mode else "pending",
                    "user_id": request.user_id or "guest",
                    "user_email": request.user_email or "guest",
                    "notes": request.notes,
                })
                attempt = self.coordinator.attempt(
                    date_str,
                    request.pickup_time,
                    order.id,
                    commit=False,
                    max_orders=snapshot.max_orders_per_slot,
                )
                if not attempt.confirmed:
                    raise AvailabilityConflict(SLOT_TAKEN_MESSAGE)
                self.db.commit()
            except ShopError:
                self.db.rollback()
                raise
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Order commit failed for {date_str} {request.pickup_time}: {e}")
                raise BackendUnavailable("Order could not be saved") from e

        self.db.refresh(order)
        logger.info(
            f"Order placed: order_id={order.id}, total={order.total:.2f}, "
            f"collection={date_str} {request.pickup_time}, payment={order.payment_status}"
        )
        return order

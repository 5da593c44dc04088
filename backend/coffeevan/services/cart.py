# backend/coffeevan/services/cart.py
"""
Cart and cart pricing.

line total = unit_price × qty + option_price × qty
cart total = Σ line totals, rounded to 2 places

Cart display and checkout price through the same CartPricing instance,
from a single settings snapshot per call.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, Optional

from ..errors import BackendUnavailable
from .settings_service import SettingsService, ShopSettings

logger = logging.getLogger(__name__)

OptionPriceLookup = Callable[[str], float]


@dataclass
class CartLine:
    product_id: int
    unit_price: float
    quantity: int = 1
    selected_option_id: Optional[str] = None
    product_name: str = ""

    @property
    def key(self) -> tuple[int, Optional[str]]:
        return self.product_id, self.selected_option_id


def line_total(line: CartLine, option_price_lookup: OptionPriceLookup) -> float:
    base = line.unit_price * line.quantity
    option = option_price_lookup(line.selected_option_id) * line.quantity if line.selected_option_id else 0
    return base + option


def cart_total(lines: Iterable[CartLine], option_price_lookup: OptionPriceLookup) -> float:
    return round(sum(line_total(line, option_price_lookup) for line in lines), 2)


@dataclass
class Cart:
    """Cart lines keyed by (product_id, selected_option_id)."""

    lines: list[CartLine] = field(default_factory=list)
    collection_date: Optional[date] = None
    collection_time: Optional[str] = None

    def _find(self, product_id: int, selected_option_id: Optional[str]) -> Optional[CartLine]:
        for line in self.lines:
            if line.key == (product_id, selected_option_id):
                return line
        return None

    def add_item(self, line: CartLine) -> CartLine:
        """Add a line, merging into an existing line with the same key."""
        if line.quantity < 1:
            return line

        existing = self._find(line.product_id, line.selected_option_id)
        if existing is not None:
            existing.quantity += line.quantity
            return existing

        self.lines.append(line)
        return line

    def remove_item(self, product_id: int, selected_option_id: Optional[str] = None) -> None:
        self.lines = [
            line for line in self.lines
            if line.key != (product_id, selected_option_id)
        ]

    def update_quantity(self, product_id: int, selected_option_id: Optional[str], quantity: int) -> None:
        """Set a line's quantity; zero or negative removes the line."""
        if quantity <= 0:
            self.remove_item(product_id, selected_option_id)
            return

        line = self._find(product_id, selected_option_id)
        if line is not None:
            line.quantity = quantity

    def set_collection_time(self, collection_date: date, collection_time: str) -> None:
        self.collection_date = collection_date
        self.collection_time = collection_time

    def clear(self) -> None:
        self.lines = []
        self.collection_date = None
        self.collection_time = None

    @property
    def is_empty(self) -> bool:
        return not self.lines


@dataclass(frozen=True)
class PricedLine:
    line: CartLine
    option_price: float
    total: float


@dataclass(frozen=True)
class PricedCart:
    lines: tuple[PricedLine, ...]
    total: float
    priced: bool = True
    settings: Optional[ShopSettings] = None


class CartPricing:
    """Prices carts from the current settings snapshot."""

    def __init__(self, settings_service: SettingsService):
        self.settings_service = settings_service

    def quote(self, lines: Iterable[CartLine], strict: bool = False) -> PricedCart:
        """
        Price cart lines.

        Without a settings snapshot the quote falls back to total 0 with
        priced=False; strict=True (checkout) raises BackendUnavailable instead.
        """
        lines = list(lines)
        try:
            snapshot = self.settings_service.load()
        except BackendUnavailable:
            if strict:
                raise
            logger.warning("No settings snapshot, cart quoted as unpriced")
            return PricedCart(
                lines=tuple(PricedLine(line=line, option_price=0.0, total=0.0) for line in lines),
                total=0.0,
                priced=False,
            )

        return self.price_with(lines, snapshot)

    @staticmethod
    def price_with(lines: Iterable[CartLine], snapshot: ShopSettings) -> PricedCart:
        lookup = snapshot.option_price
        priced_lines = tuple(
            PricedLine(
                line=line,
                option_price=lookup(line.selected_option_id) if line.selected_option_id else 0.0,
                total=round(line_total(line, lookup), 2),
            )
            for line in lines
        )
        return PricedCart(
            lines=priced_lines,
            total=cart_total((pl.line for pl in priced_lines), lookup),
            settings=snapshot,
        )

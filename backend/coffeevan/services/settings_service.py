# backend/coffeevan/services/settings_service.py
"""
Shop settings service.

Single settings document (id "global") holding slot capacity, blocked
dates and the shared product option catalog.

Lifecycle:
  load()        fetch from the store (default-initialised if absent), cache
  get()         cached snapshot, loading on first use
  invalidate()  drop the cache; next get() reloads

Reads degrade to the last-known snapshot when the store is unreachable.
Writes always go to the store first and refresh the cache afterwards.
"""

import json
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import BackendUnavailable, ValidationError
from .document_store import DocumentStore

logger = logging.getLogger(__name__)

SETTINGS_DOC_ID = "global"
DEFAULT_MAX_ORDERS_PER_SLOT = 3


@dataclass(frozen=True)
class ProductOption:
    id: str
    title: str
    price: float
    is_default: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "price": self.price,
            "is_default": self.is_default,
        }


@dataclass(frozen=True)
class ShopSettings:
    max_orders_per_slot: int = DEFAULT_MAX_ORDERS_PER_SLOT
    blocked_dates: frozenset[str] = frozenset()
    product_options: tuple[ProductOption, ...] = field(default_factory=tuple)

    def option_price(self, option_id: str) -> float:
        """Add-on price for an option id (0 for unknown ids)."""
        for opt in self.product_options:
            if opt.id == option_id:
                return opt.price
        return 0.0

    def get_option(self, option_id: str) -> Optional[ProductOption]:
        for opt in self.product_options:
            if opt.id == option_id:
                return opt
        return None


def _parse_options(raw: str | None) -> tuple[ProductOption, ...]:
    try:
        items = json.loads(raw) if raw else []
    except (json.JSONDecodeError, TypeError):
        logger.warning("Malformed product_options in settings, ignoring")
        items = []

    options = []
    for item in items:
        if not isinstance(item, dict) or "id" not in item:
            continue
        options.append(ProductOption(
            id=str(item["id"]),
            title=item.get("title", ""),
            price=float(item.get("price") or 0),
            is_default=bool(item.get("is_default", item.get("isDefault", False))),
        ))
    return tuple(options)


def _parse_dates(raw: str | None) -> frozenset[str]:
    try:
        items = json.loads(raw) if raw else []
    except (json.JSONDecodeError, TypeError):
        logger.warning("Malformed blocked_dates in settings, ignoring")
        items = []
    return frozenset(str(d) for d in items)


def settings_from_doc(doc) -> ShopSettings:
    return ShopSettings(
        max_orders_per_slot=doc.max_orders_per_slot or DEFAULT_MAX_ORDERS_PER_SLOT,
        blocked_dates=_parse_dates(doc.blocked_dates),
        product_options=_parse_options(doc.product_options),
    )


def settings_to_doc(snapshot: ShopSettings) -> dict:
    return {
        "max_orders_per_slot": snapshot.max_orders_per_slot,
        "blocked_dates": sorted(snapshot.blocked_dates),
        "product_options": [opt.to_dict() for opt in snapshot.product_options],
        "updated_at": datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S"),
    }


class SettingsService:
    """Process-wide settings cache backed by the document store."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        self._cached: Optional[ShopSettings] = None
        self._lock = threading.RLock()

    # ── Lifecycle ────────────────────────────────────────────────────────

    def load(self) -> ShopSettings:
        """Fetch settings from the store, creating defaults if absent."""
        with self._lock:
            try:
                snapshot = self._fetch()
            except BackendUnavailable:
                if self._cached is not None:
                    logger.warning("Settings store unavailable, using cached settings")
                    return self._cached
                raise
            self._cached = snapshot
            return snapshot

    def get(self) -> ShopSettings:
        with self._lock:
            if self._cached is not None:
                return self._cached
        return self.load()

    def invalidate(self) -> None:
        with self._lock:
            self._cached = None

    # ── Admin mutations ──────────────────────────────────────────────────

    def update_max_orders_per_slot(self, value: int) -> ShopSettings:
        if value < 1:
            raise ValidationError("max_orders_per_slot must be at least 1")

        with self._lock:
            current = self._fetch()
            updated = replace(current, max_orders_per_slot=value)
            self._save(updated)

        logger.info(f"max_orders_per_slot set to {value}")
        return updated

    def toggle_blocked_date(self, date_str: str) -> tuple[ShopSettings, bool]:
        """
        Block the date if it is open, unblock it if it is blocked.

        Returns:
            (new settings, True if the date is now blocked)
        """
        with self._lock:
            current = self._fetch()
            if date_str in current.blocked_dates:
                blocked_dates = current.blocked_dates - {date_str}
                blocked = False
            else:
                blocked_dates = current.blocked_dates | {date_str}
                blocked = True
            updated = replace(current, blocked_dates=frozenset(blocked_dates))
            self._save(updated)

        logger.info(f"Date {date_str} {'blocked' if blocked else 'unblocked'}")
        return updated, blocked

    def add_product_option(self, title: str, price: float, is_default: bool = False) -> ProductOption:
        if not title.strip():
            raise ValidationError("Option title is required")

        option = ProductOption(id=str(uuid4()), title=title.strip(), price=price, is_default=is_default)

        with self._lock:
            current = self._fetch()
            updated = replace(current, product_options=current.product_options + (option,))
            self._save(updated)

        logger.info(f"Product option added: {option.id} {option.title} +{option.price:.2f}")
        return option

    def update_product_option(self, option: ProductOption) -> ProductOption:
        with self._lock:
            current = self._fetch()
            if current.get_option(option.id) is None:
                raise ValidationError(f"Unknown product option: {option.id}")
            options = tuple(option if opt.id == option.id else opt for opt in current.product_options)
            self._save(replace(current, product_options=options))

        logger.info(f"Product option updated: {option.id}")
        return option

    def delete_product_option(self, option_id: str) -> bool:
        with self._lock:
            current = self._fetch()
            options = tuple(opt for opt in current.product_options if opt.id != option_id)
            if len(options) == len(current.product_options):
                return False
            self._save(replace(current, product_options=options))

        logger.info(f"Product option deleted: {option_id}")
        return True

    # ── Store access ─────────────────────────────────────────────────────

    def _fetch(self) -> ShopSettings:
        db = self._session_factory()
        try:
            store = DocumentStore(db)
            doc = store.get("settings", SETTINGS_DOC_ID)
            if doc is None:
                snapshot = ShopSettings()
                store.set("settings", SETTINGS_DOC_ID, settings_to_doc(snapshot))
                db.commit()
                logger.info("Settings document missing, default settings created")
                return snapshot
            return settings_from_doc(doc)
        except SQLAlchemyError as e:
            db.rollback()
            raise BackendUnavailable("Settings store unavailable") from e
        finally:
            db.close()

    def _save(self, snapshot: ShopSettings) -> None:
        db = self._session_factory()
        try:
            DocumentStore(db).set("settings", SETTINGS_DOC_ID, settings_to_doc(snapshot))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to save settings: {e}")
            raise BackendUnavailable("Settings store unavailable") from e
        except BackendUnavailable:
            db.rollback()
            raise
        finally:
            db.close()
        self._cached = snapshot

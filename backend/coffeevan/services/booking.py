# backend/coffeevan/services/booking.py
"""
Booking coordinator: slot capacity checks and reservations.

State per booking attempt:
  selecting → checking → confirmed | rejected

Capacity check and reservation write are a single conditional INSERT
(the row is written only while the slot count is below max_orders_per_slot),
executed under a per-slot mutex so concurrent bookers in this process are
serialized for that (date, time). Reservations are idempotent per order
reference.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import AvailabilityConflict, BackendUnavailable, ValidationError
from ..models.generated import TimeSlots as DBTimeSlots
from .document_store import DocumentStore
from .settings_service import SettingsService

logger = logging.getLogger(__name__)


_RESERVE_SQL = text("""
    INSERT INTO time_slots (date, time, order_reference)
    SELECT :date, :time, :order_reference
    WHERE (
        SELECT COUNT(*) FROM time_slots
        WHERE date = :date AND time = :time
    ) < :max_orders
""")


class BookingState(str, Enum):
    SELECTING = "selecting"
    CHECKING = "checking"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


@dataclass
class BookingAttempt:
    date: str
    time: str
    order_reference: str
    state: BookingState = BookingState.SELECTING
    reason: Optional[str] = None
    reservation_id: Optional[int] = None

    @property
    def confirmed(self) -> bool:
        return self.state is BookingState.CONFIRMED


# ── Per-slot locks (shared by every coordinator in the process) ─────────

_slot_locks: dict[tuple[str, str], threading.RLock] = {}
_slot_locks_guard = threading.Lock()


def _get_slot_lock(date_str: str, time_str: str) -> threading.RLock:
    key = (date_str, time_str)
    with _slot_locks_guard:
        lock = _slot_locks.get(key)
        if lock is None:
            # Past dates can no longer be booked; drop their locks
            today = date.today().isoformat()
            for stale in [k for k in _slot_locks if k[0] < today]:
                del _slot_locks[stale]
            lock = threading.RLock()
            _slot_locks[key] = lock
        return lock


def _date_str(value: date | str) -> str:
    return value.isoformat() if isinstance(value, date) else value


class BookingCoordinator:
    """Checks and records slot reservations against the configured capacity."""

    def __init__(self, db: Session, settings_service: SettingsService):
        self.db = db
        self.store = DocumentStore(db)
        self.settings_service = settings_service

    # ── Reads ────────────────────────────────────────────────────────────

    def count_reservations(self, target_date: date | str, time_str: str) -> int:
        return len(self.store.query("timeSlots", date=_date_str(target_date), time=time_str))

    def check_slot_availability(
        self,
        target_date: date | str,
        time_str: str,
        max_orders: Optional[int] = None,
    ) -> bool:
        """True while the slot has fewer reservations than max_orders_per_slot."""
        if max_orders is None:
            max_orders = self.settings_service.load().max_orders_per_slot
        return self.count_reservations(target_date, time_str) < max_orders

    def booked_times(self, target_date: date | str, max_orders: Optional[int] = None) -> set[str]:
        """
        Times on the date that are reserved to capacity.

        Capacity is refetched from the store unless the caller passes the
        value it loaded for this request.
        """
        if max_orders is None:
            max_orders = self.settings_service.load().max_orders_per_slot
        try:
            rows = (
                self.db.query(DBTimeSlots.time, func.count(DBTimeSlots.id))
                .filter(DBTimeSlots.date == _date_str(target_date))
                .group_by(DBTimeSlots.time)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to read reservations for {target_date}: {e}")
            raise BackendUnavailable("Reservation store unavailable") from e

        return {time_str for time_str, count in rows if count >= max_orders}

    # ── Writes ───────────────────────────────────────────────────────────

    @contextmanager
    def hold_slot(self, target_date: date | str, time_str: str):
        """Serialize writers for one (date, time) within this process."""
        lock = _get_slot_lock(_date_str(target_date), time_str)
        with lock:
            yield

    def book_time_slot(
        self,
        target_date: date | str,
        time_str: str,
        order_reference,
        commit: bool = True,
        max_orders: Optional[int] = None,
    ) -> DBTimeSlots:
        """
        Reserve the slot for an order, atomically with the capacity check.

        Args:
            commit: False when the caller owns the transaction (checkout
                    inserts the order and its reservation together).
            max_orders: capacity read by the caller before its writes;
                    loaded from settings when omitted.

        Raises:
            AvailabilityConflict: slot already at capacity
            ValidationError: order already holds a different slot
            BackendUnavailable: store unreachable; nothing was booked
        """
        date_str = _date_str(target_date)
        ref = str(order_reference)
        if max_orders is None:
            max_orders = self.settings_service.load().max_orders_per_slot

        with self.hold_slot(date_str, time_str):
            try:
                existing = self._find_by_reference(ref)
                if existing is not None:
                    if existing.date == date_str and existing.time == time_str:
                        return existing
                    raise ValidationError(
                        f"Order {ref} is already booked for {existing.date} {existing.time}"
                    )

                result = self.db.execute(_RESERVE_SQL, {
                    "date": date_str,
                    "time": time_str,
                    "order_reference": ref,
                    "max_orders": max_orders,
                })
                if result.rowcount == 0:
                    logger.info(f"Slot full: {date_str} {time_str} (max {max_orders})")
                    raise AvailabilityConflict(
                        "Sorry, this time slot is no longer available. Please select another time."
                    )

                if commit:
                    self.db.commit()
                else:
                    self.db.flush()

            except IntegrityError as e:
                # Same order reference written concurrently
                self.db.rollback()
                existing = self._find_by_reference(ref)
                if existing is not None and existing.date == date_str and existing.time == time_str:
                    return existing
                raise BackendUnavailable("Reservation could not be recorded") from e
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Reservation write failed for {date_str} {time_str}: {e}")
                raise BackendUnavailable("Reservation could not be recorded") from e

            reservation = self._find_by_reference(ref)

        logger.info(f"Slot booked: {date_str} {time_str} → order {ref}")
        return reservation

    def attempt(
        self,
        target_date: date | str,
        time_str: str,
        order_reference,
        commit: bool = True,
        max_orders: Optional[int] = None,
    ) -> BookingAttempt:
        """
        Run one booking attempt through checking to confirmed/rejected.

        Capacity rejections are reported on the attempt; backend errors
        propagate so the caller never mistakes them for a booking.
        Checkout passes commit=False and the capacity it loaded up front,
        then commits the order and reservation together.
        """
        attempt = BookingAttempt(
            date=_date_str(target_date),
            time=time_str,
            order_reference=str(order_reference),
        )

        if max_orders is None:
            max_orders = self.settings_service.load().max_orders_per_slot

        attempt.state = BookingState.CHECKING
        if not self.check_slot_availability(attempt.date, attempt.time, max_orders):
            attempt.state = BookingState.REJECTED
            attempt.reason = "slot_full"
            logger.info(f"Booking rejected at check: {attempt.date} {attempt.time}")
            return attempt

        try:
            reservation = self.book_time_slot(
                attempt.date,
                attempt.time,
                attempt.order_reference,
                commit=commit,
                max_orders=max_orders,
            )
        except AvailabilityConflict:
            attempt.state = BookingState.REJECTED
            attempt.reason = "slot_full"
            return attempt

        attempt.state = BookingState.CONFIRMED
        attempt.reservation_id = reservation.id
        return attempt

    def _find_by_reference(self, ref: str) -> Optional[DBTimeSlots]:
        rows = self.store.query("timeSlots", order_reference=ref)
        return rows[0] if rows else None

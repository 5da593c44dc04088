# backend/coffeevan/services/slots/calculator.py
"""
Level 1: Base day grid and slot generation.

Base grid per slot:
  (time_str "HH:MM", expire_ts float)

expire_ts = (slot_datetime − lead_time).timestamp()
A slot is bookable while now < expire_ts, i.e. slot start > now + lead time.
Redis filters with ZRANGEBYSCORE ({now_ts} +inf, so dead slots drop out automatically.

Contains:
✓ opening / closing bounds
✓ blocked dates (empty grid)
✓ lead time (baked into expire_ts)

Does NOT contain:
✗ Reservations (applied at Level 2 as the `available` flag)
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, Optional

from .config import BookingConfig, get_booking_config, time_str_to_minutes, minutes_to_time_str


@dataclass(frozen=True)
class TimeSlot:
    time: str  # "HH:MM"
    available: bool


def iter_grid_minutes(opening_time: str, closing_time: str, step: int) -> Iterator[int]:
    """Yield slot starts from opening while strictly before closing."""
    if step <= 0:
        raise ValueError(f"slot step must be positive, got {step}")

    t = time_str_to_minutes(opening_time)
    end_min = time_str_to_minutes(closing_time)
    while t < end_min:
        yield t
        t += step


def generate_slots(
    target_date: date,
    opening_time: str,
    closing_time: str,
    slot_step_minutes: int,
    lead_time_minutes: int,
    booked_times: Iterable[str] = (),
    now: Optional[datetime] = None,
) -> list[TimeSlot]:
    """
    Generate bookable slots for a date.

    A slot is included only if its start is strictly after now + lead time.
    `available` is False for times already reserved to capacity.
    """
    now = now or datetime.now()
    minimum = now + timedelta(minutes=lead_time_minutes)
    booked = set(booked_times)
    day_start = datetime.combine(target_date, datetime.min.time())

    slots: list[TimeSlot] = []
    for t in iter_grid_minutes(opening_time, closing_time, slot_step_minutes):
        slot_dt = day_start + timedelta(minutes=t)
        if slot_dt > minimum:
            time_str = minutes_to_time_str(t)
            slots.append(TimeSlot(time=time_str, available=time_str not in booked))

    return slots


def calculate_day_slots(
    target_date: date,
    config: BookingConfig | None = None,
    blocked_dates: Iterable[str] = (),
    now: datetime | None = None,
) -> list[tuple[str, float]]:
    """
    Calculate the base grid for a date.

    Returns:
        List of (time_str, expire_ts) pairs. Empty list = no slots
        (blocked date, or every slot already inside the lead window).
    """
    config = config or get_booking_config()
    now = now or datetime.now()
    now_ts = now.timestamp()

    if target_date.isoformat() in set(blocked_dates):
        return []

    day_start = datetime.combine(target_date, datetime.min.time())
    lead = timedelta(minutes=config.lead_time_minutes)

    slots: list[tuple[str, float]] = []
    for t in iter_grid_minutes(config.opening_time, config.closing_time, config.slot_step_minutes):
        slot_dt = day_start + timedelta(minutes=t)
        expire_ts = (slot_dt - lead).timestamp()

        if expire_ts > now_ts:
            slots.append((minutes_to_time_str(t), expire_ts))

    return slots

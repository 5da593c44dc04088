# backend/coffeevan/services/slots/availability.py
"""
Level 2: Collection slot availability.

Combines the base day grid (Level 1, optionally cached in Redis) with
the reservation state of each slot:

- blocked dates → no slots
- slots inside the lead window → dropped
- slots reserved to capacity → kept, available=False

Dates are offerable when they are not blocked and still have at least
one slot after lead-time filtering.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional

from redis import Redis
from redis.exceptions import RedisError

from ..settings_service import ShopSettings
from .calculator import TimeSlot, calculate_day_slots, generate_slots
from .config import BookingConfig, get_booking_config
from .redis_store import SlotsRedisStore

logger = logging.getLogger(__name__)

BookedTimesLookup = Callable[[date], Iterable[str]]


@dataclass(frozen=True)
class BookableDate:
    date: date
    is_today: bool


def day_slots(
    target_date: date,
    shop_settings: ShopSettings,
    booked_times: Iterable[str] = (),
    config: BookingConfig | None = None,
    now: datetime | None = None,
    redis: Redis | None = None,
) -> list[TimeSlot]:
    """
    Bookable slots for a date, ascending by time.

    Blocked dates yield an empty list. Uses the Redis grid cache when a
    client is given, otherwise generates the grid on the fly.
    """
    config = config or get_booking_config()
    now = now or datetime.now()

    if target_date.isoformat() in shop_settings.blocked_dates:
        return []

    if redis is not None:
        base_times = _get_cached_base_times(target_date, shop_settings, config, now, redis)
        if base_times is not None:
            booked = set(booked_times)
            return [TimeSlot(time=t, available=t not in booked) for t in base_times]

    return generate_slots(
        target_date,
        config.opening_time,
        config.closing_time,
        config.slot_step_minutes,
        config.lead_time_minutes,
        booked_times,
        now=now,
    )


def is_date_offerable(
    target_date: date,
    shop_settings: ShopSettings,
    booked_times: Iterable[str] = (),
    config: BookingConfig | None = None,
    now: datetime | None = None,
    redis: Redis | None = None,
) -> bool:
    """Not blocked and at least one slot left after lead-time filtering."""
    if target_date.isoformat() in shop_settings.blocked_dates:
        return False

    slots = day_slots(target_date, shop_settings, booked_times, config, now, redis)
    return len(slots) > 0


def list_offerable_dates(
    shop_settings: ShopSettings,
    booked_times_lookup: BookedTimesLookup,
    config: BookingConfig | None = None,
    now: datetime | None = None,
    days_to_scan: Optional[int] = None,
    max_results: Optional[int] = None,
    allowed_weekdays: Optional[Iterable[int]] = None,
    redis: Redis | None = None,
) -> list[BookableDate]:
    """
    Scan forward from today and collect offerable dates.

    Bounded search: at most `days_to_scan` days are checked, and the scan
    stops once `max_results` dates are collected.
    """
    config = config or get_booking_config()
    now = now or datetime.now()
    days_to_scan = config.days_to_scan if days_to_scan is None else days_to_scan
    max_results = config.max_offered_dates if max_results is None else max_results
    weekdays = config.allowed_weekdays if allowed_weekdays is None else frozenset(allowed_weekdays)

    today = now.date()
    today_str = today.isoformat()

    candidates = [
        today + timedelta(days=i)
        for i in range(days_to_scan)
        if (today + timedelta(days=i)).weekday() in weekdays
    ]

    # Cached counts let us skip days known to be empty without a recalculation
    cached_counts: dict[date, int | None] = {}
    if redis is not None and candidates:
        try:
            cached_counts = SlotsRedisStore(redis, config).mget_counts(candidates, now)
        except RedisError as e:
            logger.warning(f"Slot cache unavailable, calculating on the fly: {e}")
            redis = None

    result: list[BookableDate] = []
    for candidate in candidates:
        if len(result) >= max_results:
            break

        if candidate.isoformat() in shop_settings.blocked_dates:
            continue
        if cached_counts.get(candidate) == 0:
            continue

        booked = booked_times_lookup(candidate)
        if is_date_offerable(candidate, shop_settings, booked, config, now, redis):
            result.append(BookableDate(
                date=candidate,
                is_today=candidate.isoformat() == today_str,
            ))

    return result


# ── Base times (Level 1 with cache) ─────────────────────────────────────


def _get_cached_base_times(
    target_date: date,
    shop_settings: ShopSettings,
    config: BookingConfig,
    now: datetime,
    redis: Redis,
) -> list[str] | None:
    """
    Get base grid times through the Redis cache.

    Returns None when Redis is unreachable so the caller can fall back to
    on-the-fly generation.
    """
    store = SlotsRedisStore(redis, config)
    try:
        cached = store.get_available_slots(target_date, now)
        if cached is not None:
            return cached

        # Cache miss: calculate and store
        slots = calculate_day_slots(target_date, config, shop_settings.blocked_dates, now)
        store.store_day_slots(target_date, slots)
        return [time_str for time_str, _ in slots]
    except RedisError as e:
        logger.warning(f"Slot cache unavailable for {target_date}: {e}")
        return None

# backend/coffeevan/services/slots/invalidator.py
"""
Cache invalidation for the base day grid.

Triggers:
✓ Date blocked/unblocked → invalidate that date
✓ Admin request → invalidate a date range or everything

Does NOT trigger:
✗ Reservation created (Level 2 applies reservations on every query)
✗ Capacity changed (Level 2)
"""

import logging
from datetime import date, timedelta

from redis import Redis
from redis.exceptions import RedisError

from .redis_store import SlotsRedisStore

logger = logging.getLogger(__name__)


def invalidate_slots_cache(
    redis: Redis | None,
    dates: list[date] | None = None,
) -> int:
    """
    Invalidate cached grids.

    Args:
        redis: Redis client (None → nothing cached, nothing to do)
        dates: Specific dates to invalidate, or None for every cached date

    Returns:
        Number of deleted cache keys
    """
    if redis is None:
        return 0

    try:
        deleted = SlotsRedisStore(redis).delete_day_slots(dates)
    except RedisError as e:
        logger.error(f"Failed to invalidate slot cache: {e}")
        return 0

    logger.info(f"Slot cache invalidated: {deleted} keys")
    return deleted


def get_affected_dates(
    date_start: date,
    date_end: date,
) -> list[date]:
    """
    Get list of dates in range [date_start, date_end].

    A reversed range is swapped rather than rejected.
    """
    if date_start > date_end:
        date_start, date_end = date_end, date_start

    dates = []
    current = date_start
    while current <= date_end:
        dates.append(current)
        current += timedelta(days=1)

    return dates

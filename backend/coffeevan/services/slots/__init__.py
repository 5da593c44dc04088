# backend/coffeevan/services/slots/__init__.py
"""
Collection slots module.

Level 1: Base day grid (opening hours, lead time, blocked dates; cached in Redis Sorted Sets)
Level 2: Slot availability (reservations applied on-the-fly)
"""

from .config import BookingConfig, get_booking_config, is_valid_time_str
from .calculator import TimeSlot, calculate_day_slots, generate_slots
from .redis_store import SlotsRedisStore
from .invalidator import invalidate_slots_cache, get_affected_dates
from .availability import BookableDate, day_slots, is_date_offerable, list_offerable_dates

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "is_valid_time_str",
    "TimeSlot",
    "calculate_day_slots",
    "generate_slots",
    "SlotsRedisStore",
    "invalidate_slots_cache",
    "get_affected_dates",
    "BookableDate",
    "day_slots",
    "is_date_offerable",
    "list_offerable_dates",
]

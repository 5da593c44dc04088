# backend/coffeevan/services/slots/config.py
"""
Booking configuration for slots calculation.
"""

from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache

from ...config import settings


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time_str(total_minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def is_valid_time_str(value) -> bool:
    """True only for a zero-padded 24h "HH:MM" such as "09:05"."""
    try:
        parsed = datetime.strptime(value, "%H:%M")
    except (TypeError, ValueError):
        return False
    return parsed.strftime("%H:%M") == value


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the collection slot system.

    Attributes:
        opening_time: First slot of the day ("HH:MM")
        closing_time: Closing bound, never offered itself ("HH:MM")
        slot_step_minutes: Slot granularity (5/10/15/20/30/60)
        lead_time_minutes: Minimum notice between now and a slot start
        days_to_scan: How many days ahead to look for offerable dates
        max_offered_dates: Stop scanning after this many dates
        allowed_weekdays: Weekdays the van trades on (Monday = 0)
    """
    opening_time: str = "10:45"
    closing_time: str = "15:30"
    slot_step_minutes: int = 15
    lead_time_minutes: int = 15
    days_to_scan: int = 30
    max_offered_dates: int = 8
    allowed_weekdays: frozenset[int] = frozenset({3, 4, 5, 6})

    def __post_init__(self):
        """Validate configuration."""
        if self.slot_step_minutes not in (5, 10, 15, 20, 30, 60):
            raise ValueError(
                f"slot_step_minutes must be one of 5/10/15/20/30/60, got {self.slot_step_minutes}"
            )
        if self.opening_minutes >= self.closing_minutes:
            raise ValueError(
                f"opening_time {self.opening_time} must be before closing_time {self.closing_time}"
            )
        if self.lead_time_minutes < 0:
            raise ValueError("lead_time_minutes must be >= 0")
        if not self.allowed_weekdays or not all(0 <= d <= 6 for d in self.allowed_weekdays):
            raise ValueError(f"allowed_weekdays must be within 0..6, got {sorted(self.allowed_weekdays)}")

    @property
    def opening_minutes(self) -> int:
        return time_str_to_minutes(self.opening_time)

    @property
    def closing_minutes(self) -> int:
        return time_str_to_minutes(self.closing_time)

    @property
    def slots_per_day(self) -> int:
        """Number of grid slots between opening and closing."""
        span = self.closing_minutes - self.opening_minutes
        return -(-span // self.slot_step_minutes)

    def is_on_grid(self, time_str: str) -> bool:
        """True if time_str is one of the day's slot start times."""
        if not is_valid_time_str(time_str):
            return False
        minutes = time_str_to_minutes(time_str)
        if minutes < self.opening_minutes or minutes >= self.closing_minutes:
            return False
        return (minutes - self.opening_minutes) % self.slot_step_minutes == 0


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration (singleton, built from app settings)."""
    return BookingConfig(
        opening_time=settings.opening_time,
        closing_time=settings.closing_time,
        slot_step_minutes=settings.slot_step_minutes,
        lead_time_minutes=settings.lead_time_minutes,
        days_to_scan=settings.days_to_scan,
        max_offered_dates=settings.max_offered_dates,
        allowed_weekdays=frozenset(settings.allowed_weekdays),
    )

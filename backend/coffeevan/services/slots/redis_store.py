# backend/coffeevan/services/slots/redis_store.py
"""
Redis storage for the base day grid using Sorted Sets.

Key format: slots:day:{date}
Value: Sorted Set where member = "HH:MM", score = expire_ts
       (unix timestamp when the slot stops being bookable).

Query: ZRANGEBYSCORE key ({now_ts} +inf → only live slots.
Sentinel: "__empty__" with score=0 marks "calculated, zero slots".
"""

from datetime import date, datetime

from redis import Redis

from .config import BookingConfig, get_booking_config


EMPTY_SENTINEL = "__empty__"


def _decode(member) -> str:
    return member.decode() if isinstance(member, bytes) else member


class SlotsRedisStore:
    """Redis storage wrapper using Sorted Sets for slot data."""

    KEY_PREFIX = "slots:day"

    def __init__(self, redis: Redis, config: BookingConfig | None = None):
        self.redis = redis
        self.config = config or get_booking_config()

    def _key(self, dt: date) -> str:
        return f"{self.KEY_PREFIX}:{dt.isoformat()}"

    def _queue_day(self, pipe, dt: date, slots: list[tuple[str, float]]) -> None:
        key = self._key(dt)
        pipe.delete(key)

        if slots:
            mapping = {time_str: expire_ts for time_str, expire_ts in slots}
            pipe.zadd(key, mapping)
            max_expire = max(expire_ts for _, expire_ts in slots)
            # Key lives until the last slot expires + 1 minute buffer
            pipe.expireat(key, int(max_expire) + 60)
        else:
            # Zero slots: sentinel keeps EXISTS true
            pipe.zadd(key, {EMPTY_SENTINEL: 0})
            end_of_day = datetime.combine(dt, datetime.max.time())
            pipe.expireat(key, int(end_of_day.timestamp()) + 60)

    # ── Write ────────────────────────────────────────────────────────────

    def store_day_slots(
        self,
        dt: date,
        slots: list[tuple[str, float]],
    ) -> None:
        """
        Store the calculated grid for a day.

        Args:
            dt: Target date
            slots: List of (time_str, expire_ts) pairs.
                   Empty list → sentinel is stored.
        """
        pipe = self.redis.pipeline()
        self._queue_day(pipe, dt, slots)
        pipe.execute()

    # ── Read ─────────────────────────────────────────────────────────────

    def get_available_slots(
        self,
        dt: date,
        now: datetime,
    ) -> list[str] | None:
        """
        Get live slot times for a day.

        Returns:
            Sorted list of "HH:MM" strings, or None on cache miss.
        """
        key = self._key(dt)
        if not self.redis.exists(key):
            return None

        members = self.redis.zrangebyscore(key, f"({now.timestamp()}", "+inf")
        times = [_decode(m) for m in members]
        return sorted(t for t in times if t != EMPTY_SENTINEL)

    def mget_counts(
        self,
        dates: list[date],
        now: datetime,
    ) -> dict[date, int | None]:
        """
        Batch get live slot counts for multiple dates.

        Returns:
            Dict mapping date → count (or None on cache miss).
        """
        if not dates:
            return {}

        min_score = f"({now.timestamp()}"

        # EXISTS and ZCOUNT per key in one round trip; a missing key counts 0
        pipe = self.redis.pipeline()
        for dt in dates:
            key = self._key(dt)
            pipe.exists(key)
            pipe.zcount(key, min_score, "+inf")
        replies = pipe.execute()

        return {
            dt: (replies[2 * i + 1] if replies[2 * i] else None)
            for i, dt in enumerate(dates)
        }

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_day_slots(self, dates: list[date] | None = None) -> int:
        """
        Delete cached grids.

        Args:
            dates: Specific dates, or None to delete every cached day.

        Returns:
            Number of deleted keys.
        """
        if dates:
            keys = [self._key(dt) for dt in dates]
        else:
            keys = list(self.redis.scan_iter(f"{self.KEY_PREFIX}:*"))

        if not keys:
            return 0

        return self.redis.delete(*keys)

    # ── Debug ────────────────────────────────────────────────────────────

    def get_all_slots_with_scores(self, dt: date) -> list[tuple[str, float]] | None:
        """
        Get all stored slots with their expire_ts (for the admin grid view).

        Returns:
            List of (time_str, expire_ts) or None on cache miss.
        """
        key = self._key(dt)
        if not self.redis.exists(key):
            return None

        raw = self.redis.zrangebyscore(key, "-inf", "+inf", withscores=True)
        pairs = ((_decode(m), score) for m, score in raw)
        return [(time_str, score) for time_str, score in pairs if time_str != EMPTY_SENTINEL]

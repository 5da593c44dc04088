"""Test the sorted-set grid cache and its invalidation."""
from datetime import date, datetime

from coffeevan.services.slots import (
    BookingConfig,
    SlotsRedisStore,
    get_affected_dates,
    invalidate_slots_cache,
)


FRIDAY = date(2026, 10, 23)


def _grid(*pairs):
    return [(t, datetime(2026, 10, 23, int(t[:2]), int(t[3:])).timestamp() - 15 * 60) for t in pairs]


class TestSlotsRedisStore:
    def test_miss_returns_none(self, fake_redis, now):
        store = SlotsRedisStore(fake_redis, BookingConfig())
        assert store.get_available_slots(FRIDAY, now) is None

    def test_store_and_read_sorted(self, fake_redis, now):
        store = SlotsRedisStore(fake_redis, BookingConfig())
        store.store_day_slots(FRIDAY, _grid("11:00", "10:45", "11:15"))

        assert store.get_available_slots(FRIDAY, now) == ["10:45", "11:00", "11:15"]
        assert "slots:day:2026-10-23" in fake_redis.expiry

    def test_expire_boundary_is_exclusive(self, fake_redis):
        """A slot whose expiry equals now is no longer bookable."""
        store = SlotsRedisStore(fake_redis, BookingConfig())
        store.store_day_slots(FRIDAY, _grid("10:45", "11:00"))

        at_expiry = datetime(2026, 10, 23, 10, 30)
        assert store.get_available_slots(FRIDAY, at_expiry) == ["11:00"]

    def test_empty_day_sentinel(self, fake_redis, now):
        store = SlotsRedisStore(fake_redis, BookingConfig())
        store.store_day_slots(FRIDAY, [])

        assert store.get_available_slots(FRIDAY, now) == []
        assert store.mget_counts([FRIDAY], now) == {FRIDAY: 0}
        assert store.get_all_slots_with_scores(FRIDAY) == []

    def test_mget_counts_mixes_hits_and_misses(self, fake_redis, now):
        store = SlotsRedisStore(fake_redis, BookingConfig())
        store.store_day_slots(FRIDAY, _grid("10:45", "11:00"))

        counts = store.mget_counts([FRIDAY, date(2026, 10, 24)], now)
        assert counts == {FRIDAY: 2, date(2026, 10, 24): None}

    def test_get_all_slots_with_scores(self, fake_redis):
        store = SlotsRedisStore(fake_redis, BookingConfig())
        grid = _grid("10:45", "11:00")
        store.store_day_slots(FRIDAY, grid)

        assert store.get_all_slots_with_scores(FRIDAY) == grid


class TestInvalidation:
    def test_invalidate_specific_dates(self, fake_redis):
        store = SlotsRedisStore(fake_redis, BookingConfig())
        store.store_day_slots(FRIDAY, _grid("10:45"))
        store.store_day_slots(date(2026, 10, 24), [])

        assert invalidate_slots_cache(fake_redis, [FRIDAY]) == 1
        assert not fake_redis.exists("slots:day:2026-10-23")
        assert fake_redis.exists("slots:day:2026-10-24")

    def test_invalidate_all(self, fake_redis):
        store = SlotsRedisStore(fake_redis, BookingConfig())
        store.store_day_slots(FRIDAY, _grid("10:45"))
        store.store_day_slots(date(2026, 10, 24), [])
        fake_redis.set("cache:products", "[]")

        assert invalidate_slots_cache(fake_redis) == 2
        assert fake_redis.exists("cache:products")

    def test_without_redis(self):
        assert invalidate_slots_cache(None, [FRIDAY]) == 0

    def test_redis_down(self, broken_redis):
        assert invalidate_slots_cache(broken_redis, [FRIDAY]) == 0

    def test_affected_dates_range(self):
        assert get_affected_dates(date(2026, 10, 22), date(2026, 10, 24)) == [
            date(2026, 10, 22), date(2026, 10, 23), date(2026, 10, 24),
        ]

    def test_affected_dates_reversed_range(self):
        assert get_affected_dates(date(2026, 10, 24), date(2026, 10, 23)) == [
            date(2026, 10, 23), date(2026, 10, 24),
        ]

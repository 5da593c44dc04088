"""Shared test fixtures."""
import fnmatch
import json
from datetime import date, datetime, timedelta

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from coffeevan.models.generated import Base, Products
from coffeevan.services.settings_service import SettingsService


# ── Fake Redis (sorted-set and string commands the app uses) ─────────────

class _FakePipeline:
    def __init__(self, redis):
        self._redis = redis
        self._calls = []

    def __getattr__(self, name):
        method = getattr(self._redis, name)

        def queue(*args, **kwargs):
            self._calls.append((method, args, kwargs))
            return self

        return queue

    def execute(self):
        results = [method(*args, **kwargs) for method, args, kwargs in self._calls]
        self._calls = []
        return results


def _score_bound(value):
    value = str(value)
    if value in ("-inf", "+inf"):
        return float(value), False
    if value.startswith("("):
        return float(value[1:]), True
    return float(value), False


class FakeRedis:
    def __init__(self):
        self.strings: dict[str, str] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.expiry: dict[str, int] = {}

    def ping(self):
        return True

    # strings
    def get(self, key):
        return self.strings.get(key)

    def set(self, key, value):
        self.strings[key] = value
        return True

    # keys
    def exists(self, key):
        return int(key in self.strings or key in self.zsets)

    def delete(self, *keys):
        deleted = 0
        for key in keys:
            if self.strings.pop(key, None) is not None or self.zsets.pop(key, None) is not None:
                deleted += 1
        return deleted

    def expireat(self, key, when):
        self.expiry[key] = when
        return True

    def scan_iter(self, match="*"):
        for key in list(self.strings) + list(self.zsets):
            if fnmatch.fnmatch(key, match):
                yield key

    def pipeline(self):
        return _FakePipeline(self)

    # sorted sets
    def zadd(self, key, mapping):
        self.zsets.setdefault(key, {}).update(mapping)
        return len(mapping)

    def _in_range(self, key, min_score, max_score):
        lo, lo_excl = _score_bound(min_score)
        hi, hi_excl = _score_bound(max_score)
        members = sorted(self.zsets.get(key, {}).items(), key=lambda kv: (kv[1], kv[0]))
        return [
            (member, score) for member, score in members
            if (score > lo if lo_excl else score >= lo) and (score < hi if hi_excl else score <= hi)
        ]

    def zrangebyscore(self, key, min_score, max_score, withscores=False):
        items = self._in_range(key, min_score, max_score)
        if withscores:
            return items
        return [member for member, _ in items]

    def zcount(self, key, min_score, max_score):
        return len(self._in_range(key, min_score, max_score))


class BrokenRedis:
    """Every command fails as if the server were unreachable."""

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise RedisConnectionError("Connection refused")
        return fail


# ── Database ─────────────────────────────────────────────────────────────

@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'coffeevan-test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def settings_service(session_factory):
    return SettingsService(session_factory)


@pytest.fixture
def options(settings_service):
    """Regular (+0.00) and Large (+0.50) options in the settings document."""
    regular = settings_service.add_product_option("Regular", 0.0, is_default=True)
    large = settings_service.add_product_option("Large", 0.50)
    return {"regular": regular, "large": large}


@pytest.fixture
def make_product(db):
    def _create(name="Espresso", price=2.50, category="Coffees", available_options=(), is_active=1):
        product = Products(
            name=name,
            price=price,
            category=category,
            available_options=json.dumps(list(available_options)),
            is_active=is_active,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _create


# ── Time and cache ───────────────────────────────────────────────────────

@pytest.fixture
def now():
    """Thursday 2026-10-22, 09:00 (before opening)."""
    return datetime(2026, 10, 22, 9, 0)


@pytest.fixture
def next_thursday():
    """A future Thursday, at least one day ahead of the real clock."""
    today = date.today()
    return today + timedelta(days=(3 - today.weekday()) % 7 or 7)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def broken_redis():
    return BrokenRedis()

"""HTTP test client wired to the test database, settings service and fake Redis."""
import pytest
from fastapi.testclient import TestClient

from coffeevan.config import settings
from coffeevan.database import get_db
from coffeevan.dependencies import get_settings_service
from coffeevan.main import app
from coffeevan.redis_client import get_redis


ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def client(session_factory, settings_service, fake_redis, monkeypatch):
    """Create FastAPI test client."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings_service] = lambda: settings_service
    app.dependency_overrides[get_redis] = lambda: fake_redis
    monkeypatch.setattr(settings, "admin_token", ADMIN_TOKEN)
    monkeypatch.setattr(settings, "demo_mode", False)

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def admin():
    return {"X-Admin-Token": ADMIN_TOKEN}

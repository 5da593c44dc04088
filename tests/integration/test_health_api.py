"""Test /health."""
from coffeevan.main import app
from coffeevan.redis_client import get_redis


def test_health_ok(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": True, "redis": True}


def test_health_redis_down(client, broken_redis):
    app.dependency_overrides[get_redis] = lambda: broken_redis

    response = client.get("/health")
    assert response.json() == {"status": "degraded", "database": True, "redis": False}


def test_health_without_redis(client):
    app.dependency_overrides[get_redis] = lambda: None

    assert client.get("/health").json()["status"] == "ok"

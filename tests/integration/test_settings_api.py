"""Test /settings endpoints."""


def test_public_settings_defaults(client):
    response = client.get("/settings/")
    assert response.status_code == 200
    assert response.json() == {"max_orders_per_slot": 3, "blocked_dates": [], "product_options": []}


def test_mutations_require_admin(client):
    assert client.put("/settings/max-orders", json={"max_orders_per_slot": 5}).status_code == 403
    assert client.post("/settings/blocked-dates/2026-12-25").status_code == 403
    assert client.post("/settings/options", json={"title": "Large", "price": 0.5}).status_code == 403


def test_update_max_orders(client, admin, settings_service):
    response = client.put("/settings/max-orders", json={"max_orders_per_slot": 5}, headers=admin)

    assert response.status_code == 200
    assert response.json()["max_orders_per_slot"] == 5
    assert settings_service.get().max_orders_per_slot == 5


def test_max_orders_must_be_positive(client, admin):
    response = client.put("/settings/max-orders", json={"max_orders_per_slot": 0}, headers=admin)
    assert response.status_code == 422


def test_toggle_blocked_date_invalidates_grid(client, admin, fake_redis, next_thursday):
    key = f"slots:day:{next_thursday.isoformat()}"
    client.get("/slots/day", params={"date": next_thursday.isoformat()})
    assert fake_redis.exists(key)

    response = client.post(f"/settings/blocked-dates/{next_thursday.isoformat()}", headers=admin)
    assert response.json()["blocked"] is True
    assert not fake_redis.exists(key)

    response = client.post(f"/settings/blocked-dates/{next_thursday.isoformat()}", headers=admin)
    assert response.json() == {"date": next_thursday.isoformat(), "blocked": False, "blocked_dates": []}


def test_option_crud(client, admin):
    created = client.post("/settings/options", json={"title": "Oat milk", "price": 0.40}, headers=admin)
    assert created.status_code == 201
    option_id = created.json()["id"]

    updated = client.patch(f"/settings/options/{option_id}", json={"price": 0.45}, headers=admin)
    assert updated.status_code == 200
    assert updated.json() == {"id": option_id, "title": "Oat milk", "price": 0.45, "is_default": False}

    options = client.get("/settings/").json()["product_options"]
    assert [o["price"] for o in options] == [0.45]

    assert client.delete(f"/settings/options/{option_id}", headers=admin).status_code == 204
    assert client.delete(f"/settings/options/{option_id}", headers=admin).status_code == 404


def test_update_unknown_option(client, admin):
    response = client.patch("/settings/options/missing", json={"price": 1.0}, headers=admin)
    assert response.status_code == 404

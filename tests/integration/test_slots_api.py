"""Test /slots endpoints."""
from datetime import date, timedelta

from coffeevan.services.booking import BookingCoordinator
from coffeevan.services.settings_service import SettingsService


def test_offerable_dates(client):
    response = client.get("/slots/dates")
    assert response.status_code == 200

    data = response.json()
    assert data["allowed_weekdays"] == [3, 4, 5, 6]
    assert 0 < len(data["dates"]) <= 8
    for entry in data["dates"]:
        assert date.fromisoformat(entry["date"]).weekday() in {3, 4, 5, 6}


def test_blocked_date_not_offered(client, admin, next_thursday):
    client.post(f"/settings/blocked-dates/{next_thursday.isoformat()}", headers=admin)

    dates = [d["date"] for d in client.get("/slots/dates").json()["dates"]]
    assert next_thursday.isoformat() not in dates


def test_day_slots(client, next_thursday):
    response = client.get("/slots/day", params={"date": next_thursday.isoformat()})
    assert response.status_code == 200

    data = response.json()
    times = [s["time"] for s in data["slots"]]
    assert data["blocked"] is False
    assert times[0] == "10:45"
    assert times[-1] == "15:15"
    assert all(s["available"] for s in data["slots"])


def test_day_in_past(client):
    yesterday = date.today() - timedelta(days=1)
    response = client.get("/slots/day", params={"date": yesterday.isoformat()})
    assert response.status_code == 400


def test_blocked_day_has_no_slots(client, admin, next_thursday):
    client.post(f"/settings/blocked-dates/{next_thursday.isoformat()}", headers=admin)

    data = client.get("/slots/day", params={"date": next_thursday.isoformat()}).json()
    assert data["blocked"] is True
    assert data["slots"] == []


def test_full_slot_reported_unavailable(client, settings_service, session_factory, next_thursday):
    settings_service.update_max_orders_per_slot(1)
    db = session_factory()
    try:
        BookingCoordinator(db, settings_service).book_time_slot(next_thursday, "11:00", "order-1")
    finally:
        db.close()

    slots = client.get("/slots/day", params={"date": next_thursday.isoformat()}).json()["slots"]
    assert {s["time"]: s["available"] for s in slots}["11:00"] is False

    availability = client.get(
        "/slots/availability",
        params={"date": next_thursday.isoformat(), "time": "11:00"},
    ).json()
    assert availability == {
        "date": next_thursday.isoformat(),
        "time": "11:00",
        "reservations": 1,
        "max_orders_per_slot": 1,
        "available": False,
    }


def test_availability_time_format(client, next_thursday):
    response = client.get("/slots/availability", params={"date": next_thursday.isoformat(), "time": "11am"})
    assert response.status_code == 422


def test_grid_requires_admin(client, next_thursday):
    assert client.get("/slots/grid", params={"date": next_thursday.isoformat()}).status_code == 403


def test_grid_cached_after_first_read(client, admin, next_thursday):
    params = {"date": next_thursday.isoformat()}

    first = client.get("/slots/grid", params=params, headers=admin).json()
    second = client.get("/slots/grid", params=params, headers=admin).json()

    assert first["cached"] is False
    assert second["cached"] is True
    assert first["total_slots"] == second["total_slots"] == 19


def test_invalidate_range(client, admin, fake_redis, next_thursday):
    client.get("/slots/day", params={"date": next_thursday.isoformat()})
    assert fake_redis.exists(f"slots:day:{next_thursday.isoformat()}")

    response = client.post(
        "/slots/invalidate",
        json={"date_start": next_thursday.isoformat()},
        headers=admin,
    )
    assert response.status_code == 200
    assert response.json()["deleted_keys"] == 1
    assert not fake_redis.exists(f"slots:day:{next_thursday.isoformat()}")


def test_invalidate_all(client, admin, next_thursday):
    client.get("/slots/day", params={"date": next_thursday.isoformat()})

    response = client.post("/slots/invalidate", headers=admin)
    assert response.json() == {"deleted_keys": 1, "dates": "all"}


def test_availability_rejects_out_of_range_time(client, next_thursday):
    response = client.get("/slots/availability", params={"date": next_thursday.isoformat(), "time": "10:60"})
    assert response.status_code == 422


def test_non_trading_day_has_no_slots(client, next_thursday):
    monday = next_thursday + timedelta(days=4)

    data = client.get("/slots/day", params={"date": monday.isoformat()}).json()
    assert data["trading_day"] is False
    assert data["blocked"] is False
    assert data["slots"] == []


def test_settings_changed_by_another_worker(client, session_factory, settings_service, next_thursday):
    settings_service.load()
    other_worker = SettingsService(session_factory)

    other_worker.toggle_blocked_date(next_thursday.isoformat())

    day = client.get("/slots/day", params={"date": next_thursday.isoformat()}).json()
    assert day["blocked"] is True
    assert day["slots"] == []

    dates = [d["date"] for d in client.get("/slots/dates").json()["dates"]]
    assert next_thursday.isoformat() not in dates


def test_capacity_changed_by_another_worker(client, session_factory, settings_service, next_thursday):
    settings_service.load()
    other_worker = SettingsService(session_factory)
    other_worker.update_max_orders_per_slot(1)

    db = session_factory()
    try:
        BookingCoordinator(db, other_worker).book_time_slot(next_thursday, "11:00", "order-1")
    finally:
        db.close()

    slots = client.get("/slots/day", params={"date": next_thursday.isoformat()}).json()["slots"]
    assert {s["time"]: s["available"] for s in slots}["11:00"] is False

"""End-to-end tests: logging and deleting events reschedules the plant."""
from datetime import datetime, timedelta, timezone

import pytest

from conftest import parse_ts
from waterlog.models import Event

T0 = datetime(2026, 6, 1, 7, 30, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.isoformat()


@pytest.fixture
def plant_id(client, auth_headers, room, archetypes):
    resp = client.post("/api/plants", json={
        "name": "Monstera",
        "room_id": room.id,
        "archetype_id": archetypes["Aroid"].id,
    }, headers=auth_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def log(client, headers, plant_id, **body):
    return client.post(f"/api/plants/{plant_id}/events", json=body, headers=headers)


def test_water_events_update_schedule(client, auth_headers, plant_id):
    resp = log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0))
    assert resp.status_code == 201, resp.text
    plant = resp.json()
    assert plant["current_interval"] == 7
    assert parse_ts(plant["last_watered_at"]) == T0
    assert parse_ts(plant["next_check_at"]) == T0 + timedelta(days=7)

    resp = log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0 + timedelta(days=14)))
    plant = resp.json()
    assert plant["current_interval"] == pytest.approx(9.45)
    assert parse_ts(plant["next_check_at"]) == T0 + timedelta(days=14 + 9.45)


def test_anomaly_event_keeps_interval(client, auth_headers, plant_id):
    log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0))
    log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0 + timedelta(days=14)))
    resp = log(
        client, auth_headers, plant_id,
        type="WATER", timestamp=iso(T0 + timedelta(days=15)), is_anomaly=True,
        note="forgot to log this one",
    )
    plant = resp.json()
    assert plant["current_interval"] == pytest.approx(9.45)
    assert parse_ts(plant["last_watered_at"]) == T0 + timedelta(days=15)


def test_dry_soil_pulls_next_check_in(client, auth_headers, room, archetypes):
    created = client.post("/api/plants", json={
        "name": "Calathea", "room_id": room.id, "archetype_id": archetypes["Tropical"].id,
    }, headers=auth_headers).json()

    resp = log(client, auth_headers, created["id"], type="WATER", timestamp=iso(T0), soil_condition="DRY")
    plant = resp.json()
    assert plant["current_interval"] == 10
    assert parse_ts(plant["next_check_at"]) == T0 + timedelta(days=8)


def test_snooze_and_repot(client, auth_headers, plant_id):
    log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0))

    plant = log(client, auth_headers, plant_id, type="SNOOZE", timestamp=iso(T0 + timedelta(days=7))).json()
    assert parse_ts(plant["next_check_at"]) == T0 + timedelta(days=9)

    plant = log(
        client, auth_headers, plant_id,
        type="SNOOZE", timestamp=iso(T0 + timedelta(days=9)), snooze_extra_days=4,
    ).json()
    assert parse_ts(plant["next_check_at"]) == T0 + timedelta(days=13)

    plant = log(client, auth_headers, plant_id, type="REPOT", timestamp=iso(T0 + timedelta(days=10))).json()
    assert plant["current_interval"] == 7
    assert parse_ts(plant["next_check_at"]) == T0 + timedelta(days=10)
    assert parse_ts(plant["last_watered_at"]) == T0


def test_event_defaults_to_now(client, auth_headers, plant_id):
    before = datetime.now(timezone.utc)
    plant = log(client, auth_headers, plant_id, type="WATER").json()
    last = parse_ts(plant["last_watered_at"])
    assert before - timedelta(seconds=1) <= last <= datetime.now(timezone.utc)


def test_invalid_event_type_rejected(client, auth_headers, plant_id):
    resp = log(client, auth_headers, plant_id, type="FERTILIZE")
    assert resp.status_code == 422


def test_delete_latest_event_restores_previous_state(client, auth_headers, plant_id, db_session):
    log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0))
    before = log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0 + timedelta(days=9))).json()
    log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0 + timedelta(days=20)), soil_condition="DRY")

    latest = db_session.query(Event).order_by(Event.id.desc()).first()
    resp = client.delete(f"/api/events/{latest.id}", headers=auth_headers)
    assert resp.status_code == 200, resp.text
    after = resp.json()

    for field in ("current_interval", "last_watered_at", "next_check_at"):
        assert after[field] == before[field]


def test_delete_only_event_makes_plant_due_now(client, auth_headers, plant_id):
    log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0))
    history = client.get(f"/api/plants/{plant_id}/history", headers=auth_headers).json()

    before = datetime.now(timezone.utc)
    plant = client.delete(f"/api/events/{history[0]['id']}", headers=auth_headers).json()
    assert plant["last_watered_at"] is None
    assert plant["current_interval"] == 7
    assert parse_ts(plant["next_check_at"]) >= before - timedelta(seconds=1)


def test_invalid_settings_reject_event_without_changes(client, auth_headers, plant_id, user, db_session):
    log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0))
    stored = client.get(f"/api/plants/{plant_id}", headers=auth_headers).json()

    user.settings = {"ema_alpha": 1.5}
    db_session.commit()

    resp = log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0 + timedelta(days=3)))
    assert resp.status_code == 422
    assert "ema_alpha" in resp.json()["detail"]

    current = client.get(f"/api/plants/{plant_id}", headers=auth_headers).json()
    assert current["next_check_at"] == stored["next_check_at"]
    assert len(current["events"]) == 1


def test_events_are_scoped_to_owner(client, auth_headers, other_headers, plant_id):
    resp = log(client, other_headers, plant_id, type="WATER")
    assert resp.status_code == 404

    log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0))
    event_id = client.get(f"/api/plants/{plant_id}/history", headers=auth_headers).json()[0]["id"]
    assert client.delete(f"/api/events/{event_id}", headers=other_headers).status_code == 404
    assert client.delete("/api/events/9999", headers=auth_headers).status_code == 404


def test_events_require_auth(client, plant_id):
    assert log(client, {}, plant_id, type="WATER").status_code == 401


def test_snooze_length_is_capped(client, auth_headers, plant_id):
    log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0))
    resp = log(client, auth_headers, plant_id, type="SNOOZE", snooze_extra_days=5_000_000)
    assert resp.status_code == 422

    plant = log(client, auth_headers, plant_id, type="SNOOZE",
                timestamp=iso(T0 + timedelta(days=7)), snooze_extra_days=3650).json()
    assert parse_ts(plant["next_check_at"]) == T0 + timedelta(days=7 + 3650)


def test_far_future_event_is_rejected_without_changes(client, auth_headers, plant_id):
    log(client, auth_headers, plant_id, type="WATER", timestamp=iso(T0))
    resp = log(client, auth_headers, plant_id, type="WATER", timestamp="9999-12-30T00:00:00+00:00")
    assert resp.status_code == 400

    history = client.get(f"/api/plants/{plant_id}/history", headers=auth_headers).json()
    assert len(history) == 1

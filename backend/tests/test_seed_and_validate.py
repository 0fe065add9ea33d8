"""Seeding is idempotent and the validator catches drifted schedules."""
from datetime import datetime, timedelta, timezone

from waterlog.models import Plant, PlantArchetype, Room, User
from waterlog.scripts.validate_plant_state import check_plant, validate_all
from waterlog.seed.seed_data import DEMO_EMAIL, seed_database
from waterlog.services.plant_state import create_plant, record_event
from waterlog.services.scheduling import EventType

T0 = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)


def test_seed_database_is_idempotent(db_session):
    first = seed_database(db_session)
    second = seed_database(db_session)

    assert first["archetypes_added"] == 5
    assert second["archetypes_added"] == 0
    assert db_session.query(PlantArchetype).count() == 5
    assert db_session.query(User).count() == 1

    demo = db_session.query(User).filter(User.email == DEMO_EMAIL).one()
    names = [r.name for r in db_session.query(Room).filter(Room.user_id == demo.id).order_by(Room.sort_order)]
    assert names == ["Living Room", "Bedroom", "Graveyard"]


def test_seed_without_demo_user(db_session):
    counts = seed_database(db_session, with_demo_user=False)
    assert counts["users"] == 0


def test_validator_detects_and_fixes_drift(db_session, room, archetypes):
    fern = create_plant(db_session, room=room, archetype=archetypes["Fern"], name="Fern")
    record_event(db_session, fern, event_type=EventType.WATER, timestamp=T0)
    record_event(db_session, fern, event_type=EventType.WATER, timestamp=T0 + timedelta(days=8))
    fresh = create_plant(db_session, room=room, archetype=archetypes["Cactus"], name="Fresh")

    assert validate_all(db_session) == 0
    assert check_plant(db_session, fresh) == []

    fern.current_interval = 2
    fern.next_check_at = T0
    db_session.commit()

    errors = check_plant(db_session, fern)
    assert any(e.startswith("current_interval") for e in errors)
    assert any(e.startswith("next_check_at") for e in errors)

    assert validate_all(db_session, fix=True) == 1
    assert validate_all(db_session) == 0
    assert db_session.get(Plant, fern.id).current_interval != 2

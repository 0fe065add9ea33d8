"""
Derived plant state persistence

Every change to a plant's event log goes through this module: it reads the
full ordered history, runs the scheduling engine and writes the three derived
fields back in one transaction, serialised per plant.
"""
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from waterlog.models import Event, Plant, PlantArchetype, Room, User
from waterlog.services.scheduling import (
    DerivedState,
    EventType,
    SchedulingError,
    SoilCondition,
    WateringSettings,
    apply_manual_interval,
    recompute,
    resolve_settings,
    to_utc,
    utcnow,
)

logger = logging.getLogger(__name__)

_registry_guard = threading.Lock()
_plant_locks: Dict[int, threading.Lock] = {}
# Holders and waiters per plant; the lock is dropped once nobody needs it
_lock_users: Dict[int, int] = {}


@contextmanager
def plant_lock(plant_id: int):
    """Serialise read-recompute-write for one plant within this process."""
    with _registry_guard:
        lock = _plant_locks.setdefault(plant_id, threading.Lock())
        _lock_users[plant_id] = _lock_users.get(plant_id, 0) + 1
    try:
        with lock:
            yield
    finally:
        with _registry_guard:
            _lock_users[plant_id] -= 1
            if _lock_users[plant_id] == 0:
                del _lock_users[plant_id]
                del _plant_locks[plant_id]


def effective_settings(user: Optional[User]) -> WateringSettings:
    """User overrides merged over the engine defaults."""
    return resolve_settings(user.settings if user is not None else None)


def _owner(plant: Plant) -> Optional[User]:
    return plant.room.user if plant.room is not None else None


def _apply(plant: Plant, state: DerivedState) -> None:
    plant.current_interval = state.current_interval
    plant.last_watered_at = state.last_watered_at
    plant.next_check_at = state.next_check_at


def _load_for_update(db: Session, plant_id: int) -> Plant:
    # Row lock is a no-op on SQLite; it serialises workers on PostgreSQL
    plant = (
        db.query(Plant)
        .filter(Plant.id == plant_id)
        .with_for_update(of=Plant)
        .populate_existing()
        .first()
    )
    if plant is None:
        raise LookupError(f"plant {plant_id} not found")
    return plant


def compute_plant_state(db: Session, plant: Plant, now: Optional[datetime] = None) -> DerivedState:
    """Run the engine over the plant's stored history without writing anything."""
    events = (
        db.query(Event)
        .filter(Event.plant_id == plant.id)
        .order_by(Event.timestamp.asc(), Event.id.asc())
        .all()
    )
    return recompute(
        created_at=plant.created_at,
        default_interval=plant.archetype.default_interval,
        events=[e.to_care_event() for e in events],
        settings=effective_settings(_owner(plant)),
        now=now,
    )


def _recalculate_locked(db: Session, plant_id: int) -> Plant:
    plant = _load_for_update(db, plant_id)
    state = compute_plant_state(db, plant)
    _apply(plant, state)
    logger.debug(
        f"Recomputed plant {plant_id}: interval={state.current_interval:.3f}d "
        f"next_check={state.next_check_at.isoformat()}"
    )
    return plant


def recalculate_plant_state(db: Session, plant_id: int, commit: bool = True) -> Plant:
    """
    Recompute and persist a plant's derived state from its full history.

    On any error the session is rolled back, leaving the stored state as it was.
    """
    with plant_lock(plant_id):
        try:
            plant = _recalculate_locked(db, plant_id)
            if commit:
                db.commit()
                db.refresh(plant)
            return plant
        except Exception:
            db.rollback()
            raise


def create_plant(
    db: Session,
    *,
    room: Room,
    archetype: PlantArchetype,
    name: str,
    image_url: Optional[str] = None,
    water_amount: Optional[float] = None,
    now: Optional[datetime] = None,
) -> Plant:
    """Create a plant with the initial derived state (no history, due now)."""
    now = to_utc(now) if now is not None else utcnow()
    plant = Plant(
        room_id=room.id,
        archetype_id=archetype.id,
        name=name,
        image_url=image_url,
        water_amount=water_amount,
        created_at=now,
        current_interval=float(archetype.default_interval),
        last_watered_at=None,
        next_check_at=now,
    )
    try:
        db.add(plant)
        db.commit()
        db.refresh(plant)
    except Exception:
        db.rollback()
        raise
    logger.info(f"Created plant {plant.id} ({archetype.name}) in room {room.id}")
    return plant


def record_event(
    db: Session,
    plant: Plant,
    *,
    event_type: EventType,
    timestamp: Optional[datetime] = None,
    is_anomaly: bool = False,
    soil_condition: Optional[SoilCondition] = None,
    snooze_extra_days: Optional[int] = None,
    note: Optional[str] = None,
) -> Plant:
    """Append an event and recompute the plant in the same transaction."""
    event_type = EventType(event_type)
    is_water = event_type is EventType.WATER
    if snooze_extra_days is not None and snooze_extra_days <= 0:
        snooze_extra_days = None

    event = Event(
        plant_id=plant.id,
        timestamp=to_utc(timestamp) if timestamp is not None else utcnow(),
        type=event_type,
        is_anomaly=bool(is_anomaly) if is_water else False,
        soil_condition=SoilCondition(soil_condition) if (is_water and soil_condition) else None,
        snooze_extra_days=snooze_extra_days if event_type is EventType.SNOOZE else None,
        note=note,
    )

    plant_id = plant.id
    with plant_lock(plant_id):
        try:
            db.add(event)
            db.flush()
            plant = _recalculate_locked(db, plant_id)
            db.commit()
            db.refresh(plant)
        except Exception:
            db.rollback()
            raise
    logger.info(f"Logged {event_type.value} event {event.id} for plant {plant_id}")
    return plant


def remove_event(db: Session, event: Event) -> Plant:
    """Delete an event and recompute over the shorter history."""
    plant_id = event.plant_id
    event_id = event.id
    with plant_lock(plant_id):
        try:
            db.delete(event)
            db.flush()
            plant = _recalculate_locked(db, plant_id)
            db.commit()
            db.refresh(plant)
        except Exception:
            db.rollback()
            raise
    logger.info(f"Deleted event {event_id} of plant {plant_id}")
    return plant


def set_manual_interval(db: Session, plant: Plant, interval: float, commit: bool = True) -> Plant:
    """Overwrite the learned interval and move the next check from the last watering anchor."""
    plant_id = plant.id
    with plant_lock(plant_id):
        try:
            # Pending edits on the caller's instance survive the reload
            db.flush()
            plant = _load_for_update(db, plant_id)
            state = apply_manual_interval(plant.created_at, plant.last_watered_at, interval)
            _apply(plant, state)
            if commit:
                db.commit()
                db.refresh(plant)
        except Exception:
            db.rollback()
            raise
    logger.info(f"Manual interval {interval}d set on plant {plant_id}")
    return plant


INTERVAL_TOLERANCE = 1e-6  # days
TIME_TOLERANCE_SECONDS = 1.0


def _same_time(a: Optional[datetime], b: Optional[datetime]) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return abs((to_utc(a) - to_utc(b)).total_seconds()) <= TIME_TOLERANCE_SECONDS


def find_drift(db: Session, plant: Plant) -> List[str]:
    """
    Compare a plant's stored derived state with a replay of its history.

    Nothing is written. A manual interval override shows up as drift until
    the next event replaces it. ``next_check_at`` is not compared for plants
    without history, whose replayed next check is "now".

    Raises:
        SchedulingError: if the history cannot be replayed (e.g. invalid settings)
    """
    expected = compute_plant_state(db, plant)

    mismatches = []
    if abs(expected.current_interval - plant.current_interval) > INTERVAL_TOLERANCE:
        mismatches.append(
            f"current_interval: stored {plant.current_interval:.4f}, replayed {expected.current_interval:.4f}"
        )
    if not _same_time(plant.last_watered_at, expected.last_watered_at):
        mismatches.append(
            f"last_watered_at: stored {plant.last_watered_at}, replayed {expected.last_watered_at}"
        )

    has_history = db.query(Event.id).filter(Event.plant_id == plant.id).first() is not None
    if has_history and not _same_time(plant.next_check_at, expected.next_check_at):
        mismatches.append(
            f"next_check_at: stored {plant.next_check_at}, replayed {expected.next_check_at}"
        )
    return mismatches


def reconcile_all(db: Session) -> Dict[str, int]:
    """
    Check every plant against a replay of its history without writing.

    Derived state only changes when an event is logged or deleted, or on a
    manual interval edit, so drift is reported for an operator to review
    (``waterlog-validate --fix``) rather than overwritten here.

    Returns:
        Counts of ``consistent``, ``drifted`` and ``failed`` plants
    """
    results = {"consistent": 0, "drifted": 0, "failed": 0}
    for plant in db.query(Plant).order_by(Plant.id).all():
        try:
            mismatches = find_drift(db, plant)
        except SchedulingError as e:
            results["failed"] += 1
            logger.warning(f"Cannot replay plant {plant.id}: {e}")
            continue
        if mismatches:
            results["drifted"] += 1
            logger.info(f"Plant {plant.id} differs from its replay: {'; '.join(mismatches)}")
        else:
            results["consistent"] += 1
    return results

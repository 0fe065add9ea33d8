"""Event endpoints: every insert or delete recomputes the owning plant."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from waterlog.auth import get_current_user
from waterlog.database import get_db
from waterlog.models import Event, Plant, Room, User
from waterlog.routers.plants import get_owned_plant
from waterlog.schemas import EventCreate, PlantResponse
from waterlog.services.plant_state import record_event, remove_event

router = APIRouter(prefix="/api", tags=["events"])


@router.post("/plants/{plant_id}/events", response_model=PlantResponse, status_code=201)
def log_event(
    plant_id: int,
    data: EventCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Log a WATER, SNOOZE or REPOT event and return the rescheduled plant."""
    plant = get_owned_plant(db, current_user, plant_id)
    return record_event(
        db,
        plant,
        event_type=data.type,
        timestamp=data.timestamp,
        is_anomaly=data.is_anomaly,
        soil_condition=data.soil_condition,
        snooze_extra_days=data.snooze_extra_days,
        note=data.note,
    )


@router.delete("/events/{event_id}", response_model=PlantResponse)
def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete an event and return the plant recomputed over the remaining history."""
    event = db.query(Event).join(Plant).join(Room).filter(
        Event.id == event_id,
        Room.user_id == current_user.id
    ).first()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return remove_event(db, event)

"""Plant endpoints: CRUD, soft delete to the graveyard, restore and history."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from waterlog.auth import get_current_user
from waterlog.database import get_db
from waterlog.models import Event, Plant, PlantArchetype, Room, User
from waterlog.schemas import (
    EventResponse, PlantCreate, PlantDetailResponse, PlantResponse,
    PlantUpdate, RestoreRequest
)
from waterlog.services.plant_state import create_plant, set_manual_interval
from waterlog.services.rooms import get_graveyard_room

router = APIRouter(prefix="/api/plants", tags=["plants"])


def get_owned_plant(db: Session, user: User, plant_id: int) -> Plant:
    """Load a plant belonging to the user or 404."""
    plant = db.query(Plant).join(Room).filter(
        Plant.id == plant_id,
        Room.user_id == user.id
    ).first()
    if not plant:
        raise HTTPException(status_code=404, detail="Plant not found")
    return plant


def _get_archetype(db: Session, archetype_id: int) -> PlantArchetype:
    archetype = db.query(PlantArchetype).filter(PlantArchetype.id == archetype_id).first()
    if not archetype:
        raise HTTPException(status_code=404, detail="Archetype not found")
    return archetype


@router.post("", response_model=PlantResponse, status_code=201)
def add_plant(
    data: PlantCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a plant in one of the user's rooms; it is due for a check immediately."""
    room = db.query(Room).filter(Room.id == data.room_id, Room.user_id == current_user.id).first()
    if not room:
        raise HTTPException(status_code=403, detail="Room not found or access denied")
    if room.is_graveyard:
        raise HTTPException(status_code=400, detail="Cannot add plants to the Graveyard")
    archetype = _get_archetype(db, data.archetype_id)

    return create_plant(
        db,
        room=room,
        archetype=archetype,
        name=data.name.strip(),
        image_url=data.image_url,
        water_amount=data.water_amount,
    )


@router.get("/{plant_id}", response_model=PlantDetailResponse)
def get_plant(
    plant_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a plant with its room and events, newest event first."""
    plant = get_owned_plant(db, current_user, plant_id)
    detail = PlantDetailResponse.model_validate(plant)
    detail.events = list(reversed(detail.events))
    return detail


@router.patch("/{plant_id}", response_model=PlantResponse)
def update_plant(
    plant_id: int,
    data: PlantUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update plant details; ``current_interval`` applies a manual schedule override."""
    plant = get_owned_plant(db, current_user, plant_id)

    if data.room_id is not None and data.room_id != plant.room_id:
        target = db.query(Room).filter(Room.id == data.room_id, Room.user_id == current_user.id).first()
        if not target:
            raise HTTPException(status_code=403, detail="Target room not found or access denied")
        plant.room_id = target.id
    if data.archetype_id is not None:
        plant.archetype = _get_archetype(db, data.archetype_id)

    fields = data.model_fields_set
    if data.name is not None:
        plant.name = data.name.strip()
    if "image_url" in fields:
        plant.image_url = data.image_url
    if "water_amount" in fields:
        plant.water_amount = data.water_amount

    if data.current_interval is not None:
        # Commits the other field changes together with the override
        return set_manual_interval(db, plant, data.current_interval)

    try:
        db.commit()
        db.refresh(plant)
    except Exception:
        db.rollback()
        raise
    return plant


@router.delete("/{plant_id}", response_model=PlantResponse)
def retire_plant(
    plant_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Soft delete: move the plant to the graveyard."""
    plant = get_owned_plant(db, current_user, plant_id)
    try:
        graveyard = get_graveyard_room(db, current_user)
        plant.room_id = graveyard.id
        db.commit()
        db.refresh(plant)
    except Exception:
        db.rollback()
        raise
    return plant


@router.post("/{plant_id}/restore", response_model=PlantResponse)
def restore_plant(
    plant_id: int,
    data: RestoreRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Move a plant out of the graveyard into one of the user's rooms."""
    plant = get_owned_plant(db, current_user, plant_id)
    if not plant.room.is_graveyard:
        raise HTTPException(status_code=404, detail="Plant not found in Graveyard")

    target = db.query(Room).filter(Room.id == data.room_id, Room.user_id == current_user.id).first()
    if not target or target.is_graveyard:
        raise HTTPException(status_code=400, detail="Invalid restore location")

    plant.room_id = target.id
    try:
        db.commit()
        db.refresh(plant)
    except Exception:
        db.rollback()
        raise
    return plant


@router.get("/{plant_id}/history", response_model=List[EventResponse])
def get_plant_history(
    plant_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Events for a plant in replay order (oldest first)."""
    plant = get_owned_plant(db, current_user, plant_id)
    return db.query(Event).filter(
        Event.plant_id == plant.id
    ).order_by(Event.timestamp.asc(), Event.id.asc()).all()

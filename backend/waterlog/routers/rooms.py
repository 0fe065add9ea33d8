"""Room CRUD plus the dashboard and graveyard views."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from waterlog.auth import get_current_user
from waterlog.database import get_db
from waterlog.models import Plant, Room, User
from waterlog.models.room import GRAVEYARD_NAME
from waterlog.schemas import PlantResponse, RoomCreate, RoomResponse, RoomUpdate, RoomWithPlantsResponse
from waterlog.services.rooms import delete_room, get_graveyard_room

router = APIRouter(prefix="/api/rooms", tags=["rooms"])
overview_router = APIRouter(prefix="/api", tags=["dashboard"])


def get_owned_room(db: Session, user: User, room_id: int) -> Room:
    room = db.query(Room).filter(Room.id == room_id, Room.user_id == user.id).first()
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return room


@router.get("", response_model=List[RoomWithPlantsResponse])
def list_rooms(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """List the user's rooms (graveyard included) with their plants."""
    return db.query(Room).options(
        selectinload(Room.plants)
    ).filter(Room.user_id == current_user.id).order_by(Room.sort_order, Room.id).all()


@router.post("", response_model=RoomResponse, status_code=201)
def create_room(
    data: RoomCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a room."""
    name = data.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="name must not be empty")
    if name.lower() == GRAVEYARD_NAME.lower():
        raise HTTPException(status_code=400, detail="Room name is reserved")

    sort_order = data.sort_order
    if sort_order is None:
        highest = db.query(func.max(Room.sort_order)).filter(
            Room.user_id == current_user.id, Room.is_graveyard.is_(False)
        ).scalar()
        sort_order = (highest + 1) if highest is not None else 0

    room = Room(user_id=current_user.id, name=name, sort_order=sort_order)
    try:
        db.add(room)
        db.commit()
        db.refresh(room)
    except Exception:
        db.rollback()
        raise
    return room


@router.patch("/{room_id}", response_model=RoomResponse)
def update_room(
    room_id: int,
    data: RoomUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Rename or reorder a room."""
    room = get_owned_room(db, current_user, room_id)
    if room.is_graveyard:
        raise HTTPException(status_code=400, detail="Cannot modify the Graveyard")

    if data.name is not None:
        name = data.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="name must not be empty")
        if name.lower() == GRAVEYARD_NAME.lower():
            raise HTTPException(status_code=400, detail="Room name is reserved")
        room.name = name
    if data.sort_order is not None:
        room.sort_order = data.sort_order

    try:
        db.commit()
        db.refresh(room)
    except Exception:
        db.rollback()
        raise
    return room


@router.delete("/{room_id}", status_code=204)
def remove_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete a room; its plants move to the Default room."""
    room = get_owned_room(db, current_user, room_id)
    if room.is_graveyard:
        raise HTTPException(status_code=400, detail="Cannot delete the Graveyard")
    try:
        delete_room(db, room)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return None


@overview_router.get("/dashboard", response_model=List[RoomWithPlantsResponse])
def dashboard(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Living rooms with plants ordered by next check, soonest first."""
    return db.query(Room).options(
        selectinload(Room.plants)
    ).filter(
        Room.user_id == current_user.id,
        Room.is_graveyard.is_(False)
    ).order_by(Room.sort_order, Room.id).all()


@overview_router.get("/graveyard", response_model=List[PlantResponse])
def graveyard(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Plants retired to the graveyard."""
    room = get_graveyard_room(db, current_user)
    db.commit()
    return db.query(Plant).filter(Plant.room_id == room.id).order_by(Plant.name).all()

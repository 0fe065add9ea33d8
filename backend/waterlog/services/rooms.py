"""Graveyard and default-room helpers."""
import logging

from sqlalchemy.orm import Session

from waterlog.models import Room, User
from waterlog.models.room import DEFAULT_ROOM_NAME, GRAVEYARD_NAME, GRAVEYARD_SORT_ORDER

logger = logging.getLogger(__name__)


def get_graveyard_room(db: Session, user: User) -> Room:
    """Return the user's graveyard, creating it on first use (flushed, not committed)."""
    graveyard = (
        db.query(Room)
        .filter(Room.user_id == user.id, Room.is_graveyard.is_(True))
        .first()
    )
    if graveyard is None:
        graveyard = Room(
            user_id=user.id,
            name=GRAVEYARD_NAME,
            sort_order=GRAVEYARD_SORT_ORDER,
            is_graveyard=True,
        )
        db.add(graveyard)
        db.flush()
        logger.info(f"Created graveyard room for user {user.id}")
    return graveyard


def get_default_room(db: Session, user: User) -> Room:
    """Return the user's 'Default' room, creating it if missing (flushed, not committed)."""
    room = (
        db.query(Room)
        .filter(
            Room.user_id == user.id,
            Room.name == DEFAULT_ROOM_NAME,
            Room.is_graveyard.is_(False),
        )
        .first()
    )
    if room is None:
        room = Room(user_id=user.id, name=DEFAULT_ROOM_NAME, sort_order=0)
        db.add(room)
        db.flush()
    return room


def delete_room(db: Session, room: Room) -> int:
    """
    Delete a room, moving any plants into the Default room first.

    Raises:
        ValueError: if the room is the Default room and still holds plants

    Returns:
        Number of plants moved
    """
    room_id = room.id
    plants = list(room.plants)
    try:
        if plants:
            target = get_default_room(db, room.user)
            if target.id == room_id:
                raise ValueError("Cannot delete the Default room while it holds plants")
            for plant in plants:
                plant.room = target
            db.flush()
        db.delete(room)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Deleted room {room_id}, moved {len(plants)} plants")
    return len(plants)

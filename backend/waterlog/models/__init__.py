"""All SQLAlchemy models – re-exported for Alembic and app use."""

from waterlog.models.user import User
from waterlog.models.room import Room
from waterlog.models.plant import PlantArchetype, Plant
from waterlog.models.event import Event

__all__ = [
    "User",
    "Room",
    "PlantArchetype", "Plant",
    "Event",
]

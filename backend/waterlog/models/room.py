from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from waterlog.database import Base

GRAVEYARD_NAME = "Graveyard"
GRAVEYARD_SORT_ORDER = 999
DEFAULT_ROOM_NAME = "Default"


class Room(Base):
    """A room groups a user's plants; one room per user is the graveyard."""

    __tablename__ = "room"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    is_graveyard = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="rooms")
    plants = relationship("Plant", back_populates="room", order_by="Plant.next_check_at")

    def __repr__(self):
        return f"<Room(id={self.id}, name='{self.name}')>"

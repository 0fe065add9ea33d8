"""Plant and PlantArchetype models.

``Plant.current_interval``, ``Plant.last_watered_at`` and ``Plant.next_check_at``
are derived state. Only ``waterlog.services.plant_state`` writes them.
"""
from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from waterlog.database import Base
from waterlog.services.scheduling import utcnow


class PlantArchetype(Base):
    """Plant type template providing the seed watering interval."""

    __tablename__ = "plant_archetype"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    default_interval = Column(Float, nullable=False)  # days

    plants = relationship("Plant", back_populates="archetype")

    def __repr__(self):
        return f"<PlantArchetype(id={self.id}, name='{self.name}')>"


class Plant(Base):
    __tablename__ = "plant"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("room.id", ondelete="CASCADE"), nullable=False, index=True)
    archetype_id = Column(Integer, ForeignKey("plant_archetype.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    image_url = Column(Text, nullable=True)
    water_amount = Column(Float, nullable=True)  # ml
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Derived state
    current_interval = Column(Float, nullable=False)
    last_watered_at = Column(DateTime(timezone=True), nullable=True)
    next_check_at = Column(DateTime(timezone=True), nullable=False, index=True)

    room = relationship("Room", back_populates="plants")
    archetype = relationship("PlantArchetype", back_populates="plants", lazy="joined")
    events = relationship(
        "Event",
        back_populates="plant",
        cascade="all, delete-orphan",
        order_by="[Event.timestamp, Event.id]",
    )

    def __repr__(self):
        return f"<Plant(id={self.id}, name='{self.name}')>"

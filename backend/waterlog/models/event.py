"""Append-only care event log."""
from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from waterlog.database import Base
from waterlog.services.scheduling import CareEvent, EventType, SoilCondition, utcnow


class Event(Base):
    __tablename__ = "event"

    # id doubles as the insertion sequence used to break timestamp ties
    id = Column(Integer, primary_key=True, index=True)
    plant_id = Column(Integer, ForeignKey("plant.id", ondelete="CASCADE"), nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    type = Column(Enum(EventType, name="event_type", native_enum=False), nullable=False)
    is_anomaly = Column(Boolean, nullable=False, default=False)  # WATER only
    soil_condition = Column(Enum(SoilCondition, name="soil_condition", native_enum=False), nullable=True)  # WATER only
    snooze_extra_days = Column(Integer, nullable=True)  # SNOOZE only
    note = Column(Text, nullable=True)

    plant = relationship("Plant", back_populates="events")

    __table_args__ = (
        Index("ix_event_plant_timestamp", "plant_id", "timestamp", "id"),
    )

    def to_care_event(self) -> CareEvent:
        return CareEvent(
            timestamp=self.timestamp,
            type=self.type,
            is_anomaly=bool(self.is_anomaly),
            soil_condition=self.soil_condition,
            snooze_extra_days=self.snooze_extra_days,
            sequence=self.id or 0,
        )

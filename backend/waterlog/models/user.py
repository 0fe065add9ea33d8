"""User model with per-user watering settings."""
from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from waterlog.database import Base
from waterlog.services.scheduling import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    # Raw overrides ({"ema_alpha": ..., "snooze_factor": ...}); resolved against defaults on use
    settings = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    rooms = relationship("Room", back_populates="user", cascade="all, delete-orphan", order_by="Room.sort_order")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"

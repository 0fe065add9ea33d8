"""Pydantic schemas for API request/response validation."""
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator

from waterlog.services.scheduling import EventType, SoilCondition, to_utc

# Stored timestamps come back naive from SQLite; always emit UTC
UTCDateTime = Annotated[datetime, AfterValidator(to_utc)]

# Upper bound for user-supplied intervals and snoozes, in days
MAX_SCHEDULE_DAYS = 3650


# === Auth Schemas ===
class SignupRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError('Password must be at least 8 characters')
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str

    @field_validator('new_password')
    @classmethod
    def validate_new_password(cls, v):
        if len(v) < 8:
            raise ValueError('Password must be at least 8 characters')
        return v


# === User Settings Schemas ===
class WateringSettingsResponse(BaseModel):
    ema_alpha: float
    snooze_factor: float


class UserSettingsUpdate(BaseModel):
    """Partial update of a user's smoothing parameters; omitted keys keep their value."""
    ema_alpha: Optional[float] = Field(default=None, gt=0, lt=1)
    snooze_factor: Optional[float] = Field(default=None, gt=0, lt=1)


class UserResponse(BaseModel):
    id: int
    email: str
    settings: Optional[dict] = None
    effective_settings: WateringSettingsResponse


# === Room Schemas ===
class RoomCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    sort_order: Optional[int] = None


class RoomUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    sort_order: Optional[int] = None


class RoomResponse(BaseModel):
    id: int
    name: str
    sort_order: int
    is_graveyard: bool

    class Config:
        from_attributes = True


# === Archetype Schemas ===
class ArchetypeResponse(BaseModel):
    id: int
    name: str
    default_interval: float

    class Config:
        from_attributes = True


# === Event Schemas ===
class EventCreate(BaseModel):
    """Schema for logging a care event.

    ``timestamp`` defaults to now; pass an earlier time to backfill.
    """
    type: EventType
    timestamp: Optional[datetime] = None
    is_anomaly: bool = False
    soil_condition: Optional[SoilCondition] = None
    snooze_extra_days: Optional[int] = Field(default=None, le=MAX_SCHEDULE_DAYS)
    note: Optional[str] = None


class EventResponse(BaseModel):
    id: int
    plant_id: int
    timestamp: UTCDateTime
    type: EventType
    is_anomaly: bool
    soil_condition: Optional[SoilCondition] = None
    snooze_extra_days: Optional[int] = None
    note: Optional[str] = None

    class Config:
        from_attributes = True


# === Plant Schemas ===
class PlantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    room_id: int
    archetype_id: int
    image_url: Optional[str] = None
    water_amount: Optional[float] = Field(default=None, ge=0)


class PlantUpdate(BaseModel):
    """Schema for updating a plant.

    Setting ``current_interval`` overrides the learned interval and moves the
    next check accordingly.
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    room_id: Optional[int] = None
    archetype_id: Optional[int] = None
    image_url: Optional[str] = None
    water_amount: Optional[float] = Field(default=None, ge=0)
    current_interval: Optional[float] = Field(default=None, gt=0, le=MAX_SCHEDULE_DAYS)


class PlantResponse(BaseModel):
    id: int
    name: str
    room_id: int
    archetype_id: int
    image_url: Optional[str] = None
    water_amount: Optional[float] = None
    created_at: UTCDateTime
    current_interval: float
    last_watered_at: Optional[UTCDateTime] = None
    next_check_at: UTCDateTime
    archetype: ArchetypeResponse

    class Config:
        from_attributes = True


class PlantDetailResponse(PlantResponse):
    """Plant with its room and full event log (newest first)."""
    room: RoomResponse
    events: List[EventResponse] = []

    class Config:
        from_attributes = True


class RestoreRequest(BaseModel):
    room_id: int


class RoomWithPlantsResponse(RoomResponse):
    plants: List[PlantResponse] = []

    class Config:
        from_attributes = True


# === Upload Schemas ===
class UploadResponse(BaseModel):
    image_url: str

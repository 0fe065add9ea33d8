"""
Adaptive watering schedule engine

Folds a plant's ordered event history into a smoothed watering interval,
the last-watered timestamp and the next-check timestamp.

Rules:
- WATER: exponential moving average of observed intervals (anomalies and the
  first watering only move the anchor), dry soil pulls the next check in by 20%
- SNOOZE: push the next check out by an explicit or derived number of days
- REPOT: forget the learned interval, the plant is due immediately
- No history: the plant is due now

The engine does no I/O and holds no state; callers own loading and persisting.
"""
import enum
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

DEFAULT_EMA_ALPHA = 0.35
DEFAULT_SNOOZE_FACTOR = 0.2

DRY_SOIL_FACTOR = 0.8
MIN_SNOOZE_DAYS = 2

SECONDS_PER_DAY = 24 * 60 * 60


class EventType(str, enum.Enum):
    WATER = "WATER"
    SNOOZE = "SNOOZE"
    REPOT = "REPOT"


class SoilCondition(str, enum.Enum):
    NORMAL = "NORMAL"
    DRY = "DRY"


class SchedulingError(ValueError):
    """Base error for invalid engine input."""


class SettingsValidationError(SchedulingError):
    """Smoothing parameters outside the open interval (0, 1)."""


class EventOrderError(SchedulingError):
    """Events were not passed in ascending timestamp order."""


def to_utc(dt: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_fraction(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SettingsValidationError(f"{name} must be a number, got {value!r}")
    value = float(value)
    if math.isnan(value) or not 0.0 < value < 1.0:
        raise SettingsValidationError(f"{name} must be between 0 and 1 (exclusive), got {value}")
    return value


@dataclass(frozen=True)
class WateringSettings:
    """Effective smoothing parameters for one user."""
    ema_alpha: float = DEFAULT_EMA_ALPHA
    snooze_factor: float = DEFAULT_SNOOZE_FACTOR

    def __post_init__(self):
        object.__setattr__(self, "ema_alpha", _check_fraction("ema_alpha", self.ema_alpha))
        object.__setattr__(self, "snooze_factor", _check_fraction("snooze_factor", self.snooze_factor))

    def as_dict(self) -> dict:
        return {"ema_alpha": self.ema_alpha, "snooze_factor": self.snooze_factor}


def resolve_settings(overrides: Optional[Mapping[str, Any]] = None) -> WateringSettings:
    """
    Merge user overrides over the documented defaults.

    Keys other than ``ema_alpha``/``snooze_factor`` are ignored, as are
    ``None`` values. The merged result is validated.

    Raises:
        SettingsValidationError: if a resolved value is outside (0, 1)
    """
    merged = {"ema_alpha": DEFAULT_EMA_ALPHA, "snooze_factor": DEFAULT_SNOOZE_FACTOR}
    if overrides:
        for key in merged:
            value = overrides.get(key)
            if value is not None:
                merged[key] = value
    return WateringSettings(**merged)


@dataclass(frozen=True)
class CareEvent:
    """A single logged event as seen by the engine."""
    timestamp: datetime
    type: EventType
    is_anomaly: bool = False
    soil_condition: Optional[SoilCondition] = None
    snooze_extra_days: Optional[int] = None
    sequence: int = 0


@dataclass(frozen=True)
class DerivedState:
    current_interval: float
    last_watered_at: Optional[datetime]
    next_check_at: datetime


def sort_events(events: Iterable[CareEvent]) -> List[CareEvent]:
    """Order events by timestamp, breaking ties on insertion sequence."""
    return sorted(events, key=lambda e: (to_utc(e.timestamp), e.sequence))


def _days(delta: timedelta) -> float:
    return delta.total_seconds() / SECONDS_PER_DAY


def _shift(moment: datetime, days: float) -> datetime:
    try:
        return moment + timedelta(days=days)
    except OverflowError:
        raise SchedulingError(f"{days} days from {moment.isoformat()} is out of range") from None


def snooze_days(event: CareEvent, current_interval: float, snooze_factor: float) -> int:
    """Explicit snooze length if positive, else a fraction of the interval with a 2 day floor."""
    if event.snooze_extra_days is not None and event.snooze_extra_days > 0:
        return int(event.snooze_extra_days)
    return max(MIN_SNOOZE_DAYS, math.floor(current_interval * snooze_factor))


def recompute(
    created_at: datetime,
    default_interval: float,
    events: Sequence[CareEvent],
    settings: Union[WateringSettings, Mapping[str, Any], None] = None,
    now: Optional[datetime] = None,
) -> DerivedState:
    """
    Replay a plant's full event history.

    Args:
        created_at: Plant creation time, the starting next-check anchor
        default_interval: Archetype default interval in days
        events: Events sorted ascending by timestamp (see ``sort_events``)
        settings: Effective settings, or raw user overrides to resolve
        now: Clock used when the history is empty

    Returns:
        The derived interval, last watering and next check, all in UTC

    Raises:
        SettingsValidationError: on invalid smoothing parameters
        EventOrderError: if events are not in ascending timestamp order
        SchedulingError: if the default interval is not positive
    """
    if not isinstance(settings, WateringSettings):
        settings = resolve_settings(settings)
    if default_interval is None or not default_interval > 0:
        raise SchedulingError(f"default interval must be positive, got {default_interval}")

    alpha = settings.ema_alpha
    current_interval = float(default_interval)
    last_watered_at: Optional[datetime] = None
    next_check_at = to_utc(created_at)
    previous: Optional[datetime] = None

    for event in events:
        event_time = to_utc(event.timestamp)
        if previous is not None and event_time < previous:
            raise EventOrderError(
                f"event at {event_time.isoformat()} follows {previous.isoformat()}"
            )
        previous = event_time

        event_type = EventType(event.type)
        if event_type is EventType.WATER:
            if last_watered_at is not None and not event.is_anomaly:
                observed = _days(event_time - last_watered_at)
                current_interval = alpha * observed + (1 - alpha) * current_interval
            last_watered_at = event_time

            step = current_interval
            if event.soil_condition is not None and SoilCondition(event.soil_condition) is SoilCondition.DRY:
                step = step * DRY_SOIL_FACTOR
            next_check_at = _shift(event_time, step)

        elif event_type is EventType.SNOOZE:
            days = snooze_days(event, current_interval, settings.snooze_factor)
            next_check_at = _shift(event_time, days)

        elif event_type is EventType.REPOT:
            current_interval = float(default_interval)
            next_check_at = event_time

    if not events:
        next_check_at = to_utc(now) if now is not None else utcnow()

    return DerivedState(
        current_interval=current_interval,
        last_watered_at=last_watered_at,
        next_check_at=next_check_at,
    )


def apply_manual_interval(
    created_at: datetime,
    last_watered_at: Optional[datetime],
    new_interval: float,
) -> DerivedState:
    """Shift the next check from the last watering (or creation) by a user-chosen interval."""
    if new_interval is None or not new_interval > 0:
        raise SchedulingError(f"interval must be positive, got {new_interval}")
    anchor = to_utc(last_watered_at) if last_watered_at is not None else to_utc(created_at)
    return DerivedState(
        current_interval=float(new_interval),
        last_watered_at=to_utc(last_watered_at) if last_watered_at is not None else None,
        next_check_at=_shift(anchor, float(new_interval)),
    )

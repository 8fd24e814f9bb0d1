"""Common data types and enums used across the engine."""

from __future__ import annotations

from datetime import time
from enum import Enum

from pydantic import BaseModel, Field, model_validator

MINUTES_PER_DAY = 24 * 60


class Geo(BaseModel):
    """Geographic coordinates in WGS84 decimal degrees."""

    lat: float = Field(ge=-90, le=90, description="Latitude in decimal degrees")
    lng: float = Field(ge=-180, le=180, description="Longitude in decimal degrees")


class TimeWindow(BaseModel):
    """Time window in local time, minute granularity."""

    start: time = Field(description="Start time in local time")
    end: time = Field(description="End time in local time")

    @model_validator(mode="after")
    def _truncate_seconds(self) -> TimeWindow:
        self.start = self.start.replace(second=0, microsecond=0)
        self.end = self.end.replace(second=0, microsecond=0)
        return self

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end)

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes


class Tier(str, Enum):
    """Budget tiers."""

    budget = "budget"
    mid = "mid"
    luxury = "luxury"


class TravelStyle(str, Enum):
    """Travel styles that bias waypoint discovery."""

    adventure = "adventure"
    culture = "culture"
    food = "food"
    hidden_gems = "hidden-gems"
    best_overall = "best-overall"


class TransitMode(str, Enum):
    """Transportation modes understood by the distance service."""

    walking = "walking"
    driving = "driving"
    transit = "transit"
    bicycling = "bicycling"


class Severity(str, Enum):
    """Conflict priority tiers, most urgent first."""

    critical = "critical"
    high = "high"
    medium = "medium"
    low = "low"


SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.critical,
    Severity.high,
    Severity.medium,
    Severity.low,
)


class ConflictType(str, Enum):
    """Types of day-plan conflicts."""

    timeline_overlap = "timeline_overlap"
    insufficient_buffer = "insufficient_buffer"
    closed_all_day = "closed_all_day"
    before_opening = "before_opening"
    after_closing = "after_closing"
    missing_hours_data = "missing_hours_data"
    unrealistic_walk = "unrealistic_walk"
    insufficient_travel_time = "insufficient_travel_time"
    budget_exceeded = "budget_exceeded"
    budget_warning = "budget_warning"


AVAILABILITY_CONFLICTS = frozenset(
    {
        ConflictType.closed_all_day,
        ConflictType.before_opening,
        ConflictType.after_closing,
    }
)

TIMELINE_CONFLICTS = frozenset(
    {ConflictType.timeline_overlap, ConflictType.insufficient_buffer}
)


# Time helpers


def to_minutes(value: time) -> int:
    """Minutes since midnight for a local time."""
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    """Local time for minutes since midnight.

    Raises:
        ValueError: If the value falls outside a single day.
    """
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ValueError(f"{minutes} minutes is outside a single day")
    return time(minutes // 60, minutes % 60)


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as HH:MM."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_hhmm(value: str) -> int:
    """Parse a place-service time such as "0930" or "09:30" into minutes."""
    digits = value.replace(":", "").strip()
    if len(digits) != 4 or not digits.isdigit():
        raise ValueError(f"Unrecognized time value: {value!r}")
    return int(digits[:2]) * 60 + int(digits[2:])

"""Day itinerary models consumed by the optimizer, detector and resolver."""

from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from .common import Geo, TimeWindow


class PeriodPoint(BaseModel):
    """One end of an opening-hours period (place-service format)."""

    day: int = Field(ge=0, le=6, description="Day of week, Sunday=0")
    time: str = Field(pattern=r"^\d{2}:?\d{2}$", description="Local time as HHMM")

    @field_validator("time")
    @classmethod
    def _normalize_time(cls, value: str) -> str:
        """Store as HHMM; 2400 is allowed as end of day."""
        digits = value.replace(":", "")
        hours, minutes = int(digits[:2]), int(digits[2:])
        if minutes > 59 or hours > 24 or (hours == 24 and minutes):
            raise ValueError(f"{value!r} is not a time of day")
        return digits


class OpeningPeriod(BaseModel):
    """An opening-hours period. A missing close means open until midnight."""

    open: PeriodPoint = Field(description="When the period opens")
    close: PeriodPoint | None = Field(default=None, description="When it closes")


class PlaceDetails(BaseModel):
    """Validated place data attached to an activity."""

    place_id: str | None = Field(default=None, description="External place id")
    coordinates: Geo | None = Field(default=None, description="Place coordinates")
    formatted_address: str | None = Field(default=None, description="Address")
    opening_periods: list[OpeningPeriod] | None = Field(
        default=None, description="Opening-hours periods; None when unknown"
    )


class ValidationStatus(str, Enum):
    """How an activity's place data was obtained."""

    validated = "validated"
    fallback = "fallback"


class Activity(BaseModel):
    """A scheduled activity within a day."""

    name: str = Field(min_length=1, description="Activity name")
    type: str = Field(default="general", description="Activity purpose")
    time: TimeWindow = Field(description="Scheduled time window")
    energy_level: str = Field(default="moderate", description="Energy level")
    place: PlaceDetails | None = Field(default=None, description="Validated place data")
    admission: str | None = Field(default=None, description="Cost or admission text")
    validation_status: ValidationStatus = Field(
        default=ValidationStatus.validated, description="Source of place data"
    )

    @property
    def coordinates(self) -> Geo | None:
        return self.place.coordinates if self.place else None


class DayItinerary(BaseModel):
    """One day of the trip, owned by a single worker while processed."""

    day: int = Field(ge=1, description="Day index, starting at 1")
    date: dt.date = Field(description="Calendar date")
    city: str = Field(description="City for this day")
    activities: list[Activity] = Field(default_factory=list, description="Activities")

    @property
    def day_of_week(self) -> str:
        return self.date.strftime("%A")

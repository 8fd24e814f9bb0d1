"""Models for results returned by external collaborators."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .common import Geo, TimeWindow, TravelStyle
from .itinerary import Activity, OpeningPeriod
from .trip import CandidatePlace


class PlaceMatch(BaseModel):
    """Place-validation lookup result."""

    coordinates: Geo = Field(description="Place coordinates")
    formatted_address: str = Field(default="", description="Formatted address")
    place_id: str = Field(description="External place id")
    types: list[str] = Field(default_factory=list, description="Place-type tags")
    opening_periods: list[OpeningPeriod] | None = Field(
        default=None, description="Opening-hours periods, when requested and known"
    )


class TravelTime(BaseModel):
    """Distance-service result for a single origin/destination pair."""

    distance_meters: float = Field(ge=0, description="Travel distance in meters")
    duration_seconds: float = Field(ge=0, description="Travel duration in seconds")
    estimated: bool = Field(
        default=False, description="Whether this is a straight-line estimate"
    )

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60


class DiscoveryContext(BaseModel):
    """What the content generator needs to propose candidate waypoints."""

    origin: str = Field(description="Pinned origin city")
    origin_country: str | None = Field(default=None, description="Origin country")
    destination: str = Field(description="Pinned destination city")
    destination_country: str | None = Field(
        default=None, description="Destination country"
    )
    waypoint_count: int = Field(ge=1, description="Exact waypoints to propose")
    alternate_count: int = Field(ge=0, description="Alternates to propose")
    travel_style: TravelStyle = Field(description="Travel style bias")
    budget: str = Field(description="Budget tier")
    nights_on_road: int = Field(description="Nights to spread across waypoints")


class CandidateProposal(BaseModel):
    """Normalized candidate set, or the reason none could be produced."""

    ok: bool = Field(description="Whether a usable proposal was produced")
    origin: CandidatePlace | None = Field(default=None, description="Origin echo")
    destination: CandidatePlace | None = Field(
        default=None, description="Destination echo"
    )
    waypoints: list[CandidatePlace] = Field(default_factory=list)
    alternates: list[CandidatePlace] = Field(default_factory=list)
    theme_insights: dict[str, Any] = Field(default_factory=dict)
    repaired: bool = Field(default=False, description="Output needed JSON repair")
    error: str | None = Field(default=None, description="Failure reason")


class RegenerationRequest(BaseModel):
    """Everything the generator needs to propose a replacement activity."""

    city: str = Field(description="City of the day")
    date: str = Field(description="ISO date of the day")
    day_of_week: str = Field(description="Weekday name")
    day_theme: str = Field(default="exploration", description="Theme of the day")
    time_window: TimeWindow = Field(description="Window the replacement must fill")
    purpose: str = Field(description="Activity purpose/type")
    energy_level: str = Field(description="Energy level to match")
    travel_style: str = Field(description="Trip travel style")
    remaining_budget: float | None = Field(default=None, description="Budget left")
    exclude_places: list[str] = Field(
        default_factory=list, description="Places that must not be proposed"
    )
    require_availability: bool = Field(
        default=True, description="Replacement must be open during the window"
    )
    budget_constraint: str | None = Field(
        default=None, description="Cost constraint such as free_or_low_cost"
    )
    near_location: Geo | None = Field(
        default=None, description="Replacement must be close to this point"
    )
    max_distance_km: float | None = Field(
        default=None, description="Radius around near_location"
    )
    reason: str = Field(default="Conflict resolution", description="Why regenerate")


class ReplacementResult(BaseModel):
    """Replacement activity, or the reason none was found."""

    ok: bool = Field(description="Whether a replacement was produced")
    activity: Activity | None = Field(default=None, description="Replacement")
    error: str | None = Field(default=None, description="Failure reason")


class PlaceLookup(BaseModel):
    """Place-validation outcome for one name."""

    ok: bool = Field(description="Whether the place was found")
    match: PlaceMatch | None = Field(default=None, description="Best match")
    error: str | None = Field(default=None, description="Failure reason")


class TravelTimeLookup(BaseModel):
    """Distance-service outcome for one origin/destination pair."""

    ok: bool = Field(description="Whether a travel time was produced")
    travel_time: TravelTime | None = Field(default=None, description="Travel time")
    error: str | None = Field(default=None, description="Failure reason")

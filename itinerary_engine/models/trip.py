"""Trip request and route skeleton models."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import Geo, Tier, TravelStyle

logger = logging.getLogger(__name__)


class TripRequest(BaseModel):
    """A loosely specified trip request. Immutable input."""

    model_config = ConfigDict(frozen=True)

    origin: str = Field(min_length=1, description="Origin city name")
    destination: str = Field(min_length=1, description="Destination city name")
    origin_country: str | None = Field(default=None, description="Origin country")
    destination_country: str | None = Field(
        default=None, description="Destination country"
    )
    stop_count: int = Field(ge=1, description="Requested number of waypoints")
    travel_style: TravelStyle = Field(
        default=TravelStyle.best_overall, description="Travel style bias"
    )
    budget: Tier = Field(default=Tier.mid, description="Budget tier")
    nights_on_road: int = Field(ge=0, description="Nights spent at waypoints")
    nights_at_destination: int = Field(
        default=1, ge=0, description="Nights spent at the final destination"
    )


class CandidatePlace(BaseModel):
    """A place proposed by the content generator. Unvalidated."""

    name: str = Field(min_length=1, description="Place name")
    country: str = Field(default="", description="Country name")
    why: str = Field(default="", description="Free-text justification")
    highlights: list[str] = Field(default_factory=list, description="Highlights")
    recommended_min_nights: int | None = Field(
        default=None, ge=0, description="Recommended minimum nights"
    )
    recommended_max_nights: int | None = Field(
        default=None, ge=0, description="Recommended maximum nights"
    )

    @model_validator(mode="after")
    def _order_night_bounds(self) -> CandidatePlace:
        low = self.recommended_min_nights
        high = self.recommended_max_nights
        if low is not None and high is not None and low > high:
            logger.warning(
                "Swapping inverted night recommendation",
                extra={"place": self.name, "min_nights": low, "max_nights": high},
            )
            self.recommended_min_nights, self.recommended_max_nights = high, low
        return self


class ValidatedPlace(CandidatePlace):
    """A candidate confirmed by the place-validation service."""

    verified: bool = Field(default=True, description="Whether validation succeeded")
    coordinates: Geo | None = Field(default=None, description="Place coordinates")
    formatted_address: str | None = Field(default=None, description="Address")
    place_id: str | None = Field(default=None, description="External place id")
    types: list[str] = Field(default_factory=list, description="Place-type tags")
    nights: int = Field(default=0, ge=0, description="Allocated nights")

    @classmethod
    def unverified(cls, candidate: CandidatePlace) -> ValidatedPlace:
        """Wrap a trip endpoint that could not be validated."""
        data = candidate.model_dump()
        data["verified"] = False
        return cls(**data)


class AllocationStatus(str, Enum):
    """Outcome of night allocation."""

    complete = "complete"
    degraded = "degraded"
    saturated = "saturated"


class NightAllocation(BaseModel):
    """Summary of how road nights were distributed."""

    status: AllocationStatus = Field(description="Allocation outcome")
    requested: int = Field(description="Nights available on the road")
    allocated: int = Field(description="Nights assigned to waypoints")
    unallocated: int = Field(
        default=0, description="Nights left over when every waypoint is saturated"
    )

    @property
    def degraded(self) -> bool:
        return self.status == AllocationStatus.degraded


class RouteMetadata(BaseModel):
    """Diagnostics about how a skeleton was produced."""

    travel_style: TravelStyle = Field(description="Style used for discovery")
    target_waypoints: int = Field(description="Waypoints requested")
    candidate_count: int = Field(default=0, description="Waypoints proposed")
    validated_count: int = Field(default=0, description="Waypoints validated")
    failure_reason: str | None = Field(
        default=None, description="Why discovery fell back to a minimal skeleton"
    )
    repaired_response: bool = Field(
        default=False, description="Whether the generator output needed JSON repair"
    )
    theme_insights: dict[str, Any] = Field(
        default_factory=dict, description="Free-form insights from the generator"
    )


class RouteSkeleton(BaseModel):
    """Validated, ordered route with night allocation."""

    origin: ValidatedPlace = Field(description="Trip origin")
    destination: ValidatedPlace = Field(description="Trip destination")
    waypoints: list[ValidatedPlace] = Field(description="Ordered waypoints")
    alternates: list[CandidatePlace] = Field(
        default_factory=list, description="Unselected alternates"
    )
    allocation: NightAllocation = Field(description="Night allocation summary")
    metadata: RouteMetadata = Field(description="Discovery diagnostics")

    @property
    def total_waypoint_nights(self) -> int:
        return sum(w.nights for w in self.waypoints)

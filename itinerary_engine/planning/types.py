"""Types for planning module."""

from pydantic import BaseModel, Field

from itinerary_engine.models import Activity, ValidatedPlace


class ScoredWaypoint(BaseModel):
    """A validated waypoint with its selection score."""

    waypoint: ValidatedPlace = Field(description="The waypoint")
    score: float = Field(description="Computed selection score")
    feature_vector: dict[str, float] = Field(description="Score components")


class TravelMatrix(BaseModel):
    """Symmetric walking matrix between a day's activities."""

    minutes: list[list[int]] = Field(
        description="Walking minutes rounded up, [i][j] == [j][i]"
    )
    meters: list[list[float]] = Field(description="Walking distance in meters")
    estimated_pairs: int = Field(
        default=0, description="Pairs that fell back to a straight-line estimate"
    )


class RouteStats(BaseModel):
    """Walking cost of visiting activities in a given order."""

    order: list[int] = Field(description="Activity indices in visiting order")
    legs: list[int] = Field(description="Walking minutes for each leg")
    total_minutes: int = Field(description="Total walking minutes")
    total_km: float = Field(description="Total walking distance in km")


class OptimizationResult(BaseModel):
    """Outcome of local route optimization for one day."""

    optimized: bool = Field(description="Whether a reorder was applied")
    activities: list[Activity] = Field(description="Resulting activities")
    improvement_minutes: int = Field(default=0, description="Walking minutes saved")
    before: RouteStats | None = Field(default=None, description="Stats in time order")
    after: RouteStats | None = Field(default=None, description="Stats after reorder")
    reason: str | None = Field(default=None, description="Why no reorder was applied")

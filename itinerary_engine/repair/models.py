"""Repair models: bounded, explainable conflict resolutions."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from itinerary_engine.models import Activity, ConflictType, TravelStyle


class ResolutionType(str, Enum):
    """Kinds of resolution outcomes."""

    activity_regenerated = "activity_regenerated"
    timeline_adjusted = "timeline_adjusted"
    regeneration_failed = "regeneration_failed"
    adjustment_failed = "adjustment_failed"
    logged_warnings = "logged_warnings"


class Resolution(BaseModel):
    """What the resolver did about one conflict (or the batch of low ones)."""

    type: ResolutionType = Field(description="Outcome kind")
    success: bool = Field(description="Whether the conflict was addressed")
    conflict_type: ConflictType | None = Field(
        default=None, description="Conflict addressed; None for logged warnings"
    )
    activity_index: int | None = Field(default=None, description="Slot changed")
    original_activity: str | None = Field(default=None, description="Replaced activity")
    new_activity: str | None = Field(default=None, description="Replacement activity")
    reason: str | None = Field(default=None, description="Explanation")
    adjustment_minutes: int | None = Field(
        default=None, description="Minutes the activity was shifted"
    )
    attempts: int = Field(default=0, description="Regeneration attempts used")
    count: int | None = Field(default=None, description="Warnings logged")


class ResolutionContext(BaseModel):
    """Trip-level context carried into regeneration requests."""

    travel_style: TravelStyle = Field(
        default=TravelStyle.best_overall, description="Trip travel style"
    )
    day_theme: str = Field(default="exploration", description="Theme of the day")


class ResolutionResult(BaseModel):
    """Result of running the resolver once over a day."""

    resolved: bool = Field(description="True only when no resolution failed")
    activities: list[Activity] = Field(description="Activities after resolution")
    resolutions: list[Resolution] = Field(description="Resolutions in order applied")

    @property
    def successful(self) -> int:
        return sum(1 for r in self.resolutions if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.resolutions if not r.success)

    @property
    def status(self) -> str:
        return "fully_resolved" if self.resolved else "partially_resolved"

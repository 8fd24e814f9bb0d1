"""Construction of replacement requests for the content generator."""

from itinerary_engine.models import Activity, DayItinerary, Geo, RegenerationRequest

from .models import ResolutionContext


def build_regeneration_request(
    activity: Activity,
    day: DayItinerary,
    context: ResolutionContext,
    *,
    exclude_places: list[str],
    reason: str,
    remaining_budget: float | None = None,
    require_availability: bool = True,
    budget_constraint: str | None = None,
    near_location: Geo | None = None,
    max_distance_km: float | None = None,
) -> RegenerationRequest:
    """Request a replacement that fills ``activity``'s window on ``day``."""
    return RegenerationRequest(
        city=day.city,
        date=day.date.isoformat(),
        day_of_week=day.day_of_week,
        day_theme=context.day_theme,
        time_window=activity.time,
        purpose=activity.type or "general",
        energy_level=activity.energy_level or "moderate",
        travel_style=context.travel_style.value,
        remaining_budget=remaining_budget,
        exclude_places=list(exclude_places),
        require_availability=require_availability,
        budget_constraint=budget_constraint,
        near_location=near_location,
        max_distance_km=max_distance_km if near_location is not None else None,
        reason=reason,
    )

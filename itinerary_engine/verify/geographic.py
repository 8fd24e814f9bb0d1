"""Walking feasibility between consecutive activities."""

import logging
import math
from collections.abc import Sequence

from itinerary_engine.adapters.protocols import DistanceService
from itinerary_engine.models import Activity, Conflict, ConflictType, Severity, TransitMode
from itinerary_engine.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


def check_geography(
    activities: Sequence[Activity],
    distance_service: DistanceService,
    unrealistic_walk_min: int = 30,
    limiter: RateLimiter | None = None,
) -> list[Conflict]:
    """Flag walks that are too long or do not fit between activities.

    Pairs where either activity lacks coordinates, or where the distance
    lookup fails, are skipped. An unrealistic walk is reported instead of,
    not in addition to, a travel-time shortfall.

    Args:
        activities: Activities in scheduled order
        distance_service: Walking travel-time provider
        unrealistic_walk_min: Walk length considered unrealistic
        limiter: Optional limiter pacing distance lookups

    Returns:
        Conflicts in activity order
    """
    conflicts: list[Conflict] = []

    for i, (current, following) in enumerate(zip(activities, activities[1:])):
        origin, destination = current.coordinates, following.coordinates
        if origin is None or destination is None:
            continue

        if limiter is not None:
            limiter.acquire()
        lookup = distance_service.travel_time(origin, destination, TransitMode.walking)
        if not lookup.ok or lookup.travel_time is None:
            logger.warning(
                "Skipping pair without travel time",
                extra={"from": current.name, "to": following.name, "error": lookup.error},
            )
            continue

        required = math.ceil(lookup.travel_time.duration_seconds / 60)
        available = following.time.start_minutes - current.time.end_minutes
        details = {
            "from": {"name": current.name, "location": origin.model_dump()},
            "to": {"name": following.name, "location": destination.model_dump()},
            "required_time": required,
            "available_time": available,
        }

        if required > unrealistic_walk_min:
            conflicts.append(
                Conflict(
                    type=ConflictType.unrealistic_walk,
                    severity=Severity.high,
                    activities=[i, i + 1],
                    message=(
                        f"{required}min walk between activities "
                        f"(threshold: {unrealistic_walk_min}min)"
                    ),
                    details={
                        **details,
                        "distance_km": round(lookup.travel_time.distance_meters / 1000, 1),
                    },
                )
            )
        elif required > available:
            conflicts.append(
                Conflict(
                    type=ConflictType.insufficient_travel_time,
                    severity=Severity.critical,
                    activities=[i, i + 1],
                    message=f"Need {required}min to travel, only {available}min available",
                    details={**details, "shortfall": required - available},
                )
            )

    return conflicts

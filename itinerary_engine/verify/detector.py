"""Day-plan conflict detection across all checks."""

import logging
from collections import Counter

from itinerary_engine.adapters.protocols import DistanceService
from itinerary_engine.config import Settings, get_settings
from itinerary_engine.metrics.registry import MetricsClient
from itinerary_engine.models import Conflict, DayItinerary
from itinerary_engine.rate_limit import RateLimiter

from .availability import check_availability
from .budget import check_budget
from .geographic import check_geography
from .timeline import check_timeline

logger = logging.getLogger(__name__)


def detect_conflicts(
    day: DayItinerary,
    distance_service: DistanceService,
    budget_ceiling: float | None = None,
    settings: Settings | None = None,
    limiter: RateLimiter | None = None,
    metrics: MetricsClient | None = None,
) -> list[Conflict]:
    """Run timeline, availability, geographic and budget checks.

    The budget check runs only when a ceiling is given. Output order is
    deterministic: by check, then by activity.

    Args:
        day: Day itinerary with activities in scheduled order
        distance_service: Walking travel-time provider
        budget_ceiling: Optional budget for the day's activities
        settings: Engine settings
        limiter: Optional limiter pacing distance lookups
        metrics: Optional metrics client

    Returns:
        List of conflicts (empty when the day is clean)
    """
    settings = settings or get_settings()
    activities = day.activities
    if not activities:
        return []

    conflicts = [
        *check_timeline(activities, settings.buffer_min),
        *check_availability(activities, day.date),
        *check_geography(
            activities, distance_service, settings.unrealistic_walk_min, limiter
        ),
    ]
    if budget_ceiling is not None:
        conflicts.extend(
            check_budget(activities, budget_ceiling, settings.budget_warning_ratio, metrics)
        )

    by_type = Counter(c.type.value for c in conflicts)
    if metrics:
        for conflict in conflicts:
            metrics.inc_conflict(conflict.type.value)

    logger.info(
        "Conflict detection complete",
        extra={
            "day": day.day,
            "city": day.city,
            "total": len(conflicts),
            "by_type": dict(by_type),
        },
    )
    return conflicts

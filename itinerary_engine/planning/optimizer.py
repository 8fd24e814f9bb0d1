"""Local route optimization within a day.

Activities close together in time form buckets. Within each bucket the
visiting order is re-chosen by greedy nearest neighbour over walking time;
buckets themselves never move. A reorder is applied only when it saves at
least ``reorder_threshold_min`` walking minutes. A reordered bucket is laid
out again from its first start time with every activity keeping its own
duration, so the day stays in chronological order.
"""

import logging
import math
from collections.abc import Sequence

from itinerary_engine.adapters.protocols import DistanceService
from itinerary_engine.config import Settings, get_settings
from itinerary_engine.metrics.registry import MetricsClient
from itinerary_engine.models import Activity, DayItinerary, TimeWindow
from itinerary_engine.models.common import from_minutes
from itinerary_engine.rate_limit import RateLimiter

from .matrix import build_travel_matrix
from .types import OptimizationResult, RouteStats, TravelMatrix

logger = logging.getLogger(__name__)


def sort_by_start(activities: Sequence[Activity]) -> list[Activity]:
    """Stable sort by start time."""
    return sorted(activities, key=lambda a: a.time.start_minutes)


def create_time_buckets(
    activities: Sequence[Activity], max_gap_min: int = 30
) -> list[list[int]]:
    """
    Group time-sorted activities into reorderable buckets.

    An activity joins the current bucket when it starts no more than
    ``max_gap_min`` minutes after the bucket's last activity ends.

    Args:
        activities: Activities sorted by start time
        max_gap_min: Largest gap that keeps activities in one bucket

    Returns:
        Buckets of indices into ``activities``, in order
    """
    buckets: list[list[int]] = []
    for i, activity in enumerate(activities):
        if buckets:
            last = activities[buckets[-1][-1]]
            if activity.time.start_minutes - last.time.end_minutes <= max_gap_min:
                buckets[-1].append(i)
                continue
        buckets.append([i])
    return buckets


def nearest_neighbor_order(bucket: Sequence[int], matrix: TravelMatrix) -> list[int]:
    """Greedy nearest-neighbour order from the bucket's first member. Ties keep bucket order."""
    if len(bucket) <= 1:
        return list(bucket)

    remaining = list(bucket[1:])
    order = [bucket[0]]
    while remaining:
        current = order[-1]
        nearest = min(remaining, key=lambda c: matrix.minutes[current][c])
        remaining.remove(nearest)
        order.append(nearest)
    return order


def route_stats(order: Sequence[int], matrix: TravelMatrix) -> RouteStats:
    """Walking minutes and distance of visiting activities in ``order``."""
    legs = [matrix.minutes[a][b] for a, b in zip(order, order[1:])]
    meters = sum(matrix.meters[a][b] for a, b in zip(order, order[1:]))
    return RouteStats(
        order=list(order),
        legs=legs,
        total_minutes=sum(legs),
        total_km=round(meters / 1000, 1),
    )


def apply_order(
    activities: Sequence[Activity],
    buckets: Sequence[Sequence[int]],
    orders: Sequence[Sequence[int]],
) -> list[Activity]:
    """Reorder each bucket, laying it out again from its first start time.

    Every activity keeps its own duration and the bucket keeps its sequence of
    gaps, so the bucket still starts and ends at the same times.
    """
    result: list[Activity] = []
    for bucket, order in zip(buckets, orders):
        gaps = [
            activities[b].time.start_minutes - activities[a].time.end_minutes
            for a, b in zip(bucket, bucket[1:])
        ]
        cursor = activities[bucket[0]].time.start_minutes
        for position, i in enumerate(order):
            activity = activities[i]
            duration = activity.time.duration_minutes
            if activity.time.start_minutes != cursor:
                window = TimeWindow(
                    start=from_minutes(cursor), end=from_minutes(cursor + duration)
                )
                activity = activity.model_copy(update={"time": window})
            result.append(activity)
            if position < len(gaps):
                cursor += duration + gaps[position]
    return result


def _unchanged(
    day: DayItinerary, reason: str, **stats: RouteStats | None
) -> OptimizationResult:
    logger.info("Route left unchanged", extra={"day": day.day, "reason": reason})
    return OptimizationResult(
        optimized=False, activities=list(day.activities), reason=reason, **stats
    )


def optimize_day(
    day: DayItinerary,
    distance_service: DistanceService,
    settings: Settings | None = None,
    limiter: RateLimiter | None = None,
    metrics: MetricsClient | None = None,
) -> OptimizationResult:
    """
    Reorder a day's activities to reduce walking.

    Args:
        day: Day itinerary
        distance_service: Walking travel-time provider
        settings: Engine settings
        limiter: Optional limiter pacing distance lookups
        metrics: Optional metrics client

    Returns:
        OptimizationResult; ``optimized`` is False (with a reason) when there is
        nothing to do or the saving is below threshold
    """
    settings = settings or get_settings()

    if len(day.activities) < 2:
        return _unchanged(day, "insufficient_activities")
    if any(a.coordinates is None for a in day.activities):
        return _unchanged(day, "missing_coordinates")

    ordered = sort_by_start(day.activities)
    matrix = build_travel_matrix(
        [a.coordinates for a in ordered], distance_service, settings, limiter
    )

    buckets = create_time_buckets(ordered, settings.bucket_gap_min)
    orders = [nearest_neighbor_order(bucket, matrix) for bucket in buckets]
    new_order = [i for order in orders for i in order]

    before = route_stats(range(len(ordered)), matrix)
    after = route_stats(new_order, matrix)
    saved = before.total_minutes - after.total_minutes

    applied = saved >= settings.reorder_threshold_min
    if metrics:
        metrics.observe_optimization(applied, saved)

    if not applied:
        logger.info(
            "Reorder below threshold",
            extra={
                "day": day.day,
                "saved_minutes": saved,
                "threshold": settings.reorder_threshold_min,
            },
        )
        return _unchanged(day, "improvement_below_threshold", before=before, after=after)

    logger.info(
        "Reorder applied",
        extra={
            "day": day.day,
            "city": day.city,
            "before_minutes": before.total_minutes,
            "after_minutes": after.total_minutes,
            "reduction_pct": math.floor(saved / before.total_minutes * 100)
            if before.total_minutes
            else 0,
        },
    )
    return OptimizationResult(
        optimized=True,
        activities=apply_order(ordered, buckets, orders),
        improvement_minutes=saved,
        before=before,
        after=after,
    )

"""Walking travel matrix construction."""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from itertools import combinations

from itinerary_engine.adapters.protocols import DistanceService
from itinerary_engine.config import Settings, get_settings
from itinerary_engine.models import Geo, TransitMode, TravelTime
from itinerary_engine.rate_limit import RateLimiter
from itinerary_engine.utils.geo import estimate_walk

from .types import TravelMatrix

logger = logging.getLogger(__name__)


def lookup_walk(
    origin: Geo,
    destination: Geo,
    distance_service: DistanceService,
    walking_speed_kmh: float,
    limiter: RateLimiter | None = None,
) -> TravelTime:
    """Walking travel time, falling back to a straight-line estimate."""
    if limiter is not None:
        limiter.acquire()
    lookup = distance_service.travel_time(origin, destination, TransitMode.walking)
    if lookup.ok and lookup.travel_time is not None:
        return lookup.travel_time

    logger.info(
        "Distance lookup failed; using straight-line estimate",
        extra={"error": lookup.error},
    )
    return estimate_walk(origin, destination, walking_speed_kmh)


def build_travel_matrix(
    points: list[Geo],
    distance_service: DistanceService,
    settings: Settings | None = None,
    limiter: RateLimiter | None = None,
) -> TravelMatrix:
    """
    Build a symmetric walking matrix.

    Each unordered pair is looked up once. Lookups run on a thread pool capped
    by ``distance_max_concurrency`` and are paced by ``limiter`` when given.
    """
    settings = settings or get_settings()
    n = len(points)
    minutes = [[0] * n for _ in range(n)]
    meters = [[0.0] * n for _ in range(n)]
    pairs = list(combinations(range(n), 2))
    if not pairs:
        return TravelMatrix(minutes=minutes, meters=meters)

    def _lookup(pair: tuple[int, int]) -> TravelTime:
        i, j = pair
        return lookup_walk(
            points[i], points[j], distance_service, settings.walking_speed_kmh, limiter
        )

    workers = min(settings.distance_max_concurrency, len(pairs))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(_lookup, pairs))

    estimated = 0
    for (i, j), travel in zip(pairs, results):
        leg_minutes = math.ceil(travel.duration_seconds / 60)
        minutes[i][j] = minutes[j][i] = leg_minutes
        meters[i][j] = meters[j][i] = travel.distance_meters
        if travel.estimated:
            estimated += 1

    logger.info(
        "Travel matrix built",
        extra={"points": n, "lookups": len(pairs), "estimated_pairs": estimated},
    )
    return TravelMatrix(minutes=minutes, meters=meters, estimated_pairs=estimated)

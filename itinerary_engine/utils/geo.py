"""Great-circle distance helpers."""

import math

from itinerary_engine.models.common import Geo
from itinerary_engine.models.tool_results import TravelTime

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres between two points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a: Geo, b: Geo) -> float:
    """Great-circle distance in kilometres between two coordinates."""
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def estimate_walk(a: Geo, b: Geo, speed_kmh: float = 5.0) -> TravelTime:
    """Straight-line walking estimate used when the distance service fails."""
    km = distance_km(a, b)
    return TravelTime(
        distance_meters=km * 1000,
        duration_seconds=km / speed_kmh * 3600,
        estimated=True,
    )

"""Normalization of generator payloads into engine models.

This is the ONLY place where raw generator dictionaries become
``CandidatePlace`` and ``Activity`` objects. Generators name the same field
several ways (``city``/``name``, ``why``/``justification``/``description``,
``highlights``/``activities``, nights in camel or snake case); everything
downstream sees one shape. All functions are pure.
"""

import logging
from typing import Any

from pydantic import ValidationError

from itinerary_engine.models import (
    Activity,
    CandidatePlace,
    CandidateProposal,
    Geo,
    OpeningPeriod,
    PeriodPoint,
    PlaceDetails,
    TimeWindow,
    ValidationStatus,
)

logger = logging.getLogger(__name__)

NAME_KEYS = ("city", "name", "place", "title")
WHY_KEYS = ("why", "justification", "description", "reason")
HIGHLIGHT_KEYS = ("highlights", "activities", "attractions")
MIN_NIGHT_KEYS = (
    "recommended_min_nights",
    "recommendedMinNights",
    "min_nights",
    "minNights",
    "nights_min",
)
MAX_NIGHT_KEYS = (
    "recommended_max_nights",
    "recommendedMaxNights",
    "max_nights",
    "maxNights",
    "nights_max",
)
WAYPOINT_KEYS = ("waypoints", "stops", "cities")
ALTERNATE_KEYS = ("alternates", "alternatives", "backups")
INSIGHT_KEYS = ("theme_insights", "themeInsights", "insights")

ACTIVITY_TYPE_KEYS = ("type", "purpose", "category")
ADMISSION_KEYS = ("admission", "price", "cost", "entry_fee", "entryFee")


def _first(raw: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, "", []):
            return value
    return None


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(str(value).strip()))
    except ValueError:
        logger.debug("Ignoring non-numeric nights value", extra={"value": value})
        return None


def _as_text_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        return []
    items: list[str] = []
    for item in value:
        if isinstance(item, str) and item.strip():
            items.append(item.strip())
        elif isinstance(item, dict):
            name = _first(item, NAME_KEYS)
            if isinstance(name, str) and name.strip():
                items.append(name.strip())
    return items


def normalize_candidate(raw: Any) -> CandidatePlace | None:
    """Convert one generator place entry into a CandidatePlace.

    Returns:
        CandidatePlace, or None when the entry has no usable name.
    """
    if isinstance(raw, str):
        raw = {"name": raw}
    if not isinstance(raw, dict):
        return None

    name = _first(raw, NAME_KEYS)
    if not isinstance(name, str) or not name.strip():
        logger.warning("Dropping candidate without a name", extra={"keys": sorted(raw)})
        return None

    why = _first(raw, WHY_KEYS)
    min_nights = _as_int(_first(raw, MIN_NIGHT_KEYS))
    max_nights = _as_int(_first(raw, MAX_NIGHT_KEYS))
    if min_nights is not None and min_nights < 0:
        min_nights = None
    if max_nights is not None and max_nights < 0:
        max_nights = None

    return CandidatePlace(
        name=name.strip(),
        country=str(raw.get("country") or ""),
        why=why if isinstance(why, str) else "",
        highlights=_as_text_list(_first(raw, HIGHLIGHT_KEYS)),
        recommended_min_nights=min_nights,
        recommended_max_nights=max_nights,
    )


def _normalize_many(raw: Any) -> list[CandidatePlace]:
    if not isinstance(raw, list):
        return []
    places = []
    for entry in raw:
        place = normalize_candidate(entry)
        if place is not None:
            places.append(place)
    return places


def normalize_proposal(data: Any, repaired: bool = False) -> CandidateProposal:
    """Convert a parsed discovery response into a CandidateProposal."""
    if isinstance(data, list):
        data = {"waypoints": data}
    if not isinstance(data, dict):
        return CandidateProposal(
            ok=False, error=f"Unexpected response type: {type(data).__name__}"
        )

    insights = _first(data, INSIGHT_KEYS)
    return CandidateProposal(
        ok=True,
        origin=normalize_candidate(data.get("origin")),
        destination=normalize_candidate(data.get("destination")),
        waypoints=_normalize_many(_first(data, WAYPOINT_KEYS)),
        alternates=_normalize_many(_first(data, ALTERNATE_KEYS)),
        theme_insights=insights if isinstance(insights, dict) else {},
        repaired=repaired,
    )


def _normalize_geo(raw: dict[str, Any]) -> Geo | None:
    source = _first(raw, ("coordinates", "location", "geometry"))
    if isinstance(source, dict) and "location" in source:
        source = source["location"]
    if not isinstance(source, dict):
        source = raw
    lat = source.get("lat", source.get("latitude"))
    lng = source.get("lng", source.get("lon", source.get("longitude")))
    if lat is None or lng is None:
        return None
    try:
        return Geo(lat=float(lat), lng=float(lng))
    except (TypeError, ValueError, ValidationError):
        logger.warning("Ignoring invalid coordinates", extra={"lat": lat, "lng": lng})
        return None


def _normalize_point(raw: Any) -> PeriodPoint | None:
    if not isinstance(raw, dict):
        return None
    day = _as_int(raw.get("day"))
    time_text = str(raw.get("time", "")).replace(":", "").strip()
    if day is None or not (0 <= day <= 6) or len(time_text) != 4 or not time_text.isdigit():
        return None
    try:
        return PeriodPoint(day=day, time=time_text)
    except ValidationError:
        return None


def normalize_periods(raw: Any) -> list[OpeningPeriod] | None:
    """Convert place-service opening hours into OpeningPeriod objects.

    Returns None when no hours are known, which is distinct from an empty list.
    """
    if isinstance(raw, dict):
        raw = raw.get("periods")
    if not isinstance(raw, list):
        return None

    periods = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        opening = _normalize_point(entry.get("open"))
        if opening is None:
            continue
        periods.append(OpeningPeriod(open=opening, close=_normalize_point(entry.get("close"))))
    return periods


def normalize_activity(raw: Any, window: TimeWindow) -> Activity | None:
    """Convert a generator activity payload into an Activity filling ``window``.

    Replacement payloads often nest the activity under an ``activity`` key.
    Generator-supplied place data is unconfirmed, so the result is always
    fallback until a place validator has checked it.
    """
    if isinstance(raw, dict) and isinstance(raw.get("activity"), dict):
        raw = raw["activity"]
    if not isinstance(raw, dict):
        return None

    name = _first(raw, NAME_KEYS)
    if not isinstance(name, str) or not name.strip():
        return None

    place_raw = raw.get("place") if isinstance(raw.get("place"), dict) else raw
    coordinates = _normalize_geo(place_raw)
    periods = normalize_periods(
        _first(place_raw, ("opening_periods", "opening_hours", "openingHours"))
    )
    place = None
    if coordinates is not None or periods is not None:
        place = PlaceDetails(
            place_id=place_raw.get("place_id") or place_raw.get("placeId"),
            coordinates=coordinates,
            formatted_address=place_raw.get("formatted_address") or place_raw.get("address"),
            opening_periods=periods,
        )

    admission = _first(raw, ADMISSION_KEYS)
    return Activity(
        name=name.strip(),
        type=str(_first(raw, ACTIVITY_TYPE_KEYS) or "general"),
        time=window,
        energy_level=str(raw.get("energy_level") or raw.get("energyLevel") or "moderate"),
        place=place,
        admission=str(admission) if admission is not None else None,
        validation_status=ValidationStatus.fallback,
    )

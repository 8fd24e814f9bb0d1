"""Place validation adapter using the Google Places Text Search and Details APIs."""

import logging
from typing import Any

import httpx

from itinerary_engine.adapters.exceptions import CollaboratorResponseError
from itinerary_engine.adapters.http import get_json
from itinerary_engine.adapters.normalize import normalize_periods
from itinerary_engine.config import Settings, get_settings, require_api_key
from itinerary_engine.exec import ToolExecutor
from itinerary_engine.models import Geo, OpeningPeriod, PlaceLookup, PlaceMatch

logger = logging.getLogger(__name__)

_NO_MATCH_STATUSES = {"ZERO_RESULTS", "NOT_FOUND"}


class GooglePlacesValidator:
    """PlaceValidator implementation. Lookups are cached by the executor."""

    def __init__(
        self,
        settings: Settings | None = None,
        executor: ToolExecutor | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.executor = executor or ToolExecutor(settings=self.settings)
        self._http = http_client or httpx.Client(timeout=self.settings.lookup_timeout_s)

    def _text_search(self, args: dict[str, Any]) -> dict[str, Any]:
        data = get_json(
            self._http,
            f"{self.settings.places_base_url.rstrip('/')}/textsearch/json",
            {
                "query": args["query"],
                "key": require_api_key(
                    self.settings.google_places_api_key, "GOOGLE_PLACES_API_KEY"
                ),
            },
        )
        status = data.get("status", "OK")
        if status != "OK" and status not in _NO_MATCH_STATUSES:
            raise CollaboratorResponseError(
                f"Places search failed: {status} {data.get('error_message', '')}".strip()
            )
        return data

    def _place_details(self, args: dict[str, Any]) -> dict[str, Any]:
        data = get_json(
            self._http,
            f"{self.settings.places_base_url.rstrip('/')}/details/json",
            {
                "place_id": args["place_id"],
                "fields": "opening_hours",
                "key": require_api_key(
                    self.settings.google_places_api_key, "GOOGLE_PLACES_API_KEY"
                ),
            },
        )
        status = data.get("status", "OK")
        if status != "OK":
            raise CollaboratorResponseError(
                f"Place details failed: {status} {data.get('error_message', '')}".strip()
            )
        return data

    def validate(
        self, name: str, country: str | None = None, with_hours: bool = False
    ) -> PlaceLookup:
        """Look up ``name`` (optionally qualified by country).

        Text search does not return opening periods, so ``with_hours`` costs a
        second details lookup. A failed details lookup keeps the match with
        unknown hours.
        """
        query = f"{name}, {country}" if country else name
        response = self.executor.execute(
            "places.validate",
            self._text_search,
            {"query": query},
            timeout_s=self.settings.lookup_timeout_s,
            cacheable=True,
        )
        if not response.ok or response.data is None:
            return PlaceLookup(ok=False, error=response.error or "lookup_failed")

        lookup = _parse_text_search(response.data, query)
        if with_hours and lookup.match is not None and lookup.match.place_id:
            lookup.match.opening_periods = self._opening_periods(lookup.match.place_id)
        return lookup

    def _opening_periods(self, place_id: str) -> list[OpeningPeriod] | None:
        response = self.executor.execute(
            "places.details",
            self._place_details,
            {"place_id": place_id},
            timeout_s=self.settings.lookup_timeout_s,
            cacheable=True,
        )
        if not response.ok or response.data is None:
            logger.warning(
                "Opening hours unavailable",
                extra={"place_id": place_id, "error": response.error},
            )
            return None
        return normalize_periods((response.data.get("result") or {}).get("opening_hours"))


def _parse_text_search(data: dict[str, Any], query: str) -> PlaceLookup:
    results = data.get("results") or []
    if not results:
        logger.info("No place found", extra={"query": query})
        return PlaceLookup(ok=False, error="not_found")

    best = results[0]
    location = (best.get("geometry") or {}).get("location") or {}
    if "lat" not in location or "lng" not in location:
        return PlaceLookup(ok=False, error="match_without_coordinates")

    return PlaceLookup(
        ok=True,
        match=PlaceMatch(
            coordinates=Geo(lat=location["lat"], lng=location["lng"]),
            formatted_address=best.get("formatted_address", ""),
            place_id=best.get("place_id", ""),
            types=best.get("types") or [],
        ),
    )

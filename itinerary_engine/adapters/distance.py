"""Travel-time adapter using the Google Distance Matrix API."""

from typing import Any

import httpx

from itinerary_engine.adapters.exceptions import CollaboratorResponseError
from itinerary_engine.adapters.http import get_json
from itinerary_engine.config import Settings, get_settings, require_api_key
from itinerary_engine.exec import ToolExecutor
from itinerary_engine.models import Geo, TransitMode, TravelTime, TravelTimeLookup


def _latlng(point: Geo) -> str:
    return f"{point.lat},{point.lng}"


class GoogleDistanceService:
    """DistanceService implementation for single origin/destination pairs."""

    def __init__(
        self,
        settings: Settings | None = None,
        executor: ToolExecutor | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.executor = executor or ToolExecutor(settings=self.settings)
        self._http = http_client or httpx.Client(timeout=self.settings.lookup_timeout_s)

    def _matrix(self, args: dict[str, Any]) -> dict[str, Any]:
        data = get_json(
            self._http,
            f"{self.settings.distance_base_url.rstrip('/')}/json",
            {
                "origins": args["origins"],
                "destinations": args["destinations"],
                "mode": args["mode"],
                "key": require_api_key(
                    self.settings.google_places_api_key, "GOOGLE_PLACES_API_KEY"
                ),
            },
        )
        if data.get("status", "OK") != "OK":
            raise CollaboratorResponseError(f"Distance lookup failed: {data.get('status')}")

        try:
            element = data["rows"][0]["elements"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise CollaboratorResponseError("Distance response has no elements") from e
        if element.get("status") != "OK":
            raise CollaboratorResponseError(f"No route: {element.get('status')}")

        return {
            "distance_meters": element["distance"]["value"],
            "duration_seconds": element["duration"]["value"],
        }

    def travel_time(
        self,
        origin: Geo,
        destination: Geo,
        mode: TransitMode = TransitMode.walking,
    ) -> TravelTimeLookup:
        """Travel time between two points for the given mode."""
        response = self.executor.execute(
            "distance.travel_time",
            self._matrix,
            {
                "origins": _latlng(origin),
                "destinations": _latlng(destination),
                "mode": mode.value,
            },
            timeout_s=self.settings.lookup_timeout_s,
            cacheable=True,
        )
        if not response.ok or response.data is None:
            return TravelTimeLookup(ok=False, error=response.error or "lookup_failed")

        return TravelTimeLookup(ok=True, travel_time=TravelTime(**response.data))

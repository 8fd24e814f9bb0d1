"""Health check endpoint for collaborator configuration status."""

from typing import Literal

from pydantic import BaseModel

from itinerary_engine.config import MissingAPIKeyError, get_settings, require_api_key


class HealthStatus(BaseModel):
    """Health check response."""

    status: Literal["ok", "degraded"]
    checks: dict[str, Literal["ok", "down"]]


def get_health() -> HealthStatus:
    """
    Check that live collaborators can be reached with configured credentials.

    Checks:
    - content: OpenAI API key is set
    - places: Google Maps Platform key is set (places and distance lookups)

    Returns:
        HealthStatus with overall status and individual check results
    """
    settings = get_settings()
    keys = {
        "content": (settings.openai_api_key, "OPENAI_API_KEY"),
        "places": (settings.google_places_api_key, "GOOGLE_PLACES_API_KEY"),
    }

    checks: dict[str, Literal["ok", "down"]] = {}
    for check, (value, env_var) in keys.items():
        try:
            require_api_key(value, env_var)
            checks[check] = "ok"
        except MissingAPIKeyError:
            checks[check] = "down"

    # The engine itself serves without collaborators; missing keys only degrade it
    overall_status: Literal["ok", "degraded"] = (
        "ok" if all(status == "ok" for status in checks.values()) else "degraded"
    )

    return HealthStatus(status=overall_status, checks=checks)

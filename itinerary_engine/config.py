"""Engine configuration and settings."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_BASE_DIR = Path(__file__).resolve().parents[1]
_ENV_FILE = _BASE_DIR / ".env"


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE, env_file_encoding="utf-8", extra="ignore"
    )

    # External APIs
    openai_api_key: str = Field(
        default="dummy-openai-api-key-for-tests",
        description="OpenAI API key for candidate and replacement generation",
    )
    openai_model: str = Field(
        default="gpt-4o-mini", description="OpenAI model for content generation"
    )
    google_places_api_key: str = Field(
        default="dummy-google-api-key-for-tests",
        description="Google Maps Platform key for places and distance lookups",
    )
    places_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/place",
        description="Base URL of the Places API",
    )
    distance_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/distancematrix",
        description="Base URL of the Distance Matrix API",
    )

    ui_origin: str = Field(
        default="http://localhost:8501", description="Allowed CORS origin"
    )

    # Timeouts (seconds)
    generation_timeout_s: float = Field(
        default=30.0, description="Timeout for generative content calls"
    )
    lookup_timeout_s: float = Field(
        default=10.0, description="Timeout for validation and distance lookups"
    )

    # Retry Configuration
    retry_jitter_min_ms: int = Field(
        default=200, description="Minimum retry jitter in milliseconds"
    )
    retry_jitter_max_ms: int = Field(
        default=500, description="Maximum retry jitter in milliseconds"
    )

    # Circuit Breaker
    breaker_failure_threshold: int = Field(
        default=5, description="Failures before circuit breaker opens"
    )
    breaker_timeout_s: int = Field(
        default=60, description="Circuit breaker failure window in seconds"
    )
    cache_ttl_s: int = Field(
        default=3600, description="TTL for cached lookup results in seconds"
    )

    # Waypoint selection
    nights_per_stop: int = Field(default=2, description="Nights budgeted per waypoint")
    max_waypoints: int = Field(default=10, description="Upper bound on waypoints")
    alternate_count: int = Field(
        default=3, description="Alternates requested alongside waypoints"
    )
    default_min_nights: int = Field(
        default=1, description="Minimum nights when none is recommended"
    )
    default_max_nights: int = Field(
        default=5, description="Maximum nights when none is recommended"
    )

    # Local route optimization
    bucket_gap_min: int = Field(
        default=30, description="Max gap in minutes for activities to share a bucket"
    )
    reorder_threshold_min: int = Field(
        default=10, description="Minimum walking minutes saved to apply a reorder"
    )
    walking_speed_kmh: float = Field(
        default=5.0, description="Walking speed used for straight-line estimates"
    )
    distance_max_concurrency: int = Field(
        default=4, description="Concurrent distance lookups while building a matrix"
    )
    distance_rate_per_s: float = Field(
        default=10.0, description="Sustained distance lookups per second"
    )
    distance_burst: int = Field(
        default=10, description="Distance lookups allowed in a burst"
    )

    # Conflict detection
    buffer_min: int = Field(
        default=10, description="Recommended buffer between activities in minutes"
    )
    unrealistic_walk_min: int = Field(
        default=30, description="Walking time considered unrealistic in minutes"
    )
    budget_warning_ratio: float = Field(
        default=0.8, description="Share of the budget that triggers a warning"
    )

    # Conflict resolution
    adjustment_buffer_min: int = Field(
        default=15, description="Buffer enforced when shifting activities"
    )
    max_regeneration_attempts: int = Field(
        default=2, description="Replacement attempts per conflict"
    )
    regeneration_radius_km: float = Field(
        default=2.0, description="Search radius for proximity replacements"
    )
    max_repair_rounds: int = Field(
        default=2, description="Detect/resolve rounds per day"
    )
    max_day_workers: int = Field(
        default=4, description="Days of a trip processed concurrently"
    )

    @field_validator(
        "distance_max_concurrency", "max_regeneration_attempts", "max_day_workers"
    )
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        """Concurrency and attempt caps must allow at least one call."""
        return max(1, value)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get engine settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


class MissingAPIKeyError(RuntimeError):
    """Raised when a collaborator API key is not configured."""


def require_api_key(value: str, env_var: str) -> str:
    """Return a configured API key or raise a helpful error."""
    api_key = (value or "").strip()
    if not api_key or api_key.startswith("dummy-"):
        raise MissingAPIKeyError(
            f"{env_var} is not configured. "
            f"Set {env_var} in your environment (.env) before calling live collaborators."
        )
    return api_key

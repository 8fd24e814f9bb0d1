"""FastAPI dependencies providing engine collaborators.

Each provider returns a process-wide instance; tests replace them through
``app.dependency_overrides``.
"""

from itinerary_engine.adapters import (
    ContentGenerator,
    DistanceService,
    GoogleDistanceService,
    GooglePlacesValidator,
    OpenAIContentGenerator,
    PlaceValidator,
)
from itinerary_engine.config import Settings, get_settings
from itinerary_engine.exec import InMemoryCache, ToolExecutor
from itinerary_engine.metrics import MetricsClient
from itinerary_engine.rate_limit import RateLimiter, TokenBucketLimiter

_metrics: MetricsClient | None = None
_executor: ToolExecutor | None = None
_generator: ContentGenerator | None = None
_validator: PlaceValidator | None = None
_distance_service: DistanceService | None = None
_limiter: RateLimiter | None = None


def get_engine_settings() -> Settings:
    """Get engine settings for request handlers."""
    return get_settings()


def get_metrics() -> MetricsClient:
    """Get the shared metrics client."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsClient()
    return _metrics


def get_executor() -> ToolExecutor:
    """Get the shared tool executor."""
    global _executor
    if _executor is None:
        _executor = ToolExecutor(
            get_settings(), cache=InMemoryCache(), metrics=get_metrics()
        )
    return _executor


def get_generator() -> ContentGenerator:
    global _generator
    if _generator is None:
        _generator = OpenAIContentGenerator(get_settings(), get_executor())
    return _generator


def get_validator() -> PlaceValidator:
    global _validator
    if _validator is None:
        _validator = GooglePlacesValidator(get_settings(), get_executor())
    return _validator


def get_distance_service() -> DistanceService:
    global _distance_service
    if _distance_service is None:
        _distance_service = GoogleDistanceService(get_settings(), get_executor())
    return _distance_service


def get_limiter() -> RateLimiter:
    """Get the shared limiter pacing distance lookups."""
    global _limiter
    if _limiter is None:
        settings = get_settings()
        _limiter = TokenBucketLimiter(
            settings.distance_rate_per_s, settings.distance_burst
        )
    return _limiter

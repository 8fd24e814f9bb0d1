"""Rate limiting for outbound collaborator calls."""

from itinerary_engine.rate_limit.core import RateLimiter, TokenBucketLimiter
from itinerary_engine.rate_limit.types import RateLimitResult

__all__ = ["RateLimiter", "RateLimitResult", "TokenBucketLimiter"]

"""Rate limiting types."""

from pydantic import BaseModel, Field


class RateLimitResult(BaseModel):
    """Result of a rate limit check."""

    allowed: bool = Field(description="Whether the request is allowed")
    remaining: int = Field(description="Whole tokens left after this request")
    retry_after_s: float = Field(
        default=0.0, description="Seconds until a token becomes available"
    )

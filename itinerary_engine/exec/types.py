"""Type definitions for collaborator call execution."""

from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, Field

# Collaborator calls take an args dict and return a JSON-like dict
ToolCallable = Callable[[dict[str, Any]], dict[str, Any]]

ExecutorErrorKind = Literal["timeout", "tool_error", "breaker_open"]


class ToolResponse(BaseModel):
    """Outcome of a collaborator call. Failures are values, not exceptions."""

    ok: bool = Field(description="Whether the call produced data")
    data: dict[str, Any] | None = Field(default=None, description="Call result")
    error: str | None = Field(default=None, description="Failure reason")
    error_kind: ExecutorErrorKind | None = Field(
        default=None, description="Failure category"
    )
    from_cache: bool = Field(default=False, description="Served from cache")
    latency_ms: int = Field(default=0, description="Wall-clock latency")
    retries: int = Field(default=0, description="Retries performed")
    breaker_open: bool = Field(default=False, description="Rejected by breaker")

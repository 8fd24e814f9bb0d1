"""Collaborator call execution with timeouts, retries, circuit breaking, and caching."""

from itinerary_engine.exec.executor import CircuitBreaker, InMemoryCache, ToolExecutor
from itinerary_engine.exec.types import ExecutorErrorKind, ToolCallable, ToolResponse

__all__ = [
    "CircuitBreaker",
    "ExecutorErrorKind",
    "InMemoryCache",
    "ToolCallable",
    "ToolExecutor",
    "ToolResponse",
]

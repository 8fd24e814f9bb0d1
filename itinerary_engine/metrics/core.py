"""Metrics façade for collaborator call tracking."""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from itinerary_engine.exec.types import ExecutorErrorKind
    from itinerary_engine.metrics.registry import MetricsClient

logger = logging.getLogger(__name__)


def record_tool_call(
    tool: str,
    latency_ms: int,
    ok: bool,
    from_cache: bool,
    retries: int,
    error_kind: "ExecutorErrorKind | None",
    metrics: "MetricsClient | None" = None,
) -> None:
    """Record metrics for a collaborator call.

    Logs a structured metric line and, when a client is given, updates the
    in-process registry.

    Args:
        tool: Name of the collaborator call.
        latency_ms: Latency in milliseconds.
        ok: Whether the call succeeded.
        from_cache: Whether the result came from cache.
        retries: Number of retries performed.
        error_kind: Type of error if call failed, None if succeeded.
        metrics: Optional in-process metrics client.
    """
    logger.info(
        "tool_call_metric",
        extra={
            "tool": tool,
            "latency_ms": latency_ms,
            "ok": ok,
            "from_cache": from_cache,
            "retries": retries,
            "error_kind": error_kind,
        },
    )

    if metrics is None:
        return

    metrics.observe_tool_latency(tool, "ok" if ok else "error", latency_ms)
    if retries:
        metrics.inc_tool_retries(tool, retries)
    if from_cache:
        metrics.inc_tool_cache_hit(tool)
    if error_kind:
        metrics.inc_tool_errors(tool, error_kind)

"""In-process metrics registry for the itinerary engine."""

from collections import defaultdict
from typing import Literal


class MetricsClient:
    """
    Simple in-process metrics client.

    Stores metrics in memory for testing and internal monitoring.
    Can be replaced with Prometheus/OpenTelemetry in the future.
    """

    def __init__(self) -> None:
        # Tool latency observations: tool -> list of (status, latency_ms)
        self.tool_latencies: dict[str, list[tuple[str, int]]] = defaultdict(list)

        # Retry counts: tool -> count
        self.tool_retries: dict[str, int] = defaultdict(int)

        # Error counts: tool -> reason -> count
        self.tool_errors: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )

        # Cache hits: tool -> count
        self.tool_cache_hits: dict[str, int] = defaultdict(int)

        # Breaker states: tool -> current state
        self.breaker_states: dict[str, Literal["open", "closed", "half_open"]] = {}

        # Waypoint selection
        self.skeletons_built: int = 0
        self.skeleton_fallbacks: int = 0
        self.waypoints_dropped: int = 0
        self.degraded_allocations: int = 0

        # Local route optimization: minutes saved per applied reorder
        self.optimizer_runs: int = 0
        self.optimizer_savings: list[int] = []

        # Conflict counts: type -> count
        self.conflict_counts: dict[str, int] = defaultdict(int)

        # Budget observations: list of (ceiling, total_cost)
        self.budget_observations: list[tuple[float, float]] = []

        # Resolution outcomes: type -> count
        self.resolution_counts: dict[str, int] = defaultdict(int)
        self.repair_attempts: int = 0
        self.repair_successes: int = 0
        self.repair_rounds: list[int] = []

    def observe_tool_latency(self, tool: str, status: str, latency_ms: int) -> None:
        """Record a tool latency observation."""
        self.tool_latencies[tool].append((status, latency_ms))

    def inc_tool_retries(self, tool: str, count: int = 1) -> None:
        """Increment retry counter for a tool."""
        self.tool_retries[tool] += count

    def inc_tool_errors(self, tool: str, reason: str) -> None:
        """Increment error counter for a tool and reason."""
        self.tool_errors[tool][reason] += 1

    def inc_tool_cache_hit(self, tool: str) -> None:
        """Increment cache hit counter for a tool."""
        self.tool_cache_hits[tool] += 1

    def set_breaker_state(
        self, tool: str, state: Literal["open", "closed", "half_open"]
    ) -> None:
        """Set current breaker state for a tool."""
        self.breaker_states[tool] = state

    def get_tool_error_count(self, tool: str, reason: str | None = None) -> int:
        """Get error count for a tool, optionally filtered by reason."""
        if reason:
            return self.tool_errors.get(tool, {}).get(reason, 0)
        return sum(self.tool_errors.get(tool, {}).values())

    def observe_skeleton(
        self, fallback: bool, dropped: int, degraded: bool
    ) -> None:
        """Record the outcome of a waypoint selection."""
        self.skeletons_built += 1
        self.waypoints_dropped += dropped
        if fallback:
            self.skeleton_fallbacks += 1
        if degraded:
            self.degraded_allocations += 1

    def observe_optimization(self, applied: bool, minutes_saved: int) -> None:
        """Record an optimizer run."""
        self.optimizer_runs += 1
        if applied:
            self.optimizer_savings.append(minutes_saved)

    def inc_conflict(self, conflict_type: str) -> None:
        """Increment conflict counter by type."""
        self.conflict_counts[conflict_type] += 1

    def observe_budget(self, ceiling: float, total_cost: float) -> None:
        """Record a day's activity spend against its ceiling."""
        self.budget_observations.append((ceiling, total_cost))

    def inc_resolution(self, resolution_type: str) -> None:
        """Increment resolution counter by type."""
        self.resolution_counts[resolution_type] += 1

    def observe_repair(self, resolved: bool) -> None:
        """Record a resolver run."""
        self.repair_attempts += 1
        if resolved:
            self.repair_successes += 1

    def observe_repair_rounds(self, rounds: int) -> None:
        """Record detect/resolve rounds used for a day."""
        self.repair_rounds.append(rounds)

"""Metrics collection for the itinerary engine."""

from .core import record_tool_call
from .registry import MetricsClient

__all__ = ["MetricsClient", "record_tool_call"]

"""Waypoint selection and local route optimization."""

from .allocation import (
    MiddleOutAllocation,
    NightAllocationPolicy,
    allocate_nights,
    middle_out_order,
)
from .matrix import build_travel_matrix
from .optimizer import create_time_buckets, nearest_neighbor_order, optimize_day
from .selector import score_waypoint, select_top_waypoints
from .types import OptimizationResult, RouteStats, ScoredWaypoint, TravelMatrix
from .waypoints import (
    minimal_skeleton,
    order_by_nearest_neighbor,
    promote_alternate,
    select_waypoints,
    target_waypoint_count,
)

__all__ = [
    "MiddleOutAllocation",
    "NightAllocationPolicy",
    "OptimizationResult",
    "RouteStats",
    "ScoredWaypoint",
    "TravelMatrix",
    "allocate_nights",
    "build_travel_matrix",
    "create_time_buckets",
    "middle_out_order",
    "minimal_skeleton",
    "nearest_neighbor_order",
    "optimize_day",
    "order_by_nearest_neighbor",
    "promote_alternate",
    "score_waypoint",
    "select_top_waypoints",
    "select_waypoints",
    "target_waypoint_count",
]

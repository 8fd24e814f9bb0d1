"""Shared helpers: geography, cost parsing and JSON repair."""

from .costs import extract_cost
from .geo import distance_km, estimate_walk, haversine_km
from .json_repair import JSONRepairError, ParseOutcome, parse_llm_json, repair_json

__all__ = [
    "extract_cost",
    "distance_km",
    "estimate_walk",
    "haversine_km",
    "JSONRepairError",
    "ParseOutcome",
    "parse_llm_json",
    "repair_json",
]

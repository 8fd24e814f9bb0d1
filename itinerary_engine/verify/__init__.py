"""Verification module for day-plan conflict detection."""

from .availability import check_availability
from .budget import check_budget
from .detector import detect_conflicts
from .geographic import check_geography
from .timeline import check_timeline

__all__ = [
    "check_availability",
    "check_budget",
    "check_geography",
    "check_timeline",
    "detect_conflicts",
]

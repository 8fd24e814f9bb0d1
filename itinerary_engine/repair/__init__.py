"""Conflict resolution for day plans."""

from .engine import resolve_conflicts
from .models import Resolution, ResolutionContext, ResolutionResult, ResolutionType
from .requests import build_regeneration_request
from .timeline import can_shift, shift_activity

__all__ = [
    "Resolution",
    "ResolutionContext",
    "ResolutionResult",
    "ResolutionType",
    "build_regeneration_request",
    "can_shift",
    "resolve_conflicts",
    "shift_activity",
]

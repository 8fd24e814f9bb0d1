"""Convenient imports for all model types."""

# Common types and enums
from .common import (
    ConflictType,
    Geo,
    Severity,
    Tier,
    TimeWindow,
    TransitMode,
    TravelStyle,
)

# Conflict models
from .conflicts import Conflict

# Itinerary models
from .itinerary import (
    Activity,
    DayItinerary,
    OpeningPeriod,
    PeriodPoint,
    PlaceDetails,
    ValidationStatus,
)

# Tool result models
from .tool_results import (
    CandidateProposal,
    DiscoveryContext,
    PlaceLookup,
    PlaceMatch,
    RegenerationRequest,
    ReplacementResult,
    TravelTime,
    TravelTimeLookup,
)

# Trip models
from .trip import (
    AllocationStatus,
    CandidatePlace,
    NightAllocation,
    RouteMetadata,
    RouteSkeleton,
    TripRequest,
    ValidatedPlace,
)

__all__ = [
    # Common
    "ConflictType",
    "Geo",
    "Severity",
    "Tier",
    "TimeWindow",
    "TransitMode",
    "TravelStyle",
    # Conflicts
    "Conflict",
    # Itinerary
    "Activity",
    "DayItinerary",
    "OpeningPeriod",
    "PeriodPoint",
    "PlaceDetails",
    "ValidationStatus",
    # Tool Results
    "CandidateProposal",
    "DiscoveryContext",
    "PlaceLookup",
    "PlaceMatch",
    "RegenerationRequest",
    "ReplacementResult",
    "TravelTime",
    "TravelTimeLookup",
    # Trip
    "AllocationStatus",
    "CandidatePlace",
    "NightAllocation",
    "RouteMetadata",
    "RouteSkeleton",
    "TripRequest",
    "ValidatedPlace",
]

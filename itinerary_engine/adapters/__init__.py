"""External collaborator adapters and the protocols they implement."""

from itinerary_engine.adapters.content import OpenAIContentGenerator
from itinerary_engine.adapters.distance import GoogleDistanceService
from itinerary_engine.adapters.exceptions import (
    CollaboratorConnectionError,
    CollaboratorError,
    CollaboratorResponseError,
    CollaboratorTimeoutError,
)
from itinerary_engine.adapters.places import GooglePlacesValidator
from itinerary_engine.adapters.protocols import (
    ContentGenerator,
    DistanceService,
    PlaceValidator,
)

__all__ = [
    "CollaboratorConnectionError",
    "CollaboratorError",
    "CollaboratorResponseError",
    "CollaboratorTimeoutError",
    "ContentGenerator",
    "DistanceService",
    "GoogleDistanceService",
    "GooglePlacesValidator",
    "OpenAIContentGenerator",
    "PlaceValidator",
]

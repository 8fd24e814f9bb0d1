"""Interfaces of the external collaborators the engine depends on."""

from typing import Protocol

from itinerary_engine.models import (
    CandidateProposal,
    DiscoveryContext,
    Geo,
    PlaceLookup,
    RegenerationRequest,
    ReplacementResult,
    TransitMode,
    TravelTimeLookup,
)


class ContentGenerator(Protocol):
    """Generative travel-content service."""

    def propose_candidates(self, context: DiscoveryContext) -> CandidateProposal:
        """Propose origin, destination, waypoints and alternates for a trip."""
        ...

    def propose_replacement(self, request: RegenerationRequest) -> ReplacementResult:
        """Propose a single activity that fills a time window."""
        ...


class PlaceValidator(Protocol):
    """Place-validation / geocoding service."""

    def validate(
        self, name: str, country: str | None = None, with_hours: bool = False
    ) -> PlaceLookup:
        """Confirm a place exists and return its coordinates.

        With ``with_hours`` the match also carries opening periods when known.
        """
        ...


class DistanceService(Protocol):
    """Travel-time / distance service."""

    def travel_time(
        self,
        origin: Geo,
        destination: Geo,
        mode: TransitMode = TransitMode.walking,
    ) -> TravelTimeLookup:
        """Travel time between two points."""
        ...

"""Waypoint selection: discover, validate, score, order and allocate nights."""

import logging
import math
from collections.abc import Sequence

from itinerary_engine.adapters.protocols import ContentGenerator, PlaceValidator
from itinerary_engine.config import Settings, get_settings
from itinerary_engine.metrics.registry import MetricsClient
from itinerary_engine.models import (
    CandidatePlace,
    DiscoveryContext,
    RouteMetadata,
    RouteSkeleton,
    TripRequest,
    ValidatedPlace,
)
from itinerary_engine.utils.geo import distance_km

from .allocation import NightAllocationPolicy, allocate_nights
from .selector import select_top_waypoints

logger = logging.getLogger(__name__)

_CANDIDATE_FIELDS = set(CandidatePlace.model_fields)


def target_waypoint_count(request: TripRequest, settings: Settings | None = None) -> int:
    """Waypoints to ask for: one per ``nights_per_stop`` road nights, within bounds."""
    settings = settings or get_settings()
    by_nights = math.ceil(request.nights_on_road / settings.nights_per_stop)
    return min(request.stop_count, max(1, min(by_nights, settings.max_waypoints)))


def validate_place(
    candidate: CandidatePlace, validator: PlaceValidator
) -> ValidatedPlace | None:
    """Validate one candidate; None when the validator cannot confirm it."""
    lookup = validator.validate(candidate.name, candidate.country or None)
    if not lookup.ok or lookup.match is None:
        logger.info(
            "Place failed validation",
            extra={"place": candidate.name, "error": lookup.error},
        )
        return None

    match = lookup.match
    return ValidatedPlace(
        **candidate.model_dump(),
        verified=True,
        coordinates=match.coordinates,
        formatted_address=match.formatted_address,
        place_id=match.place_id,
        types=match.types,
    )


def _validate_endpoint(candidate: CandidatePlace, validator: PlaceValidator) -> ValidatedPlace:
    validated = validate_place(candidate, validator)
    if validated is None:
        logger.warning(
            "Keeping unverified trip endpoint",
            extra={"place": candidate.name},
        )
        return ValidatedPlace.unverified(candidate)
    return validated


def _as_candidate(place: ValidatedPlace) -> CandidatePlace:
    return CandidatePlace(**place.model_dump(include=_CANDIDATE_FIELDS))


def order_by_nearest_neighbor(
    start: ValidatedPlace, waypoints: Sequence[ValidatedPlace]
) -> list[ValidatedPlace]:
    """Greedy nearest-neighbour ordering from ``start``.

    When the current place has no coordinates the next remaining waypoint in
    input order is taken.
    """
    remaining = list(waypoints)
    ordered: list[ValidatedPlace] = []
    current = start

    while remaining:
        nearest_index = None
        if current.coordinates is not None:
            best = math.inf
            for i, candidate in enumerate(remaining):
                if candidate.coordinates is None:
                    continue
                d = distance_km(current.coordinates, candidate.coordinates)
                if d < best:
                    best = d
                    nearest_index = i
        if nearest_index is None:
            nearest_index = 0
        current = remaining.pop(nearest_index)
        ordered.append(current)

    return ordered


def _endpoints(request: TripRequest) -> tuple[CandidatePlace, CandidatePlace]:
    origin = CandidatePlace(
        name=request.origin, country=request.origin_country or "", why="Starting point"
    )
    destination = CandidatePlace(
        name=request.destination,
        country=request.destination_country or "",
        why="Final destination",
    )
    return origin, destination


def minimal_skeleton(
    request: TripRequest,
    reason: str,
    settings: Settings | None = None,
    policy: NightAllocationPolicy | None = None,
) -> RouteSkeleton:
    """Origin and destination only, used when discovery fails."""
    settings = settings or get_settings()
    origin, destination = _endpoints(request)
    _, allocation = allocate_nights([], request.nights_on_road, policy, settings)
    return RouteSkeleton(
        origin=ValidatedPlace.unverified(origin),
        destination=ValidatedPlace.unverified(destination).model_copy(
            update={"nights": request.nights_at_destination}
        ),
        waypoints=[],
        alternates=[],
        allocation=allocation,
        metadata=RouteMetadata(
            travel_style=request.travel_style,
            target_waypoints=target_waypoint_count(request, settings),
            failure_reason=reason,
        ),
    )


def select_waypoints(
    request: TripRequest,
    generator: ContentGenerator,
    validator: PlaceValidator,
    settings: Settings | None = None,
    policy: NightAllocationPolicy | None = None,
    metrics: MetricsClient | None = None,
) -> RouteSkeleton:
    """
    Build a validated, ordered route skeleton for a trip request.

    Never raises for collaborator failures: a failed or unparseable discovery
    yields a minimal skeleton with ``metadata.failure_reason`` set.

    Args:
        request: Trip request
        generator: Content generator proposing candidates
        validator: Place validator
        settings: Engine settings
        policy: Night allocation policy (middle-out by default)
        metrics: Optional metrics client

    Returns:
        RouteSkeleton
    """
    settings = settings or get_settings()
    target = target_waypoint_count(request, settings)

    context = DiscoveryContext(
        origin=request.origin,
        origin_country=request.origin_country,
        destination=request.destination,
        destination_country=request.destination_country,
        waypoint_count=target,
        alternate_count=settings.alternate_count,
        travel_style=request.travel_style,
        budget=request.budget.value,
        nights_on_road=request.nights_on_road,
    )
    proposal = generator.propose_candidates(context)

    if not proposal.ok:
        logger.warning(
            "Waypoint discovery failed; using minimal skeleton",
            extra={
                "origin": request.origin,
                "destination": request.destination,
                "error": proposal.error,
            },
        )
        if metrics:
            metrics.observe_skeleton(fallback=True, dropped=0, degraded=False)
        return minimal_skeleton(
            request, proposal.error or "discovery_failed", settings, policy
        )

    # Endpoints always come from the request, never from the generator's echo
    origin_candidate, destination_candidate = _endpoints(request)
    origin = _validate_endpoint(origin_candidate, validator)
    destination = _validate_endpoint(destination_candidate, validator).model_copy(
        update={"nights": request.nights_at_destination}
    )

    seen = {origin.name.casefold(), destination.name.casefold()}
    validated: list[ValidatedPlace] = []
    for candidate in proposal.waypoints:
        key = candidate.name.casefold()
        if key in seen:
            logger.info("Skipping duplicate waypoint", extra={"place": candidate.name})
            continue
        seen.add(key)
        place = validate_place(candidate, validator)
        if place is None:
            logger.warning("Dropping unvalidated waypoint", extra={"place": candidate.name})
            continue
        validated.append(place)

    dropped = len(proposal.waypoints) - len(validated)
    alternates = [a for a in proposal.alternates if a.name.casefold() not in seen]

    if len(validated) > target:
        kept, extra = select_top_waypoints(validated, target)
        alternates = [_as_candidate(w) for w in extra] + alternates
    else:
        kept = validated

    ordered = order_by_nearest_neighbor(origin, kept)
    waypoints, allocation = allocate_nights(ordered, request.nights_on_road, policy, settings)

    logger.info(
        "Route skeleton built",
        extra={
            "waypoints": [w.name for w in waypoints],
            "nights": [w.nights for w in waypoints],
            "allocation_status": allocation.status.value,
            "dropped": dropped,
        },
    )
    if metrics:
        metrics.observe_skeleton(fallback=False, dropped=dropped, degraded=allocation.degraded)

    return RouteSkeleton(
        origin=origin,
        destination=destination,
        waypoints=waypoints,
        alternates=alternates,
        allocation=allocation,
        metadata=RouteMetadata(
            travel_style=request.travel_style,
            target_waypoints=target,
            candidate_count=len(proposal.waypoints),
            validated_count=len(validated),
            repaired_response=proposal.repaired,
            theme_insights=proposal.theme_insights,
        ),
    )


def promote_alternate(
    skeleton: RouteSkeleton,
    name: str,
    validator: PlaceValidator,
    settings: Settings | None = None,
    policy: NightAllocationPolicy | None = None,
) -> RouteSkeleton:
    """
    Validate an alternate and add it to the route.

    The waypoints are re-ordered by nearest neighbour and nights are
    re-allocated. Returns the skeleton unchanged when the alternate is unknown
    or fails validation.
    """
    key = name.casefold()
    alternate = next((a for a in skeleton.alternates if a.name.casefold() == key), None)
    if alternate is None:
        logger.warning("No such alternate", extra={"place": name})
        return skeleton

    place = validate_place(alternate, validator)
    if place is None:
        logger.warning("Alternate failed validation", extra={"place": name})
        return skeleton

    ordered = order_by_nearest_neighbor(skeleton.origin, [*skeleton.waypoints, place])
    waypoints, allocation = allocate_nights(
        ordered, skeleton.allocation.requested, policy, settings
    )
    metadata = skeleton.metadata.model_copy(
        update={"validated_count": skeleton.metadata.validated_count + 1}
    )
    return skeleton.model_copy(
        update={
            "waypoints": waypoints,
            "alternates": [a for a in skeleton.alternates if a is not alternate],
            "allocation": allocation,
            "metadata": metadata,
        }
    )

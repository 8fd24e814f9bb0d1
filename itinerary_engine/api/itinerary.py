"""Itinerary engine endpoints: waypoint selection and per-day processing."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from itinerary_engine.adapters import ContentGenerator, DistanceService, PlaceValidator
from itinerary_engine.api.deps import (
    get_distance_service,
    get_engine_settings,
    get_generator,
    get_limiter,
    get_metrics,
    get_validator,
)
from itinerary_engine.config import Settings
from itinerary_engine.metrics import MetricsClient
from itinerary_engine.models import Conflict, DayItinerary, RouteSkeleton, TripRequest
from itinerary_engine.pipeline import (
    DayProcessingResult,
    ResolutionReport,
    process_day,
    report_resolution,
)
from itinerary_engine.planning import (
    OptimizationResult,
    optimize_day,
    promote_alternate,
    select_waypoints,
)
from itinerary_engine.rate_limit import RateLimiter
from itinerary_engine.repair import ResolutionContext, ResolutionResult, resolve_conflicts
from itinerary_engine.verify import detect_conflicts


router = APIRouter(prefix="/itinerary", tags=["itinerary"])


class DetectConflictsRequest(BaseModel):
    """Request to check a day for conflicts."""

    day: DayItinerary
    budget_ceiling: float | None = Field(None, ge=0)


class ResolveConflictsRequest(BaseModel):
    """Request to resolve already-detected conflicts on a day."""

    day: DayItinerary
    conflicts: list[Conflict]
    context: ResolutionContext = Field(default_factory=ResolutionContext)
    budget_ceiling: float | None = Field(None, ge=0)


class ProcessDayRequest(BaseModel):
    """Request to optimize, check and repair a day in one call."""

    day: DayItinerary
    context: ResolutionContext = Field(default_factory=ResolutionContext)
    budget_ceiling: float | None = Field(None, ge=0)


class ProcessDayResponse(BaseModel):
    """Processed day plus its resolution summary."""

    result: DayProcessingResult
    report: ResolutionReport


@router.post("/waypoints", response_model=RouteSkeleton)
def create_route_skeleton(
    request: TripRequest,
    generator: ContentGenerator = Depends(get_generator),
    validator: PlaceValidator = Depends(get_validator),
    settings: Settings = Depends(get_engine_settings),
    metrics: MetricsClient = Depends(get_metrics),
) -> RouteSkeleton:
    """Select, order and allocate nights to waypoints for a trip."""
    return select_waypoints(request, generator, validator, settings, metrics=metrics)


@router.post("/days/optimize", response_model=OptimizationResult)
def optimize(
    day: DayItinerary,
    distance_service: DistanceService = Depends(get_distance_service),
    settings: Settings = Depends(get_engine_settings),
    limiter: RateLimiter = Depends(get_limiter),
    metrics: MetricsClient = Depends(get_metrics),
) -> OptimizationResult:
    """Reorder a day's activities within time buckets to cut walking time."""
    return optimize_day(day, distance_service, settings, limiter, metrics)


@router.post("/days/conflicts", response_model=list[Conflict])
def check_conflicts(
    request: DetectConflictsRequest,
    distance_service: DistanceService = Depends(get_distance_service),
    settings: Settings = Depends(get_engine_settings),
    limiter: RateLimiter = Depends(get_limiter),
    metrics: MetricsClient = Depends(get_metrics),
) -> list[Conflict]:
    """Detect timeline, availability, travel and budget conflicts."""
    return detect_conflicts(
        request.day,
        distance_service,
        request.budget_ceiling,
        settings,
        limiter,
        metrics,
    )


@router.post("/days/resolve", response_model=ResolutionResult)
def resolve(
    request: ResolveConflictsRequest,
    generator: ContentGenerator = Depends(get_generator),
    distance_service: DistanceService = Depends(get_distance_service),
    validator: PlaceValidator = Depends(get_validator),
    settings: Settings = Depends(get_engine_settings),
    limiter: RateLimiter = Depends(get_limiter),
    metrics: MetricsClient = Depends(get_metrics),
) -> ResolutionResult:
    """Resolve conflicts by shifting or regenerating activities."""
    return resolve_conflicts(
        request.day,
        request.conflicts,
        generator,
        request.context,
        request.budget_ceiling,
        settings,
        metrics,
        distance_service,
        validator,
        limiter,
    )


@router.post("/days/process", response_model=ProcessDayResponse)
def process(
    request: ProcessDayRequest,
    generator: ContentGenerator = Depends(get_generator),
    distance_service: DistanceService = Depends(get_distance_service),
    validator: PlaceValidator = Depends(get_validator),
    settings: Settings = Depends(get_engine_settings),
    limiter: RateLimiter = Depends(get_limiter),
    metrics: MetricsClient = Depends(get_metrics),
) -> ProcessDayResponse:
    """Optimize a day, then detect and resolve its conflicts."""
    result = process_day(
        request.day,
        generator,
        distance_service,
        request.context,
        request.budget_ceiling,
        settings,
        limiter,
        metrics,
        validator,
    )
    return ProcessDayResponse(result=result, report=report_resolution(result))


class PromoteAlternateRequest(BaseModel):
    """Request to move an alternate into the route."""

    skeleton: RouteSkeleton
    name: str = Field(..., min_length=1)


@router.post("/waypoints/promote", response_model=RouteSkeleton)
def promote(
    request: PromoteAlternateRequest,
    validator: PlaceValidator = Depends(get_validator),
    settings: Settings = Depends(get_engine_settings),
) -> RouteSkeleton:
    """Validate an alternate and add it to the route skeleton."""
    return promote_alternate(request.skeleton, request.name, validator, settings)

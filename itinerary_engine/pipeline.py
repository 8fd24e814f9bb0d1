"""Per-day processing: optimize, then detect and resolve in bounded rounds."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Literal

from pydantic import BaseModel, Field

from itinerary_engine.adapters.protocols import (
    ContentGenerator,
    DistanceService,
    PlaceValidator,
)
from itinerary_engine.config import Settings, get_settings
from itinerary_engine.metrics.registry import MetricsClient
from itinerary_engine.models import Conflict, DayItinerary, Severity
from itinerary_engine.planning import OptimizationResult, optimize_day
from itinerary_engine.rate_limit import RateLimiter
from itinerary_engine.repair import (
    Resolution,
    ResolutionContext,
    ResolutionType,
    resolve_conflicts,
)
from itinerary_engine.verify import detect_conflicts

logger = logging.getLogger(__name__)

DayStatus = Literal["fully_resolved", "partially_resolved"]


class DayProcessingResult(BaseModel):
    """Final state of one processed day."""

    day: DayItinerary = Field(description="Day with optimized and repaired activities")
    optimization: OptimizationResult = Field(description="Route optimization outcome")
    conflicts: list[Conflict] = Field(description="Conflicts remaining after repair")
    resolutions: list[Resolution] = Field(description="Resolutions from all rounds")
    rounds: int = Field(description="Detect/resolve rounds run")
    status: DayStatus = Field(description="Whether actionable conflicts remain")


class ResolutionReport(BaseModel):
    """Human-readable summary of a day's repair."""

    status: DayStatus = Field(description="Overall status")
    summary: str = Field(description="One-line summary")
    successful: int = Field(description="Successful resolutions")
    failed: int = Field(description="Failed resolutions")
    remaining_conflicts: int = Field(description="Conflicts left after repair")
    resolutions: list[Resolution] = Field(description="Resolution details")


def _actionable(conflicts: list[Conflict]) -> bool:
    return any(c.severity != Severity.low for c in conflicts)


def _blocking(conflicts: list[Conflict]) -> bool:
    return any(c.blocking for c in conflicts)


def process_day(
    day: DayItinerary,
    generator: ContentGenerator,
    distance_service: DistanceService,
    context: ResolutionContext | None = None,
    budget_ceiling: float | None = None,
    settings: Settings | None = None,
    limiter: RateLimiter | None = None,
    metrics: MetricsClient | None = None,
    validator: PlaceValidator | None = None,
) -> DayProcessingResult:
    """
    Run one day through optimizer, detector and resolver.

    Detection and resolution repeat for at most ``max_repair_rounds`` rounds.
    The loop stops early once no critical/high conflicts remain or when a
    round produces no successful fix.

    Args:
        day: Day itinerary from the external planner
        generator: Content generator proposing replacements
        distance_service: Walking travel-time provider
        context: Trip-level context for regeneration requests
        budget_ceiling: Optional budget for the day's activities
        settings: Engine settings
        limiter: Optional limiter pacing distance lookups
        metrics: Optional metrics client
        validator: Place validator confirming replacements

    Returns:
        DayProcessingResult
    """
    settings = settings or get_settings()

    optimization = optimize_day(day, distance_service, settings, limiter, metrics)
    current = day.model_copy(update={"activities": optimization.activities})

    conflicts = detect_conflicts(
        current, distance_service, budget_ceiling, settings, limiter, metrics
    )
    resolutions: list[Resolution] = []
    rounds = 0

    while rounds < settings.max_repair_rounds and _actionable(conflicts):
        rounds += 1
        result = resolve_conflicts(
            current,
            conflicts,
            generator,
            context,
            budget_ceiling,
            settings,
            metrics,
            distance_service,
            validator,
            limiter,
        )
        resolutions.extend(result.resolutions)
        current = current.model_copy(update={"activities": result.activities})

        conflicts = detect_conflicts(
            current, distance_service, budget_ceiling, settings, limiter, metrics
        )
        if not _blocking(conflicts):
            break
        if not any(
            r.success and r.type != ResolutionType.logged_warnings
            for r in result.resolutions
        ):
            logger.warning(
                "Repair round made no progress",
                extra={"day": day.day, "round": rounds},
            )
            break

    if metrics:
        metrics.observe_repair_rounds(rounds)

    status: DayStatus = "partially_resolved" if _actionable(conflicts) else "fully_resolved"
    logger.info(
        "Day processed",
        extra={
            "day": day.day,
            "city": day.city,
            "rounds": rounds,
            "remaining_conflicts": len(conflicts),
            "status": status,
        },
    )
    return DayProcessingResult(
        day=current,
        optimization=optimization,
        conflicts=conflicts,
        resolutions=resolutions,
        rounds=rounds,
        status=status,
    )


def process_trip_days(
    days: list[DayItinerary],
    generator: ContentGenerator,
    distance_service: DistanceService,
    context: ResolutionContext | None = None,
    budget_ceilings: dict[int, float] | None = None,
    settings: Settings | None = None,
    limiter: RateLimiter | None = None,
    metrics: MetricsClient | None = None,
    validator: PlaceValidator | None = None,
) -> list[DayProcessingResult]:
    """Process independent days concurrently on at most ``max_day_workers`` threads.

    Results are returned in input order. ``budget_ceilings`` maps day numbers
    to their budget.
    """
    if not days:
        return []
    settings = settings or get_settings()
    ceilings = budget_ceilings or {}

    def _process(day: DayItinerary) -> DayProcessingResult:
        return process_day(
            day,
            generator,
            distance_service,
            context,
            ceilings.get(day.day),
            settings,
            limiter,
            metrics,
            validator,
        )

    with ThreadPoolExecutor(max_workers=min(len(days), settings.max_day_workers)) as pool:
        return list(pool.map(_process, days))


def report_resolution(result: DayProcessingResult) -> ResolutionReport:
    """Summarize a processed day."""
    successful = sum(1 for r in result.resolutions if r.success)
    failed = len(result.resolutions) - successful
    return ResolutionReport(
        status=result.status,
        summary=f"{successful} conflicts resolved, {failed} unresolved",
        successful=successful,
        failed=failed,
        remaining_conflicts=len(result.conflicts),
        resolutions=result.resolutions,
    )

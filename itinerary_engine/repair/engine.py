"""Conflict resolution engine: bounded regeneration and local time shifts."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from itinerary_engine.adapters.protocols import (
    ContentGenerator,
    DistanceService,
    PlaceValidator,
)
from itinerary_engine.config import Settings, get_settings
from itinerary_engine.models import (
    Activity,
    Conflict,
    ConflictType,
    DayItinerary,
    Geo,
    PlaceDetails,
    Severity,
    TransitMode,
    ValidationStatus,
)
from itinerary_engine.models.common import (
    AVAILABILITY_CONFLICTS,
    SEVERITY_ORDER,
    TIMELINE_CONFLICTS,
)
from itinerary_engine.utils.costs import extract_cost
from itinerary_engine.verify.availability import is_open_at

from .models import Resolution, ResolutionContext, ResolutionResult, ResolutionType
from .requests import build_regeneration_request
from .timeline import can_shift, shift_activity

if TYPE_CHECKING:
    from itinerary_engine.metrics.registry import MetricsClient
    from itinerary_engine.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

FREE_OR_LOW_COST = "free_or_low_cost"


def resolve_conflicts(
    day: DayItinerary,
    conflicts: list[Conflict],
    generator: ContentGenerator,
    context: ResolutionContext | None = None,
    budget_ceiling: float | None = None,
    settings: Settings | None = None,
    metrics: MetricsClient | None = None,
    distance_service: DistanceService | None = None,
    validator: PlaceValidator | None = None,
    limiter: RateLimiter | None = None,
) -> ResolutionResult:
    """
    Resolve a day's conflicts in strict severity order.

    - Availability conflicts: regenerate the activity, requiring availability.
    - Travel-time shortfall: shift the later activity, else regenerate it
      near the preceding one.
    - Unrealistic walk: regenerate the later activity near the preceding one.
    - Budget exceeded: regenerate the most expensive activity as free/low cost.
    - Overlap / insufficient buffer: shift the later activity.
    - Low severity: logged as a single ``logged_warnings`` resolution.

    A shift is only applied when the moved activity is still open at its new
    start and leaves enough time to walk to the next activity. Replacements
    keep the original time window and are validated when a validator is
    given; otherwise they are marked as fallback data. The input day is not
    modified.

    Args:
        day: Day itinerary the conflicts were detected on
        conflicts: Detected conflicts
        generator: Content generator proposing replacements
        context: Trip-level context for regeneration requests
        budget_ceiling: Day budget, used to compute remaining budget
        settings: Engine settings
        metrics: Optional metrics client
        distance_service: Walking travel-time provider used to check shifts
        validator: Place validator confirming replacements
        limiter: Optional limiter pacing distance lookups

    Returns:
        ResolutionResult; ``resolved`` is True only when nothing failed
    """
    settings = settings or get_settings()
    resolver = _DayResolver(
        day,
        generator,
        context or ResolutionContext(),
        budget_ceiling,
        settings,
        distance_service,
        validator,
        limiter,
    )

    resolutions: list[Resolution] = []
    for severity in SEVERITY_ORDER:
        if severity == Severity.low:
            continue
        for conflict in (c for c in conflicts if c.severity == severity):
            resolution = resolver.resolve(conflict)
            if resolution is None:
                continue
            logger.info(
                "Conflict resolution",
                extra={
                    "day": day.day,
                    "conflict": conflict.type.value,
                    "resolution": resolution.type.value,
                    "success": resolution.success,
                },
            )
            resolutions.append(resolution)

    low = [c for c in conflicts if c.severity == Severity.low]
    if low:
        resolutions.append(
            Resolution(
                type=ResolutionType.logged_warnings,
                success=True,
                count=len(low),
                reason="; ".join(c.message for c in low),
            )
        )

    result = ResolutionResult(
        resolved=all(r.success for r in resolutions),
        activities=resolver.activities,
        resolutions=resolutions,
    )

    if metrics:
        for resolution in resolutions:
            metrics.inc_resolution(resolution.type.value)
        metrics.observe_repair(result.resolved)

    logger.info(
        "Resolution complete",
        extra={
            "day": day.day,
            "status": result.status,
            "successful": result.successful,
            "failed": result.failed,
        },
    )
    return result


class _DayResolver:
    """Working copy of a day's activities while conflicts are resolved."""

    def __init__(
        self,
        day: DayItinerary,
        generator: ContentGenerator,
        context: ResolutionContext,
        budget_ceiling: float | None,
        settings: Settings,
        distance_service: DistanceService | None = None,
        validator: PlaceValidator | None = None,
        limiter: RateLimiter | None = None,
    ) -> None:
        self.day = day
        self.activities: list[Activity] = list(day.activities)
        self.generator = generator
        self.context = context
        self.budget_ceiling = budget_ceiling
        self.settings = settings
        self.distance_service = distance_service
        self.validator = validator
        self.limiter = limiter

    def resolve(self, conflict: Conflict) -> Resolution | None:
        if conflict.type in AVAILABILITY_CONFLICTS:
            index = conflict.activities[0]
            return self._regenerate(
                index,
                conflict,
                reason=f"Original venue unavailable: {conflict.message}",
            )
        if conflict.type == ConflictType.insufficient_travel_time:
            return self._resolve_travel_time(conflict)
        if conflict.type == ConflictType.unrealistic_walk:
            index = conflict.activities[-1]
            return self._regenerate(
                index,
                conflict,
                reason=conflict.message,
                near_location=self._preceding_location(index),
            )
        if conflict.type == ConflictType.budget_exceeded:
            return self._resolve_budget(conflict)
        if conflict.type in TIMELINE_CONFLICTS:
            return self._resolve_timeline(conflict)

        logger.debug("No resolution strategy", extra={"conflict": conflict.type.value})
        return None

    def _gap(self, first: int, second: int) -> int:
        return (
            self.activities[second].time.start_minutes
            - self.activities[first].time.end_minutes
        )

    def _preceding_location(self, index: int) -> Geo | None:
        if index == 0:
            return None
        return self.activities[index - 1].coordinates

    def _walk_to_next(self, index: int) -> int:
        """Minutes needed to walk from ``index`` to the next activity, 0 if unknown."""
        if self.distance_service is None or index >= len(self.activities) - 1:
            return 0
        origin = self.activities[index].coordinates
        destination = self.activities[index + 1].coordinates
        if origin is None or destination is None:
            return 0
        if self.limiter is not None:
            self.limiter.acquire()
        lookup = self.distance_service.travel_time(origin, destination, TransitMode.walking)
        if not lookup.ok or lookup.travel_time is None:
            return 0
        return math.ceil(lookup.travel_time.duration_seconds / 60)

    def _shift(self, conflict: Conflict, index: int, minutes: int) -> Resolution | None:
        """Shift ``index`` later by ``minutes``; None when infeasible."""
        activity = self.activities[index]
        name = activity.name
        if minutes <= 0:
            return Resolution(
                type=ResolutionType.timeline_adjusted,
                success=True,
                conflict_type=conflict.type,
                activity_index=index,
                original_activity=name,
                adjustment_minutes=0,
                reason="Already satisfied by an earlier adjustment",
            )
        if not can_shift(
            self.activities,
            index,
            minutes,
            self.settings.adjustment_buffer_min,
            self._walk_to_next(index),
        ):
            return None
        if not is_open_at(activity, self.day.date, activity.time.start_minutes + minutes):
            logger.debug("Shift would start outside opening hours", extra={"activity": name})
            return None

        self.activities[index] = shift_activity(activity, minutes)
        return Resolution(
            type=ResolutionType.timeline_adjusted,
            success=True,
            conflict_type=conflict.type,
            activity_index=index,
            original_activity=name,
            adjustment_minutes=minutes,
            reason=f"Shifted {name} by {minutes}min",
        )

    def _resolve_timeline(self, conflict: Conflict) -> Resolution:
        first, second = conflict.activities[0], conflict.activities[-1]
        adjustment = self.settings.adjustment_buffer_min - self._gap(first, second)
        shifted = self._shift(conflict, second, adjustment)
        if shifted is not None:
            return shifted
        return Resolution(
            type=ResolutionType.adjustment_failed,
            success=False,
            conflict_type=conflict.type,
            activity_index=second,
            original_activity=self.activities[second].name,
            adjustment_minutes=adjustment,
            reason="Cannot adjust without affecting subsequent activities",
        )

    def _resolve_travel_time(self, conflict: Conflict) -> Resolution:
        first, second = conflict.activities[0], conflict.activities[-1]
        required = int(conflict.details.get("required_time", 0))
        shortfall = required - self._gap(first, second)
        shifted = self._shift(conflict, second, shortfall)
        if shifted is not None:
            return shifted
        return self._regenerate(
            second,
            conflict,
            reason=f"Too far from previous activity ({required}min walk)",
            near_location=self._preceding_location(second),
        )

    def _resolve_budget(self, conflict: Conflict) -> Resolution:
        costs = [extract_cost(a.admission) for a in self.activities]
        if not costs or max(costs) <= 0:
            return Resolution(
                type=ResolutionType.regeneration_failed,
                success=False,
                conflict_type=conflict.type,
                reason="No paid activity to replace",
            )
        index = costs.index(max(costs))
        return self._regenerate(
            index,
            conflict,
            reason=conflict.message,
            budget_constraint=FREE_OR_LOW_COST,
        )

    def _remaining_budget(self, index: int) -> float | None:
        if self.budget_ceiling is None:
            return None
        spent = sum(
            extract_cost(a.admission) for i, a in enumerate(self.activities) if i != index
        )
        return max(0.0, self.budget_ceiling - spent)

    def _regenerate(
        self,
        index: int,
        conflict: Conflict,
        reason: str,
        near_location: Geo | None = None,
        budget_constraint: str | None = None,
    ) -> Resolution:
        """Replace ``activities[index]`` within a bounded number of attempts."""
        original = self.activities[index]
        excluded = [original.name] + [
            a.name for i, a in enumerate(self.activities) if i != index
        ]
        attempts = 0
        error: str | None = None

        while attempts < self.settings.max_regeneration_attempts:
            attempts += 1
            request = build_regeneration_request(
                original,
                self.day,
                self.context,
                exclude_places=excluded,
                reason=reason,
                remaining_budget=self._remaining_budget(index),
                budget_constraint=budget_constraint,
                near_location=near_location,
                max_distance_km=self.settings.regeneration_radius_km,
            )
            result = self.generator.propose_replacement(request)
            if not result.ok or result.activity is None:
                error = result.error or "No replacement proposed"
                continue

            proposed = result.activity
            if proposed.name.casefold() in {name.casefold() for name in excluded}:
                error = f'Replacement repeated excluded place "{proposed.name}"'
                logger.warning(
                    "Replacement repeated an excluded place",
                    extra={"place": proposed.name, "attempt": attempts},
                )
                continue

            in_window = proposed.model_copy(update={"time": original.time})
            replacement = self._confirm_place(in_window)
            if replacement is None:
                error = f'Replacement "{proposed.name}" could not be validated'
                excluded.append(proposed.name)
                continue

            self.activities[index] = replacement
            return Resolution(
                type=ResolutionType.activity_regenerated,
                success=True,
                conflict_type=conflict.type,
                activity_index=index,
                original_activity=original.name,
                new_activity=replacement.name,
                reason=reason,
                attempts=attempts,
            )

        return Resolution(
            type=ResolutionType.regeneration_failed,
            success=False,
            conflict_type=conflict.type,
            activity_index=index,
            original_activity=original.name,
            reason=error,
            attempts=attempts,
        )

    def _confirm_place(self, activity: Activity) -> Activity | None:
        """Attach validated place data to a replacement; None when not found.

        Without a validator the replacement is kept as fallback data.
        """
        if self.validator is None:
            return activity.model_copy(update={"validation_status": ValidationStatus.fallback})

        lookup = self.validator.validate(activity.name, self.day.city, with_hours=True)
        if not lookup.ok or lookup.match is None:
            logger.warning(
                "Replacement failed validation",
                extra={"place": activity.name, "error": lookup.error},
            )
            return None

        match = lookup.match
        place = PlaceDetails(
            place_id=match.place_id,
            coordinates=match.coordinates,
            formatted_address=match.formatted_address,
            opening_periods=match.opening_periods,
        )
        return activity.model_copy(
            update={"place": place, "validation_status": ValidationStatus.validated}
        )

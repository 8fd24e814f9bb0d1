"""Night allocation across waypoints."""

import logging
from collections.abc import Sequence
from typing import Protocol

from itinerary_engine.config import Settings, get_settings
from itinerary_engine.models import AllocationStatus, NightAllocation, ValidatedPlace

logger = logging.getLogger(__name__)


class NightAllocationPolicy(Protocol):
    """Distributes road nights across ordered waypoints."""

    def allocate(
        self, waypoints: Sequence[ValidatedPlace], nights: int
    ) -> tuple[list[ValidatedPlace], NightAllocation]:
        """Return copies of the waypoints with ``nights`` set, plus a summary."""
        ...


def middle_out_order(count: int) -> list[int]:
    """Indices ordered from the middle outward; both middles lead for even counts."""
    center = (count - 1) / 2
    return sorted(range(count), key=lambda i: (abs(i - center), i))


class MiddleOutAllocation:
    """Start at recommended minimums, then hand out nights middle-first.

    The middle of a road trip is furthest from both airports and gets extra
    nights first.
    """

    def __init__(self, default_min: int = 1, default_max: int = 5) -> None:
        self.default_min = default_min
        self.default_max = default_max

    def _bounds(self, waypoint: ValidatedPlace) -> tuple[int, int]:
        low = waypoint.recommended_min_nights
        high = waypoint.recommended_max_nights
        low = max(1, self.default_min if low is None else low)
        high = self.default_max if high is None else high
        return low, max(low, high)

    def allocate(
        self, waypoints: Sequence[ValidatedPlace], nights: int
    ) -> tuple[list[ValidatedPlace], NightAllocation]:
        bounds = [self._bounds(w) for w in waypoints]
        minimum_total = sum(low for low, _ in bounds)

        if minimum_total > nights:
            logger.warning(
                "Recommended minimums exceed road nights; one night per waypoint",
                extra={"nights": nights, "minimum_total": minimum_total},
            )
            allocated = [1] * len(waypoints)
            status = AllocationStatus.degraded
            remaining = 0
        else:
            allocated = [low for low, _ in bounds]
            remaining = nights - minimum_total
            order = middle_out_order(len(waypoints))
            while remaining > 0:
                progressed = False
                for i in order:
                    if remaining == 0:
                        break
                    if allocated[i] < bounds[i][1]:
                        allocated[i] += 1
                        remaining -= 1
                        progressed = True
                if not progressed:
                    break
            status = AllocationStatus.complete if remaining == 0 else AllocationStatus.saturated
            if remaining:
                logger.warning(
                    "Every waypoint reached its maximum nights",
                    extra={"nights": nights, "unallocated": remaining},
                )

        updated = [
            w.model_copy(update={"nights": n}) for w, n in zip(waypoints, allocated)
        ]
        summary = NightAllocation(
            status=status,
            requested=nights,
            allocated=sum(allocated),
            unallocated=remaining,
        )
        return updated, summary


def allocate_nights(
    waypoints: Sequence[ValidatedPlace],
    nights: int,
    policy: NightAllocationPolicy | None = None,
    settings: Settings | None = None,
) -> tuple[list[ValidatedPlace], NightAllocation]:
    """Allocate road nights with ``policy`` (middle-out by default)."""
    if policy is None:
        settings = settings or get_settings()
        policy = MiddleOutAllocation(
            default_min=settings.default_min_nights,
            default_max=settings.default_max_nights,
        )
    return policy.allocate(waypoints, nights)

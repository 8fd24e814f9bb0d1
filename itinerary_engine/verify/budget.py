"""Budget verification.

Pure function that sums parsed admission costs and compares them with the
day's ceiling. All activities are involved in a budget conflict.
"""

from collections.abc import Sequence

from itinerary_engine.metrics.registry import MetricsClient
from itinerary_engine.models import Activity, Conflict, ConflictType, Severity
from itinerary_engine.utils.costs import extract_cost


def check_budget(
    activities: Sequence[Activity],
    ceiling: float,
    warning_ratio: float = 0.8,
    metrics: MetricsClient | None = None,
) -> list[Conflict]:
    """Verify the day's activity spend.

    Args:
        activities: Activities of the day
        ceiling: Budget for the day's activities
        warning_ratio: Share of the ceiling that triggers a warning
        metrics: Optional metrics client for telemetry

    Returns:
        Empty list, one ``budget_exceeded`` or one ``budget_warning``
    """
    breakdown = []
    total = 0.0
    for activity in activities:
        cost = extract_cost(activity.admission)
        if cost > 0:
            total += cost
            breakdown.append({"activity": activity.name, "cost": cost})

    if metrics:
        metrics.observe_budget(ceiling, total)

    involved = list(range(len(activities)))
    percentage = round(total / ceiling * 100) if ceiling > 0 else None

    if total > ceiling:
        return [
            Conflict(
                type=ConflictType.budget_exceeded,
                severity=Severity.high,
                activities=involved,
                message=f"Total cost {total:g} exceeds budget {ceiling:g}",
                details={
                    "total_cost": total,
                    "budget": ceiling,
                    "overage": total - ceiling,
                    "breakdown": breakdown,
                },
            )
        ]

    if total > ceiling * warning_ratio:
        return [
            Conflict(
                type=ConflictType.budget_warning,
                severity=Severity.low,
                activities=involved,
                message=f"Using {percentage}% of budget",
                details={
                    "total_cost": total,
                    "budget": ceiling,
                    "percentage": percentage,
                    "remaining": ceiling - total,
                },
            )
        ]

    return []

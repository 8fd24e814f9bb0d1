"""Timeline verification between consecutive activities."""

from collections.abc import Sequence

from itinerary_engine.models import Activity, Conflict, ConflictType, Severity


def check_timeline(activities: Sequence[Activity], buffer_min: int = 10) -> list[Conflict]:
    """Flag overlapping and tightly packed consecutive activities.

    Args:
        activities: Activities in scheduled order
        buffer_min: Recommended minutes between activities

    Returns:
        One conflict per offending pair, in activity order
    """
    conflicts: list[Conflict] = []

    for i, (current, following) in enumerate(zip(activities, activities[1:])):
        gap = following.time.start_minutes - current.time.end_minutes
        details = {
            "activity1": {"name": current.name, "end": f"{current.time.end:%H:%M}"},
            "activity2": {"name": following.name, "start": f"{following.time.start:%H:%M}"},
            "gap": gap,
        }

        if gap < 0:
            conflicts.append(
                Conflict(
                    type=ConflictType.timeline_overlap,
                    severity=Severity.high,
                    activities=[i, i + 1],
                    message=f'"{following.name}" overlaps with "{current.name}" by {-gap}min',
                    details={**details, "overlap": -gap},
                )
            )
        elif gap < buffer_min:
            conflicts.append(
                Conflict(
                    type=ConflictType.insufficient_buffer,
                    severity=Severity.medium,
                    activities=[i, i + 1],
                    message=f"Only {gap}min between activities (recommended: {buffer_min}min)",
                    details=details,
                )
            )

    return conflicts

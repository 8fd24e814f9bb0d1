"""Local time shifts for activities."""

from collections.abc import Sequence

from itinerary_engine.models import Activity, TimeWindow
from itinerary_engine.models.common import MINUTES_PER_DAY, from_minutes


def can_shift(
    activities: Sequence[Activity],
    index: int,
    minutes: int,
    buffer_min: int = 15,
    walk_to_next_min: int = 0,
) -> bool:
    """Whether ``activities[index]`` can move ``minutes`` later.

    The shifted activity must stay within the day and, unless it is the last
    activity, end early enough to leave both ``buffer_min`` and the walk to
    the next activity before it starts.
    """
    activity = activities[index]
    new_end = activity.time.end_minutes + minutes
    if new_end >= MINUTES_PER_DAY or activity.time.start_minutes + minutes < 0:
        return False
    if index >= len(activities) - 1:
        return True
    needed = max(buffer_min, walk_to_next_min)
    return new_end <= activities[index + 1].time.start_minutes - needed


def shift_activity(activity: Activity, minutes: int) -> Activity:
    """Copy of ``activity`` moved by ``minutes``.

    Raises:
        ValueError: If the shift leaves the day.
    """
    window = TimeWindow(
        start=from_minutes(activity.time.start_minutes + minutes),
        end=from_minutes(activity.time.end_minutes + minutes),
    )
    return activity.model_copy(update={"time": window})

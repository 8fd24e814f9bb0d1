"""Opening-hours verification.

Opening periods use the place-service convention: ``day`` 0-6 with Sunday=0
and ``time`` as "HHMM". A period without a close is open until midnight, and
a close on a later day (or at/before the opening time) also runs to
midnight. A lone Sunday 0000 opening with no close means open around the
clock.
"""

import datetime as dt
from collections.abc import Sequence

from itinerary_engine.models import (
    Activity,
    Conflict,
    ConflictType,
    OpeningPeriod,
    Severity,
    ValidationStatus,
)
from itinerary_engine.models.common import MINUTES_PER_DAY, format_minutes, parse_hhmm

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def service_weekday(date: dt.date) -> int:
    """Weekday index with Sunday=0."""
    return (date.weekday() + 1) % 7


def period_minutes(period: OpeningPeriod) -> tuple[int, int]:
    """(open, close) in minutes since midnight of the opening day."""
    open_minutes = parse_hhmm(period.open.time)
    if period.close is None:
        return open_minutes, MINUTES_PER_DAY

    close_minutes = parse_hhmm(period.close.time)
    if period.close.day != period.open.day or close_minutes <= open_minutes:
        close_minutes = MINUTES_PER_DAY
    return open_minutes, close_minutes


def is_always_open(periods: Sequence[OpeningPeriod]) -> bool:
    """A single Sunday 0000 opening with no close marks a venue open 24/7."""
    if len(periods) != 1:
        return False
    period = periods[0]
    return period.close is None and period.open.day == 0 and parse_hhmm(period.open.time) == 0


def open_windows(periods: Sequence[OpeningPeriod], weekday: int) -> list[tuple[int, int]]:
    """Sorted (open, close) windows for ``weekday``."""
    if is_always_open(periods):
        return [(0, MINUTES_PER_DAY)]
    return sorted(period_minutes(p) for p in periods if p.open.day == weekday)


def is_open_at(activity: Activity, date: dt.date, minute: int) -> bool:
    """Whether starting ``activity`` at ``minute`` on ``date`` passes the hours check.

    Activities the hours check skips or cannot judge count as open.
    """
    if activity.place is None or activity.validation_status == ValidationStatus.fallback:
        return True
    periods = activity.place.opening_periods
    if not periods:
        return True
    windows = open_windows(periods, service_weekday(date))
    return any(open_at <= minute <= close_at for open_at, close_at in windows)


def check_availability(activities: Sequence[Activity], date: dt.date) -> list[Conflict]:
    """Flag activities scheduled while their venue is closed.

    Activities without place data or with fallback data are skipped.

    Args:
        activities: Activities in scheduled order
        date: Calendar date of the day

    Returns:
        Conflicts in activity order
    """
    conflicts: list[Conflict] = []
    weekday = service_weekday(date)
    weekday_name = WEEKDAY_NAMES[weekday]

    for i, activity in enumerate(activities):
        if activity.place is None or activity.validation_status == ValidationStatus.fallback:
            continue

        scheduled = activity.time.start_minutes
        base = {"activity": activity.name, "scheduled_time": f"{activity.time.start:%H:%M}"}
        periods = activity.place.opening_periods

        if not periods:
            conflicts.append(
                Conflict(
                    type=ConflictType.missing_hours_data,
                    severity=Severity.low,
                    activities=[i],
                    message=f'No opening hours data for "{activity.name}"',
                    details={**base, "recommendation": "Verify hours manually or assume open"},
                )
            )
            continue

        windows = open_windows(periods, weekday)
        if not windows:
            conflicts.append(
                Conflict(
                    type=ConflictType.closed_all_day,
                    severity=Severity.critical,
                    activities=[i],
                    message=f'"{activity.name}" is closed on {weekday_name}',
                    details={**base, "day_of_week": weekday_name},
                )
            )
            continue

        if any(open_at <= scheduled <= close_at for open_at, close_at in windows):
            continue

        last_close = max(close_at for _, close_at in windows)
        if scheduled > last_close:
            conflicts.append(
                Conflict(
                    type=ConflictType.after_closing,
                    severity=Severity.high,
                    activities=[i],
                    message=(
                        f'"{activity.name}" closes at {format_minutes(last_close)}, '
                        f"scheduled at {base['scheduled_time']}"
                    ),
                    details={
                        **base,
                        "closing_time": format_minutes(last_close),
                        "minutes_after_closing": scheduled - last_close,
                    },
                )
            )
            continue

        # Before the first opening, or during a midday break
        next_open = min(open_at for open_at, _ in windows if open_at > scheduled)
        conflicts.append(
            Conflict(
                type=ConflictType.before_opening,
                severity=Severity.high,
                activities=[i],
                message=(
                    f'"{activity.name}" opens at {format_minutes(next_open)}, '
                    f"scheduled at {base['scheduled_time']}"
                ),
                details={
                    **base,
                    "opening_time": format_minutes(next_open),
                    "minutes_before_opening": next_open - scheduled,
                },
            )
        )

    return conflicts

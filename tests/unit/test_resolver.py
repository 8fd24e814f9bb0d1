"""Unit tests for conflict resolution."""

import pytest
from hypothesis import given
from hypothesis import settings as hypothesis_settings
from hypothesis import strategies as st

from itinerary_engine.config import Settings
from itinerary_engine.metrics import MetricsClient
from itinerary_engine.models import (
    Conflict,
    ConflictType,
    Geo,
    ReplacementResult,
    Severity,
    TravelStyle,
    ValidationStatus,
)
from itinerary_engine.models.common import format_minutes
from itinerary_engine.repair import (
    ResolutionContext,
    ResolutionType,
    can_shift,
    resolve_conflicts,
    shift_activity,
)
from itinerary_engine.verify import detect_conflicts
from tests.builders import daily_period, make_activity, make_day
from tests.fakes import FakeContentGenerator, FakeDistanceService, FakePlaceValidator

MON = 1
BASE = Geo(lat=48.85, lng=2.35)
ONE_KM = Geo(lat=48.859, lng=2.35)
TWO_KM = Geo(lat=48.868, lng=2.35)
RODIN = Geo(lat=48.855, lng=2.316)
ALL_DAY = [daily_period(MON, "0800", "2200")]
TUESDAY_ONLY = [daily_period(2, "0900", "1800")]


def _replacement(name: str, admission: str | None = None) -> ReplacementResult:
    activity = make_activity(
        name, "00:00", "01:00", BASE, admission=admission, periods=ALL_DAY
    )
    return ReplacementResult(ok=True, activity=activity)


def _detect(day, settings, ceiling=None):
    return detect_conflicts(day, FakeDistanceService(), ceiling, settings)


def test_can_shift_rules() -> None:
    activities = [
        make_activity("A", "09:00", "10:00"),
        make_activity("B", "10:05", "11:00"),
        make_activity("C", "11:30", "12:00"),
    ]

    assert can_shift(activities, 1, 15, buffer_min=15)
    assert not can_shift(activities, 1, 16, buffer_min=15)
    # Last activity only has to stay within the day
    assert can_shift(activities, 2, 600)
    assert not can_shift(activities, 2, 720)


def test_shift_activity_returns_a_copy() -> None:
    activity = make_activity("A", "09:00", "10:00")

    shifted = shift_activity(activity, 25)

    assert f"{shifted.time.start:%H:%M}-{shifted.time.end:%H:%M}" == "09:25-10:25"
    assert f"{activity.time.start:%H:%M}" == "09:00"


def test_buffer_conflict_shifts_later_activity(
    settings: Settings, metrics: MetricsClient
) -> None:
    day = make_day(
        [
            make_activity("Louvre", "09:00", "10:00", BASE, periods=ALL_DAY),
            make_activity("Tuileries", "10:05", "11:00", BASE, periods=ALL_DAY),
        ]
    )

    result = resolve_conflicts(
        day, _detect(day, settings), FakeContentGenerator(), settings=settings, metrics=metrics
    )

    assert result.resolved
    assert result.status == "fully_resolved"
    [resolution] = result.resolutions
    assert resolution.type == ResolutionType.timeline_adjusted
    assert resolution.adjustment_minutes == 10
    assert f"{result.activities[1].time.start:%H:%M}" == "10:15"
    assert f"{day.activities[1].time.start:%H:%M}" == "10:05"
    assert metrics.resolution_counts["timeline_adjusted"] == 1
    assert metrics.repair_successes == 1


def test_buffer_conflict_that_cannot_shift_fails(settings: Settings) -> None:
    day = make_day(
        [
            make_activity("A", "09:00", "10:00", BASE, periods=ALL_DAY),
            make_activity("B", "10:05", "11:00", BASE, periods=ALL_DAY),
            make_activity("C", "11:10", "12:00", BASE, periods=ALL_DAY),
        ]
    )

    result = resolve_conflicts(
        day, _detect(day, settings), FakeContentGenerator(), settings=settings
    )

    assert not result.resolved
    assert result.status == "partially_resolved"
    assert [r.type for r in result.resolutions] == [ResolutionType.adjustment_failed]
    assert result.activities[1] == day.activities[1]


def test_closed_venue_is_regenerated_in_same_window(settings: Settings) -> None:
    day = make_day(
        [
            make_activity("Louvre", "10:00", "12:00", BASE, periods=TUESDAY_ONLY),
            make_activity("Orsay", "14:00", "16:00", BASE, periods=ALL_DAY),
        ]
    )
    generator = FakeContentGenerator(replacements=[_replacement("Musée Rodin")])
    context = ResolutionContext(travel_style=TravelStyle.culture, day_theme="museums")

    result = resolve_conflicts(day, _detect(day, settings), generator, context, settings=settings)

    assert result.resolved
    [resolution] = result.resolutions
    assert resolution.type == ResolutionType.activity_regenerated
    assert resolution.original_activity == "Louvre"
    assert resolution.new_activity == "Musée Rodin"
    assert result.activities[0].name == "Musée Rodin"
    assert result.activities[0].time == day.activities[0].time
    assert result.activities[0].validation_status == ValidationStatus.fallback

    [request] = generator.requests
    assert request.exclude_places == ["Louvre", "Orsay"]
    assert request.require_availability
    assert request.travel_style == "culture"
    assert request.day_theme == "museums"
    assert request.day_of_week == "Monday"


def test_repeated_excluded_place_uses_an_attempt(settings: Settings) -> None:
    day = make_day(
        [make_activity("Louvre", "10:00", "12:00", BASE, periods=TUESDAY_ONLY)]
    )
    generator = FakeContentGenerator(
        replacements=[_replacement("louvre"), _replacement("Petit Palais")]
    )

    result = resolve_conflicts(day, _detect(day, settings), generator, settings=settings)

    [resolution] = result.resolutions
    assert resolution.success
    assert resolution.attempts == 2
    assert result.activities[0].name == "Petit Palais"


def test_regeneration_gives_up_after_attempt_limit(settings: Settings) -> None:
    day = make_day(
        [make_activity("Louvre", "10:00", "12:00", BASE, periods=TUESDAY_ONLY)]
    )
    generator = FakeContentGenerator()

    result = resolve_conflicts(day, _detect(day, settings), generator, settings=settings)

    [resolution] = result.resolutions
    assert resolution.type == ResolutionType.regeneration_failed
    assert resolution.attempts == settings.max_regeneration_attempts == 2
    assert len(generator.requests) == 2
    assert not result.resolved
    assert result.activities == day.activities


def test_travel_shortfall_shifts_when_possible(settings: Settings) -> None:
    day = make_day(
        [
            make_activity("Louvre", "09:00", "10:00", BASE, periods=ALL_DAY),
            make_activity("Orsay", "10:10", "11:00", ONE_KM, periods=ALL_DAY),
        ]
    )
    conflicts = _detect(day, settings)
    assert [c.type for c in conflicts] == [ConflictType.insufficient_travel_time]

    result = resolve_conflicts(day, conflicts, FakeContentGenerator(), settings=settings)

    [resolution] = result.resolutions
    assert resolution.type == ResolutionType.timeline_adjusted
    assert resolution.adjustment_minutes == 3
    assert result.activities[1].time.start_minutes - result.activities[0].time.end_minutes == 13


def test_travel_shortfall_regenerates_nearby_when_shift_blocked(settings: Settings) -> None:
    day = make_day(
        [
            make_activity("Louvre", "09:00", "10:00", BASE, periods=ALL_DAY),
            make_activity("Orsay", "10:05", "11:00", ONE_KM, periods=ALL_DAY),
            make_activity("Lunch", "11:10", "12:00", ONE_KM, periods=ALL_DAY),
        ]
    )
    conflicts = [c for c in _detect(day, settings) if c.severity == Severity.critical]
    generator = FakeContentGenerator(replacements=[_replacement("Sainte-Chapelle")])

    result = resolve_conflicts(day, conflicts, generator, settings=settings)

    [resolution] = result.resolutions
    assert resolution.type == ResolutionType.activity_regenerated
    assert resolution.activity_index == 1
    [request] = generator.requests
    assert request.near_location == BASE
    assert request.max_distance_km == settings.regeneration_radius_km


def test_budget_replaces_most_expensive_activity(settings: Settings) -> None:
    day = make_day(
        [
            make_activity("Orsay", "09:00", "11:00", BASE, admission="€16", periods=ALL_DAY),
            make_activity("Louvre", "12:00", "14:00", BASE, admission="€22", periods=ALL_DAY),
        ]
    )
    conflicts = _detect(day, settings, ceiling=30)
    generator = FakeContentGenerator(replacements=[_replacement("Jardin du Luxembourg", "Free")])

    result = resolve_conflicts(day, conflicts, generator, budget_ceiling=30, settings=settings)

    [resolution] = result.resolutions
    assert resolution.conflict_type == ConflictType.budget_exceeded
    assert resolution.original_activity == "Louvre"
    [request] = generator.requests
    assert request.budget_constraint == "free_or_low_cost"
    assert request.remaining_budget == pytest.approx(14)
    assert _detect(make_day(result.activities), settings, ceiling=30) == []


def test_budget_with_only_free_activities_fails(settings: Settings) -> None:
    day = make_day([make_activity("Park", "09:00", "10:00", BASE, admission="Free")])
    conflict = Conflict(
        type=ConflictType.budget_exceeded,
        severity=Severity.high,
        activities=[0],
        message="over",
    )

    result = resolve_conflicts(
        day, [conflict], FakeContentGenerator(), budget_ceiling=0, settings=settings
    )

    assert [r.type for r in result.resolutions] == [ResolutionType.regeneration_failed]


def test_low_conflicts_are_logged_once(settings: Settings) -> None:
    day = make_day(
        [
            make_activity("Pont Neuf", "09:00", "10:00", BASE),
            make_activity("Île Saint-Louis", "10:30", "11:00", BASE),
        ]
    )

    result = resolve_conflicts(
        day, _detect(day, settings), FakeContentGenerator(), settings=settings
    )

    [resolution] = result.resolutions
    assert resolution.type == ResolutionType.logged_warnings
    assert resolution.count == 2
    assert result.resolved


def test_conflicts_handled_in_severity_order(settings: Settings) -> None:
    day = make_day(
        [
            make_activity("Louvre", "10:00", "11:00", BASE, periods=TUESDAY_ONLY),
            make_activity("Orsay", "11:05", "12:00", BASE, periods=ALL_DAY),
        ]
    )
    conflicts = _detect(day, settings)
    assert conflicts[0].severity == Severity.medium

    result = resolve_conflicts(
        day,
        conflicts,
        FakeContentGenerator(replacements=[_replacement("Rodin")]),
        settings=settings,
    )

    assert [r.conflict_type for r in result.resolutions] == [
        ConflictType.closed_all_day,
        ConflictType.insufficient_buffer,
    ]


def test_can_shift_leaves_time_to_walk_to_next() -> None:
    activities = [
        make_activity("A", "09:00", "10:00"),
        make_activity("B", "10:05", "11:00"),
        make_activity("C", "11:30", "12:30"),
    ]

    assert can_shift(activities, 1, 10, buffer_min=15)
    assert not can_shift(activities, 1, 10, buffer_min=15, walk_to_next_min=25)
    assert can_shift(activities, 1, 5, buffer_min=15, walk_to_next_min=25)


def test_shift_that_cuts_the_walk_to_next_fails(settings: Settings) -> None:
    distance = FakeDistanceService()
    day = make_day(
        [
            make_activity("A", "09:00", "10:00", BASE, periods=ALL_DAY),
            make_activity("B", "10:05", "11:00", BASE, periods=ALL_DAY),
            make_activity("C", "11:30", "12:30", TWO_KM, periods=ALL_DAY),
        ]
    )
    conflicts = detect_conflicts(day, distance, settings=settings)
    assert [c.type for c in conflicts] == [ConflictType.insufficient_buffer]

    result = resolve_conflicts(
        day, conflicts, FakeContentGenerator(), settings=settings, distance_service=distance
    )

    assert not result.resolved
    assert [r.type for r in result.resolutions] == [ResolutionType.adjustment_failed]
    assert result.activities == day.activities


def test_shift_past_closing_time_fails(settings: Settings) -> None:
    closes_early = [daily_period(MON, "0800", "1010")]
    day = make_day(
        [
            make_activity("A", "09:00", "10:00", BASE, periods=ALL_DAY),
            make_activity("B", "10:05", "11:00", BASE, periods=closes_early),
            make_activity("C", "12:00", "13:00", BASE, periods=ALL_DAY),
        ]
    )
    conflicts = _detect(day, settings)
    assert [c.type for c in conflicts] == [ConflictType.insufficient_buffer]

    result = resolve_conflicts(
        day,
        conflicts,
        FakeContentGenerator(),
        settings=settings,
        distance_service=FakeDistanceService(),
    )

    assert not result.resolved
    assert [r.type for r in result.resolutions] == [ResolutionType.adjustment_failed]
    assert _detect(make_day(result.activities), settings) == conflicts


def test_replacement_takes_validated_place_data(settings: Settings) -> None:
    day = make_day(
        [make_activity("Louvre", "10:00", "12:00", BASE, periods=TUESDAY_ONLY)]
    )
    validator = FakePlaceValidator({"Musée Rodin": RODIN}, hours={"Musée Rodin": ALL_DAY})
    generator = FakeContentGenerator(replacements=[_replacement("Musée Rodin")])

    result = resolve_conflicts(
        day, _detect(day, settings), generator, settings=settings, validator=validator
    )

    assert result.resolved
    replacement = result.activities[0]
    assert replacement.validation_status == ValidationStatus.validated
    assert replacement.coordinates == RODIN
    assert replacement.place is not None
    assert replacement.place.place_id == "place-musée-rodin"
    assert replacement.place.opening_periods == ALL_DAY
    assert validator.calls == ["Musée Rodin"]


def test_unvalidated_replacement_uses_an_attempt(settings: Settings) -> None:
    day = make_day(
        [make_activity("Louvre", "10:00", "12:00", BASE, periods=TUESDAY_ONLY)]
    )
    validator = FakePlaceValidator({"Musée Rodin": RODIN})
    generator = FakeContentGenerator(
        replacements=[_replacement("Musée Imaginaire"), _replacement("Musée Rodin")]
    )

    result = resolve_conflicts(
        day, _detect(day, settings), generator, settings=settings, validator=validator
    )

    [resolution] = result.resolutions
    assert resolution.success
    assert resolution.attempts == 2
    assert result.activities[0].name == "Musée Rodin"
    assert generator.requests[1].exclude_places == ["Louvre", "Musée Imaginaire"]


def test_replacements_failing_validation_give_up(settings: Settings) -> None:
    day = make_day(
        [make_activity("Louvre", "10:00", "12:00", BASE, periods=TUESDAY_ONLY)]
    )
    generator = FakeContentGenerator(
        replacements=[_replacement("Musée Imaginaire"), _replacement("Musée Fantôme")]
    )

    result = resolve_conflicts(
        day,
        _detect(day, settings),
        generator,
        settings=settings,
        validator=FakePlaceValidator({}),
    )

    [resolution] = result.resolutions
    assert resolution.type == ResolutionType.regeneration_failed
    assert resolution.reason == 'Replacement "Musée Fantôme" could not be validated'
    assert result.activities == day.activities


@st.composite
def packed_days(draw):
    """Three or four activities from 08:00 with short gaps near central Paris."""
    activities = []
    cursor = 8 * 60
    for i in range(draw(st.integers(min_value=3, max_value=4))):
        duration = draw(st.integers(min_value=15, max_value=90))
        closes = draw(st.sampled_from([None, "1000", "1100", "1230", "1400"]))
        periods = ALL_DAY if closes is None else [daily_period(MON, "0800", closes)]
        north = draw(st.floats(min_value=0, max_value=0.02))
        activities.append(
            make_activity(
                f"Stop {i}",
                format_minutes(cursor),
                format_minutes(cursor + duration),
                Geo(lat=BASE.lat + north, lng=BASE.lng),
                periods=periods,
            )
        )
        cursor += duration + draw(st.integers(min_value=0, max_value=40))
    return make_day(activities)


@hypothesis_settings(max_examples=50, deadline=None)
@given(packed_days())
def test_resolved_day_has_no_blocking_conflicts(day) -> None:
    """A day reported resolved re-checks without critical or high conflicts."""
    settings = Settings()
    distance = FakeDistanceService()
    conflicts = detect_conflicts(day, distance, settings=settings)

    result = resolve_conflicts(
        day, conflicts, FakeContentGenerator(), settings=settings, distance_service=distance
    )

    if not result.resolved:
        return
    after = detect_conflicts(make_day(result.activities), distance, settings=settings)
    assert [c for c in after if c.blocking] == []

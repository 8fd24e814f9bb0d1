"""Unit and property tests for local route optimization."""

from hypothesis import given
from hypothesis import settings as hypothesis_settings
from hypothesis import strategies as st

from itinerary_engine.config import Settings
from itinerary_engine.metrics import MetricsClient
from itinerary_engine.models import Geo
from itinerary_engine.models.common import from_minutes
from itinerary_engine.planning import (
    build_travel_matrix,
    create_time_buckets,
    nearest_neighbor_order,
    optimize_day,
)
from itinerary_engine.planning.optimizer import sort_by_start
from tests.builders import make_activity, make_day
from tests.fakes import FakeDistanceService

BASE = Geo(lat=48.85, lng=2.35)
NEAR = Geo(lat=48.851, lng=2.35)  # ~0.1 km from BASE
FAR = Geo(lat=48.87, lng=2.35)  # ~2.2 km from BASE


def test_time_buckets_split_on_large_gaps() -> None:
    activities = [
        make_activity("A", "09:00", "10:00"),
        make_activity("B", "10:30", "11:00"),
        make_activity("C", "11:31", "12:00"),
        make_activity("D", "12:00", "13:00"),
    ]

    assert create_time_buckets(activities, max_gap_min=30) == [[0, 1], [2, 3]]


def test_travel_matrix_is_symmetric_and_rounded_up(settings: Settings) -> None:
    service = FakeDistanceService()

    matrix = build_travel_matrix([BASE, NEAR, FAR], service, settings)

    assert service.calls == 3
    assert matrix.minutes[0][1] == matrix.minutes[1][0] == 2
    assert matrix.minutes[0][2] == 27
    assert matrix.minutes[1][2] == 26
    assert all(matrix.minutes[i][i] == 0 for i in range(3))
    assert matrix.estimated_pairs == 0


def test_travel_matrix_falls_back_to_estimates(settings: Settings) -> None:
    matrix = build_travel_matrix([BASE, FAR], FakeDistanceService(fail=True), settings)

    assert matrix.estimated_pairs == 1
    assert matrix.minutes[0][1] == 27


def test_nearest_neighbor_starts_from_bucket_head(settings: Settings) -> None:
    matrix = build_travel_matrix([BASE, FAR, NEAR], FakeDistanceService(), settings)

    assert nearest_neighbor_order([0, 1, 2], matrix) == [0, 2, 1]
    assert nearest_neighbor_order([1], matrix) == [1]


def test_reorder_applied_within_bucket(settings: Settings, metrics: MetricsClient) -> None:
    day = make_day(
        [
            make_activity("Louvre", "09:00", "10:00", BASE),
            make_activity("Sacré-Cœur", "10:10", "11:00", FAR),
            make_activity("Tuileries", "11:15", "12:00", NEAR),
        ]
    )

    result = optimize_day(day, FakeDistanceService(), settings, metrics=metrics)

    assert result.optimized
    assert result.improvement_minutes == 25
    assert result.before is not None and result.before.total_minutes == 53
    assert result.after is not None and result.after.total_minutes == 28
    assert [a.name for a in result.activities] == ["Louvre", "Tuileries", "Sacré-Cœur"]
    # The bucket is laid out again from its first start with the same gaps
    assert [f"{a.time.start:%H:%M}" for a in result.activities] == ["09:00", "10:10", "11:10"]
    assert [a.time.duration_minutes for a in result.activities] == [60, 45, 50]
    assert f"{result.activities[-1].time.end:%H:%M}" == "12:00"
    assert metrics.optimizer_savings == [25]
    # Input is untouched
    assert day.activities[1].name == "Sacré-Cœur"


def test_reorder_keeps_each_activity_duration(settings: Settings) -> None:
    day = make_day(
        [
            make_activity("Lunch", "11:00", "12:00", BASE),
            make_activity("Far cafe", "12:10", "13:40", FAR),
            make_activity("Near cafe", "13:50", "14:10", NEAR),
        ]
    )

    result = optimize_day(day, FakeDistanceService(), settings)

    assert result.optimized
    windows = {a.name: f"{a.time.start:%H:%M}-{a.time.end:%H:%M}" for a in result.activities}
    assert windows == {
        "Lunch": "11:00-12:00",
        "Near cafe": "12:10-12:30",
        "Far cafe": "12:40-14:10",
    }


def test_small_saving_is_not_applied(settings: Settings, metrics: MetricsClient) -> None:
    day = make_day(
        [
            make_activity("A", "09:00", "10:00", BASE),
            make_activity("B", "10:10", "11:00", Geo(lat=48.854, lng=2.35)),
            make_activity("C", "11:15", "12:00", NEAR),
        ]
    )

    result = optimize_day(day, FakeDistanceService(), settings, metrics=metrics)

    assert not result.optimized
    assert result.reason == "improvement_below_threshold"
    assert result.activities == day.activities
    assert metrics.optimizer_runs == 1
    assert metrics.optimizer_savings == []


def test_activities_never_cross_bucket_boundaries(settings: Settings) -> None:
    day = make_day(
        [
            make_activity("A", "09:00", "10:00", BASE),
            make_activity("B", "10:10", "11:00", FAR),
            make_activity("C", "12:00", "13:00", NEAR),
        ]
    )

    result = optimize_day(day, FakeDistanceService(), settings)

    assert not result.optimized
    assert [a.name for a in result.activities] == ["A", "B", "C"]


def test_missing_coordinates_leaves_day_unchanged(settings: Settings) -> None:
    day = make_day(
        [
            make_activity("A", "09:00", "10:00", BASE),
            make_activity("B", "10:10", "11:00", None),
        ]
    )
    service = FakeDistanceService()

    result = optimize_day(day, service, settings)

    assert result.reason == "missing_coordinates"
    assert service.calls == 0


def test_single_activity_is_left_alone(settings: Settings) -> None:
    day = make_day([make_activity("A", "09:00", "10:00", BASE)])

    result = optimize_day(day, FakeDistanceService(), settings)

    assert result.reason == "insufficient_activities"
    assert result.activities == day.activities


def test_distance_failures_fall_back_to_estimates(settings: Settings) -> None:
    day = make_day(
        [
            make_activity("Louvre", "09:00", "10:00", BASE),
            make_activity("Sacré-Cœur", "10:10", "11:00", FAR),
            make_activity("Tuileries", "11:15", "12:00", NEAR),
        ]
    )

    result = optimize_day(day, FakeDistanceService(fail=True), settings)

    assert result.optimized
    assert [a.name for a in result.activities] == ["Louvre", "Tuileries", "Sacré-Cœur"]


def _gaps(activities) -> list[int]:
    return [b.time.start_minutes - a.time.end_minutes for a, b in zip(activities, activities[1:])]


schedule = st.lists(
    st.tuples(
        st.integers(min_value=0, max_value=60),  # gap before the activity
        st.integers(min_value=15, max_value=60),  # duration
        st.floats(min_value=48.80, max_value=48.90),
        st.floats(min_value=2.30, max_value=2.40),
    ),
    min_size=2,
    max_size=7,
)


@hypothesis_settings(max_examples=60, deadline=None)
@given(schedule)
def test_reorder_stays_within_buckets(entries) -> None:
    """Reordering only permutes activities inside their time bucket."""
    settings = Settings()
    activities = []
    cursor = 6 * 60
    for i, (gap, duration, lat, lng) in enumerate(entries):
        start = cursor + gap
        end = start + duration
        cursor = end
        activities.append(
            make_activity(
                f"A{i}",
                f"{from_minutes(start):%H:%M}",
                f"{from_minutes(end):%H:%M}",
                Geo(lat=lat, lng=lng),
            )
        )
    day = make_day(activities)

    result = optimize_day(day, FakeDistanceService(), settings)

    if not result.optimized:
        assert result.activities == day.activities
        return

    assert result.improvement_minutes >= settings.reorder_threshold_min
    ordered = sort_by_start(day.activities)
    durations = {a.name: a.time.duration_minutes for a in ordered}
    assert {a.name: a.time.duration_minutes for a in result.activities} == durations
    assert _gaps(result.activities) == _gaps(ordered)
    assert result.activities[0].time.start == ordered[0].time.start
    for bucket in create_time_buckets(ordered, settings.bucket_gap_min):
        before = {ordered[i].name for i in bucket}
        after = {result.activities[i].name for i in bucket}
        assert before == after

"""Integration tests for the itinerary endpoints with in-memory collaborators."""

import pytest
from fastapi.testclient import TestClient

from itinerary_engine.api.deps import (
    get_distance_service,
    get_engine_settings,
    get_generator,
    get_limiter,
    get_metrics,
    get_validator,
)
from itinerary_engine.main import create_app
from itinerary_engine.models import (
    CandidatePlace,
    CandidateProposal,
    Geo,
    ReplacementResult,
)
from itinerary_engine.rate_limit import TokenBucketLimiter
from tests.builders import daily_period, make_activity, make_day
from tests.fakes import FakeContentGenerator, FakeDistanceService, FakePlaceValidator

MON = 1
BASE = Geo(lat=48.85, lng=2.35)
NEAR = Geo(lat=48.851, lng=2.35)
FAR = Geo(lat=48.87, lng=2.35)
ALL_DAY = [daily_period(MON, "0800", "2200")]
TUESDAY_ONLY = [daily_period(2, "0900", "1800")]

GAZETTEER = {
    "Aix-en-Provence": Geo(lat=43.5297, lng=5.4474),
    "Barcelona": Geo(lat=41.3874, lng=2.1686),
    "Arles": Geo(lat=43.6768, lng=4.6303),
    "Montpellier": Geo(lat=43.6108, lng=3.8767),
    "Perpignan": Geo(lat=42.6887, lng=2.8948),
    "Girona": Geo(lat=41.9794, lng=2.8214),
    "Musée d'Orsay": Geo(lat=48.86, lng=2.3266),
}
OPENING_HOURS = {"Musée d'Orsay": ALL_DAY}

TRIP = {
    "origin": "Aix-en-Provence",
    "destination": "Barcelona",
    "stop_count": 2,
    "travel_style": "culture",
    "nights_on_road": 4,
    "nights_at_destination": 2,
}


@pytest.fixture
def generator():
    proposal = CandidateProposal(
        ok=True,
        waypoints=[
            CandidatePlace(name="Arles", highlights=["Roman arena"]),
            CandidatePlace(name="Montpellier"),
            CandidatePlace(name="Perpignan"),
        ],
        alternates=[CandidatePlace(name="Girona")],
    )
    return FakeContentGenerator(proposal=proposal)


@pytest.fixture
def distance_service():
    return FakeDistanceService()


@pytest.fixture
def client(settings, metrics, generator, distance_service):
    """Create a test client with collaborator overrides."""
    app = create_app()
    limiter = TokenBucketLimiter(rate_per_s=1000, capacity=1000)

    app.dependency_overrides[get_engine_settings] = lambda: settings
    app.dependency_overrides[get_metrics] = lambda: metrics
    app.dependency_overrides[get_generator] = lambda: generator
    app.dependency_overrides[get_validator] = lambda: FakePlaceValidator(
        GAZETTEER, hours=OPENING_HOURS
    )
    app.dependency_overrides[get_distance_service] = lambda: distance_service
    app.dependency_overrides[get_limiter] = lambda: limiter

    yield TestClient(app)

    app.dependency_overrides.clear()


def _day_json(activities):
    return make_day(activities).model_dump(mode="json")


class TestWaypoints:
    """Route skeleton endpoints."""

    def test_create_route_skeleton(self, client, generator):
        response = client.post("/itinerary/waypoints", json=TRIP)

        assert response.status_code == 200
        data = response.json()
        assert data["origin"]["name"] == "Aix-en-Provence"
        assert [w["name"] for w in data["waypoints"]] == ["Arles", "Montpellier"]
        assert [w["nights"] for w in data["waypoints"]] == [2, 2]
        assert data["destination"]["nights"] == 2
        assert data["allocation"]["status"] == "complete"
        assert generator.contexts[0].waypoint_count == 2

    def test_invalid_trip_rejected(self, client):
        response = client.post("/itinerary/waypoints", json={**TRIP, "stop_count": 0})

        assert response.status_code == 422

    def test_promote_alternate(self, client):
        skeleton = client.post("/itinerary/waypoints", json=TRIP).json()

        response = client.post(
            "/itinerary/waypoints/promote",
            json={"skeleton": skeleton, "name": "Girona"},
        )

        assert response.status_code == 200
        data = response.json()
        assert [w["name"] for w in data["waypoints"]] == ["Arles", "Montpellier", "Girona"]
        assert sum(w["nights"] for w in data["waypoints"]) == 4
        assert all(a["name"] != "Girona" for a in data["alternates"])

    def test_promote_unknown_alternate_is_a_no_op(self, client):
        skeleton = client.post("/itinerary/waypoints", json=TRIP).json()

        response = client.post(
            "/itinerary/waypoints/promote",
            json={"skeleton": skeleton, "name": "Atlantis"},
        )

        assert response.status_code == 200
        assert response.json() == skeleton


class TestDays:
    """Per-day optimization, detection and repair endpoints."""

    def test_optimize_reorders_within_bucket(self, client):
        day = _day_json(
            [
                make_activity("Louvre", "09:00", "10:00", BASE),
                make_activity("Sacré-Cœur", "10:10", "11:00", FAR),
                make_activity("Tuileries", "11:15", "12:00", NEAR),
            ]
        )

        response = client.post("/itinerary/days/optimize", json=day)

        assert response.status_code == 200
        data = response.json()
        assert data["optimized"] is True
        assert data["improvement_minutes"] == 25
        assert [a["name"] for a in data["activities"]] == [
            "Louvre",
            "Tuileries",
            "Sacré-Cœur",
        ]

    def test_conflicts_for_buffer_and_budget(self, client):
        day = _day_json(
            [
                make_activity("Louvre", "09:00", "10:00", BASE, "€22", ALL_DAY),
                make_activity("Tuileries", "10:05", "11:00", NEAR, "€5", ALL_DAY),
            ]
        )

        response = client.post(
            "/itinerary/days/conflicts", json={"day": day, "budget_ceiling": 20}
        )

        assert response.status_code == 200
        types = [c["type"] for c in response.json()]
        assert types == ["insufficient_buffer", "budget_exceeded"]

    def test_negative_budget_rejected(self, client):
        day = _day_json([make_activity("Louvre", "09:00", "10:00", BASE)])

        response = client.post(
            "/itinerary/days/conflicts", json={"day": day, "budget_ceiling": -1}
        )

        assert response.status_code == 422

    def test_malformed_opening_time_rejected(self, client):
        day = _day_json([make_activity("Louvre", "09:00", "10:00", BASE, periods=ALL_DAY)])
        day["activities"][0]["place"]["opening_periods"][0]["open"]["time"] = "930"

        response = client.post("/itinerary/days/conflicts", json={"day": day})

        assert response.status_code == 422

    def test_resolve_shifts_later_activity(self, client):
        day = _day_json(
            [
                make_activity("Louvre", "09:00", "10:00", BASE, periods=ALL_DAY),
                make_activity("Tuileries", "10:05", "11:00", NEAR, periods=ALL_DAY),
            ]
        )
        conflicts = client.post("/itinerary/days/conflicts", json={"day": day}).json()

        response = client.post(
            "/itinerary/days/resolve", json={"day": day, "conflicts": conflicts}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["resolved"] is True
        assert data["resolutions"][0]["type"] == "timeline_adjusted"
        assert data["resolutions"][0]["adjustment_minutes"] == 10
        assert data["activities"][1]["time"]["start"] == "10:15:00"

    def test_process_day_regenerates_closed_venue(self, client, generator, metrics):
        replacement = make_activity("Musée d'Orsay", "00:00", "01:00", BASE, periods=ALL_DAY)
        generator.replacements.append(ReplacementResult(ok=True, activity=replacement))
        day = _day_json(
            [make_activity("Louvre", "10:00", "12:00", BASE, periods=TUESDAY_ONLY)]
        )

        response = client.post(
            "/itinerary/days/process",
            json={"day": day, "context": {"day_theme": "museums"}},
        )

        assert response.status_code == 200
        data = response.json()
        result, report = data["result"], data["report"]
        assert result["status"] == "fully_resolved"
        assert result["conflicts"] == []
        activity = result["day"]["activities"][0]
        assert activity["name"] == "Musée d'Orsay"
        assert activity["time"] == {"start": "10:00:00", "end": "12:00:00"}
        assert activity["validation_status"] == "validated"
        assert activity["place"]["place_id"] == "place-musée-d'orsay"
        assert report["summary"] == "1 conflicts resolved, 0 unresolved"
        assert generator.requests[0].day_theme == "museums"
        assert "Louvre" in generator.requests[0].exclude_places
        assert metrics.repair_rounds == [1]

    def test_process_day_without_replacement_is_partial(self, client):
        day = _day_json(
            [make_activity("Louvre", "10:00", "12:00", BASE, periods=TUESDAY_ONLY)]
        )

        response = client.post("/itinerary/days/process", json={"day": day})

        assert response.status_code == 200
        report = response.json()["report"]
        assert report["status"] == "partially_resolved"
        assert report["failed"] == 1
        assert report["remaining_conflicts"] == 1

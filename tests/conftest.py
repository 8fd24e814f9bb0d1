"""Pytest configuration and shared fixtures."""

import pytest

from itinerary_engine.config import Settings
from itinerary_engine.metrics import MetricsClient


@pytest.fixture
def settings() -> Settings:
    """Create test settings with deterministic retry timing."""
    return Settings(
        openai_api_key="dummy-openai-api-key-for-tests",
        google_places_api_key="dummy-google-api-key-for-tests",
        retry_jitter_min_ms=0,
        retry_jitter_max_ms=0,
    )


@pytest.fixture
def metrics() -> MetricsClient:
    """Create a fresh metrics client."""
    return MetricsClient()

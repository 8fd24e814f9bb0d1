"""FastAPI application factory."""

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from itinerary_engine import __version__
from itinerary_engine.api.health import get_health
from itinerary_engine.api.itinerary import router as itinerary_router
from itinerary_engine.config import get_settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    app = FastAPI(
        title="Itinerary Engine API",
        description="Waypoint selection, route optimization and day-plan repair",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.ui_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoint
    @app.get("/healthz")
    def healthz() -> dict[str, Any]:
        """Health check endpoint."""
        return get_health().model_dump()

    app.include_router(itinerary_router)

    logger.info("Application created", extra={"version": __version__})
    return app


# Create app instance for uvicorn
app = create_app()

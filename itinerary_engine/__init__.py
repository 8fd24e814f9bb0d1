"""Trip itinerary engine: waypoint selection, day-route optimization and plan repair."""

__version__ = "0.1.0"

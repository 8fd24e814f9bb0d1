"""HTTP surface for the itinerary engine."""

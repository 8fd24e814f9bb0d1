"""Prompt templates for the generative content service."""

from itinerary_engine.models import DiscoveryContext, RegenerationRequest, TravelStyle

STYLE_DESCRIPTIONS: dict[str, str] = {
    TravelStyle.adventure.value: "outdoor activities, hiking, nature, scenic landscapes",
    TravelStyle.culture.value: "historical sites, museums, architecture, cultural heritage",
    TravelStyle.food.value: "culinary experiences, local cuisine, food markets, wineries",
    TravelStyle.hidden_gems.value: (
        "off-the-beaten-path locations, local secrets, unique experiences"
    ),
    TravelStyle.best_overall.value: (
        "balanced mix of popular attractions and unique experiences"
    ),
}

BUDGET_DESCRIPTIONS: dict[str, str] = {
    "budget": "affordable, budget-friendly destinations",
    "mid": "moderate pricing, good value destinations",
    "luxury": "premium destinations with high-end offerings",
}

DISCOVERY_SYSTEM_PROMPT = (
    "You are an expert travel route planner. "
    "Return ONLY valid JSON with no markdown or extra text."
)

REPLACEMENT_SYSTEM_PROMPT = (
    "You are a local travel expert who fixes broken day plans. "
    "Return ONLY valid JSON describing a single activity."
)


def _place_label(name: str, country: str | None) -> str:
    return f"{name}, {country}" if country else name


def build_discovery_prompt(context: DiscoveryContext) -> str:
    """Prompt asking for exactly ``waypoint_count`` waypoints plus alternates."""
    style = context.travel_style.value
    origin = _place_label(context.origin, context.origin_country)
    destination = _place_label(context.destination, context.destination_country)

    return f"""You are a {style} travel expert planning a road trip from {origin} to {destination}.

TASK: Propose EXACTLY {context.waypoint_count} waypoint cities between the origin and the destination,
plus {context.alternate_count} alternate cities that could replace a waypoint.
The trip spends {context.nights_on_road} nights at waypoints.

TRAVEL STYLE: {style}
Focus on: {STYLE_DESCRIPTIONS.get(style, STYLE_DESCRIPTIONS[TravelStyle.best_overall.value])}

BUDGET: {context.budget}
Target: {BUDGET_DESCRIPTIONS.get(context.budget, BUDGET_DESCRIPTIONS["mid"])}

REQUIREMENTS:
1. The origin is {origin} and the destination is {destination}. Do not change them.
2. Cities should be 80-250km apart (1-3 hours driving)
3. Create a logical geographic flow (no excessive backtracking)
4. Match {style} preferences at each stop
5. Ensure all cities are real, accessible, and worth visiting

OUTPUT FORMAT (return ONLY this JSON, no markdown):
{{
  "origin": {{"city": "{context.origin}", "country": "...", "why": "..."}},
  "destination": {{"city": "{context.destination}", "country": "...", "why": "..."}},
  "waypoints": [
    {{
      "city": "Aix-en-Provence",
      "country": "France",
      "why": "Charming historic center, Cézanne heritage, perfect {style} stop",
      "highlights": ["historic center", "Cézanne trail", "local markets"],
      "recommended_min_nights": 1,
      "recommended_max_nights": 3
    }}
  ],
  "alternates": [
    {{"city": "...", "country": "...", "why": "...", "highlights": ["..."]}}
  ],
  "theme_insights": {{"summary": "..."}}
}}

IMPORTANT:
- Return EXACTLY {context.waypoint_count} waypoints and {context.alternate_count} alternates
- Ensure geographic logic (no wild zigzags)
- All cities must be real and accessible by car"""


def build_replacement_prompt(request: RegenerationRequest) -> str:
    """Prompt asking for one activity that fits the request's constraints."""
    window = f"{request.time_window.start:%H:%M}-{request.time_window.end:%H:%M}"
    constraints = [
        f"- It must take place between {window} on {request.day_of_week} {request.date}",
        f"- Purpose: {request.purpose}; energy level: {request.energy_level}",
        f"- It should suit a {request.travel_style} traveller on a '{request.day_theme}' day",
    ]
    if request.require_availability:
        constraints.append("- It MUST be open for the whole time window")
    if request.exclude_places:
        constraints.append(f"- Do NOT propose any of: {', '.join(request.exclude_places)}")
    if request.budget_constraint == "free_or_low_cost":
        constraints.append("- It must be free or very low cost")
    elif request.budget_constraint:
        constraints.append(f"- Budget constraint: {request.budget_constraint}")
    if request.remaining_budget is not None:
        constraints.append(f"- Remaining budget for the day: {request.remaining_budget:.2f}")
    if request.near_location is not None:
        radius = request.max_distance_km or 2.0
        constraints.append(
            f"- It must be within {radius:g} km of "
            f"({request.near_location.lat:.5f}, {request.near_location.lng:.5f})"
        )

    rules = "\n".join(constraints)
    return f"""Suggest one replacement activity in {request.city}.

REASON: {request.reason}

CONSTRAINTS:
{rules}

OUTPUT FORMAT (return ONLY this JSON, no markdown):
{{
  "name": "...",
  "type": "{request.purpose}",
  "energy_level": "{request.energy_level}",
  "admission": "€10",
  "coordinates": {{"lat": 0.0, "lng": 0.0}},
  "opening_hours": {{"periods": [{{"open": {{"day": 1, "time": "0900"}}, "close": {{"day": 1, "time": "1800"}}}}]}}
}}"""

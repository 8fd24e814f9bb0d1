"""Waypoint scoring and top-N selection."""

import logging
from collections.abc import Sequence

from itinerary_engine.models import ValidatedPlace

from .types import ScoredWaypoint

logger = logging.getLogger(__name__)

# Maximum points per scoring factor
SCORE_WEIGHTS = {
    "position": 40.0,
    "validation": 30.0,
    "highlights": 20.0,
    "justification": 10.0,
}

POINTS_PER_HIGHLIGHT = 5.0
CHARS_PER_JUSTIFICATION_POINT = 20.0


def score_waypoint(waypoint: ValidatedPlace, index: int, total: int) -> ScoredWaypoint:
    """
    Score a waypoint on four factors.

    - Geographic progression: proposals near the middle of the generator's
      ordering sit best between origin and destination.
    - Validation: verified places with coordinates.
    - Highlights: five points each, capped.
    - Justification: one point per 20 characters of ``why``, capped.

    Args:
        waypoint: Validated waypoint
        index: Position of the waypoint in the proposal order
        total: Number of validated waypoints

    Returns:
        ScoredWaypoint with the feature vector used
    """
    ideal_position = (index + 1) / (total + 1)
    position_fit = 1 - abs(ideal_position - 0.5) * 2

    feature_vector = {
        "position": position_fit * SCORE_WEIGHTS["position"],
        "validation": (
            SCORE_WEIGHTS["validation"]
            if waypoint.verified and waypoint.coordinates is not None
            else 0.0
        ),
        "highlights": min(
            len(waypoint.highlights) * POINTS_PER_HIGHLIGHT, SCORE_WEIGHTS["highlights"]
        ),
        "justification": min(
            len(waypoint.why) / CHARS_PER_JUSTIFICATION_POINT,
            SCORE_WEIGHTS["justification"],
        ),
    }
    return ScoredWaypoint(
        waypoint=waypoint,
        score=sum(feature_vector.values()),
        feature_vector=feature_vector,
    )


def select_top_waypoints(
    waypoints: Sequence[ValidatedPlace], count: int
) -> tuple[list[ValidatedPlace], list[ValidatedPlace]]:
    """
    Keep the ``count`` best-scoring waypoints.

    Ties keep proposal order.

    Returns:
        (selected, discarded), both in descending score order
    """
    scored = [score_waypoint(w, i, len(waypoints)) for i, w in enumerate(waypoints)]
    scored.sort(key=lambda s: s.score, reverse=True)

    _log_score_vectors(scored, count)

    selected = [s.waypoint for s in scored[:count]]
    discarded = [s.waypoint for s in scored[count:]]
    return selected, discarded


def _log_score_vectors(scored: list[ScoredWaypoint], count: int) -> None:
    """Log score vectors for the lowest kept waypoint and the top 2 discarded."""
    if not scored:
        return

    for rank, item in enumerate(scored, start=1):
        if rank == count or count < rank <= count + 2:
            logger.info(
                "Waypoint score vector",
                extra={
                    "rank": rank,
                    "waypoint": item.waypoint.name,
                    "kept": rank <= count,
                    "final_score": item.score,
                    "feature_vector": item.feature_vector,
                },
            )

    logger.info(
        "Waypoint scoring summary",
        extra={
            "total_waypoints": len(scored),
            "kept": min(count, len(scored)),
            "score_range": {
                "min": min(s.score for s in scored),
                "max": max(s.score for s in scored),
            },
        },
    )

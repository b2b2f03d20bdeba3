# summify_search/domain/services/relevance_scoring.py
# Pure domain services: no I/O, deterministic, no external libraries.
"""
Piecewise mapping from a distance in [0, 1] to a 0-100 relevance percentage.

The bands are calibrated against the distances short-text embedding cosine search
actually produces, so a "good" match lands around 75-85 rather than near 100.

    distance            score
    d < 0.10            95
    0.10 <= d < 0.30    85 - (d - 0.10) * 50     (85 .. 75)
    0.30 <= d < 0.50    75 - (d - 0.30) * 100    (75 .. 55)
    0.50 <= d < 0.70    55 - (d - 0.50) * 75     (55 .. 40)
    d >= 0.70           40 - (d - 0.70) * 50     (40 .. 25)

The result never drops below SCORE_FLOOR: the scorer has no "no match" outcome,
low-relevance filtering happens on book averages downstream.
"""

from __future__ import annotations

import math

from summify_search.domain.models import MetricKind, RawHit, ScoredHit

SCORE_FLOOR = 25
SCORE_CEILING = 100
EXCELLENT_SCORE = 95


def to_distance(metric: float, kind: MetricKind = MetricKind.DISTANCE) -> float:
    """Normalize a raw matcher metric onto the distance scale, clamped to [0, 1].

    Non-finite metrics (NaN, inf) count as unrelated.
    """
    if not math.isfinite(metric):
        return 1.0
    distance = 1.0 - metric if kind is MetricKind.OVERLAP else metric
    return min(max(distance, 0.0), 1.0)


def raw_score(distance: float) -> float:
    """Unclamped, unrounded piecewise value; exposed for calibration tests."""
    d = max(distance, 0.0)
    if d < 0.10:
        return float(EXCELLENT_SCORE)
    if d < 0.30:
        return 85 - (d - 0.10) * 50
    if d < 0.50:
        return 75 - (d - 0.30) * 100
    if d < 0.70:
        return 55 - (d - 0.50) * 75
    return 40 - (d - 0.70) * 50


def score(distance: float, floor: int = SCORE_FLOOR) -> int:
    """Relevance percentage for a distance, an integer in [floor, 100]."""
    value = round(raw_score(distance))
    return int(min(max(value, floor), SCORE_CEILING))


def score_hit(hit: RawHit, floor: int = SCORE_FLOOR) -> ScoredHit:
    distance = to_distance(hit.metric, hit.kind)
    return ScoredHit(hit=hit, distance=distance, score=score(distance, floor=floor))

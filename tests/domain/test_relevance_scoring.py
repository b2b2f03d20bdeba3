import pytest

from summify_search.domain.models import MetricKind, RawHit
from summify_search.domain.services.relevance_scoring import (
    SCORE_CEILING,
    SCORE_FLOOR,
    score,
    score_hit,
    to_distance,
)


class TestScore:
    def test_boundary_values(self) -> None:
        assert score(0.0) == 95
        assert score(0.05) == 95
        assert score(1.0) == 25

    def test_title_match_distance_scores_85(self) -> None:
        """d=0.1 belongs to the 0.10-0.30 band, whose formula gives exactly 85."""
        assert score(0.1) == 85

    @pytest.mark.parametrize(
        ("distance", "expected"),
        [(0.2, 80), (0.3, 75), (0.4, 65), (0.5, 55), (0.7, 40), (0.8, 35)],
    )
    def test_band_formulas(self, distance: float, expected: int) -> None:
        assert score(distance) == expected

    def test_non_increasing_and_bounded(self) -> None:
        grid = [i / 1000 for i in range(1001)]
        scores = [score(d) for d in grid]
        assert all(SCORE_FLOOR <= s <= SCORE_CEILING for s in scores)
        assert all(a >= b for a, b in zip(scores, scores[1:], strict=False))

    def test_out_of_range_distance_is_clamped(self) -> None:
        assert score(-0.5) == 95
        assert score(3.0) == SCORE_FLOOR

    def test_custom_floor(self) -> None:
        assert score(1.0, floor=10) == 10
        assert score(1.0, floor=30) == 30


class TestToDistance:
    def test_overlap_is_inverted(self) -> None:
        assert to_distance(0.75, MetricKind.OVERLAP) == pytest.approx(0.25)

    def test_distance_is_clamped(self) -> None:
        assert to_distance(-0.2) == 0.0
        assert to_distance(1.4) == 1.0

    @pytest.mark.parametrize("metric", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_metric_is_unrelated(self, metric: float) -> None:
        assert to_distance(metric) == 1.0
        assert to_distance(metric, MetricKind.OVERLAP) == 1.0
        assert score_hit(RawHit(chapter_id=1, book_id=1, metric=metric)).score == SCORE_FLOOR

    def test_score_hit_uses_normalized_distance(self) -> None:
        hit = RawHit(chapter_id=1, book_id=1, metric=0.9, kind=MetricKind.OVERLAP)
        scored = score_hit(hit)
        assert scored.distance == pytest.approx(0.1)
        assert scored.score == 85

"""
Tests for ScoreAggregator.calculate_scores: counts, averages, weighting and filtering.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from lore_trust.reputation.calculator import ScoreAggregator
from lore_trust.reputation.types import RatingEdge
from lore_trust.reputation.weights import RaterWeightCalculator

TARGET = "GTARGET"
WHALE = "GWHALE"
MINNOW = "GMINNOW"


def test_single_a_edge_unknown_rater():
    """One A from a rater with no portfolio and no connections."""
    scores = ScoreAggregator().calculate_scores([RatingEdge("GR1", TARGET, "A")])
    score = scores[TARGET]
    assert score.count_a == 1
    assert score.total_ratings == 1
    assert score.base_score == 4.0
    assert score.weighted_score == 4.0
    assert score.total_weight == 1.0
    assert score.grade == "A"


def test_letter_counts_sum_to_total():
    edges = [
        RatingEdge("GR1", TARGET, "A"),
        RatingEdge("GR2", TARGET, "B"),
        RatingEdge("GR3", TARGET, "B"),
        RatingEdge("GR4", TARGET, "C"),
        RatingEdge("GR5", TARGET, "D"),
    ]
    score = ScoreAggregator().calculate_scores(edges)[TARGET]
    assert (score.count_a, score.count_b, score.count_c, score.count_d) == (1, 2, 1, 1)
    assert score.total_ratings == score.count_a + score.count_b + score.count_c + score.count_d == 5
    assert score.base_score == pytest.approx((4 + 3 + 3 + 2 + 1) / 5)


def test_equal_weights_make_weighted_equal_base():
    edges = [RatingEdge("GR1", TARGET, "A"), RatingEdge("GR2", TARGET, "C")]
    score = ScoreAggregator().calculate_scores(edges)[TARGET]
    assert score.weighted_score == pytest.approx(score.base_score) == pytest.approx(3.0)
    assert score.total_weight == 2.0


def test_whale_a_minnow_d_biases_weighted_above_base():
    """A high-portfolio A outweighs a zero-portfolio D."""
    edges = [RatingEdge(WHALE, TARGET, "A"), RatingEdge(MINNOW, TARGET, "D")]
    portfolios = {WHALE: Decimal("1000000"), MINNOW: Decimal("0")}
    score = ScoreAggregator().calculate_scores(edges, portfolios, {WHALE: 3})[TARGET]
    assert score.base_score == 2.5
    assert score.weighted_score > score.base_score
    assert score.weighted_score < 4.0
    whale_weight = RaterWeightCalculator().weight(Decimal("1000000"), 3)
    assert score.weighted_score == pytest.approx((4 * whale_weight + 1) / (whale_weight + 1))


def test_invalid_letters_and_blank_raters_dropped():
    edges = [
        RatingEdge("GR1", TARGET, "A"),
        RatingEdge("GR2", TARGET, "E"),
        RatingEdge("GR3", TARGET, "a"),
        RatingEdge("", TARGET, "D"),
        RatingEdge("   ", TARGET, "D"),
    ]
    score = ScoreAggregator().calculate_scores(edges)[TARGET]
    assert score.total_ratings == 1
    assert score.count_d == 0


def test_ratee_with_only_invalid_edges_omitted():
    edges = [RatingEdge("GR1", "GOTHER", "X"), RatingEdge("GR1", TARGET, "B")]
    scores = ScoreAggregator().calculate_scores(edges)
    assert set(scores) == {TARGET}


def test_blank_ratee_dropped():
    scores = ScoreAggregator().calculate_scores([RatingEdge("GR1", "", "A")])
    assert scores == {}


def test_empty_input():
    assert ScoreAggregator().calculate_scores([]) == {}


def test_unknown_raters_default_to_zero_inputs():
    """Raters absent from the maps get the floor weight."""
    edges = [RatingEdge("GR1", TARGET, "B")]
    score = ScoreAggregator().calculate_scores(edges, {"GSOMEONE": Decimal(10**9)}, {"GSOMEONE": 50})[TARGET]
    assert score.total_weight == 1.0


def test_calculated_at_stamped():
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    score = ScoreAggregator().calculate_scores([RatingEdge("GR1", TARGET, "A")], calculated_at=stamp)[TARGET]
    assert score.calculated_at == stamp


def test_deterministic_for_same_input():
    edges = [RatingEdge(f"GR{i}", TARGET, "ABCD"[i % 4]) for i in range(40)]
    portfolios = {f"GR{i}": Decimal(i * 137) for i in range(40)}
    connections = {f"GR{i}": i % 7 for i in range(40)}
    agg = ScoreAggregator()
    first = agg.calculate_scores(edges, portfolios, connections)[TARGET]
    second = agg.calculate_scores(edges, portfolios, connections)[TARGET]
    assert first.values_equal(second)


def test_multiple_ratees_grouped():
    edges = [
        RatingEdge("GR1", "GX", "A"),
        RatingEdge("GR1", "GY", "D"),
        RatingEdge("GR2", "GX", "B"),
    ]
    scores = ScoreAggregator().calculate_scores(edges)
    assert scores["GX"].total_ratings == 2
    assert scores["GY"].total_ratings == 1
    assert scores["GY"].weighted_score == 1.0

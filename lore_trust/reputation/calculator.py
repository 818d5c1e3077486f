"""
Reputation score aggregation.

Groups rating edges by ratee and computes, per account:
- base_score: plain average of rating values (A=4, B=3, C=2, D=1)
- weighted_score: sum(value * rater_weight) / sum(rater_weight)
- letter counts, total ratings, total weight

Pure and deterministic: the same edges in the same order give bit-identical
scores. Persistence is a separate step (see reputation.batch).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal

from lore_trust.reputation.types import Rating, RatingEdge, Score
from lore_trust.reputation.weights import RaterWeightCalculator


class ScoreAggregator:
    """Batch calculator over the whole rating population."""

    def __init__(self, weights: RaterWeightCalculator | None = None) -> None:
        self.weights = weights or RaterWeightCalculator()

    def calculate_scores(
        self,
        edges: Iterable[RatingEdge],
        portfolios: Mapping[str, Decimal] | None = None,
        connection_counts: Mapping[str, int] | None = None,
        *,
        calculated_at: datetime | None = None,
    ) -> dict[str, Score]:
        """
        Compute scores for every account that received at least one valid rating.

        Raters missing from portfolios or connection_counts count as zero there
        (minimum weight). Ratees whose edges are all invalid are omitted.
        """
        portfolios = portfolios or {}
        connection_counts = connection_counts or {}

        by_ratee: dict[str, list[RatingEdge]] = {}
        for edge in edges:
            by_ratee.setdefault(edge.ratee_account_id, []).append(edge)

        scores: dict[str, Score] = {}
        for account_id, account_edges in by_ratee.items():
            if not (account_id or "").strip():
                continue
            score = self._score_account(account_id, account_edges, portfolios, connection_counts)
            if score.total_ratings > 0:
                score.calculated_at = calculated_at
                scores[account_id] = score
        return scores

    def _score_account(
        self,
        account_id: str,
        edges: list[RatingEdge],
        portfolios: Mapping[str, Decimal],
        connection_counts: Mapping[str, int],
    ) -> Score:
        score = Score(account_id=account_id)
        total_weighted = 0.0
        total_weight = 0.0
        total_base = 0.0

        for edge in edges:
            rating = Rating.parse(edge.rating)
            if rating is None:
                continue
            rater = (edge.rater_account_id or "").strip()
            if not rater:
                continue

            if rating is Rating.A:
                score.count_a += 1
            elif rating is Rating.B:
                score.count_b += 1
            elif rating is Rating.C:
                score.count_c += 1
            else:
                score.count_d += 1

            weight = self.weights.weight(portfolios.get(rater, 0), connection_counts.get(rater, 0))
            value = rating.value_points
            total_weighted += value * weight
            total_weight += weight
            total_base += value

        score.total_ratings = score.count_a + score.count_b + score.count_c + score.count_d
        if score.total_ratings > 0:
            score.base_score = total_base / score.total_ratings
        if total_weight > 0:
            score.weighted_score = total_weighted / total_weight
            score.total_weight = total_weight
        return score

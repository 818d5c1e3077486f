"""
ReputationService: read-side façade over the repository, graph builder and
relationship reconciler. Returns display views; absence is None, never an error.
"""

from __future__ import annotations

import threading

from lore_trust.lore_logging import get_logger
from lore_trust.reputation.graph import TrustGraphBuilder
from lore_trust.reputation.relationships import RelationshipReconciler
from lore_trust.reputation.store import ReputationStore
from lore_trust.reputation.views import (
    CategoryView,
    GraphView,
    ScoreView,
    category_view,
    graph_view,
    score_view,
)
from lore_trust.reputation.weights import RaterWeightCalculator

logger = get_logger(__name__)


class ReputationService:
    def __init__(
        self,
        repository: ReputationStore,
        weights: RaterWeightCalculator | None = None,
        reconciler: RelationshipReconciler | None = None,
    ) -> None:
        self.repository = repository
        self.builder = TrustGraphBuilder(repository, weights)
        self.reconciler = reconciler or RelationshipReconciler()

    def get_score(self, account_id: str, cancel: threading.Event | None = None) -> ScoreView | None:
        """Persisted score for the account, or None when it has no ratings yet."""
        score = self.repository.fetch_persisted_score(account_id, cancel=cancel)
        if score is None or score.total_ratings == 0:
            return None
        return score_view(score)

    def get_graph(self, account_id: str, cancel: threading.Event | None = None) -> GraphView | None:
        """Two-level graph for the account, or None when nobody rated it or its raters."""
        graph = self.builder.build_graph(account_id, cancel=cancel)
        if graph.is_empty:
            return None
        return graph_view(graph)

    def get_relationships(self, account_id: str, cancel: threading.Event | None = None) -> list[CategoryView]:
        """Reconciled relationships grouped into categories (all categories, in display order)."""
        declarations = self.repository.fetch_relationships(account_id, cancel=cancel)
        confirmed = self.repository.fetch_confirmed_index(account_id, cancel=cancel)
        categories = self.reconciler.group(account_id, declarations, confirmed)
        logger.debug(
            "relationships_grouped",
            account_id=account_id,
            declarations=len(declarations),
            confirmed=len(confirmed),
        )
        return [category_view(c) for c in categories]

"""
Two-level trust graph: who rated an account, and who rated those raters.

Built per request from persisted data:
- level 1: direct raters of the target
- level 2: raters of level-1 raters, never the target or a level-1 account

Each node carries the rater weight recomputed from current portfolio and
confirmed-connection counts. Levels are sorted by rating (A first), then weight.
"""

from __future__ import annotations

import threading

from lore_trust.lore_logging import get_logger
from lore_trust.reputation.store import ReputationStore
from lore_trust.reputation.types import Graph, GraphNode, RaterInfo, Rating
from lore_trust.reputation.weights import RaterWeightCalculator, portfolio_value

logger = get_logger(__name__)

LEVEL_DIRECT = 1
LEVEL_INDIRECT = 2


def sort_nodes(nodes: list[GraphNode]) -> list[GraphNode]:
    """Rating priority descending, then weight descending. Stable for ties."""
    return sorted(nodes, key=lambda n: (-n.rating.value_points, -n.weight))


class TrustGraphBuilder:
    """Assembles a Graph for one account from repository reads."""

    def __init__(self, repository: ReputationStore, weights: RaterWeightCalculator | None = None) -> None:
        self.repository = repository
        self.weights = weights or RaterWeightCalculator()

    def build_graph(self, target_account_id: str, cancel: threading.Event | None = None) -> Graph:
        """
        Build the graph for target_account_id. Returns a Graph even when both
        levels are empty; repository errors propagate.
        """
        repo = self.repository
        target_name = repo.fetch_account_name(target_account_id, cancel=cancel)
        score = repo.fetch_persisted_score(target_account_id, cancel=cancel)
        direct = repo.fetch_direct_raters(target_account_id, cancel=cancel)
        connections = repo.fetch_connection_counts(cancel=cancel)

        level1 = [
            node
            for node in (self._node(r, connections, LEVEL_DIRECT) for r in direct)
            if node is not None
        ]
        level1_ids = list(dict.fromkeys(n.account_id for n in level1))

        exclude = {target_account_id, *level1_ids}
        level2: list[GraphNode] = []
        if level1_ids:
            indirect = repo.fetch_raters_of_raters(level1_ids, [target_account_id], cancel=cancel)
            seen = set(exclude)
            for rater in indirect:
                if rater.account_id in seen:
                    continue
                node = self._node(rater, connections, LEVEL_INDIRECT)
                if node is None:
                    continue
                seen.add(rater.account_id)
                level2.append(node)

        logger.debug(
            "trust_graph_built",
            account_id=target_account_id,
            level1=len(level1),
            level2=len(level2),
        )
        return Graph(
            target_account_id=target_account_id,
            target_name=target_name,
            score=score,
            level1_nodes=sort_nodes(level1),
            level2_nodes=sort_nodes(level2),
        )

    def _node(self, rater: RaterInfo, connections: dict[str, int], distance: int) -> GraphNode | None:
        rating = Rating.parse(rater.rating)
        if rating is None or not (rater.account_id or "").strip():
            return None
        conns = connections.get(rater.account_id, 0)
        return GraphNode(
            account_id=rater.account_id,
            name=rater.name,
            rating=rating,
            weight=self.weights.weight(rater.portfolio, conns),
            portfolio_xlm=portfolio_value(rater.portfolio),
            connections=conns,
            own_score=rater.own_score,
            distance=distance,
        )

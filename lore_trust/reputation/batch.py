"""
Full-population reputation batch: read edges, portfolios and connection counts
once, aggregate, persist all scores in one transaction.

Runs are idempotent: re-running over unchanged data rewrites the same values
with a new calculated_at.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from lore_trust.config import get_settings
from lore_trust.lore_logging import get_logger
from lore_trust.reputation.calculator import ScoreAggregator
from lore_trust.reputation.store import ReputationStore
from lore_trust.reputation.weights import RaterWeightCalculator

logger = get_logger(__name__)


@dataclass
class BatchResult:
    """Summary of one batch run."""

    edges: int = 0
    computed: int = 0
    written: int = 0
    calculated_at: datetime | None = None


def run_reputation_batch(
    repository: ReputationStore | None = None,
    weights: RaterWeightCalculator | None = None,
    cancel: threading.Event | None = None,
) -> BatchResult:
    """
    Recompute and persist every account's score. Repository errors propagate;
    a failed write leaves previously persisted scores untouched.
    """
    if repository is None:
        from lore_trust.database.repository import ReputationRepository

        repository = ReputationRepository()
    if weights is None:
        weights = RaterWeightCalculator(get_settings().max_weight)

    start = time.monotonic()
    logger.info("reputation_batch_start")

    edges = repository.fetch_rating_edges(cancel=cancel)
    if not edges:
        logger.info("no_reputation_ratings")
        return BatchResult()

    portfolios = repository.fetch_portfolios(cancel=cancel)
    connections = repository.fetch_connection_counts(cancel=cancel)
    logger.info(
        "reputation_batch_inputs",
        edges=len(edges),
        portfolios=len(portfolios),
        connected_accounts=len(connections),
    )

    calculated_at = datetime.now(timezone.utc)
    scores = ScoreAggregator(weights).calculate_scores(
        edges, portfolios, connections, calculated_at=calculated_at
    )
    written = repository.persist_scores(scores, cancel=cancel)

    result = BatchResult(
        edges=len(edges),
        computed=len(scores),
        written=written,
        calculated_at=calculated_at,
    )
    logger.info(
        "reputation_batch_done",
        edges=result.edges,
        computed=result.computed,
        written=result.written,
        elapsed_s=round(time.monotonic() - start, 3),
    )
    return result

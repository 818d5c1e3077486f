"""
Reputation engine — rater weights, score aggregation, trust graphs, relationship reconciliation.

Pure components over the ReputationStore interface; persistence lives in lore_trust.database.
"""

from lore_trust.reputation.calculator import ScoreAggregator
from lore_trust.reputation.graph import TrustGraphBuilder
from lore_trust.reputation.relationships import (
    DEFAULT_TABLES,
    RelationshipReconciler,
    RelationTables,
)
from lore_trust.reputation.service import ReputationService
from lore_trust.reputation.store import ReputationStore
from lore_trust.reputation.types import Graph, GraphNode, Rating, RatingEdge, Score
from lore_trust.reputation.weights import RaterWeightCalculator

__all__ = [
    "DEFAULT_TABLES",
    "Graph",
    "GraphNode",
    "Rating",
    "RatingEdge",
    "RaterWeightCalculator",
    "RelationTables",
    "RelationshipReconciler",
    "ReputationService",
    "ReputationStore",
    "Score",
    "ScoreAggregator",
    "TrustGraphBuilder",
]

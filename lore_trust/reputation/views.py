"""
Display shapes returned by ReputationService and the HTTP layer (pydantic).
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from lore_trust.reputation.relationships import Relationship, RelationshipCategory
from lore_trust.reputation.types import Graph, GraphNode, Score, score_to_grade


class ScoreView(BaseModel):
    """Reputation score as shown to users."""

    weighted_score: float = Field(..., ge=0, description="Weighted average, 0-4")
    base_score: float = Field(..., ge=0, description="Plain average, 0-4")
    grade: str = Field(..., description="Letter grade (A, A-, B+, B, C+, C, D, N/A)")
    percent: int = Field(..., ge=0, le=100, description="weighted_score / 4 as a percentage, truncated")
    count_a: int = 0
    count_b: int = 0
    count_c: int = 0
    count_d: int = 0
    total_ratings: int = 0
    total_weight: float = 0.0


class NodeView(BaseModel):
    account_id: str
    name: str
    rating: str
    weight: float
    portfolio_xlm: float
    connections: int
    own_score: float
    distance: int


class GraphView(BaseModel):
    target_account_id: str
    target_name: str
    score: ScoreView | None = None
    level1_nodes: list[NodeView] = Field(default_factory=list)
    level2_nodes: list[NodeView] = Field(default_factory=list)


class RelationshipView(BaseModel):
    type: str
    target_id: str
    target_name: str
    direction: str
    is_mutual: bool = False
    is_confirmed: bool = False


class CategoryView(BaseModel):
    name: str
    color: str
    is_empty: bool
    relationships: list[RelationshipView] = Field(default_factory=list)


def score_view(score: Score) -> ScoreView:
    return ScoreView(
        weighted_score=score.weighted_score,
        base_score=score.base_score,
        grade=score_to_grade(score.weighted_score),
        percent=min(100, int(score.weighted_score / 4.0 * 100)),
        count_a=score.count_a,
        count_b=score.count_b,
        count_c=score.count_c,
        count_d=score.count_d,
        total_ratings=score.total_ratings,
        total_weight=score.total_weight,
    )


def node_view(node: GraphNode) -> NodeView:
    return NodeView(
        account_id=node.account_id,
        name=node.name,
        rating=node.rating.value,
        weight=node.weight,
        portfolio_xlm=node.portfolio_xlm,
        connections=node.connections,
        own_score=node.own_score,
        distance=node.distance,
    )


def graph_view(graph: Graph) -> GraphView:
    """Convert a built graph; the score is included only when it has ratings."""
    score = graph.score if graph.score is not None and graph.score.total_ratings > 0 else None
    return GraphView(
        target_account_id=graph.target_account_id,
        target_name=graph.target_name,
        score=score_view(score) if score is not None else None,
        level1_nodes=[node_view(n) for n in graph.level1_nodes],
        level2_nodes=[node_view(n) for n in graph.level2_nodes],
    )


def relationship_view(rel: Relationship) -> RelationshipView:
    return RelationshipView(
        type=rel.type,
        target_id=rel.target_id,
        target_name=rel.target_name,
        direction=rel.direction.value,
        is_mutual=rel.is_mutual,
        is_confirmed=rel.is_confirmed,
    )


def category_view(category: RelationshipCategory) -> CategoryView:
    return CategoryView(
        name=category.name,
        color=category.color,
        is_empty=category.is_empty,
        relationships=[relationship_view(r) for r in category.relationships],
    )

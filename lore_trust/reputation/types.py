"""
Domain types for the reputation engine.

Ratings, scores, rater rows and graph nodes. Plain dataclasses with no ORM
coupling so the repository backend stays swappable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


class Rating(str, Enum):
    """Peer rating letter declared on the ledger."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @property
    def value_points(self) -> float:
        """Numeric value: A=4, B=3, C=2, D=1."""
        return RATING_VALUES[self]

    @classmethod
    def parse(cls, raw: object) -> Rating | None:
        """Return the Rating for a letter, or None for anything else."""
        if isinstance(raw, Rating):
            return raw
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


RATING_VALUES: dict[Rating, float] = {
    Rating.A: 4.0,
    Rating.B: 3.0,
    Rating.C: 2.0,
    Rating.D: 1.0,
}

RATING_LETTERS: tuple[str, ...] = tuple(r.value for r in Rating)


def rating_value(raw: object) -> float:
    """Numeric value for a rating letter; 0.0 for anything invalid."""
    rating = Rating.parse(raw)
    return rating.value_points if rating is not None else 0.0


def rating_priority(raw: object) -> int:
    """Sort priority for a rating (higher = better); 0 for invalid."""
    return int(rating_value(raw))


def score_to_grade(score: float) -> str:
    """Convert a 0-4 score to a letter grade. Lower bounds are inclusive."""
    if score >= 3.5:
        return "A"
    if score >= 3.0:
        return "A-"
    if score >= 2.5:
        return "B+"
    if score >= 2.0:
        return "B"
    if score >= 1.5:
        return "C+"
    if score >= 1.0:
        return "C"
    if score > 0:
        return "D"
    return "N/A"


def display_name(account_id: str, name: str | None = None) -> str:
    """Name if present, else a truncated account id (first6...last6)."""
    if name and name.strip():
        return name
    if len(account_id) > 12:
        return f"{account_id[:6]}...{account_id[-6:]}"
    return account_id


@dataclass(frozen=True)
class RatingEdge:
    """One rating from rater to ratee. rating is kept raw; invalid letters are dropped later."""

    rater_account_id: str
    ratee_account_id: str
    rating: str


@dataclass
class Score:
    """Calculated reputation score for an account."""

    account_id: str
    weighted_score: float = 0.0
    """0.0-4.0, each rating scaled by the rater's weight."""
    base_score: float = 0.0
    """0.0-4.0, plain average of rating values."""
    count_a: int = 0
    count_b: int = 0
    count_c: int = 0
    count_d: int = 0
    total_ratings: int = 0
    total_weight: float = 0.0
    calculated_at: datetime | None = None

    @property
    def grade(self) -> str:
        return score_to_grade(self.weighted_score)

    def values_equal(self, other: Score) -> bool:
        """Compare everything except calculated_at."""
        return (
            self.account_id == other.account_id
            and self.weighted_score == other.weighted_score
            and self.base_score == other.base_score
            and self.count_a == other.count_a
            and self.count_b == other.count_b
            and self.count_c == other.count_c
            and self.count_d == other.count_d
            and self.total_ratings == other.total_ratings
            and self.total_weight == other.total_weight
        )


@dataclass
class RaterInfo:
    """A rater as returned by the repository, before weighting."""

    account_id: str
    name: str
    rating: str
    portfolio: Decimal = Decimal(0)
    own_score: float = 0.0


@dataclass
class GraphNode:
    """Node in the reputation graph."""

    account_id: str
    name: str
    rating: Rating
    weight: float
    portfolio_xlm: float
    connections: int
    own_score: float
    distance: int
    """1 = direct rater, 2 = rater of a rater."""


@dataclass
class Graph:
    """Two-level reputation graph for one account."""

    target_account_id: str
    target_name: str
    score: Score | None = None
    level1_nodes: list[GraphNode] = field(default_factory=list)
    level2_nodes: list[GraphNode] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.level1_nodes and not self.level2_nodes

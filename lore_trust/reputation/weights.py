"""
Rater weight: how much one rater's vote counts.

weight = log10(portfolio_xlm + 1) * sqrt(connections + 1), clamped to [1.0, max_weight].

Portfolio is log-scaled so large holders gain influence slowly; confirmed
connections are sqrt-scaled so social validation has diminishing returns.
Every vote counts at least 1.0 and no single rater exceeds max_weight.
"""

from __future__ import annotations

import math
from decimal import Decimal

from lore_trust.config.env import DEFAULT_MAX_WEIGHT

MIN_WEIGHT = 1.0


def portfolio_value(portfolio_xlm: Decimal | float | int | None) -> float:
    """Portfolio as a float; None, negative and non-finite values become 0.0."""
    if portfolio_xlm is None:
        return 0.0
    portfolio = float(portfolio_xlm)
    if not math.isfinite(portfolio) or portfolio < 0:
        return 0.0
    return portfolio


class RaterWeightCalculator:
    """Pure weight function with a configurable cap."""

    def __init__(self, max_weight: float = DEFAULT_MAX_WEIGHT) -> None:
        if max_weight < MIN_WEIGHT:
            raise ValueError(f"max_weight must be >= {MIN_WEIGHT}, got {max_weight}")
        self.max_weight = float(max_weight)

    def weight(self, portfolio_xlm: Decimal | float | int | None, connections: int | None) -> float:
        """
        Weight for a rater with the given portfolio value and confirmed-connection count.

        None, negative and non-finite (NaN, infinite) inputs count as zero.

        Examples (max_weight=100):
            (0, 0)        -> 1.0   (floor)
            (10, 0)       -> ~1.04
            (100, 3)      -> ~4.0
            (1000, 8)     -> ~9.0
            (1e9, 10000)  -> 100.0 (cap)
        """
        portfolio = portfolio_value(portfolio_xlm)
        conns = max(int(connections or 0), 0)

        portfolio_weight = math.log10(portfolio + 1.0)
        connection_weight = math.sqrt(conns + 1)
        weight = portfolio_weight * connection_weight

        return max(MIN_WEIGHT, min(self.max_weight, weight))

    def __call__(self, portfolio_xlm: Decimal | float | int | None, connections: int | None) -> float:
        return self.weight(portfolio_xlm, connections)

"""
Abstract persistence interface for the reputation engine.

The SQLAlchemy implementation lives in database.repository; tests substitute an
in-memory implementation. Not-found reads return None or empty collections.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from decimal import Decimal

from lore_trust.reputation.relationships import ConfirmedMark, RelationshipDeclaration
from lore_trust.reputation.types import RaterInfo, RatingEdge, Score


class ReputationStore(ABC):
    """Reads and writes the engine depends on. Every call honours an optional cancel event."""

    @abstractmethod
    def fetch_rating_edges(self, cancel: threading.Event | None = None) -> list[RatingEdge]:
        ...

    @abstractmethod
    def fetch_portfolios(self, cancel: threading.Event | None = None) -> dict[str, Decimal]:
        ...

    @abstractmethod
    def fetch_connection_counts(self, cancel: threading.Event | None = None) -> dict[str, int]:
        ...

    @abstractmethod
    def fetch_direct_raters(self, target_account_id: str, cancel: threading.Event | None = None) -> list[RaterInfo]:
        ...

    @abstractmethod
    def fetch_raters_of_raters(
        self,
        level1_account_ids: Iterable[str],
        exclude_account_ids: Iterable[str] = (),
        cancel: threading.Event | None = None,
    ) -> list[RaterInfo]:
        ...

    @abstractmethod
    def fetch_account_name(self, account_id: str, cancel: threading.Event | None = None) -> str:
        ...

    @abstractmethod
    def fetch_persisted_score(self, account_id: str, cancel: threading.Event | None = None) -> Score | None:
        ...

    @abstractmethod
    def persist_scores(self, scores: Mapping[str, Score], cancel: threading.Event | None = None) -> int:
        """Write scores for known accounts in one transaction; return rows written."""

    @abstractmethod
    def fetch_relationships(
        self, account_id: str, cancel: threading.Event | None = None
    ) -> list[RelationshipDeclaration]:
        ...

    @abstractmethod
    def fetch_confirmed_index(self, account_id: str, cancel: threading.Event | None = None) -> set[ConfirmedMark]:
        ...

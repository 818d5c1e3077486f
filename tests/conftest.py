"""
Pytest fixtures for lore-trust tests.

- lore_db: temporary SQLite database (fresh engine + tables per test)
- seed: helper to insert accounts and relationship declarations into lore_db
- fake_store: in-memory ReputationStore for pure component tests
- client: FastAPI TestClient over the temporary database
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from dataclasses import replace
from decimal import Decimal

import pytest

from lore_trust.core.exceptions import OperationCancelledError, RepositoryError
from lore_trust.reputation.relationships import (
    ConfirmedMark,
    Direction,
    RelationshipDeclaration,
    RelationshipReconciler,
)
from lore_trust.reputation.store import ReputationStore
from lore_trust.reputation.types import RATING_LETTERS, RaterInfo, RatingEdge, Score, display_name


class FakeStore(ReputationStore):
    """
    In-memory ReputationStore with the same ordering and filtering rules as the
    SQLAlchemy repository. Operations listed in fail_on raise RepositoryError.
    """

    def __init__(self) -> None:
        self.accounts: dict[str, tuple[str | None, Decimal]] = {}
        self.relationships: list[tuple[str, str, str, str]] = []  # source, type, target, index
        self.scores: dict[str, Score] = {}
        self.reconciler = RelationshipReconciler()
        self.fail_on: set[str] = set()
        self.calls: list[str] = []

    # seed helpers

    def add_account(self, account_id: str, name: str | None = None, xlm: float | int | str = 0) -> None:
        self.accounts[account_id] = (name, Decimal(str(xlm)))

    def rate(self, rater: str, ratee: str, letter: str) -> None:
        self.relationships.append((rater, letter, ratee, ""))

    def relate(self, source: str, relation_type: str, target: str, index: str = "") -> None:
        self.relationships.append((source, relation_type, target, index))

    def set_score(self, account_id: str, weighted: float, total_ratings: int = 1) -> None:
        self.scores[account_id] = Score(account_id=account_id, weighted_score=weighted, total_ratings=total_ratings)

    # internals

    def _enter(self, operation: str, cancel: threading.Event | None, account_id: str | None = None) -> None:
        self.calls.append(operation)
        if cancel is not None and cancel.is_set():
            raise OperationCancelledError(operation, account_id)
        if operation in self.fail_on:
            raise RepositoryError(operation, account_id, "simulated failure")

    def _rater_info(self, source: str, letter: str) -> RaterInfo:
        name, xlm = self.accounts.get(source, (None, Decimal(0)))
        own = self.scores.get(source)
        return RaterInfo(
            account_id=source,
            name=display_name(source, name),
            rating=letter,
            portfolio=xlm,
            own_score=own.weighted_score if own is not None else 0.0,
        )

    def _declarations(self, account_id: str) -> list[RelationshipDeclaration]:
        out: list[RelationshipDeclaration] = []
        for source, relation_type, target, index in self.relationships:
            if relation_type in RATING_LETTERS:
                continue
            if source == account_id:
                out.append(RelationshipDeclaration(source, target, relation_type, index, Direction.OUTGOING))
            if target == account_id:
                out.append(RelationshipDeclaration(source, target, relation_type, index, Direction.INCOMING))
        out.sort(key=lambda d: (d.relation_type, d.relation_index, d.other_account_id, d.direction is Direction.INCOMING))
        return out

    # ReputationStore

    def fetch_rating_edges(self, cancel: threading.Event | None = None) -> list[RatingEdge]:
        self._enter("fetch_rating_edges", cancel)
        rows = sorted(
            (r for r in self.relationships if r[1] in RATING_LETTERS),
            key=lambda r: (r[2], r[0], r[1], r[3]),
        )
        return [RatingEdge(source, target, letter) for source, letter, target, _ in rows]

    def fetch_portfolios(self, cancel: threading.Event | None = None) -> dict[str, Decimal]:
        self._enter("fetch_portfolios", cancel)
        return {account_id: xlm for account_id, (_, xlm) in self.accounts.items()}

    def fetch_connection_counts(self, cancel: threading.Event | None = None) -> dict[str, int]:
        self._enter("fetch_connection_counts", cancel)
        declarations = [
            RelationshipDeclaration(source, target, relation_type, index)
            for source, relation_type, target, index in self.relationships
        ]
        return self.reconciler.connection_counts(declarations)

    def fetch_direct_raters(self, target_account_id: str, cancel: threading.Event | None = None) -> list[RaterInfo]:
        self._enter("fetch_direct_raters", cancel, target_account_id)
        rows = [r for r in self.relationships if r[2] == target_account_id and r[1] in RATING_LETTERS]
        rows.sort(key=lambda r: (r[1], self.accounts.get(r[0], (None,))[0] or "", r[0]))
        return [self._rater_info(source, letter) for source, letter, _, _ in rows]

    def fetch_raters_of_raters(
        self,
        level1_account_ids: Iterable[str],
        exclude_account_ids: Iterable[str] = (),
        cancel: threading.Event | None = None,
    ) -> list[RaterInfo]:
        self._enter("fetch_raters_of_raters", cancel)
        level1 = set(level1_account_ids)
        if not level1:
            return []
        exclude = set(exclude_account_ids) | level1
        rows = sorted(
            (r for r in self.relationships if r[2] in level1 and r[1] in RATING_LETTERS),
            key=lambda r: (r[0], r[1], r[2], r[3]),
        )
        seen: set[tuple[str, str]] = set()
        raters: list[RaterInfo] = []
        for source, letter, _, _ in rows:
            if (source, letter) in seen:
                continue
            seen.add((source, letter))
            if source in exclude:
                continue
            raters.append(self._rater_info(source, letter))
        return raters

    def fetch_account_name(self, account_id: str, cancel: threading.Event | None = None) -> str:
        self._enter("fetch_account_name", cancel, account_id)
        return display_name(account_id, self.accounts.get(account_id, (None,))[0])

    def fetch_persisted_score(self, account_id: str, cancel: threading.Event | None = None) -> Score | None:
        self._enter("fetch_persisted_score", cancel, account_id)
        return self.scores.get(account_id)

    def persist_scores(self, scores: Mapping[str, Score], cancel: threading.Event | None = None) -> int:
        self._enter("persist_scores", cancel)
        written = 0
        for account_id, score in scores.items():
            if account_id not in self.accounts:
                continue
            self.scores[account_id] = replace(score)
            written += 1
        return written

    def fetch_relationships(
        self, account_id: str, cancel: threading.Event | None = None
    ) -> list[RelationshipDeclaration]:
        self._enter("fetch_relationships", cancel, account_id)
        return [
            replace(d, other_name=display_name(d.other_account_id, self.accounts.get(d.other_account_id, (None,))[0]))
            for d in self._declarations(account_id)
        ]

    def fetch_confirmed_index(self, account_id: str, cancel: threading.Event | None = None) -> set[ConfirmedMark]:
        self._enter("fetch_confirmed_index", cancel, account_id)
        return self.reconciler.confirmed_index(account_id, self._declarations(account_id))


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def lore_db(tmp_path, monkeypatch):
    """
    Point the database layer at a temporary SQLite file and create tables.
    Resets the cached engine and settings so each test gets a fresh DB.
    """
    monkeypatch.delenv("LORE_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("LORE_DB_PATH", str(tmp_path / "lore.db"))

    from lore_trust.config.settings import get_settings
    from lore_trust.database import session as db_session

    get_settings.cache_clear()
    db_session.reset_engine_for_test()
    db_session.init_db()
    yield db_session
    db_session.reset_engine_for_test()
    get_settings.cache_clear()


class Seeder:
    """Inserts rows into the temporary database, one transaction per call."""

    def __init__(self, db_session) -> None:
        self._db = db_session
        self._indexes: dict[tuple[str, str], int] = {}

    def account(self, account_id: str, name: str | None = None, xlm: float | int | str = 0) -> None:
        from lore_trust.database.models import Account

        with self._db.session_scope() as session:
            session.add(Account(account_id=account_id, name=name, total_xlm_value=Decimal(str(xlm))))

    def relate(self, source: str, relation_type: str, target: str, index: str | None = None) -> None:
        """index defaults to the next free slot for (source, relation_type)."""
        from lore_trust.database.models import Relationship

        if index is None:
            slot = self._indexes.get((source, relation_type), 0)
            self._indexes[(source, relation_type)] = slot + 1
            index = str(slot)
        with self._db.session_scope() as session:
            session.add(
                Relationship(
                    source_account_id=source,
                    relation_type=relation_type,
                    relation_index=index,
                    target_account_id=target,
                )
            )

    def rate(self, rater: str, ratee: str, letter: str) -> None:
        self.relate(rater, letter, ratee)


@pytest.fixture
def seed(lore_db) -> Seeder:
    return Seeder(lore_db)


@pytest.fixture
def client(lore_db):
    """FastAPI TestClient. Depends on lore_db so the temp DB is set before the app runs."""
    from fastapi.testclient import TestClient

    from lore_trust.api_server.app import app

    app.dependency_overrides.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

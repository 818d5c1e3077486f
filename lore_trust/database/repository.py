"""
Reputation repository: every read and write the engine needs, over SQLAlchemy.

Responsibilities:
- rating edges, portfolios and confirmed-connection counts for batch scoring
- direct raters / raters-of-raters / account names / persisted scores for graphs
- relationship declarations and the confirmed index for relationship views
- persisting batch scores (one transaction, unknown accounts skipped)

Every operation accepts an optional threading.Event; when it is set the call
raises OperationCancelledError before touching the database. SQLAlchemy errors
are logged and re-raised as RepositoryError. Nothing is retried.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from lore_trust.core.exceptions import OperationCancelledError, RepositoryError
from lore_trust.database.models import Account, ReputationScoreRow
from lore_trust.database.models import Relationship as RelationshipRow
from lore_trust.database.session import session_scope
from lore_trust.lore_logging import get_logger
from lore_trust.reputation.relationships import (
    ConfirmedMark,
    Direction,
    RelationshipDeclaration,
    RelationshipReconciler,
)
from lore_trust.reputation.store import ReputationStore
from lore_trust.reputation.types import RATING_LETTERS, RaterInfo, RatingEdge, Score, display_name

logger = get_logger(__name__)

IN_CLAUSE_CHUNK = 500
"""Max ids per IN (...) clause; keeps SQLite under its bound-parameter limit."""


def _chunks(ids: list[str], size: int = IN_CLAUSE_CHUNK) -> Iterator[list[str]]:
    for i in range(0, len(ids), size):
        yield ids[i:i + size]


def _decimal(value: object) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class ReputationRepository(ReputationStore):
    """
    SQLAlchemy-backed persistence collaborator for the reputation engine.

    session_factory defaults to the process-wide factory from database.session,
    resolved per call so tests can reset the engine between cases.
    """

    def __init__(
        self,
        session_factory: sessionmaker | None = None,
        reconciler: RelationshipReconciler | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.reconciler = reconciler or RelationshipReconciler()

    @contextmanager
    def _scope(
        self,
        operation: str,
        cancel: threading.Event | None = None,
        account_id: str | None = None,
    ) -> Iterator[Session]:
        if cancel is not None and cancel.is_set():
            logger.info("repository_operation_cancelled", operation=operation, account_id=account_id)
            raise OperationCancelledError(operation, account_id)
        try:
            with session_scope(self._session_factory) as session:
                yield session
        except SQLAlchemyError as e:
            logger.exception("repository_operation_failed", operation=operation, account_id=account_id, error=str(e))
            raise RepositoryError(operation, account_id, str(e)) from e

    # -------------------------------------------------------------------------
    # Batch scoring inputs
    # -------------------------------------------------------------------------

    def fetch_rating_edges(self, cancel: threading.Event | None = None) -> list[RatingEdge]:
        """All A/B/C/D declarations, ordered by ratee then rater."""
        with self._scope("fetch_rating_edges", cancel) as session:
            rows = (
                session.query(RelationshipRow)
                .filter(RelationshipRow.relation_type.in_(RATING_LETTERS))
                .order_by(
                    RelationshipRow.target_account_id,
                    RelationshipRow.source_account_id,
                    RelationshipRow.relation_type,
                    RelationshipRow.relation_index,
                )
                .all()
            )
            return [
                RatingEdge(
                    rater_account_id=r.source_account_id,
                    ratee_account_id=r.target_account_id,
                    rating=r.relation_type,
                )
                for r in rows
            ]

    def fetch_portfolios(self, cancel: threading.Event | None = None) -> dict[str, Decimal]:
        """total_xlm_value per known account (missing values read as 0)."""
        with self._scope("fetch_portfolios", cancel) as session:
            rows = session.query(Account.account_id, Account.total_xlm_value).all()
            return {account_id: _decimal(value) for account_id, value in rows}

    def fetch_connection_counts(self, cancel: threading.Event | None = None) -> dict[str, int]:
        """Confirmed-connection count per account, system-wide."""
        pairable = list(self.reconciler.tables.confirmation_pairs)
        with self._scope("fetch_connection_counts", cancel) as session:
            rows = session.query(RelationshipRow).filter(RelationshipRow.relation_type.in_(pairable)).all()
            declarations = [self._declaration(r, Direction.OUTGOING) for r in rows]
        return self.reconciler.connection_counts(declarations)

    # -------------------------------------------------------------------------
    # Graph reads
    # -------------------------------------------------------------------------

    def fetch_direct_raters(self, target_account_id: str, cancel: threading.Event | None = None) -> list[RaterInfo]:
        """Accounts that rated the target, ordered by rating letter then name."""
        with self._scope("fetch_direct_raters", cancel, target_account_id) as session:
            rows = (
                session.query(RelationshipRow, Account, ReputationScoreRow)
                .outerjoin(Account, Account.account_id == RelationshipRow.source_account_id)
                .outerjoin(ReputationScoreRow, ReputationScoreRow.account_id == RelationshipRow.source_account_id)
                .filter(
                    RelationshipRow.target_account_id == target_account_id,
                    RelationshipRow.relation_type.in_(RATING_LETTERS),
                )
                .order_by(RelationshipRow.relation_type, Account.name, RelationshipRow.source_account_id)
                .all()
            )
            return [self._rater_info(rel, account, score) for rel, account, score in rows]

    def fetch_raters_of_raters(
        self,
        level1_account_ids: Iterable[str],
        exclude_account_ids: Iterable[str] = (),
        cancel: threading.Event | None = None,
    ) -> list[RaterInfo]:
        """
        Accounts that rated any level-1 rater.

        One row per (rater, rating letter), ordered by rater then letter. Rows
        whose rater is excluded or is itself a level-1 account are dropped.
        """
        level1 = list(dict.fromkeys(level1_account_ids))
        if not level1:
            return []
        exclude = set(exclude_account_ids) | set(level1)

        with self._scope("fetch_raters_of_raters", cancel) as session:
            rows = []
            for chunk in _chunks(level1):
                rows.extend(
                    session.query(RelationshipRow, Account, ReputationScoreRow)
                    .outerjoin(Account, Account.account_id == RelationshipRow.source_account_id)
                    .outerjoin(ReputationScoreRow, ReputationScoreRow.account_id == RelationshipRow.source_account_id)
                    .filter(
                        RelationshipRow.target_account_id.in_(chunk),
                        RelationshipRow.relation_type.in_(RATING_LETTERS),
                    )
                    .all()
                )
            rows.sort(key=lambda row: (
                row[0].source_account_id,
                row[0].relation_type,
                row[0].target_account_id,
                row[0].relation_index or "",
            ))

            seen: set[tuple[str, str]] = set()
            raters: list[RaterInfo] = []
            for rel, account, score in rows:
                key = (rel.source_account_id, rel.relation_type)
                if key in seen:
                    continue
                seen.add(key)
                if rel.source_account_id in exclude:
                    continue
                raters.append(self._rater_info(rel, account, score))
            return raters

    def fetch_account_name(self, account_id: str, cancel: threading.Event | None = None) -> str:
        """Account name, or the truncated id when the account is unknown or unnamed."""
        with self._scope("fetch_account_name", cancel, account_id) as session:
            name = session.query(Account.name).filter(Account.account_id == account_id).scalar()
            return display_name(account_id, name)

    def fetch_persisted_score(self, account_id: str, cancel: threading.Event | None = None) -> Score | None:
        with self._scope("fetch_persisted_score", cancel, account_id) as session:
            row = session.get(ReputationScoreRow, account_id)
            if row is None:
                return None
            return Score(
                account_id=row.account_id,
                weighted_score=row.weighted_score or 0.0,
                base_score=row.base_score or 0.0,
                count_a=row.count_a or 0,
                count_b=row.count_b or 0,
                count_c=row.count_c or 0,
                count_d=row.count_d or 0,
                total_ratings=row.total_ratings or 0,
                total_weight=row.total_weight or 0.0,
                calculated_at=row.calculated_at,
            )

    # -------------------------------------------------------------------------
    # Relationship reads
    # -------------------------------------------------------------------------

    def fetch_relationships(
        self, account_id: str, cancel: threading.Event | None = None
    ) -> list[RelationshipDeclaration]:
        """
        Non-rating declarations touching the account, both directions, ordered by
        (relation_type, relation_index, other account), outgoing before incoming.
        """
        with self._scope("fetch_relationships", cancel, account_id) as session:
            declarations = self._touching(session, account_id)
            other_ids = sorted({d.other_account_id for d in declarations})
            names: dict[str, str | None] = {}
            for chunk in _chunks(other_ids):
                names.update(
                    session.query(Account.account_id, Account.name).filter(Account.account_id.in_(chunk)).all()
                )
        return [
            RelationshipDeclaration(
                source_account_id=d.source_account_id,
                target_account_id=d.target_account_id,
                relation_type=d.relation_type,
                relation_index=d.relation_index,
                direction=d.direction,
                other_name=display_name(d.other_account_id, names.get(d.other_account_id)),
            )
            for d in declarations
        ]

    def fetch_confirmed_index(self, account_id: str, cancel: threading.Event | None = None) -> set[ConfirmedMark]:
        """Confirmed marks in which the account is source or target."""
        with self._scope("fetch_confirmed_index", cancel, account_id) as session:
            declarations = self._touching(session, account_id)
        return self.reconciler.confirmed_index(account_id, declarations)

    def _touching(self, session: Session, account_id: str) -> list[RelationshipDeclaration]:
        outgoing = (
            session.query(RelationshipRow)
            .filter(
                RelationshipRow.source_account_id == account_id,
                RelationshipRow.relation_type.notin_(RATING_LETTERS),
            )
            .all()
        )
        incoming = (
            session.query(RelationshipRow)
            .filter(
                RelationshipRow.target_account_id == account_id,
                RelationshipRow.relation_type.notin_(RATING_LETTERS),
            )
            .all()
        )
        declarations = [self._declaration(r, Direction.OUTGOING) for r in outgoing]
        declarations += [self._declaration(r, Direction.INCOMING) for r in incoming]
        declarations.sort(key=lambda d: (
            d.relation_type,
            d.relation_index,
            d.other_account_id,
            d.direction is Direction.INCOMING,
        ))
        return declarations

    # -------------------------------------------------------------------------
    # Batch write
    # -------------------------------------------------------------------------

    def persist_scores(
        self,
        scores: Mapping[str, Score],
        cancel: threading.Event | None = None,
        calculated_at: datetime | None = None,
    ) -> int:
        """
        Upsert scores in one transaction; accounts missing from `accounts` are skipped.

        Returns the number of rows written. Any failure rolls back the whole write.
        """
        if not scores:
            return 0
        stamp = calculated_at or datetime.now(timezone.utc)
        ids = list(scores)

        with self._scope("persist_scores", cancel) as session:
            existing: set[str] = set()
            for chunk in _chunks(ids):
                existing.update(
                    account_id
                    for (account_id,) in session.query(Account.account_id).filter(Account.account_id.in_(chunk))
                )

            written = 0
            for account_id in ids:
                if account_id not in existing:
                    continue
                score = scores[account_id]
                session.merge(
                    ReputationScoreRow(
                        account_id=account_id,
                        weighted_score=score.weighted_score,
                        base_score=score.base_score,
                        count_a=score.count_a,
                        count_b=score.count_b,
                        count_c=score.count_c,
                        count_d=score.count_d,
                        total_ratings=score.total_ratings,
                        total_weight=score.total_weight,
                        calculated_at=score.calculated_at or stamp,
                    )
                )
                written += 1
            session.flush()

        logger.info("reputation_scores_persisted", written=written, skipped=len(ids) - written)
        return written

    # -------------------------------------------------------------------------
    # Row mapping
    # -------------------------------------------------------------------------

    @staticmethod
    def _declaration(row: RelationshipRow, direction: Direction) -> RelationshipDeclaration:
        return RelationshipDeclaration(
            source_account_id=row.source_account_id,
            target_account_id=row.target_account_id,
            relation_type=row.relation_type,
            relation_index=row.relation_index or "",
            direction=direction,
        )

    @staticmethod
    def _rater_info(
        rel: RelationshipRow, account: Account | None, score: ReputationScoreRow | None
    ) -> RaterInfo:
        return RaterInfo(
            account_id=rel.source_account_id,
            name=display_name(rel.source_account_id, account.name if account is not None else None),
            rating=rel.relation_type,
            portfolio=_decimal(account.total_xlm_value if account is not None else None),
            own_score=float(score.weighted_score or 0.0) if score is not None else 0.0,
        )

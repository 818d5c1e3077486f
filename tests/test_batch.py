"""
Tests for run_reputation_batch: summary, persistence, idempotence, cancellation.
"""

from __future__ import annotations

import threading

import pytest

from lore_trust.core.exceptions import OperationCancelledError, RepositoryError
from lore_trust.database.repository import ReputationRepository
from lore_trust.reputation.batch import BatchResult, run_reputation_batch

ALICE = "GALICE"
BOB = "GBOB"
CAROL = "GCAROL"
GHOST = "GGHOST"


def test_empty_edge_set(fake_store):
    result = run_reputation_batch(fake_store)
    assert result == BatchResult()
    assert "persist_scores" not in fake_store.calls


def test_summary_and_missing_accounts_skipped(fake_store):
    fake_store.add_account(ALICE)
    fake_store.add_account(BOB)
    fake_store.rate(BOB, ALICE, "A")
    fake_store.rate(ALICE, BOB, "B")
    fake_store.rate(ALICE, GHOST, "D")
    fake_store.rate(BOB, CAROL, "Z")

    result = run_reputation_batch(fake_store)
    assert result.edges == 3
    assert result.computed == 3
    assert result.written == 2
    assert result.calculated_at is not None
    assert GHOST not in fake_store.scores
    assert fake_store.scores[ALICE].weighted_score == 4.0
    assert fake_store.scores[BOB].weighted_score == 3.0


def test_idempotent_over_sqlite(seed):
    seed.account(ALICE, "Alice", xlm=5000)
    seed.account(BOB, "Bob", xlm=20)
    seed.account(CAROL)
    seed.rate(ALICE, CAROL, "A")
    seed.rate(BOB, CAROL, "D")
    seed.rate(CAROL, ALICE, "B")
    seed.relate(ALICE, "Spouse", BOB)
    seed.relate(BOB, "Spouse", ALICE)

    repo = ReputationRepository()
    first = run_reputation_batch(repo)
    carol_first = repo.fetch_persisted_score(CAROL)
    alice_first = repo.fetch_persisted_score(ALICE)

    second = run_reputation_batch(repo)
    carol_second = repo.fetch_persisted_score(CAROL)

    assert first.written == second.written == 2
    assert carol_first.values_equal(carol_second)
    assert carol_first.weighted_score > carol_first.base_score == 2.5
    assert alice_first.total_ratings == 1
    assert repo.fetch_persisted_score(BOB) is None


def test_cancelled_batch(fake_store):
    fake_store.rate(BOB, ALICE, "A")
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(OperationCancelledError):
        run_reputation_batch(fake_store, cancel=cancel)


def test_write_failure_propagates(fake_store):
    fake_store.add_account(ALICE)
    fake_store.rate(BOB, ALICE, "A")
    fake_store.fail_on.add("persist_scores")
    with pytest.raises(RepositoryError):
        run_reputation_batch(fake_store)
    assert fake_store.scores == {}


def test_configured_max_weight_applies_to_injected_store(fake_store, monkeypatch):
    """REPUTATION_MAX_WEIGHT caps raters even when the store is passed in."""
    from lore_trust.config import get_settings

    monkeypatch.setenv("REPUTATION_MAX_WEIGHT", "2")
    get_settings.cache_clear()
    try:
        fake_store.add_account(ALICE, xlm=1_000_000_000)
        fake_store.add_account(BOB)
        fake_store.rate(ALICE, BOB, "A")

        run_reputation_batch(fake_store)
    finally:
        get_settings.cache_clear()

    assert fake_store.scores[BOB].total_weight == 2.0

"""
FastAPI router: GET /api/v1/accounts/{account_id}/reputation and /relationships.

Read-only; scores come from the batch job. A missing graph falls back to a
score-only response with empty levels. Data-access failures are logged and
answered with a generic 500.
"""

from __future__ import annotations

import re

from fastapi import APIRouter, Depends, HTTPException

from lore_trust.core.exceptions import RepositoryError
from lore_trust.lore_logging import get_logger
from lore_trust.reputation.service import ReputationService
from lore_trust.reputation.views import CategoryView, GraphView

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/accounts", tags=["reputation"])

STELLAR_ACCOUNT_RE = re.compile(r"^G[A-Z2-7]{55}$")
"""Public Stellar account id: 'G' followed by 55 base32 characters."""


def is_valid_stellar_id(account_id: str) -> bool:
    return bool(STELLAR_ACCOUNT_RE.match(account_id or ""))


def get_reputation_service() -> ReputationService:
    """Dependency: service over the SQLAlchemy repository. Overridden in tests."""
    from lore_trust.config import get_settings
    from lore_trust.database.repository import ReputationRepository
    from lore_trust.reputation.weights import RaterWeightCalculator

    return ReputationService(ReputationRepository(), RaterWeightCalculator(get_settings().max_weight))


def _validated(account_id: str) -> str:
    account_id = (account_id or "").strip()
    if not account_id:
        raise HTTPException(status_code=400, detail="account ID is required")
    if not is_valid_stellar_id(account_id):
        raise HTTPException(status_code=400, detail="invalid Stellar account ID format")
    return account_id


@router.get("/{account_id}/reputation", response_model=GraphView)
def get_reputation(account_id: str, service: ReputationService = Depends(get_reputation_service)) -> GraphView:
    """Two-level reputation graph, or a score-only view when nobody rated the account's raters."""
    account_id = _validated(account_id)
    try:
        graph = service.get_graph(account_id)
    except RepositoryError as e:
        logger.exception("api_reputation_graph_failed", account_id=account_id, error=str(e))
        raise HTTPException(status_code=500, detail="failed to fetch reputation data") from e

    if graph is not None:
        return graph

    try:
        score = service.get_score(account_id)
    except RepositoryError as e:
        logger.warning("api_reputation_score_failed", account_id=account_id, error=str(e))
        score = None
    return GraphView(target_account_id=account_id, target_name=account_id, score=score)


@router.get("/{account_id}/relationships", response_model=list[CategoryView])
def get_relationships(
    account_id: str, service: ReputationService = Depends(get_reputation_service)
) -> list[CategoryView]:
    account_id = _validated(account_id)
    try:
        return service.get_relationships(account_id)
    except RepositoryError as e:
        logger.exception("api_relationships_failed", account_id=account_id, error=str(e))
        raise HTTPException(status_code=500, detail="failed to fetch relationships") from e

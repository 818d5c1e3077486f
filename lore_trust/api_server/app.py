"""
FastAPI application: read-only reputation API.

Scores are produced by the batch scheduler (tools.reputation_scheduler); the
API never computes them.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from lore_trust.api_server.reputation import router as reputation_router
from lore_trust.database.session import init_db
from lore_trust.lore_logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        init_db()
    except Exception as e:
        logger.warning("lore_db_init_skip", error=str(e))
    yield


app = FastAPI(
    title="Lore Trust API",
    description="Peer reputation scores, trust graphs and relationships for ledger accounts.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(reputation_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.exception_handler(HTTPException)
def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )

"""
Engine and session management.

PostgreSQL (psycopg) when LORE_DB_URL / DATABASE_URL is set; otherwise SQLite
at LORE_DB_PATH or lore.db. The engine is created lazily and cached per process.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from lore_trust.config.env import get_database_url, mask_database_url
from lore_trust.database.models import Base
from lore_trust.lore_logging import get_logger

logger = get_logger(__name__)

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def _driver_url(url: str) -> str:
    """Route plain postgres URLs through the psycopg (v3) driver."""
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://"):]
    return url


def get_engine() -> Engine:
    """Create or return cached engine."""
    global _engine
    if _engine is None:
        url = get_database_url()
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        _engine = create_engine(_driver_url(url), connect_args=connect_args, pool_pre_ping=True)
        logger.info("lore_db_engine", url=mask_database_url(url))
    return _engine


def get_session_factory() -> sessionmaker:
    """Return session factory bound to engine."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


@contextmanager
def session_scope(factory: sessionmaker | None = None) -> Iterator[Session]:
    """Context manager for a single session. Commits on success, rolls back on error."""
    session = (factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """
    Create tables if they do not exist. Safe to call on every startup.
    Schema migrations are managed outside this package.
    """
    try:
        engine = get_engine()
        Base.metadata.create_all(bind=engine)
        logger.info("lore_db_init", url=mask_database_url(get_database_url()))
    except Exception as e:
        logger.exception("lore_db_init_failed", error=str(e))
        raise


def reset_engine_for_test() -> None:
    """Clear cached engine and session factory. For tests only; use with a new LORE_DB_PATH."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None

"""
Persistence layer — SQLAlchemy models, engine/session management, reputation repository.

SQLite by default; PostgreSQL (psycopg) when LORE_DB_URL or DATABASE_URL is set.
"""

from lore_trust.database.repository import ReputationRepository
from lore_trust.database.session import (
    get_engine,
    init_db,
    reset_engine_for_test,
    session_scope,
)

__all__ = [
    "ReputationRepository",
    "get_engine",
    "init_db",
    "reset_engine_for_test",
    "session_scope",
]

"""
Environment variable loading for lore-trust.

- LORE_DB_URL / DATABASE_URL: SQLAlchemy URL (PostgreSQL via psycopg, or SQLite)
- LORE_DB_PATH: SQLite file used when no URL is set (default: lore.db)
- REPUTATION_MAX_WEIGHT: cap on a single rater's influence (default: 100.0)
- REPUTATION_CRON_HOUR / REPUTATION_CRON_MINUTE / REPUTATION_TIMEZONE: batch schedule
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is lore_trust/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_SQLITE_PATH = "lore.db"
DEFAULT_MAX_WEIGHT = 100.0
DEFAULT_CRON_HOUR = 3
DEFAULT_CRON_MINUTE = 0
DEFAULT_TIMEZONE = "UTC"


def load_lore_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    load_dotenv(_ENV_PATH, override=False)


def get_database_url() -> str:
    """
    Resolve the database URL.
    Order: LORE_DB_URL > DATABASE_URL > sqlite:///<LORE_DB_PATH or lore.db>.
    """
    load_lore_env()
    url = (os.getenv("LORE_DB_URL") or os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url
    path = (os.getenv("LORE_DB_PATH") or "").strip() or DEFAULT_SQLITE_PATH
    return f"sqlite:///{path}"


def _float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_max_weight() -> float:
    """Return REPUTATION_MAX_WEIGHT; values below 1.0 fall back to the default."""
    load_lore_env()
    value = _float_env("REPUTATION_MAX_WEIGHT", DEFAULT_MAX_WEIGHT)
    return value if value >= 1.0 else DEFAULT_MAX_WEIGHT


def get_schedule() -> tuple[int, int, str]:
    """Return (hour, minute, timezone name) for the scoring cron job."""
    load_lore_env()
    hour = _int_env("REPUTATION_CRON_HOUR", DEFAULT_CRON_HOUR)
    minute = _int_env("REPUTATION_CRON_MINUTE", DEFAULT_CRON_MINUTE)
    tz = (os.getenv("REPUTATION_TIMEZONE") or "").strip() or DEFAULT_TIMEZONE
    if not 0 <= hour <= 23:
        hour = DEFAULT_CRON_HOUR
    if not 0 <= minute <= 59:
        minute = DEFAULT_CRON_MINUTE
    return hour, minute, tz


def mask_database_url(url: str) -> str:
    """Strip credentials and query string for logging."""
    return url.split("?")[0].split("@")[-1].split("//")[-1]

"""
Application settings.

Typed view over the environment getters in config.env, cached for the process.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from lore_trust.config.env import get_database_url, get_max_weight, get_schedule


@dataclass(frozen=True)
class Settings:
    database_url: str
    max_weight: float
    cron_hour: int
    cron_minute: int
    timezone: str


@lru_cache()
def get_settings() -> Settings:
    """Return the current application settings (read once per process)."""
    hour, minute, tz = get_schedule()
    return Settings(
        database_url=get_database_url(),
        max_weight=get_max_weight(),
        cron_hour=hour,
        cron_minute=minute,
        timezone=tz,
    )

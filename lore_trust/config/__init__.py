"""
Configuration management for lore-trust.

Loads settings from environment variables and an optional .env file.
"""

from lore_trust.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]

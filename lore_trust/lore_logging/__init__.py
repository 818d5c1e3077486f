"""
Structured logging for lore-trust.

Use get_logger() in all modules for aggregation-friendly JSON output.
"""

from lore_trust.lore_logging.logger import bind_account, get_logger

__all__ = ["bind_account", "get_logger"]

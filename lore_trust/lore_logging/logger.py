"""
structlog setup for lore-trust.

Every line carries event_type, level, logger name and a UTC ISO timestamp.
Reputation code logs with keyword context: account_id for per-account work
(graph builds, repository reads), counts for batch runs. Repository errors
raised outside any account pass account_id=None; that key is dropped rather
than rendered as null.

LOG_FORMAT=json (default) or console; LOG_LEVEL picks the threshold.
Imports nothing from lore_trust so any module can log.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

ACCOUNT_KEY = "account_id"


def event_type_processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Move structlog's 'event' to event_type and mirror it in message."""
    event_type = event_dict.pop("event", None)
    if event_type is not None:
        event_dict.setdefault("event_type", event_type)
    if "event_type" in event_dict:
        event_dict.setdefault("message", str(event_dict["event_type"]))
    return event_dict


def account_processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Drop a missing account_id; stringify the rest."""
    if ACCOUNT_KEY not in event_dict:
        return event_dict
    account_id = event_dict[ACCOUNT_KEY]
    if account_id is None or not str(account_id).strip():
        del event_dict[ACCOUNT_KEY]
    else:
        event_dict[ACCOUNT_KEY] = str(account_id)
    return event_dict


def _renderer(fmt: str) -> Any:
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    return structlog.processors.JSONRenderer()


def configure_logging(level: int = LOG_LEVEL_VALUE, fmt: str = LOG_FORMAT) -> None:
    """Install the lore-trust processor chain."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            event_type_processor,
            account_processor,
            _renderer(fmt),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger, bound with its name.

        logger = get_logger(__name__)
        logger.info("reputation_scores_persisted", written=120, skipped=3)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_account(account_id: str) -> structlog.BoundLogger:
    return get_logger("lore_trust").bind(account_id=account_id)

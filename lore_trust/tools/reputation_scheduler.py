"""
Reputation batch scheduler: recompute all scores daily via APScheduler.

Schedule comes from REPUTATION_CRON_HOUR / REPUTATION_CRON_MINUTE /
REPUTATION_TIMEZONE (default 03:00 UTC).

Usage:
  python -m lore_trust.tools.reputation_scheduler           # start scheduler
  python -m lore_trust.tools.reputation_scheduler --run-now # run once, then exit
"""

from __future__ import annotations

import argparse
import sys

from apscheduler.schedulers.blocking import BlockingScheduler
from pytz import timezone

from lore_trust.config import get_settings
from lore_trust.database.session import init_db
from lore_trust.lore_logging import get_logger
from lore_trust.reputation.batch import run_reputation_batch

logger = get_logger(__name__)

JOB_ID = "lore_reputation_batch"


def run_batch() -> int:
    """Execute one batch run. Returns exit code (0 = success)."""
    init_db()
    result = run_reputation_batch()
    logger.info("reputation_scheduler_batch_summary", edges=result.edges, written=result.written)
    return 0


def job_reputation() -> None:
    """Scheduled job: log start, run batch, log end."""
    logger.info("reputation_scheduler_job_start")
    try:
        exit_code = run_batch()
        logger.info("reputation_scheduler_job_end", success=exit_code == 0)
    except Exception as e:
        logger.exception("reputation_scheduler_job_error", error=str(e))
        raise


def build_scheduler() -> BlockingScheduler:
    settings = get_settings()
    scheduler = BlockingScheduler()
    scheduler.add_job(
        job_reputation,
        "cron",
        hour=settings.cron_hour,
        minute=settings.cron_minute,
        timezone=timezone(settings.timezone),
        id=JOB_ID,
    )
    return scheduler


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Recompute lore reputation scores on a daily schedule.")
    parser.add_argument(
        "--run-now",
        action="store_true",
        help="Run the batch once immediately, then exit.",
    )
    args = parser.parse_args(argv)

    if args.run_now:
        logger.info("reputation_scheduler_manual_run_start")
        exit_code = run_batch()
        logger.info("reputation_scheduler_manual_run_end", exit_code=exit_code)
        return exit_code

    settings = get_settings()
    scheduler = build_scheduler()
    logger.info(
        "reputation_scheduler_started",
        run_time=f"{settings.cron_hour:02d}:{settings.cron_minute:02d} {settings.timezone} daily",
    )
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("reputation_scheduler_stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Periodic contest sweep.

Completes contests whose end date has passed, independently of any
client being connected. Runs in-process on APScheduler's thread-based
scheduler since the ORM sessions are synchronous.
"""

import logging
from datetime import timezone
from typing import List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config import settings
from ..database import SessionLocal
from .contest_lifecycle import ContestLifecycle

logger = logging.getLogger(__name__)

_scheduler: Optional[BackgroundScheduler] = None


def contest_sweep_job() -> List[int]:
    """Complete expired contests"""
    db = SessionLocal()
    try:
        completed = ContestLifecycle(db).complete_expired()
    except Exception:
        db.rollback()
        logger.exception("Contest sweep failed")
        return []
    finally:
        db.close()

    if completed:
        logger.info("Contest sweep completed %d contest(s)", len(completed))
    return completed


def get_scheduler() -> BackgroundScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = BackgroundScheduler(timezone=timezone.utc)
    return _scheduler


def start_scheduler() -> None:
    scheduler = get_scheduler()
    if scheduler.running:
        logger.info("Scheduler already running")
        return

    scheduler.add_job(
        contest_sweep_job,
        trigger=IntervalTrigger(
            seconds=settings.contest_sweep_interval_seconds
        ),
        id="contest_sweep",
        name="Contest Sweep",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info(
        "Contest sweep scheduled every %ss",
        settings.contest_sweep_interval_seconds,
    )

    # Catch up on anything that expired while the service was down
    contest_sweep_job()


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=True)
        logger.info("Contest sweep stopped")
    _scheduler = None

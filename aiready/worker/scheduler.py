# aiready/worker/scheduler.py
from __future__ import annotations

import logging
from typing import Callable, Dict

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from aiready.core import config
from aiready.db.session import SessionLocal
from aiready.services.monitoring import flag_due_reassessments, run_monitoring

log = logging.getLogger("aiready.scheduler")


def _with_db(fn: Callable[[Session], int], session_factory=SessionLocal) -> int:
    """Run fn with a fresh session; a failing step is logged and counts as 0."""
    db = session_factory()
    try:
        return int(fn(db) or 0)
    except Exception:
        db.rollback()
        log.exception("scheduled step %s failed", getattr(fn, "__name__", fn))
        return 0
    finally:
        db.close()


def run_daily_monitoring(session_factory=SessionLocal) -> Dict[str, int]:
    """
    Daily pipeline:
      - compliance monitoring check for every active system
      - alerts for reassessment deadlines that fell due
    """
    result = {
        "systems_checked": _with_db(run_monitoring, session_factory),
        "reassessments_due": _with_db(flag_due_reassessments, session_factory),
    }
    log.info("daily monitoring done: %s", result)
    return result


def make_scheduler() -> BackgroundScheduler:
    """
    BackgroundScheduler configured from env:
      - APP_TIMEZONE
      - APP_SCHEDULER_HOUR
      - APP_SCHEDULER_MINUTE
    """
    sched = BackgroundScheduler(timezone=config.APP_TIMEZONE)
    sched.add_job(
        run_daily_monitoring,
        CronTrigger(hour=config.APP_SCHEDULER_HOUR, minute=config.APP_SCHEDULER_MINUTE),
        id="daily_monitoring",
        replace_existing=True,
    )
    return sched

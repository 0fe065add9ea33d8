"""
Scheduled Tasks for Waterlog

Uses APScheduler to periodically replay every plant's history and report
plants whose stored derived state differs from the replay. The job never
writes; fixing drift is left to ``waterlog-validate --fix``.
"""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from waterlog.config import settings
from waterlog.database import SessionLocal
from waterlog.services.plant_state import reconcile_all

logger = logging.getLogger(__name__)

# Create scheduler instance
scheduler = AsyncIOScheduler()


def run_reconcile_job():
    """Check derived state for all plants."""
    logger.info("Starting scheduled drift check...")

    db = SessionLocal()
    try:
        results = reconcile_all(db)
        logger.info(
            f"Drift check complete. {results['consistent']} consistent, "
            f"{results['drifted']} drifted, {results['failed']} failed."
        )
        return results
    except Exception as e:
        logger.error(f"Drift check failed: {e}")
    finally:
        db.close()


def start_scheduler():
    """Start the APScheduler with configured jobs."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled by configuration")
        return
    if not scheduler.running:
        scheduler.add_job(
            run_reconcile_job,
            trigger=IntervalTrigger(minutes=settings.reconcile_interval_minutes),
            id="check_plant_state",
            name="Plant state drift check",
            replace_existing=True
        )
        scheduler.start()
        logger.info(
            f"Scheduler started with drift check "
            f"(interval: {settings.reconcile_interval_minutes} minutes)"
        )


def stop_scheduler():
    """Stop the APScheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")

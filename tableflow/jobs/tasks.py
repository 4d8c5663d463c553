"""Background job tasks"""

import asyncio
import structlog

from tableflow.jobs.celery_app import celery_app
from tableflow.jobs import sweeps
from tableflow.config import settings

logger = structlog.get_logger()


def run_async(coro):
    """Helper to run async functions in sync context"""
    return asyncio.run(coro)


async def _run_sweep(sweep, *args):
    from tableflow.api.deps import table_locks
    from tableflow.database import SessionLocal, engine
    from tableflow.scheduling import ReservationScheduler, SqlReservationStore

    try:
        async with SessionLocal() as db:
            scheduler = ReservationScheduler(SqlReservationStore(db), locks=table_locks)
            return await sweep(scheduler, *args)
    finally:
        # Pooled connections belong to this event loop only
        await engine.dispose()


@celery_app.task(name="mark_no_shows")
def mark_no_shows():
    """Mark reservations as no-show once their start passed the grace period"""
    logger.info("Sweeping for no-shows", grace_minutes=settings.no_show_grace_minutes)
    count = run_async(_run_sweep(sweeps.mark_no_shows, settings.no_show_grace_minutes))
    logger.info("Marked no-shows", count=count)
    return count


@celery_app.task(name="auto_complete_seated")
def auto_complete_seated():
    """Complete reservations left seated past the configured time"""
    logger.info("Auto-completing seated reservations", after_minutes=settings.auto_complete_after_minutes)
    count = run_async(_run_sweep(sweeps.auto_complete_seated, settings.auto_complete_after_minutes))
    logger.info("Auto-completed reservations", count=count)
    return count


@celery_app.task(name="archive_old_reservations")
def archive_old_reservations():
    """Archive finished reservations (older than ``archive_after_days``)"""
    logger.info("Archiving old reservations", after_days=settings.archive_after_days)
    count = run_async(_run_sweep(sweeps.archive_old_reservations, settings.archive_after_days))
    logger.info("Archived reservations", count=count)
    return count

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from campus_market.config import settings
from campus_market.tasks.jobs import process_held_funds
import logging

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def start_scheduler():
    """Start background task scheduler"""
    # Move matured holds to the available balance
    scheduler.add_job(
        process_held_funds,
        IntervalTrigger(minutes=settings.HELD_FUNDS_SWEEP_MINUTES),
        id="process_held_funds",
        name="Release held wallet funds",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info(f"Background scheduler started (held funds sweep every {settings.HELD_FUNDS_SWEEP_MINUTES} min)")


def stop_scheduler():
    """Stop background task scheduler"""
    if scheduler.running:
        scheduler.shutdown()
    logger.info("Background scheduler stopped")

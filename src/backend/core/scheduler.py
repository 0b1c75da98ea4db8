"""
Background task scheduler for periodic jobs.
Uses APScheduler to run the daily accommodation expiry sweep.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from core.config import SchedulerSettings
from tasks.expiry_tasks import expire_accommodations_task

logger = logging.getLogger(__name__)

EXPIRY_JOB_ID = "expire_accommodations"

# Global scheduler instance, set by start_scheduler()
scheduler: Optional[AsyncIOScheduler] = None


async def expire_accommodations_job():
    """
    Background job that expires accommodations past their end date.
    Runs daily via APScheduler.
    """
    try:
        result = await expire_accommodations_task()
        logger.info(f"Scheduled expiry sweep finished: {result}")
    except Exception as e:
        logger.error(f"Scheduled expiry sweep failed: {str(e)}", exc_info=True)


def create_scheduler(config: SchedulerSettings) -> AsyncIOScheduler:
    """Build a scheduler with the expiry job registered but not started."""
    new_scheduler = AsyncIOScheduler(timezone=config.timezone)

    new_scheduler.add_job(
        expire_accommodations_job,
        trigger=CronTrigger(
            hour=config.expiry_hour,
            minute=config.expiry_minute,
            timezone=config.timezone,
        ),
        id=EXPIRY_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        name="Accommodation Expiry Sweep",
    )

    return new_scheduler


def start_scheduler(config: SchedulerSettings) -> Optional[AsyncIOScheduler]:
    """Start the background scheduler with all jobs. Must run inside the event loop."""
    global scheduler

    if not config.enabled:
        logger.info("APScheduler disabled by configuration")
        return None

    logger.info("Starting APScheduler for background tasks...")
    scheduler = create_scheduler(config)
    scheduler.start()
    logger.info(
        f"APScheduler started with jobs: accommodation expiry "
        f"(daily at {config.expiry_hour:02d}:{config.expiry_minute:02d} {config.timezone})"
    )
    return scheduler


def shutdown_scheduler() -> None:
    """Shutdown the scheduler gracefully."""
    global scheduler

    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("APScheduler shut down successfully")
    scheduler = None

"""Cron scheduling for APR collection and retention pruning.

Both jobs call straight into SamplingOrchestrator. A failed cycle is logged
and the job simply waits for its next fire time; there is no retry.
"""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from apr_service.config import ScheduleSettings
from apr_service.exceptions import CollectionFailed
from apr_service.logging import get_logger
from apr_service.orchestrator import SamplingOrchestrator

logger = get_logger(__name__)

COLLECT_JOB_ID = "apr_collect"
PRUNE_JOB_ID = "apr_prune"


async def run_scheduled_collection(orchestrator: SamplingOrchestrator) -> None:
    """Scheduled collection job. CollectionFailed is logged, not raised."""
    try:
        await orchestrator.collect(trigger="schedule")
    except CollectionFailed as e:
        logger.error("scheduled_collection_failed", error=str(e))


async def run_scheduled_prune(orchestrator: SamplingOrchestrator) -> None:
    """Scheduled retention job."""
    try:
        await orchestrator.prune()
    except Exception as e:
        logger.error("scheduled_prune_failed", error=str(e), exc_info=True)


def build_scheduler(
    orchestrator: SamplingOrchestrator,
    settings: ScheduleSettings,
) -> AsyncIOScheduler:
    """Create an AsyncIOScheduler with the collection and prune cron jobs.

    The scheduler is returned unstarted; the caller owns start/shutdown.

    Raises:
        ValueError: If a cron expression is invalid.
    """
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        run_scheduled_collection,
        CronTrigger.from_crontab(settings.collection_cron, timezone="UTC"),
        id=COLLECT_JOB_ID,
        args=[orchestrator],
        max_instances=1,
        coalesce=True,
        misfire_grace_time=300,
    )
    scheduler.add_job(
        run_scheduled_prune,
        CronTrigger.from_crontab(settings.retention_cron, timezone="UTC"),
        id=PRUNE_JOB_ID,
        args=[orchestrator],
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600,
    )
    logger.info(
        "scheduler_configured",
        collection_cron=settings.collection_cron,
        retention_cron=settings.retention_cron,
        retention_days=settings.retention_days,
    )
    return scheduler

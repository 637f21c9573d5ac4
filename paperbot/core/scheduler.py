"""
APScheduler integration for FastAPI.

Stands in for an external cron: the notification run itself keeps no
schedule and no state between invocations.

Jobs:
- Notification run: every ``notifications.poll_minutes`` minutes (default 5),
  sends today's papers to users whose delivery window is open
"""

from typing import Any

import httpx
from apscheduler import AsyncScheduler, ConflictPolicy, JobOutcome, JobReleased
from apscheduler.datastores.memory import MemoryDataStore
from apscheduler.triggers.cron import CronTrigger

from paperbot.config import get_config, get_settings
from paperbot.core.database import AsyncSessionLocal
from paperbot.core.datetime_utils import utc_now
from paperbot.core.logging import get_logger
from paperbot.services.notifier import NotificationOrchestrator
from paperbot.services.paper_store import PaperStore
from paperbot.services.user_store import UserStore
from paperbot.services.whatsapp_service import WhatsAppClient

logger = get_logger(__name__)

# Global scheduler instance
scheduler: AsyncScheduler | None = None
# HTTP pool handed over by the app lifespan
_http_client: httpx.AsyncClient | None = None


async def notification_job() -> None:
    """Send today's papers to every user whose delivery window is open."""
    if _http_client is None:
        raise RuntimeError("Scheduler started without an HTTP client")

    orchestrator = NotificationOrchestrator(
        content_store=PaperStore(AsyncSessionLocal),
        user_store=UserStore(AsyncSessionLocal),
        channel=WhatsAppClient.from_settings(_http_client, get_settings()),
        config=get_config(),
    )

    logger.debug("notification_job_started")
    try:
        summary = await orchestrator.run_daily_notification(utc_now())
    except Exception as e:
        logger.bind(error=str(e)).error("notification_job_failed")
        raise  # Re-raise so APScheduler records the failure

    logger.bind(
        outcome=summary.outcome.value,
        sent=summary.sent,
        skipped=summary.skipped,
        failed=summary.failed,
    ).info("notification_job_completed")


async def start_scheduler(http_client: httpx.AsyncClient) -> AsyncScheduler | None:
    """Initialize and start the in-memory scheduler."""
    global scheduler, _http_client

    settings = get_settings()
    if not settings.scheduler_enabled:
        logger.info("scheduler_disabled_by_config")
        return None

    _http_client = http_client
    poll_minutes = get_config().notifications.poll_minutes

    scheduler = AsyncScheduler(data_store=MemoryDataStore())

    # Start the scheduler first (required before calling other methods in APScheduler 4.x)
    await scheduler.__aenter__()
    scheduler.subscribe(_on_job_released, {JobReleased})

    await scheduler.add_schedule(
        notification_job,
        CronTrigger(minute=f"*/{poll_minutes}"),
        id="daily_notification",
        conflict_policy=ConflictPolicy.replace,
    )

    await scheduler.start_in_background()

    logger.bind(jobs=["daily_notification"], poll_minutes=poll_minutes).info("scheduler_started")
    return scheduler


async def _on_job_released(event: Any) -> None:
    """Log failed job runs."""
    if isinstance(event, JobReleased) and event.outcome == JobOutcome.error:
        exception = getattr(event, "exception_message", None) or getattr(event, "exception", None)
        logger.bind(
            schedule_id=event.schedule_id,
            error=str(exception) if exception else None,
        ).error("scheduled_job_errored")


async def stop_scheduler() -> None:
    """Gracefully stop the scheduler."""
    global scheduler, _http_client
    if scheduler:
        await scheduler.__aexit__(None, None, None)
        logger.info("scheduler_stopped")
        scheduler = None
    _http_client = None

"""Notification run trigger, called by the external scheduler."""

from fastapi import APIRouter, status
from fastapi.responses import PlainTextResponse

from paperbot.core.datetime_utils import utc_now
from paperbot.core.exceptions import UpstreamFetchError
from paperbot.core.logging import get_logger
from paperbot.dependencies import Orchestrator
from paperbot.services.notifier import NotificationSummary, RunOutcome

logger = get_logger(__name__)
router = APIRouter()


def status_for(summary: NotificationSummary) -> int:
    """200 for a clean run (including nothing to do), 207 if any send failed."""
    if summary.outcome == RunOutcome.PARTIAL_FAILURE:
        return status.HTTP_207_MULTI_STATUS
    return status.HTTP_200_OK


@router.post("/notifications/run", response_class=PlainTextResponse)
async def run_notifications(orchestrator: Orchestrator) -> PlainTextResponse:
    """
    Run one daily-papers notification pass.

    Takes no body. The plain-text response summarises the run:
    - 200: papers sent, or nothing to send / nobody due
    - 207: papers sent but some deliveries failed
    - 500: papers or users could not be fetched
    """
    try:
        summary = await orchestrator.run_daily_notification(utc_now())
    except UpstreamFetchError as e:
        logger.bind(error=str(e)).error("notification_run_failed")
        return PlainTextResponse(
            "Failed to fetch papers or users",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return PlainTextResponse(summary.message, status_code=status_for(summary))

"""Daily paper notification run.

Called on a fixed cadence (every few minutes) by the scheduler or the HTTP
trigger. Each run is independent: it works out who is due right now from
their timezone and preferred time, sends them today's papers, and reports
counts. Nothing is remembered between runs, so two runs inside the same
window can message a user twice.
"""

import asyncio
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Protocol

from paperbot.config import AppConfig
from paperbot.core.datetime_utils import content_date_key, is_in_delivery_window
from paperbot.core.logging import get_logger
from paperbot.models.user import User
from paperbot.schemas.papers import PaperBatch
from paperbot.services.digest import render_digest
from paperbot.services.dispatch import DispatchResult, SleepFn, dispatch_in_batches

logger = get_logger(__name__)


class ContentStore(Protocol):
    async def get_batch(self, date_key: date) -> PaperBatch | None: ...


class CandidateSource(Protocol):
    async def list_eligible_candidates(
        self, recency_window: timedelta, *, now: datetime
    ) -> list[User]: ...


class Channel(Protocol):
    async def send(self, recipient: str, body: str) -> None: ...


class RunOutcome(str, Enum):
    """How a notification run ended."""

    SENT = "sent"  # Every send succeeded
    PARTIAL_FAILURE = "partial_failure"  # At least one send failed
    NO_CONTENT = "no_content"  # No papers stored for today
    NO_USERS = "no_users"  # Nobody due in this window


@dataclass
class NotificationSummary:
    """Counts reported by a notification run."""

    outcome: RunOutcome
    sent: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def message(self) -> str:
        if self.outcome == RunOutcome.NO_CONTENT:
            return "No papers to send"
        if self.outcome == RunOutcome.NO_USERS:
            return "No users to notify"
        if self.outcome == RunOutcome.PARTIAL_FAILURE:
            return f"Papers sent to {self.sent} users, {self.failed} failed"
        return f"Papers sent to {self.sent} users"


def is_user_eligible(user: User, now: datetime, window_minutes: int) -> bool:
    """Check whether a user is due for today's papers at ``now``."""
    return is_in_delivery_window(user.timezone, user.preferred_time, now, window_minutes)


class NotificationOrchestrator:
    """Sends today's papers to every user whose delivery window is open."""

    def __init__(
        self,
        content_store: ContentStore,
        user_store: CandidateSource,
        channel: Channel,
        config: AppConfig,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.content_store = content_store
        self.user_store = user_store
        self.channel = channel
        self.config = config
        self.sleep = sleep

    async def run_daily_notification(self, now: datetime) -> NotificationSummary:
        """
        Run one notification pass.

        Args:
            now: Current instant (naive values are treated as UTC)

        Returns:
            NotificationSummary with sent/skipped/failed counts

        Raises:
            UpstreamFetchError: If papers or users cannot be fetched
        """
        settings = self.config.notifications
        date_key = content_date_key(now)

        batch = await self.content_store.get_batch(date_key)
        if batch is None or batch.is_empty:
            logger.bind(date=str(date_key)).info("no_papers_for_today")
            return NotificationSummary(outcome=RunOutcome.NO_CONTENT)

        message = render_digest(batch, self.config.digest.title, self.config.digest.outro)

        candidates = await self.user_store.list_eligible_candidates(
            timedelta(hours=settings.recency_hours), now=now
        )
        due = [u for u in candidates if is_user_eligible(u, now, settings.window_minutes)]
        skipped = len(candidates) - len(due)

        if not due:
            logger.bind(candidates=len(candidates)).info("no_users_to_notify")
            return NotificationSummary(outcome=RunOutcome.NO_USERS, skipped=skipped)

        async def send_papers(user: User) -> None:
            logger.bind(user_id=str(user.id)).debug("sending_papers")
            await self.channel.send(user.phone_number, message)

        results = await dispatch_in_batches(
            due,
            send_papers,
            batch_size=settings.batch_size,
            inter_batch_delay=settings.inter_batch_delay_seconds,
            sleep=self.sleep,
        )

        summary = self._summarize(results, skipped)
        logger.bind(
            date=str(date_key),
            sent=summary.sent,
            skipped=summary.skipped,
            failed=summary.failed,
        ).info("papers_dispatched")
        return summary

    def _summarize(self, results: list[DispatchResult[User]], skipped: int) -> NotificationSummary:
        failures = [r for r in results if not r.success]
        for failure in failures:
            logger.bind(
                user_id=str(failure.recipient.id),
                kind=failure.error_kind.value if failure.error_kind else None,
                reason=failure.reason,
            ).error("paper_delivery_failed")

        return NotificationSummary(
            outcome=RunOutcome.PARTIAL_FAILURE if failures else RunOutcome.SENT,
            sent=len(results) - len(failures),
            skipped=skipped,
            failed=len(failures),
        )

"""Subscriber lookups for the notification run and inbound messages."""

from datetime import datetime, timedelta

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from paperbot.core.datetime_utils import to_naive_utc
from paperbot.core.exceptions import UpstreamFetchError
from paperbot.core.logging import get_logger
from paperbot.models.user import User

logger = get_logger(__name__)


class UserStore:
    """SQL-backed user store."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_eligible_candidates(
        self,
        recency_window: timedelta,
        *,
        now: datetime,
    ) -> list[User]:
        """
        Get subscribed users who messaged us within the recency window.

        Users who went quiet for longer than the window are left out even if
        subscribed; we only message people who are still talking to us.

        Args:
            recency_window: How far back the last message may be
            now: Reference instant for the window

        Raises:
            UpstreamFetchError: If the database cannot be read
        """
        cutoff = to_naive_utc(now) - recency_window

        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    select(User)
                    .where(
                        and_(
                            User.subscribed == True,  # noqa: E712
                            User.last_message_at > cutoff,
                        )
                    )
                    .order_by(User.created_at, User.phone_number)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.bind(error=str(e)).error("candidate_fetch_failed")
            raise UpstreamFetchError("Could not read users") from e

    async def record_interaction(self, phone_number: str, at: datetime) -> bool:
        """
        Bump a user's last message time.

        Returns:
            True if the user exists and was updated, False for unknown numbers

        Raises:
            UpstreamFetchError: If the database cannot be read or written
        """
        try:
            async with self._session_factory() as db:
                result = await db.execute(select(User).where(User.phone_number == phone_number))
                user = result.scalar_one_or_none()
                if user is None:
                    logger.bind(phone=phone_number).debug("interaction_from_unknown_number")
                    return False

                user.last_message_at = to_naive_utc(at)
                await db.commit()
                return True
        except SQLAlchemyError as e:
            logger.bind(phone=phone_number, error=str(e)).error("interaction_record_failed")
            raise UpstreamFetchError("Could not record interaction") from e

    async def upsert_subscriber(
        self,
        phone_number: str,
        *,
        timezone: str,
        preferred_time: str,
        subscribed: bool = True,
    ) -> User:
        """Create or update a subscriber (used by the CLI)."""
        try:
            async with self._session_factory() as db:
                result = await db.execute(select(User).where(User.phone_number == phone_number))
                user = result.scalar_one_or_none()
                if user is None:
                    user = User(phone_number=phone_number)
                    db.add(user)

                user.timezone = timezone
                user.preferred_time = preferred_time
                user.subscribed = subscribed
                await db.commit()
                return user
        except SQLAlchemyError as e:
            logger.bind(phone=phone_number, error=str(e)).error("subscriber_upsert_failed")
            raise UpstreamFetchError("Could not store subscriber") from e

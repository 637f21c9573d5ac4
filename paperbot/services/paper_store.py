"""Daily paper batch storage keyed by date."""

from datetime import date

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from paperbot.core.exceptions import UpstreamFetchError
from paperbot.core.logging import get_logger
from paperbot.models.daily_papers import DailyPapers
from paperbot.schemas.papers import Paper, PaperBatch

logger = get_logger(__name__)


class PaperStore:
    """SQL-backed content store. One batch per date, writes are upserts."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_batch(self, date_key: date) -> PaperBatch | None:
        """
        Fetch the batch stored for a date.

        Returns:
            The batch, or None if nothing was stored for that date

        Raises:
            UpstreamFetchError: If the database cannot be read or the stored
                papers don't parse
        """
        try:
            async with self._session_factory() as db:
                row = await db.get(DailyPapers, date_key)
            if row is None:
                return None
            papers = [Paper.model_validate(p) for p in row.papers or []]
        except SQLAlchemyError as e:
            logger.bind(date=str(date_key), error=str(e)).error("paper_batch_fetch_failed")
            raise UpstreamFetchError(f"Could not read papers for {date_key}") from e
        except (ValidationError, TypeError) as e:
            logger.bind(date=str(date_key), error=str(e)).error("paper_batch_malformed")
            raise UpstreamFetchError(f"Stored papers for {date_key} are malformed") from e

        return PaperBatch(date=row.paper_date, papers=papers)

    async def put_batch(self, date_key: date, papers: list[Paper]) -> PaperBatch:
        """
        Store the papers for a date, replacing any existing batch.

        Every paper is stamped with ``date_key`` so items always agree with
        the batch that owns them.

        Raises:
            UpstreamFetchError: If the database cannot be written
        """
        stamped = [p.model_copy(update={"date": date_key}) for p in papers]
        payload = [p.model_dump(mode="json") for p in stamped]

        async with self._session_factory() as db:
            try:
                row = await db.get(DailyPapers, date_key)
                if row is None:
                    db.add(DailyPapers(paper_date=date_key, papers=payload))
                else:
                    row.papers = payload
                await db.commit()
            except SQLAlchemyError as e:
                logger.bind(date=str(date_key), error=str(e)).error("paper_batch_store_failed")
                await db.rollback()
                raise UpstreamFetchError(f"Could not store papers for {date_key}") from e

        logger.bind(date=str(date_key), count=len(stamped)).info("paper_batch_stored")
        return PaperBatch(date=date_key, papers=stamped)

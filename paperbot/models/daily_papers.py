"""Stored daily paper batches, one row per date key."""

from datetime import date, datetime

from sqlalchemy import JSON, Date, func
from sqlalchemy.orm import Mapped, mapped_column

from paperbot.models.base import Base, TimestampMixin


class DailyPapers(Base, TimestampMixin):
    """The curated papers for one date key.

    The date is the primary key so a second write for the same day replaces
    the first instead of adding a row.
    """

    __tablename__ = "daily_papers"

    paper_date: Mapped[date] = mapped_column("date", Date, primary_key=True)
    papers: Mapped[list[dict]] = mapped_column(JSON, default=list)
    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<DailyPapers {self.paper_date} ({len(self.papers or [])} papers)>"

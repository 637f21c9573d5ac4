import datetime

from pydantic import BaseModel, Field


class Paper(BaseModel):
    """One curated paper in a daily batch."""

    title: str
    link: str
    description: str = ""
    authors: list[str] = Field(default_factory=list)
    date: datetime.date | None = None


class PaperBatch(BaseModel):
    """The ordered papers stored under a single date key."""

    date: datetime.date
    papers: list[Paper] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.papers

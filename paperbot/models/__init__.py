from paperbot.models.base import Base
from paperbot.models.daily_papers import DailyPapers
from paperbot.models.user import User

__all__ = [
    "Base",
    "User",
    "DailyPapers",
]

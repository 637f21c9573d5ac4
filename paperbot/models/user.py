import uuid
from datetime import datetime

from sqlalchemy import Boolean, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from paperbot.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """WhatsApp subscriber.

    Rows are owned by the subscription service. The notification run only
    reads them; inbound messages bump ``last_message_at``.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    phone_number: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    subscribed: Mapped[bool] = mapped_column(Boolean, default=True)
    # Wall-clock "HH:MM:SS", always read in `timezone`
    preferred_time: Mapped[str] = mapped_column(String(8), default="09:00:00")
    timezone: Mapped[str] = mapped_column(String(64), default="UTC")
    last_message_at: Mapped[datetime | None] = mapped_column(default=None, index=True)

    def __repr__(self) -> str:
        return f"<User {self.phone_number}>"

"""
Pytest configuration and fixtures for paperbot tests.

Provides:
- Async test database with SQLite
- Test client for API testing, with fake channel and reply generator
- Factory fixtures for creating test data
"""

import uuid
from collections.abc import AsyncGenerator
from datetime import date, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from paperbot.config import AppConfig
from paperbot.core.database import build_engine, build_session_factory
from paperbot.core.exceptions import ChannelError, ChannelErrorKind
from paperbot.dependencies import get_channel, get_reply_generator, get_session_factory
from paperbot.main import app
from paperbot.models import Base, User
from paperbot.schemas.papers import Paper, PaperBatch
from paperbot.services.paper_store import PaperStore

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeChannel:
    """Records every send; recipients listed in ``failing`` raise ChannelError."""

    def __init__(self) -> None:
        self.failing: dict[str, ChannelErrorKind] = {}
        self.sent: list[tuple[str, str]] = []

    async def send(self, recipient: str, body: str) -> None:
        self.sent.append((recipient, body))
        if recipient in self.failing:
            raise ChannelError(self.failing[recipient], "simulated")

    @property
    def recipients(self) -> list[str]:
        return [recipient for recipient, _ in self.sent]


class FakeReplies:
    """Reply generator that echoes the prompt."""

    def __init__(self) -> None:
        self.prompts: list[str] = []

    async def generate(self, text: str) -> str:
        self.prompts.append(text)
        return f"echo: {text}"


class RecordingSleep:
    """Stand-in for asyncio.sleep that records the requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _build_paper(n: int = 1, **overrides) -> Paper:
    data = {
        "title": f"Paper {n}",
        "link": f"https://paperswithcode.com/paper/paper-{n}",
        "description": f"Abstract of paper {n}.",
        "authors": [f"Author {n}A", f"Author {n}B"],
    }
    data.update(overrides)
    return Paper(**data)


def _build_user(
    phone_number: str | None = None,
    timezone: str = "UTC",
    preferred_time: str = "09:00:00",
    subscribed: bool = True,
    last_message_at: datetime | None = None,
) -> User:
    return User(
        id=uuid.uuid4(),
        phone_number=phone_number or f"+1555{uuid.uuid4().int % 10_000_000:07d}",
        timezone=timezone,
        preferred_time=preferred_time,
        subscribed=subscribed,
        last_message_at=last_message_at,
    )


@pytest.fixture
def make_paper():
    """Build an unsaved Paper."""
    return _build_paper


@pytest.fixture
def make_user():
    """Build an unsaved User (no database)."""
    return _build_user


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """Config with built-in defaults only (no config.yml)."""
    return AppConfig(config_path=tmp_path / "missing.yml")


@pytest.fixture
def fake_channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def fake_replies() -> FakeReplies:
    return FakeReplies()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest_asyncio.fixture
async def db_engine():
    """Create async test database engine."""
    engine = build_engine(TEST_DATABASE_URL, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return build_session_factory(db_engine)


@pytest_asyncio.fixture
async def client(
    session_factory, fake_channel, fake_replies
) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client with database, channel and LLM overrides."""
    from paperbot.core.rate_limit import limiter

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_channel] = lambda: fake_channel
    app.dependency_overrides[get_reply_generator] = lambda: fake_replies

    # Reset rate limiter storage before each test
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================================
# Factory Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def user_factory(session_factory):
    """Factory for creating stored test users."""

    async def _create_user(**kwargs) -> User:
        user = _build_user(**kwargs)
        async with session_factory() as db:
            db.add(user)
            await db.commit()
        return user

    return _create_user


@pytest_asyncio.fixture
async def papers_factory(session_factory):
    """Factory for storing a day's papers."""

    async def _store(date_key: date, count: int = 2) -> PaperBatch:
        papers = [_build_paper(n) for n in range(1, count + 1)]
        return await PaperStore(session_factory).put_batch(date_key, papers)

    return _store

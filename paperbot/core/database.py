"""Async engine and session factory.

The stores take a session factory rather than a session, so each store call
opens and closes its own short session. Tests build their own factory
against in-memory SQLite with ``build_engine`` and ``build_session_factory``.
"""

import ssl
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from paperbot.config import get_settings

# Hosts that never get TLS (docker compose service name included)
LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "db"})

# Query params hosted Postgres URLs carry that asyncpg rejects
UNSUPPORTED_QUERY_PARAMS = ("sslmode", "channel_binding", "options")


def normalize_database_url(url: str) -> tuple[str, dict[str, Any]]:
    """
    Split a database URL into an asyncpg-safe URL and connect_args.

    SQLite URLs pass through untouched. For Postgres the unsupported query
    params are stripped and TLS moves into ``connect_args`` for any host
    not in LOCAL_HOSTS.
    """
    parsed = urlparse(url)
    if parsed.scheme.startswith("sqlite"):
        return url, {}

    params = parse_qs(parsed.query)
    for param in UNSUPPORTED_QUERY_PARAMS:
        params.pop(param, None)
    clean_url = urlunparse(parsed._replace(query=urlencode(params, doseq=True)))

    if (parsed.hostname or "") in LOCAL_HOSTS:
        return clean_url, {}
    return clean_url, {"ssl": ssl.create_default_context()}


def build_engine(url: str, *, echo: bool = False, **options: Any) -> AsyncEngine:
    """Create an async engine; extra ``options`` go to create_async_engine."""
    clean_url, connect_args = normalize_database_url(url)

    engine_options: dict[str, Any] = {"echo": echo, "connect_args": connect_args}
    if not clean_url.startswith("sqlite"):
        # Recycle before managed Postgres drops idle connections (5 min)
        engine_options.update(pool_pre_ping=True, pool_recycle=280)
    engine_options.update(options)

    return create_async_engine(clean_url, **engine_options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


settings = get_settings()

engine = build_engine(settings.database_url, echo=settings.debug)
AsyncSessionLocal = build_session_factory(engine)

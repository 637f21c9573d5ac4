from typing import Annotated

import httpx
from fastapi import Depends, Request
from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from paperbot.config import AppConfig, Settings, get_config, get_settings
from paperbot.core.database import AsyncSessionLocal
from paperbot.services.assistant import OpenAIReplyGenerator, ReplyGenerator
from paperbot.services.inbound import InboundHandler
from paperbot.services.notifier import Channel, NotificationOrchestrator
from paperbot.services.paper_store import PaperStore
from paperbot.services.user_store import UserStore
from paperbot.services.whatsapp_service import WhatsAppClient

# Type aliases for dependency injection
AppSettings = Annotated[Settings, Depends(get_settings)]
Config = Annotated[AppConfig, Depends(get_config)]


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for the stores; overridden in tests."""
    return AsyncSessionLocal


SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


def get_paper_store(session_factory: SessionFactory) -> PaperStore:
    return PaperStore(session_factory)


def get_user_store(session_factory: SessionFactory) -> UserStore:
    return UserStore(session_factory)


def get_channel(request: Request, settings: AppSettings) -> Channel:
    """WhatsApp client sharing the app-wide HTTP connection pool."""
    http_client: httpx.AsyncClient = request.app.state.http_client
    return WhatsAppClient.from_settings(http_client, settings)


def get_reply_generator(settings: AppSettings, config: Config) -> ReplyGenerator:
    client = AsyncOpenAI(api_key=settings.openai_api_key)
    return OpenAIReplyGenerator(client, config.assistant, model=settings.llm_model)


Papers = Annotated[PaperStore, Depends(get_paper_store)]
Users = Annotated[UserStore, Depends(get_user_store)]
ChannelClient = Annotated[Channel, Depends(get_channel)]
Replies = Annotated[ReplyGenerator, Depends(get_reply_generator)]


def get_orchestrator(
    papers: Papers,
    users: Users,
    channel: ChannelClient,
    config: Config,
) -> NotificationOrchestrator:
    return NotificationOrchestrator(papers, users, channel, config)


def get_inbound_handler(
    users: Users,
    replies: Replies,
    channel: ChannelClient,
    config: Config,
) -> InboundHandler:
    return InboundHandler(users, replies, channel, config.webhook)


Orchestrator = Annotated[NotificationOrchestrator, Depends(get_orchestrator)]
Inbound = Annotated[InboundHandler, Depends(get_inbound_handler)]

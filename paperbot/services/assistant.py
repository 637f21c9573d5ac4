"""Auto-replies to inbound WhatsApp messages."""

from typing import Protocol

import backoff
from httpx import HTTPStatusError
from openai import AsyncOpenAI, OpenAIError, RateLimitError

from paperbot.config import AssistantConfig, get_settings
from paperbot.core.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are a helpful, friendly, and concise assistant communicating via WhatsApp.

Guidelines:
- Keep responses short and to the point (1-3 sentences when possible)
- Be conversational and friendly
- If you don't know something, admit it clearly
- Format important information with *asterisks* for bold text
- Use emojis occasionally to add personality 😊
- Avoid URLs unless specifically requested
- Never mention that you're an AI or discuss your limitations unprompted"""

EMPTY_REPLY = "Sorry, I couldn't generate a response."


class ReplyGenerator(Protocol):
    async def generate(self, text: str) -> str: ...


class OpenAIReplyGenerator:
    """Reply generator backed by the OpenAI chat completions API."""

    def __init__(self, client: AsyncOpenAI, config: AssistantConfig, model: str | None = None) -> None:
        self.client = client
        self.config = config
        self.model = model or get_settings().llm_model

    @backoff.on_exception(
        backoff.expo,
        (RateLimitError, HTTPStatusError),
        max_tries=3,
        max_time=20,
    )
    async def _complete(self, text: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": self.config.system_prompt or SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        content = response.choices[0].message.content if response.choices else None
        return content or EMPTY_REPLY

    async def generate(self, text: str) -> str:
        """
        Generate a short reply to a user's message.

        Never raises: provider errors produce the configured fallback reply.
        """
        try:
            reply = await self._complete(text)
        except OpenAIError as e:
            logger.bind(error=str(e)).error("reply_generation_failed")
            return self.config.fallback_reply

        logger.bind(chars=len(reply)).debug("reply_generated")
        return reply

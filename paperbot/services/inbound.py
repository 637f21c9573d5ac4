"""
Inbound WhatsApp message handling.

Records that a user talked to us (which keeps them inside the daily
notification recency window) and answers each message with an
auto-generated reply.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from paperbot.config import WebhookConfig
from paperbot.core.logging import get_logger
from paperbot.schemas.webhook import InboundMessage, WebhookPayload
from paperbot.services.assistant import ReplyGenerator
from paperbot.services.dispatch import SleepFn, dispatch_in_batches
from paperbot.services.notifier import Channel

logger = get_logger(__name__)

# Stand-in prompts for message types we can't read
NON_TEXT_NOTICES = {
    "image": "[You sent an image. I can only respond to text messages.]",
    "audio": "[You sent an audio message. I can only respond to text messages.]",
    "video": "[You sent a video. I can only respond to text messages.]",
    "document": "[You sent a document. I can only respond to text messages.]",
    "location": "[You shared a location. I can only respond to text messages.]",
    "contacts": "[You shared contacts. I can only respond to text messages.]",
}
UNKNOWN_TYPE_NOTICE = (
    "[I received your message but couldn't identify its type. "
    "I can only respond to text messages.]"
)


class InteractionRecorder(Protocol):
    async def record_interaction(self, phone_number: str, at: datetime) -> bool: ...


@dataclass
class Reply:
    """A reply queued for one sender."""

    recipient: str
    body: str


def describe_message(message: InboundMessage) -> str:
    """Text to answer for a message; non-text types get a fixed notice."""
    if message.text is not None:
        return message.text.body
    for kind, notice in NON_TEXT_NOTICES.items():
        if getattr(message, kind) is not None:
            return notice
    return UNKNOWN_TYPE_NOTICE


class InboundHandler:
    """Turns a webhook payload into recorded interactions and replies."""

    def __init__(
        self,
        users: InteractionRecorder,
        replies: ReplyGenerator,
        channel: Channel,
        config: WebhookConfig,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.users = users
        self.replies = replies
        self.channel = channel
        self.config = config
        self.sleep = sleep

    async def handle(self, payload: WebhookPayload, now: datetime) -> dict[str, int]:
        """
        Process every message in a webhook payload.

        Returns:
            Dict with received, replied, failed counts
        """
        messages = [m for m in payload.iter_messages() if m.from_]
        if not messages:
            return {"received": 0, "replied": 0, "failed": 0}

        queued: list[Reply] = []
        for message in messages:
            sender = str(message.from_)
            try:
                await self.users.record_interaction(sender, now)
            except Exception as e:
                logger.bind(phone=sender, error=str(e)).error("interaction_record_failed")

            user_text = describe_message(message)
            if not user_text:
                continue

            logger.bind(phone=sender, message_type=message.type).info("inbound_message")
            queued.append(Reply(recipient=sender, body=await self.replies.generate(user_text)))

        async def send_reply(reply: Reply) -> None:
            await self.channel.send(reply.recipient, reply.body)

        results = await dispatch_in_batches(
            queued,
            send_reply,
            batch_size=self.config.reply_batch_size,
            inter_batch_delay=self.config.reply_delay_seconds,
            sleep=self.sleep,
        )

        failed = sum(1 for r in results if not r.success)
        for result in results:
            if not result.success:
                logger.bind(
                    phone=result.recipient.recipient,
                    kind=result.error_kind.value if result.error_kind else None,
                    reason=result.reason,
                ).error("reply_send_failed")

        return {"received": len(messages), "replied": len(results) - failed, "failed": failed}

from paperbot.schemas.papers import Paper, PaperBatch
from paperbot.schemas.webhook import InboundMessage, WebhookPayload

__all__ = [
    "Paper",
    "PaperBatch",
    "InboundMessage",
    "WebhookPayload",
]

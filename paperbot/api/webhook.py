"""WhatsApp webhook receiver."""

import json

from fastapi import APIRouter, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from paperbot.config import get_config
from paperbot.core.datetime_utils import utc_now
from paperbot.core.logging import get_logger
from paperbot.core.rate_limit import limiter
from paperbot.dependencies import Inbound
from paperbot.schemas.webhook import WebhookPayload

logger = get_logger(__name__)
router = APIRouter()


@router.post("/webhook", response_class=PlainTextResponse)
@limiter.limit(get_config().webhook.rate_limit)
async def receive_webhook(request: Request, handler: Inbound) -> PlainTextResponse:
    """
    Receive message notifications from WhatsApp.

    Always answers 200 once the body is valid JSON, even if replying fails,
    so the provider doesn't redeliver the same messages.
    """
    try:
        body = json.loads(await request.body())
    except ValueError as e:
        logger.bind(error=str(e)).warning("webhook_invalid_json")
        return PlainTextResponse("Invalid JSON", status_code=status.HTTP_400_BAD_REQUEST)

    try:
        payload = WebhookPayload.model_validate(body)
        stats = await handler.handle(payload, utc_now())
        logger.bind(**stats).info("webhook_processed")
    except ValidationError as e:
        logger.bind(error=str(e)).warning("webhook_unexpected_shape")
    except Exception as e:
        logger.bind(error=str(e)).error("webhook_processing_failed")

    return PlainTextResponse("Event received", status_code=status.HTTP_200_OK)

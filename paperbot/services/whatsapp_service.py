"""
WhatsApp Cloud API client.

Sends plain text messages through the Graph API ``/messages`` endpoint.
Every failure surfaces as a ChannelError so callers never see raw httpx
exceptions or status codes.
"""

import httpx

from paperbot.config import Settings
from paperbot.core.exceptions import ChannelError, ChannelErrorKind
from paperbot.core.logging import get_logger

logger = get_logger(__name__)


def classify_status(status_code: int) -> ChannelErrorKind:
    """Map a non-2xx Graph API status to an error kind."""
    if status_code in (401, 403):
        return ChannelErrorKind.AUTH
    if status_code == 429:
        return ChannelErrorKind.RATE_LIMITED
    return ChannelErrorKind.UNKNOWN


def build_text_payload(recipient: str, body: str) -> dict:
    """Build the Graph API payload for a text message."""
    return {
        "messaging_product": "whatsapp",
        "to": recipient,
        "type": "text",
        "text": {"body": body},
    }


class WhatsAppClient:
    """Best-effort sender for WhatsApp text messages."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        phone_number_id: str,
        access_token: str,
        api_version: str = "v17.0",
        api_base: str = "https://graph.facebook.com",
    ) -> None:
        self._http = http_client
        self._access_token = access_token
        self.messages_url = f"{api_base}/{api_version}/{phone_number_id}/messages"

    @classmethod
    def from_settings(cls, http_client: httpx.AsyncClient, settings: Settings) -> "WhatsAppClient":
        return cls(
            http_client,
            phone_number_id=settings.whatsapp_phone_number_id,
            access_token=settings.whatsapp_access_token,
            api_version=settings.whatsapp_api_version,
            api_base=settings.whatsapp_api_base,
        )

    async def send(self, recipient: str, body: str) -> None:
        """
        Send a text message to one phone number.

        Args:
            recipient: Phone number in international format
            body: Message text

        Raises:
            ChannelError: On transport failure or any non-2xx response
        """
        try:
            resp = await self._http.post(
                self.messages_url,
                headers={"Authorization": f"Bearer {self._access_token}"},
                json=build_text_payload(recipient, body),
            )
        except httpx.TransportError as e:
            logger.bind(recipient=recipient, error=str(e)).warning("whatsapp_send_network_error")
            raise ChannelError(ChannelErrorKind.NETWORK, str(e)) from e

        if resp.is_success:
            logger.bind(recipient=recipient).debug("whatsapp_message_sent")
            return

        kind = classify_status(resp.status_code)
        logger.bind(
            recipient=recipient,
            status=resp.status_code,
            kind=kind.value,
            response=resp.text[:500],
        ).warning("whatsapp_send_failed")
        raise ChannelError(kind, f"HTTP {resp.status_code}")

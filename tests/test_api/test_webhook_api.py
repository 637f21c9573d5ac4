"""Tests for the WhatsApp webhook endpoint."""

from datetime import UTC, datetime

import pytest
from sqlalchemy import select

from paperbot.models import User

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 1, 13, 14, 0, tzinfo=UTC)


def _message_event(sender: str, body: str) -> dict:
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "0",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "messages": [
                                {
                                    "from": sender,
                                    "id": "wamid.test",
                                    "timestamp": "1768312800",
                                    "type": "text",
                                    "text": {"body": body},
                                }
                            ],
                        },
                    }
                ],
            }
        ],
    }


@pytest.fixture(autouse=True)
def frozen_now(monkeypatch):
    monkeypatch.setattr("paperbot.api.webhook.utc_now", lambda: NOW)


async def test_invalid_json(client, fake_channel):
    """Unparseable bodies get a 400."""
    response = await client.post(
        "/webhook", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.text == "Invalid JSON"
    assert fake_channel.sent == []


async def test_message_is_answered(client, fake_channel, fake_replies):
    """A text message gets an auto-reply."""
    response = await client.post("/webhook", json=_message_event("15551230000", "hello"))

    assert response.status_code == 200
    assert response.text == "Event received"
    assert fake_replies.prompts == ["hello"]
    assert fake_channel.sent == [("15551230000", "echo: hello")]


async def test_message_refreshes_known_user(client, user_factory, session_factory):
    """Messages from a known user bump last_message_at."""
    user = await user_factory(phone_number="15551230000", last_message_at=datetime(2026, 1, 1, 9, 0))

    await client.post("/webhook", json=_message_event("15551230000", "hi"))

    async with session_factory() as db:
        stored = (await db.execute(select(User).where(User.id == user.id))).scalar_one()
    assert stored.last_message_at == datetime(2026, 1, 13, 14, 0)


async def test_unexpected_shape_still_acknowledged(client, fake_channel):
    """Valid JSON with an unexpected shape is acknowledged but ignored."""
    response = await client.post("/webhook", json={"entry": "not-a-list"})

    assert response.status_code == 200
    assert fake_channel.sent == []


async def test_send_failure_still_acknowledged(client, fake_channel):
    """Reply failures never change the response."""
    from paperbot.core.exceptions import ChannelErrorKind

    fake_channel.failing["15551230000"] = ChannelErrorKind.NETWORK

    response = await client.post("/webhook", json=_message_event("15551230000", "hello"))

    assert response.status_code == 200
    assert response.text == "Event received"

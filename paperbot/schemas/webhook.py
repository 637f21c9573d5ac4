"""WhatsApp Cloud API webhook payload models.

Only the fields the inbound handler reads are modelled; everything else in
the provider's payload is ignored.
"""

from pydantic import BaseModel, ConfigDict, Field


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="allow")


class TextContent(_Lenient):
    body: str = ""


class InboundMessage(_Lenient):
    """A single message from a user.

    Media and other non-text types are kept as raw dicts; only their
    presence matters.
    """

    id: str | None = None
    from_: str | None = Field(default=None, alias="from")
    timestamp: str | None = None
    type: str | None = None
    text: TextContent | None = None
    image: dict | None = None
    audio: dict | None = None
    video: dict | None = None
    document: dict | None = None
    location: dict | None = None
    contacts: list[dict] | None = None


class ChangeValue(_Lenient):
    messaging_product: str | None = None
    messages: list[InboundMessage] = Field(default_factory=list)


class Change(_Lenient):
    field: str
    value: ChangeValue = Field(default_factory=ChangeValue)


class Entry(_Lenient):
    id: str | None = None
    changes: list[Change] = Field(default_factory=list)


class WebhookPayload(_Lenient):
    object: str | None = None
    entry: list[Entry] = Field(default_factory=list)

    def iter_messages(self) -> list[InboundMessage]:
        """Messages from every "messages" change, in payload order."""
        return [
            message
            for entry in self.entry
            for change in entry.changes
            if change.field == "messages"
            for message in change.value.messages
        ]

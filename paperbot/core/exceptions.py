"""Exceptions shared between services and their callers."""

from enum import Enum


class UpstreamFetchError(Exception):
    """A content or user store could not be read or written.

    Also raised when stored rows don't parse. Fatal to a notification run;
    the next scheduled run is the retry.
    """


class ChannelErrorKind(str, Enum):
    """Why a channel send failed."""

    NETWORK = "network"  # Connection refused, timeout, DNS
    AUTH = "auth"  # Bad or expired access token
    RATE_LIMITED = "rate_limited"  # Provider throttled us (HTTP 429)
    UNKNOWN = "unknown"  # Anything else, including unexpected exceptions


class ChannelError(Exception):
    """A single send to the messaging channel failed."""

    def __init__(self, kind: ChannelErrorKind, reason: str = "") -> None:
        super().__init__(f"{kind.value}: {reason}" if reason else kind.value)
        self.kind = kind
        self.reason = reason

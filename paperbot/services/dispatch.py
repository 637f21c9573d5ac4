"""
Rate-limited batch dispatcher.

Sends to a list of recipients in fixed-size bursts with a pause between
bursts, which keeps us under the messaging provider's per-second limits.
Used for the daily paper notification and for webhook auto-replies.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from paperbot.core.exceptions import ChannelError, ChannelErrorKind
from paperbot.core.logging import get_logger

logger = get_logger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]

R = TypeVar("R")


@dataclass
class DispatchResult(Generic[R]):
    """Outcome of sending to a single recipient."""

    recipient: R
    success: bool
    error_kind: ChannelErrorKind | None = None
    reason: str = ""


def partition(recipients: Sequence[R], batch_size: int) -> list[list[R]]:
    """Split recipients into consecutive batches; the last may be smaller."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return [list(recipients[i : i + batch_size]) for i in range(0, len(recipients), batch_size)]


async def _attempt(recipient: R, send: Callable[[R], Awaitable[Any]]) -> DispatchResult[R]:
    """Run one send and capture its outcome instead of raising."""
    try:
        await send(recipient)
        return DispatchResult(recipient=recipient, success=True)
    except ChannelError as e:
        return DispatchResult(
            recipient=recipient,
            success=False,
            error_kind=e.kind,
            reason=e.reason or str(e),
        )
    except Exception as e:
        logger.bind(error=str(e), error_type=type(e).__name__).warning("dispatch_unexpected_error")
        return DispatchResult(
            recipient=recipient,
            success=False,
            error_kind=ChannelErrorKind.UNKNOWN,
            reason=str(e),
        )


async def dispatch_in_batches(
    recipients: Sequence[R],
    send: Callable[[R], Awaitable[Any]],
    *,
    batch_size: int,
    inter_batch_delay: float,
    sleep: SleepFn = asyncio.sleep,
) -> list[DispatchResult[R]]:
    """
    Send to every recipient, one concurrent burst per batch.

    Within a batch all sends run concurrently and the batch completes only
    when every send has settled. Batches run strictly one after another with
    ``inter_batch_delay`` seconds between them (not after the last one).
    A failing send is recorded and never retried, and never stops its
    siblings or later batches.

    Args:
        recipients: Recipients in send order
        send: Coroutine delivering to one recipient; raises on failure
        batch_size: Maximum concurrent sends per burst
        inter_batch_delay: Seconds to wait between bursts
        sleep: Awaitable sleep, injectable for tests

    Returns:
        One DispatchResult per recipient, in recipient order
    """
    if inter_batch_delay < 0:
        raise ValueError(f"inter_batch_delay must be >= 0, got {inter_batch_delay}")

    batches = partition(recipients, batch_size)
    results: list[DispatchResult[R]] = []

    for index, batch in enumerate(batches):
        batch_results = await asyncio.gather(*(_attempt(r, send) for r in batch))
        results.extend(batch_results)

        failed = sum(1 for r in batch_results if not r.success)
        logger.bind(
            batch=index + 1,
            batches=len(batches),
            size=len(batch),
            failed=failed,
        ).debug("dispatch_batch_completed")

        if index < len(batches) - 1:
            await sleep(inter_batch_delay)

    return results

"""Webhook rate limiting (slowapi)."""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from paperbot.core.logging import get_logger

logger = get_logger(__name__)


def client_address(request: Request) -> str:
    """
    Rate-limit key for a request.

    Behind the load balancer every request shares one peer address, so the
    first hop of X-Forwarded-For is used when present.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    return first_hop or get_remote_address(request)


limiter = Limiter(key_func=client_address)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Reply 429 and log the throttled route and limit."""
    logger.bind(
        path=request.url.path,
        client=client_address(request),
        limit=str(exc.detail),
    ).warning("rate_limit_exceeded")
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Please try again later."},
    )

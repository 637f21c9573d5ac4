from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from paperbot.api.router import api_router
from paperbot.config import get_settings
from paperbot.core.exceptions import UpstreamFetchError
from paperbot.core.logging import get_logger, setup_logging
from paperbot.core.rate_limit import limiter, rate_limit_exceeded_handler
from paperbot.core.scheduler import start_scheduler, stop_scheduler

# Timeout for calls to the WhatsApp Graph API
HTTP_TIMEOUT_SECONDS = 30.0

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the shared HTTP pool and scheduler; close both on shutdown."""
    setup_logging()
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as http_client:
        # Reused by every WhatsApp send, scheduled or request-driven
        app.state.http_client = http_client
        await start_scheduler(http_client)
        logger.bind(scheduler=settings.scheduler_enabled).info("app_started")
        try:
            yield
        finally:
            await stop_scheduler()


async def upstream_fetch_error_handler(request: Request, exc: UpstreamFetchError) -> JSONResponse:
    """Store outages become 503."""
    logger.bind(path=request.url.path, error=str(exc)).error("upstream_fetch_failed")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage temporarily unavailable"},
    )


app = FastAPI(
    title="paperbot",
    description="Daily ML papers over WhatsApp",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.debug else None,
    redoc_url="/api/redoc" if settings.debug else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
app.add_exception_handler(UpstreamFetchError, upstream_fetch_error_handler)  # type: ignore[arg-type]

app.include_router(api_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint for load balancers."""
    return {"status": "healthy"}

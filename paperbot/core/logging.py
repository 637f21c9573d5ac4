"""Loguru setup.

Services log snake_case event names with bound context:

    logger.bind(recipient=phone, kind="auth").warning("whatsapp_send_failed")

Phone numbers in bound context are masked before any sink sees them.
"""

import logging
import sys
from typing import Any

from loguru import logger

from paperbot.config import get_settings

# Bound keys that hold a subscriber's phone number
PHONE_KEYS = ("phone", "recipient")

# Stdlib loggers routed into loguru
INTERCEPTED_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "sqlalchemy.engine",
    "httpx",
    "apscheduler",
)

DEBUG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level> | {extra}"
)
PLAIN_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message} | {extra}"


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru, keeping the original caller."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore[assignment]
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def mask_phone(value: Any) -> str:
    """Keep the last four digits: "+15551234567" -> "***4567"."""
    text = str(value)
    return f"***{text[-4:]}" if len(text) > 4 else "***"


def _mask_phone_numbers(record: dict[str, Any]) -> None:
    extra = record["extra"]
    for key in PHONE_KEYS:
        if extra.get(key):
            extra[key] = mask_phone(extra[key])


def _noise_filter(record: dict[str, Any]) -> bool:
    """Drop health checks and per-request httpx lines below DEBUG."""
    if record["level"].no <= 10:
        return True
    if "/health" in record["message"]:
        return False
    return not (record["name"] or "").startswith("httpx")


def setup_logging(debug: bool | None = None) -> None:
    """Configure loguru for the API server, the scheduler and the CLI."""
    if debug is None:
        debug = get_settings().debug

    logger.remove()
    logger.configure(patcher=_mask_phone_numbers)

    if debug:
        logger.add(sys.stderr, level="DEBUG", format=DEBUG_FORMAT, backtrace=True, diagnose=True)
    else:
        # stderr is collected by the container runtime
        logger.add(
            sys.stderr,
            level="INFO",
            format=PLAIN_FORMAT,
            filter=_noise_filter,
            backtrace=True,
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in INTERCEPTED_LOGGERS:
        logging.getLogger(name).handlers = [InterceptHandler()]


def get_logger(name: str) -> Any:
    """Get a logger bound to a module name."""
    return logger.bind(name=name)

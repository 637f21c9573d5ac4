"""Centralized datetime utilities for consistent timezone handling.

Database timestamps are naive UTC. Everything that decides *when* a user is
due works on an injected ``now`` so it can be tested without patching the
clock.

Usage:
    from paperbot.core.datetime_utils import content_date_key, utc_now

    # Key under which today's papers are stored and looked up
    key = content_date_key(utc_now())

    # Per-user delivery window
    from paperbot.core.datetime_utils import is_in_delivery_window

    if is_in_delivery_window(user.timezone, user.preferred_time, now):
        ...
"""

from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo

from paperbot.core.logging import get_logger

logger = get_logger(__name__)

# Minutes ahead of a user's preferred time during which they are due
WINDOW_MINUTES = 5


def utc_now() -> datetime:
    """Get current UTC time as naive datetime.

    Returns naive datetime for database compatibility.
    """
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert a datetime to naive UTC.

    Args:
        dt: Datetime to convert (can be aware or naive)

    Returns:
        Naive UTC datetime for database compatibility
    """
    if dt.tzinfo is None:
        # Already naive, assume it's UTC
        return dt
    return dt.astimezone(UTC).replace(tzinfo=None)


def to_aware_utc(dt: datetime) -> datetime:
    """Attach UTC to a naive datetime, or convert an aware one to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def content_date_key(now: datetime) -> date:
    """Date key under which a day's papers are stored and read.

    Always the UTC calendar date. Producers and the notification run must
    both go through this function so a run shortly after local midnight in
    a non-UTC zone still finds the batch that was stored for it.
    """
    return to_aware_utc(now).date()


# =============================================================================
# Per-user timezone utilities
# =============================================================================


def is_valid_timezone(tz_name: str) -> bool:
    """Check if a timezone name is valid IANA identifier.

    Args:
        tz_name: Timezone string (e.g., "America/New_York")

    Returns:
        True if valid IANA timezone
    """
    try:
        ZoneInfo(tz_name)
        return True
    except (KeyError, ValueError, TypeError, OSError):
        return False


def parse_preferred_time(preferred_time: str) -> time:
    """Parse a preferred delivery time ("HH:MM:SS" or "HH:MM").

    Args:
        preferred_time: Wall-clock time without date

    Returns:
        time object

    Raises:
        ValueError: If the string is not a valid wall-clock time
    """
    parts = preferred_time.strip().split(":")
    # One or two digits per field
    if len(parts) not in (2, 3) or not all(p.isdigit() and len(p) <= 2 for p in parts):
        raise ValueError(f"Malformed preferred time: {preferred_time!r}")

    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    return time(hour=hour, minute=minute, second=second)


def minutes_until_preferred_time(
    timezone: str,
    preferred_time: str,
    now: datetime,
) -> int:
    """Minutes from local now until the preferred time, same local day.

    Seconds are truncated on both sides, so 08:59:59 against 09:00:00 is
    one minute. Negative once the preferred time has passed.

    Raises:
        ValueError: Unknown timezone or malformed preferred time
    """
    try:
        tz = ZoneInfo(timezone)
    except (KeyError, ValueError, TypeError, OSError) as e:
        raise ValueError(f"Unknown timezone: {timezone!r}") from e

    local_now = to_aware_utc(now).astimezone(tz)
    target = parse_preferred_time(preferred_time)

    current_minutes = local_now.hour * 60 + local_now.minute
    preferred_minutes = target.hour * 60 + target.minute
    return preferred_minutes - current_minutes


def is_in_delivery_window(
    timezone: str,
    preferred_time: str,
    now: datetime,
    window_minutes: int = WINDOW_MINUTES,
) -> bool:
    """Check if ``now`` falls in the user's delivery window.

    The window is forward-only: a user is due from ``window_minutes`` before
    their preferred time up to the preferred minute itself. Once the time has
    passed they are not due again until the next day, which is why the
    scheduler cadence must not exceed the window.

    Invalid timezones and malformed times are never due.

    Args:
        timezone: User's IANA timezone (e.g., "America/New_York")
        preferred_time: User's preferred time in "HH:MM:SS" format
        now: Current instant (naive values are treated as UTC)
        window_minutes: Window size in minutes

    Returns:
        True if the user should be notified on this run
    """
    try:
        diff = minutes_until_preferred_time(timezone, preferred_time, now)
    except (ValueError, AttributeError) as e:
        logger.bind(
            timezone=timezone,
            preferred_time=preferred_time,
            error=str(e),
        ).error("delivery_window_invalid_user_data")
        return False

    return 0 <= diff <= window_minutes

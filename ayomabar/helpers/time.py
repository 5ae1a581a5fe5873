"""Date and time utilities.

This module provides helpers for timezone-aware timestamps and the
Discord timestamp markup used in lobby messages.
"""

from datetime import UTC, datetime, timedelta


def utcnow() -> datetime:
    """Get the current UTC datetime.

    Returns:
        The current datetime with UTC timezone.
    """
    return datetime.now(tz=UTC)


def as_utc(dt: datetime | None) -> datetime | None:
    """Attach UTC to a datetime read back from a store that drops tzinfo.

    Args:
        dt: A naive (assumed UTC) or aware datetime, or None.

    Returns:
        An aware datetime in UTC, or None.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def minutes_from_now(minutes: int, now: datetime | None = None) -> datetime:
    return (now or utcnow()) + timedelta(minutes=minutes)


def unix_timestamp(dt: datetime) -> int:
    return int(as_utc(dt).timestamp())  # pyright: ignore[reportOptionalMemberAccess]


def discord_timestamp(dt: datetime, style: str = "F") -> str:
    """Format a datetime as Discord timestamp markup, e.g. ``<t:1700000000:R>``."""
    return f"<t:{unix_timestamp(dt)}:{style}>"

"""Timestamp parsing and formatting helpers.

Audit APIs report creation times with millisecond precision and a numeric
UTC offset (``2024-03-01T10:15:30.123+0000``). Checkpoints store the same
precision so that a write-then-read round trip is exact.

Example:
    >>> from auditfeed.utils.timestamps import format_timestamp, parse_timestamp
    >>> ts = parse_timestamp("2024-03-01T10:15:30.123+0000")
    >>> format_timestamp(ts)
    '2024-03-01T10:15:30.123+00:00'
"""

from __future__ import annotations

from datetime import UTC, datetime

# Formats tried before falling back to datetime.fromisoformat
_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
)


def truncate_ms(value: datetime) -> datetime:
    """Drop sub-millisecond precision and normalize to UTC.

    Naive datetimes are assumed to already be in UTC.

    Example:
        >>> from datetime import datetime, UTC
        >>> truncate_ms(datetime(2024, 1, 1, 0, 0, 0, 123456, tzinfo=UTC)).microsecond
        123000
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def parse_timestamp(value: str) -> datetime:
    """Parse an API or checkpoint timestamp into an aware UTC datetime.

    Args:
        value: Timestamp string.

    Returns:
        Parsed datetime truncated to milliseconds.

    Raises:
        ValueError: If the value is not a recognizable timestamp.

    Example:
        >>> parse_timestamp("2024-01-01T00:00:00Z").isoformat()
        '2024-01-01T00:00:00+00:00'
        >>> parse_timestamp("not a date")
        Traceback (most recent call last):
        ...
        ValueError: Unrecognized timestamp: 'not a date'
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Unrecognized timestamp: {value!r}")

    text = value.strip()
    for fmt in _FORMATS:
        try:
            return truncate_ms(datetime.strptime(text, fmt))
        except ValueError:
            continue

    try:
        return truncate_ms(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        raise ValueError(f"Unrecognized timestamp: {value!r}") from None


def format_timestamp(value: datetime) -> str:
    """Format a datetime as ISO-8601 with milliseconds in UTC."""
    return truncate_ms(value).isoformat(timespec="milliseconds")


def utcnow() -> datetime:
    """Current wall-clock time, truncated to milliseconds."""
    return truncate_ms(datetime.now(UTC))


__all__ = [
    "format_timestamp",
    "parse_timestamp",
    "truncate_ms",
    "utcnow",
]

"""
Timestamp utilities for request parameters and backend payloads.
Shared functions for handling the timestamp formats backends send.
"""
from datetime import datetime, timezone
from typing import Any, Optional
import logging

logger = logging.getLogger(__name__)

EPOCH_YEAR = 1970


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _from_number(value: float) -> datetime:
    # Numbers are epoch milliseconds unless that lands in 1970, then seconds
    try:
        dt = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        if dt.year == EPOCH_YEAR:
            dt = datetime.fromtimestamp(value, tz=timezone.utc)
        return dt
    except (OverflowError, OSError, ValueError) as e:
        raise ValueError(f"Timestamp out of range: {value}") from e


def parse_timestamp(timestamp_value: Any) -> Optional[datetime]:
    """Parse a timestamp into an aware UTC datetime.

    Handles the formats commonly found in backend data:
    - ISO format strings (with or without 'Z' timezone)
    - Epoch milliseconds or seconds (int, float or numeric strings)
    - Datetime objects
    - None/empty values, returned as None

    Epoch seconds are detected by the resolved year being 1970 and rescaled.

    Args:
        timestamp_value: The timestamp value to parse

    Returns:
        Aware datetime in UTC, or None for empty input

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp

    Examples:
        >>> parse_timestamp("2025-09-01T18:05:10Z")
        datetime.datetime(2025, 9, 1, 18, 5, 10, tzinfo=datetime.timezone.utc)

        >>> parse_timestamp(1725213910)
        datetime.datetime(2024, 9, 1, 18, 5, 10, tzinfo=datetime.timezone.utc)
    """
    if timestamp_value is None or timestamp_value == "":
        return None

    if isinstance(timestamp_value, datetime):
        dt = timestamp_value
    elif isinstance(timestamp_value, bool):
        raise ValueError(f"Unsupported timestamp value: {timestamp_value!r}")
    elif isinstance(timestamp_value, (int, float)):
        dt = _from_number(timestamp_value)
    elif isinstance(timestamp_value, str):
        text = timestamp_value.strip()
        try:
            dt = datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            try:
                dt = _from_number(float(text))
            except ValueError:
                raise ValueError(f"Could not parse timestamp string: {timestamp_value}") from None
    else:
        raise ValueError(f"Unknown timestamp type {type(timestamp_value).__name__}: {timestamp_value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt


def parse_timestamp_or_now(timestamp_value: Any) -> datetime:
    """Like parse_timestamp, but falls back to the current time."""
    try:
        return parse_timestamp(timestamp_value) or utc_now()
    except ValueError as e:
        logger.warning(f"⚠️ {e}, using current time")
        return utc_now()


def to_iso(dt: datetime) -> str:
    """Render as ISO-8601 UTC with milliseconds, e.g. 2025-09-01T18:05:10.000Z."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"

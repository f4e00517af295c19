"""Shared utility functions for session history operations."""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta
from typing import Any

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def iso_from_ms(value: Any) -> str | None:
    """Format epoch milliseconds as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` (UTC).

    Args:
        value: Epoch milliseconds as stored in the database.

    Returns:
        ISO 8601 text with millisecond precision, or None if the value
        is missing or not a number.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        ms = int(value)
    except (TypeError, ValueError):
        return None

    dt = _EPOCH + timedelta(milliseconds=ms)
    return f"{dt.strftime('%Y-%m-%dT%H:%M:%S')}.{dt.microsecond // 1000:03d}Z"


def clamp_limit(value: Any, default: int, maximum: int) -> int:
    """Clamp a caller-supplied limit to ``[1, maximum]``.

    Missing, non-numeric and non-finite values fall back to ``default``
    instead of raising, as do integers too large for a float. Fractional
    values are truncated toward zero.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        parsed = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(parsed):
        return default

    integer = math.trunc(parsed)
    if integer < 1:
        return 1
    if integer > maximum:
        return maximum
    return integer

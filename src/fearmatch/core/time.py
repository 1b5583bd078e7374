"""
Timestamp parsing.

Assessment records carry ISO-8601 strings (often with a trailing `Z`). FearMatch
treats all timestamps as timezone-aware UTC datetimes so profiles from different
collaborators compare correctly.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def ensure_tz(dt: datetime) -> datetime:
    """Ensure `dt` has tzinfo; attach UTC if naive."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a datetime or ISO-8601 string; returns None for missing/unparseable input.

    Notes:
    - Accepts a trailing `Z` (UTC) and converts it to `+00:00` for `fromisoformat`.
    - Naive values are treated as UTC.
    """
    if isinstance(value, datetime):
        return ensure_tz(value)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    return ensure_tz(dt)

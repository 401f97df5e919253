"""Canonical profile timestamps: ``YYYY-MM-DDTHH:MM:SS.mmmZ`` (UTC, milliseconds)."""

from __future__ import annotations

from datetime import datetime, timezone

_PARSE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def format_timestamp(dt: datetime) -> str:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse a canonical timestamp. Raises ValueError on any other shape."""
    return datetime.strptime(value, _PARSE_FORMAT).replace(tzinfo=timezone.utc)


def now_timestamp() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def is_canonical_timestamp(value: object) -> bool:
    """True when *value* survives parse → format unchanged."""
    if not isinstance(value, str):
        return False
    try:
        return format_timestamp(parse_timestamp(value)) == value
    except ValueError:
        return False

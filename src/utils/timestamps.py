"""
Timezone helpers. All stored timestamps are timezone-aware UTC.
"""
from datetime import datetime, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_vapi_timestamp(value: Optional[Union[str, int, float]]) -> Optional[datetime]:
    """
    Parse a VAPI timestamp, sent as an ISO string or Unix milliseconds.

    Returns None for missing or unparseable values.
    """
    if value is None or value == "":
        return None
    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except (ValueError, TypeError, OverflowError, OSError):
        return None

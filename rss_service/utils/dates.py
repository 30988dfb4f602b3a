"""
Timestamp helpers shared by the cache and the renderers.

Cache metadata stores ISO-8601 UTC timestamps with second precision; HTTP
headers use RFC 7231 dates. Parsing accepts both so conditional requests work
whichever form a client echoes back.
"""

from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Optional


def utcnow() -> datetime:
    """Current UTC time truncated to whole seconds"""
    return datetime.now(timezone.utc).replace(microsecond=0)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format as 2024-01-01T00:00:00Z"""
    return ensure_utc(value).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")


def to_http_date(value: datetime) -> str:
    """Format as an RFC 7231 HTTP-date (Mon, 01 Jan 2024 00:00:00 GMT)"""
    return format_datetime(ensure_utc(value), usegmt=True)


def parse_date_header(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an HTTP-date or ISO-8601 timestamp.

    Args:
        value: Raw header or stored value

    Returns:
        Timezone-aware datetime, or None when the value is missing or invalid
    """
    if not value:
        return None

    value = value.strip()

    try:
        return ensure_utc(parsedate_to_datetime(value))
    except (TypeError, ValueError, IndexError):
        pass

    try:
        return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None

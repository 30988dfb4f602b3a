"""
Utilities package for the RSS service.

This package contains reusable helpers for:
- Retry logic
- Content hashing (ETags)
- Timestamp parsing and formatting
- HTML sanitization
"""

from .retry import (
    retry_async,
    RetryError,
)
from .hash_utils import (
    build_etag,
    content_hash,
)
from .dates import (
    utcnow,
    ensure_utc,
    to_iso,
    to_http_date,
    parse_date_header,
)
from .sanitize import sanitize, strip_html, strip_invalid_xml_chars

__all__ = [
    "retry_async",
    "RetryError",
    "build_etag",
    "content_hash",
    "utcnow",
    "ensure_utc",
    "to_iso",
    "to_http_date",
    "parse_date_header",
    "sanitize",
    "strip_html",
    "strip_invalid_xml_chars",
]

"""Utility helpers for generating deterministic content hashes.

Provides stable hashing for rendered feeds so ETag validators only change
when the body does.
"""

from __future__ import annotations

import hashlib

# Hex digits kept in an ETag; 128 bits is plenty for change detection
_ETAG_DIGEST_LENGTH = 32


def content_hash(content: str | bytes) -> str:
    """SHA-256 hex digest of a rendered body."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def build_etag(content: str | bytes) -> str:
    """Strong, quoted ETag derived from the body."""
    return f'"{content_hash(content)[:_ETAG_DIGEST_LENGTH]}"'

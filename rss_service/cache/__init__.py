"""
Cache package for rendered feeds.
"""

from .feed_cache import (
    FeedCacheManager,
    is_cache_valid,
    get_header_value,
    CACHE_PREFIX,
    CACHE_METADATA_PREFIX,
    CACHE_GENERATION_KEY,
    DEFAULT_CACHE_TTL,
)

__all__ = [
    "FeedCacheManager",
    "is_cache_valid",
    "get_header_value",
    "CACHE_PREFIX",
    "CACHE_METADATA_PREFIX",
    "CACHE_GENERATION_KEY",
    "DEFAULT_CACHE_TTL",
]

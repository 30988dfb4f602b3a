"""
Domain models for the RSS service.

Pydantic models for feed items, feed configuration and cached renderings.
"""

from .item import (
    RssItem,
    ItemAuthor,
    Category,
    Enclosure,
    normalize_item,
    DEFAULT_ITEM_TITLE,
)
from .feed_config import (
    FeedConfig,
    FeedAuthor,
    DEFAULT_FEED_ID,
    DEFAULT_MAX_ITEMS,
)
from .cache import CacheMetadata, CachedFeed

__all__ = [
    "RssItem",
    "ItemAuthor",
    "Category",
    "Enclosure",
    "normalize_item",
    "DEFAULT_ITEM_TITLE",
    "FeedConfig",
    "FeedAuthor",
    "DEFAULT_FEED_ID",
    "DEFAULT_MAX_ITEMS",
    "CacheMetadata",
    "CachedFeed",
]

"""
Feeds Module
============
RSS/Atom/JSON Feed/raw JSON generation for the feed.

Exports:
    - FeedBuilder: Builder for all four formats
    - FeedFormat: Output format enum (content type and public path)
    - generate_feed: Renderer used behind the cache
    - format_items: Item listing in raw/html form
"""

from .feed_builder import (
    FeedBuilder,
    FeedFormat,
    plain_item,
)
from .formatters import (
    ApiFormat,
    RenderedFeed,
    generate_feed,
    format_items,
    parse_items,
)

__all__ = [
    'FeedBuilder',
    'FeedFormat',
    'plain_item',
    'ApiFormat',
    'RenderedFeed',
    'generate_feed',
    'format_items',
    'parse_items',
]

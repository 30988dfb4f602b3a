"""
Feed rendering entry points.

`generate_feed` is the renderer the cache layer sits in front of: a pure
mapping from stored items (+ configuration) to a serialized body and its
content type. `format_items` serves the item listing API.

Responsibility: Parse stored items and dispatch to the format builders
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .feed_builder import FeedBuilder, FeedFormat, plain_item
from ..errors import FeedValidationError, RenderError
from ..models.feed_config import FeedConfig
from ..models.item import RssItem

logger = logging.getLogger(__name__)


class ApiFormat(str, Enum):
    """Item listing formats"""
    RAW = "raw"    # HTML stripped
    HTML = "html"  # HTML preserved


@dataclass(frozen=True)
class RenderedFeed:
    """Rendered body with its MIME type"""

    content: str
    content_type: str


def parse_items(serialized: List[str], feed_format: Optional[FeedFormat] = None) -> List[RssItem]:
    """
    Decode stored items.

    Raises:
        RenderError: An item is not valid item JSON
    """
    items = []
    for index, raw in enumerate(serialized):
        try:
            items.append(RssItem.from_json(raw))
        except ValidationError as e:
            label = feed_format.value if feed_format else "item"
            logger.error(f"Malformed stored item at position {index}: {e}")
            raise RenderError(label, f"malformed item at position {index}") from e
    return items


def generate_feed(
    serialized: List[str],
    feed_format: FeedFormat,
    config: FeedConfig,
    base_url: Optional[str] = None
) -> RenderedFeed:
    """
    Render the feed in one format.

    Args:
        serialized: Stored item JSON strings, newest first
        feed_format: Output format
        config: Feed configuration
        base_url: Public base URL for the self link (defaults to siteUrl)

    Returns:
        RenderedFeed with body and content type

    Raises:
        RenderError: Stored data is malformed or the builder failed
    """
    items = parse_items(serialized, feed_format)
    feed_url = f"{(base_url or config.site_url).rstrip('/')}{feed_format.path}"

    builder = FeedBuilder(config, feed_url=feed_url)
    builder.add_items(items)

    try:
        content = builder.generate(feed_format)
    except (ValueError, TypeError) as e:
        logger.error(f"Failed to build {feed_format.value} feed: {e}", exc_info=True)
        raise RenderError(feed_format.value) from e

    return RenderedFeed(content=content, content_type=feed_format.content_type)


def format_items(serialized: List[str], api_format: str) -> List[Dict[str, Any]]:
    """
    Items for the listing API.

    Args:
        serialized: Stored item JSON strings
        api_format: 'raw' (HTML stripped) or 'html' (HTML preserved)

    Raises:
        FeedValidationError: Unknown format
        RenderError: Stored data is malformed
    """
    try:
        fmt = ApiFormat(api_format)
    except ValueError as e:
        raise FeedValidationError(
            "Format determines how item content is returned: raw (HTML stripped) or html (HTML preserved)",
            error=f"Invalid format: {api_format}. Valid formats are: raw, html"
        ) from e

    items = parse_items(serialized)
    if fmt == ApiFormat.RAW:
        return [plain_item(item) for item in items]
    return [item.to_public() for item in items]

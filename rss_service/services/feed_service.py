"""
Feed service.

Orchestrates cache-aware feed reads and the two mutations (item add, config
update). Mutations invalidate every cached rendering only after the store
write is confirmed; an invalidation failure is logged and reported but never
undoes the mutation.

Responsibility: Request-level flow between store, renderer and cache
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..cache import is_cache_valid
from ..context import FeedContext
from ..errors import InvalidationError, StoreError
from ..feeds import FeedFormat, format_items, generate_feed
from ..models.cache import CacheMetadata
from ..models.feed_config import FeedConfig
from ..models.item import normalize_item
from ..utils.dates import parse_date_header, to_http_date, utcnow

logger = logging.getLogger(__name__)


@dataclass
class FeedResult:
    """Outcome of a feed read, ready to become an HTTP response"""

    status_code: int
    content: str
    media_type: Optional[str]
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class MutationResult:
    """Outcome of a mutation: the effective resource and the cache state"""

    resource: Dict[str, Any]
    cache_invalidated: bool


class FeedService:
    """
    Feed read/write orchestration.

    Example:
        service = FeedService(context)
        result = await service.get_feed(FeedFormat.RSS, request.headers)
        outcome = await service.add_item({"content": "hi", "link": "https://x/1"})
    """

    def __init__(self, context: FeedContext):
        self.context = context
        self.cache = context.cache
        self.repository = context.repository

    def _response_headers(self, metadata: CacheMetadata) -> Dict[str, str]:
        last_modified = parse_date_header(metadata.last_modified) or utcnow()
        return {
            "ETag": metadata.etag,
            "Last-Modified": to_http_date(last_modified),
            "Cache-Control": self.cache.cache_control,
        }

    async def get_feed(self, feed_format: FeedFormat, request_headers: Mapping[str, str]) -> FeedResult:
        """
        Serve one feed format.

        Cached and current for the client → 304. Cached → 200 with the cached
        body. Miss → render, cache, 200. A failed cache write still serves the
        fresh body.

        Raises:
            StoreError: Items could not be loaded on a miss
            RenderError: Rendering failed (nothing is cached)
        """
        cached = await self.cache.get_cached_feed(feed_format)
        if cached is not None:
            headers = self._response_headers(cached.metadata)
            if is_cache_valid(request_headers, cached.metadata):
                return FeedResult(status_code=304, content="", media_type=None, headers=headers)
            return FeedResult(
                status_code=200,
                content=cached.content,
                media_type=feed_format.content_type,
                headers=headers
            )

        # Read before the items; an invalidation after this point orphans the rendering
        generation = await self.cache.current_generation()
        config = self.context.config
        try:
            items = await self.repository.get_items(config.max_items)
        except StoreError as e:
            logger.error(f"Failed to load items for {feed_format.value} feed: {e}")
            raise StoreError(
                f"Failed to load items for the {feed_format.value} feed",
                operation="get_items"
            ) from e

        rendered = generate_feed(items, feed_format, config, base_url=self.context.settings.app.public_url)

        if generation is None:
            logger.warning(f"Serving uncached {feed_format.value} feed, cache generation unknown")
            metadata = self.cache.build_metadata(rendered.content)
        else:
            try:
                metadata = await self.cache.cache_feed(feed_format, rendered.content, generation=generation)
            except StoreError:
                logger.warning(f"Serving uncached {feed_format.value} feed after cache write failure")
                metadata = self.cache.build_metadata(rendered.content)

        return FeedResult(
            status_code=200,
            content=rendered.content,
            media_type=rendered.content_type,
            headers=self._response_headers(metadata)
        )

    async def _invalidate_after_mutation(self) -> bool:
        try:
            await self.cache.invalidate_cache()
        except InvalidationError as e:
            logger.error(f"Mutation committed but cache invalidation failed: {e}")
            return False
        return True

    async def add_item(self, payload: Any) -> MutationResult:
        """
        Validate, store and publish a new item.

        Raises:
            FeedValidationError: Required fields missing or malformed
            StoreError: The item could not be stored (cache left untouched)
        """
        item = normalize_item(payload)

        try:
            await self.repository.add_item(item, self.context.config.max_items)
        except StoreError as e:
            logger.error(f"Failed to add item: {e}")
            raise StoreError(
                "Failed to store the item. Please try again later.",
                operation="add_item"
            ) from e

        invalidated = await self._invalidate_after_mutation()
        return MutationResult(resource=item.to_public(), cache_invalidated=invalidated)

    async def update_config(self, payload: Any) -> MutationResult:
        """
        Replace the feed configuration.

        The new configuration is persisted first; the in-memory copy is
        swapped and caches cleared only once the write succeeded.

        Raises:
            FeedValidationError: Payload is not a valid configuration
            StoreError: Persisting failed (previous configuration stays active)
        """
        config = FeedConfig.from_input(payload)

        try:
            await self.repository.save_config(config)
        except StoreError as e:
            logger.error(f"Failed to update feed configuration: {e}")
            raise StoreError(
                "Failed to update feed configuration. Please try again later.",
                error="Configuration Error",
                operation="save_config"
            ) from e

        self.context.replace_config(config)
        invalidated = await self._invalidate_after_mutation()
        return MutationResult(resource=config.to_public(), cache_invalidated=invalidated)

    def get_config(self) -> Dict[str, Any]:
        return self.context.config.to_public()

    async def list_items(self, api_format: str) -> List[Dict[str, Any]]:
        """
        Stored items in raw (HTML stripped) or html form.

        Raises:
            FeedValidationError: Unknown format
            StoreError: Items could not be loaded
        """
        items = await self.repository.get_items(self.context.config.max_items)
        return format_items(items, api_format)

    async def clear_cache(self) -> None:
        """Manually invalidate every cached rendering"""
        await self.cache.invalidate_cache()

    async def cache_stats(self) -> Dict[str, Any]:
        return await self.cache.stats()

"""
Rendered feed cache.

Each format's rendering is cached under two keys, the body and its freshness
metadata (ETag, Last-Modified). Both keys are written in one atomic store
operation with the same TTL and read back in one round trip, so a reader sees
a body together with the metadata written for it, or nothing. Any mutation of
the items or the configuration clears all formats at once.

Every invalidation also bumps a generation counter in the same store
transaction. A rendering records the generation observed before its items
were read, and entries from an older generation are treated as misses, so a
render that started before a mutation can never be served after it.

Responsibility: Cached renderings, freshness metadata, invalidation and
conditional-GET evaluation
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from ..errors import InvalidationError, StoreError
from ..feeds.feed_builder import FeedFormat
from ..models.cache import CacheMetadata, CachedFeed
from ..storage.base import KeyValueStore
from ..utils.dates import parse_date_header, to_iso, utcnow
from ..utils.hash_utils import build_etag

logger = logging.getLogger(__name__)

CACHE_PREFIX = "feed:cache:"
CACHE_METADATA_PREFIX = "feed:cache:metadata:"
CACHE_GENERATION_KEY = "feed:generation"

# 10 minutes
DEFAULT_CACHE_TTL = 600


def get_header_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup for plain dicts and Starlette Headers alike"""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def is_cache_valid(request_headers: Mapping[str, str], metadata: CacheMetadata) -> bool:
    """
    Check if a client's cached copy is still current.

    If-None-Match is compared first by exact string equality and
    short-circuits; otherwise If-Modified-Since (HTTP-date or ISO-8601) must
    be at or after the rendering's Last-Modified.

    Args:
        request_headers: Incoming request headers
        metadata: Metadata of the cached rendering

    Returns:
        True when a 304 may be sent
    """
    if_none_match = get_header_value(request_headers, "If-None-Match")
    if if_none_match and if_none_match == metadata.etag:
        return True

    if_modified_since = get_header_value(request_headers, "If-Modified-Since")
    if if_modified_since:
        modified_since = parse_date_header(if_modified_since)
        last_modified = parse_date_header(metadata.last_modified)
        if modified_since and last_modified and last_modified <= modified_since:
            return True

    return False


class FeedCacheManager:
    """
    Cache manager for rendered feeds.

    Owns only derived state: flushing it never loses data, the next read
    just renders again.

    Example:
        cache = FeedCacheManager(store, ttl_seconds=600)
        cached = await cache.get_cached_feed(FeedFormat.RSS)
        if cached is None:
            metadata = await cache.cache_feed(FeedFormat.RSS, xml)
    """

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: int = DEFAULT_CACHE_TTL,
        clock: Callable[[], datetime] = utcnow
    ):
        """
        Initialize feed cache.

        Args:
            store: Shared backing store
            ttl_seconds: Time-to-live of cached renderings
            clock: UTC time source (injectable for tests)
        """
        self.store = store
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    @staticmethod
    def content_key(feed_format: FeedFormat) -> str:
        return f"{CACHE_PREFIX}{feed_format.value}"

    @staticmethod
    def metadata_key(feed_format: FeedFormat) -> str:
        return f"{CACHE_METADATA_PREFIX}{feed_format.value}"

    @property
    def cache_control(self) -> str:
        """Cache-Control header value matching the cache TTL"""
        return f"public, max-age={self.ttl_seconds}"

    def build_metadata(self, content: str, ttl: Optional[int] = None, generation: int = 0) -> CacheMetadata:
        """Fresh metadata for a body rendered now"""
        now = self._clock()
        return CacheMetadata(
            etag=build_etag(content),
            last_modified=to_iso(now),
            expires_at=to_iso(now + timedelta(seconds=ttl or self.ttl_seconds)),
            generation=generation
        )

    @staticmethod
    def _parse_generation(raw: Optional[str]) -> int:
        try:
            return int(raw or 0)
        except ValueError:
            logger.warning(f"Unreadable cache generation {raw!r}, treating as 0")
            return 0

    async def current_generation(self) -> Optional[int]:
        """
        Generation to record for a rendering that is about to read items.

        Returns:
            The counter value, or None when the store could not be read
            (the rendering must then not be cached)
        """
        try:
            raw = await self.store.get(CACHE_GENERATION_KEY)
        except StoreError as e:
            logger.error(f"Cache generation lookup failed: {e}")
            return None
        return self._parse_generation(raw)

    def _parse_metadata(self, raw: Optional[str], feed_format: FeedFormat) -> Optional[CacheMetadata]:
        if raw is None:
            return None
        try:
            return CacheMetadata.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache metadata for {feed_format.value}: {e}")
            return None

    async def get_cached_feed(self, feed_format: FeedFormat) -> Optional[CachedFeed]:
        """
        Get cached feed content.

        A store failure is logged and reported as a miss, as is an entry
        rendered under an older generation. Content without metadata is
        served with metadata synthesized from the body and the current time.

        Args:
            feed_format: Format to look up

        Returns:
            CachedFeed, or None on miss/expiry/failure
        """
        try:
            content, raw_metadata, raw_generation = await self.store.get_many(
                [self.content_key(feed_format), self.metadata_key(feed_format), CACHE_GENERATION_KEY]
            )
        except StoreError as e:
            logger.error(f"Cache retrieval error for {feed_format.value}: {e}")
            return None

        if content is None:
            logger.debug(f"Cache miss: {feed_format.value}")
            return None

        metadata = self._parse_metadata(raw_metadata, feed_format)
        generation = self._parse_generation(raw_generation)
        if metadata is not None and metadata.generation != generation:
            logger.debug(
                f"Cache miss: {feed_format.value} rendered at generation {metadata.generation}, "
                f"current is {generation}"
            )
            return None

        if metadata is None:
            logger.warning(f"Cached {feed_format.value} feed has no metadata, synthesizing")
            metadata = CacheMetadata(
                etag=build_etag(content),
                last_modified=to_iso(self._clock()),
                generation=generation
            )

        logger.debug(f"Cache hit: {feed_format.value}")
        return CachedFeed(content=content, metadata=metadata)

    async def cache_feed(
        self,
        feed_format: FeedFormat,
        content: str,
        ttl: Optional[int] = None,
        generation: int = 0
    ) -> CacheMetadata:
        """
        Cache feed content with metadata.

        Body and metadata are written together with the same expiry; the
        last concurrent writer wins as a whole pair.

        Args:
            feed_format: Format being cached
            content: Rendered body
            ttl: Override of the default TTL in seconds
            generation: Generation observed before the items were read

        Returns:
            The metadata written, for response headers

        Raises:
            StoreError: The write failed (nothing was written)
        """
        ttl = ttl or self.ttl_seconds
        metadata = self.build_metadata(content, ttl, generation)

        try:
            await self.store.set_many(
                {
                    self.content_key(feed_format): content,
                    self.metadata_key(feed_format): metadata.to_json(),
                },
                ttl=ttl
            )
        except StoreError as e:
            logger.error(f"Cache storage error for {feed_format.value}: {e}")
            raise

        logger.debug(f"Cached {feed_format.value} feed with ETag {metadata.etag}")
        return metadata

    async def invalidate_cache(self) -> None:
        """
        Invalidate all feed caches.

        Every format's body and metadata are deleted, and the generation
        bumped, in a single transaction.

        Raises:
            InvalidationError: The transaction failed
        """
        keys = []
        for feed_format in FeedFormat:
            keys.append(self.content_key(feed_format))
            keys.append(self.metadata_key(feed_format))

        try:
            generation = await self.store.incr_and_delete(CACHE_GENERATION_KEY, *keys)
        except StoreError as e:
            logger.error(f"Cache invalidation error: {e}")
            raise InvalidationError(f"Failed to invalidate feed caches: {e.message}", keys=keys) from e

        logger.info(f"All feed caches invalidated (generation {generation})")

    async def stats(self) -> Dict[str, object]:
        """Which formats currently have a cached rendering"""
        contents = await self.store.get_many([self.content_key(fmt) for fmt in FeedFormat])
        return {
            "cached_formats": [fmt.value for fmt, content in zip(FeedFormat, contents) if content is not None],
            "ttl_seconds": self.ttl_seconds,
        }

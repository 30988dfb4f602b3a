"""
Repository for feed items and the persisted feed configuration.

Items live in a newest-first list capped at maxItems; the configuration lives
under the feed record as `{"feedConfig": {...}}` next to any other keys.

Responsibility: Data access for the single feed's items and configuration
"""

import json
import logging
from typing import List, Optional

from .base import KeyValueStore, StoreInspector
from ..errors import FeedValidationError, StoreError
from ..models.feed_config import DEFAULT_FEED_ID, FeedConfig
from ..models.item import RssItem

logger = logging.getLogger(__name__)


class FeedRepository:
    """Repository for feed store operations."""

    def __init__(
        self,
        store: KeyValueStore,
        inspector: Optional[StoreInspector] = None,
        feed_id: str = DEFAULT_FEED_ID
    ):
        """
        Initialize repository.

        Args:
            store: Backing store
            inspector: Debug inspector; when present, reads log a store snapshot
            feed_id: Feed identifier used in keys
        """
        self.store = store
        self.inspector = inspector
        self.feed_id = feed_id

    @property
    def items_key(self) -> str:
        return f"feed:{self.feed_id}:items"

    @property
    def feed_key(self) -> str:
        return f"feed:{self.feed_id}"

    async def get_items(self, max_items: int) -> List[str]:
        """
        Serialized items, newest first.

        Args:
            max_items: Upper bound on returned items

        Returns:
            List of item JSON strings
        """
        if self.inspector is not None and logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Store snapshot: {json.dumps(self.inspector.snapshot(), indent=2)}")

        return await self.store.get_range(self.items_key, 0, max_items - 1)

    async def add_item(self, item: RssItem, max_items: int) -> None:
        """
        Push an item to the front of the list and evict the oldest beyond max_items.

        Raises:
            StoreError: Push or trim failed
        """
        await self.store.push_front(self.items_key, item.to_json())
        await self.store.trim(self.items_key, 0, max_items - 1)
        logger.info(f"Stored item {item.id} in feed {self.feed_id}")

    async def initialize_feed(self, default: FeedConfig) -> FeedConfig:
        """
        Create the feed record if missing, otherwise load its configuration.

        Unreadable stored configuration is logged and the default is used.

        Args:
            default: Configuration written for a new feed

        Returns:
            Effective configuration
        """
        if not await self.store.exists(self.feed_key):
            logger.info(f"Initializing feed: {self.feed_id}")
            await self.store.set(self.feed_key, json.dumps({"feedConfig": default.to_public()}))
            return default

        try:
            raw = await self.store.get(self.feed_key)
        except StoreError as e:
            logger.warning(f"Error loading feed configuration, using default: {e}")
            return default

        if not raw:
            return default

        try:
            record = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Error parsing feed configuration, using default: {e}")
            return default

        stored = record.get("feedConfig") if isinstance(record, dict) else None
        if not isinstance(stored, dict):
            logger.warning("Invalid feed configuration format in store, using default")
            return default

        try:
            config = FeedConfig.from_input(stored)
        except FeedValidationError as e:
            logger.warning(f"Stored feed configuration rejected, using default: {e}")
            return default

        logger.info("Loaded feed configuration from store")
        return config

    async def save_config(self, config: FeedConfig) -> None:
        """
        Merge the configuration into the stored feed record.

        Other keys in the record are preserved; an unreadable record is
        replaced by a fresh one.

        Raises:
            StoreError: The write failed
        """
        record: dict = {}
        try:
            raw = await self.store.get(self.feed_key)
            if raw:
                parsed = json.loads(raw)
                if isinstance(parsed, dict):
                    record = parsed
                else:
                    logger.warning("Existing feed record is not an object, creating new data structure")
        except json.JSONDecodeError:
            logger.warning("Error parsing existing feed data, creating new data structure")
        except StoreError as e:
            logger.warning(f"Error with existing feed data, creating new entry: {e}")

        record["feedConfig"] = config.to_public()

        try:
            await self.store.set(self.feed_key, json.dumps(record))
        except StoreError as e:
            logger.error(f"Error saving feed configuration: {e}")
            raise StoreError(
                f"Failed to save feed configuration: {e.message}",
                operation="save_config"
            ) from e

        logger.info("Saved feed configuration to store")

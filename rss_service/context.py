"""
Process-wide service context.

Holds everything request handlers need (settings, store, repository, cache
manager, current feed configuration). Built once at startup, handed to the
API through application state, closed at shutdown.

Responsibility: Dependency container and lifecycle for the feed service
"""

import logging
from typing import Optional

from .cache import FeedCacheManager
from .config import Settings, StoreBackend
from .models.feed_config import FeedConfig
from .storage import FeedRepository, KeyValueStore, StoreBundle, create_store

logger = logging.getLogger(__name__)


class FeedContext:
    """
    Dependency container for one running service.

    Example:
        context = await FeedContext.create(settings)
        try:
            items = await context.repository.get_items(context.config.max_items)
        finally:
            await context.close()
    """

    def __init__(self, settings: Settings, bundle: StoreBundle, config: FeedConfig):
        """
        Args:
            settings: Loaded settings
            bundle: Selected backing store
            config: Effective feed configuration
        """
        self.settings = settings
        self.bundle = bundle
        self.repository = FeedRepository(bundle.store, inspector=bundle.inspector)
        self.cache = FeedCacheManager(bundle.store, ttl_seconds=settings.cache.ttl_seconds)
        self._config = config

    @property
    def store(self) -> KeyValueStore:
        return self.bundle.store

    @property
    def config(self) -> FeedConfig:
        """Copy of the current feed configuration"""
        return self._config.model_copy(deep=True)

    def replace_config(self, config: FeedConfig) -> None:
        """Swap the in-memory configuration wholesale"""
        self._config = config
        logger.info("Updated feed configuration")

    @classmethod
    async def create(
        cls,
        settings: Settings,
        store: Optional[KeyValueStore] = None
    ) -> "FeedContext":
        """
        Validate settings, open the store and load the feed configuration.

        Args:
            settings: Loaded settings
            store: Pre-built store (skips backend selection)

        Raises:
            ConfigurationError: Required settings missing
            StoreError: The store could not be reached during initialization
        """
        settings.validate_runtime()

        if store is not None:
            bundle = StoreBundle(store=store, backend=StoreBackend(store.name))
        else:
            bundle = create_store(settings.store)

        repository = FeedRepository(bundle.store, inspector=bundle.inspector)
        try:
            config = await repository.initialize_feed(FeedConfig.default())
        except Exception:
            await bundle.store.close()
            raise

        logger.info(f"Feed context ready (store: {bundle.backend.value}, max items: {config.max_items})")
        return cls(settings, bundle, config)

    async def close(self) -> None:
        """Release the backing store"""
        await self.store.close()

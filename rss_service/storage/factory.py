"""
Store selection.

The one place that decides which backend the process uses.

Responsibility: Build the configured KeyValueStore (and its inspector, if any)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .base import KeyValueStore, StoreInspector
from .memory import MemoryStore
from .redis_store import RedisStore
from .upstash import UpstashStore
from ..config import StoreBackend, StoreConfig

logger = logging.getLogger(__name__)


@dataclass
class StoreBundle:
    """Selected store plus its optional debug inspector"""

    store: KeyValueStore
    backend: StoreBackend
    inspector: Optional[StoreInspector] = None


def create_store(config: StoreConfig) -> StoreBundle:
    """
    Create the backing store for this process.

    Args:
        config: Store configuration

    Returns:
        StoreBundle with the store; only the in-memory mock carries an inspector
    """
    backend = config.resolve_backend()

    if backend == StoreBackend.MEMORY:
        logger.info("Using in-memory store")
        store = MemoryStore()
        return StoreBundle(store=store, backend=backend, inspector=store)

    if backend == StoreBackend.UPSTASH:
        logger.info("Using Upstash REST store")
        return StoreBundle(store=UpstashStore.from_config(config), backend=backend)

    if config.redis_url:
        logger.info("Connecting to Redis using REDIS_URL")
    elif config.redis_host:
        logger.info(f"Connecting to Redis at {config.redis_host}:{config.redis_port}")
    else:
        logger.warning(
            "No Redis configuration found, falling back to localhost "
            "(not recommended for production)"
        )
    return StoreBundle(store=RedisStore.from_config(config), backend=backend)

"""
Storage package for the RSS service.

Provides the backing store capability, its three variants, startup
selection and the feed repository.
"""

from .base import KeyValueStore, StoreInspector
from .memory import MemoryStore
from .redis_store import RedisStore
from .upstash import UpstashStore
from .factory import StoreBundle, create_store
from .feed_repository import FeedRepository

__all__ = [
    "KeyValueStore",
    "StoreInspector",
    "MemoryStore",
    "RedisStore",
    "UpstashStore",
    "StoreBundle",
    "create_store",
    "FeedRepository",
]

"""
Redis server store.

Used for Docker Compose / linked-service deployments (REDIS_URL or
REDIS_HOST/REDIS_PORT). Multi-key writes go through a MULTI/EXEC pipeline so
content and metadata land together.

Responsibility: KeyValueStore backed by redis.asyncio
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Mapping, Optional, Sequence

import redis.asyncio as aioredis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, TimeoutError as RedisTimeoutError

from .base import KeyValueStore
from ..config import StoreConfig
from ..errors import StoreError

logger = logging.getLogger(__name__)


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    """Re-raise redis-py failures as StoreError"""
    try:
        yield
    except RedisError as e:
        raise StoreError(f"Redis {operation} failed: {e}", operation=operation) from e


class RedisStore(KeyValueStore):
    """
    KeyValueStore on a Redis server.

    Example:
        store = RedisStore.from_config(settings.store)
        await store.ping()
    """

    name = "redis"

    def __init__(self, client: aioredis.Redis):
        self._client = client

    @classmethod
    def from_config(cls, config: StoreConfig) -> "RedisStore":
        """
        Build a client with exponential-backoff reconnects.

        Args:
            config: Store configuration (connection string, retry knobs)
        """
        retry = Retry(
            ExponentialBackoff(cap=config.retry_cap_seconds, base=config.retry_base_seconds),
            config.max_retries
        )
        client = aioredis.from_url(
            config.redis_connection_string,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=config.socket_timeout,
            socket_connect_timeout=config.socket_timeout,
            retry=retry,
            retry_on_error=[RedisConnectionError, RedisTimeoutError]
        )
        return cls(client)

    async def get(self, key: str) -> Optional[str]:
        with _translate_errors("get"):
            return await self._client.get(key)

    async def get_many(self, keys: Sequence[str]) -> List[Optional[str]]:
        if not keys:
            return []
        with _translate_errors("mget"):
            return await self._client.mget(list(keys))

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        with _translate_errors("set"):
            await self._client.set(key, value, ex=ttl)

    async def set_many(self, mapping: Mapping[str, str], ttl: Optional[int] = None) -> None:
        with _translate_errors("set_many"):
            async with self._client.pipeline(transaction=True) as pipe:
                for key, value in mapping.items():
                    pipe.set(key, value, ex=ttl)
                await pipe.execute()

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        with _translate_errors("delete"):
            return await self._client.delete(*keys)

    async def incr_and_delete(self, counter_key: str, *keys: str) -> int:
        with _translate_errors("incr_and_delete"):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.incr(counter_key)
                if keys:
                    pipe.delete(*keys)
                results = await pipe.execute()
        return int(results[0])

    async def expire(self, key: str, ttl: int) -> bool:
        with _translate_errors("expire"):
            return bool(await self._client.expire(key, ttl))

    async def exists(self, key: str) -> bool:
        with _translate_errors("exists"):
            return bool(await self._client.exists(key))

    async def get_range(self, key: str, start: int, stop: int) -> List[str]:
        with _translate_errors("lrange"):
            return await self._client.lrange(key, start, stop)

    async def push_front(self, key: str, value: str) -> int:
        with _translate_errors("lpush"):
            return await self._client.lpush(key, value)

    async def trim(self, key: str, start: int, stop: int) -> None:
        with _translate_errors("ltrim"):
            await self._client.ltrim(key, start, stop)

    async def ping(self) -> bool:
        with _translate_errors("ping"):
            return bool(await self._client.ping())

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis connection closed")

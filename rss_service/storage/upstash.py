"""
Managed REST Redis store.

Talks to an Upstash-compatible REST endpoint: every command is a JSON array
POSTed with a bearer token, transactions go to /multi-exec. Transient
failures (timeouts, connection errors, 5xx, 429) are retried with backoff.

Responsibility: KeyValueStore over HTTPS for serverless deployments
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence

import httpx

from .base import KeyValueStore
from ..config import StoreConfig
from ..errors import StoreError
from ..utils.retry import RetryError, retry_async

logger = logging.getLogger(__name__)


class UpstashStore(KeyValueStore):
    """
    KeyValueStore on the Upstash REST API.

    Example:
        store = UpstashStore.from_config(settings.store)
        await store.set("feed:main", "{}")
    """

    name = "upstash"

    def __init__(
        self,
        client: httpx.AsyncClient,
        max_attempts: int = 6,
        base_delay: float = 0.1,
        max_delay: float = 3.0
    ):
        """
        Args:
            client: HTTP client with base_url and Authorization header set
            max_attempts: Attempts per idempotent command
            base_delay: First backoff delay in seconds
            max_delay: Backoff cap in seconds
        """
        self._client = client
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._max_delay = max_delay

    @classmethod
    def from_config(cls, config: StoreConfig) -> "UpstashStore":
        client = httpx.AsyncClient(
            base_url=config.upstash_url.rstrip("/"),
            headers={"Authorization": f"Bearer {config.upstash_token}"},
            timeout=config.socket_timeout
        )
        return cls(
            client,
            max_attempts=config.max_retries + 1,
            base_delay=config.retry_base_seconds,
            max_delay=config.retry_cap_seconds
        )

    async def _post(self, path: str, payload: Any, operation: str, idempotent: bool = True) -> Any:
        """POST a command payload and return the decoded body"""

        async def call() -> httpx.Response:
            response = await self._client.post(path, json=payload)
            if response.status_code >= 500 or response.status_code == 429:
                response.raise_for_status()
            return response

        try:
            response = await retry_async(
                call,
                max_attempts=self._max_attempts if idempotent else 1,
                base_delay=self._base_delay,
                max_delay=self._max_delay,
                logger_instance=logger
            )
        except RetryError as e:
            raise StoreError(f"Upstash {operation} failed: {e.last_exception}", operation=operation) from e
        except httpx.HTTPError as e:
            raise StoreError(f"Upstash {operation} failed: {e}", operation=operation) from e

        try:
            body = response.json()
        except ValueError as e:
            raise StoreError(f"Upstash {operation} returned invalid JSON", operation=operation) from e

        if isinstance(body, dict) and body.get("error"):
            raise StoreError(f"Upstash {operation} failed: {body['error']}", operation=operation)
        if response.is_error:
            raise StoreError(
                f"Upstash {operation} failed with HTTP {response.status_code}",
                operation=operation
            )
        return body

    async def _command(self, *args: Any, idempotent: bool = True) -> Any:
        operation = str(args[0]).lower()
        body = await self._post("/", list(args), operation, idempotent=idempotent)
        return body.get("result") if isinstance(body, dict) else None

    async def _transaction(self, commands: List[List[Any]], operation: str) -> List[Any]:
        body = await self._post("/multi-exec", commands, operation)
        if not isinstance(body, list):
            raise StoreError(f"Upstash {operation} returned an unexpected response", operation=operation)
        for entry in body:
            if isinstance(entry, dict) and entry.get("error"):
                raise StoreError(f"Upstash {operation} failed: {entry['error']}", operation=operation)
        return [entry.get("result") if isinstance(entry, dict) else entry for entry in body]

    async def get(self, key: str) -> Optional[str]:
        return await self._command("GET", key)

    async def get_many(self, keys: Sequence[str]) -> List[Optional[str]]:
        if not keys:
            return []
        result = await self._command("MGET", *keys)
        return list(result or [None] * len(keys))

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        if ttl is None:
            await self._command("SET", key, value)
        else:
            await self._command("SET", key, value, "EX", ttl)

    async def set_many(self, mapping: Mapping[str, str], ttl: Optional[int] = None) -> None:
        commands = []
        for key, value in mapping.items():
            command: List[Any] = ["SET", key, value]
            if ttl is not None:
                command += ["EX", ttl]
            commands.append(command)
        if commands:
            await self._transaction(commands, "set_many")

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self._command("DEL", *keys) or 0)

    async def incr_and_delete(self, counter_key: str, *keys: str) -> int:
        commands: List[List[Any]] = [["INCR", counter_key]]
        if keys:
            commands.append(["DEL", *keys])
        results = await self._transaction(commands, "incr_and_delete")
        return int(results[0])

    async def expire(self, key: str, ttl: int) -> bool:
        return bool(await self._command("EXPIRE", key, ttl))

    async def exists(self, key: str) -> bool:
        return bool(await self._command("EXISTS", key))

    async def get_range(self, key: str, start: int, stop: int) -> List[str]:
        return list(await self._command("LRANGE", key, start, stop) or [])

    async def push_front(self, key: str, value: str) -> int:
        # Not retried: a replayed LPUSH would duplicate the item
        return int(await self._command("LPUSH", key, value, idempotent=False))

    async def trim(self, key: str, start: int, stop: int) -> None:
        await self._command("LTRIM", key, start, stop)

    async def ping(self) -> bool:
        return await self._command("PING") == "PONG"

    async def close(self) -> None:
        await self._client.aclose()

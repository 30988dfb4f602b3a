"""
In-memory store.

Process-local mock of the Redis subset the service uses, for development and
tests. Every method completes without yielding to the event loop, so each
operation (including `set_many` and multi-key `delete`) is atomic with
respect to other requests.

Responsibility: Dict-backed KeyValueStore with Redis list semantics and TTLs
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .base import KeyValueStore
from ..errors import StoreError

logger = logging.getLogger(__name__)

Value = Union[str, List[str]]


@dataclass
class _Entry:
    value: Value
    expires_at: Optional[float] = None


def _bounds(start: int, stop: int, length: int) -> tuple[int, int]:
    """Translate Redis-style inclusive (possibly negative) indexes"""
    if start < 0:
        start = max(length + start, 0)
    if stop < 0:
        stop = length + stop
    stop = min(stop, length - 1)
    return start, stop


class MemoryStore(KeyValueStore):
    """
    In-memory KeyValueStore.

    Example:
        store = MemoryStore()
        await store.set("greeting", "hello", ttl=60)
        await store.push_front("feed:main:items", "{...}")
    """

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            clock: Monotonic time source in seconds (injectable for TTL tests)
        """
        self._data: Dict[str, _Entry] = {}
        self._clock = clock

    def _live(self, key: str) -> Optional[_Entry]:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            del self._data[key]
            return None
        return entry

    def _expiry(self, ttl: Optional[int]) -> Optional[float]:
        return self._clock() + ttl if ttl is not None else None

    def _string(self, key: str) -> Optional[str]:
        entry = self._live(key)
        if entry is None:
            return None
        if not isinstance(entry.value, str):
            raise StoreError(f"Key {key} holds a list, not a string", operation="get")
        return entry.value

    def _list(self, key: str, operation: str) -> Optional[List[str]]:
        entry = self._live(key)
        if entry is None:
            return None
        if not isinstance(entry.value, list):
            raise StoreError(f"Key {key} holds a string, not a list", operation=operation)
        return entry.value

    async def get(self, key: str) -> Optional[str]:
        return self._string(key)

    async def get_many(self, keys: Sequence[str]) -> List[Optional[str]]:
        return [self._string(key) for key in keys]

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        self._data[key] = _Entry(value=value, expires_at=self._expiry(ttl))

    async def set_many(self, mapping: Mapping[str, str], ttl: Optional[int] = None) -> None:
        expires_at = self._expiry(ttl)
        self._data.update({key: _Entry(value=value, expires_at=expires_at) for key, value in mapping.items()})

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._live(key) is not None:
                del self._data[key]
                removed += 1
        return removed

    async def incr_and_delete(self, counter_key: str, *keys: str) -> int:
        current = self._string(counter_key)
        try:
            value = int(current or 0) + 1
        except ValueError as e:
            raise StoreError(f"Key {counter_key} does not hold an integer", operation="incr") from e
        await self.delete(*keys)
        self._data[counter_key] = _Entry(value=str(value))
        return value

    async def expire(self, key: str, ttl: int) -> bool:
        entry = self._live(key)
        if entry is None:
            return False
        entry.expires_at = self._expiry(ttl)
        return True

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

    async def get_range(self, key: str, start: int, stop: int) -> List[str]:
        values = self._list(key, "get_range")
        if not values:
            return []
        start, stop = _bounds(start, stop, len(values))
        return list(values[start:stop + 1]) if start <= stop else []

    async def push_front(self, key: str, value: str) -> int:
        values = self._list(key, "push_front")
        if values is None:
            values = []
            self._data[key] = _Entry(value=values)
        values.insert(0, value)
        return len(values)

    async def trim(self, key: str, start: int, stop: int) -> None:
        values = self._list(key, "trim")
        if values is None:
            return
        start, stop = _bounds(start, stop, len(values))
        kept = values[start:stop + 1] if start <= stop else []
        if kept:
            self._data[key].value = kept
        else:
            del self._data[key]

    def snapshot(self) -> Dict[str, Any]:
        """Copy of every live key (StoreInspector capability)"""
        state: Dict[str, Any] = {}
        for key in list(self._data):
            entry = self._live(key)
            if entry is not None:
                state[key] = list(entry.value) if isinstance(entry.value, list) else entry.value
        return state

    async def close(self) -> None:
        logger.debug(f"Discarding in-memory store with {len(self._data)} keys")

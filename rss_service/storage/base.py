"""
Backing store capability.

The service talks to exactly one shared key-value/list store. Three variants
implement this interface (in-memory mock, Redis server, managed REST Redis);
which one is used is decided once by `create_store`.

Responsibility: Async key-value + list interface shared by all backends
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence


class KeyValueStore(ABC):
    """
    Async key-value store with list operations and TTL support.

    All implementations raise StoreError for backend failures.
    """

    name: str = "store"

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Value for key, or None when missing/expired"""

    @abstractmethod
    async def get_many(self, keys: Sequence[str]) -> List[Optional[str]]:
        """Values for several keys read in one round trip"""

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Store a value, optionally expiring after ttl seconds"""

    @abstractmethod
    async def set_many(self, mapping: Mapping[str, str], ttl: Optional[int] = None) -> None:
        """Store several values atomically: all are written or none are"""

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete keys in one command, returning how many existed"""

    @abstractmethod
    async def incr_and_delete(self, counter_key: str, *keys: str) -> int:
        """Increment a counter and delete keys atomically, returning the new counter value"""

    @abstractmethod
    async def expire(self, key: str, ttl: int) -> bool:
        """Set a TTL on an existing key"""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Whether the key is present"""

    @abstractmethod
    async def get_range(self, key: str, start: int, stop: int) -> List[str]:
        """List elements between start and stop (inclusive, Redis semantics)"""

    @abstractmethod
    async def push_front(self, key: str, value: str) -> int:
        """Prepend to a list, returning the new length"""

    @abstractmethod
    async def trim(self, key: str, start: int, stop: int) -> None:
        """Keep only list elements between start and stop (inclusive)"""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        """Release connections"""


class StoreInspector(Protocol):
    """Debug capability: dump the whole store (only the in-memory mock has it)"""

    def snapshot(self) -> Dict[str, Any]:
        ...

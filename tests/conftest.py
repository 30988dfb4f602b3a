from typing import Iterator, Optional

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from rss_service.config import AppConfig, RateLimitConfig, Settings, StoreBackend, StoreConfig
from rss_service.errors import StoreError
from rss_service.storage import MemoryStore

API_SECRET = "test-secret"


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FlakyStore(MemoryStore):
    """In-memory store whose reads, writes or deletes can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_reads = False
        self.fail_cache_writes = False
        self.fail_item_writes = False
        self.fail_deletes = False

    def _maybe_fail(self, flag: bool, operation: str) -> None:
        if flag:
            raise StoreError(f"{operation} unavailable", operation=operation)

    async def get_many(self, keys):
        self._maybe_fail(self.fail_reads, "get_many")
        return await super().get_many(keys)

    async def set_many(self, mapping, ttl: Optional[int] = None) -> None:
        self._maybe_fail(self.fail_cache_writes, "set_many")
        await super().set_many(mapping, ttl)

    async def push_front(self, key: str, value: str) -> int:
        self._maybe_fail(self.fail_item_writes, "push_front")
        return await super().push_front(key, value)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        self._maybe_fail(self.fail_item_writes, "set")
        await super().set(key, value, ttl)

    async def delete(self, *keys: str) -> int:
        self._maybe_fail(self.fail_deletes, "delete")
        return await super().delete(*keys)

    async def incr_and_delete(self, counter_key: str, *keys: str) -> int:
        self._maybe_fail(self.fail_deletes, "incr_and_delete")
        return await super().incr_and_delete(counter_key, *keys)


def make_settings(**rate_limit) -> Settings:
    return Settings(
        app=AppConfig(api_secret=API_SECRET, public_url="https://feeds.example.com"),
        store=StoreConfig(backend=StoreBackend.MEMORY),
        rate_limit=RateLimitConfig(**rate_limit),
    )


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {API_SECRET}"}


@pytest.fixture
def store() -> FlakyStore:
    return FlakyStore()


@pytest.fixture
def client(settings: Settings, store: FlakyStore) -> Iterator[TestClient]:
    app = create_app(settings, store=store)
    with TestClient(app) as test_client:
        yield test_client

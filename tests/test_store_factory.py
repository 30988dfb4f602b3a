import asyncio
import json

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from rss_service.config import StoreBackend, StoreConfig
from rss_service.errors import StoreError
from rss_service.storage import MemoryStore, RedisStore, UpstashStore, create_store


def test_memory_backend_carries_an_inspector() -> None:
    bundle = create_store(StoreConfig(backend=StoreBackend.MEMORY))

    assert isinstance(bundle.store, MemoryStore)
    assert bundle.inspector is bundle.store
    assert bundle.backend == StoreBackend.MEMORY


def test_upstash_credentials_select_the_rest_store() -> None:
    config = StoreConfig(upstash_url="https://eu1.upstash.io", upstash_token="token")
    bundle = create_store(config)

    assert isinstance(bundle.store, UpstashStore)
    assert bundle.inspector is None
    asyncio.run(bundle.store.close())


def test_mock_flag_selects_memory_store() -> None:
    assert create_store(StoreConfig(use_redis_mock=True)).backend == StoreBackend.MEMORY


def test_redis_is_the_fallback() -> None:
    bundle = create_store(StoreConfig(redis_host="cache.internal", redis_port=6380))

    assert isinstance(bundle.store, RedisStore)
    assert bundle.inspector is None


def test_explicit_backend_wins_over_credentials() -> None:
    config = StoreConfig(backend=StoreBackend.MEMORY, upstash_url="https://x", upstash_token="t")

    assert config.resolve_backend() == StoreBackend.MEMORY


def test_redis_connection_string() -> None:
    assert StoreConfig().redis_connection_string == "redis://localhost:6379/0"
    assert StoreConfig(redis_host="h", redis_password="pw", redis_db=2).redis_connection_string == "redis://:pw@h:6379/2"
    assert StoreConfig(redis_url="redis://elsewhere:1/0").redis_connection_string == "redis://elsewhere:1/0"


# MARK: - REST store

def _upstash(handler) -> UpstashStore:
    client = httpx.AsyncClient(
        base_url="https://upstash.test",
        headers={"Authorization": "Bearer token"},
        transport=httpx.MockTransport(handler)
    )
    return UpstashStore(client, max_attempts=3, base_delay=0.001, max_delay=0.002)


def test_upstash_commands_are_json_arrays() -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append((request.url.path, json.loads(request.content), request.headers["Authorization"]))
        return httpx.Response(200, json={"result": "OK"})

    async def scenario():
        store = _upstash(handler)
        await store.set("feed:main", "{}", ttl=60)
        await store.close()

    asyncio.run(scenario())

    assert requests == [("/", ["SET", "feed:main", "{}", "EX", 60], "Bearer token")]


def test_upstash_set_many_uses_a_transaction() -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json=[{"result": "OK"}, {"result": "OK"}])

    async def scenario():
        store = _upstash(handler)
        await store.set_many({"a": "1", "b": "2"}, ttl=600)
        await store.close()

    asyncio.run(scenario())

    assert requests == [("/multi-exec", [["SET", "a", "1", "EX", 600], ["SET", "b", "2", "EX", 600]])]


def test_upstash_retries_server_errors() -> None:
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"result": ["x", None]})

    async def scenario():
        store = _upstash(handler)
        values = await store.get_many(["a", "b"])
        await store.close()
        return values

    assert asyncio.run(scenario()) == ["x", None]
    assert len(attempts) == 3


def test_upstash_does_not_retry_list_pushes() -> None:
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        return httpx.Response(503)

    async def scenario():
        store = _upstash(handler)
        try:
            await store.push_front("items", "{}")
        finally:
            await store.close()

    with pytest.raises(StoreError):
        asyncio.run(scenario())
    assert len(attempts) == 1


def test_upstash_command_error_becomes_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "WRONGTYPE Operation against a key holding the wrong kind of value"})

    async def scenario():
        store = _upstash(handler)
        try:
            await store.get_range("feed:main", 0, 9)
        finally:
            await store.close()

    with pytest.raises(StoreError, match="WRONGTYPE"):
        asyncio.run(scenario())


class _StubPipeline:
    def __init__(self, client: "_StubRedis", transaction: bool) -> None:
        self.client = client
        self.transaction = transaction
        self.commands = []

    async def __aenter__(self) -> "_StubPipeline":
        return self

    async def __aexit__(self, *exc_info) -> bool:
        return False

    def set(self, key, value, ex=None):
        self.commands.append(("SET", key, value, ex))

    def incr(self, key):
        self.commands.append(("INCR", key))

    def delete(self, *keys):
        self.commands.append(("DEL", *keys))

    async def execute(self):
        self.client.executed.append((self.transaction, list(self.commands)))
        if self.client.error is not None:
            raise self.client.error
        return [self.client.counter if command[0] == "INCR" else True for command in self.commands]


class _StubRedis:
    """Records pipelines instead of talking to a server."""

    def __init__(self, error=None, counter: int = 1) -> None:
        self.executed = []
        self.error = error
        self.counter = counter

    def pipeline(self, transaction: bool = True) -> _StubPipeline:
        return _StubPipeline(self, transaction)


def test_redis_set_many_is_one_multi_exec() -> None:
    client = _StubRedis()

    asyncio.run(RedisStore(client).set_many({"feed:cache:rss": "<rss/>", "feed:cache:metadata:rss": "{}"}, ttl=600))

    assert client.executed == [
        (True, [("SET", "feed:cache:rss", "<rss/>", 600), ("SET", "feed:cache:metadata:rss", "{}", 600)])
    ]


def test_redis_incr_and_delete_is_one_multi_exec() -> None:
    client = _StubRedis(counter=4)

    generation = asyncio.run(RedisStore(client).incr_and_delete("feed:generation", "a", "b"))

    assert generation == 4
    assert client.executed == [(True, [("INCR", "feed:generation"), ("DEL", "a", "b")])]


def test_redis_pipeline_failure_becomes_store_error() -> None:
    client = _StubRedis(error=RedisConnectionError("connection refused"))

    with pytest.raises(StoreError, match="set_many"):
        asyncio.run(RedisStore(client).set_many({"a": "1", "b": "2"}, ttl=60))

import asyncio

import pytest

from rss_service.errors import StoreError
from rss_service.storage import MemoryStore

from conftest import FakeClock


def test_set_get_and_delete() -> None:
    async def scenario():
        store = MemoryStore()
        await store.set("a", "1")
        await store.set("b", "2")
        values = await store.get_many(["a", "b", "missing"])
        removed = await store.delete("a", "missing")
        return values, removed, await store.get("a"), await store.exists("b")

    values, removed, after_delete, b_exists = asyncio.run(scenario())

    assert values == ["1", "2", None]
    assert removed == 1
    assert after_delete is None
    assert b_exists


def test_ttl_expiry_and_expire() -> None:
    async def scenario():
        clock = FakeClock()
        store = MemoryStore(clock=clock)
        await store.set("short", "x", ttl=10)
        await store.set("forever", "y")
        extended = await store.expire("forever", 5)
        missing = await store.expire("nope", 5)
        clock.advance(6)
        mid = (await store.get("short"), await store.get("forever"))
        clock.advance(4)
        return extended, missing, mid, await store.get("short")

    extended, missing, mid, end = asyncio.run(scenario())

    assert extended is True
    assert missing is False
    assert mid == ("x", None)
    assert end is None


def test_list_push_range_and_trim() -> None:
    async def scenario():
        store = MemoryStore()
        for value in ("1", "2", "3", "4"):
            await store.push_front("items", value)
        everything = await store.get_range("items", 0, -1)
        first_two = await store.get_range("items", 0, 1)
        await store.trim("items", 0, 2)
        trimmed = await store.get_range("items", 0, 99)
        return everything, first_two, trimmed

    everything, first_two, trimmed = asyncio.run(scenario())

    assert everything == ["4", "3", "2", "1"]
    assert first_two == ["4", "3"]
    assert trimmed == ["4", "3", "2"]


def test_range_of_missing_list_is_empty() -> None:
    assert asyncio.run(MemoryStore().get_range("missing", 0, 10)) == []


def test_trim_to_nothing_removes_the_key() -> None:
    async def scenario():
        store = MemoryStore()
        await store.push_front("items", "1")
        await store.trim("items", 1, 0)
        return await store.exists("items")

    assert asyncio.run(scenario()) is False


def test_wrong_type_raises_store_error() -> None:
    async def scenario():
        store = MemoryStore()
        await store.set("scalar", "x")
        await store.push_front("scalar", "y")

    with pytest.raises(StoreError):
        asyncio.run(scenario())


def test_snapshot_copies_live_keys() -> None:
    async def scenario():
        clock = FakeClock()
        store = MemoryStore(clock=clock)
        await store.set("config", "{}")
        await store.set("gone", "x", ttl=1)
        await store.push_front("items", "a")
        clock.advance(1)
        snapshot = store.snapshot()
        snapshot["items"].append("mutated")
        return snapshot, await store.get_range("items", 0, -1)

    snapshot, items = asyncio.run(scenario())

    assert set(snapshot) == {"config", "items"}
    assert items == ["a"]


def test_incr_and_delete() -> None:
    async def scenario():
        store = MemoryStore()
        await store.set("a", "1")
        await store.set("b", "2")
        first = await store.incr_and_delete("counter", "a", "missing")
        second = await store.incr_and_delete("counter")
        return first, second, store.snapshot()

    first, second, snapshot = asyncio.run(scenario())

    assert (first, second) == (1, 2)
    assert snapshot == {"b": "2", "counter": "2"}


def test_incr_of_a_non_integer_raises_store_error() -> None:
    async def scenario():
        store = MemoryStore()
        await store.set("counter", "abc")
        await store.set("a", "1")
        with pytest.raises(StoreError):
            await store.incr_and_delete("counter", "a")
        return await store.get("a")

    assert asyncio.run(scenario()) == "1"

import asyncio

from rss_service.context import FeedContext
from rss_service.feeds import FeedFormat
from rss_service.services import FeedService
from rss_service.storage import MemoryStore

from conftest import make_settings


class PausingStore(MemoryStore):
    """Memory store that can hold the next list read until released."""

    def __init__(self) -> None:
        super().__init__()
        self.pause_next_read = False
        self.reading = asyncio.Event()
        self.release = asyncio.Event()

    async def get_range(self, key: str, start: int, stop: int):
        values = await super().get_range(key, start, stop)
        if self.pause_next_read:
            self.pause_next_read = False
            self.reading.set()
            await self.release.wait()
        return values


def test_render_started_before_a_mutation_is_not_served_after_it() -> None:
    async def scenario():
        store = PausingStore()
        context = await FeedContext.create(make_settings(), store=store)
        service = FeedService(context)

        store.pause_next_read = True
        reader = asyncio.create_task(service.get_feed(FeedFormat.RSS, {}))
        await store.reading.wait()

        outcome = await service.add_item({"content": "new", "link": "https://x/new"})
        store.release.set()
        in_flight = await reader

        after = await service.get_feed(FeedFormat.RSS, {})
        await context.close()
        return outcome, in_flight, after

    outcome, in_flight, after = asyncio.run(scenario())

    assert outcome.cache_invalidated is True
    assert "https://x/new" not in in_flight.content
    assert after.status_code == 200
    assert "https://x/new" in after.content


def test_cached_rendering_is_reused_until_the_next_mutation() -> None:
    async def scenario():
        context = await FeedContext.create(make_settings(), store=MemoryStore())
        service = FeedService(context)
        first = await service.get_feed(FeedFormat.ATOM, {})
        second = await service.get_feed(FeedFormat.ATOM, {"If-None-Match": first.headers["ETag"]})
        await service.add_item({"content": "hi", "link": "https://x/1"})
        third = await service.get_feed(FeedFormat.ATOM, {"If-None-Match": first.headers["ETag"]})
        await context.close()
        return first, second, third

    first, second, third = asyncio.run(scenario())

    assert first.status_code == 200
    assert second.status_code == 304
    assert third.status_code == 200
    assert third.headers["ETag"] != first.headers["ETag"]

"""Inspect the stored feed and its cached renderings.

Loads environment variables, opens the configured backing store, and prints
the feed configuration, the cache state per format and a short preview of
each rendering so manual debugging stays easy when adjusting renderers.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

load_dotenv(PROJECT_ROOT / ".env")

from rss_service.config import Settings
from rss_service.context import FeedContext
from rss_service.feeds import FeedFormat
from rss_service.services import FeedService


async def inspect_cache(preview: int = 400, warm: bool = False) -> None:
    """Print cache metadata per format, optionally rendering missing entries."""
    context = await FeedContext.create(Settings())
    service = FeedService(context)
    try:
        reachable = await context.store.ping()
        print(f"Store backend: {context.bundle.backend.value} (ping {'ok' if reachable else 'failed'})")
        print(f"Feed: {context.config.title} (max {context.config.max_items} items)")

        for feed_format in FeedFormat:
            if warm:
                await service.get_feed(feed_format, {})

            cached = await context.cache.get_cached_feed(feed_format)
            if cached is None:
                print(f"\n[{feed_format.value}] not cached")
                continue

            print(f"\n[{feed_format.value}] etag={cached.metadata.etag} "
                  f"lastModified={cached.metadata.last_modified}")
            print(cached.content[:preview])
    finally:
        await context.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--preview", type=int, default=400, help="Characters of each rendering to print")
    parser.add_argument("--warm", action="store_true", help="Render and cache formats that are missing")
    args = parser.parse_args()
    asyncio.run(inspect_cache(preview=args.preview, warm=args.warm))

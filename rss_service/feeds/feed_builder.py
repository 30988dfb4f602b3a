"""
Feed Builder Infrastructure
===========================
Builders for the four output formats of the feed.

RSS 2.0 and Atom are produced with feedgen; JSON Feed 1.1 and the raw JSON
document are plain dictionaries serialized with json.

Responsibility: Turn feed configuration + normalized items into feed documents
"""

import json
import mimetypes
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from feedgen.feed import FeedGenerator
from feedgen.entry import FeedEntry

from .. import __version__
from ..models.feed_config import FeedConfig
from ..models.item import RssItem
from ..utils.dates import ensure_utc, to_iso, utcnow
from ..utils.sanitize import strip_html

JSON_FEED_VERSION = "https://jsonfeed.org/version/1.1"


class FeedFormat(str, Enum):
    """Supported feed formats"""
    RSS = "rss"
    ATOM = "atom"
    JSON = "json"
    RAW = "raw"

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPES[self]

    @property
    def path(self) -> str:
        """Public path the format is served from"""
        return _PATHS[self]


_CONTENT_TYPES = {
    FeedFormat.RSS: "application/rss+xml; charset=utf-8",
    FeedFormat.ATOM: "application/atom+xml; charset=utf-8",
    FeedFormat.JSON: "application/feed+json; charset=utf-8",
    FeedFormat.RAW: "application/json; charset=utf-8",
}

_PATHS = {
    FeedFormat.RSS: "/rss.xml",
    FeedFormat.ATOM: "/atom.xml",
    FeedFormat.JSON: "/feed.json",
    FeedFormat.RAW: "/raw.json",
}


def _media_url(value: Any) -> Optional[str]:
    """URL from a media field given either as a string or as {'url': ...}"""
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("url"), str):
        return value["url"]
    return None


def _attachment(item: RssItem) -> Optional[Dict[str, Any]]:
    """
    The item's single attachment.

    An explicit enclosure wins; otherwise the first of image/audio/video.
    """
    if item.enclosure:
        mime_type = item.enclosure.type or mimetypes.guess_type(item.enclosure.url)[0]
        return {
            "url": item.enclosure.url,
            "type": mime_type or "application/octet-stream",
            "length": item.enclosure.length or 0,
        }

    for field, fallback in (("image", "image/jpeg"), ("audio", "audio/mpeg"), ("video", "video/mp4")):
        value = getattr(item, field)
        url = _media_url(value)
        if not url:
            continue
        mime_type = value.get("type") if isinstance(value, dict) else None
        return {
            "url": url,
            "type": mime_type or mimetypes.guess_type(url)[0] or fallback,
            "length": 0,
        }
    return None


class FeedBuilder:
    """
    Builds every output format for one feed.

    Items are expected newest first (store order) and are emitted in that
    order. The build date is taken from the newest item so identical input
    produces identical output.

    Example:
        builder = FeedBuilder(config, feed_url="https://example.com/rss.xml")
        builder.add_items(items)
        xml = builder.generate(FeedFormat.RSS)
    """

    def __init__(self, config: FeedConfig, feed_url: str):
        """
        Initialize feed builder.

        Args:
            config: Feed configuration (title, site link, author...)
            feed_url: URL of the rendered feed itself (self link)
        """
        self.config = config
        self.feed_url = feed_url
        self._items: List[RssItem] = []

    def add_items(self, items: List[RssItem]) -> None:
        self._items.extend(items)

    def get_entry_count(self) -> int:
        """Get the number of entries in the feed"""
        return len(self._items)

    @property
    def updated(self) -> datetime:
        """Newest item date, or now for an empty feed"""
        if not self._items:
            return utcnow()
        return max(ensure_utc(item.date) for item in self._items)

    def generate(self, format: FeedFormat = FeedFormat.RSS) -> str:
        """
        Generate the feed in the specified format.

        Args:
            format: Output format

        Returns:
            Serialized feed document
        """
        if format == FeedFormat.RSS:
            return self._feed_generator().rss_str(pretty=True).decode("utf-8")
        elif format == FeedFormat.ATOM:
            return self._feed_generator().atom_str(pretty=True).decode("utf-8")
        elif format == FeedFormat.JSON:
            return json.dumps(self.json_feed(), ensure_ascii=False, indent=2)
        elif format == FeedFormat.RAW:
            return json.dumps(self.raw_feed(), ensure_ascii=False, indent=2)
        else:
            raise ValueError(f"Unsupported format: {format}")

    # MARK: - XML formats

    def _feed_generator(self) -> FeedGenerator:
        config = self.config
        fg = FeedGenerator()

        # Required metadata
        fg.id(config.site_url)
        fg.title(config.title)
        fg.description(config.description)
        fg.link(href=config.site_url, rel="alternate")
        fg.link(href=self.feed_url, rel="self")
        fg.language(config.language)

        if config.author:
            author = {"name": config.author.name}
            if config.author.email:
                author["email"] = config.author.email
            if config.author.link:
                author["uri"] = config.author.link
            fg.author(author)

        if config.image:
            fg.image(url=config.image, title=config.title, link=config.site_url)
        if config.copyright:
            fg.rights(config.copyright)

        fg.generator("rss-service", version=__version__)

        updated = self.updated
        fg.lastBuildDate(updated)
        fg.updated(updated)

        for item in self._items:
            self._add_entry(fg.add_entry(order="append"), item)

        return fg

    def _add_entry(self, entry: FeedEntry, item: RssItem) -> None:
        # id() sets the Atom id; guid() afterwards restores the RSS permalink flag
        entry.id(item.guid)
        entry.guid(item.guid, permalink=bool(item.is_perma_link))
        entry.title(item.title)
        entry.link(href=item.link)

        if item.description:
            entry.description(item.description)
        if item.content:
            entry.content(item.content, type="html")

        entry.pubDate(ensure_utc(item.published))
        entry.updated(ensure_utc(item.date))

        for author in item.author or []:
            data = {"name": author.name}
            if author.email:
                data["email"] = author.email
            if author.link:
                data["uri"] = author.link
            entry.author(data)

        for category in item.category or []:
            if category.domain:
                entry.category(term=category.name, scheme=category.domain)
            else:
                entry.category(term=category.name)

        attachment = _attachment(item)
        if attachment:
            entry.enclosure(attachment["url"], str(attachment["length"]), attachment["type"])

    # MARK: - JSON formats

    def json_feed(self) -> Dict[str, Any]:
        """JSON Feed 1.1 document (item HTML preserved)"""
        config = self.config
        feed: Dict[str, Any] = {
            "version": JSON_FEED_VERSION,
            "title": config.title,
            "home_page_url": config.site_url,
            "feed_url": self.feed_url,
            "description": config.description,
            "language": config.language,
        }
        if config.image:
            feed["icon"] = config.image
        if config.author:
            author = {"name": config.author.name}
            if config.author.link:
                author["url"] = config.author.link
            feed["authors"] = [author]

        feed["items"] = [self._json_feed_item(item) for item in self._items]
        return feed

    def _json_feed_item(self, item: RssItem) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "id": item.guid,
            "url": item.link,
            "title": item.title,
            "content_html": item.content or item.description,
            "date_published": to_iso(item.published),
            "date_modified": to_iso(item.date),
        }
        if item.description:
            entry["summary"] = strip_html(item.description)
        if item.author:
            entry["authors"] = [
                {"name": author.name, **({"url": author.link} if author.link else {})}
                for author in item.author
            ]
        if item.category:
            entry["tags"] = [category.name for category in item.category]

        image = _media_url(item.image)
        if image:
            entry["image"] = image

        attachment = _attachment(item)
        if attachment:
            data = {"url": attachment["url"], "mime_type": attachment["type"]}
            if attachment["length"]:
                data["size_in_bytes"] = attachment["length"]
            entry["attachments"] = [data]
        return entry

    def raw_feed(self) -> Dict[str, Any]:
        """Raw JSON document: feed metadata plus items with HTML stripped"""
        return {
            "feed": self.config.to_public(),
            "items": [plain_item(item) for item in self._items],
        }


def plain_item(item: RssItem) -> Dict[str, Any]:
    """Public item dict with HTML removed from its text fields"""
    data = item.to_public()
    for key in ("title", "description", "content"):
        if key in data:
            data[key] = strip_html(data[key])
    return data

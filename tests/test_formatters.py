import json
import xml.etree.ElementTree as ET

import pytest

from rss_service.errors import FeedValidationError, RenderError
from rss_service.feeds import FeedFormat, format_items, generate_feed
from rss_service.models import FeedConfig, normalize_item

ATOM_NS = "{http://www.w3.org/2005/Atom}"


def _serialized_items():
    newest = normalize_item({
        "title": "Second <em>post</em>",
        "content": "<p>Second body</p>",
        "link": "https://blog.example.com/2",
        "published": "2024-02-02T00:00:00Z",
        "date": "2024-02-02T00:00:00Z",
        "categories": ["news"],
        "image": "https://blog.example.com/cover.png",
    })
    oldest = normalize_item({
        "description": "First summary",
        "link": "https://blog.example.com/1",
        "published": "2024-02-01T00:00:00Z",
        "date": "2024-02-01T00:00:00Z",
    })
    return [newest.to_json(), oldest.to_json()]


def _config() -> FeedConfig:
    return FeedConfig.from_input({"title": "Blog", "siteUrl": "https://blog.example.com"})


def test_content_types_per_format() -> None:
    assert FeedFormat.RSS.content_type.startswith("application/rss+xml")
    assert FeedFormat.ATOM.content_type.startswith("application/atom+xml")
    assert FeedFormat.JSON.content_type.startswith("application/feed+json")
    assert FeedFormat.RAW.content_type.startswith("application/json")


def test_rss_lists_items_newest_first() -> None:
    rendered = generate_feed(_serialized_items(), FeedFormat.RSS, _config())
    channel = ET.fromstring(rendered.content.encode("utf-8")).find("channel")

    assert channel.findtext("title") == "Blog"
    assert [item.findtext("link") for item in channel.findall("item")] == [
        "https://blog.example.com/2",
        "https://blog.example.com/1",
    ]
    assert channel.find("item/enclosure").get("url") == "https://blog.example.com/cover.png"
    assert rendered.content_type == FeedFormat.RSS.content_type


def test_atom_has_one_entry_per_item() -> None:
    rendered = generate_feed(_serialized_items(), FeedFormat.ATOM, _config())
    root = ET.fromstring(rendered.content.encode("utf-8"))
    entries = root.findall(f"{ATOM_NS}entry")

    assert len(entries) == 2
    assert entries[0].findtext(f"{ATOM_NS}id") == "https://blog.example.com/2"


def test_json_feed_preserves_html() -> None:
    document = json.loads(generate_feed(_serialized_items(), FeedFormat.JSON, _config()).content)

    assert document["version"] == "https://jsonfeed.org/version/1.1"
    assert document["feed_url"] == "https://blog.example.com/feed.json"
    assert document["items"][0]["content_html"] == "<p>Second body</p>"
    assert document["items"][0]["tags"] == ["news"]


def test_raw_feed_strips_html() -> None:
    document = json.loads(generate_feed(_serialized_items(), FeedFormat.RAW, _config()).content)

    assert document["feed"]["title"] == "Blog"
    assert document["items"][0]["title"] == "Second post"
    assert document["items"][0]["content"] == "Second body"


def test_base_url_sets_self_link() -> None:
    rendered = generate_feed([], FeedFormat.JSON, _config(), base_url="https://feeds.example.com/")

    assert json.loads(rendered.content)["feed_url"] == "https://feeds.example.com/feed.json"


def test_identical_input_renders_identically() -> None:
    items = _serialized_items()

    for feed_format in FeedFormat:
        assert generate_feed(items, feed_format, _config()).content == generate_feed(items, feed_format, _config()).content


def test_empty_feed_renders() -> None:
    rendered = generate_feed([], FeedFormat.RSS, _config())

    assert ET.fromstring(rendered.content.encode("utf-8")).find("channel/item") is None


def test_malformed_stored_item_raises_render_error() -> None:
    with pytest.raises(RenderError) as excinfo:
        generate_feed(['{"title": "no link"}'], FeedFormat.ATOM, _config())

    assert "atom" in excinfo.value.message
    assert excinfo.value.status_code == 500


def test_item_listing_formats() -> None:
    items = _serialized_items()

    assert format_items(items, "raw")[0]["title"] == "Second post"
    assert format_items(items, "html")[0]["title"] == "Second <em>post</em>"


def test_item_listing_rejects_unknown_format() -> None:
    with pytest.raises(FeedValidationError) as excinfo:
        format_items([], "xml")

    assert excinfo.value.error == "Invalid format: xml. Valid formats are: raw, html"

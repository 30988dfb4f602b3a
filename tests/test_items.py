from datetime import datetime, timezone

import pytest

from rss_service.errors import FeedValidationError
from rss_service.models import RssItem, normalize_item


def test_minimal_item_gets_defaults() -> None:
    item = normalize_item({"content": "hi", "link": "https://x/1"})

    assert item.title == "Untitled"
    assert item.guid == "https://x/1"
    assert item.id
    assert item.description == ""
    assert item.content == "hi"
    assert item.published.tzinfo is not None


def test_description_fills_missing_content() -> None:
    item = normalize_item({"description": "<p>summary</p>", "link": "https://x/2"})

    assert item.content == "<p>summary</p>"


def test_missing_content_and_description_is_rejected() -> None:
    with pytest.raises(FeedValidationError) as excinfo:
        normalize_item({"link": "https://x/3", "title": "Only a title"})

    assert excinfo.value.status_code == 400
    assert excinfo.value.error == "Missing required field: content or description"


def test_missing_link_is_rejected() -> None:
    with pytest.raises(FeedValidationError) as excinfo:
        normalize_item({"content": "hi"})

    assert excinfo.value.error == "Missing required field: link"


def test_non_object_payload_is_rejected() -> None:
    with pytest.raises(FeedValidationError) as excinfo:
        normalize_item(["content", "link"])

    assert excinfo.value.error == "Invalid JSON"


def test_published_at_alias_and_date_parsing() -> None:
    item = normalize_item({
        "content": "hi",
        "link": "https://x/4",
        "publishedAt": "2024-03-01T12:00:00Z",
        "date": "Fri, 01 Mar 2024 13:00:00 GMT",
    })

    assert item.published == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)
    assert item.date == datetime(2024, 3, 1, 13, tzinfo=timezone.utc)


def test_invalid_date_is_rejected() -> None:
    with pytest.raises(FeedValidationError) as excinfo:
        normalize_item({"content": "hi", "link": "https://x/5", "published": "not a date"})

    assert excinfo.value.error == "Invalid field: published"


def test_categories_and_authors_are_coerced() -> None:
    item = normalize_item({
        "content": "hi",
        "link": "https://x/6",
        "categories": ["news", {"name": "tech", "domain": "https://x/tags"}],
        "author": {"name": "Ada", "email": "ada@example.com"},
    })

    assert [category.name for category in item.category] == ["news", "tech"]
    assert item.category[1].domain == "https://x/tags"
    assert [author.name for author in item.author] == ["Ada"]


def test_single_category_string() -> None:
    item = normalize_item({"content": "hi", "link": "https://x/7", "categories": "news"})

    assert [category.name for category in item.category] == ["news"]


def test_html_fields_are_sanitized() -> None:
    item = normalize_item({
        "title": "<b>Bold</b><script>alert(1)</script>",
        "content": '<p onclick="x()">Hello <a href="javascript:alert(1)">link</a></p>',
        "link": "https://x/8",
    })

    assert item.title == "<b>Bold</b>"
    assert "script" not in item.title
    assert "onclick" not in item.content
    assert "javascript" not in item.content
    assert "Hello" in item.content


def test_explicit_ids_and_media_are_kept() -> None:
    item = normalize_item({
        "id": "item-1",
        "guid": "urn:item-1",
        "content": "hi",
        "link": "https://x/9",
        "image": "https://x/img.png",
        "enclosure": {"url": "https://x/a.mp3", "type": "audio/mpeg", "length": 1024},
        "isPermaLink": False,
    })

    assert item.id == "item-1"
    assert item.guid == "urn:item-1"
    assert item.image == "https://x/img.png"
    assert item.enclosure.length == 1024
    assert item.is_perma_link is False


def test_non_string_text_field_is_rejected() -> None:
    with pytest.raises(FeedValidationError):
        normalize_item({"content": {"html": "hi"}, "link": "https://x/10"})


def test_serialized_item_round_trips_with_camel_case_keys() -> None:
    item = normalize_item({"content": "hi", "link": "https://x/11", "isPermaLink": True})
    raw = item.to_json()

    assert '"isPermaLink":true' in raw
    assert RssItem.from_json(raw) == item


def test_title_emptied_by_sanitization_falls_back_to_untitled() -> None:
    item = normalize_item({"title": "<script>x</script>", "content": "hi", "link": "https://x/20"})

    assert item.title == "Untitled"


def test_body_emptied_by_sanitization_is_rejected() -> None:
    with pytest.raises(FeedValidationError) as excinfo:
        normalize_item({"content": "<script>alert(1)</script>", "link": "https://x/21"})

    assert excinfo.value.error == "Missing required field: content or description"


def test_description_survives_when_content_is_emptied() -> None:
    item = normalize_item({
        "content": "<style>p{}</style>",
        "description": "summary",
        "link": "https://x/22",
    })

    assert item.content == "summary"


def test_xml_incompatible_characters_are_removed() -> None:
    item = normalize_item({
        "title": "a\u0000b",
        "content": "hi\u0001there",
        "description": "tab\tkept",
        "link": "https://x/23\u000b",
        "guid": "guid\u001f-1",
    })

    assert item.title == "ab"
    assert item.content == "hithere"
    assert item.description == "tab\tkept"
    assert item.link == "https://x/23"
    assert item.guid == "guid-1"

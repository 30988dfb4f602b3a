from rss_service.utils.dates import parse_date_header, to_http_date, to_iso
from rss_service.utils.hash_utils import build_etag, content_hash


def test_content_hash_is_stable() -> None:
    assert content_hash("<rss/>") == content_hash(b"<rss/>")
    assert len(content_hash("<rss/>")) == 64


def test_build_etag_detects_content_changes() -> None:
    assert build_etag("Original body") != build_etag("Updated body")


def test_build_etag_is_quoted() -> None:
    etag = build_etag("body")

    assert etag == f'"{content_hash("body")[:32]}"'


def test_http_and_iso_dates_parse_to_the_same_instant() -> None:
    iso = parse_date_header("2024-01-01T00:00:00Z")
    http = parse_date_header("Mon, 01 Jan 2024 00:00:00 GMT")

    assert iso == http
    assert to_iso(iso) == "2024-01-01T00:00:00Z"
    assert to_http_date(iso) == "Mon, 01 Jan 2024 00:00:00 GMT"


def test_invalid_dates_parse_to_none() -> None:
    assert parse_date_header(None) is None
    assert parse_date_header("") is None
    assert parse_date_header("soon") is None

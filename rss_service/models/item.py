"""
Feed item domain model.

Represents a single content item pushed through the write API. Incoming
payloads are loosely shaped (scalar or list authors and categories, several
date spellings); `normalize_item` turns them into a complete `RssItem`.

Responsibility: Item shape, defaults, coercion and sanitization
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..errors import FeedValidationError
from ..utils.dates import ensure_utc, parse_date_header, utcnow
from ..utils.sanitize import sanitize, strip_invalid_xml_chars

DEFAULT_ITEM_TITLE = "Untitled"

MediaField = Union[str, Dict[str, Any]]


class ItemAuthor(BaseModel):
    """Item author"""

    model_config = ConfigDict(extra="ignore")

    name: str
    email: Optional[str] = None
    link: Optional[str] = None


class Category(BaseModel):
    """Item category"""

    model_config = ConfigDict(extra="ignore")

    name: str
    domain: Optional[str] = None


class Enclosure(BaseModel):
    """Attached media file"""

    model_config = ConfigDict(extra="ignore")

    url: str
    type: Optional[str] = None
    length: Optional[int] = Field(default=None, ge=0)


class RssItem(BaseModel):
    """
    Complete, normalized feed item.

    Stored as camelCase JSON, newest first, in the feed's item list.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore"
    )

    # MARK: - Core Fields
    id: str
    guid: str
    title: str
    description: str = ""
    content: str = ""
    link: str

    # MARK: - Dates
    published: datetime
    date: datetime

    # MARK: - Optional Fields
    author: Optional[List[ItemAuthor]] = None
    category: Optional[List[Category]] = None

    # MARK: - Media
    image: Optional[MediaField] = None
    audio: Optional[MediaField] = None
    video: Optional[MediaField] = None
    enclosure: Optional[Enclosure] = None

    # MARK: - Metadata
    source: Optional[MediaField] = None
    is_perma_link: Optional[bool] = None
    copyright: Optional[str] = None

    def to_json(self) -> str:
        """Serialized form kept in the item store"""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    def to_public(self) -> dict:
        """camelCase dict for API responses"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> "RssItem":
        return cls.model_validate_json(raw)


def _coerce_categories(value: Any) -> Optional[List[dict]]:
    """Accept 'a', ['a', 'b'] or [{'name': 'a'}]"""
    if not value:
        return None
    if isinstance(value, (str, dict)):
        value = [value]
    if not isinstance(value, list):
        raise FeedValidationError("categories must be a string or a list", error="Invalid field: categories")
    return [{"name": entry} if isinstance(entry, str) else entry for entry in value]


def _coerce_authors(value: Any) -> Optional[List[dict]]:
    """Accept a single author or a list; bare strings become names"""
    if not value:
        return None
    if not isinstance(value, list):
        value = [value]
    return [{"name": entry} if isinstance(entry, str) else entry for entry in value]


def _parse_timestamp(value: Any, field: str) -> datetime:
    """Parse an item timestamp; absent means now"""
    if value is None or value == "":
        return utcnow()
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch milliseconds
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            pass
    if isinstance(value, str):
        parsed = parse_date_header(value)
        if parsed is not None:
            return parsed
    raise FeedValidationError(
        f"The {field} field must be a valid date",
        error=f"Invalid field: {field}"
    )


def _text_field(payload: dict, key: str) -> str:
    """String field or empty string; other types are rejected"""
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise FeedValidationError(f"The {key} field must be a string", error=f"Invalid field: {key}")
    return strip_invalid_xml_chars(value)


def normalize_item(payload: Any) -> RssItem:
    """
    Validate an incoming item and fill in defaults.

    Args:
        payload: Decoded JSON body of an item-add request

    Returns:
        Normalized, sanitized RssItem

    Raises:
        FeedValidationError: Required fields missing or fields malformed
    """
    if not isinstance(payload, dict):
        raise FeedValidationError("The request body must be a JSON object", error="Invalid JSON")

    if payload.get("publishedAt") and not payload.get("published"):
        payload = {**payload, "published": payload["publishedAt"]}

    title = sanitize(_text_field(payload, "title"))
    description = sanitize(_text_field(payload, "description"))
    content = sanitize(_text_field(payload, "content"))
    link = _text_field(payload, "link").strip()

    # Required-field checks apply to what survives sanitization
    if not content and not description:
        raise FeedValidationError(
            "Either content or description field is required for RSS items",
            error="Missing required field: content or description"
        )

    if not link:
        raise FeedValidationError(
            "The link field is required for RSS items",
            error="Missing required field: link"
        )

    guid = payload.get("guid")
    if isinstance(guid, str):
        guid = strip_invalid_xml_chars(guid)

    data: Dict[str, Any] = {
        "id": payload.get("id") or str(uuid.uuid4()),
        "guid": guid or link,
        "title": title or DEFAULT_ITEM_TITLE,
        "description": description,
        "content": content or description,
        "link": link,
        "published": _parse_timestamp(payload.get("published"), "published"),
        "date": _parse_timestamp(payload.get("date"), "date"),
        "author": _coerce_authors(payload.get("author")),
        "category": _coerce_categories(payload.get("categories") or payload.get("category")),
    }

    for key in ("image", "audio", "video", "enclosure", "source", "copyright"):
        if payload.get(key):
            data[key] = payload[key]

    if payload.get("isPermaLink") is not None:
        data["isPermaLink"] = payload["isPermaLink"]

    try:
        return RssItem.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise FeedValidationError(
            f"Invalid value for {location}: {first['msg']}",
            error="Invalid item"
        ) from e

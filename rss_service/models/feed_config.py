"""
Feed configuration model.

One record per deployment, always keyed by the default feed identifier.
Replaced wholesale by a config update; missing or invalid core fields fall
back to defaults.

Responsibility: Feed-level metadata (title, site link, item cap, author)
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..errors import FeedValidationError

# Single feed per deployment
DEFAULT_FEED_ID = "main"

DEFAULT_TITLE = "Default RSS Feed"
DEFAULT_DESCRIPTION = "A feed of curated content"
DEFAULT_SITE_URL = "https://example.com"
DEFAULT_LANGUAGE = "en"
DEFAULT_MAX_ITEMS = 100


class FeedAuthor(BaseModel):
    """Feed-level author"""

    model_config = ConfigDict(extra="ignore")

    name: str
    email: Optional[str] = None
    link: Optional[str] = None


class FeedConfig(BaseModel):
    """
    Feed configuration.

    Serialized with camelCase keys (siteUrl, maxItems) both in the store and
    on the wire.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore"
    )

    id: str = Field(default=DEFAULT_FEED_ID)
    title: str = Field(default=DEFAULT_TITLE)
    description: str = Field(default=DEFAULT_DESCRIPTION)
    site_url: str = Field(default=DEFAULT_SITE_URL)
    language: str = Field(default=DEFAULT_LANGUAGE)
    max_items: int = Field(default=DEFAULT_MAX_ITEMS, gt=0)
    image: Optional[str] = None
    author: Optional[FeedAuthor] = None
    copyright: Optional[str] = None

    @classmethod
    def default(cls) -> "FeedConfig":
        """Configuration used until one is stored"""
        return cls(
            image="https://example.com/logo.png",
            author=FeedAuthor(name="Feed Author", email="author@example.com"),
            copyright="test",
        )

    @classmethod
    def from_input(cls, payload: Any) -> "FeedConfig":
        """
        Build a configuration from an update payload.

        The id is forced to the default feed, falsy title/description/siteUrl/
        language fall back to defaults and maxItems must be a positive integer.

        Args:
            payload: Decoded JSON object

        Raises:
            FeedValidationError: Payload is not an object or has malformed fields
        """
        if not isinstance(payload, dict):
            raise FeedValidationError(
                "The configuration must be a JSON object",
                error="Invalid Configuration"
            )

        data = dict(payload)
        data["id"] = DEFAULT_FEED_ID

        for key, fallback in (
            ("title", DEFAULT_TITLE),
            ("description", DEFAULT_DESCRIPTION),
            ("siteUrl", DEFAULT_SITE_URL),
            ("language", DEFAULT_LANGUAGE),
        ):
            data[key] = data.get(key) or fallback

        max_items = data.get("maxItems")
        if isinstance(max_items, bool) or not isinstance(max_items, int) or max_items <= 0:
            data["maxItems"] = DEFAULT_MAX_ITEMS

        # Snake_case keys would bypass the defaulting above
        for key in ("site_url", "max_items"):
            data.pop(key, None)

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise FeedValidationError(
                f"Invalid feed configuration: {e.errors()[0]['msg']}",
                error="Invalid Configuration"
            ) from e

    def to_public(self) -> dict:
        """camelCase dict without unset optional fields"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

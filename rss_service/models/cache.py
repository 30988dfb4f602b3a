"""
Cached rendering models.

Responsibility: Freshness metadata and cached body pairs for rendered feeds
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class CacheMetadata(BaseModel):
    """
    Freshness metadata for one cached rendering.

    Stored as JSON next to the body with the same TTL. `lastModified` is an
    ISO-8601 UTC timestamp with second precision. `generation` is the
    invalidation counter observed before the items were read.
    """

    model_config = ConfigDict(populate_by_name=True)

    etag: str = Field(description="Quoted opaque validator")
    last_modified: str = Field(alias="lastModified")
    expires_at: Optional[str] = Field(default=None, alias="expiresAt")
    generation: int = Field(default=0, description="Cache generation the rendering was built under")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class CachedFeed(BaseModel):
    """Rendered body together with the metadata written alongside it"""

    content: str
    metadata: CacheMetadata

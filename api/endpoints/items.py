"""
Item Endpoints
==============
Bearer-protected item listing and publishing.

Endpoints:
    - GET /api/items?format=raw|html - Stored items
    - POST /api/items - Publish an item and invalidate cached feeds

Responsibility: Item write path and inspection
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query, Request

from rss_service.services import FeedService

from api.dependencies import get_feed_service, read_json_body

router = APIRouter(prefix="/api/items", tags=["items"])


@router.get("", summary="List Items")
async def list_items(
    format: str = Query("raw", description="raw (HTML stripped) or html (HTML preserved)"),
    service: FeedService = Depends(get_feed_service)
) -> List[Dict[str, Any]]:
    return await service.list_items(format)


@router.post("", summary="Add Item")
async def add_item(request: Request, service: FeedService = Depends(get_feed_service)) -> Dict[str, Any]:
    """
    Validate and store a new item, newest first.

    Requires `link` and one of `content` or `description`. Every cached
    feed rendering is invalidated once the item is stored.
    """
    payload = await read_json_body(request)
    outcome = await service.add_item(payload)
    return {
        "message": "Item added successfully",
        "item": outcome.resource,
        "cacheInvalidated": outcome.cache_invalidated
    }

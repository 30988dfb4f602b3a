"""
Feed Configuration Endpoints
============================

Endpoints:
    - GET /api/config - Current feed configuration
    - PUT /api/config - Replace the configuration and invalidate cached feeds
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from rss_service.services import FeedService

from api.dependencies import get_feed_service, read_json_body

router = APIRouter(prefix="/api/config", tags=["config"])


@router.get("", summary="Get Feed Configuration")
async def get_config(service: FeedService = Depends(get_feed_service)) -> Dict[str, Any]:
    return service.get_config()


@router.put("", summary="Update Feed Configuration")
async def update_config(request: Request, service: FeedService = Depends(get_feed_service)) -> Dict[str, Any]:
    """Missing fields fall back to defaults; the feed id is fixed."""
    payload = await read_json_body(request)
    outcome = await service.update_config(payload)
    return {
        "message": "Feed configuration updated successfully",
        "config": outcome.resource,
        "cacheInvalidated": outcome.cache_invalidated
    }

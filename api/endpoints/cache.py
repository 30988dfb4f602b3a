"""
Cache Management Endpoints
==========================

Endpoints:
    - GET /api/cache/stats - Cached formats and TTL
    - POST /api/cache/clear - Invalidate every cached rendering
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from rss_service.services import FeedService

from api.dependencies import get_feed_service

router = APIRouter(prefix="/api/cache", tags=["cache"])


@router.get("/stats", summary="Cache Statistics")
async def cache_stats(service: FeedService = Depends(get_feed_service)) -> Dict[str, Any]:
    return await service.cache_stats()


@router.post("/clear", summary="Clear Feed Cache")
async def clear_cache(service: FeedService = Depends(get_feed_service)) -> Dict[str, Any]:
    await service.clear_cache()
    return {"message": "Feed cache cleared"}

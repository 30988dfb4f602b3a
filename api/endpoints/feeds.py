"""
Feed Endpoints
==============
Public, cache-aware feed documents.

Endpoints:
    - GET /rss.xml - RSS 2.0
    - GET /atom.xml - Atom 1.0
    - GET /feed.json - JSON Feed 1.1 (HTML preserved)
    - GET /raw.json - Plain JSON (HTML stripped)

Responsibility: Expose feeds with ETag/Last-Modified conditional support
"""

from fastapi import APIRouter, Depends, Request, Response

from rss_service.feeds import FeedFormat
from rss_service.services import FeedResult, FeedService

from api.dependencies import get_feed_service

router = APIRouter(
    tags=["feeds"],
    responses={
        200: {
            "description": "Feed document",
            "content": {
                "application/rss+xml": {},
                "application/atom+xml": {},
                "application/feed+json": {},
                "application/json": {}
            }
        },
        304: {"description": "Not Modified (cached)"},
        500: {"description": "Feed could not be rendered"}
    }
)


def to_response(result: FeedResult) -> Response:
    """Turn a service result into an HTTP response (304 carries headers only)"""
    if result.status_code == 304:
        return Response(status_code=304, headers=result.headers)
    return Response(
        content=result.content,
        status_code=result.status_code,
        media_type=result.media_type,
        headers=result.headers
    )


async def serve_feed(feed_format: FeedFormat, request: Request, service: FeedService) -> Response:
    result = await service.get_feed(feed_format, request.headers)
    return to_response(result)


@router.get("/rss.xml", summary="RSS 2.0 Feed", response_class=Response)
async def get_rss_feed(request: Request, service: FeedService = Depends(get_feed_service)) -> Response:
    return await serve_feed(FeedFormat.RSS, request, service)


@router.get("/atom.xml", summary="Atom Feed", response_class=Response)
async def get_atom_feed(request: Request, service: FeedService = Depends(get_feed_service)) -> Response:
    return await serve_feed(FeedFormat.ATOM, request, service)


@router.get("/feed.json", summary="JSON Feed", response_class=Response)
async def get_json_feed(request: Request, service: FeedService = Depends(get_feed_service)) -> Response:
    """JSON Feed 1.1 with item HTML preserved."""
    return await serve_feed(FeedFormat.JSON, request, service)


@router.get("/raw.json", summary="Raw JSON Feed", response_class=Response)
async def get_raw_feed(request: Request, service: FeedService = Depends(get_feed_service)) -> Response:
    """Feed configuration and items with HTML stripped."""
    return await serve_feed(FeedFormat.RAW, request, service)

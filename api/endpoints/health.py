"""
Root and health endpoints.
"""

from fastapi import APIRouter
from fastapi.responses import RedirectResponse

from rss_service.feeds import FeedFormat
from rss_service.utils.dates import to_iso, utcnow

router = APIRouter(tags=["health"])


@router.get("/", include_in_schema=False)
async def root() -> RedirectResponse:
    """Redirect to the preferred feed format."""
    return RedirectResponse(url=FeedFormat.RSS.path)


@router.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "ok",
        "timestamp": to_iso(utcnow()),
        "service": "rss-service"
    }

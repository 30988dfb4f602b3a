"""
Shared FastAPI dependencies.

Responsibility: Hand the running service and parsed request bodies to route handlers
"""

import json
from typing import Any

from fastapi import Request

from rss_service.context import FeedContext
from rss_service.errors import FeedValidationError
from rss_service.services import FeedService


def get_feed_context(request: Request) -> FeedContext:
    """Context built by the application lifespan"""
    return request.app.state.feed_context


def get_feed_service(request: Request) -> FeedService:
    """Feed service built by the application lifespan"""
    return request.app.state.feed_service


async def read_json_body(request: Request) -> Any:
    """
    Decode the request body as JSON.

    Raises:
        FeedValidationError: Body is empty or not valid JSON
    """
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FeedValidationError(
            "The request body must be valid JSON",
            error="Invalid JSON"
        ) from e

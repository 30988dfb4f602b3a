"""
Protection middleware.

Adds security headers and the service version to every response and answers
408 when a request outlives the configured timeout.

Responsibility: Response hardening and request timeouts
"""

import asyncio
import logging

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from rss_service import __version__
from rss_service.config import ProtectionConfig

logger = logging.getLogger(__name__)

VERSION_HEADER = "X-RSS-Service-Version"
HSTS_VALUE = "max-age=31536000; includeSubDomains"


class ProtectionMiddleware(BaseHTTPMiddleware):
    """Security headers plus a hard per-request timeout"""

    def __init__(self, app, config: ProtectionConfig):
        super().__init__(app)
        self.config = config

    async def dispatch(self, request: Request, call_next):
        try:
            response = await asyncio.wait_for(
                call_next(request),
                timeout=self.config.request_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Request timed out after {self.config.request_timeout_seconds}s: "
                f"{request.method} {request.url.path}"
            )
            response = JSONResponse(
                status_code=status.HTTP_408_REQUEST_TIMEOUT,
                content={
                    "error": "Request Timeout",
                    "message": "The request took too long to process"
                }
            )

        response.headers["X-Content-Type-Options"] = "nosniff"
        if self.config.hsts:
            response.headers["Strict-Transport-Security"] = HSTS_VALUE
        response.headers[VERSION_HEADER] = __version__
        return response

"""
Bearer token authentication middleware.

Validates the shared API secret in the Authorization header for the write
and management API.

Responsibility: Request authentication
"""

import hmac
import logging
from typing import Optional

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from rss_service.errors import AuthenticationError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an `Authorization: Bearer <token>` header, or None"""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def verify_token(token: Optional[str], secret: Optional[str]) -> None:
    """
    Check a presented token against the configured secret.

    Raises:
        AuthenticationError: Token missing, secret unset, or token mismatch
    """
    if token is None:
        raise AuthenticationError("Missing or invalid Authorization header")
    if not secret or not hmac.compare_digest(token.encode(), secret.encode()):
        raise AuthenticationError("Invalid API token")


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Middleware for bearer token authentication."""

    def __init__(self, app, secret: Optional[str], protected_paths: Optional[list[str]] = None):
        """
        Initialize bearer token middleware.

        Args:
            app: FastAPI application
            secret: Shared API secret
            protected_paths: Path prefixes requiring a token (default: all /api/ routes)
        """
        super().__init__(app)
        self.secret = secret
        self.protected_paths = protected_paths or ["/api/"]

    async def dispatch(self, request: Request, call_next):
        """
        Process request and check the bearer token if needed.

        Args:
            request: HTTP request
            call_next: Next middleware handler

        Returns:
            Response
        """
        if request.method == "OPTIONS" or not self._should_protect(request.url.path):
            return await call_next(request)

        token = extract_bearer_token(request.headers.get("Authorization"))
        try:
            verify_token(token, self.secret)
        except AuthenticationError as e:
            logger.warning(f"Rejected {request.method} {request.url.path}: {e.message}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content=e.to_dict(),
                headers={"WWW-Authenticate": "Bearer"}
            )

        return await call_next(request)

    def _should_protect(self, path: str) -> bool:
        """
        Check if path should be protected by the bearer token.

        Args:
            path: Request path

        Returns:
            True if path should be protected
        """
        return any(path.startswith(protected_path) for protected_path in self.protected_paths)

"""
Error taxonomy for the feed service.

Every error carries the HTTP status code and the short `error` label used in
structured JSON responses, so the API layer can render any of them the same way.

Responsibility: Exception hierarchy shared by storage, rendering, cache and API layers
"""

from typing import Optional


class FeedServiceError(Exception):
    """Base class for all expected service failures"""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(
        self,
        message: str,
        *,
        error: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        """Structured body for JSON error responses"""
        return {"error": self.error, "message": self.message}


class ConfigurationError(FeedServiceError):
    """Missing or inconsistent runtime configuration"""

    error = "Configuration Error"


class FeedValidationError(FeedServiceError):
    """Malformed request body or missing required item fields"""

    status_code = 400
    error = "Validation Error"


class AuthenticationError(FeedServiceError):
    """Missing or invalid bearer token"""

    status_code = 401
    error = "Unauthorized"


class StoreError(FeedServiceError):
    """Backing store unreachable or an operation against it failed"""

    error = "Storage Error"

    def __init__(self, message: str, *, operation: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation


class RenderError(FeedServiceError):
    """Renderer failed to produce a feed body"""

    error = "Render Error"

    def __init__(self, feed_format: str, reason: Optional[str] = None):
        message = f"Failed to render {feed_format} feed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.feed_format = feed_format


class InvalidationError(FeedServiceError):
    """Cached renderings could not be cleared after a mutation"""

    error = "Cache Invalidation Error"

    def __init__(self, message: str, *, keys: Optional[list[str]] = None):
        super().__init__(message)
        self.keys = keys or []

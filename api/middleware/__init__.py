"""
API Middleware Package
======================
Middleware components for FastAPI application.
"""

from .api_key_auth import APIKeyMiddleware
from .protection import ProtectionMiddleware
from .rate_limiter import RateLimiter, RateLimiterMiddleware

__all__ = ["APIKeyMiddleware", "ProtectionMiddleware", "RateLimiter", "RateLimiterMiddleware"]

"""
Rate Limiting Middleware
=========================
Redis-based rate limiter for the public feed endpoints.

Features:
    - Fixed window per client IP (defaults: 100 requests per 5 minutes)
    - Only public GET requests are counted; the bearer-protected API is not
    - 429 Too Many Requests with Retry-After header
    - Redis backend with fallback to in-memory
    - Fails open: a limiter error never blocks a request
"""

from typing import Any, Callable, Dict, Optional, Tuple
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import redis.asyncio as aioredis
from redis.exceptions import RedisError
import hashlib
import time
import logging

from rss_service.config import RateLimitConfig

logger = logging.getLogger(__name__)

KEY_PREFIX = "rl:feeds"


class InMemoryRateLimiter:
    """
    Fallback in-memory rate limiter when Redis is unavailable.

    Counts are per process; several workers each keep their own window.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.storage: Dict[str, Dict[str, Any]] = {}
        self.clock = clock
        self.cleanup_interval = 300
        self.last_cleanup = clock()

    async def increment(self, key: str, window: int) -> int:
        """Increment counter for key within time window"""
        now = self.clock()

        if now - self.last_cleanup > self.cleanup_interval:
            self._cleanup()

        entry = self.storage.get(key)
        if entry is None or now > entry["expires_at"]:
            entry = {"count": 0, "expires_at": now + window}
            self.storage[key] = entry

        entry["count"] += 1
        return entry["count"]

    async def get_ttl(self, key: str) -> int:
        """Get TTL for key in seconds"""
        if key not in self.storage:
            return 0
        ttl = int(self.storage[key]["expires_at"] - self.clock())
        return max(0, ttl)

    def _cleanup(self):
        """Remove expired entries"""
        now = self.clock()
        expired_keys = [
            key for key, entry in self.storage.items()
            if now > entry["expires_at"]
        ]
        for key in expired_keys:
            del self.storage[key]

        self.last_cleanup = now
        logger.debug(f"In-memory rate limiter cleanup: removed {len(expired_keys)} expired entries")


class RedisRateLimiter:
    """Redis-based distributed rate limiter"""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self.redis: Optional[aioredis.Redis] = None

    async def connect(self) -> bool:
        """Connect to Redis; returns False when the server is unreachable"""
        client = aioredis.from_url(
            self.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5
        )
        try:
            await client.ping()
        except RedisError as e:
            logger.error(f"Failed to connect to Redis for rate limiting: {e}")
            await client.aclose()
            return False

        self.redis = client
        logger.info("Connected to Redis for rate limiting")
        return True

    async def disconnect(self):
        """Disconnect from Redis"""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    async def increment(self, key: str, window: int) -> int:
        """Increment counter for key, starting the window on the first hit"""
        if not self.redis:
            raise RuntimeError("Redis not connected")

        count = await self.redis.incr(key)
        if count == 1:
            await self.redis.expire(key, window)

        return count

    async def get_ttl(self, key: str) -> int:
        """Get TTL for key in seconds"""
        if not self.redis:
            raise RuntimeError("Redis not connected")

        ttl = await self.redis.ttl(key)
        return max(0, ttl)


class RateLimiter:
    """
    Limiter shared between the middleware and the application lifespan.

    The lifespan calls startup()/shutdown(); until startup() connects to
    Redis (or when no Redis URL is configured) counts are kept in memory.
    """

    def __init__(
        self,
        config: RateLimitConfig,
        redis_url: Optional[str] = None,
        memory_limiter: Optional[InMemoryRateLimiter] = None
    ):
        self.config = config
        self.redis_url = redis_url
        self.redis_limiter: Optional[RedisRateLimiter] = None
        self.memory_limiter = memory_limiter or InMemoryRateLimiter()
        self.use_redis = False

    async def startup(self):
        """Initialize rate limiter on startup"""
        if not self.config.enabled:
            logger.info("Rate limiting disabled")
            return

        if self.redis_url:
            self.redis_limiter = RedisRateLimiter(self.redis_url)
            self.use_redis = await self.redis_limiter.connect()
            if self.use_redis:
                logger.info("Rate limiter using Redis backend")
            else:
                logger.warning("Redis connection failed, rate limiter using in-memory fallback")
        else:
            logger.info("Rate limiter using in-memory backend")

    async def shutdown(self):
        """Cleanup on shutdown"""
        if self.redis_limiter:
            await self.redis_limiter.disconnect()
        self.use_redis = False

    async def check(self, key: str) -> Tuple[bool, int, int]:
        """
        Count one request against the key's window.

        Returns:
            (allowed, current_count, ttl)
        """
        limit = self.config.max_requests
        window = self.config.window_seconds
        try:
            if self.use_redis and self.redis_limiter:
                count = await self.redis_limiter.increment(key, window)
                ttl = await self.redis_limiter.get_ttl(key)
            else:
                count = await self.memory_limiter.increment(key, window)
                ttl = await self.memory_limiter.get_ttl(key)
        except Exception as e:
            logger.error(f"Rate limit check failed: {e}")
            # Fail open
            return (True, 0, 0)

        return (count <= limit, count, ttl)


class RateLimiterMiddleware(BaseHTTPMiddleware):
    """
    Rate limiting middleware for FastAPI.

    Checks the per-IP window before processing public GET requests.
    Returns 429 Too Many Requests with Retry-After header when exceeded.
    """

    skip_paths = ("/health", "/docs", "/redoc", "/openapi.json")

    def __init__(self, app, limiter: RateLimiter):
        super().__init__(app)
        self.limiter = limiter

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP from request"""
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

        if request.client:
            return request.client.host

        return "unknown"

    def _hash_ip(self, ip: str) -> str:
        """Hash IP for privacy"""
        return hashlib.sha256(ip.encode()).hexdigest()[:16]

    def _should_limit(self, request: Request) -> bool:
        if not self.limiter.config.enabled or request.method != "GET":
            return False
        path = request.url.path
        if path.startswith("/api/"):
            return False
        return not any(path.startswith(skip_path) for skip_path in self.skip_paths)

    async def dispatch(self, request: Request, call_next):
        """Process request with rate limiting"""
        if not self._should_limit(request):
            return await call_next(request)

        key = f"{KEY_PREFIX}:{self._hash_ip(self._get_client_ip(request))}"
        allowed, count, ttl = await self.limiter.check(key)
        limit = self.limiter.config.max_requests

        if not allowed:
            logger.warning(f"Rate limit exceeded for {request.url.path} ({count}/{limit})")
            return self._rate_limit_response(limit, ttl)

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - count))
        response.headers["X-RateLimit-Reset"] = str(int(time.time()) + ttl)

        return response

    def _rate_limit_response(self, limit: int, retry_after: int) -> JSONResponse:
        """Return 429 Too Many Requests response"""
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={
                "error": "Too Many Requests",
                "message": f"Rate limit exceeded. Try again in {retry_after} seconds.",
                "retryAfter": retry_after
            },
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(int(time.time()) + retry_after)
            }
        )

"""
FastAPI application for the RSS service.

Serves the cached public feeds and the bearer-protected write API.

Responsibility: Main API application setup and configuration
"""

# Load .env BEFORE importing settings (critical for pydantic-settings)
from dotenv import load_dotenv
load_dotenv('.env')

from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rss_service import __version__
from rss_service.config import Settings, settings as default_settings
from rss_service.context import FeedContext
from rss_service.errors import FeedServiceError
from rss_service.services import FeedService
from rss_service.storage import KeyValueStore
from api.middleware import APIKeyMiddleware, ProtectionMiddleware, RateLimiter, RateLimiterMiddleware
from api.middleware.protection import VERSION_HEADER
from api.endpoints import cache, feed_config, feeds, health, items

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    rate_limiter: Optional[RateLimiter] = None
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to run with (default: loaded from the environment)
        store: Pre-built backing store (default: selected from settings)
        rate_limiter: Pre-built rate limiter (default: built from settings)

    Returns:
        Configured FastAPI application; the store is opened by its lifespan
    """
    settings = settings or default_settings
    configure_logging(settings.app.log_level)

    limiter = rate_limiter or RateLimiter(settings.rate_limit, redis_url=settings.redis_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting RSS service...")
        logger.info(f"Environment: {settings.app.environment.value}")
        logger.info(f"CORS Origins: {settings.app.cors_origins}")

        context = await FeedContext.create(settings, store=store)
        app.state.feed_context = context
        app.state.feed_service = FeedService(context)
        await limiter.startup()
        try:
            yield
        finally:
            logger.info("Shutting down RSS service...")
            await limiter.shutdown()
            await context.close()

    app = FastAPI(
        title="RSS Service",
        description="Cached RSS, Atom and JSON feeds with a small publishing API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # Starlette runs the last added middleware first
    app.add_middleware(
        APIKeyMiddleware,
        secret=settings.app.api_secret,
        protected_paths=["/api/"]
    )
    app.add_middleware(RateLimiterMiddleware, limiter=limiter)
    app.add_middleware(ProtectionMiddleware, config=settings.protection)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        expose_headers=["Content-Length", VERSION_HEADER],
        max_age=86400,
    )

    @app.exception_handler(FeedServiceError)
    async def feed_service_exception_handler(request: Request, exc: FeedServiceError):
        """Structured body for expected failures."""
        if exc.status_code >= 500:
            logger.error(f"{exc.error} on {request.method} {request.url.path}: {exc.message}", exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "message": str(exc) if settings.app.debug else "An unexpected error occurred"
            }
        )

    app.include_router(health.router)
    app.include_router(feeds.router)
    app.include_router(items.router)
    app.include_router(feed_config.router)
    app.include_router(cache.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=default_settings.app.api_host,
        port=default_settings.app.api_port,
        reload=default_settings.app.debug
    )

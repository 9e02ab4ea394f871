"""
pagecache - Main FastAPI Application

Read-through content cache with HTTP conditional-request support:
- Filesystem or Redis backed cache stores
- ETag / Last-Modified negotiation with empty 304 responses
- Cache-Control headers per request classification
- Operator endpoints for stats, clearing and purging
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
import structlog

from .constants import APP_NAME, APP_VERSION
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .middleware.cache_headers import CacheHeadersMiddleware
from .services.cache.cache_facade import CacheFacade
from .services.cache.page_cache import PageCache
from .services.http.negotiator import ConditionalNegotiator
from .api.errors import register_exception_handlers
from .api.endpoints.health import router as health_router
from .api.endpoints.cache_admin import router as cache_admin_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting pagecache",
        environment=settings.ENVIRONMENT,
        cache_method=app.state.cache.config.method.value,
        http_cache=app.state.http_cache_config.enabled,
    )

    yield

    logger.info("Shutting down pagecache")
    try:
        await app.state.cache.close()
    except Exception as e:
        logger.error("Error during application shutdown", error=str(e))


def create_app(
    settings: Optional[Settings] = None, cache: Optional[CacheFacade] = None
) -> FastAPI:
    """
    Build the application and compose its services.

    Args:
        settings: Settings to use, defaults to the process settings
        cache: Pre-built cache facade, defaults to one built from settings

    Raises:
        UnknownBackendException: If CACHE_METHOD names no known backend
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, json_output=settings.is_production)

    app = FastAPI(
        title="pagecache",
        description="Read-through content cache with HTTP conditional requests",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    http_cache_config = settings.http_cache_config()
    cache = cache or CacheFacade.from_settings(settings)
    negotiator = ConditionalNegotiator(http_cache_config, settings.PROJECT_ID)

    app.state.settings = settings
    app.state.cache = cache
    app.state.http_cache_config = http_cache_config
    app.state.negotiator = negotiator
    app.state.page_cache = PageCache(cache, negotiator)

    app.add_middleware(CacheHeadersMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(cache_admin_router)

    logger.debug("Application created", service=APP_NAME)
    return app


app = create_app()

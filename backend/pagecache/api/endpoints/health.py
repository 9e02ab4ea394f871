"""
Health check endpoints for pagecache.

Provides liveness and cache backend health for load balancers and
monitoring systems.
"""

from fastapi import APIRouter, Depends
from typing import Dict, Any
import time
import structlog

from ...constants import APP_NAME, APP_VERSION, get_current_timestamp
from ...domain.cache.exceptions import BackendUnavailableException
from ...services.cache.cache_facade import CacheFacade
from ..dependencies import get_cache_facade
from ..errors import CacheHTTPException

# Track process start time for uptime calculation
PROCESS_START_TIME = time.time()

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns a simple health status for load balancers and monitoring systems.
    """
    return {
        "status": "healthy",
        "timestamp": get_current_timestamp().isoformat(),
        "service": APP_NAME,
        "version": APP_VERSION,
        "uptime_seconds": round(time.time() - PROCESS_START_TIME, 3),
    }


@router.get("/cache")
async def cache_health(cache: CacheFacade = Depends(get_cache_facade)) -> Dict[str, Any]:
    """
    Cache backend health.

    Reports the configured method and current entry count and size.
    Responds 503 if the backend cannot be reached.
    """
    try:
        count = await cache.count()
        size = await cache.size()
    except BackendUnavailableException as e:
        logger.warning("Cache health check failed", error=e.message)
        raise CacheHTTPException(e, status_code=503)

    return {
        "status": "healthy",
        "timestamp": get_current_timestamp().isoformat(),
        "method": cache.config.method.value,
        "enabled": cache.enabled,
        "entries": count,
        "size_bytes": size,
    }

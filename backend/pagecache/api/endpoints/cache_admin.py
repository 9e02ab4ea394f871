"""
Cache administration endpoints.

Operator commands: statistics, clearing and purging expired entries.
Backend failures surface as 503 through the cache exception handler.
"""

from fastapi import APIRouter, Depends, Query
from typing import Dict, Any, Optional
import structlog

from ...services.cache.cache_facade import CacheFacade
from ..dependencies import get_cache_facade

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/admin/cache", tags=["cache"])


@router.get("/stats")
async def cache_stats(
    namespace: Optional[str] = Query(None, description="Limit to one namespace"),
    cache: CacheFacade = Depends(get_cache_facade),
) -> Dict[str, Any]:
    """Entry count and stored bytes."""
    return {
        "method": cache.config.method.value,
        "namespace": namespace,
        "count": await cache.count(namespace),
        "size": await cache.size(namespace),
    }


@router.delete("")
async def clear_cache(
    key: Optional[str] = Query(None, description="Clear only this key"),
    namespace: Optional[str] = Query(None, description="Clear only this namespace"),
    cache: CacheFacade = Depends(get_cache_facade),
) -> Dict[str, Any]:
    """Clear one entry, one namespace, or everything."""
    removed = await cache.clear(key, namespace)
    logger.info("Cache cleared via API", key=key, namespace=namespace, removed=removed)
    return {"key": key, "namespace": namespace, "removed": removed}


@router.post("/purge")
async def purge_cache(
    namespace: Optional[str] = Query(None, description="Limit to one namespace"),
    cache: CacheFacade = Depends(get_cache_facade),
) -> Dict[str, Any]:
    """Delete entries that outlived their max age."""
    removed = await cache.purge_expired(namespace)
    return {"namespace": namespace, "removed": removed}

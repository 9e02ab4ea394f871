"""
Cache Store Registry

Maps a configured CacheMethod to a store factory. Resolved once at
composition time; an unknown method fails startup.
"""

from typing import Callable, Dict, Union

import structlog

from ...domain.cache.exceptions import UnknownBackendException
from ...domain.cache.repository_interfaces import CacheStore
from ...domain.cache.value_objects import CacheConfig, CacheMethod
from .disabled_store import DisabledStore
from .filesystem_store import FilesystemStore
from .redis_store import RedisStore

logger = structlog.get_logger(__name__)

StoreFactory = Callable[[CacheConfig], CacheStore]


def _disabled(config: CacheConfig) -> CacheStore:
    return DisabledStore()


def _filesystem(config: CacheConfig) -> CacheStore:
    return FilesystemStore(config.root, max_age=config.max_age)


def _external(config: CacheConfig) -> CacheStore:
    return RedisStore.from_url(
        config.redis_url,
        key_prefix=config.redis_key_prefix,
        max_age=config.max_age,
        namespace_versioning=config.redis_namespace_versioning,
    )


STORE_REGISTRY: Dict[CacheMethod, StoreFactory] = {
    CacheMethod.DISABLED: _disabled,
    CacheMethod.FILESYSTEM: _filesystem,
    CacheMethod.EXTERNAL: _external,
}


def register_store(method: Union[CacheMethod, str], factory: StoreFactory) -> None:
    """Register (or replace) the factory for ``method``."""
    STORE_REGISTRY[CacheMethod.parse(method)] = factory


def create_store(config: CacheConfig) -> CacheStore:
    """Create the store selected by ``config.method``.

    Raises:
        UnknownBackendException: If no factory is registered for the method
    """
    factory = STORE_REGISTRY.get(config.method)
    if factory is None:
        raise UnknownBackendException(config.method.value)

    store = factory(config)
    logger.info("Cache store created", method=config.method.value, store=store.name)
    return store

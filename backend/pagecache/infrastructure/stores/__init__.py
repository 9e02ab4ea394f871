"""
Cache store backends and the method registry.
"""

from .disabled_store import DisabledStore
from .filesystem_store import FilesystemStore
from .redis_store import RedisStore
from .registry import STORE_REGISTRY, create_store, register_store

__all__ = [
    "DisabledStore",
    "FilesystemStore",
    "RedisStore",
    "STORE_REGISTRY",
    "create_store",
    "register_store",
]

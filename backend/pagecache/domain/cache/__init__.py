"""
Cache domain: keys, namespaces, store contract and exceptions.
"""

from .exceptions import (
    CacheException,
    MissingKeyException,
    InvalidKeyException,
    InvalidNamespaceException,
    UnknownBackendException,
    UnknownKeyHashException,
    BackendUnavailableException,
    NotModifiedException,
)
from .key_hasher import KeyHasher
from .repository_interfaces import CacheStore
from .value_objects import (
    CacheConfig,
    CacheMethod,
    Degraded,
    HttpCacheConfig,
    MaxAge,
    Ok,
    WriteOutcome,
    normalize_namespace,
)

__all__ = [
    "CacheException",
    "MissingKeyException",
    "InvalidKeyException",
    "InvalidNamespaceException",
    "UnknownBackendException",
    "UnknownKeyHashException",
    "BackendUnavailableException",
    "NotModifiedException",
    "KeyHasher",
    "CacheStore",
    "CacheConfig",
    "CacheMethod",
    "Degraded",
    "HttpCacheConfig",
    "MaxAge",
    "Ok",
    "WriteOutcome",
    "normalize_namespace",
]

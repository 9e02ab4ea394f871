"""
Cache Domain Exceptions

Domain-specific exceptions for cache and HTTP caching operations.
Backend failures are always chained to the original error.
"""

from typing import Optional, Any, Dict


class CacheException(Exception):
    """Base exception for cache-related errors.

    All cache operations should raise this or its subclasses.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class MissingKeyException(CacheException):
    """Raised when a cache operation is called without a key."""

    def __init__(self, operation: str = "cache"):
        super().__init__(
            message=f"{operation}: No cache key specified",
            error_code="CACHE_MISSING_KEY",
            details={"operation": operation},
        )


class InvalidKeyException(CacheException):
    """Raised when a store cannot map a key to a storage location."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            message=f"Invalid cache key '{key}': {reason}",
            error_code="CACHE_INVALID_KEY",
            details={"key": key, "reason": reason},
        )


class InvalidNamespaceException(CacheException):
    """Raised when a namespace or key would escape the cache root."""

    def __init__(self, namespace: str, reason: str):
        super().__init__(
            message=f"Invalid cache namespace '{namespace}': {reason}",
            error_code="CACHE_INVALID_NAMESPACE",
            details={"namespace": namespace, "reason": reason},
        )


class UnknownBackendException(CacheException):
    """Raised when the configured cache method has no registered store."""

    def __init__(self, method: Any):
        super().__init__(
            message=f"Unknown cache method '{method}' specified",
            error_code="CACHE_UNKNOWN_BACKEND",
            details={"method": str(method)},
        )


class UnknownKeyHashException(CacheException):
    """Raised when the configured key hash algorithm is not available."""

    def __init__(self, algorithm: str):
        super().__init__(
            message=f"Unknown key hash algorithm '{algorithm}' configured",
            error_code="CACHE_UNKNOWN_KEY_HASH",
            details={"algorithm": algorithm},
        )


class BackendUnavailableException(CacheException):
    """Raised when the cache backend cannot be read or written."""

    def __init__(
        self,
        message: str = "Cache backend unavailable",
        backend: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if backend:
            details["backend"] = backend
        if operation:
            details["operation"] = operation
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="CACHE_BACKEND_UNAVAILABLE", details=details
        )
        # Preserve exception context for debugging (exception chaining)
        if original_error:
            self.__cause__ = original_error


class NotModifiedException(Exception):
    """Raised to end request processing with an empty 304 response.

    Not a failure: the client copy identified by ``etag`` is still current.
    """

    def __init__(self, etag: Optional[str] = None):
        self.etag = etag
        super().__init__("Not Modified")

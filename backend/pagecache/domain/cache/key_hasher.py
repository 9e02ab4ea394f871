"""
Cache Key Hasher

Deterministic transform from a logical cache key to a storage-safe
identifier, with optional directory fan-out ("interlacing").
"""

import hashlib
from typing import Optional

from .exceptions import MissingKeyException, UnknownKeyHashException
from .value_objects import normalize_namespace


class KeyHasher:
    """
    Map logical keys to storage keys.

    By default keys are used as given, so stripping the separators added by
    interlacing gives back the original key. Setting ``algorithm`` opts in to
    digesting the key first (fixed-length names).

    ``interlace`` fans the first N characters out into nested directories:
    ``"abcdef"`` with N=2 becomes ``"a/b/cdef"``.
    """

    def __init__(self, algorithm: Optional[str] = None, interlace: int = 0):
        if interlace < 0:
            raise ValueError("Key interlace factor cannot be negative")

        self.algorithm = algorithm or None
        self.interlace_factor = interlace

        if self.algorithm is not None:
            try:
                hashlib.new(self.algorithm)
            except (ValueError, TypeError) as e:
                raise UnknownKeyHashException(self.algorithm) from e

    def digest(self, key: str) -> str:
        """Return the configured digest of ``key`` (or ``key`` itself)."""
        if self.algorithm is None:
            return key

        hasher = hashlib.new(self.algorithm, key.encode("utf-8"))
        # shake_* digests need an explicit length
        if self.algorithm.startswith("shake_"):
            return hasher.hexdigest(20)
        return hasher.hexdigest()

    def interlace(self, key: str) -> str:
        """Interleave the first N characters of ``key`` with ``/``.

        Keys no longer than N are returned unchanged; interlacing them would
        leave a trailing separator.
        """
        factor = self.interlace_factor
        if not factor or len(key) <= factor:
            return key

        return "/".join(key[:factor]) + "/" + key[factor:]

    def hash(self, key: str) -> str:
        """Return the storage key for ``key``."""
        if not key:
            raise MissingKeyException("hash")

        return self.interlace(self.digest(key))

    def path(self, key: str, namespace: Optional[str] = None) -> str:
        """Return the storage-relative path ``<namespace>/<hashed key>``."""
        return normalize_namespace(namespace) + self.hash(key)

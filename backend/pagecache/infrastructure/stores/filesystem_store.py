"""
Filesystem Cache Store

Stores each entry as ``<root>/<namespace>/<hashed key>``. The entry age is
the file mtime; the max age recorded at write time travels in a one-line
header in front of the blob. Writes are published atomically through a
temporary file and ``os.replace``.

Filesystem calls are blocking, so every operation runs its synchronous body
in a worker thread.
"""

import asyncio
import contextlib
import errno
import os
import tempfile
import time
from pathlib import Path
from typing import Callable, Iterator, Optional, Tuple
from urllib.parse import quote

import structlog

from ...constants import (
    DIRECTORY_MODE,
    ENTRY_HEADER_MAGIC,
    FILE_MODE,
    TEMP_FILE_PREFIX,
)
from ...domain.cache.exceptions import (
    BackendUnavailableException,
    InvalidKeyException,
)
from ...domain.cache.repository_interfaces import CacheStore
from ...domain.cache.value_objects import MaxAge, normalize_namespace

logger = structlog.get_logger(__name__)

_HEADER_PREFIX = ENTRY_HEADER_MAGIC + b" "
_MAX_HEADER_LENGTH = 64


def encode_entry(value: bytes, max_age: int) -> bytes:
    """Prefix ``value`` with the entry header."""
    return _HEADER_PREFIX + str(int(max_age)).encode("ascii") + b"\n" + value


def decode_entry(raw: bytes, default_max_age: int) -> Tuple[int, bytes]:
    """Split a stored file into ``(max_age, blob)``.

    Files without a valid header are returned whole with ``default_max_age``.
    """
    if raw.startswith(_HEADER_PREFIX):
        header, separator, body = raw.partition(b"\n")
        if separator and len(header) <= _MAX_HEADER_LENGTH:
            try:
                max_age = int(header[len(_HEADER_PREFIX) :])
            except ValueError:
                return default_max_age, raw
            if max_age > 0:
                return max_age, body
    return default_max_age, raw


def safe_segment(segment: str) -> str:
    """
    Map one key segment to a file name that stays inside its directory.

    Percent-encodes everything outside the unreserved set (``%`` included),
    so the mapping is injective. Empty segments become ``%`` and a leading
    ``.`` becomes ``%2E``; neither can come out of plain quoting.
    """
    if not segment:
        return "%"
    encoded = quote(segment, safe="")
    if encoded.startswith("."):
        encoded = "%2E" + encoded[1:]
    return encoded


class FilesystemStore(CacheStore):
    """File-per-entry cache store with TTL by file age."""

    name = "filesystem"

    def __init__(
        self,
        root: Path,
        max_age: int = 86400,
        clock: Callable[[], float] = time.time,
    ):
        self.root = Path(root)
        self.max_age = MaxAge(max_age).seconds
        self.clock = clock

    # Paths

    def _namespace_dir(self, namespace: Optional[str]) -> Path:
        return self.root / normalize_namespace(namespace)

    def _entry_path(self, hashed_key: str, namespace: Optional[str]) -> Path:
        """Path of an entry; every ``/`` in the key becomes a directory level."""
        if not hashed_key:
            raise InvalidKeyException(hashed_key, "empty key")

        segments = [safe_segment(segment) for segment in hashed_key.split("/")]
        return self._namespace_dir(namespace).joinpath(*segments)

    def _ensure_directory(self, directory: Path) -> None:
        """Create ``directory`` and missing parents with DIRECTORY_MODE."""
        missing = []
        current = directory
        while not current.is_dir():
            missing.append(current)
            if current.parent == current:
                break
            current = current.parent

        for path in reversed(missing):
            try:
                path.mkdir(mode=DIRECTORY_MODE)
            except FileExistsError:
                # Created by a concurrent writer
                continue
            # mkdir() applies the umask
            os.chmod(path, DIRECTORY_MODE)

    # Store contract

    async def get(
        self, hashed_key: str, namespace: Optional[str] = None
    ) -> Optional[bytes]:
        return await asyncio.to_thread(self._get, hashed_key, namespace)

    async def put(
        self,
        value: bytes,
        hashed_key: str,
        namespace: Optional[str] = None,
        max_age: Optional[int] = None,
    ) -> bytes:
        await asyncio.to_thread(self._put, value, hashed_key, namespace, max_age)
        return value

    async def clear(
        self, hashed_key: Optional[str] = None, namespace: Optional[str] = None
    ) -> int:
        removed = await asyncio.to_thread(self._clear, hashed_key, namespace)
        logger.info(
            "Cleared file cache",
            root=str(self.root),
            namespace=namespace,
            key=hashed_key,
            removed=removed,
        )
        return removed

    async def size(self, namespace: Optional[str] = None) -> int:
        return await asyncio.to_thread(self._size, namespace)

    async def count(self, namespace: Optional[str] = None) -> int:
        return await asyncio.to_thread(self._count, namespace)

    async def purge_expired(self, namespace: Optional[str] = None) -> int:
        """Delete entries whose age exceeds their recorded max age."""
        removed = await asyncio.to_thread(self._purge_expired, namespace)
        logger.info("Purged expired cache entries", namespace=namespace, removed=removed)
        return removed

    # Synchronous bodies, run in a worker thread

    def _get(self, hashed_key: str, namespace: Optional[str]) -> Optional[bytes]:
        path = self._entry_path(hashed_key, namespace)

        try:
            stored_at = path.stat().st_mtime
            raw = path.read_bytes()
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            return None
        except OSError as e:
            raise BackendUnavailableException(
                message=f"Failed to read cache file {path}",
                backend=self.name,
                operation="get",
                original_error=e,
            )

        max_age, value = decode_entry(raw, self.max_age)
        if MaxAge(max_age).is_expired(stored_at, self.clock()):
            logger.debug("Cache entry expired", path=str(path), max_age=max_age)
            return None

        return value

    def _put(
        self,
        value: bytes,
        hashed_key: str,
        namespace: Optional[str],
        max_age: Optional[int],
    ) -> None:
        path = self._entry_path(hashed_key, namespace)
        payload = encode_entry(value, max_age or self.max_age)

        temp_name = None
        try:
            self._ensure_directory(path.parent)
            fd, temp_name = tempfile.mkstemp(prefix=TEMP_FILE_PREFIX, dir=path.parent)
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.chmod(temp_name, FILE_MODE)
            os.replace(temp_name, path)
        except OSError as e:
            if temp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(temp_name)
            raise BackendUnavailableException(
                message=f"Failed to write cache file {path}",
                backend=self.name,
                operation="put",
                original_error=e,
            )

    def _clear(self, hashed_key: Optional[str], namespace: Optional[str]) -> int:
        namespace_dir = self._namespace_dir(namespace)

        try:
            if hashed_key is not None:
                path = self._entry_path(hashed_key, namespace)
                try:
                    path.unlink()
                    removed = 1
                except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
                    removed = 0
                self._prune_empty(path.parent, stop=namespace_dir)

            elif namespace_dir != self.root:
                removed = self._remove_tree(namespace_dir, remove_self=True)

            else:
                removed = self._remove_tree(self.root, remove_self=False)
                self._ensure_directory(self.root)

        except OSError as e:
            raise BackendUnavailableException(
                message=f"Failed to clear cache path {namespace_dir}",
                backend=self.name,
                operation="clear",
                original_error=e,
            )
        return removed

    def _size(self, namespace: Optional[str]) -> int:
        try:
            return sum(stat.st_size for _, stat in self._iter_entries(namespace))
        except OSError as e:
            raise BackendUnavailableException(
                message="Failed to measure file cache",
                backend=self.name,
                operation="size",
                original_error=e,
            )

    def _count(self, namespace: Optional[str]) -> int:
        try:
            return sum(1 for _ in self._iter_entries(namespace))
        except OSError as e:
            raise BackendUnavailableException(
                message="Failed to count file cache entries",
                backend=self.name,
                operation="count",
                original_error=e,
            )

    def _purge_expired(self, namespace: Optional[str]) -> int:
        namespace_dir = self._namespace_dir(namespace)
        now = self.clock()
        removed = 0

        for path, stat in list(self._iter_entries(namespace)):
            try:
                with open(path, "rb") as handle:
                    head = handle.readline(_MAX_HEADER_LENGTH + 1)
            except FileNotFoundError:
                continue
            except OSError as e:
                raise BackendUnavailableException(
                    message=f"Failed to inspect cache file {path}",
                    backend=self.name,
                    operation="purge_expired",
                    original_error=e,
                )

            max_age, _ = decode_entry(head, self.max_age)
            if not MaxAge(max_age).is_expired(stat.st_mtime, now):
                continue

            with contextlib.suppress(FileNotFoundError):
                path.unlink()
                removed += 1
            self._prune_empty(path.parent, stop=namespace_dir)

        return removed

    # Walking helpers; entries may vanish under concurrent writers and clearers

    def _iter_entries(self, namespace: Optional[str]) -> Iterator[Tuple[Path, os.stat_result]]:
        directory = self._namespace_dir(namespace)
        for current, _, filenames in os.walk(directory):
            for filename in filenames:
                if filename.startswith(TEMP_FILE_PREFIX):
                    continue
                path = Path(current) / filename
                try:
                    yield path, path.stat()
                except FileNotFoundError:
                    continue

    def _remove_tree(self, directory: Path, remove_self: bool) -> int:
        removed = 0
        for current, dirnames, filenames in os.walk(directory, topdown=False):
            for filename in filenames:
                try:
                    os.unlink(os.path.join(current, filename))
                except FileNotFoundError:
                    continue
                if not filename.startswith(TEMP_FILE_PREFIX):
                    removed += 1
            for dirname in dirnames:
                self._remove_directory(Path(current) / dirname)

        if remove_self:
            self._remove_directory(directory)
        return removed

    def _prune_empty(self, directory: Path, stop: Path) -> None:
        """Remove empty directories from ``directory`` up to, not including, ``stop``."""
        while directory != stop and stop in directory.parents:
            if not self._remove_directory(directory):
                return
            directory = directory.parent

    @staticmethod
    def _remove_directory(directory: Path) -> bool:
        try:
            os.rmdir(directory)
        except FileNotFoundError:
            return True
        except OSError as e:
            if e.errno in (errno.ENOTEMPTY, errno.EEXIST):
                return False
            raise
        return True

"""Disk-backed cache using :mod:`diskcache`.

Entries live in a SQLite-indexed directory, survive process restarts and
can be shared by several processes pointing at the same directory. Storage
failures (``sqlite3.Error``, ``OSError``, :class:`diskcache.Timeout`) are
wrapped in :class:`~restcache.exceptions.CacheBackendError`.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Optional

import diskcache

from restcache.cache.backends.base import MISSING, CacheBackend
from restcache.exceptions import CacheBackendError

_STORAGE_ERRORS = (sqlite3.Error, OSError, diskcache.Timeout)


class DiskCacheBackend(CacheBackend):
    """:class:`CacheBackend` on top of :class:`diskcache.Cache`.

    Args:
        directory: Directory holding the cache database. Created if needed.
        timeout: SQLite busy timeout in seconds.

    Example::

        backend = DiskCacheBackend("/tmp/restcache")
        backend.set("GET-products-QP-PD-HP-RT", [{"sku": "A1"}], 600)
        backend.search_by_prefix("GET-products")
    """

    name = "disk"

    def __init__(self, directory: str | Path, timeout: float = 60.0) -> None:
        self._directory = Path(directory)
        try:
            self._cache = diskcache.Cache(str(self._directory), timeout=timeout)
        except _STORAGE_ERRORS as exc:
            raise CacheBackendError(f"Cannot open cache at {self._directory}: {exc}") from exc

    @property
    def directory(self) -> Path:
        return self._directory

    def get(self, key: str) -> Any:
        try:
            return self._cache.get(key, default=MISSING)
        except _STORAGE_ERRORS as exc:
            raise CacheBackendError(f"Cache read failed for {key!r}: {exc}") from exc

    def set(self, key: str, value: Any, ttl_seconds: Optional[int]) -> bool:
        try:
            return bool(self._cache.set(key, value, expire=ttl_seconds))
        except _STORAGE_ERRORS as exc:
            raise CacheBackendError(f"Cache write failed for {key!r}: {exc}") from exc

    def delete(self, key: str) -> bool:
        try:
            return bool(self._cache.delete(key))
        except _STORAGE_ERRORS as exc:
            raise CacheBackendError(f"Cache delete failed for {key!r}: {exc}") from exc

    def search_by_prefix(self, prefix: str) -> dict[str, Optional[float]]:
        matches: dict[str, Optional[float]] = {}
        try:
            for key in self._cache.iterkeys():
                if not isinstance(key, str) or not key.startswith(prefix):
                    continue
                # iterkeys() also yields expired rows that have not been culled yet.
                value, expire_time = self._cache.get(
                    key, default=(MISSING, None), expire_time=True
                )
                if value is MISSING:
                    continue
                matches[key] = expire_time
        except _STORAGE_ERRORS as exc:
            raise CacheBackendError(f"Cache search failed for {prefix!r}: {exc}") from exc
        return matches

    def clear(self) -> int:
        try:
            return int(self._cache.clear())
        except _STORAGE_ERRORS as exc:
            raise CacheBackendError(f"Cache clear failed: {exc}") from exc

    def __len__(self) -> int:
        return len(self._cache)

    def stats(self) -> dict[str, Any]:
        return {
            "backend": self.name,
            "size": len(self),
            "directory": str(self._directory),
            "volume_bytes": self._cache.volume(),
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`."""
        self._cache.close()

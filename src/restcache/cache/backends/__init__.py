"""Cache backends and the factory that builds one from configuration.

Two implementations ship with restcache:

* :class:`DiskCacheBackend` -- persistent, shared across processes, backed
  by :mod:`diskcache`. The default.
* :class:`MemoryCacheBackend` -- per-process, ordered keys for cheap prefix
  search.
"""

from __future__ import annotations

from pathlib import Path

from restcache.cache.backends.base import MISSING, CacheBackend
from restcache.cache.backends.disk import DiskCacheBackend
from restcache.cache.backends.memory import MemoryCacheBackend
from restcache.models import BackendKind, CacheConfig


def create_backend(config: CacheConfig) -> CacheBackend:
    """Build the backend selected by *config*.

    The disk backend stores its files under ``config.directory`` or, when
    unset, under ``responses/`` in the XDG cache directory.
    """
    if config.backend == BackendKind.MEMORY:
        return MemoryCacheBackend()
    return DiskCacheBackend(default_cache_directory(config))


def default_cache_directory(config: CacheConfig) -> Path:
    """Directory used by the disk backend for *config*."""
    if config.directory:
        return Path(config.directory).expanduser()
    from restcache.config import get_cache_dir

    return get_cache_dir() / "responses"


__all__ = [
    "MISSING",
    "CacheBackend",
    "DiskCacheBackend",
    "MemoryCacheBackend",
    "create_backend",
    "default_cache_directory",
]

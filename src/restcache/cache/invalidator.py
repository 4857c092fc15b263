"""Hierarchical cache invalidation for write calls.

A write to ``/a/b/c/d`` can change what a GET on ``/a/b/c/d`` returns, and
also what a listing cached at ``/a/b/c`` returns. Before delegating a write,
the invalidator therefore walks the resource path from the full path
upwards and deletes every cached GET stored under each prefix::

    GET-a+b+c+d   (the path itself and its descendants)
    GET-a+b+c     (while more than ``floor`` segments remain)

The walk stops once ``floor`` segments remain (2 by default) so that a
write deep in the hierarchy does not purge unrelated collections near the
root.

Invalidation is best-effort. A failing search or delete is logged and the
write proceeds regardless; whether failed deletes are logged as warnings is
controlled by ``warn_on_failed_delete``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from restcache.cache.backends.base import CacheBackend
from restcache.cache.keys import key_matches, search_prefix
from restcache.cache.paths import ancestor_prefixes, split_path

logger = logging.getLogger(__name__)

DEFAULT_INVALIDATION_FLOOR = 2
"""Number of path segments at which the ancestor walk stops."""


@dataclass
class InvalidationReport:
    """What one invalidation pass did."""

    path: str
    patterns: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    search_errors: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        """True when every search and delete succeeded."""
        return not self.failed and not self.search_errors


class HierarchicalInvalidator:
    """Purge cached GETs under a path and its ancestors, then run the write.

    Args:
        backend: Shared cache backend supporting prefix search.
        floor: Stop the ancestor walk once this many segments remain.
        warn_on_failed_delete: Log failed deletes at WARNING instead of DEBUG.
    """

    def __init__(
        self,
        backend: CacheBackend,
        floor: int = DEFAULT_INVALIDATION_FLOOR,
        warn_on_failed_delete: bool = False,
    ) -> None:
        if floor < 0:
            raise ValueError(f"floor must not be negative, got {floor}")
        self._backend = backend
        self._floor = floor
        self._warn_on_failed_delete = warn_on_failed_delete
        self.last_report: InvalidationReport | None = None

    @property
    def floor(self) -> int:
        return self._floor

    def invalidate(self, method: str, path: str, transport_call: Callable[[], Any]) -> Any:
        """Purge cached reads affected by a *method* call on *path*, then call the transport.

        The transport call always happens, whatever the purge found or
        failed to do. Its exceptions propagate unchanged.
        """
        self.last_report = self.purge(path)
        logger.debug(
            "%s %s invalidated %d cached entries",
            method.upper(),
            path,
            len(self.last_report.deleted),
        )
        return transport_call()

    def purge(self, path: str) -> InvalidationReport:
        """Delete cached GETs stored under *path* and its ancestors down to the floor."""
        report = InvalidationReport(path=path)
        for segments in ancestor_prefixes(split_path(path), self._floor):
            pattern = search_prefix(segments)
            report.patterns.append(pattern)
            try:
                matches = self._backend.search_by_prefix(pattern)
            except Exception as exc:
                report.search_errors.append(pattern)
                logger.warning("Cache search failed for %s: %s", pattern, exc)
                continue
            for key in matches:
                if key_matches(key, pattern):
                    self._delete(key, report)
        return report

    def _delete(self, key: str, report: InvalidationReport) -> None:
        try:
            deleted = self._backend.delete(key)
        except Exception as exc:
            report.failed.append(key)
            self._log_failed_delete("Failed to delete cache entry %s: %s", key, exc)
            return
        if deleted:
            report.deleted.append(key)
        else:
            # Usually an entry that expired between the search and the delete.
            report.failed.append(key)
            self._log_failed_delete("Cache entry %s was already gone", key)

    def _log_failed_delete(self, message: str, *args: Any) -> None:
        level = logging.WARNING if self._warn_on_failed_delete else logging.DEBUG
        logger.log(level, message, *args)

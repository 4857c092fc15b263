"""In-process cache backend with ordered keys.

Keys are kept in a sorted list next to the value map, so a prefix search is
two :func:`bisect.bisect_left` lookups plus a slice instead of a scan over
every key. Expiry is evaluated against an injectable clock, which keeps TTL
behaviour testable without sleeping.

Expired entries are dropped on every write and every search: a heap ordered
by expiry time yields the entries that are due, so a proxy reading many
distinct keys does not keep dead responses around.
"""

from __future__ import annotations

import bisect
import heapq
import sys
import threading
import time
from typing import Any, Callable, NamedTuple, Optional

from restcache.cache.backends.base import MISSING, CacheBackend


class _Entry(NamedTuple):
    value: Any
    expires_at: Optional[float]


class MemoryCacheBackend(CacheBackend):
    """Thread-safe in-memory :class:`CacheBackend`.

    Args:
        clock: Callable returning the current time in seconds. Defaults to
            :func:`time.time`, matching the epoch timestamps diskcache reports.
    """

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._keys: list[str] = []
        self._expiry_heap: list[tuple[float, str]] = []
        self._lock = threading.RLock()

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return MISSING
            if self._expired(entry):
                self._remove(key)
                return MISSING
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[int]) -> bool:
        now = self._clock()
        expires_at = None if ttl_seconds is None else now + ttl_seconds
        with self._lock:
            self._purge_expired(now)
            if key not in self._entries:
                bisect.insort(self._keys, key)
            self._entries[key] = _Entry(value, expires_at)
            if expires_at is not None:
                heapq.heappush(self._expiry_heap, (expires_at, key))
        return True

    def delete(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            self._remove(key)
            return not self._expired(entry)

    def search_by_prefix(self, prefix: str) -> dict[str, Optional[float]]:
        with self._lock:
            self._purge_expired(self._clock())
            start = bisect.bisect_left(self._keys, prefix)
            end = len(self._keys)
            upper = _prefix_upper_bound(prefix)
            if upper is not None:
                end = bisect.bisect_left(self._keys, upper, lo=start)
            return {key: self._entries[key].expires_at for key in self._keys[start:end]}

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._keys.clear()
            self._expiry_heap.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expired(self, entry: _Entry) -> bool:
        return entry.expires_at is not None and entry.expires_at <= self._clock()

    def _purge_expired(self, now: float) -> None:
        heap = self._expiry_heap
        while heap and heap[0][0] <= now:
            expires_at, key = heapq.heappop(heap)
            entry = self._entries.get(key)
            # the key may have been rewritten with a later expiry since this push
            if entry is not None and entry.expires_at == expires_at:
                self._remove(key)

    def _remove(self, key: str) -> None:
        del self._entries[key]
        index = bisect.bisect_left(self._keys, key)
        del self._keys[index]


def _prefix_upper_bound(prefix: str) -> Optional[str]:
    """Smallest string greater than every string starting with *prefix*, if one exists."""
    if not prefix or ord(prefix[-1]) == sys.maxunicode:
        return None
    return prefix[:-1] + chr(ord(prefix[-1]) + 1)

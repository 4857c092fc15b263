"""Read-through cache gate for GET calls.

On a GET the gate looks the call's key up in the backend. A hit is returned
as-is; a miss runs the transport call, stores its result under the TTL
chosen by the :class:`~restcache.cache.ttl.TtlPolicy` and returns it.

Backend failures never fail the call: a failed read counts as a miss and a
failed store is logged. Transport failures propagate unchanged and are
never cached.

Two callers missing on the same key at the same time both fetch and both
store; the last store wins.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable

from restcache.cache.backends.base import MISSING, CacheBackend
from restcache.cache.keys import build_key
from restcache.cache.ttl import TtlPolicy

logger = logging.getLogger(__name__)


@dataclass
class GateStats:
    """Counters kept by a :class:`ReadThroughGate`."""

    hits: int = 0
    misses: int = 0
    stores: int = 0
    backend_errors: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class ReadThroughGate:
    """Serve GET calls from *backend*, fetching through the transport on a miss.

    Args:
        backend: Shared cache backend.
        ttl_policy: Supplies the TTL for each store.
    """

    def __init__(self, backend: CacheBackend, ttl_policy: TtlPolicy) -> None:
        self._backend = backend
        self._ttl_policy = ttl_policy
        self.stats = GateStats()

    def get(
        self,
        method: str,
        path: str,
        query_params: Any,
        post_data: Any,
        header_params: Any,
        response_type: Any,
        transport_call: Callable[[], Any],
    ) -> Any:
        """Return the cached result for the call, or fetch and cache it.

        Args:
            method: HTTP method (always ``GET`` in practice).
            path: Resource path.
            query_params: Query parameters.
            post_data: Request body.
            header_params: Request headers.
            response_type: Deserialisation hint.
            transport_call: Zero-argument callable performing the real call.

        Returns:
            The cached or freshly fetched result.
        """
        key = build_key(method, path, query_params, post_data, header_params, response_type)

        cached = self._read(key)
        if cached is not MISSING:
            self.stats.hits += 1
            logger.debug("Cache hit: %s", key)
            return cached

        self.stats.misses += 1
        logger.debug("Cache miss: %s", key)
        result = transport_call()

        decision = self._ttl_policy.ttl_for_next_write()
        self._store(key, result, decision.ttl_seconds)
        return result

    def _read(self, key: str) -> Any:
        try:
            return self._backend.get(key)
        except Exception as exc:
            self.stats.backend_errors += 1
            logger.warning("Cache read failed for %s, treating as miss: %s", key, exc)
            return MISSING

    def _store(self, key: str, result: Any, ttl_seconds: int) -> None:
        try:
            self._backend.set(key, result, ttl_seconds)
        except Exception as exc:
            self.stats.backend_errors += 1
            logger.warning("Cache write failed for %s: %s", key, exc)
            return
        self.stats.stores += 1
        logger.debug("Cached %s for %ss", key, ttl_seconds)

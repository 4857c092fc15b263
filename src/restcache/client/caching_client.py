"""The caching proxy placed in front of an API transport.

:class:`CachingClient` exposes the single ``call_api`` entry point used by
higher layers (the :class:`~restcache.registry.ServiceRegistry` and the
CLI). GET calls go through the
:class:`~restcache.cache.gate.ReadThroughGate`; every other method goes
through the :class:`~restcache.cache.invalidator.HierarchicalInvalidator`
and is never cached.

One client owns one :class:`~restcache.cache.ttl.TtlPolicy`. The temporary
TTL set with :meth:`CachingClient.set_temporary_ttl` is consumed by the next
cache write whichever thread issues it, so threads sharing a client must
treat "set TTL, then call" as a critical section, or use a client each.
"""

from __future__ import annotations

from typing import Any, Optional

from restcache.cache.backends import CacheBackend, DiskCacheBackend, default_cache_directory
from restcache.cache.gate import ReadThroughGate
from restcache.cache.invalidator import (
    DEFAULT_INVALIDATION_FLOOR,
    HierarchicalInvalidator,
    InvalidationReport,
)
from restcache.cache.keys import CACHEABLE_METHOD
from restcache.cache.paths import validate_path
from restcache.cache.ttl import DEFAULT_CACHE_TTL, TtlPolicy
from restcache.client.transport import Transport
from restcache.exceptions import InvalidUsageError
from restcache.models import CacheConfig


class CachingClient:
    """Read-through caching proxy with hierarchical invalidation on writes.

    Args:
        transport: The API client that performs real requests.
        backend: Shared cache backend. When omitted, a
            :class:`~restcache.cache.backends.DiskCacheBackend` under the
            XDG cache directory is opened. The client never closes it.
        default_ttl: TTL in seconds for cached responses.
        invalidation_floor: Segment count at which the ancestor walk stops.
        warn_on_failed_delete: Log failed invalidation deletes as warnings.

    Example::

        with HttpxTransport(profile) as transport:
            client = CachingClient(transport, MemoryCacheBackend())
            client.call_api("/products/123", "GET")           # fetched
            client.call_api("/products/123", "GET")           # cached
            client.call_api("/products/123", "PUT", post_data={"name": "x"})
            client.call_api("/products/123", "GET")           # fetched again
    """

    def __init__(
        self,
        transport: Transport,
        backend: Optional[CacheBackend] = None,
        default_ttl: int = DEFAULT_CACHE_TTL,
        invalidation_floor: int = DEFAULT_INVALIDATION_FLOOR,
        warn_on_failed_delete: bool = False,
    ) -> None:
        if backend is None:
            backend = DiskCacheBackend(default_cache_directory(CacheConfig()))
        self._transport = transport
        self._backend = backend
        self._ttl_policy = TtlPolicy(default_ttl)
        self._gate = ReadThroughGate(backend, self._ttl_policy)
        try:
            self._invalidator = HierarchicalInvalidator(
                backend,
                floor=invalidation_floor,
                warn_on_failed_delete=warn_on_failed_delete,
            )
        except ValueError as exc:
            raise InvalidUsageError(str(exc)) from exc

    @classmethod
    def from_config(
        cls,
        transport: Transport,
        config: CacheConfig,
        backend: Optional[CacheBackend] = None,
    ) -> CachingClient:
        """Build a client whose TTL and invalidation settings come from *config*.

        *backend* defaults to the one selected by ``config.backend``.
        """
        if backend is None:
            from restcache.cache.backends import create_backend

            backend = create_backend(config)
        return cls(
            transport,
            backend,
            default_ttl=config.ttl_seconds,
            invalidation_floor=config.invalidation_floor,
            warn_on_failed_delete=config.warn_on_failed_delete,
        )

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def ttl_policy(self) -> TtlPolicy:
        return self._ttl_policy

    @property
    def gate(self) -> ReadThroughGate:
        return self._gate

    @property
    def invalidator(self) -> HierarchicalInvalidator:
        return self._invalidator

    def set_temporary_ttl(self, seconds: int) -> None:
        """Use *seconds* as the TTL of the next cached response only."""
        self._ttl_policy.set_override(seconds)

    def call_api(
        self,
        resource_path: str,
        method: str,
        query_params: Any = None,
        post_data: Any = None,
        header_params: Any = None,
        response_type: Any = None,
    ) -> Any:
        """Perform an API call through the cache.

        Args:
            resource_path: Resource path such as ``/products/123``.
            method: HTTP method. Only ``GET`` is cached.
            query_params: Query parameters.
            post_data: Request body.
            header_params: Request headers (part of the cache key).
            response_type: Deserialisation hint forwarded to the transport.

        Returns:
            Whatever the transport returns, possibly from the cache.

        Raises:
            InvalidResourcePathError: If *resource_path* cannot be encoded
                into a cache key.
            TransportError: Propagated unchanged from the transport.
        """
        validate_path(resource_path)
        if not isinstance(method, str) or not method:
            raise InvalidUsageError(f"HTTP method must be a non-empty string, got {method!r}")
        verb = method.upper()

        def transport_call() -> Any:
            return self._transport.invoke(
                resource_path, verb, query_params, post_data, header_params, response_type,
            )

        if verb == CACHEABLE_METHOD:
            return self._gate.get(
                verb, resource_path, query_params, post_data, header_params, response_type,
                transport_call,
            )
        return self._invalidator.invalidate(verb, resource_path, transport_call)

    def invalidate(self, resource_path: str) -> InvalidationReport:
        """Purge cached GETs under *resource_path* and its ancestors without a write."""
        validate_path(resource_path)
        return self._invalidator.purge(resource_path)

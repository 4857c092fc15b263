"""Caching engine: keys, TTL policy, read-through gate, invalidator, backends.

The pieces compose into :class:`~restcache.client.caching_client.CachingClient`
but can be used on their own:

* :func:`build_key` -- deterministic key for a call.
* :class:`TtlPolicy` -- default TTL plus a one-shot override.
* :class:`ReadThroughGate` -- serve GETs from the cache, fetch on a miss.
* :class:`HierarchicalInvalidator` -- purge cached GETs before a write.
"""

from restcache.cache.gate import GateStats, ReadThroughGate
from restcache.cache.invalidator import HierarchicalInvalidator, InvalidationReport
from restcache.cache.keys import build_key
from restcache.cache.ttl import DEFAULT_CACHE_TTL, TtlDecision, TtlPolicy, TtlState

__all__ = [
    "DEFAULT_CACHE_TTL",
    "GateStats",
    "HierarchicalInvalidator",
    "InvalidationReport",
    "ReadThroughGate",
    "TtlDecision",
    "TtlPolicy",
    "TtlState",
    "build_key",
]

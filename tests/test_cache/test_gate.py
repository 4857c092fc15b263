"""Tests for the read-through cache gate."""

from __future__ import annotations

import logging
from typing import Any, Optional

import pytest

from restcache.cache.backends import MISSING, MemoryCacheBackend
from restcache.cache.gate import GateStats, ReadThroughGate
from restcache.cache.keys import build_key
from restcache.cache.ttl import TtlPolicy
from restcache.exceptions import CacheBackendError, NotFoundError


class _Counter:
    """Transport call returning an incrementing payload."""

    def __init__(self, value: Any = None) -> None:
        self.calls = 0
        self.value = value

    def __call__(self) -> Any:
        self.calls += 1
        if self.value is not None:
            return self.value
        return {"n": self.calls}


class _BrokenBackend(MemoryCacheBackend):
    def __init__(self, fail_get: bool = False, fail_set: bool = False) -> None:
        super().__init__()
        self.fail_get = fail_get
        self.fail_set = fail_set

    def get(self, key: str) -> Any:
        if self.fail_get:
            raise CacheBackendError("read exploded")
        return super().get(key)

    def set(self, key: str, value: Any, ttl_seconds: Optional[int]) -> bool:
        if self.fail_set:
            raise CacheBackendError("write exploded")
        return super().set(key, value, ttl_seconds)


def _get(gate: ReadThroughGate, fetch: Any, path: str = "/products/123", **kwargs: Any) -> Any:
    return gate.get(
        "GET",
        path,
        kwargs.get("query_params"),
        kwargs.get("post_data"),
        kwargs.get("header_params"),
        kwargs.get("response_type"),
        fetch,
    )


class TestHitMiss:
    def test_miss_then_hit(self, memory_backend: MemoryCacheBackend) -> None:
        gate = ReadThroughGate(memory_backend, TtlPolicy(600))
        fetch = _Counter()

        assert _get(gate, fetch) == {"n": 1}
        assert _get(gate, fetch) == {"n": 1}
        assert fetch.calls == 1
        assert gate.stats == GateStats(hits=1, misses=1, stores=1, backend_errors=0)

    def test_different_query_is_separate_entry(self, memory_backend: MemoryCacheBackend) -> None:
        gate = ReadThroughGate(memory_backend, TtlPolicy(600))
        fetch = _Counter()
        _get(gate, fetch, query_params={"page": 1})
        _get(gate, fetch, query_params={"page": 2})
        assert fetch.calls == 2
        assert len(memory_backend) == 2

    @pytest.mark.parametrize("falsy", [[], 0, "", False])
    def test_falsy_result_served_from_cache(self, memory_backend: MemoryCacheBackend, falsy: Any) -> None:
        gate = ReadThroughGate(memory_backend, TtlPolicy(600))
        calls = []

        def fetch() -> Any:
            calls.append(1)
            return falsy

        assert _get(gate, fetch) == falsy
        assert _get(gate, fetch) == falsy
        assert len(calls) == 1

    def test_none_result_served_from_cache(self, memory_backend: MemoryCacheBackend) -> None:
        gate = ReadThroughGate(memory_backend, TtlPolicy(600))
        calls = []

        def fetch() -> None:
            calls.append(1)

        assert _get(gate, fetch) is None
        assert _get(gate, fetch) is None
        assert len(calls) == 1

    def test_entry_expires(self, memory_backend: MemoryCacheBackend, clock: Any) -> None:
        gate = ReadThroughGate(memory_backend, TtlPolicy(60))
        fetch = _Counter()
        _get(gate, fetch)
        clock.advance(61)
        assert _get(gate, fetch) == {"n": 2}


class TestTtl:
    def test_default_ttl_applied(self, memory_backend: MemoryCacheBackend, clock: Any) -> None:
        gate = ReadThroughGate(memory_backend, TtlPolicy(600))
        _get(gate, _Counter())
        key = build_key("GET", "/products/123")
        assert memory_backend.search_by_prefix(key)[key] == clock.now + 600

    def test_override_used_for_next_store_only(self, memory_backend: MemoryCacheBackend, clock: Any) -> None:
        policy = TtlPolicy(600)
        gate = ReadThroughGate(memory_backend, policy)
        policy.set_override(30)

        _get(gate, _Counter(), path="/a")
        _get(gate, _Counter(), path="/b")

        expiries = memory_backend.search_by_prefix("GET-")
        assert expiries[build_key("GET", "/a")] == clock.now + 30
        assert expiries[build_key("GET", "/b")] == clock.now + 600

    def test_override_survives_cache_hit(self, memory_backend: MemoryCacheBackend) -> None:
        policy = TtlPolicy(600)
        gate = ReadThroughGate(memory_backend, policy)
        _get(gate, _Counter(), path="/a")

        policy.set_override(30)
        _get(gate, _Counter(), path="/a")
        assert policy.pending_override == 30


class TestFailures:
    def test_transport_error_propagates_and_is_not_cached(self, memory_backend: MemoryCacheBackend) -> None:
        gate = ReadThroughGate(memory_backend, TtlPolicy(600))

        def fetch() -> Any:
            raise NotFoundError("HTTP 404", status_code=404)

        with pytest.raises(NotFoundError):
            _get(gate, fetch)
        assert len(memory_backend) == 0
        assert memory_backend.get(build_key("GET", "/products/123")) is MISSING

    def test_transport_error_keeps_pending_override(self, memory_backend: MemoryCacheBackend) -> None:
        policy = TtlPolicy(600)
        gate = ReadThroughGate(memory_backend, policy)
        policy.set_override(30)

        def fetch() -> Any:
            raise NotFoundError("HTTP 404")

        with pytest.raises(NotFoundError):
            _get(gate, fetch)
        assert policy.pending_override == 30

    def test_read_failure_counts_as_miss(self, caplog: pytest.LogCaptureFixture) -> None:
        backend = _BrokenBackend(fail_get=True)
        gate = ReadThroughGate(backend, TtlPolicy(600))
        fetch = _Counter()

        with caplog.at_level(logging.WARNING, logger="restcache"):
            assert _get(gate, fetch) == {"n": 1}
            assert _get(gate, fetch) == {"n": 2}

        assert fetch.calls == 2
        assert gate.stats.backend_errors == 2
        assert "treating as miss" in caplog.text

    def test_store_failure_still_returns_result(self, caplog: pytest.LogCaptureFixture) -> None:
        backend = _BrokenBackend(fail_set=True)
        policy = TtlPolicy(600)
        gate = ReadThroughGate(backend, policy)
        policy.set_override(30)

        with caplog.at_level(logging.WARNING, logger="restcache"):
            assert _get(gate, _Counter()) == {"n": 1}

        assert gate.stats.stores == 0
        assert gate.stats.backend_errors == 1
        assert policy.pending_override is None
        assert "Cache write failed" in caplog.text

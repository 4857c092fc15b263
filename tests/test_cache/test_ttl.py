"""Tests for the one-shot TTL override policy."""

from __future__ import annotations

import threading

import pytest

from restcache.cache.ttl import DEFAULT_CACHE_TTL, TtlDecision, TtlPolicy, TtlState
from restcache.exceptions import InvalidUsageError


class TestDefaults:
    def test_default_ttl(self) -> None:
        policy = TtlPolicy()
        assert policy.default_ttl == DEFAULT_CACHE_TTL == 600
        assert policy.state is TtlState.DEFAULT
        assert policy.pending_override is None

    def test_no_override_uses_default(self) -> None:
        policy = TtlPolicy(120)
        assert policy.ttl_for_next_write() == TtlDecision(120, False)

    def test_zero_default_allowed(self) -> None:
        assert TtlPolicy(0).default_ttl == 0


class TestOverride:
    def test_override_consumed_once(self) -> None:
        policy = TtlPolicy(600)
        policy.set_override(30)
        assert policy.state is TtlState.OVERRIDE_PENDING
        assert policy.pending_override == 30

        assert policy.ttl_for_next_write() == TtlDecision(30, True)
        assert policy.state is TtlState.DEFAULT
        assert policy.ttl_for_next_write() == TtlDecision(600, False)

    def test_second_override_replaces_first(self) -> None:
        policy = TtlPolicy(600)
        policy.set_override(30)
        policy.set_override(45)
        assert policy.ttl_for_next_write().ttl_seconds == 45
        assert policy.ttl_for_next_write().ttl_seconds == 600

    def test_zero_override(self) -> None:
        policy = TtlPolicy(600)
        policy.set_override(0)
        assert policy.ttl_for_next_write() == TtlDecision(0, True)

    @pytest.mark.parametrize("bad", [-1, 1.5, "30", True, None])
    def test_invalid_override_rejected(self, bad: object) -> None:
        policy = TtlPolicy(600)
        with pytest.raises(InvalidUsageError):
            policy.set_override(bad)  # type: ignore[arg-type]
        assert policy.state is TtlState.DEFAULT

    def test_invalid_default_rejected(self) -> None:
        with pytest.raises(InvalidUsageError, match="negative"):
            TtlPolicy(-5)


class TestConcurrency:
    def test_override_consumed_by_exactly_one_writer(self) -> None:
        policy = TtlPolicy(600)
        policy.set_override(5)
        decisions: list[TtlDecision] = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def writer() -> None:
            barrier.wait()
            decision = policy.ttl_for_next_write()
            with lock:
                decisions.append(decision)

        threads = [threading.Thread(target=writer) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(1 for d in decisions if d.consumed) == 1
        assert sorted(d.ttl_seconds for d in decisions) == [5] + [600] * 7

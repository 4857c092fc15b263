"""One-shot TTL override policy.

Each :class:`~restcache.client.caching_client.CachingClient` owns one
:class:`TtlPolicy`. Callers may set a temporary TTL right before a call; the
override applies to exactly the next cache write and is then discarded::

    policy = TtlPolicy(default_ttl=600)
    policy.set_override(30)
    policy.ttl_for_next_write()  # TtlDecision(ttl_seconds=30, consumed=True)
    policy.ttl_for_next_write()  # TtlDecision(ttl_seconds=600, consumed=False)

The override is not queued: setting it twice before a write keeps only the
second value. A cache hit performs no write, so the override stays pending
until a miss stores something.
"""

from __future__ import annotations

import enum
import threading
from typing import NamedTuple, Optional

from restcache.exceptions import InvalidUsageError

DEFAULT_CACHE_TTL = 600
"""Default time-to-live for cached responses, in seconds."""


class TtlState(str, enum.Enum):
    """States of the override state machine."""

    DEFAULT = "default"
    OVERRIDE_PENDING = "override_pending"


class TtlDecision(NamedTuple):
    """TTL chosen for a cache write and whether it came from an override."""

    ttl_seconds: int
    consumed: bool


class TtlPolicy:
    """Default TTL plus an optional pending one-shot override.

    Args:
        default_ttl: TTL in seconds used when no override is pending.

    Raises:
        InvalidUsageError: If *default_ttl* is not a non-negative integer.
    """

    def __init__(self, default_ttl: int = DEFAULT_CACHE_TTL) -> None:
        self._default_ttl = _check_ttl(default_ttl)
        self._state = TtlState.DEFAULT
        self._pending: Optional[int] = None
        self._lock = threading.Lock()

    @property
    def default_ttl(self) -> int:
        return self._default_ttl

    @property
    def state(self) -> TtlState:
        return self._state

    @property
    def pending_override(self) -> Optional[int]:
        return self._pending

    def set_override(self, ttl_seconds: int) -> None:
        """Use *ttl_seconds* for the next cache write only.

        Replaces any override that is already pending.
        """
        ttl = _check_ttl(ttl_seconds)
        with self._lock:
            self._pending = ttl
            self._state = TtlState.OVERRIDE_PENDING

    def ttl_for_next_write(self) -> TtlDecision:
        """Return the TTL for the write about to happen and reset to the default state."""
        with self._lock:
            if self._state is TtlState.OVERRIDE_PENDING and self._pending is not None:
                decision = TtlDecision(self._pending, True)
            else:
                decision = TtlDecision(self._default_ttl, False)
            self._pending = None
            self._state = TtlState.DEFAULT
        return decision


def _check_ttl(ttl_seconds: object) -> int:
    if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int):
        raise InvalidUsageError(f"TTL must be an integer number of seconds, got {ttl_seconds!r}")
    if ttl_seconds < 0:
        raise InvalidUsageError(f"TTL must not be negative, got {ttl_seconds}")
    return ttl_seconds

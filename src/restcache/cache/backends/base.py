"""Abstract cache backend contract.

The caching layer needs four primitives from storage: ``get``, ``set`` with a
TTL, ``delete``, and ``search_by_prefix`` over stored keys. Everything else
(``clear``, ``__len__``, ``stats``, ``close``) serves the CLI.

``get`` distinguishes "absent" from a stored falsy value by returning the
:data:`MISSING` sentinel, so an API that legitimately answers ``null`` or
``[]`` is still served from cache instead of being fetched on every call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class _Missing:
    """Type of the :data:`MISSING` sentinel."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()
"""Returned by :meth:`CacheBackend.get` when no live entry exists for a key."""


class CacheBackend(ABC):
    """Key-value storage with TTL expiry and prefix search over keys.

    Backends are shared objects whose lifecycle belongs to whoever created
    them; the caching layer never closes one.
    """

    name: str = "backend"

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the value stored under *key*, or :data:`MISSING`."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: Optional[int]) -> bool:
        """Store *value* under *key* for *ttl_seconds* (``None`` means no expiry)."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove *key*. Returns ``False`` if there was nothing to remove."""

    @abstractmethod
    def search_by_prefix(self, prefix: str) -> dict[str, Optional[float]]:
        """Return live keys starting with *prefix*, mapped to their expiry time.

        The expiry time is a backend-specific timestamp, or ``None`` for
        entries that never expire.
        """

    @abstractmethod
    def clear(self) -> int:
        """Remove every entry and return how many were removed."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of stored entries (may include entries not yet culled)."""

    def stats(self) -> dict[str, Any]:
        """Return a JSON-serialisable summary for ``restcache cache stats``."""
        return {"backend": self.name, "size": len(self)}

    def close(self) -> None:
        """Release resources held by the backend."""

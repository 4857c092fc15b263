"""Exception hierarchy for restcache.

All exceptions inherit from :class:`RestCacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`restcache.exit_codes`.
The top-level error handler in :func:`restcache.app.main` catches
``RestCacheError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    RestCacheError (exit 1)
    +-- InvalidUsageError          (exit 2)
    |   +-- InvalidResourcePathError
    +-- TransportError             (exit 5)
    |   +-- AuthError              (exit 3)
    |   +-- NotFoundError          (exit 4)
    |   +-- ServerError            (exit 5)
    |   +-- ConnectionError_       (exit 6)
    +-- CacheBackendError          (exit 8)
    +-- ConfigError                (exit 1)

Transport errors always propagate through the caching layer untouched; the
caching layer itself only ever raises :class:`InvalidUsageError` and its
subclasses.
"""

from __future__ import annotations

from typing import Optional

from restcache.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CACHE_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class RestCacheError(Exception):
    """Base exception for all restcache errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`restcache.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(RestCacheError):
    """Raised for invalid arguments, unknown services/operations, or bad TTL values."""

    exit_code = EXIT_INVALID_USAGE


class InvalidResourcePathError(InvalidUsageError):
    """Raised when a resource path cannot be encoded into a cache key."""


class TransportError(RestCacheError):
    """Base class for failures raised by the underlying API transport.

    Args:
        message: Human-readable error description.
        status_code: HTTP status returned by the API, when there was one.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthError(TransportError):
    """Raised when the API rejects the credentials (HTTP 401 / 403)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(TransportError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(TransportError):
    """Raised when the API returns an error status not covered above."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(TransportError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class CacheBackendError(RestCacheError):
    """Raised by cache backends when the underlying storage fails."""

    exit_code = EXIT_CACHE_ERROR


class ConfigError(RestCacheError):
    """Raised for configuration problems (missing profiles, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE

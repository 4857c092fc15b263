"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~restcache.exceptions.RestCacheError` subclass.
Shell wrappers can inspect the exit code to tell a rejected credential from
an unreachable host without parsing stderr.

Example::

    $ restcache request GET /products/123
    $ echo $?
    4   # EXIT_NOT_FOUND -- the API answered 404
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or a malformed resource path."""

EXIT_AUTH_FAILURE = 3
"""Authentication or authorisation failed (HTTP 401/403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an error status that is not otherwise classified."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CACHE_ERROR = 8
"""The cache backend could not be opened or failed an explicit cache command."""

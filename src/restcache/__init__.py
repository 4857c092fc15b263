"""restcache -- transparent read-through caching proxy for REST API clients.

This package sits in front of a resource-oriented API client and accelerates
GET calls by serving previously fetched responses from a local cache. Every
mutating call (POST, PUT, PATCH, DELETE, ...) first purges the cached reads
stored under the mutated resource path and its ancestors, so a write made
through the proxy is never followed by a stale read.

Typical usage::

    from restcache import CachingClient, HttpxTransport

    with HttpxTransport(profile) as transport:
        client = CachingClient(transport)
        product = client.call_api("/products/123", "GET")

Modules:
    app: Typer application and CLI entry point.
    cache: Key builder, TTL policy, read-through gate, invalidator, backends.
    client: HTTP transport and the caching client.
    registry: Friendly service/operation dispatch on top of the client.
    models: Pydantic configuration models.
    config: XDG-aware configuration and profile management.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"

from restcache.client.caching_client import CachingClient  # noqa: E402
from restcache.client.transport import HttpxTransport, Transport  # noqa: E402

__all__ = ["CachingClient", "HttpxTransport", "Transport", "__version__"]

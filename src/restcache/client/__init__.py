"""API client layer for restcache.

Classes:
    :class:`Transport` -- protocol for anything that performs API calls.
    :class:`HttpxTransport` -- blocking transport backed by :class:`httpx.Client`.
    :class:`CachingClient` -- the caching proxy placed in front of a transport.

Example::

    from restcache.client import CachingClient, HttpxTransport

    with HttpxTransport(profile) as transport:
        client = CachingClient(transport)
        client.call_api("/products/123", "GET")
"""

from restcache.client.caching_client import CachingClient
from restcache.client.transport import HttpxTransport, Transport

__all__ = ["CachingClient", "HttpxTransport", "Transport"]

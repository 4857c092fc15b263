"""Friendly service/operation dispatch on top of :class:`CachingClient`.

Instead of building resource paths by hand, callers register *services*
made of named :class:`Operation` entries and invoke them by name::

    registry = ServiceRegistry(client)
    registry.register("products", {
        "list": Operation("GET", "/products"),
        "get": Operation("GET", "/products/{sku}"),
        "update": Operation("PUT", "/products/{sku}"),
    })
    registry.call("products", "get", params={"sku": "A1"})
    registry.call("products", "update", params={"sku": "A1"}, body={"name": "x"})

Every call ends up in :meth:`CachingClient.call_api`, so GET operations are
cached and the others invalidate. Lookups go through an explicit dispatch
table; unknown names raise :class:`~restcache.exceptions.InvalidUsageError`.

Some calls are expected to fail now and then (deleting something that may
already be gone). With ``suppress_errors`` such failures are logged and the
call returns ``None``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

from restcache.client.caching_client import CachingClient
from restcache.exceptions import InvalidUsageError, RestCacheError
from restcache.models import Profile

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


@dataclass(frozen=True)
class Operation:
    """One API operation: an HTTP method and a path template.

    ``{name}`` placeholders in *path* are filled from the call parameters;
    the remaining parameters become the query string.
    """

    method: str = "GET"
    path: str = "/"
    response_type: Any = None
    description: Optional[str] = None

    @property
    def placeholders(self) -> list[str]:
        return _PLACEHOLDER.findall(self.path)

    def render(self, params: Optional[Mapping[str, Any]] = None) -> tuple[str, dict[str, Any]]:
        """Fill the path template and return ``(path, query_params)``.

        Raises:
            InvalidUsageError: If a placeholder has no value in *params*.
        """
        remaining = dict(params or {})
        path = self.path
        for name in self.placeholders:
            if remaining.get(name) is None:
                raise InvalidUsageError(f"Missing path parameter '{name}' for {self.path}")
            value = remaining.pop(name)
            path = path.replace("{" + name + "}", quote(str(value), safe=""))
        query = {k: v for k, v in remaining.items() if v is not None}
        return path, query


class ServiceRegistry:
    """Named services dispatching to a :class:`CachingClient`.

    Args:
        client: The caching client every call goes through.
        suppress_errors: Default for :meth:`call`'s ``suppress_errors``.
    """

    def __init__(self, client: CachingClient, suppress_errors: bool = False) -> None:
        self._client = client
        self._suppress_errors = suppress_errors
        self._services: dict[str, dict[str, Operation]] = {}

    @classmethod
    def from_profile(
        cls,
        client: CachingClient,
        profile: Profile,
        suppress_errors: bool = False,
    ) -> ServiceRegistry:
        """Build a registry holding every service declared in *profile*."""
        registry = cls(client, suppress_errors=suppress_errors)
        for service_name, operations in profile.services.items():
            registry.register(
                service_name,
                {
                    op_name: Operation(
                        method=op.method.value,
                        path=op.path,
                        response_type=op.response_type,
                        description=op.description,
                    )
                    for op_name, op in operations.items()
                },
            )
        return registry

    @property
    def client(self) -> CachingClient:
        return self._client

    def register(self, name: str, operations: Mapping[str, Operation]) -> None:
        """Add (or replace) the service *name*."""
        if not name:
            raise InvalidUsageError("Service name must not be empty")
        if not operations:
            raise InvalidUsageError(f"Service '{name}' declares no operations")
        self._services[name] = dict(operations)

    def services(self) -> list[str]:
        """Registered service names, sorted."""
        return sorted(self._services)

    def operations(self, service: str) -> dict[str, Operation]:
        """Operations of *service*.

        Raises:
            InvalidUsageError: If the service is unknown.
        """
        try:
            return dict(self._services[service])
        except KeyError:
            raise InvalidUsageError(f"Unknown service: {service}") from None

    def call(
        self,
        service: str,
        operation: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        ttl: Optional[int] = None,
        suppress_errors: Optional[bool] = None,
    ) -> Any:
        """Invoke *operation* of *service* through the caching client.

        Args:
            service: Registered service name.
            operation: Operation name within the service.
            params: Path placeholders and query parameters.
            body: Request body.
            headers: Extra request headers.
            ttl: One-shot cache TTL for this call's response.
            suppress_errors: Log and swallow :class:`RestCacheError` from the
                call, returning ``None``. Defaults to the registry setting.

        Raises:
            InvalidUsageError: For unknown services/operations or missing
                path parameters, regardless of ``suppress_errors``.
        """
        op = self._lookup(service, operation)
        path, query = op.render(params)
        if ttl is not None:
            self._client.set_temporary_ttl(ttl)

        suppress = self._suppress_errors if suppress_errors is None else suppress_errors
        try:
            return self._client.call_api(
                path, op.method, query or None, body, dict(headers) if headers else None,
                op.response_type,
            )
        except RestCacheError as exc:
            if not suppress:
                raise
            logger.warning("Suppressed error from %s.%s: %s", service, operation, exc)
            return None

    def _lookup(self, service: str, operation: str) -> Operation:
        operations = self.operations(service)
        try:
            return operations[operation]
        except KeyError:
            raise InvalidUsageError(
                f"Unknown operation '{operation}' for service '{service}'"
            ) from None

"""HTTP transport that performs the actual API calls.

This module provides the :class:`Transport` protocol consumed by
:class:`~restcache.client.caching_client.CachingClient` and
:class:`HttpxTransport`, its implementation over :class:`httpx.Client`.
The transport layers on:

- **Profile headers and API key** -- static headers and the credential
  resolved from ``api_key_source`` are merged into every request.
- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...).
- **Error mapping** -- error statuses become typed
  :class:`~restcache.exceptions.TransportError` subclasses.
- **Deserialisation** -- the ``response_type`` hint selects how the body is
  returned (JSON, text, bytes, or a Pydantic model).
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from restcache.cache.keys import is_empty
from restcache.client.response import extract_response_data
from restcache.exceptions import (
    AuthError,
    ConnectionError_,
    InvalidUsageError,
    NotFoundError,
    ServerError,
    TransportError,
)
from restcache.models import Profile

logger = logging.getLogger(__name__)


@runtime_checkable
class Transport(Protocol):
    """Anything that can perform an API call.

    Implementations raise :class:`~restcache.exceptions.TransportError`
    (or any other exception) on failure; the caching layer never catches
    them.
    """

    def invoke(
        self,
        resource_path: str,
        method: str,
        query_params: Any = None,
        post_data: Any = None,
        header_params: Any = None,
        response_type: Any = None,
    ) -> Any:
        ...


class HttpxTransport:
    """Synchronous :class:`Transport` backed by :class:`httpx.Client`.

    Must be used as a context manager so that the underlying connection
    pool is opened and closed.

    Args:
        profile: Connection profile with ``base_url``, headers, credential
            source and request settings (timeout, retries, SSL verify).
        http_transport: Optional :class:`httpx.BaseTransport`, e.g. an
            :class:`httpx.MockTransport` in tests.

    Example::

        with HttpxTransport(profile) as transport:
            products = transport.invoke("/products", "GET", {"page": 2})
    """

    def __init__(
        self,
        profile: Profile,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._profile = profile
        self._http_transport = http_transport
        self._client: Optional[httpx.Client] = None
        self._auth_headers: dict[str, str] = {}

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpxTransport:
        config = self._profile.request
        self._client = httpx.Client(
            base_url=self._profile.base_url or "",
            timeout=config.timeout,
            verify=config.verify_ssl,
            follow_redirects=True,
            transport=self._http_transport,
        )
        if self._profile.api_key_source:
            from restcache.config import resolve_credential

            credential = resolve_credential(self._profile.api_key_source)
            self._auth_headers = {self._profile.api_key_header: credential}
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Transport protocol
    # ------------------------------------------------------------------ #

    def invoke(
        self,
        resource_path: str,
        method: str,
        query_params: Any = None,
        post_data: Any = None,
        header_params: Any = None,
        response_type: Any = None,
    ) -> Any:
        """Send the request and return the deserialised body.

        Args:
            resource_path: URL path appended to the profile's ``base_url``.
            method: HTTP method.
            query_params: Query parameters.
            post_data: Body. Mappings, lists and models are sent as JSON,
                ``str``/``bytes`` as raw content.
            header_params: Extra request headers.
            response_type: ``None`` or ``"json"`` (JSON with text fallback),
                ``"text"``, ``"bytes"``, or a Pydantic model / type
                understood by :class:`pydantic.TypeAdapter`.

        Returns:
            The deserialised response body, or ``None`` for an empty body.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On other error statuses, after retries for 5xx.
            ConnectionError_: On network / timeout errors after all retries.
        """
        headers: dict[str, str] = {"Accept": "application/json"}
        headers.update(self._auth_headers)
        headers.update(self._profile.headers)
        headers.update({str(k): str(v) for k, v in dict(header_params or {}).items()})

        response = self._execute_with_retry(
            method.upper(), resource_path, headers, query_params, post_data,
        )
        self._map_response_error(response)
        return _deserialize(response, response_type)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _execute_with_retry(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        params: Any,
        post_data: Any,
    ) -> httpx.Response:
        """Execute the HTTP request with exponential-backoff retry.

        Retries on 5xx status codes and connection / timeout errors up to
        ``max_retries`` times. The delay doubles each attempt: 1 s, 2 s, 4 s, ...
        """
        if self._client is None:
            raise InvalidUsageError("Transport not initialised -- use as context manager")

        max_retries = self._profile.request.max_retries
        kwargs: dict[str, Any] = {
            "method": method,
            "url": path,
            "headers": headers,
            "params": params or None,
        }
        if isinstance(post_data, (str, bytes)):
            kwargs["content"] = post_data
        elif isinstance(post_data, BaseModel):
            kwargs["json"] = post_data.model_dump(mode="json")
        elif not is_empty(post_data):
            kwargs["json"] = post_data

        for attempt in range(max_retries + 1):
            try:
                response = self._client.request(**kwargs)
            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    logger.debug(
                        "Connection error: %s, retrying in %ss (attempt %d/%d)",
                        exc, delay, attempt + 1, max_retries,
                    )
                    time.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                logger.debug(
                    "Server error %d, retrying in %ss (attempt %d/%d)",
                    response.status_code, delay, attempt + 1, max_retries,
                )
                time.sleep(delay)
                continue
            return response

        raise ServerError("Request failed after all retries")  # pragma: no cover

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        prefix = f"HTTP {status}"
        full_msg = f"{prefix}: {msg}" if msg else prefix

        if status in (401, 403):
            raise AuthError(full_msg, status_code=status)
        if status == 404:
            raise NotFoundError(full_msg, status_code=status)
        raise ServerError(full_msg, status_code=status)


def _deserialize(response: httpx.Response, response_type: Any) -> Any:
    """Turn *response* into the value requested by *response_type*."""
    if response_type is None or response_type == "json":
        return extract_response_data(response)
    if response_type == "text":
        return response.text
    if response_type == "bytes":
        return response.content
    if isinstance(response_type, str):
        raise InvalidUsageError(f"Unknown response type: {response_type}")

    if not response.content:
        return None
    try:
        return TypeAdapter(response_type).validate_json(response.content)
    except ValidationError as exc:
        raise TransportError(
            f"Response does not match {response_type!r}: {exc}",
            status_code=response.status_code,
        ) from exc

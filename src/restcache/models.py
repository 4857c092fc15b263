"""Canonical Pydantic models shared across all restcache modules.

This is the single source of truth for configuration shapes in the project.
Every other module imports from here rather than defining its own models.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`OutputConfig`, :class:`CacheConfig`,
    :class:`OperationConfig`, :class:`Profile`, and :class:`GlobalConfig`.

**Enumerations** -- :class:`HTTPMethod` and :class:`BackendKind`.

All models use Pydantic v2. :class:`Profile` accepts unknown keys
(``extra="allow"``) so that hand-edited profiles keep fields this version
does not know about.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HTTPMethod(str, enum.Enum):
    """HTTP methods understood by the transport.

    Only :attr:`GET` is cacheable; every other verb is treated as a write
    and triggers invalidation.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class BackendKind(str, enum.Enum):
    """Cache backend implementations selectable from configuration."""

    DISK = "disk"
    MEMORY = "memory"


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call in a profile."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, description="Max retry attempts")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class CacheConfig(BaseModel):
    """Response cache and invalidation settings stored in :class:`GlobalConfig`.

    ``invalidation_floor`` controls how far up the resource hierarchy a
    write purges cached reads: the ancestor walk continues while more than
    ``invalidation_floor`` path segments remain. The default of ``2`` means a
    write to ``/a/b/c/d`` purges reads cached under ``/a/b/c/d`` and
    ``/a/b/c`` but leaves ``/a/b`` alone.
    """

    enabled: bool = Field(default=True, description="Enable response caching")
    ttl_seconds: int = Field(default=600, ge=0, description="Default cache TTL in seconds")
    backend: BackendKind = Field(
        default=BackendKind.DISK, description="Cache backend: disk or memory"
    )
    directory: Optional[str] = Field(
        default=None,
        description="Directory for the disk backend (defaults to the XDG cache dir)",
    )
    invalidation_floor: int = Field(
        default=2,
        ge=0,
        description="Stop the ancestor walk once this many segments remain",
    )
    warn_on_failed_delete: bool = Field(
        default=False,
        description="Log a warning for every cached entry that could not be deleted",
    )


class OperationConfig(BaseModel):
    """A named API operation declared inside a profile's ``services`` map.

    The ``path`` is a template whose ``{placeholders}`` are filled from the
    call parameters; remaining parameters are sent as the query string.

    Example::

        OperationConfig(method="GET", path="/products/{sku}")
    """

    method: HTTPMethod = HTTPMethod.GET
    path: str
    response_type: Optional[str] = Field(
        default=None, description="Response type hint: json, text or bytes"
    )
    description: Optional[str] = None

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value


class Profile(BaseModel):
    """Per-API profile stored as JSON under the ``profiles/`` config directory.

    A profile names one remote API: where it lives, which static headers and
    credential to send, how patient to be with it, and which friendly
    services/operations the :class:`~restcache.registry.ServiceRegistry`
    exposes for it.

    See Also:
        :func:`~restcache.config.load_profile`: Deserialise a profile by name.
        :func:`~restcache.config.save_profile`: Persist a profile to disk.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    base_url: Optional[str] = Field(default=None, description="Base URL of the API")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Static headers sent with every request"
    )
    api_key_header: str = Field(
        default="Authorization", description="Header that carries the API key"
    )
    api_key_source: Optional[str] = Field(
        default=None,
        description="Credential source for the API key: env:VAR, file:/path, prompt",
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    services: dict[str, dict[str, OperationConfig]] = Field(default_factory=dict)


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/restcache/config.json``.

    Loaded and saved by :func:`~restcache.config.load_global_config` and
    :func:`~restcache.config.save_global_config`. Fields here have the
    lowest precedence; see :func:`~restcache.config.resolve_config` for the
    full precedence chain.
    """

    default_profile: Optional[str] = None
    output: OutputConfig = Field(default_factory=OutputConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

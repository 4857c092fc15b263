"""Runtime wiring shared by the commands that talk to an API.

:func:`open_session` resolves the active configuration and profile, opens
an :class:`~restcache.client.transport.HttpxTransport` and wraps it in a
:class:`~restcache.client.caching_client.CachingClient`. The backend is
created here and closed here; the client itself never closes it.

When caching is disabled in the configuration the client gets a throwaway
:class:`~restcache.cache.backends.MemoryCacheBackend`, so nothing outlives
the command.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Optional

import typer

from restcache.cache.backends import CacheBackend, MemoryCacheBackend, create_backend
from restcache.client.caching_client import CachingClient
from restcache.client.transport import HttpxTransport
from restcache.exceptions import ConfigError, InvalidUsageError
from restcache.models import GlobalConfig, Profile


@dataclass
class Session:
    """Everything a command needs to issue calls."""

    config: GlobalConfig
    profile: Profile
    client: CachingClient


def resolve_from_context(ctx: typer.Context) -> tuple[GlobalConfig, Optional[Profile]]:
    """Resolve config using the root options stored in ``ctx.obj``."""
    from restcache.config import resolve_config

    obj = ctx.obj or {}
    return resolve_config(cli_profile=obj.get("profile"), cli_base_url=obj.get("base_url"))


def open_backend(config: GlobalConfig) -> CacheBackend:
    """Backend for *config*, or a throwaway memory backend when caching is off."""
    if not config.cache.enabled:
        return MemoryCacheBackend()
    return create_backend(config.cache)


@contextmanager
def open_session(ctx: typer.Context) -> Iterator[Session]:
    """Open transport, backend and client for the active profile.

    Raises:
        ConfigError: If no profile is configured.
    """
    config, profile = resolve_from_context(ctx)
    if profile is None:
        raise ConfigError(
            "No profile configured. Create one with 'restcache profile add NAME --base-url URL'."
        )
    if not profile.base_url:
        raise ConfigError(f"Profile '{profile.name}' has no base_url")

    backend = open_backend(config)
    try:
        with HttpxTransport(profile) as transport:
            client = CachingClient.from_config(transport, config.cache, backend=backend)
            yield Session(config=config, profile=profile, client=client)
    finally:
        backend.close()


def parse_pairs(values: Optional[list[str]], what: str) -> dict[str, str]:
    """Parse repeated ``key=value`` options into a dict.

    Raises:
        InvalidUsageError: If an item has no ``=``.
    """
    result: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"Expected {what} as key=value, got: {item}")
        result[key] = value
    return result


def parse_body(body: Optional[str]) -> Any:
    """Parse *body* as JSON if possible, returning the raw string on failure."""
    if body is None:
        return None
    try:
        return json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return body

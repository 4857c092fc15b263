"""Cache commands -- inspect and manage the response cache.

Provides the ``restcache cache`` sub-command group. These commands only
need the cache configuration, not a profile.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import typer

from restcache.models import GlobalConfig
from restcache.output import format_response, info, print_table, success, warning


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show backend statistics and the effective cache settings.

    Example::

        restcache cache stats --json
    """
    from restcache.commands.session import open_backend, resolve_from_context

    config, _ = resolve_from_context(ctx)
    backend = open_backend(config)
    try:
        data = backend.stats()
    finally:
        backend.close()
    data.update(
        {
            "enabled": config.cache.enabled,
            "ttl_seconds": config.cache.ttl_seconds,
            "invalidation_floor": config.cache.invalidation_floor,
        }
    )
    format_response(data)


@cache_app.command("keys")
def cache_keys(
    ctx: typer.Context,
    prefix: str = typer.Argument("", help="Only list keys starting with this prefix."),
) -> None:
    """List cached keys and their expiry times."""
    from restcache.commands.session import open_backend, resolve_from_context

    config, _ = resolve_from_context(ctx)
    if _caching_disabled(config):
        return
    backend = open_backend(config)
    try:
        matches = backend.search_by_prefix(prefix)
    finally:
        backend.close()

    rows = [[key, _format_expiry(expire)] for key, expire in sorted(matches.items())]
    print_table(["Key", "Expires"], rows, title="Cached responses")


@cache_app.command("invalidate")
def cache_invalidate(
    ctx: typer.Context,
    path: str = typer.Argument(help="Resource path whose cached GETs should be purged."),
) -> None:
    """Purge cached GETs under PATH and its ancestors, as a write to PATH would.

    Example::

        restcache cache invalidate /products/123
    """
    from restcache.cache.invalidator import HierarchicalInvalidator
    from restcache.cache.paths import validate_path
    from restcache.commands.session import open_backend, resolve_from_context

    validate_path(path)
    config, _ = resolve_from_context(ctx)
    if _caching_disabled(config):
        return
    backend = open_backend(config)
    try:
        invalidator = HierarchicalInvalidator(
            backend,
            floor=config.cache.invalidation_floor,
            warn_on_failed_delete=config.cache.warn_on_failed_delete,
        )
        report = invalidator.purge(path)
    finally:
        backend.close()

    for pattern in report.patterns:
        info(f"Searched {pattern}")
    success(f"Removed {len(report.deleted)} cached entries.")


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Remove every cached response.

    Asks for confirmation unless ``--force`` is active.
    """
    from restcache.commands.session import open_backend, resolve_from_context

    config, _ = resolve_from_context(ctx)
    if _caching_disabled(config):
        return

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Remove all cached responses?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    backend = open_backend(config)
    try:
        removed = backend.clear()
    finally:
        backend.close()
    success(f"Removed {removed} cached entries.")


def _caching_disabled(config: GlobalConfig) -> bool:
    if config.cache.enabled:
        return False
    warning("Caching is disabled (cache.enabled = false); the cache was not touched.")
    return True


def _format_expiry(expire: Optional[float]) -> str:
    if expire is None:
        return "never"
    # diskcache reports wall-clock epoch seconds.
    try:
        return datetime.fromtimestamp(expire, tz=timezone.utc).isoformat(timespec="seconds")
    except (OverflowError, OSError, ValueError):
        return str(expire)

"""Request commands -- issue API calls through the cache.

``restcache request`` takes a raw method and resource path;
``restcache call`` dispatches a named operation declared in the active
profile's ``services`` section. ``restcache services`` lists those.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import typer

from restcache.output import debug, print_table

if TYPE_CHECKING:
    from restcache.client.caching_client import CachingClient


def request_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method, e.g. GET or PUT."),
    path: str = typer.Argument(help="Resource path, e.g. /products/123."),
    query: Optional[list[str]] = typer.Option(
        None, "--query", "-q", help="Query parameter as key=value (repeatable)."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Request header as key=value (repeatable)."
    ),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Request body (JSON, or sent as raw text)."
    ),
    ttl: Optional[int] = typer.Option(
        None, "--ttl", help="Cache TTL in seconds for this response only."
    ),
    response_type: Optional[str] = typer.Option(
        None, "--response-type", help="Response type: json, text or bytes."
    ),
) -> None:
    """Send METHOD PATH through the cache.

    GET responses are served from the cache when present; any other method
    purges cached GETs under PATH and its ancestors before it is sent.

    Example::

        restcache request GET /products/123
        restcache request PUT /products/123 --data '{"name": "x"}'
        restcache request GET /products -q page=2 --ttl 30
    """
    from restcache.client.response import format_api_result
    from restcache.commands.session import open_session, parse_body, parse_pairs

    query_params = parse_pairs(query, "query parameter")
    header_params = parse_pairs(header, "header")

    with open_session(ctx) as session:
        client = session.client
        if ttl is not None:
            client.set_temporary_ttl(ttl)
        result = client.call_api(
            path,
            method,
            query_params or None,
            parse_body(data),
            header_params or None,
            response_type,
        )
        _report_cache_activity(client)
    format_api_result(result)


def call_command(
    ctx: typer.Context,
    service: str = typer.Argument(help="Service name from the profile."),
    operation: str = typer.Argument(help="Operation name within the service."),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-p", help="Path or query parameter as key=value (repeatable)."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Request header as key=value (repeatable)."
    ),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Request body (JSON, or sent as raw text)."
    ),
    ttl: Optional[int] = typer.Option(
        None, "--ttl", help="Cache TTL in seconds for this response only."
    ),
    suppress_errors: bool = typer.Option(
        False, "--suppress-errors", help="Log API errors instead of failing."
    ),
) -> None:
    """Invoke SERVICE OPERATION as declared in the active profile.

    Example::

        restcache call products get -p sku=A1
        restcache call products update -p sku=A1 --data '{"name": "x"}'
    """
    from restcache.client.response import format_api_result
    from restcache.commands.session import open_session, parse_body, parse_pairs
    from restcache.registry import ServiceRegistry

    with open_session(ctx) as session:
        registry = ServiceRegistry.from_profile(session.client, session.profile)
        result = registry.call(
            service,
            operation,
            params=parse_pairs(param, "parameter"),
            body=parse_body(data),
            headers=parse_pairs(header, "header") or None,
            ttl=ttl,
            suppress_errors=suppress_errors,
        )
        _report_cache_activity(session.client)
    format_api_result(result)


def services_command(ctx: typer.Context) -> None:
    """List the services and operations declared in the active profile."""
    from restcache.commands.session import resolve_from_context
    from restcache.exceptions import ConfigError

    _, profile = resolve_from_context(ctx)
    if profile is None:
        raise ConfigError("No profile configured.")

    rows = [
        [service, name, op.method.value, op.path, op.description or ""]
        for service, operations in sorted(profile.services.items())
        for name, op in sorted(operations.items())
    ]
    print_table(
        ["Service", "Operation", "Method", "Path", "Description"],
        rows,
        title=f"Services of {profile.name}",
    )


def _report_cache_activity(client: CachingClient) -> None:
    counters = " ".join(f"{name}={value}" for name, value in client.gate.stats.as_dict().items())
    debug(f"cache {counters}")
    report = client.invalidator.last_report
    if report is not None:
        debug(f"invalidated {len(report.deleted)} cached entries under {report.path}")

"""Profile commands -- create, list, inspect and remove API profiles.

A profile names one remote API (base URL, static headers, API key source,
request settings and declared services). Profiles are stored as JSON files
in the profiles directory; see :mod:`restcache.config`.
"""

from __future__ import annotations

from typing import Optional

import typer

from restcache.output import format_response, info, print_table, success


profile_app = typer.Typer(no_args_is_help=True)


@profile_app.command("add")
def profile_add(
    name: str = typer.Argument(help="Profile name."),
    base_url: str = typer.Option(..., "--base-url", help="Base URL of the API."),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Static header as key=value (repeatable)."
    ),
    api_key_source: Optional[str] = typer.Option(
        None, "--api-key-source", help="Credential source: env:VAR, file:/path or prompt."
    ),
    api_key_header: str = typer.Option(
        "Authorization", "--api-key-header", help="Header carrying the API key."
    ),
    default: bool = typer.Option(
        False, "--default", help="Make this the default profile (the first profile always is)."
    ),
    overwrite: bool = typer.Option(
        False, "--overwrite", help="Replace an existing profile with the same name."
    ),
) -> None:
    """Create a profile.

    Example::

        restcache profile add shop --base-url https://shop.example.com/rest/V1 \\
            --api-key-source env:SHOP_TOKEN --default
    """
    from restcache.commands.session import parse_pairs
    from restcache.config import load_global_config, profile_exists, save_global_config, save_profile
    from restcache.exceptions import InvalidUsageError
    from restcache.models import Profile

    if profile_exists(name) and not overwrite:
        raise InvalidUsageError(f"Profile '{name}' already exists (use --overwrite)")

    profile = Profile(
        name=name,
        base_url=base_url,
        headers=parse_pairs(header, "header"),
        api_key_source=api_key_source,
        api_key_header=api_key_header,
    )
    config = load_global_config()
    save_profile(profile)
    if default or config.default_profile is None:
        config.default_profile = name
        save_global_config(config)
    success(f"Saved profile '{name}'.")


@profile_app.command("list")
def profile_list() -> None:
    """List stored profiles."""
    from restcache.config import list_profiles, load_global_config, load_profile

    default = load_global_config().default_profile
    rows = []
    for name in list_profiles():
        profile = load_profile(name)
        rows.append([name, profile.base_url or "", "yes" if name == default else ""])
    if not rows:
        info("No profiles found.")
        return
    print_table(["Name", "Base URL", "Default"], rows, title="Profiles")


@profile_app.command("show")
def profile_show(name: str = typer.Argument(help="Profile name.")) -> None:
    """Show a profile as JSON."""
    from restcache.config import load_profile

    format_response(load_profile(name).model_dump(mode="json"))


@profile_app.command("remove")
def profile_remove(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile name."),
) -> None:
    """Delete a profile. Asks for confirmation unless ``--force`` is active."""
    from restcache.config import delete_profile, load_global_config, save_global_config

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force and not typer.confirm(f"Delete profile '{name}'?"):
        info("Cancelled.")
        raise typer.Exit()

    delete_profile(name)
    config = load_global_config()
    if config.default_profile == name:
        config.default_profile = None
        save_global_config(config)
    success(f"Deleted profile '{name}'.")

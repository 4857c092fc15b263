"""Persistent configuration: directories, profiles and the effective settings.

restcache keeps three kinds of state on disk:

* ``config.json`` in the config directory, a :class:`~restcache.models.GlobalConfig`
  holding the default profile and the cache settings.
* ``profiles/<name>.json``, one :class:`~restcache.models.Profile` per API.
* the response cache itself, under the cache directory (see
  :func:`restcache.cache.backends.default_cache_directory`).

A ``restcache.json`` in the working directory may pin a profile and override
individual cache settings for one project. :func:`resolve_config` layers all
of these with the environment and the command line.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from restcache.exceptions import ConfigError
from restcache.models import CacheConfig, GlobalConfig, Profile

_APP_NAME = "restcache"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "restcache.json"

ENV_PROFILE = "RESTCACHE_PROFILE"
ENV_BASE_URL = "RESTCACHE_BASE_URL"
ENV_CACHE_TTL = "RESTCACHE_CACHE_TTL"

# kind -> (XDG variable, default under $HOME, subdirectory of ~/.restcache elsewhere)
_DIRECTORIES: dict[str, tuple[str, tuple[str, ...], Optional[str]]] = {
    "config": ("XDG_CONFIG_HOME", (".config",), None),
    "cache": ("XDG_CACHE_HOME", (".cache",), "cache"),
    "data": ("XDG_DATA_HOME", (".local", "share"), "data"),
}

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def _is_xdg_platform() -> bool:
    """Return True on Linux and the BSDs."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    env_var, home_segments, fallback = _DIRECTORIES[kind]
    if _is_xdg_platform():
        base = os.environ.get(env_var) or Path.home().joinpath(*home_segments)
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if fallback:
            path = path / fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/restcache`` on Linux/BSD, ``~/.restcache`` elsewhere."""
    return _app_dir("config")


def get_cache_dir() -> Path:
    """Directory for the on-disk response cache. Safe to delete at any time."""
    return _app_dir("cache")


def get_data_dir() -> Path:
    """Directory for crash logs."""
    return _app_dir("data")


def get_profiles_dir() -> Path:
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _read_json(path: Path, what: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc


def _read_model(path: Path, model: type[_ModelT], what: str) -> _ModelT:
    data = _read_json(path, what)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc


def _write_model(path: Path, model: BaseModel) -> None:
    _atomic_write(path, json.dumps(model.model_dump(mode="json"), indent=2) + "\n")


# --- Global config ---


def load_global_config() -> GlobalConfig:
    """Return the saved :class:`GlobalConfig`, or defaults if none was saved.

    Raises:
        ConfigError: If the file is not valid JSON or fails validation.
    """
    path = get_config_dir() / _CONFIG_FILENAME
    if not path.is_file():
        return GlobalConfig()
    return _read_model(path, GlobalConfig, "global config")


def save_global_config(config: GlobalConfig) -> None:
    _write_model(get_config_dir() / _CONFIG_FILENAME, config)


# --- Profiles ---


def _profile_path(name: str) -> Path:
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


def load_profile(name: str) -> Profile:
    """Load the profile called *name*.

    Raises:
        ConfigError: If it does not exist or cannot be parsed.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    return _read_model(path, Profile, f"profile '{name}'")


def save_profile(profile: Profile) -> None:
    _write_model(_profile_path(profile.name), profile)


def delete_profile(name: str) -> None:
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    path.unlink()


# --- Project config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Return ``./restcache.json`` as a dict, or ``None`` when there is none."""
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _merge_cache_section(cache: CacheConfig, overrides: dict[str, Any]) -> CacheConfig:
    try:
        return CacheConfig.model_validate({**cache.model_dump(), **overrides})
    except ValidationError as exc:
        raise ConfigError(f"Invalid cache section in project config: {exc}") from exc


def _ttl_from_env() -> Optional[int]:
    raw = os.environ.get(ENV_CACHE_TTL)
    if not raw:
        return None
    try:
        ttl = int(raw)
    except ValueError:
        raise ConfigError(f"{ENV_CACHE_TTL} must be an integer, got: {raw}") from None
    if ttl < 0:
        raise ConfigError(f"{ENV_CACHE_TTL} must not be negative, got: {ttl}")
    return ttl


def resolve_config(
    cli_profile: Optional[str] = None,
    cli_base_url: Optional[str] = None,
) -> tuple[GlobalConfig, Optional[Profile]]:
    """Build the effective configuration and load the active profile.

    Later sources win: defaults, ``config.json``, ``./restcache.json``,
    environment (``RESTCACHE_PROFILE``, ``RESTCACHE_BASE_URL``,
    ``RESTCACHE_CACHE_TTL``), then the CLI arguments.

    Returns:
        ``(config, profile)``; *profile* is ``None`` when no profile is selected.

    Raises:
        ConfigError: If a source is malformed or the selected profile is missing.
    """
    config = load_global_config()
    profile_name = config.default_profile

    project = load_project_config() or {}
    if isinstance(project.get("cache"), dict):
        config.cache = _merge_cache_section(config.cache, project["cache"])
    profile_name = project.get("default_profile") or profile_name
    profile_name = cli_profile or os.environ.get(ENV_PROFILE) or profile_name

    ttl = _ttl_from_env()
    if ttl is not None:
        config.cache.ttl_seconds = ttl

    if profile_name is None:
        return config, None

    profile = load_profile(profile_name)
    base_url = cli_base_url or os.environ.get(ENV_BASE_URL)
    if base_url:
        profile.base_url = base_url
    return config, profile


# --- Credentials ---


def resolve_credential(source: str) -> str:
    """Read a secret from ``env:VAR``, ``file:/path`` or ``prompt``.

    Raises:
        ConfigError: If the source is unknown or yields nothing.
    """
    kind, _, target = source.partition(":")

    if kind == "env" and target:
        value = os.environ.get(target)
        if value is None:
            raise ConfigError(f"Environment variable '{target}' is not set (source: {source})")
        return value

    if kind == "file" and target:
        path = Path(target).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path}")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for credentials: stdin is not a TTY")
        return getpass.getpass("Enter API key: ")

    raise ConfigError(f"Unknown credential source: {source}")

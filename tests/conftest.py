"""Shared test fixtures for restcache.

Provides reusable fixtures for isolated config environments, output and
logging state, fake transports, and cache backends. These fixtures are
discovered by pytest and available to all test modules without imports.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from restcache.cache.backends import DiskCacheBackend, MemoryCacheBackend
from restcache.models import Profile, RequestConfig
from restcache.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the ``restcache`` logger after every test.

    The CLI callback binds a RichHandler to the stderr stream that Typer's
    CliRunner swaps in for the duration of one invocation. Leaving it
    attached would make later tests log to a closed stream.
    """
    yield
    reset_output()
    logger = logging.getLogger("restcache")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------


class FakeTransport:
    """Records every ``invoke`` and answers from a handler or a fixed value."""

    def __init__(
        self,
        result: Any = None,
        handler: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.result = result
        self.handler = handler
        self.calls: list[tuple[Any, ...]] = []

    def invoke(
        self,
        resource_path: str,
        method: str,
        query_params: Any = None,
        post_data: Any = None,
        header_params: Any = None,
        response_type: Any = None,
    ) -> Any:
        call = (resource_path, method, query_params, post_data, header_params, response_type)
        self.calls.append(call)
        if self.handler is not None:
            return self.handler(*call)
        return self.result

    def methods(self) -> list[str]:
        return [call[1] for call in self.calls]


@pytest.fixture
def make_transport() -> type[FakeTransport]:
    """The FakeTransport class, for tests that need a custom result or handler."""
    return FakeTransport


@pytest.fixture
def transport() -> FakeTransport:
    """A FakeTransport that echoes the method and path of each call."""
    return FakeTransport(handler=lambda path, method, *rest: {"method": method, "path": path})


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced clock for MemoryCacheBackend expiry tests."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_backend(clock: FakeClock) -> MemoryCacheBackend:
    """In-memory backend driven by the fake clock."""
    return MemoryCacheBackend(clock=clock)


@pytest.fixture
def disk_backend(tmp_path: Path) -> DiskCacheBackend:
    """Disk backend in a temporary directory, closed after the test."""
    backend = DiskCacheBackend(tmp_path / "responses")
    yield backend
    backend.close()


# ---------------------------------------------------------------------------
# Profile fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_profile() -> Profile:
    """A profile pointing at a fake shop API with relaxed request settings."""
    return Profile(
        name="shop",
        base_url="https://shop.example.com/rest",
        headers={"X-Store": "default"},
        request=RequestConfig(timeout=5, verify_ssl=False, max_retries=1),
    )


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user config,
    clears RESTCACHE_* environment variables, and changes the working
    directory to tmp_path.
    """
    monkeypatch.setattr("restcache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "RESTCACHE_PROFILE",
        "RESTCACHE_BASE_URL",
        "RESTCACHE_CACHE_TTL",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()

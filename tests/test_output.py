"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline, quiet and verbose modes
- JSON and plain format output
- print_table in all three modes
- Output file redirection
- Logging routed through RichHandler
"""

from __future__ import annotations

import json
import logging

import pytest
from rich.logging import RichHandler

from restcache.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    configure_logging,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("restcache.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("restcache.output._is_tty", lambda: True)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("TERM", raising=False)


# ------------------------------------------------------------------ #
# Format and colour resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty):
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_resolves_to_plain_when_tty_but_no_color(self, tty):
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout / stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(no_color=True).print_data("payload")
        captured = capfd.readouterr()
        assert captured.out == "payload\n"
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        getattr(OutputManager(no_color=True), method)("diagnostic")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "diagnostic" in captured.err

    def test_quiet_suppresses_info_and_success(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_warning_and_error(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.warning("careful")
        mgr.error("broken")
        err = capfd.readouterr().err
        assert "Warning: careful" in err
        assert "Error: broken" in err

    def test_debug_only_with_verbose(self, capfd, non_tty):
        OutputManager(no_color=True).debug("quiet debug")
        assert capfd.readouterr().err == ""
        OutputManager(no_color=True, verbose=True).debug("loud debug")
        assert "[debug] loud debug" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Data formats
# ------------------------------------------------------------------ #


class TestJsonFormat:
    def test_dict_as_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response({"sku": "A1", "qty": 2})
        assert json.loads(capfd.readouterr().out) == {"sku": "A1", "qty": 2}

    def test_string_that_is_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response('{"a": 1}')
        assert json.loads(capfd.readouterr().out) == {"a": 1}

    def test_plain_string_as_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response("just text")
        assert capfd.readouterr().out.strip() == "just text"


class TestPlainFormat:
    def test_dict_as_key_value(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response({"a": 1, "b": "x"})
        assert capfd.readouterr().out == "a\t1\nb\tx\n"

    def test_list_of_dicts_as_rows(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response([{"a": 1}, {"a": 2}])
        assert capfd.readouterr().out == "1\n2\n"


class TestPrintTable:
    def test_table_json_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(["Key", "Expires"], [["k", "never"]])
        assert json.loads(capfd.readouterr().out) == [{"Key": "k", "Expires": "never"}]

    def test_table_plain_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).print_table(["Key", "Expires"], [["k", "never"]])
        assert capfd.readouterr().out == "Key\tExpires\nk\tnever\n"

    def test_table_rich_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(
            ["Key"], [["GET-products-QP-PD-HP-RT"]], title="Cached responses"
        )
        out = capfd.readouterr().out
        assert "Cached responses" in out
        assert "GET-products-QP-PD-HP-RT" in out


class TestOutputFile:
    def test_format_response_writes_to_file(self, tmp_path, capfd, non_tty):
        target = tmp_path / "out.json"
        OutputManager(format=OutputFormat.JSON, output_file=str(target)).format_response({"a": 1})
        assert json.loads(target.read_text(encoding="utf-8")) == {"a": 1}
        assert capfd.readouterr().out == ""


# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #


class TestConfigureLogging:
    def test_installs_single_rich_handler(self, non_tty):
        logger = logging.getLogger("restcache")
        configure_logging(OutputManager(no_color=True))
        configure_logging(OutputManager(no_color=True))
        handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
        assert len(handlers) == 1
        assert logger.level == logging.WARNING

    def test_verbose_enables_debug(self, non_tty):
        configure_logging(OutputManager(no_color=True, verbose=True))
        assert logging.getLogger("restcache").level == logging.DEBUG

    def test_records_reach_stderr(self, capfd, non_tty):
        configure_logging(OutputManager(no_color=True))
        logging.getLogger("restcache.cache.gate").warning("Cache write failed for k")
        captured = capfd.readouterr()
        assert "Cache write failed for k" in captured.err
        assert "Cache write failed" not in captured.out


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self, non_tty):
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_output(self):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr

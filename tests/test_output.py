"""Tests for the output and diagnostics layer.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- print_table in JSON and plain modes
- The status spinner fallback
- Global instance management
"""

from __future__ import annotations

import json
import re

import pytest

from sideko_cli import output as output_module
from sideko_cli.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("sideko_cli.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("sideko_cli.output._is_tty", lambda: True)


_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def _plain(**kwargs) -> OutputManager:
    return OutputManager(format=OutputFormat.PLAIN, no_color=True, **kwargs)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, non_tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStreams:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        _plain().print_data("hello world")
        captured = capfd.readouterr()
        assert captured.out == "hello world\n"
        assert captured.err == ""

    @pytest.mark.parametrize(
        "method, expected",
        [
            ("info", "note"),
            ("success", "note"),
            ("warning", "Warning: note"),
            ("error", "Error: note"),
            ("suggest", "→ note"),
        ],
    )
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method, expected):
        getattr(_plain(), method)("note")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err == f"{expected}\n"


class TestQuietAndVerbose:
    @pytest.mark.parametrize("method", ["info", "success", "suggest", "debug"])
    def test_quiet_suppresses(self, capfd, non_tty, method):
        getattr(_plain(quiet=True), method)("hidden")
        assert capfd.readouterr().err == ""

    @pytest.mark.parametrize("method", ["warning", "error"])
    def test_quiet_keeps_problems(self, capfd, non_tty, method):
        getattr(_plain(quiet=True), method)("shown")
        assert "shown" in capfd.readouterr().err

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error", "suggest", "debug"])
    def test_rich_messages_keep_square_brackets(self, capfd, non_tty, monkeypatch, method):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.PLAIN, verbose=True)
        getattr(mgr, method)("kept at /tmp/[red]x[/red]/p.patch")
        assert "/tmp/[red]x[/red]/p.patch" in capfd.readouterr().err

    def test_debug_hidden_by_default(self, capfd, non_tty):
        _plain().debug("hidden")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd, non_tty):
        _plain(verbose=True).debug("git status --porcelain")
        assert capfd.readouterr().err == "[debug] git status --porcelain\n"


# ------------------------------------------------------------------ #
# Tables
# ------------------------------------------------------------------ #


class TestPrintTable:
    HEADERS = ["Name", "ID"]
    ROWS = [["petstore", "a1"], ["billing", "b2"]]

    def test_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(self.HEADERS, self.ROWS)
        assert json.loads(capfd.readouterr().out) == [
            {"Name": "petstore", "ID": "a1"},
            {"Name": "billing", "ID": "b2"},
        ]

    def test_plain(self, capfd, non_tty):
        _plain().print_table(self.HEADERS, self.ROWS, title="APIs")
        assert capfd.readouterr().out == "Name\tID\npetstore\ta1\nbilling\tb2\n"

    def test_rich(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        OutputManager(format=OutputFormat.RICH).print_table(self.HEADERS, self.ROWS)
        out = capfd.readouterr().out
        assert "petstore" in out
        assert "billing" in out

    def test_rich_cells_are_not_markup(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        OutputManager(format=OutputFormat.RICH).print_table(["Name"], [["[bold]api[/bold]"]])
        assert "[bold]api[/bold]" in _ANSI_RE.sub("", capfd.readouterr().out)


# ------------------------------------------------------------------ #
# Status spinner
# ------------------------------------------------------------------ #


class TestStatus:
    def test_plain_fallback_prints_once(self, capfd, non_tty):
        with _plain().status("Generating..."):
            pass
        assert capfd.readouterr().err == "Generating...\n"

    def test_quiet_prints_nothing(self, capfd, non_tty):
        with _plain(quiet=True).status("Generating..."):
            pass
        assert capfd.readouterr().err == ""

    def test_body_exception_propagates(self, non_tty):
        with pytest.raises(RuntimeError):
            with _plain().status("Generating..."):
                raise RuntimeError("boom")


# ------------------------------------------------------------------ #
# Global instance management
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self):
        reset_output()
        assert isinstance(get_output(), OutputManager)
        assert get_output() is get_output()

    def test_set_output_is_used_by_helpers(self, capfd, non_tty):
        set_output(_plain(verbose=True))
        output_module.info("via helper")
        output_module.debug("detail")
        err = capfd.readouterr().err
        assert "via helper" in err
        assert "[debug] detail" in err

"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb colour disabling
- stdout vs stderr discipline, quiet and verbose modes
- print_table and print_records in JSON and plain modes
- cache age rendering
- global instance management
"""

from __future__ import annotations

import json

import pytest

from foli import output as output_module
from foli.models import Route, Stop
from foli.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    format_age,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture(autouse=True)
def _reset_global_output():
    reset_output()
    yield
    reset_output()


@pytest.fixture()
def non_tty(monkeypatch):
    monkeypatch.setattr("foli.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    monkeypatch.setattr("foli.output._is_tty", lambda: True)


ROUTE_COLUMNS = [("ID", lambda r: r.id), ("Line", lambda r: r.short_name), ("Color", lambda r: r.color)]


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_auto_resolves_to_plain_without_color(self, tty, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_explicit_format_kept(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color()

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color()

    def test_default(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert not _should_disable_color()


class TestStreams:
    def test_data_goes_to_stdout(self, capsys):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_data("hello")
        captured = capsys.readouterr()
        assert captured.out == "hello\n"
        assert captured.err == ""

    def test_diagnostics_go_to_stderr(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.info("working")
        mgr.warning("careful")
        mgr.error("broken")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "working" in captured.err
        assert "Warning: careful" in captured.err
        assert "Error: broken" in captured.err

    def test_quiet_suppresses_info_not_errors(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden too")
        mgr.suggest("also hidden")
        mgr.error("shown")
        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "Error: shown" in err

    def test_debug_only_when_verbose(self, capsys):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("nope")
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("yes")
        err = capsys.readouterr().err
        assert "nope" not in err
        assert "[debug] yes" in err


class TestTables:
    def test_plain_table(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_table(["A", "B"], [["1", "2"], ["3", "4"]])
        assert capsys.readouterr().out == "A\tB\n1\t2\n3\t4\n"

    def test_json_table(self, capsys):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(["A", "B"], [["1", "2"]])
        assert json.loads(capsys.readouterr().out) == [{"A": "1", "B": "2"}]

    def test_rich_table_renders(self, capsys):
        mgr = OutputManager(format=OutputFormat.RICH)
        mgr.print_table(["Line"], [["15"]], title="Routes")
        out = capsys.readouterr().out
        assert "Routes" in out
        assert "15" in out


class TestRecords:
    def test_plain_uses_columns(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_records([Route(id="1", short_name="1")], ROUTE_COLUMNS)
        lines = capsys.readouterr().out.splitlines()
        assert lines == ["ID\tLine\tColor", "1\t1\t"]

    def test_json_dumps_full_records_with_feed_names(self, capsys):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_records([Stop(id="T34", name="Kauppatori", lat=60.45)], [("ID", lambda s: s.id)])
        data = json.loads(capsys.readouterr().out)
        assert data[0]["stop_id"] == "T34"
        assert data[0]["stop_name"] == "Kauppatori"
        assert data[0]["stop_lat"] == 60.45
        assert data[0]["stop_code"] is None

    def test_booleans_rendered_as_words(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_records([Route(id="1", short_name="1")], [("Bus", lambda r: r.is_bus)])
        assert capsys.readouterr().out.splitlines()[1] == "no"


class TestFormatAge:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (None, "-"),
            (0, "0s"),
            (42.7, "42s"),
            (300, "5m"),
            (3 * 3600, "3h"),
            (3 * 3600 + 600, "3h 10m"),
            (2 * 86400, "2d"),
            (2 * 86400 + 4 * 3600, "2d 4h"),
        ],
    )
    def test_format(self, seconds, expected):
        assert format_age(seconds) == expected


class TestGlobalInstance:
    def test_lazy_default(self):
        assert isinstance(get_output(), OutputManager)

    def test_set_and_reset(self):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert get_output() is not mgr

    def test_module_helpers_delegate(self, capsys):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.print_data("data")
        output_module.warning("warn")
        captured = capsys.readouterr()
        assert captured.out == "data\n"
        assert "Warning: warn" in captured.err

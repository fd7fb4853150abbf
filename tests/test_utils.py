"""Tests for squeakbuild.utils module."""

from __future__ import annotations

import io

import pytest

from squeakbuild.exceptions import ConfigurationError
from squeakbuild.utils import format_command, get_env, get_env_bool, log, parse_int_env, write_line


class TestLog:
    def test_info_level(self, capsys):
        log("INFO", "test message")
        captured = capsys.readouterr()
        assert "[INFO]" in captured.out
        assert "test message" in captured.out

    def test_debug_suppressed_by_default(self, capsys):
        log("DEBUG", "should not appear")
        captured = capsys.readouterr()
        assert captured.out == ""


class TestGetEnv:
    def test_returns_value(self, monkeypatch):
        monkeypatch.setenv("TEST_VAR", "hello")
        assert get_env("TEST_VAR") == "hello"

    def test_returns_default(self, monkeypatch):
        monkeypatch.delenv("TEST_VAR", raising=False)
        assert get_env("TEST_VAR", "fallback") == "fallback"


class TestGetEnvBool:
    @pytest.mark.parametrize("value", ["1", "true", "yes", "on", "TRUE"])
    def test_truthy_values(self, monkeypatch, value):
        monkeypatch.setenv("TEST_BOOL", value)
        assert get_env_bool("TEST_BOOL") is True

    @pytest.mark.parametrize("value", ["0", "false", "off", "random"])
    def test_falsy_values(self, monkeypatch, value):
        monkeypatch.setenv("TEST_BOOL", value)
        assert get_env_bool("TEST_BOOL") is False

    def test_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("TEST_BOOL", raising=False)
        assert get_env_bool("TEST_BOOL", True) is True


class TestParseIntEnv:
    def test_valid_value(self, monkeypatch):
        monkeypatch.setenv("MY_INT", "42")
        assert parse_int_env("MY_INT", "10") == 42

    def test_non_integer_raises(self, monkeypatch):
        monkeypatch.setenv("MY_INT", "abc")
        with pytest.raises(ConfigurationError, match="must be an integer"):
            parse_int_env("MY_INT", "10")

    def test_above_max_raises(self, monkeypatch):
        monkeypatch.setenv("MY_INT", "70000")
        with pytest.raises(ConfigurationError, match="must be <= 65535"):
            parse_int_env("MY_INT", "10", max_val=65535)


class TestFormatCommand:
    def test_quotes_arguments_with_spaces(self):
        assert format_command(["pharo", "-headless -nodisplay", "temp.image"]) == (
            "pharo '-headless -nodisplay' temp.image"
        )


class TestWriteLine:
    def test_appends_newline(self):
        sink = io.StringIO()
        write_line(sink, "Renamed image to out.image")
        assert sink.getvalue() == "Renamed image to out.image\n"

    def test_sink_without_flush(self):
        class _Sink:
            def __init__(self):
                self.parts = []

            def write(self, text):
                self.parts.append(text)

        sink = _Sink()
        write_line(sink, "x")
        assert sink.parts == ["x\n"]

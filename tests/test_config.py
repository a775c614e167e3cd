"""Tests for settings and logging setup."""

import json

import pytest
from loguru import logger

from sheetbridge.config import Settings
from sheetbridge.logging import (
    _json_formatter,
    clear_command_context,
    set_command_context,
    setup_logging,
)


class TestSettings:
    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHEETBRIDGE_TIMEOUT", "5")
        monkeypatch.setenv("SHEETBRIDGE_API_BASE", "http://localhost:8080/v4/spreadsheets/")
        monkeypatch.setenv("SHEETBRIDGE_LOG_LEVEL", "debug")
        settings = Settings()
        assert settings.timeout == 5.0
        assert settings.api_base == "http://localhost:8080/v4/spreadsheets"
        assert settings.log_level == "DEBUG"

    def test_unknown_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHEETBRIDGE_LOG_LEVEL", "chatty")
        with pytest.raises(ValueError):
            Settings()


class TestJsonLogs:
    """Tests for the JSON log formatter and command context."""

    def test_context_included(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(json_logs=True, log_level="INFO")
        set_command_context("sheets_get_values", "abc")
        try:
            logger.info("hello {name}", name="world")
        finally:
            clear_command_context()
            logger.remove()

        line = capsys.readouterr().err.strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry["message"] == "hello world"
        assert entry["command"] == "sheets_get_values"
        assert entry["spreadsheet_id"] == "abc"

    def test_braces_escaped(self) -> None:
        record = {
            "level": type("Level", (), {"name": "INFO"})(),
            "message": "{not a field}",
            "name": "x",
            "function": "f",
            "line": 1,
            "extra": {},
            "exception": None,
        }
        formatted = _json_formatter(record)
        assert "{{not a field}}" in formatted

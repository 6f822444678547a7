"""Tests for log level parsing, redaction and stream routing."""

from __future__ import annotations

import logging

import pytest

from core.errors import ConfigurationError
from core.logging import (
    ROOT_LOGGER_NAME,
    SensitiveDataFilter,
    get_logger,
    parse_log_level,
    setup_logging,
)


@pytest.mark.parametrize(
    ("name", "level"),
    [
        ("error", logging.ERROR),
        ("ERROR", logging.ERROR),
        ("warn", logging.WARNING),
        ("info", logging.INFO),
        ("debug", logging.DEBUG),
        ("panic", logging.CRITICAL),
        ("fatal", logging.CRITICAL),
    ],
)
def test_parse_log_level(name: str, level: int):
    assert parse_log_level(name) == level


def test_unknown_level():
    with pytest.raises(ConfigurationError, match="Could not parse --log-level"):
        parse_log_level("chatty")


def make_record(msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord("vault_helper.test", logging.DEBUG, __file__, 1, msg, args, None)


class TestSensitiveDataFilter:
    def test_json_body(self):
        record = make_record("Response Body: %s", '{"auth": {"client_token": "s.abc", "renewable": true}}')

        SensitiveDataFilter().filter(record)

        message = record.getMessage()
        assert "s.abc" not in message
        assert '"client_token": "[REDACTED]"' in message
        assert '"renewable": true' in message

    def test_key_value(self):
        record = make_record("login with role_id=dead-beef secret_id=ea7-beef")

        SensitiveDataFilter().filter(record)

        assert record.getMessage() == "login with role_id=[REDACTED] secret_id=[REDACTED]"

    def test_plain_messages_untouched(self):
        record = make_record("Fetch secrets from %s ...", "vault-helper/credentials")

        SensitiveDataFilter().filter(record)

        assert record.args == ("vault-helper/credentials",)


def test_logs_go_to_stderr(capsys: pytest.CaptureFixture[str]):
    setup_logging("info")

    get_logger("test").info("Token revoked successfully!")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "level=info" in captured.err
    assert "Token revoked successfully!" in captured.err


def test_level_filters_messages(capsys: pytest.CaptureFixture[str]):
    setup_logging("error")

    get_logger("test").info("hidden")
    get_logger("test").error("shown")

    captured = capsys.readouterr()
    assert "hidden" not in captured.err
    assert "shown" in captured.err


def test_setup_is_idempotent():
    setup_logging("debug")
    setup_logging("debug")

    assert len(logging.getLogger(ROOT_LOGGER_NAME).handlers) == 1

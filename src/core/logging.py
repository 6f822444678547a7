"""Logging configuration for the helper.

Logs always go to stderr so stdout carries only command results (tokens,
rendered secrets), which is what scripts and the smoke controls read.
"""

from __future__ import annotations

import logging
import re
import sys
from datetime import datetime
from pathlib import Path

from core.errors import ConfigurationError

ROOT_LOGGER_NAME = "vault_helper"

_PROGRAM = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "vault-helper"

# Mirrors the level names the helper has always accepted on --log-level.
LEVELS: dict[str, int] = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


class TextFormatter(logging.Formatter):
    """Human-readable formatter: timestamp, level, logger and source program."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().astimezone().strftime("%m/%d/%Y %H:%M:%S.%f %z")
        base = (
            f'time="{timestamp}" level={record.levelname.lower()} '
            f"logger={record.name} src={_PROGRAM} msg={record.getMessage()!r}"
        )

        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)

        return base


class SensitiveDataFilter(logging.Filter):
    """Redact credentials from log messages (debug logs include raw bodies)."""

    SENSITIVE_KEYS = (
        "client_token",
        "accessor",
        "token",
        "role_id",
        "secret_id",
        "password",
        "x-vault-token",
    )

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        lowered = message.lower()
        redacted = message
        for key in self.SENSITIVE_KEYS:
            if key in lowered:
                redacted = self._redact_value(redacted, key)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True

    def _redact_value(self, text: str, key: str) -> str:
        # key=value, key: value, 'key': 'value', "key": "value"
        patterns = [
            rf"(\b{key}\s*[=:]\s*)[^\s,}}\]]+",
            rf"('{key}'\s*:\s*)'[^']*'",
            rf'("{key}"\s*:\s*)"[^"]*"',
        ]
        for pattern in patterns:
            text = re.sub(pattern, r"\1[REDACTED]", text, flags=re.IGNORECASE)
        return text


def parse_log_level(level: str) -> int:
    try:
        return LEVELS[level.strip().lower()]
    except KeyError:
        raise ConfigurationError(
            f"Could not parse --log-level string '{level}': expected one of {', '.join(LEVELS)}"
        ) from None


def setup_logging(level: str = "error") -> logging.Logger:
    """Configure the helper logger tree; safe to call once per invocation."""

    numeric = parse_log_level(level)
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric)
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric)
    handler.setFormatter(TextFormatter())
    handler.addFilter(SensitiveDataFilter())
    logger.addHandler(handler)

    # httpx logs every request at INFO; keep it quiet unless debugging.
    logging.getLogger("httpx").setLevel(logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the helper's namespace."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

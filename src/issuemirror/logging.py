"""Structured logging for issuemirror.

Three output formats share one ``StructuredLogger`` facade:

* ``text``    - ``asctime LEVEL message`` lines for local runs
* ``json``    - one JSON document per record (structured ``extra`` kept)
* ``actions`` - GitHub Actions workflow commands (``::warning::...``) so
  messages surface as annotations in the workflow run summary
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

NOTICE = 25
logging.addLevelName(NOTICE, "NOTICE")

FORMATS = ("text", "json", "actions")
_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "NOTICE": NOTICE,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

_RESERVED = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        k: v
        for k, v in record.__dict__.items()
        if k not in _RESERVED and not k.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for k, v in _extras(record).items():
            entry.setdefault(k, v)
        return json.dumps(entry, default=str)


def escape_command_data(text: str) -> str:
    return text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class ActionsFormatter(logging.Formatter):
    """Render records as GitHub Actions workflow commands."""

    _COMMANDS = {
        logging.DEBUG: "debug",
        NOTICE: "notice",
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        command = self._COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{escape_command_data(message)}"


def default_format() -> str:
    return "actions" if os.environ.get("GITHUB_ACTIONS") == "true" else "text"


def _build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JSONFormatter()
    if fmt == "actions":
        return ActionsFormatter()
    return logging.Formatter("%(asctime)s %(levelname)s %(message)s")


class StructuredLogger:
    def __init__(
        self, name: str = "issuemirror", fmt: str | None = None, level: str = "INFO"
    ) -> None:
        fmt = fmt or default_format()
        if fmt not in FORMATS:
            raise ValueError(f"Unknown log format '{fmt}' (expected one of {FORMATS})")
        self.format = fmt
        self._logger = logging.getLogger(name)
        self._logger.setLevel(_LEVELS.get(level.upper(), logging.INFO))
        for h in list(self._logger.handlers):
            self._logger.removeHandler(h)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_build_formatter(fmt))
        self._logger.addHandler(handler)
        self._logger.propagate = False

    def debug(self, message: str, **kw: Any) -> None:
        self._logger.debug(message, extra=kw)

    def info(self, message: str, **kw: Any) -> None:
        self._logger.info(message, extra=kw)

    def notice(self, message: str, **kw: Any) -> None:
        self._logger.log(NOTICE, message, extra=kw)

    def warning(self, message: str, **kw: Any) -> None:
        self._logger.warning(message, extra=kw)

    def error(self, message: str, **kw: Any) -> None:  # noqa: D401
        self._logger.error(message, extra=kw)


_GLOBAL: StructuredLogger | None = None


def get_logger() -> StructuredLogger:
    global _GLOBAL  # noqa: PLW0603
    if _GLOBAL is None:
        _GLOBAL = StructuredLogger()
    return _GLOBAL


def configure_logging(fmt: str | None = None, level: str = "INFO") -> StructuredLogger:
    global _GLOBAL  # noqa: PLW0603
    _GLOBAL = StructuredLogger(fmt=fmt, level=level)
    return _GLOBAL


__all__ = [
    "NOTICE",
    "ActionsFormatter",
    "JSONFormatter",
    "StructuredLogger",
    "configure_logging",
    "escape_command_data",
    "get_logger",
]

"""
Logging for the MCP server.

stdout is reserved for JSON-RPC messages, so every log line goes to stderr
and, when configured, is appended to a log file as well. Lines look like::

    [2025-05-01T12:00:00.000Z] [MCP] [INFO ] Registered 9 tools
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from enum import IntEnum
from pathlib import Path

PACKAGE_LOGGER = "stripe_testing_tools"


class LogLevel(IntEnum):
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARN = logging.WARNING
    ERROR = logging.ERROR
    NONE = logging.CRITICAL + 10

    @classmethod
    def parse(cls, value: str | int | LogLevel) -> LogLevel:
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, int):
            return cls(value)
        name = value.strip().upper()
        if name == "WARNING":
            name = "WARN"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(
                f"Unknown log level: {value!r}. Expected one of DEBUG, INFO, WARN, ERROR, NONE"
            ) from None


def _level_name(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "ERROR"
    if levelno >= logging.WARNING:
        return "WARN"
    if levelno >= logging.INFO:
        return "INFO"
    return "DEBUG"


def should_log(message_level: int, current_level: int) -> bool:
    """Return True if a message at ``message_level`` passes ``current_level``."""
    if current_level >= LogLevel.NONE:
        return False
    return message_level >= current_level


def _timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_log_message(
    level: int,
    message: str,
    prefix: str = "MCP",
    include_timestamp: bool = True,
) -> str:
    timestamp = f"[{_timestamp()}] " if include_timestamp else ""
    return f"{timestamp}[{prefix}] [{_level_name(level):<5}] {message}"


class MCPLogFormatter(logging.Formatter):
    """Formats records with :func:`format_log_message`."""

    def __init__(self, prefix: str = "MCP", include_timestamp: bool = True):
        super().__init__()
        self.prefix = prefix
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return format_log_message(record.levelno, message, self.prefix, self.include_timestamp)


class MCPLevelFilter(logging.Filter):
    """Drops records that :func:`should_log` rejects for ``level``."""

    def __init__(self, level: int = LogLevel.INFO):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return should_log(record.levelno, self.level)


def setup_logger(
    level: int | str = LogLevel.INFO,
    prefix: str = "MCP",
    include_timestamp: bool = True,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Calling this again replaces the handlers installed by the previous call.

    Args:
        level: Minimum level to emit (LogLevel, stdlib level or name)
        prefix: Tag written in brackets on every line
        include_timestamp: Prepend an ISO-8601 UTC timestamp
        log_file: Optional file to append to; parent directories are created

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    close_logger()

    log_level = LogLevel.parse(level)
    formatter = MCPLogFormatter(prefix=prefix, include_timestamp=include_timestamp)
    level_filter = MCPLevelFilter(log_level)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    stream_handler.addFilter(level_filter)
    logger.addHandler(stream_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.addFilter(level_filter)
        logger.addHandler(file_handler)

    logger.setLevel(log_level)
    logger.propagate = False
    return logger


def close_logger() -> None:
    """Remove and close every handler installed by :func:`setup_logger`."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

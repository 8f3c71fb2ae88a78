"""Process-wide logging front end delegating to a pluggable logger."""

from __future__ import annotations

import enum
import sys
from typing import IO, Any


class LogLevel(enum.IntEnum):
    """How much to log; lower values log more."""

    ALL = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4
    OFF = 5


class EmptyLogger:
    """Discards every message, counting them; fatal calls still terminate."""

    level: LogLevel = LogLevel.ALL
    output: IO[Any] | None = None
    discarded: int = 0

    def set_log_level(self, level: LogLevel) -> None:
        self.level = LogLevel(level)

    def set_output(self, writer: IO[Any]) -> None:
        self.output = writer

    def _discard(self) -> None:
        self.discarded += 1

    def fatal(self, *args: Any) -> None:
        sys.exit(1)

    def fatalf(self, fmt: str, *args: Any) -> None:
        sys.exit(1)

    def error(self, *args: Any) -> None:
        self._discard()

    def errorf(self, fmt: str, *args: Any) -> None:
        self._discard()

    def warn(self, *args: Any) -> None:
        self._discard()

    def warnf(self, fmt: str, *args: Any) -> None:
        self._discard()

    def info(self, *args: Any) -> None:
        self._discard()

    def infof(self, fmt: str, *args: Any) -> None:
        self._discard()

    def debug(self, *args: Any) -> None:
        self._discard()

    def debugf(self, fmt: str, *args: Any) -> None:
        self._discard()

    def trace(self, *args: Any) -> None:
        self._discard()

    def tracef(self, fmt: str, *args: Any) -> None:
        self._discard()


_REQUIRED_METHODS = (
    "fatal",
    "fatalf",
    "error",
    "errorf",
    "warn",
    "warnf",
    "info",
    "infof",
    "debug",
    "debugf",
    "trace",
    "tracef",
    "set_log_level",
    "set_output",
)


class _Registry:
    """Holds the logger that module-level calls are sent to."""

    def __init__(self) -> None:
        self.logger: Any = EmptyLogger()


_registry = _Registry()


def fatal(*args: Any) -> None:
    _registry.logger.fatal(*args)


def fatalf(fmt: str, *args: Any) -> None:
    _registry.logger.fatalf(fmt, *args)


def error(*args: Any) -> None:
    _registry.logger.error(*args)


def errorf(fmt: str, *args: Any) -> None:
    _registry.logger.errorf(fmt, *args)


def warn(*args: Any) -> None:
    _registry.logger.warn(*args)


def warnf(fmt: str, *args: Any) -> None:
    _registry.logger.warnf(fmt, *args)


def info(*args: Any) -> None:
    _registry.logger.info(*args)


def infof(fmt: str, *args: Any) -> None:
    _registry.logger.infof(fmt, *args)


def debug(*args: Any) -> None:
    _registry.logger.debug(*args)


def debugf(fmt: str, *args: Any) -> None:
    _registry.logger.debugf(fmt, *args)


def trace(*args: Any) -> None:
    _registry.logger.trace(*args)


def tracef(fmt: str, *args: Any) -> None:
    _registry.logger.tracef(fmt, *args)


def set_log_level(level: LogLevel) -> None:
    _registry.logger.set_log_level(level)


def set_output(writer: IO[Any]) -> None:
    _registry.logger.set_output(writer)


def register_logger(logger: Any) -> None:
    """Install the logger that all module-level calls go to.

    Raises TypeError if the logger lacks any of the logging methods.
    """
    missing = [name for name in _REQUIRED_METHODS if not callable(getattr(logger, name, None))]
    if missing:
        raise TypeError(f"logger is missing methods: {', '.join(missing)}")
    _registry.logger = logger


def get_logger() -> Any:
    """Return the currently installed logger."""
    return _registry.logger
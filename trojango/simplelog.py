"""Minimal logger writing timestamped lines to standard error."""

from __future__ import annotations

import sys
import time
from typing import IO, Any

from .log import LogLevel


def _sprintf(fmt: str, args: tuple[Any, ...]) -> str:
    if not args:
        return fmt
    try:
        return fmt.replace("%v", "%s") % args
    except (TypeError, ValueError):
        return fmt + " " + " ".join(str(arg) for arg in args)


class SimpleLogger:
    """Levelled logger without colours or caller information."""

    def __init__(self, out: IO[str] | None = None) -> None:
        self._out = out
        self._level = int(LogLevel.ALL)

    def set_log_level(self, level: int) -> None:
        self._level = int(level)

    def set_output(self, writer: IO[Any]) -> None:
        """Send further messages to ``writer``."""
        self._out = writer

    def _write(self, message: str) -> None:
        if not message.endswith("\n"):
            message += "\n"
        out = self._out if self._out is not None else sys.stderr
        out.write(time.strftime("%Y/%m/%d %H:%M:%S ") + message)
        out.flush()

    def _println(self, threshold: int, args: tuple[Any, ...]) -> None:
        if self._level <= threshold:
            self._write(" ".join(str(arg) for arg in args))

    def _printf(self, threshold: int, fmt: str, args: tuple[Any, ...]) -> None:
        if self._level <= threshold:
            self._write(_sprintf(fmt, args))

    def fatal(self, *args: Any) -> None:
        self._println(LogLevel.FATAL, args)
        sys.exit(1)

    def fatalf(self, fmt: str, *args: Any) -> None:
        self._printf(LogLevel.FATAL, fmt, args)
        sys.exit(1)

    def error(self, *args: Any) -> None:
        self._println(LogLevel.ERROR, args)

    def errorf(self, fmt: str, *args: Any) -> None:
        self._printf(LogLevel.ERROR, fmt, args)

    def warn(self, *args: Any) -> None:
        self._println(LogLevel.WARN, args)

    def warnf(self, fmt: str, *args: Any) -> None:
        self._printf(LogLevel.WARN, fmt, args)

    def info(self, *args: Any) -> None:
        self._println(LogLevel.INFO, args)

    def infof(self, fmt: str, *args: Any) -> None:
        self._printf(LogLevel.INFO, fmt, args)

    def debug(self, *args: Any) -> None:
        self._println(LogLevel.ALL, args)

    def debugf(self, fmt: str, *args: Any) -> None:
        self._printf(LogLevel.ALL, fmt, args)

    def trace(self, *args: Any) -> None:
        self._println(LogLevel.ALL, args)

    def tracef(self, fmt: str, *args: Any) -> None:
        self._printf(LogLevel.ALL, fmt, args)
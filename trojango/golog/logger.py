"""Colourful levelled logger with optional timestamps and caller information."""

from __future__ import annotations

import datetime
import io
import os
import sys
import threading
from dataclasses import dataclass
from typing import IO, Any

from ..log import LogLevel
from . import colorful
from .colorful import ColorBuffer


@dataclass(frozen=True)
class Prefix:
    """Level tag in plain and coloured form; file adds the caller location."""

    plain: bytes
    color: bytes
    file: bool = False


_PLAIN_FATAL = b"[FATAL] "
_PLAIN_ERROR = b"[ERROR] "
_PLAIN_WARN = b"[WARN]  "
_PLAIN_INFO = b"[INFO]  "
_PLAIN_DEBUG = b"[DEBUG] "
_PLAIN_TRACE = b"[TRACE] "

FATAL_PREFIX = Prefix(_PLAIN_FATAL, colorful.red(_PLAIN_FATAL), True)
ERROR_PREFIX = Prefix(_PLAIN_ERROR, colorful.red(_PLAIN_ERROR), True)
WARN_PREFIX = Prefix(_PLAIN_WARN, colorful.orange(_PLAIN_WARN))
INFO_PREFIX = Prefix(_PLAIN_INFO, colorful.green(_PLAIN_INFO))
DEBUG_PREFIX = Prefix(_PLAIN_DEBUG, colorful.purple(_PLAIN_DEBUG), True)
TRACE_PREFIX = Prefix(_PLAIN_TRACE, colorful.cyan(_PLAIN_TRACE))


def _is_terminal(out: Any) -> bool:
    try:
        return bool(out.isatty())
    except (AttributeError, ValueError, OSError):
        return False


def _sprintln(args: tuple[Any, ...]) -> str:
    return " ".join(str(arg) for arg in args) + "\n"


def _sprintf(fmt: str, args: tuple[Any, ...]) -> str:
    if not args:
        return fmt
    try:
        return fmt.replace("%v", "%s") % args
    except (TypeError, ValueError):
        return fmt + " " + " ".join(str(arg) for arg in args)


class Logger:
    """Writes prefixed, optionally coloured log lines to an output stream."""

    def __init__(self, out: IO[Any] | None = None) -> None:
        self._lock = threading.RLock()
        self._out: Any = out if out is not None else sys.stdout
        self._color = _is_terminal(self._out)
        self._debug = False
        self._timestamp = True
        self._quiet = False
        self._buf = ColorBuffer()
        self._level = int(LogLevel.ALL)

    def set_log_level(self, level: int) -> None:
        with self._lock:
            self._level = int(level)

    def set_output(self, writer: IO[Any]) -> None:
        with self._lock:
            self._color = _is_terminal(writer)
            self._out = writer

    def with_color(self) -> "Logger":
        with self._lock:
            self._color = True
        return self

    def without_color(self) -> "Logger":
        with self._lock:
            self._color = False
        return self

    def with_debug(self) -> "Logger":
        with self._lock:
            self._debug = True
        return self

    def without_debug(self) -> "Logger":
        with self._lock:
            self._debug = False
        return self

    def is_debug(self) -> bool:
        with self._lock:
            return self._debug

    def with_timestamp(self) -> "Logger":
        with self._lock:
            self._timestamp = True
        return self

    def without_timestamp(self) -> "Logger":
        with self._lock:
            self._timestamp = False
        return self

    def quiet(self) -> "Logger":
        with self._lock:
            self._quiet = True
        return self

    def no_quiet(self) -> "Logger":
        with self._lock:
            self._quiet = False
        return self

    def is_quiet(self) -> bool:
        with self._lock:
            return self._quiet

    def output(self, depth: int, prefix: Prefix, data: str) -> None:
        """Write one log line; depth counts frames between the caller and the level method."""
        if self.is_quiet():
            return
        now = datetime.datetime.now()
        fn = file = ""
        line = 0
        if prefix.file:
            try:
                frame = sys._getframe(depth + 2)
                file = os.path.basename(frame.f_code.co_filename)
                fn = frame.f_code.co_name
                line = frame.f_lineno
            except ValueError:
                file, fn, line = "<unknown file>", "<unknown function>", 0
        with self._lock:
            buf = self._buf
            buf.reset()
            buf.append(prefix.color if self._color else prefix.plain)
            if self._timestamp:
                if self._color:
                    buf.blue()
                buf.append_int(now.year, 4)
                buf.append_byte(ord("/"))
                buf.append_int(now.month, 2)
                buf.append_byte(ord("/"))
                buf.append_int(now.day, 2)
                buf.append_byte(ord(" "))
                buf.append_int(now.hour, 2)
                buf.append_byte(ord(":"))
                buf.append_int(now.minute, 2)
                buf.append_byte(ord(":"))
                buf.append_int(now.second, 2)
                buf.append_byte(ord(" "))
                if self._color:
                    buf.off()
            if prefix.file:
                if self._color:
                    buf.orange()
                buf.append(fn.encode())
                buf.append_byte(ord(":"))
                buf.append(file.encode())
                buf.append_byte(ord(":"))
                buf.append_int(line, 0)
                buf.append_byte(ord(" "))
                if self._color:
                    buf.off()
            buf.append(data.encode())
            if not data.endswith("\n"):
                buf.append_byte(ord("\n"))
            payload = buf.to_bytes()
            if isinstance(self._out, io.TextIOBase):
                self._out.write(payload.decode("utf-8", "replace"))
            else:
                self._out.write(payload)
            flush = getattr(self._out, "flush", None)
            if flush is not None:
                flush()

    def _enabled(self, threshold: int) -> bool:
        return self._level <= threshold

    def fatal(self, *args: Any) -> None:
        if self._enabled(LogLevel.FATAL):
            self.output(1, FATAL_PREFIX, _sprintln(args))
        sys.exit(1)

    def fatalf(self, fmt: str, *args: Any) -> None:
        if self._enabled(LogLevel.FATAL):
            self.output(1, FATAL_PREFIX, _sprintf(fmt, args))
        sys.exit(1)

    def error(self, *args: Any) -> None:
        if self._enabled(LogLevel.ERROR):
            self.output(1, ERROR_PREFIX, _sprintln(args))

    def errorf(self, fmt: str, *args: Any) -> None:
        if self._enabled(LogLevel.ERROR):
            self.output(1, ERROR_PREFIX, _sprintf(fmt, args))

    def warn(self, *args: Any) -> None:
        if self._enabled(LogLevel.WARN):
            self.output(1, WARN_PREFIX, _sprintln(args))

    def warnf(self, fmt: str, *args: Any) -> None:
        if self._enabled(LogLevel.WARN):
            self.output(1, WARN_PREFIX, _sprintf(fmt, args))

    def info(self, *args: Any) -> None:
        if self._enabled(LogLevel.INFO):
            self.output(1, INFO_PREFIX, _sprintln(args))

    def infof(self, fmt: str, *args: Any) -> None:
        if self._enabled(LogLevel.INFO):
            self.output(1, INFO_PREFIX, _sprintf(fmt, args))

    def debug(self, *args: Any) -> None:
        if self._level == LogLevel.ALL:
            self.output(1, DEBUG_PREFIX, _sprintln(args))

    def debugf(self, fmt: str, *args: Any) -> None:
        if self._level == LogLevel.ALL:
            self.output(1, DEBUG_PREFIX, _sprintf(fmt, args))

    def trace(self, *args: Any) -> None:
        if self._level == LogLevel.ALL:
            self.output(1, TRACE_PREFIX, _sprintln(args))

    def tracef(self, fmt: str, *args: Any) -> None:
        if self._level == LogLevel.ALL:
            self.output(1, TRACE_PREFIX, _sprintf(fmt, args))
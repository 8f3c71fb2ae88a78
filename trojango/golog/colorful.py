"""ANSI colour helpers for log output; colours are only emitted on Linux."""

from __future__ import annotations

import sys

from .buffer import Buffer

_ENABLED = sys.platform.startswith("linux")


def _code(sequence: bytes) -> bytes:
    return sequence if _ENABLED else b""


COLOR_OFF = _code(b"\033[0m")
COLOR_RED = _code(b"\033[0;31m")
COLOR_GREEN = _code(b"\033[0;32m")
COLOR_ORANGE = _code(b"\033[0;33m")
COLOR_BLUE = _code(b"\033[0;34m")
COLOR_PURPLE = _code(b"\033[0;35m")
COLOR_CYAN = _code(b"\033[0;36m")
COLOR_GRAY = _code(b"\033[0;37m")


class ColorBuffer(Buffer):
    """Buffer that can append colour switch sequences."""

    def off(self) -> None:
        self.append(COLOR_OFF)

    def red(self) -> None:
        self.append(COLOR_RED)

    def green(self) -> None:
        self.append(COLOR_GREEN)

    def orange(self) -> None:
        self.append(COLOR_ORANGE)

    def blue(self) -> None:
        self.append(COLOR_BLUE)

    def purple(self) -> None:
        self.append(COLOR_PURPLE)

    def cyan(self) -> None:
        self.append(COLOR_CYAN)

    def gray(self) -> None:
        self.append(COLOR_GRAY)


def _mix(data: bytes, color: bytes) -> bytes:
    return color + bytes(data) + COLOR_OFF


def red(data: bytes) -> bytes:
    return _mix(data, COLOR_RED)


def green(data: bytes) -> bytes:
    return _mix(data, COLOR_GREEN)


def orange(data: bytes) -> bytes:
    return _mix(data, COLOR_ORANGE)


def blue(data: bytes) -> bytes:
    return _mix(data, COLOR_BLUE)


def purple(data: bytes) -> bytes:
    return _mix(data, COLOR_PURPLE)


def cyan(data: bytes) -> bytes:
    return _mix(data, COLOR_CYAN)


def gray(data: bytes) -> bytes:
    return _mix(data, COLOR_GRAY)
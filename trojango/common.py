"""Shared helpers: hashing, asset paths, traffic formatting, networking."""

from __future__ import annotations

import hashlib
import os
import socket
import struct
import sys
import threading
import urllib.error
import urllib.parse
import urllib.request
from typing import BinaryIO

from . import log
from .errors import TrojanError

KIB = 1024
MIB = KIB * 1024
GIB = MIB * 1024

ASSET_ENV = "TROJAN_GO_LOCATION_ASSET"


def sha224_string(password: str) -> str:
    """Return the lowercase hex SHA-224 digest of a password."""
    return hashlib.sha224(password.encode()).hexdigest()


def get_program_dir() -> str:
    """Return the absolute directory of the running program."""
    argv0 = sys.argv[0] if sys.argv else ""
    return os.path.abspath(os.path.dirname(argv0))


def get_asset_location(file: str) -> str:
    """Resolve an asset file name to an absolute path."""
    if os.path.isabs(file):
        return file
    location = os.environ.get(ASSET_ENV, "")
    if location:
        abs_path = os.path.abspath(location)
        log.debugf("env set: %s=%s", ASSET_ENV, abs_path)
        return os.path.join(abs_path, file)
    return os.path.join(get_program_dir(), file)


def _float32(value: int) -> float:
    return struct.unpack("f", struct.pack("f", float(value)))[0]


def human_friendly_traffic(num_bytes: int) -> str:
    """Format a byte count with a binary unit."""
    if num_bytes <= KIB:
        return f"{num_bytes} B"
    value = _float32(num_bytes)
    if num_bytes <= MIB:
        return f"{value / KIB:.2f} KiB"
    if num_bytes <= GIB:
        return f"{value / MIB:.2f} MiB"
    return f"{value / GIB:.2f} GiB"


def pick_port(network: str, host: str) -> int:
    """Find a free port on host for "tcp" or "udp"; 0 if none was found."""
    kinds = {"tcp": socket.SOCK_STREAM, "udp": socket.SOCK_DGRAM}
    kind = kinds.get(network)
    if kind is None:
        return 0
    for _ in range(16):
        try:
            infos = socket.getaddrinfo(host or None, 0, type=kind, flags=socket.AI_PASSIVE)
            family, _, _, _, address = infos[0]
            with socket.socket(family, kind) as sock:
                sock.bind(address)
                return sock.getsockname()[1]
        except OSError:
            continue
    return 0


def write_all_bytes(writer: BinaryIO, payload: bytes) -> None:
    """Write the whole payload, looping over short writes."""
    view = memoryview(payload)
    while view:
        written = writer.write(view)
        if written is None:
            written = len(view)
        if written <= 0:
            raise TrojanError("writer accepted no bytes")
        view = view[written:]


def write_file(path: str, payload: bytes) -> None:
    """Create or truncate a file and write the payload to it."""
    with open(path, "wb") as writer:
        write_all_bytes(writer, payload)


def fetch_http_content(target: str) -> bytes:
    """Fetch a URL over HTTP(S) and return the body of a 200 response."""
    try:
        parsed = urllib.parse.urlsplit(target)
    except ValueError as exc:
        raise TrojanError(f"invalid URL: {target}") from exc
    if parsed.scheme.lower() not in ("http", "https"):
        raise TrojanError(f"invalid scheme: {parsed.scheme}")

    request = urllib.request.Request(target, method="GET", headers={"Connection": "close"})
    try:
        with urllib.request.urlopen(request, timeout=30) as response:
            if response.status != 200:
                raise TrojanError(f"unexpected HTTP status code: {response.status}")
            try:
                return response.read()
            except OSError as exc:
                raise TrojanError("failed to read HTTP response") from exc
    except urllib.error.HTTPError as exc:
        raise TrojanError(f"unexpected HTTP status code: {exc.code}") from exc
    except OSError as exc:
        raise TrojanError(f"failed to dial to {target}") from exc


class Notifier:
    """Coalescing change signal: many signals collapse into one pending wake-up."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending = False

    def signal(self) -> None:
        """Mark a change as pending; never blocks."""
        with self._cond:
            self._pending = True
            self._cond.notify()

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for a pending change and consume it; False on timeout."""
        with self._cond:
            if not self._cond.wait_for(lambda: self._pending, timeout):
                return False
            self._pending = False
            return True
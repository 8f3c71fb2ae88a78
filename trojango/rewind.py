"""Readers that can replay buffered bytes, and a writer that coalesces early writes."""

from __future__ import annotations

import socket
import threading
from typing import Any

from . import log


class RewindReader:
    """Wraps a byte source and can replay what was read while buffering was on."""

    def __init__(self, raw: Any) -> None:
        self._raw_read = getattr(raw, "recv", None) or raw.read
        self._lock = threading.Lock()
        self._buf = bytearray()
        self._read_idx = 0
        self._rewound = False
        self._buffering = False
        self._buffer_size = 0

    def read(self, size: int) -> bytes:
        """Read up to size bytes; an empty result means end of stream."""
        with self._lock:
            if self._rewound:
                if len(self._buf) > self._read_idx:
                    chunk = bytes(self._buf[self._read_idx : self._read_idx + size])
                    self._read_idx += len(chunk)
                    return chunk
                self._rewound = False
            data = self._raw_read(size)
            if self._buffering:
                self._buf += data
                if len(self._buf) > self._buffer_size * 2:
                    log.debug("read too many bytes!")
            return data

    def read_byte(self) -> int:
        """Read a single byte; raises EOFError at end of stream."""
        data = self.read(1)
        if not data:
            raise EOFError("end of stream")
        return data[0]

    def discard(self, n: int) -> int:
        """Skip up to n bytes and return how many were skipped."""
        discarded = 0
        while discarded < n:
            chunk = self.read(min(128, n - discarded))
            if not chunk:
                break
            discarded += len(chunk)
        return discarded

    def rewind(self) -> None:
        """Replay the buffered bytes from the start on the next reads."""
        with self._lock:
            if self._buffer_size == 0:
                raise RuntimeError("no buffer")
            self._rewound = True
            self._read_idx = 0

    def stop_buffering(self) -> None:
        """Stop recording new reads; already buffered bytes stay replayable."""
        with self._lock:
            self._buffering = False

    def set_buffer_size(self, size: int) -> None:
        """Start buffering with the given size, or disable buffering with 0."""
        with self._lock:
            if size == 0:
                if not self._buffering:
                    raise RuntimeError("reader is disabled")
                self._buffering = False
                self._buf = bytearray()
                self._read_idx = 0
                self._buffer_size = 0
            else:
                if self._buffering:
                    raise RuntimeError("reader is buffering")
                self._buffering = True
                self._read_idx = 0
                self._buffer_size = size
                self._buf = bytearray()


class RewindConn(RewindReader):
    """A socket whose incoming bytes can be rewound."""

    def __init__(self, conn: socket.socket) -> None:
        super().__init__(conn)
        self.conn = conn

    recv = RewindReader.read

    def sendall(self, data: bytes) -> None:
        self.conn.sendall(data)

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "RewindConn":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class StickyWriter:
    """Collects the first max_buffered writes and sends them as one."""

    def __init__(self, raw: Any, max_buffered: int = 0) -> None:
        self._raw = raw
        self.max_buffered = max_buffered
        self._pending = bytearray()

    def write(self, data: bytes) -> int:
        if self.max_buffered > 0:
            self.max_buffered -= 1
            self._pending += data
            if self.max_buffered != 0:
                return len(data)
            pending = bytes(self._pending)
            self._pending = bytearray()
            self._raw.write(pending)
            return len(data)
        return self._raw.write(data)
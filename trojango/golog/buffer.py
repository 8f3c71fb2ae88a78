"""Growable byte buffer used to assemble log lines."""

from __future__ import annotations


class Buffer:
    """A reusable, append-only byte buffer."""

    def __init__(self) -> None:
        self._data = bytearray()

    def __len__(self) -> int:
        return len(self._data)

    def __bytes__(self) -> bytes:
        return bytes(self._data)

    def reset(self) -> None:
        """Empty the buffer."""
        self._data.clear()

    def append(self, data: bytes) -> None:
        self._data += data

    def append_byte(self, value: int | bytes) -> None:
        if isinstance(value, (bytes, bytearray)):
            if len(value) != 1:
                raise ValueError("expected a single byte")
            self._data += value
        else:
            self._data.append(value)

    def append_int(self, val: int, width: int) -> None:
        """Append a non-negative integer in decimal, zero-padded to width."""
        if val < 0:
            raise ValueError("negative values are not supported")
        self._data += str(val).zfill(width).encode("ascii")

    def to_bytes(self) -> bytes:
        return bytes(self._data)
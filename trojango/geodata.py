"""Locate a single GeoIP or GeoSite entry in a geodata file without parsing it all.

The file is a GeoIPList or GeoSiteList message; each entry is a length-delimited
field 1 whose own first field is the country code, also length-delimited.
"""

from __future__ import annotations

from typing import BinaryIO

from .errors import TrojanError


class GeodataError(TrojanError):
    """The geodata file could not be read or is malformed."""


class CodeNotFoundError(TrojanError):
    """No entry with the requested code exists in the file."""

    def __init__(self, info: str = "code not found") -> None:
        super().__init__(info)


_TAG_FIELD1_BYTES = 10
_MAX_VARINT_BYTES = 10


def _consume_varint(data: bytes) -> tuple[int, int]:
    value = 0
    for index, byte in enumerate(data[:_MAX_VARINT_BYTES]):
        if index == _MAX_VARINT_BYTES - 1 and byte > 1:
            break
        value |= (byte & 0x7F) << (7 * index)
        if byte < 0x80:
            return value, index + 1
    raise GeodataError("invalid geodata varint length")


def _equal_fold(data: bytes, code: str) -> bool:
    return data.decode("utf-8", "replace").casefold() == code.casefold()


def emit_bytes(stream: BinaryIO, code: str) -> bytes:
    """Return the serialized entry whose code matches, ignoring case."""
    count = 1
    inner = False
    pending = bytearray()
    advance = 1
    entry_len = code_len = len_prefix = 0

    while True:
        try:
            data = stream.read(advance)
        except OSError as exc:
            raise GeodataError("failed to read bytes") from exc
        if advance > 0 and not data:
            raise CodeNotFoundError()
        if len(data) != advance:
            raise GeodataError("failed to read expected length of bytes")

        if count in (1, 3):
            if data[0] != _TAG_FIELD1_BYTES:
                raise GeodataError("invalid geodata file")
            advance = 1
            count += 1
        elif count in (2, 4):
            pending += data
            if data[0] > 127:
                advance = 1
                continue
            value, size = _consume_varint(bytes(pending))
            pending.clear()
            if not inner:
                inner = True
                entry_len = value
                advance = 1
            else:
                inner = False
                code_len = value
                len_prefix = size
                advance = code_len
            count += 1
        elif count == 5:
            if _equal_fold(data, code):
                count += 1
                stream.seek(-(1 + len_prefix + code_len), 1)
                advance = entry_len
            else:
                count = 1
                stream.seek(entry_len - code_len - len_prefix - 1, 1)
                advance = 1
        else:
            return bytes(data)


def decode(filename: str, code: str) -> bytes:
    """Open a geodata file and return the serialized entry for code."""
    with open(filename, "rb") as stream:
        return emit_bytes(stream, code)
"""Byte buffer with independent read and write cursors."""

from __future__ import annotations

import struct
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

_UINT8 = struct.Struct("<B")
_UINT16 = struct.Struct("<H")
_UINT32 = struct.Struct("<I")


class BitStreamError(Exception):
    """Base exception for codec-level faults."""


class TruncatedBuffer(BitStreamError):
    """Raised when a read needs more bytes than remain in the buffer."""


class InvalidSlice(BitStreamError):
    """Raised when slicing from an offset outside the buffer."""


class ReadOnlyBuffer(BitStreamError):
    """Raised when writing to a stream built from received data."""


class BitStream:
    """Append-only writer and cursor-based reader over one byte buffer.

    A stream created empty is writable. A stream created from received bytes
    is read-only; only its read offset moves. All multi-byte integers are
    little-endian with no padding or alignment.
    """

    def __init__(self, data: bytes | bytearray | None = None) -> None:
        if data is None:
            self._buffer: bytes | bytearray = bytearray()
            self._writable = True
        else:
            self._buffer = bytes(data)
            self._writable = False
        self._write_offset = len(self._buffer)
        self._read_offset = 0

    @classmethod
    def from_bytes(cls, data: bytes | bytearray) -> BitStream:
        """Create a read-only stream over a received datagram."""
        return cls(data)

    @property
    def length(self) -> int:
        """Number of bytes in the buffer."""
        return self._write_offset

    @property
    def read_offset(self) -> int:
        return self._read_offset

    @property
    def remaining(self) -> int:
        """Number of bytes not yet consumed by reads."""
        return self._write_offset - self._read_offset

    def get_buffer(self) -> bytes:
        """Return the accumulated bytes."""
        return bytes(self._buffer)

    # --- write side ---

    def write_uint8(self, value: int) -> None:
        """Append one byte. Raises struct.error if ``value`` is outside 0-255."""
        self._append(_UINT8.pack(value))

    def write_uint16(self, value: int) -> None:
        self._append(_UINT16.pack(value))

    def write_uint32(self, value: int) -> None:
        self._append(_UINT32.pack(value))

    def write_bytes(self, data: bytes) -> None:
        self._append(data)

    def write_string(self, text: str) -> None:
        """Append ASCII text as raw bytes, with no length prefix or terminator."""
        self._append(text.encode("ascii"))

    def _append(self, data: bytes) -> None:
        if not self._writable:
            msg = "Cannot write to a read-only stream"
            raise ReadOnlyBuffer(msg)
        self._buffer.extend(data)  # type: ignore[union-attr]
        self._write_offset += len(data)

    # --- read side ---

    def read_uint8(self) -> int:
        return self._take(1)[0]

    def read_uint16(self) -> int:
        return _UINT16.unpack(self._take(2))[0]

    def read_uint32(self) -> int:
        return _UINT32.unpack(self._take(4))[0]

    def read_bool(self) -> bool:
        return self.read_uint8() != 0

    def read_bytes(self, length: int) -> bytes:
        """Read exactly ``length`` raw bytes."""
        return self._take(length)

    def read_string(
        self, length: int, decode: Callable[[bytes], str] | None = None
    ) -> str | bytes:
        """Read ``length`` bytes and hand them to ``decode``.

        The stream never picks an encoding. Without a decoder the raw bytes
        are returned unchanged.
        """
        raw = self._take(length)
        if decode is None:
            return raw
        return decode(raw)

    def slice(self, offset: int) -> BitStream:
        """Return a new reader over the content from ``offset`` onward.

        The new stream has its own read cursor starting at 0.
        """
        if offset < 0 or offset > self._write_offset:
            msg = f"Cannot slice at offset {offset} of a {self._write_offset}-byte buffer"
            raise InvalidSlice(msg)
        return BitStream(self._buffer[offset : self._write_offset])

    def _take(self, size: int) -> bytes:
        if size < 0:
            msg = f"Cannot read a negative number of bytes ({size})"
            raise TruncatedBuffer(msg)
        if self._read_offset + size > self._write_offset:
            msg = (
                f"Read of {size} bytes at offset {self._read_offset} "
                f"exceeds buffer length {self._write_offset}"
            )
            raise TruncatedBuffer(msg)
        chunk = bytes(self._buffer[self._read_offset : self._read_offset + size])
        self._read_offset += size
        return chunk

"""Sequential little-endian reads over an in-memory buffer."""

from __future__ import annotations

import struct
from typing import Union

Buffer = Union[bytes, bytearray, memoryview]

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<L")
_U64 = struct.Struct("<Q")
_I8 = struct.Struct("<b")
_I16 = struct.Struct("<h")
_I32 = struct.Struct("<l")
_I64 = struct.Struct("<q")


class TruncatedError(ValueError):
    """Raised when a read would run past the end of the buffer."""


class Cursor:
    """Read fixed-width fields from ``buffer`` starting at ``offset``.

    Every read advances the offset by exactly the width read.  Callers are
    expected to check :meth:`remaining` before decoding a group of fields;
    a read past the end raises :class:`TruncatedError` rather than
    returning short data.
    """

    def __init__(self, buffer: Buffer, offset: int = 0) -> None:
        self._buffer = buffer
        self._offset = offset

    @property
    def offset(self) -> int:
        return self._offset

    def remaining(self) -> int:
        return max(len(self._buffer) - self._offset, 0)

    def seek(self, position: int) -> None:
        self._offset = position

    def skip(self, count: int) -> None:
        self._offset += count

    def read_bytes(self, count: int) -> bytes:
        self._require(count)
        start = self._offset
        self._offset += count
        return bytes(self._buffer[start : self._offset])  # noqa: E203

    def _unpack(self, fmt: struct.Struct) -> int:
        self._require(fmt.size)
        (value,) = fmt.unpack_from(self._buffer, self._offset)
        self._offset += fmt.size
        return value

    def _require(self, count: int) -> None:
        if count < 0 or self.remaining() < count:
            raise TruncatedError(
                f"need {count} bytes at offset {self._offset}, "
                f"{self.remaining()} available"
            )

    def read_u8(self) -> int:
        return self._unpack(_U8)

    def read_u16(self) -> int:
        return self._unpack(_U16)

    def read_u32(self) -> int:
        return self._unpack(_U32)

    def read_u64(self) -> int:
        return self._unpack(_U64)

    def read_i8(self) -> int:
        return self._unpack(_I8)

    def read_i16(self) -> int:
        return self._unpack(_I16)

    def read_i32(self) -> int:
        return self._unpack(_I32)

    def read_i64(self) -> int:
        return self._unpack(_I64)

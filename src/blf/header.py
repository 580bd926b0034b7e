"""File header parsing."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Sequence

from .constants import FILE_HEADER_FIXED_SIZE, FILE_SIGNATURE
from .cursor import Buffer, Cursor
from .model import FileDescriptor

logger = logging.getLogger(__name__)


class InvalidFileHeaderError(ValueError):
    """Raised when the input does not start with a valid BLF file header."""


def systemtime_to_timestamp(fields: Sequence[int]) -> float:
    """Convert a Windows SYSTEMTIME tuple to seconds since the epoch (UTC).

    ``fields`` is ``(year, month, day_of_week, day, hour, minute, second,
    millisecond)``.  The day of week is ignored.  Raises ``ValueError`` for
    dates the calendar cannot represent.
    """
    year, month, _day_of_week, day, hour, minute, second, millisecond = fields
    moment = datetime(
        year,
        month,
        day,
        hour,
        minute,
        second,
        millisecond * 1000,
        tzinfo=timezone.utc,
    )
    return moment.timestamp()


def _read_systemtime(cursor: Cursor) -> List[int]:
    return [cursor.read_u16() for _ in range(8)]


def _convert(fields: Sequence[int], name: str, diagnostics: List[str]) -> float:
    try:
        return systemtime_to_timestamp(fields)
    except ValueError:
        message = f"Invalid {name} time in file header: {tuple(fields)}"
        logger.warning(message)
        diagnostics.append(message)
        return 0.0


def parse_file_header(buffer: Buffer, diagnostics: List[str]) -> FileDescriptor:
    """Parse the file header at the start of ``buffer``.

    Raises :class:`InvalidFileHeaderError` if the signature does not match
    or the buffer is too short to hold the header fields.  Invalid start or
    stop times degrade to ``0.0`` and are reported in ``diagnostics``.
    """
    if len(buffer) < FILE_HEADER_FIXED_SIZE:
        raise InvalidFileHeaderError(
            f"invalid file header: {len(buffer)} bytes is too short"
        )
    cursor = Cursor(buffer)
    signature = cursor.read_bytes(4)
    if signature != FILE_SIGNATURE:
        raise InvalidFileHeaderError(
            f"invalid file header: expected signature {FILE_SIGNATURE!r}, "
            f"got {signature!r}"
        )

    header_size = cursor.read_u32()
    cursor.skip(8)  # application id and version numbers
    file_size = cursor.read_u64()
    uncompressed_size = cursor.read_u64()
    object_count = cursor.read_u32()
    cursor.skip(4)  # objects read
    start_fields = _read_systemtime(cursor)
    stop_fields = _read_systemtime(cursor)

    if header_size < FILE_HEADER_FIXED_SIZE:
        message = (
            f"Declared header size {header_size} is smaller than "
            f"{FILE_HEADER_FIXED_SIZE}; scanning from offset {FILE_HEADER_FIXED_SIZE}"
        )
        logger.warning(message)
        diagnostics.append(message)
        header_size = FILE_HEADER_FIXED_SIZE

    return FileDescriptor(
        signature=signature,
        header_size=header_size,
        file_size=file_size,
        uncompressed_size=uncompressed_size,
        object_count=object_count,
        start_timestamp=_convert(start_fields, "start", diagnostics),
        stop_timestamp=_convert(stop_fields, "stop", diagnostics),
    )

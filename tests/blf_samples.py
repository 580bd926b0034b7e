"""Build small synthetic BLF files for the test-suite."""

from __future__ import annotations

import struct
import zlib
from typing import Iterable, Sequence

FILE_HEADER_SIZE = 144
START_TIME = (2024, 3, 5, 14, 10, 20, 30, 500)
STOP_TIME = (2024, 3, 5, 14, 10, 21, 0, 0)


def file_header(
    object_count: int = 0,
    *,
    header_size: int = FILE_HEADER_SIZE,
    signature: bytes = b"LOGG",
    start: Sequence[int] = START_TIME,
    stop: Sequence[int] = STOP_TIME,
    file_size: int = 0,
) -> bytes:
    head = struct.pack(
        "<4sL8xQQLL8H8H",
        signature,
        header_size,
        file_size,
        0,
        object_count,
        object_count,
        *start,
        *stop,
    )
    return head + bytes(max(header_size - len(head), 0))


def obj(object_type: int, payload: bytes, *, header_size: int = 16) -> bytes:
    """Object with only the 16-byte base header."""
    return struct.pack("<4sHHLL", b"LOBJ", header_size, 1, 16 + len(payload), object_type) + payload


def record(
    object_type: int, payload: bytes, ticks: int = 0, *, ten_mics: bool = False
) -> bytes:
    """Leaf object with a 32-byte V1 header carrying a timestamp."""
    flags = 0x1 if ten_mics else 0x2
    size = 32 + len(payload)
    return struct.pack(
        "<4sHHLLLHHQ", b"LOBJ", 32, 1, size, object_type, flags, 0, 0, ticks
    ) + payload


def pad(data: bytes) -> bytes:
    return data + bytes((4 - len(data) % 4) % 4)


def stream(objects: Iterable[bytes]) -> bytes:
    return b"".join(pad(o) for o in objects)


def can_message(
    can_id: int,
    data: bytes,
    *,
    channel: int = 1,
    flags: int = 0,
    dlc: int | None = None,
    ticks: int = 0,
    ten_mics: bool = False,
    object_type: int = 1,
) -> bytes:
    payload = struct.pack(
        "<HBBL8s", channel, flags, len(data) if dlc is None else dlc, can_id, data
    )
    return record(object_type, payload, ticks, ten_mics=ten_mics)


def can_error_frame(
    can_id: int, data: bytes, *, channel: int = 1, dlc: int | None = None, ticks: int = 0
) -> bytes:
    payload = struct.pack(
        "<HHLBBBBL4s8s",
        channel,
        0,
        0xFFFF,
        0,
        0,
        len(data) if dlc is None else dlc,
        0,
        can_id,
        b"\xee" * 4,
        data,
    )
    return record(73, payload, ticks)


def can_fd_message(
    can_id: int,
    data: bytes,
    *,
    channel: int = 1,
    flags: int = 0,
    fd_flags: int = 0x1,
    dlc: int = 15,
    valid_bytes: int | None = None,
    ticks: int = 0,
) -> bytes:
    payload = struct.pack(
        "<HBBLLLBB5x64s",
        channel,
        flags,
        dlc,
        can_id,
        0,
        0,
        fd_flags,
        len(data) if valid_bytes is None else valid_bytes,
        data,
    )
    return record(100, payload, ticks)


def can_fd_message_64(
    can_id: int,
    data: bytes,
    *,
    channel: int = 1,
    flags: int = 0x1000,
    direction: int = 0,
    dlc: int = 15,
    valid_bytes: int | None = None,
    ext_data_offset: int = 0,
    vendor: bytes = b"",
    ticks: int = 0,
) -> bytes:
    fixed = struct.pack(
        "<BBBBLLLLLLLHBBL",
        channel,
        dlc,
        len(data) if valid_bytes is None else valid_bytes,
        0,
        can_id,
        0,
        flags,
        500000,
        2000000,
        0,
        0,
        0,
        direction,
        ext_data_offset,
        0,
    )
    return record(101, fixed + vendor + data, ticks)


def container(inner: bytes, *, method: int = 0, raw_deflate: bool = False) -> bytes:
    if method == 2:
        if raw_deflate:
            compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
            body = compressor.compress(inner) + compressor.flush()
        else:
            body = zlib.compress(inner)
    else:
        body = inner
    return obj(10, struct.pack("<H6xL4x", method, len(inner)) + body)


def blf_file(containers: Iterable[bytes], **header_kwargs) -> bytes:
    parts = list(containers)
    return file_header(len(parts), **header_kwargs) + stream(parts)

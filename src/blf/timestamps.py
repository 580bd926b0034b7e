"""Object timestamp resolution."""

from __future__ import annotations

import struct

from .constants import (
    NANOS_PER_TICK,
    OBJECT_HEADER_BASE_SIZE,
    OBJECT_HEADER_V1_SIZE,
    TEN_MICS_PER_TICK,
    TIME_TEN_MICS,
)
from .cursor import Buffer

# flags, client index, object version, ticks
_OBJ_HEADER_V1 = struct.Struct("<LHHQ")


def resolve_timestamp(buffer: Buffer, offset: int = 0) -> float:
    """Return the relative timestamp in seconds of the object at ``offset``.

    The extended header directly after the base header carries a flags
    word and a 64-bit tick count.  Bit 0 of the flags selects 10 µs ticks,
    otherwise ticks are nanoseconds.  A buffer too short to hold the
    extended header yields ``0.0``.
    """
    start = offset + OBJECT_HEADER_BASE_SIZE
    if offset < 0 or len(buffer) < start + OBJECT_HEADER_V1_SIZE:
        return 0.0
    flags, _client_index, _object_version, ticks = _OBJ_HEADER_V1.unpack_from(
        buffer, start
    )
    if flags & TIME_TEN_MICS:
        return ticks * TEN_MICS_PER_TICK
    return ticks * NANOS_PER_TICK


def absolute_timestamp(relative: float, start_timestamp: float) -> float:
    return start_timestamp + relative

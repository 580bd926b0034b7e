"""Binary layout constants for Vector BLF log files."""

from __future__ import annotations

from enum import IntEnum

FILE_SIGNATURE = b"LOGG"
OBJECT_SIGNATURE = b"LOBJ"

# signature, header size, 8 version bytes, file size, uncompressed size,
# object count, objects read and two SYSTEMTIME structures
FILE_HEADER_FIXED_SIZE = 72
OBJECT_HEADER_BASE_SIZE = 16
# flags, client index, object version and the 64-bit tick count
OBJECT_HEADER_V1_SIZE = 16
CONTAINER_HEADER_SIZE = 16

OBJECT_ALIGNMENT = 4
MIN_ADVANCE = 4


class ObjectType(IntEnum):
    """Object type codes found in the object header."""

    CAN_MESSAGE = 1
    LOG_CONTAINER = 10
    CAN_ERROR_EXT = 73
    CAN_MESSAGE2 = 86
    GLOBAL_MARKER = 96
    CAN_FD_MESSAGE = 100
    CAN_FD_MESSAGE_64 = 101


class Compression(IntEnum):
    """Container compression methods."""

    NONE = 0
    ZLIB_DEFLATE = 2


# arbitration id
CAN_MSG_EXT = 0x80000000
CAN_ID_MASK = 0x1FFFFFFF

# classic and FD message flags byte
DIR = 0x01
REMOTE_FLAG = 0x10

# CAN_FD_MESSAGE fd flags byte
FD_EDL = 0x01
FD_BRS = 0x02
FD_ESI = 0x04

# CAN_FD_MESSAGE_64 flags word
FD64_REMOTE_FLAG = 0x0010
FD64_EDL = 0x1000
FD64_BRS = 0x2000
FD64_ESI = 0x4000

# object header flags
TIME_TEN_MICS = 0x00000001

TEN_MICS_PER_TICK = 1e-5
NANOS_PER_TICK = 1e-9

CAN_MAX_DATA = 8
CAN_FD_MAX_DATA = 64

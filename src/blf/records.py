"""Decoders for the supported CAN record shapes.

Each decoder receives the complete object buffer (header and payload),
its parsed :class:`ObjectHeader` and the resolved timestamps.  It returns
a :class:`BusMessage`, or ``None`` when the record is too short to hold
its fixed fields.  Payload lengths are always capped by the protocol
maximum and by the bytes actually present in ``buffer``.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from .constants import (
    CAN_FD_MAX_DATA,
    CAN_ID_MASK,
    CAN_MAX_DATA,
    CAN_MSG_EXT,
    DIR,
    FD64_BRS,
    FD64_EDL,
    FD64_ESI,
    FD64_REMOTE_FLAG,
    FD_BRS,
    FD_EDL,
    FD_ESI,
    REMOTE_FLAG,
    ObjectType,
)
from .cursor import Buffer, Cursor
from .model import BusMessage, ObjectHeader

logger = logging.getLogger(__name__)

RecordDecoder = Callable[[Buffer, ObjectHeader, float, float], Optional[BusMessage]]

# channel, flags, dlc, id
CAN_MSG_FIXED_SIZE = 8
# channel, length, flags, ecc, position, dlc, frame length, id, ext flags
CAN_ERROR_EXT_FIXED_SIZE = 20
# channel, flags, dlc, id, frame length, bit count, fd flags, valid bytes, reserved
CAN_FD_MSG_FIXED_SIZE = 23
# channel .. crc of CAN_FD_MESSAGE_64
CAN_FD_MSG_64_FIXED_SIZE = 40


def normalize_channel(raw: int) -> int:
    """Convert the one-based on-disk channel (0 = unset) to zero-based."""
    return raw - 1 if raw > 0 else 0


def normalize_id(raw: int) -> int:
    return raw & CAN_ID_MASK


def is_extended(raw: int) -> bool:
    return bool(raw & CAN_MSG_EXT)


def _payload(buffer: Buffer, start: int, declared: int, limit: int) -> bytes:
    available = max(len(buffer) - start, 0)
    length = max(min(declared, limit, available), 0)
    return bytes(buffer[start : start + length])  # noqa: E203


def _fixed_fields(buffer: Buffer, header: ObjectHeader, size: int) -> Optional[Cursor]:
    cursor = Cursor(buffer, header.header_size)
    if cursor.remaining() < size:
        logger.debug(
            "Skipping object type %d: %d payload bytes, need %d",
            header.object_type,
            cursor.remaining(),
            size,
        )
        return None
    return cursor


def decode_can_message(
    buffer: Buffer, header: ObjectHeader, relative: float, absolute: float
) -> Optional[BusMessage]:
    """Decode ``CAN_MESSAGE`` and ``CAN_MESSAGE2`` records."""
    cursor = _fixed_fields(buffer, header, CAN_MSG_FIXED_SIZE)
    if cursor is None:
        return None
    channel = cursor.read_u16()
    flags = cursor.read_u8()
    dlc = cursor.read_u8()
    can_id = cursor.read_u32()
    return BusMessage(
        relative_timestamp=relative,
        absolute_timestamp=absolute,
        arbitration_id=normalize_id(can_id),
        is_extended_id=is_extended(can_id),
        is_remote_frame=bool(flags & REMOTE_FLAG),
        is_rx=not flags & DIR,
        channel=normalize_channel(channel),
        dlc=dlc,
        data=_payload(buffer, cursor.offset, dlc, CAN_MAX_DATA),
    )


def decode_can_error_frame(
    buffer: Buffer, header: ObjectHeader, relative: float, absolute: float
) -> Optional[BusMessage]:
    """Decode ``CAN_ERROR_EXT`` records.

    Error frames are always reported as received, never remote.
    """
    cursor = _fixed_fields(buffer, header, CAN_ERROR_EXT_FIXED_SIZE)
    if cursor is None:
        return None
    channel = cursor.read_u16()
    cursor.skip(2)  # length
    cursor.skip(4)  # flags
    cursor.skip(1)  # ecc
    cursor.skip(1)  # position
    dlc = cursor.read_u8()
    cursor.skip(1)  # frame length, low byte
    can_id = cursor.read_u32()
    cursor.skip(4)  # frame length, ext flags, padding
    return BusMessage(
        relative_timestamp=relative,
        absolute_timestamp=absolute,
        arbitration_id=normalize_id(can_id),
        is_extended_id=is_extended(can_id),
        is_remote_frame=False,
        is_rx=True,
        channel=normalize_channel(channel),
        dlc=dlc,
        data=_payload(buffer, cursor.offset, dlc, CAN_MAX_DATA),
        is_error_frame=True,
    )


def decode_can_fd_message(
    buffer: Buffer, header: ObjectHeader, relative: float, absolute: float
) -> Optional[BusMessage]:
    """Decode ``CAN_FD_MESSAGE`` records."""
    cursor = _fixed_fields(buffer, header, CAN_FD_MSG_FIXED_SIZE)
    if cursor is None:
        return None
    channel = cursor.read_u16()
    flags = cursor.read_u8()
    dlc = cursor.read_u8()
    can_id = cursor.read_u32()
    cursor.skip(4)  # frame length
    cursor.skip(4)  # bit count
    fd_flags = cursor.read_u8()
    valid_bytes = cursor.read_u8()
    cursor.skip(5)  # reserved
    return BusMessage(
        relative_timestamp=relative,
        absolute_timestamp=absolute,
        arbitration_id=normalize_id(can_id),
        is_extended_id=is_extended(can_id),
        is_remote_frame=bool(flags & REMOTE_FLAG),
        is_rx=not flags & DIR,
        channel=normalize_channel(channel),
        dlc=dlc,
        data=_payload(buffer, cursor.offset, valid_bytes, CAN_FD_MAX_DATA),
        is_fd=bool(fd_flags & FD_EDL),
        bitrate_switch=bool(fd_flags & FD_BRS),
        error_state_indicator=bool(fd_flags & FD_ESI),
    )


def decode_can_fd_message_64(
    buffer: Buffer, header: ObjectHeader, relative: float, absolute: float
) -> Optional[BusMessage]:
    """Decode ``CAN_FD_MESSAGE_64`` records.

    A non-zero ``ext_data_offset`` moves the payload to
    ``header_size + ext_data_offset``, past any vendor fields.
    """
    cursor = _fixed_fields(buffer, header, CAN_FD_MSG_64_FIXED_SIZE)
    if cursor is None:
        return None
    channel = cursor.read_u8()
    dlc = cursor.read_u8()
    valid_bytes = cursor.read_u8()
    cursor.skip(1)  # tx count
    can_id = cursor.read_u32()
    cursor.skip(4)  # frame length
    flags = cursor.read_u32()
    cursor.skip(4)  # arbitration phase bitrate
    cursor.skip(4)  # data phase bitrate
    cursor.skip(4)  # time offset of BRS field
    cursor.skip(4)  # time offset of CRC delimiter
    cursor.skip(2)  # bit count
    direction = cursor.read_u8()
    ext_data_offset = cursor.read_u8()
    cursor.skip(4)  # crc

    # TODO: check against captures whether some tools count ext_data_offset
    # from the start of the object rather than from header_size.
    if ext_data_offset:
        data_start = header.header_size + ext_data_offset
    else:
        data_start = cursor.offset
    return BusMessage(
        relative_timestamp=relative,
        absolute_timestamp=absolute,
        arbitration_id=normalize_id(can_id),
        is_extended_id=is_extended(can_id),
        is_remote_frame=bool(flags & FD64_REMOTE_FLAG),
        is_rx=not direction & DIR,
        channel=normalize_channel(channel),
        dlc=dlc,
        data=_payload(buffer, data_start, valid_bytes, CAN_FD_MAX_DATA),
        is_fd=bool(flags & FD64_EDL),
        bitrate_switch=bool(flags & FD64_BRS),
        error_state_indicator=bool(flags & FD64_ESI),
    )


DECODERS: Mapping[int, RecordDecoder] = MappingProxyType(
    {
        ObjectType.CAN_MESSAGE: decode_can_message,
        ObjectType.CAN_MESSAGE2: decode_can_message,
        ObjectType.CAN_ERROR_EXT: decode_can_error_frame,
        ObjectType.CAN_FD_MESSAGE: decode_can_fd_message,
        ObjectType.CAN_FD_MESSAGE_64: decode_can_fd_message_64,
    }
)


def decode_record(
    buffer: Buffer, header: ObjectHeader, relative: float, absolute: float
) -> Optional[BusMessage]:
    """Dispatch ``buffer`` to the decoder for its object type."""
    decoder = DECODERS.get(header.object_type)
    if decoder is None:
        logger.debug("Ignoring object type %d", header.object_type)
        return None
    return decoder(buffer, header, relative, absolute)

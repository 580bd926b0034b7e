"""Data structures produced by the BLF decoder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, NamedTuple, Optional

import can


@dataclass(frozen=True)
class FileDescriptor:
    """Top-level file header of a BLF log."""

    signature: bytes
    header_size: int
    file_size: int
    uncompressed_size: int
    object_count: int
    start_timestamp: float
    stop_timestamp: float


@dataclass(frozen=True)
class ObjectHeader:
    """Base header preceding every object in the record stream."""

    signature: bytes
    header_size: int
    header_version: int
    object_size: int
    object_type: int


@dataclass(frozen=True)
class BusMessage:
    """A decoded CAN or CAN FD frame.

    ``arbitration_id`` is always masked to 29 bits; whether the frame used
    an extended identifier is kept in ``is_extended_id``.  ``channel`` is
    zero-based.
    """

    relative_timestamp: float
    absolute_timestamp: float
    arbitration_id: int
    is_extended_id: bool
    is_remote_frame: bool
    is_rx: bool
    channel: int
    dlc: int
    data: bytes
    is_fd: bool = False
    bitrate_switch: bool = False
    error_state_indicator: bool = False
    is_error_frame: bool = False

    @property
    def frame_type(self) -> str:
        if self.is_error_frame:
            return "ERR"
        return "FD" if self.is_fd else "STD"

    @property
    def direction(self) -> str:
        return "RX" if self.is_rx else "TX"

    def to_can_message(self) -> can.Message:
        """Return the frame as a :class:`can.Message` stamped with the absolute time.

        python-can counts ``dlc`` in bytes, so the DLC code of an FD frame
        is expanded to its payload length.
        """
        return can.Message(
            timestamp=self.absolute_timestamp,
            arbitration_id=self.arbitration_id,
            is_extended_id=self.is_extended_id,
            is_remote_frame=self.is_remote_frame,
            is_error_frame=self.is_error_frame,
            channel=self.channel,
            dlc=can.util.dlc2len(self.dlc) if self.is_fd else self.dlc,
            data=self.data,
            is_fd=self.is_fd,
            is_rx=self.is_rx,
            bitrate_switch=self.bitrate_switch,
            error_state_indicator=self.error_state_indicator,
        )


class ParseResult(NamedTuple):
    """Outcome of a parse: messages, diagnostics and the file header."""

    messages: List[BusMessage]
    diagnostics: List[str]
    header: Optional[FileDescriptor]

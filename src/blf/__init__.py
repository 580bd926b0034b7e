"""Decoder for Vector BLF CAN/CAN FD log files."""

from .constants import ObjectType
from .cursor import Cursor, TruncatedError
from .header import InvalidFileHeaderError, parse_file_header
from .model import BusMessage, FileDescriptor, ObjectHeader, ParseResult
from .reader import BLFReader, iter_messages, parse

__all__ = [
    "BLFReader",
    "BusMessage",
    "Cursor",
    "FileDescriptor",
    "InvalidFileHeaderError",
    "ObjectHeader",
    "ObjectType",
    "ParseResult",
    "TruncatedError",
    "iter_messages",
    "parse",
    "parse_file_header",
]

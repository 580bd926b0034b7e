"""Top-level BLF decoding."""

from __future__ import annotations

import logging
import os
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import IO, Deque, Iterable, Iterator, List, Optional, Tuple, Union

from .constants import ObjectType
from .container import decompress_container
from .cursor import Buffer
from .framing import iter_objects
from .header import parse_file_header
from .model import BusMessage, FileDescriptor, ParseResult
from .records import decode_record
from .timestamps import absolute_timestamp, resolve_timestamp

logger = logging.getLogger(__name__)

Source = Union[str, "os.PathLike[str]", bytes, bytearray, memoryview, IO[bytes]]


def read_source(source: Source) -> bytes:
    """Return the full contents of ``source``.

    ``source`` may be a path, a bytes-like object or a binary file object.
    ``OSError`` from opening or reading a path propagates.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if hasattr(source, "read"):
        return source.read()  # type: ignore[union-attr]
    with open(source, "rb") as f:
        return f.read()


class BLFReader:
    """Decode the CAN traffic of a BLF log.

    Parameters
    ----------
    source:
        Path to a ``.blf`` file, its raw bytes, or a binary file object.
    max_workers:
        When greater than one, containers are decompressed on a thread
        pool of this size.  Messages and diagnostics come out in the same
        order as a sequential run.
    """

    def __init__(self, source: Source, *, max_workers: Optional[int] = None) -> None:
        self.source = source
        self.max_workers = max_workers
        self.header: Optional[FileDescriptor] = None
        self.messages: List[BusMessage] = []
        self.errors: List[str] = []

    def parse(self) -> ParseResult:
        """Decode the whole source.

        Raises :class:`~blf.header.InvalidFileHeaderError` when the file
        signature is wrong and ``OSError`` when the source cannot be read.
        Every other problem is appended to the diagnostics and decoding
        carries on.
        """
        self.header = None
        self.messages = []
        self.errors = []
        for msg in self.iter_messages():
            self.messages.append(msg)
        logger.info(
            "Decoded %d messages with %d diagnostics",
            len(self.messages),
            len(self.errors),
        )
        return ParseResult(self.messages, self.errors, self.header)

    def iter_messages(self) -> Iterator[BusMessage]:
        """Yield messages in stream order; diagnostics collect in :attr:`errors`."""
        data = read_source(self.source)
        header = parse_file_header(data, self.errors)
        self.header = header
        logger.debug(
            "File header: size=%d objects=%d start=%f",
            header.header_size,
            header.object_count,
            header.start_timestamp,
        )

        for inner in self._containers(data, header.header_size):
            if inner is not None:
                yield from self._decode_objects(inner, header.start_timestamp)

    def _container_payloads(
        self, data: bytes, start: int
    ) -> Iterator[Tuple[List[str], Optional[bytes]]]:
        """Yield each container payload with the framing diagnostics before it."""
        pending: List[str] = []
        for offset, obj in iter_objects(data, start, pending):
            if obj.object_type != ObjectType.LOG_CONTAINER:
                logger.debug(
                    "Skipping top-level object type %d at offset %d",
                    obj.object_type,
                    offset,
                )
                continue
            begin = offset + obj.header_size
            yield pending[:], data[begin : offset + obj.object_size]  # noqa: E203
            pending.clear()
        yield pending, None

    def _containers(self, data: bytes, start: int) -> Iterator[Optional[bytes]]:
        payloads = self._container_payloads(data, start)
        if not self.max_workers or self.max_workers <= 1:
            for diagnostics, payload in payloads:
                self.errors.extend(diagnostics)
                if payload is not None:
                    yield decompress_container(payload, self.errors)
            return

        # Keep at most two containers per worker in flight.
        window: Deque[Future] = deque()
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            for item in payloads:
                window.append(pool.submit(_decompress_isolated, item))
                if len(window) >= self.max_workers * 2:
                    yield self._collect(window.popleft())
            while window:
                yield self._collect(window.popleft())

    def _collect(self, future: Future) -> Optional[bytes]:
        framing, (inner, inflate_diagnostics) = future.result()
        self.errors.extend(framing)
        self.errors.extend(inflate_diagnostics)
        return inner

    def _decode_objects(self, data: bytes, start_timestamp: float) -> Iterator[BusMessage]:
        for offset, obj in iter_objects(data, 0, self.errors, label="record"):
            relative = resolve_timestamp(data, offset)
            record = data[offset : offset + obj.object_size]  # noqa: E203
            msg = decode_record(
                record, obj, relative, absolute_timestamp(relative, start_timestamp)
            )
            if msg is not None:
                yield msg


def _decompress_isolated(
    item: Tuple[List[str], Optional[bytes]]
) -> Tuple[List[str], Tuple[Optional[bytes], List[str]]]:
    framing, payload = item
    diagnostics: List[str] = []
    if payload is None:
        return framing, (None, diagnostics)
    return framing, (decompress_container(payload, diagnostics), diagnostics)


def parse(source: Source, *, max_workers: Optional[int] = None) -> ParseResult:
    """Decode ``source`` and return ``(messages, diagnostics, header)``."""
    return BLFReader(source, max_workers=max_workers).parse()


def iter_messages(source: Source) -> Iterable[BusMessage]:
    """Lazily yield the messages of ``source``, discarding diagnostics."""
    return BLFReader(source).iter_messages()

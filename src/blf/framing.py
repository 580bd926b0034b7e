"""Walk the ``LOBJ`` object stream of a BLF buffer."""

from __future__ import annotations

import logging
import struct
from typing import Iterator, List, Optional, Tuple

from .constants import (
    MIN_ADVANCE,
    OBJECT_ALIGNMENT,
    OBJECT_HEADER_BASE_SIZE,
    OBJECT_SIGNATURE,
)
from .cursor import Buffer
from .model import ObjectHeader

logger = logging.getLogger(__name__)

# signature, header size, header version, object size, object type
_OBJ_HEADER_BASE = struct.Struct("<4sHHLL")


def read_object_header(buffer: Buffer, offset: int = 0) -> Optional[ObjectHeader]:
    """Return the object header at ``offset`` or ``None`` if there is none.

    ``None`` is returned when fewer than 16 bytes remain or the signature
    does not match.  The header is returned even if its object size is
    below the minimum; :func:`iter_objects` decides what to do with it.
    """
    if offset < 0 or len(buffer) - offset < OBJECT_HEADER_BASE_SIZE:
        return None
    signature, header_size, header_version, object_size, object_type = (
        _OBJ_HEADER_BASE.unpack_from(buffer, offset)
    )
    if signature != OBJECT_SIGNATURE:
        return None
    return ObjectHeader(
        signature=signature,
        header_size=header_size,
        header_version=header_version,
        object_size=object_size,
        object_type=object_type,
    )


def padding(object_size: int) -> int:
    """Bytes of padding following an object of ``object_size`` bytes."""
    return (OBJECT_ALIGNMENT - object_size % OBJECT_ALIGNMENT) % OBJECT_ALIGNMENT


def next_offset(offset: int, object_size: int) -> int:
    """Offset of the object following the one at ``offset``.

    The result is always strictly greater than ``offset``.
    """
    following = offset + object_size
    following += padding(following)
    if following <= offset:
        following = offset + MIN_ADVANCE
    return following


def _report(diagnostics: List[str], message: str) -> None:
    logger.warning(message)
    diagnostics.append(message)


def iter_objects(
    buffer: Buffer, start: int, diagnostics: List[str], *, label: str = "object"
) -> Iterator[Tuple[int, ObjectHeader]]:
    """Yield ``(offset, header)`` for every object in ``buffer`` from ``start``.

    Lost synchronisation is recovered by scanning forward for the next
    object signature.  Objects smaller than the base header are stepped
    over four bytes at a time.  Objects whose declared size runs past the
    end of ``buffer`` are still yielded and reported as truncated.
    Anomalies are appended to ``diagnostics``; ``label`` names the stream
    in those messages.
    """
    if isinstance(buffer, memoryview):
        buffer = buffer.tobytes()
    length = len(buffer)
    offset = start
    while length - offset >= OBJECT_HEADER_BASE_SIZE:
        if buffer[offset : offset + 4] != OBJECT_SIGNATURE:  # noqa: E203
            found = buffer.find(OBJECT_SIGNATURE, offset + 1)
            if found == -1:
                _report(
                    diagnostics,
                    f"No {label} signature found after offset {offset}; "
                    f"{length - offset} bytes ignored",
                )
                return
            _report(
                diagnostics,
                f"Lost {label} sync at offset {offset}; resynchronized at {found}",
            )
            offset = found
            continue

        header = read_object_header(buffer, offset)
        if header is None:  # pragma: no cover - signature checked above
            return
        if header.object_size < OBJECT_HEADER_BASE_SIZE:
            _report(
                diagnostics,
                f"Unreadable {label} header at offset {offset}: "
                f"object size {header.object_size} is below {OBJECT_HEADER_BASE_SIZE}",
            )
            offset += MIN_ADVANCE
            continue

        if offset + header.object_size > length:
            _report(
                diagnostics,
                f"Truncated {label} at offset {offset}: declared "
                f"{header.object_size} bytes, {length - offset} available",
            )

        yield offset, header
        offset = next_offset(offset, header.object_size)

"""Log container decompression."""

from __future__ import annotations

import logging
import struct
import zlib
from typing import List, Optional

from .constants import CONTAINER_HEADER_SIZE, Compression
from .cursor import Buffer

logger = logging.getLogger(__name__)

# compression method, reserved, uncompressed size, reserved
_CONTAINER_HEADER = struct.Struct("<H6xL4x")


def inflate(body: bytes) -> bytes:
    """Inflate a zlib stream, falling back to a raw deflate stream.

    Raises ``zlib.error`` from the first attempt if both fail.
    """
    try:
        return zlib.decompress(body)
    except zlib.error as exc:
        try:
            return zlib.decompress(body, -zlib.MAX_WBITS)
        except zlib.error:
            raise exc


def inflate_partial(body: bytes) -> bytes:
    """Return whatever output a truncated zlib or raw deflate stream yields."""
    for wbits in (zlib.MAX_WBITS, -zlib.MAX_WBITS):
        try:
            data = zlib.decompressobj(wbits).decompress(body)
        except zlib.error:
            continue
        if data:
            return data
    return b""


def decompress_container(payload: Buffer, diagnostics: List[str]) -> Optional[bytes]:
    """Return the inner object stream of a container payload.

    ``payload`` is the container object without its object header.
    Returns ``None`` and records a diagnostic when the container cannot be
    unpacked; the caller carries on with the next object.
    """
    if len(payload) < CONTAINER_HEADER_SIZE:
        message = (
            f"Container too short: {len(payload)} bytes, "
            f"need at least {CONTAINER_HEADER_SIZE}"
        )
        logger.warning(message)
        diagnostics.append(message)
        return None

    method, uncompressed_size = _CONTAINER_HEADER.unpack_from(payload, 0)
    body = bytes(payload[CONTAINER_HEADER_SIZE:])

    if method == Compression.NONE:
        return body
    if method == Compression.ZLIB_DEFLATE:
        try:
            data = inflate(body)
        except zlib.error as exc:
            data = inflate_partial(body)
            if not data:
                message = f"Container decompression failed: {exc}"
                logger.warning(message)
                diagnostics.append(message)
                return None
            message = (
                f"Container stream truncated ({exc}); "
                f"recovered {len(data)} of {uncompressed_size} bytes"
            )
            logger.warning(message)
            diagnostics.append(message)
            return data
        if len(data) != uncompressed_size:
            logger.debug(
                "Container inflated to %d bytes, header declares %d",
                len(data),
                uncompressed_size,
            )
        return data

    message = f"Unknown compression method: {method}"
    logger.warning(message)
    diagnostics.append(message)
    return None

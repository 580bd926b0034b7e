"""Utilities for rendering decoded BLF messages."""
from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from blf import BusMessage, FileDescriptor

CSV_FIELDS = ["i", "t", "id", "type", "dir", "ch", "dlc", "data", "flags"]


def format_id(msg: BusMessage) -> str:
    if msg.is_extended_id:
        return f"0x{msg.arbitration_id:08X}"
    return f"{msg.arbitration_id:03X}"


def format_data(data: bytes) -> str:
    return " ".join(f"{b:02X}" for b in data)


def format_flags(msg: BusMessage) -> str:
    flags = []
    if msg.is_extended_id:
        flags.append("EXT")
    if msg.is_remote_frame:
        flags.append("RTR")
    if msg.bitrate_switch:
        flags.append("BRS")
    if msg.error_state_indicator:
        flags.append("ESI")
    return " ".join(flags)


def format_row(msg: BusMessage, index: int = 0) -> Dict[str, Any]:
    """Return the display fields of ``msg`` as a flat dictionary.

    Parameters
    ----------
    msg:
        Decoded message.
    index:
        Position of the message in the sequence being displayed.
    """
    return {
        "i": index,
        "t": f"{msg.relative_timestamp:.7f}",
        "id": format_id(msg),
        "rawId": msg.arbitration_id,
        "type": msg.frame_type,
        "dir": msg.direction,
        "ch": msg.channel,
        "dlc": msg.dlc,
        "data": format_data(msg.data),
        "flags": format_flags(msg),
        "ext": msg.is_extended_id,
        "rtr": msg.is_remote_frame,
        "brs": msg.bitrate_switch,
        "esi": msg.error_state_indicator,
        "err": msg.is_error_frame,
    }


def serialize_message(msg: BusMessage, fmt: str, index: int = 0) -> str:
    """Serialize a decoded message.

    Parameters
    ----------
    msg:
        Decoded message.
    fmt:
        Serialization format: ``"text"``, ``"json"`` or ``"csv"``.
    index:
        Row number written alongside the message.
    """
    row = format_row(msg, index)
    if fmt == "json":
        return json.dumps(row)
    if fmt == "csv":
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow([row[key] for key in CSV_FIELDS])
        return output.getvalue().strip()
    if fmt == "text":
        line = (
            f"{row['i']:>6} {row['t']:>14} {row['id']:>10} {row['type']:<3} "
            f"{row['dir']} ch={row['ch']} dlc={row['dlc']:<2} {row['data']}"
        )
        if row["flags"]:
            line += f" [{row['flags']}]"
        return line
    raise ValueError(f"Unknown format: {fmt}")


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def summarize(
    messages: Iterable[BusMessage], header: Optional[FileDescriptor] = None
) -> Dict[str, Any]:
    """Count messages by direction and frame type."""
    total = rx = fd = err = 0
    ids = set()
    channels = set()
    for msg in messages:
        total += 1
        rx += msg.is_rx
        fd += msg.is_fd
        err += msg.is_error_frame
        ids.add(msg.arbitration_id)
        channels.add(msg.channel)
    summary: Dict[str, Any] = {
        "total": total,
        "rx": rx,
        "tx": total - rx,
        "fd": fd,
        "errors": err,
        "unique_ids": len(ids),
        "channels": sorted(channels),
    }
    if header is not None:
        summary["start"] = _iso(header.start_timestamp)
        summary["stop"] = _iso(header.stop_timestamp)
        summary["object_count"] = header.object_count
    return summary

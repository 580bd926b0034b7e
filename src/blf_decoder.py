#!/usr/bin/env python3
"""Decode BLF log files into CAN frames.

This module provides a small API and command-line interface around the
:mod:`blf` decoder.  Decoded frames can be printed as text, JSON or CSV,
summarised, or exported to any log format python-can can write.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Iterable, Optional, TextIO

import can

from blf import BusMessage, InvalidFileHeaderError, ParseResult, parse
from metrics import record_parse, record_parse_failure, set_output_file
from serialization import CSV_FIELDS, serialize_message, summarize

DEFAULT_MAX_DIAGNOSTICS = 50

logger = logging.getLogger(__name__)


def decode_blf(blf_path: str, *, workers: Optional[int] = None) -> ParseResult:
    """Decode ``blf_path`` and update the process metrics.

    Parameters
    ----------
    blf_path:
        Path to the BLF log file.
    workers:
        Number of threads used to decompress containers.
    """
    try:
        result = parse(blf_path, max_workers=workers)
    except (InvalidFileHeaderError, OSError):
        record_parse_failure()
        raise
    record_parse(result)
    return result


def export_messages(messages: Iterable[BusMessage], path: str) -> int:
    """Write ``messages`` to ``path`` with the python-can writer for its suffix."""
    count = 0
    writer = can.Logger(path)
    try:
        for msg in messages:
            writer.on_message_received(msg.to_can_message())
            count += 1
    finally:
        writer.stop()
    return count


def load_config(path: Optional[str]) -> dict[str, Any]:
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except Exception:
        print(f"Failed to load config file: {path}", file=sys.stderr)
        return {}


def _setup_logging(level_name: str, log_path: Optional[str]) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_path:
        handlers.insert(
            0, RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=5)
        )
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s: %(message)s",
        handlers=handlers,
    )


def _print_rows(messages: Iterable[BusMessage], fmt: str, out: TextIO) -> None:
    if fmt == "csv":
        print(",".join(CSV_FIELDS), file=out)
    for index, msg in enumerate(messages):
        print(serialize_message(msg, fmt, index), file=out)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Decode a Vector BLF log file")
    parser.add_argument("blf", help="Path to BLF log file")
    parser.add_argument(
        "--format", choices=["text", "json", "csv"], help="Row output format"
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print message counts instead of individual frames",
    )
    parser.add_argument(
        "--export", help="Write frames to this file (.asc, .csv, .log, .blf, ...)"
    )
    parser.add_argument(
        "--max-diagnostics",
        type=int,
        help=f"Diagnostics to print (default {DEFAULT_MAX_DIAGNOSTICS})",
    )
    parser.add_argument(
        "--workers", type=int, help="Threads used to decompress containers"
    )
    parser.add_argument("--config", help="Path to JSON configuration file")
    parser.add_argument("--log", dest="log_path", help="Path to log file")
    parser.add_argument("--log-level", help="Logging level (e.g. INFO, DEBUG)")
    parser.add_argument("--metrics-file", help="Write decode counters to this file")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    _setup_logging(args.log_level or config.get("log_level", "INFO"), args.log_path)

    metrics_file = args.metrics_file or config.get("metrics_file")
    if metrics_file:
        set_output_file(metrics_file)
    fmt = args.format or config.get("format", "text")
    workers = args.workers or config.get("workers")
    max_diagnostics = args.max_diagnostics
    if max_diagnostics is None:
        max_diagnostics = config.get("max_diagnostics", DEFAULT_MAX_DIAGNOSTICS)

    try:
        messages, diagnostics, header = decode_blf(args.blf, workers=workers)
    except InvalidFileHeaderError as exc:
        logger.error("%s: %s", args.blf, exc)
        return 1
    except OSError as exc:
        logger.error("Cannot read %s: %s", args.blf, exc)
        return 1

    if args.summary:
        print(json.dumps(summarize(messages, header), indent=2))
    else:
        _print_rows(messages, fmt, sys.stdout)

    if args.export:
        count = export_messages(messages, args.export)
        logger.info("Exported %d frames to %s", count, args.export)

    for line in diagnostics[:max_diagnostics]:
        print(f"warning: {line}", file=sys.stderr)
    if len(diagnostics) > max_diagnostics:
        print(
            f"warning: {len(diagnostics) - max_diagnostics} more diagnostics omitted",
            file=sys.stderr,
        )
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())

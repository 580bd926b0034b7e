"""Simple in-process counters for the BLF command-line tool."""

from __future__ import annotations

import json
import threading
from typing import Dict, Optional

from blf import ParseResult

_metrics: Dict[str, int] = {
    "files_parsed": 0,
    "parse_failures": 0,
    "messages_decoded": 0,
    "diagnostics": 0,
}

_lock = threading.Lock()
_output_file: Optional[str] = None


def get_metrics() -> Dict[str, int]:
    """Return a snapshot of the current metrics."""
    with _lock:
        return dict(_metrics)


def reset_metrics() -> None:
    """Reset all counters to zero."""
    with _lock:
        for key in _metrics:
            _metrics[key] = 0
        _write()


def set_output_file(path: str | None) -> None:
    """Write metrics to ``path`` whenever they change."""
    global _output_file
    with _lock:
        _output_file = path
        _write()


def record_parse(result: ParseResult) -> None:
    with _lock:
        _metrics["files_parsed"] += 1
        _metrics["messages_decoded"] += len(result.messages)
        _metrics["diagnostics"] += len(result.diagnostics)
        _write()


def record_parse_failure() -> None:
    with _lock:
        _metrics["parse_failures"] += 1
        _write()


def _write() -> None:
    if _output_file:
        with open(_output_file, "w", encoding="utf-8") as f:
            json.dump(_metrics, f)

import csv
import json
import sys
from pathlib import Path

import can

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from blf_decoder import decode_blf, export_messages, main  # noqa: E402
from blf_samples import blf_file, can_fd_message, can_message, container, stream  # noqa: E402
from metrics import get_metrics, reset_metrics  # noqa: E402


def _write_sample(tmp_path):
    inner = stream(
        [
            can_message(0x123, b"\xaa\xbb", ticks=1000),
            can_fd_message(0x80000000 | 0x1ABCDE, bytes(12), fd_flags=0x3, ticks=2000),
        ]
    )
    path = tmp_path / "sample.blf"
    path.write_bytes(blf_file([container(inner, method=2)]))
    return path


def test_decode_blf_first_frame(tmp_path):
    reset_metrics()
    messages, diagnostics, header = decode_blf(str(_write_sample(tmp_path)))
    assert messages[0].arbitration_id == 0x123
    assert messages[1].is_extended_id
    assert diagnostics == []
    assert get_metrics()["messages_decoded"] == 2


def test_main_prints_json_rows(tmp_path, capsys):
    assert main([str(_write_sample(tmp_path)), "--format", "json"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    rows = [json.loads(line) for line in lines]
    assert [row["id"] for row in rows] == ["123", "0x001ABCDE"]
    assert rows[1]["flags"] == "EXT BRS"


def test_main_summary(tmp_path, capsys):
    assert main([str(_write_sample(tmp_path)), "--summary"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["total"] == 2
    assert summary["fd"] == 1
    assert summary["start"].startswith("2024-03-14T10:20:30")


def test_main_uses_config_and_writes_metrics(tmp_path, capsys):
    config = tmp_path / "config.json"
    stats = tmp_path / "stats.json"
    config.write_text(json.dumps({"format": "csv", "metrics_file": str(stats)}))
    reset_metrics()
    assert main([str(_write_sample(tmp_path)), "--config", str(config)]) == 0
    out = capsys.readouterr().out
    rows = list(csv.reader(out.strip().splitlines()))
    assert rows[0][0] == "i"
    assert len(rows) == 3
    assert json.loads(stats.read_text())["files_parsed"] == 1


def test_main_rejects_invalid_file(tmp_path):
    path = tmp_path / "bad.blf"
    path.write_bytes(b"NOPE" + bytes(200))
    assert main([str(path)]) == 1
    assert main([str(tmp_path / "missing.blf")]) == 1


def test_main_caps_diagnostics(tmp_path, capsys):
    containers = [container(stream([can_message(i, b"")]), method=7) for i in range(5)]
    path = tmp_path / "noisy.blf"
    path.write_bytes(blf_file(containers))
    assert main([str(path), "--max-diagnostics", "2"]) == 0
    err = capsys.readouterr().err
    assert err.count("warning: Unknown compression method") == 2
    assert "3 more diagnostics omitted" in err


def test_export_through_python_can(tmp_path):
    messages, _, _ = decode_blf(str(_write_sample(tmp_path)))
    out = tmp_path / "frames.csv"
    assert export_messages(messages, str(out)) == 2
    lines = out.read_text().strip().splitlines()
    assert len(lines) == 3


def test_export_fd_frame_keeps_payload_length(tmp_path):
    inner = stream([can_fd_message(0x80000000 | 0x1ABCDE, bytes(range(64)), dlc=15)])
    path = tmp_path / "fd.blf"
    path.write_bytes(blf_file([container(inner)]))
    messages, _, _ = decode_blf(str(path))
    assert messages[0].dlc == 15

    out = tmp_path / "exported.blf"
    assert export_messages(messages, str(out)) == 1
    read_back = list(can.BLFReader(str(out)))
    assert len(read_back) == 1
    assert read_back[0].dlc == 64
    assert bytes(read_back[0].data) == bytes(range(64))
    assert read_back[0].is_fd

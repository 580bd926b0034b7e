import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from blf.timestamps import absolute_timestamp, resolve_timestamp  # noqa: E402
from blf_samples import can_message  # noqa: E402


@pytest.mark.parametrize("ticks", [0, 1, 123456, 2**40 + 7])
def test_ten_microsecond_ticks(ticks):
    data = can_message(0x1, b"", ticks=ticks, ten_mics=True)
    assert resolve_timestamp(data) == pytest.approx(ticks * 1e-5)


@pytest.mark.parametrize("ticks", [0, 1, 1_500_000_000, 2**50])
def test_nanosecond_ticks(ticks):
    data = can_message(0x1, b"", ticks=ticks)
    assert resolve_timestamp(data) == pytest.approx(ticks * 1e-9)


def test_offset_into_buffer():
    data = b"\x00" * 12 + can_message(0x1, b"", ticks=250_000, ten_mics=True)
    assert resolve_timestamp(data, 12) == pytest.approx(2.5)


def test_short_buffer_defaults_to_zero():
    data = can_message(0x1, b"", ticks=99)
    assert resolve_timestamp(data[:31]) == 0.0


def test_absolute_adds_start():
    assert absolute_timestamp(1.25, 1_700_000_000.0) == pytest.approx(1_700_000_001.25)

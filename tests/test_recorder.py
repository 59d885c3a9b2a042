"""Tests for session recording to .nmea and .csv files."""

import csv
import time
from datetime import time as time_of_day

import pytest

from nmeaview.core.data_models import FixState, SatelliteState
from nmeaview.core.recorder import (RecordingThread, SATELLITE_FIELDS, FIX_FIELDS, safe_prefix,
                                    satellite_rows, fix_row)
from nmeaview.core.ring_buffer import RingBuffer


def _settings(directory, fmt='nmea', **extra):
    settings = {'directory': str(directory), 'split_minutes': 60, 'sample_interval': 1, 'format': fmt}
    settings.update(extra)
    return settings


def _satellites():
    return {
        'G04': SatelliteState('G', 4, 40.0, 83.0, 46.0, used_in_fix=True),
        'R70': SatelliteState('R', 70, 12.0, 301.0, None),
    }


def _run_briefly(thread, seconds=0.3):
    thread.start()
    time.sleep(seconds)
    thread.stop()
    thread.join(timeout=2.0)
    assert not thread.is_alive()


@pytest.mark.parametrize("port, expected", [
    ("/dev/ttyUSB0", "ttyUSB0"),
    ("COM3", "COM3"),
    ("loop://", "loop"),
    ("", "GPS"),
])
def test_safe_prefix(port, expected):
    assert safe_prefix(port) == expected


def test_satellite_rows():
    rows = satellite_rows(_satellites(), SATELLITE_FIELDS, "2024-01-01T00:00:00")
    assert rows == [
        ["2024-01-01T00:00:00", "G04", "GPS", "40", "83", "46", "Y"],
        ["2024-01-01T00:00:00", "R70", "GLO", "12", "301", "", "N"],
    ]


def test_fix_row_selected_fields():
    fix = FixState(timestamp=time_of_day(12, 35, 19), latitude=48.1173, longitude=11.5166667,
                   fix_quality=1, num_sats=8)
    row = fix_row(fix, ["UTC", "Latitude", "Sats", "Altitude (m)"], "stamp")
    assert row == ["12:35:19", "48.1173000", "8", ""]


def test_unknown_format_rejected(tmp_path):
    with pytest.raises(ValueError):
        RecordingThread(_settings(tmp_path, fmt='rinex'))


def test_nmea_recording(tmp_path):
    buffer = RingBuffer()
    buffer.put("$GPGGA,1*00")
    buffer.put("$GPRMC,2*00")

    thread = RecordingThread(_settings(tmp_path), line_buffer=buffer, prefix="/dev/ttyUSB0")
    _run_briefly(thread)

    files = list(tmp_path.iterdir())
    assert len(files) == 1
    assert files[0].name.startswith("ttyUSB0_")
    assert files[0].suffix == ".nmea"
    assert files[0].read_bytes() == b"$GPGGA,1*00\r\n$GPRMC,2*00\r\n"
    assert thread.lines_written == 2
    assert thread.file_count == 1


def test_lines_put_before_stop_are_flushed(tmp_path):
    buffer = RingBuffer()
    thread = RecordingThread(_settings(tmp_path), line_buffer=buffer)
    thread.start()
    time.sleep(0.1)
    buffer.put("$GPGSV,late*00")
    thread.stop()
    thread.join(timeout=2.0)

    content = next(tmp_path.iterdir()).read_text()
    assert "$GPGSV,late*00" in content


def test_csv_satellite_recording(tmp_path):
    thread = RecordingThread(_settings(tmp_path, fmt='csv'),
                             snapshot_provider=lambda: (FixState(), _satellites()))
    _run_briefly(thread)

    path = next(tmp_path.iterdir())
    assert path.suffix == ".csv"
    with open(path, newline='', encoding='utf-8') as f:
        rows = list(csv.reader(f))
    assert rows[0] == SATELLITE_FIELDS
    assert [r[1] for r in rows[1:3]] == ["G04", "R70"]


def test_fix_recording(tmp_path):
    fix = FixState(latitude=-33.8583333, longitude=151.21, altitude=20.0, fix_quality=2, fix_type=3)
    thread = RecordingThread(_settings(tmp_path, fmt='fix', fields=["Latitude", "Quality", "Fix Type"]),
                             snapshot_provider=lambda: (fix, {}))
    _run_briefly(thread)

    with open(next(tmp_path.iterdir()), newline='', encoding='utf-8') as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["Latitude", "Quality", "Fix Type"]
    assert rows[1] == ["-33.8583333", "2", "3"]


def test_default_fix_fields(tmp_path):
    thread = RecordingThread(_settings(tmp_path, fmt='fix'))
    assert thread.fields == FIX_FIELDS


def test_rotation_creates_distinct_files(tmp_path):
    thread = RecordingThread(_settings(tmp_path))
    thread.open_new_file()
    first = thread.current_path
    thread.open_new_file()
    thread.close_file()

    assert thread.current_path != first
    assert thread.file_count == 2
    assert len(list(tmp_path.iterdir())) == 2


def test_invalid_directory_logged(tmp_path):
    messages = []
    thread = RecordingThread(_settings(tmp_path / "missing"), log_callback=messages.append)
    thread.run()
    assert any("Invalid output directory" in m for m in messages)
    assert thread.file_count == 0

"""
Session recording for the NMEA viewer.

Supported formats:
  - nmea: every raw sentence as received (.nmea text, replayable)
  - csv:  sampled satellite table (one row per satellite per sample)
  - fix:  sampled position/fix rows (.csv)

Files are rotated every ``split_minutes`` and named ``<prefix>_<YYYYmmdd_HHMMSS>.<ext>``.
"""
import csv
import logging
import os
import threading
import time
from datetime import datetime, timezone

from .ring_buffer import RingBuffer


logger = logging.getLogger(__name__)

SATELLITE_FIELDS = ["Time", "PRN", "Sys", "El(°)", "Az(°)", "SNR (dBHz)", "Used"]
FIX_FIELDS = ["Time", "UTC", "Latitude", "Longitude", "Altitude (m)", "Quality", "Fix Type", "Sats", "HDOP"]

SYS_NAMES = {'G': 'GPS', 'R': 'GLO', 'E': 'GAL', 'C': 'BDS', 'J': 'QZS', 'S': 'SBS'}

FORMAT_EXTENSIONS = {
    'nmea': 'nmea',
    'csv': 'csv',
    'fix': 'csv',
}


def safe_prefix(port: str) -> str:
    """Turn a port name like '/dev/ttyUSB0' or 'COM3' into a file name prefix."""
    name = str(port).rstrip('/').split('/')[-1]
    return ''.join(c for c in name if c.isalnum() or c in ('_', '-')) or 'GPS'


def _fmt(value, spec):
    return format(value, spec) if value is not None else ''


def satellite_rows(satellites: dict, fields: list, stamp: str) -> list:
    rows = []
    for key, sat in sorted(satellites.items()):
        valmap = {
            'Time': stamp,
            'PRN': key,
            'Sys': SYS_NAMES.get(sat.sys_id, sat.sys_id),
            'El(°)': _fmt(sat.elevation, '.0f'),
            'Az(°)': _fmt(sat.azimuth, '.0f'),
            'SNR (dBHz)': _fmt(sat.snr, '.0f'),
            'Used': 'Y' if sat.used_in_fix else 'N',
        }
        rows.append([valmap.get(f, '') for f in fields])
    return rows


def fix_row(fix, fields: list, stamp: str) -> list:
    valmap = {
        'Time': stamp,
        'UTC': fix.timestamp.strftime('%H:%M:%S') if fix.timestamp else '',
        'Latitude': _fmt(fix.latitude, '.7f'),
        'Longitude': _fmt(fix.longitude, '.7f'),
        'Altitude (m)': _fmt(fix.altitude, '.1f'),
        'Quality': fix.fix_quality,
        'Fix Type': fix.fix_type,
        'Sats': _fmt(fix.num_sats, 'd'),
        'HDOP': _fmt(fix.hdop, '.2f'),
    }
    return [valmap.get(f, '') for f in fields]


class RecordingThread(threading.Thread):
    """
    Asynchronous recorder.

    Raw sentences are drained from ``line_buffer`` continuously; csv/fix formats instead
    sample ``snapshot_provider()`` (returning ``(fix, satellites)``) every
    ``sample_interval`` seconds.
    """

    def __init__(self, settings: dict, line_buffer: RingBuffer = None, snapshot_provider=None,
                 log_callback=None, prefix: str = 'GPS'):
        """
        Args:
            settings: Recording configuration dict with keys:
                - directory: str (output path)
                - split_minutes: int (file rotation interval)
                - sample_interval: int (sampling interval in seconds)
                - format: str ('nmea', 'csv', 'fix')
                - fields: list (CSV columns to save)
            line_buffer: Dedicated buffer of raw sentences (nmea format)
            snapshot_provider: Callable returning (FixState, {key: SatelliteState})
            log_callback: Callable receiving status messages (defaults to the module logger)
            prefix: File name prefix, usually derived from the port name
        """
        super().__init__(name="Recording")
        self.settings = settings
        self.line_buffer = line_buffer
        self.snapshot_provider = snapshot_provider
        self.log = log_callback or logger.info
        self.prefix = safe_prefix(prefix)
        self.daemon = True
        self.stop_event = threading.Event()

        self.format_type = settings.get('format', 'nmea')
        if self.format_type not in FORMAT_EXTENSIONS:
            raise ValueError(f"Unsupported recording format: {self.format_type}")
        default_fields = FIX_FIELDS if self.format_type == 'fix' else SATELLITE_FIELDS
        self.fields = list(settings.get('fields') or default_fields)
        self.directory = settings.get('directory', '')
        self.split_secs = int(settings.get('split_minutes', 60)) * 60
        self.sample_interval = int(settings.get('sample_interval', 1))

        # File tracking attributes
        self.file_count = 0
        self.start_time = time.time()
        self.current_filename = ""
        self.current_path = ""
        self.lines_written = 0
        self._file = None
        self._writer = None
        self._file_start = 0.0

    @property
    def duration(self) -> float:
        return time.time() - self.start_time

    def open_new_file(self):
        """Close the current file (if any) and open a new time-stamped one."""
        self.close_file()

        name_time = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        ext = FORMAT_EXTENSIONS[self.format_type]
        fname = f"{self.prefix}_{name_time}.{ext}"
        path = os.path.join(self.directory, fname)
        # Two rotations within the same second must not overwrite each other
        n = 1
        while os.path.exists(path):
            fname = f"{self.prefix}_{name_time}_{n}.{ext}"
            path = os.path.join(self.directory, fname)
            n += 1

        self._file = open(path, 'w', newline='', encoding='utf-8', buffering=65536)
        if self.format_type == 'nmea':
            self._writer = None
        else:
            self._writer = csv.writer(self._file)
            self._writer.writerow(self.fields)

        self.current_filename = fname
        self.current_path = path
        self.file_count += 1
        self._file_start = time.time()
        self.log(f"[Recording] Opened: {fname} (format: {self.format_type}, File #{self.file_count})")

    def close_file(self):
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None

    def write_lines(self, lines) -> int:
        """Append raw sentences to the current nmea file."""
        count = 0
        for line in lines:
            self._file.write(line + '\r\n')
            count += 1
        if count:
            self._file.flush()
            self.lines_written += count
        return count

    def write_sample(self) -> int:
        """Write one sample of the current fix/satellite state to the csv file."""
        if self.snapshot_provider is None:
            return 0
        fix, satellites = self.snapshot_provider()
        stamp = datetime.now().isoformat(timespec='seconds')

        if self.format_type == 'fix':
            rows = [fix_row(fix, self.fields, stamp)] if fix is not None else []
        else:
            rows = satellite_rows(satellites or {}, self.fields, stamp)

        for row in rows:
            self._writer.writerow(row)
        if rows:
            self._file.flush()
            self.lines_written += len(rows)
        return len(rows)

    def run(self):
        if not self.directory or not os.path.isdir(self.directory):
            self.log(f"[Recording] Error: Invalid output directory: {self.directory}")
            return

        try:
            self.open_new_file()
        except OSError as e:
            self.log(f"[Recording] Error opening file: {e}")
            return

        self.log(f"[Recording] Started recording at {time.strftime('%Y-%m-%d %H:%M:%S')}")
        last_sample_time = 0.0

        try:
            while not self.stop_event.is_set():
                if time.time() - self._file_start >= self.split_secs:
                    self.open_new_file()
                    last_sample_time = 0.0

                if self.format_type == 'nmea':
                    if self.line_buffer is not None:
                        self.write_lines(self.line_buffer.drain())
                    self.stop_event.wait(0.05)
                else:
                    now = time.time()
                    if now - last_sample_time >= self.sample_interval:
                        self.write_sample()
                        last_sample_time = now
                    self.stop_event.wait(0.1)

            # Flush what arrived between the last pass and stop()
            if self.format_type == 'nmea' and self.line_buffer is not None:
                self.write_lines(self.line_buffer.drain())
        except OSError as e:
            self.log(f"[Recording] Write error: {e}")
        finally:
            self.close_file()

        hours, remainder = divmod(self.duration, 3600)
        minutes, seconds = divmod(remainder, 60)
        duration_str = f"{int(hours):02d}:{int(minutes):02d}:{int(seconds):02d}"
        self.log(f"[Recording] Stopped. Total files: {self.file_count}, Duration: {duration_str}")

    def stop(self):
        """Stop the recording thread gracefully."""
        self.stop_event.set()

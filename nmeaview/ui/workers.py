"""
GPS viewer - serial acquisition and sentence processing threads.

This module implements the threaded pipeline between the GPS dongle and the GUI:
  - SerialReaderThread: Reads raw bytes from the serial port and splits them into sentences
  - SentenceProcessingThread: Decodes sentences with pynmea2 and publishes fix/sky updates
  - StreamSignals: Qt signals for inter-thread communication

Threads exchange data through ring buffers and never touch widgets; every GUI update
goes through a queued Qt signal.
"""

import threading
import time
import traceback

import serial
from PySide6.QtCore import QObject, Signal

from nmeaview.core.line_splitter import LineSplitter
from nmeaview.core.ring_buffer import RingBuffer
from nmeaview.core.serial_client import SerialClient


class StreamSignals(QObject):
    """
    Qt signal container for inter-thread communication.

    Attributes:
        log_signal (Signal[str]): Status updates and errors for the log area.
        sentence_signal (Signal[str]): Every raw sentence received, for the stream panel.
        fix_signal (Signal[object]): Updated FixState.
        sky_signal (Signal[object]): Updated SkySnapshot after a complete GSV cycle.
        status_signal (Signal[str, bool]): Connection state change (stream name, connected).
    """
    log_signal = Signal(str)
    sentence_signal = Signal(str)
    fix_signal = Signal(object)
    sky_signal = Signal(object)
    status_signal = Signal(str, bool)


class SerialReaderThread(threading.Thread):
    """
    Data acquisition thread for the GPS serial port.

    Responsibilities:
    - Open the port and keep it open, reconnecting after failures
    - Split the byte stream into sentences
    - Push sentences into the processing buffer (and the recording buffer when set)

    Notes:
    - Pure producer: no parsing or state management
    """

    def __init__(self, name: str, settings: dict, ring_buffer: RingBuffer, signals: StreamSignals,
                 recording_buffer: RingBuffer = None, client_factory=SerialClient):
        """
        Args:
            name: Stream identifier shown in log messages (e.g. 'GPS')
            settings: Connection parameters: port, baudrate, timeout, read_size,
                poll_interval, retry_interval
            ring_buffer: Output buffer for the processing thread
            signals: Qt signal emitter
            recording_buffer: Optional buffer of raw sentences for the recorder
            client_factory: Callable building the serial client (port, baudrate=, timeout=)
        """
        super().__init__(name=f"{name}-reader")
        self.stream_name = name
        self.settings = settings
        self.ring_buffer = ring_buffer
        self.recording_buffer = recording_buffer
        self.signals = signals
        self.client_factory = client_factory
        self.daemon = True
        self.running = True
        self.client = None
        self.splitter = LineSplitter()
        self.line_count = 0
        self.last_log_time = time.time()

    def run(self):
        """
        Main thread execution loop.

        Procedure:
          1. Open the serial port
          2. Read chunks, split into sentences, write to buffers
          3. On failure close the port, wait ``retry_interval`` and reopen
          4. Exit on stop signal
        """
        port = self.settings['port']
        baudrate = int(self.settings.get('baudrate', 9600))
        timeout = float(self.settings.get('timeout', 1.0))
        read_size = int(self.settings.get('read_size', 1024))
        poll_interval = float(self.settings.get('poll_interval', 0.2))
        retry_interval = float(self.settings.get('retry_interval', 3.0))

        self.client = self.client_factory(port, baudrate=baudrate, timeout=timeout)

        while self.running:
            try:
                self.signals.log_signal.emit(f"[{self.stream_name}] Connecting to {port}@{baudrate}...")
                self.client.connect()
                self.signals.log_signal.emit(f"[{self.stream_name}] Connected to {port}@{baudrate}")
                self.signals.status_signal.emit(self.stream_name, True)
                self.splitter.reset()
                self.line_count = 0
                self.last_log_time = time.time()

                while self.running:
                    chunk = self.client.read(read_size)
                    if chunk:
                        self._publish(self.splitter.feed(chunk))
                    self._log_rate()
                    # Pause between reads; the port buffers incoming bytes meanwhile
                    if poll_interval > 0:
                        self._sleep(poll_interval)

            except (serial.SerialException, OSError) as e:
                self.signals.log_signal.emit(f"[{self.stream_name}] Serial Error: {e}")
            finally:
                if self.client.is_open:
                    self.client.close()
                    self.signals.log_signal.emit(f"[{self.stream_name}] Serial Connection closed")
                self.signals.status_signal.emit(self.stream_name, False)

            if self.running:
                self.signals.log_signal.emit(
                    f"[{self.stream_name}] Retry in {retry_interval:.0f}s..."
                )
                self._sleep(retry_interval)

    def _publish(self, lines):
        for line in lines:
            self.line_count += 1
            self.ring_buffer.put(line)
            if self.recording_buffer is not None:
                self.recording_buffer.put(line)

    def _log_rate(self):
        """Periodic statistics logging (every 10 seconds)."""
        now = time.time()
        if now - self.last_log_time >= 10.0:
            rate = self.line_count / (now - self.last_log_time)
            self.signals.log_signal.emit(
                f"[{self.stream_name}] Receiving: {self.line_count} sentences, {rate:.1f} /s"
            )
            self.line_count = 0
            self.last_log_time = now

    def _sleep(self, seconds: float):
        """Sleep in small steps so stop() takes effect quickly."""
        deadline = time.time() + seconds
        while self.running:
            remaining = deadline - time.time()
            if remaining <= 0:
                return
            time.sleep(min(0.1, remaining))

    def stop(self):
        """
        Signal the thread to stop.

        The thread exits after the current read (bounded by the port timeout).
        """
        self.running = False


class SentenceProcessingThread(threading.Thread):
    """
    NMEA decoding thread.

    Consumes sentences from the ring buffer, forwards each one to the stream panel,
    feeds it to the NmeaHandler and emits the resulting fix / sky updates.
    """

    def __init__(self, name: str, ring_buffer: RingBuffer, handler, signals: StreamSignals):
        """
        Args:
            name: Stream identifier string.
            ring_buffer: RingBuffer of raw sentence strings.
            handler: NmeaHandler instance.
            signals: StreamSignals object for Qt signal emission.
        """
        super().__init__(name=f"{name}-processing")
        self.stream_name = name
        self.ring_buffer = ring_buffer
        self.handler = handler
        self.signals = signals
        self.daemon = True
        self.running = True
        self.fix_count = 0
        self.sky_count = 0
        self.last_log_time = time.time()
        self.first_fix = True

    def run(self):
        self.signals.log_signal.emit(f"[{self.stream_name}] Processing thread started")
        while self.running:
            line = self.ring_buffer.get(block=True, timeout=0.1)
            if line is None:
                if self.ring_buffer.closed:
                    self.signals.log_signal.emit(f"[{self.stream_name}] Buffer closed, stopping")
                    break
                continue

            try:
                self.process(line)
            except Exception as e:
                self.signals.log_signal.emit(f"[{self.stream_name}] Processing Error: {e}")
                self.signals.log_signal.emit(f"[{self.stream_name}] Traceback: {traceback.format_exc()}")
                time.sleep(0.01)

            self._log_stats()

    def process(self, line: str):
        """Forward one sentence to the stream panel and emit its decoded updates."""
        self.signals.sentence_signal.emit(line)

        for kind, payload in self.handler.process_line(line):
            if kind == 'fix':
                self.fix_count += 1
                if self.first_fix and payload.has_fix:
                    self.signals.log_signal.emit(
                        f"[{self.stream_name}] First fix: {payload.latitude:.6f}, {payload.longitude:.6f} "
                        f"({payload.quality_text})"
                        if payload.latitude is not None and payload.longitude is not None
                        else f"[{self.stream_name}] First fix ({payload.quality_text})"
                    )
                    self.first_fix = False
                self.signals.fix_signal.emit(payload)
            elif kind == 'sky':
                self.sky_count += 1
                self.signals.sky_signal.emit(payload)

    def _log_stats(self):
        """Statistics output every 30 seconds."""
        now = time.time()
        if now - self.last_log_time < 30.0:
            return
        counts = self.handler.sentence_counts
        top = ', '.join(f"{k}({v})" for k, v in counts.most_common(5))
        self.signals.log_signal.emit(
            f"[{self.stream_name}] Stats: {self.fix_count} fix updates, {self.sky_count} sky updates, "
            f"{self.handler.error_count} rejected, dropped {self.ring_buffer.dropped}, Top: {top}"
        )
        self.fix_count = 0
        self.sky_count = 0
        self.last_log_time = now

    def stop(self):
        self.running = False

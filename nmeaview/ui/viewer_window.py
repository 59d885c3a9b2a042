"""
GPS NMEA Viewer - main window.

This module provides the main UI and data orchestration for the serial GPS viewer.
It coordinates the background threads (SerialReaderThread, SentenceProcessingThread,
RecordingThread), owns the ring buffers between them, and updates the visualization
widgets (skyplot, fix panel, SNR chart, satellite table, raw sentence stream).

Threading model:
  - UI Thread (main): Updates widgets, handles user input
  - SerialReaderThread: Reads the COM port, splits sentences
  - SentenceProcessingThread: Decodes sentences with pynmea2
  - RecordingThread: Writes session files (started on demand)
  - Cleanup Timer: Removes stale satellites every second
  - GUI Update Timer: Flushes throttled refreshes

Signal flow:
  COM port -> SerialReaderThread -> ring_buffer -> SentenceProcessingThread
       -> fix_signal / sky_signal -> on_fix() / on_sky() -> refresh_all_widgets()
"""

import time
from collections import deque
from datetime import datetime

from PySide6.QtWidgets import (QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QTableWidget,
                               QTableWidgetItem, QLabel, QTextEdit, QPlainTextEdit, QSplitter,
                               QHeaderView, QTabWidget, QComboBox, QCheckBox, QPushButton,
                               QFrame, QDialog, QStyle)
from PySide6.QtCore import Qt, Slot, QTimer
from PySide6.QtGui import QColor, QFont

from nmeaview.core.data_models import FixState
from nmeaview.core.global_config import BAUDRATES, get_global_config, update_serial_settings
from nmeaview.core.nmea_handler import NmeaHandler
from nmeaview.core.recorder import RecordingThread, SYS_NAMES
from nmeaview.core.ring_buffer import RingBuffer
from nmeaview.core.serial_client import SerialClient
from nmeaview.ui.dialogs import SerialConfigDialog, RecordingDialog
from nmeaview.ui.gnss_colordef import get_sys_color, SYSTEM_NAMES
from nmeaview.ui.style import get_app_stylesheet
from nmeaview.ui.widgets import SkyplotWidget, SnrBarWidget, SatelliteCountWidget, FixPanel
from nmeaview.ui.workers import SerialReaderThread, SentenceProcessingThread, StreamSignals


STREAM_NAME = "GPS"


class ViewerWindow(QMainWindow):

    def __init__(self):
        """
        Initialize the viewer window.

        Procedure:
        1. Initialize data containers: merged satellites, current fix, active systems filter
        2. Configure GUI update throttling
        3. Create Qt signal/slot connections for thread communication
        4. Build UI layout (setup_ui)
        5. Start stale-satellite cleanup and GUI update timers
        """
        super().__init__()
        self.setWindowTitle("GPS NMEA Viewer")
        self.resize(1500, 950)

        self.config = get_global_config()

        # {key: SatelliteState} from the latest sky snapshots
        self.merged_satellites = {}
        # {key: timestamp} to drop satellites the receiver stopped reporting
        self.sat_last_seen = {}
        self.fix = FixState()
        self.num_in_view = None
        # Read by the recording thread; replaced as a whole, never mutated
        self._record_snapshot = (self.fix, {})

        # Throttling
        self.last_gui_update_time = 0
        self.gui_update_interval = self.config.display.gui_update_interval
        self.pending_update = False
        self.current_tab_index = 0
        self.last_table_rows = None

        self.active_systems = set(self.config.target_systems) or set(SYSTEM_NAMES)

        self.signals = StreamSignals()
        self.signals.log_signal.connect(self.append_log)
        self.signals.sentence_signal.connect(self.append_sentence)
        self.signals.fix_signal.connect(self.on_fix)
        self.signals.sky_signal.connect(self.on_sky)
        self.signals.status_signal.connect(self.update_status)

        # Stream pipeline
        self.handler = None
        self.reader_thread = None
        self.processing_thread = None
        self.ring_buffer = None
        self.recording_buffer = None

        # Raw sentences received while the stream panel is paused
        self.stream_paused = False
        self.paused_lines = deque(maxlen=self.config.display.max_log_lines)

        self.recording_settings = {
            'directory': '',
            'split_minutes': 60,
            'sample_interval': 1,
            'format': 'nmea',
            'fields': [],
        }
        self.recording_active = False
        self.recording_thread = None
        self.recording_dialog = None

        self.setup_ui()

        # Cleanup timer: drop satellites not reported for stale_timeout seconds
        self.cleanup_timer = QTimer(self)
        self.cleanup_timer.timeout.connect(self.cleanup_stale_satellites)
        self.cleanup_timer.start(1000)

        # GUI update timer: flush a throttled refresh once the interval has passed
        self.gui_update_timer = QTimer(self)
        self.gui_update_timer.timeout.connect(self._check_pending_update)
        self.gui_update_timer.start(50)

        self.signals.log_signal.emit("=== GPS NMEA Viewer Started ===")
        self.signals.log_signal.emit("Select a COM port and press Start Reading.")

    def setup_ui(self):
        """
        Build the main UI layout.

        - Top control bar (port, baud rate, start/stop, config, recording, filters, status)
        - Main splitter:
            * Left: skyplot + satellite count history
            * Right: tab widget (dashboard + NMEA stream)
        - Bottom: log output area
        """
        self.setStyleSheet(get_app_stylesheet())

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)

        # ======================================================================
        # Top control bar
        # ======================================================================
        top_bar = QHBoxLayout()

        top_bar.addWidget(QLabel("Port:"))
        self.port_combo = QComboBox()
        self.port_combo.setEditable(True)
        self.port_combo.setMinimumWidth(140)
        top_bar.addWidget(self.port_combo)

        btn_refresh = QPushButton()
        btn_refresh.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_BrowserReload))
        btn_refresh.setToolTip("Rescan serial ports")
        btn_refresh.clicked.connect(self.refresh_ports)
        top_bar.addWidget(btn_refresh)

        top_bar.addWidget(QLabel("Baud:"))
        self.baud_combo = QComboBox()
        self.baud_combo.addItems([str(b) for b in BAUDRATES])
        self.baud_combo.setCurrentText(str(self.config.serial.baudrate))
        top_bar.addWidget(self.baud_combo)

        self.btn_start = QPushButton("Start Reading")
        self.btn_start.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_MediaPlay))
        self.btn_start.clicked.connect(self.start_reading)
        top_bar.addWidget(self.btn_start)

        self.btn_stop = QPushButton("Stop")
        self.btn_stop.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_MediaStop))
        self.btn_stop.setEnabled(False)
        self.btn_stop.clicked.connect(self.stop_reading)
        top_bar.addWidget(self.btn_stop)

        line = QFrame()
        line.setFrameShape(QFrame.Shape.VLine)
        line.setFrameShadow(QFrame.Shadow.Sunken)
        top_bar.addWidget(line)

        btn_cfg = QPushButton("Config")
        settings_icon = self.style().standardIcon(QStyle.StandardPixmap.SP_FileDialogDetailedView)
        if not settings_icon.isNull():
            btn_cfg.setIcon(settings_icon)
        btn_cfg.clicked.connect(self.open_config_dialog)
        top_bar.addWidget(btn_cfg)

        self.btn_recording = QPushButton("Recording")
        self.btn_recording.clicked.connect(self.open_recording_dialog)
        top_bar.addWidget(self.btn_recording)

        line = QFrame()
        line.setFrameShape(QFrame.Shape.VLine)
        line.setFrameShadow(QFrame.Shadow.Sunken)
        top_bar.addWidget(line)

        # GNSS system filters
        top_bar.addWidget(QLabel("Systems:"))
        self.chk_sys = {}
        for sys_char, name in SYSTEM_NAMES.items():
            chk = QCheckBox(name)
            chk.setChecked(sys_char in self.active_systems)
            chk.stateChanged.connect(self.on_filter_changed)
            chk.setStyleSheet(f"QCheckBox {{ color: {get_sys_color(sys_char)}; font-weight: bold; }}")
            self.chk_sys[sys_char] = chk
            top_bar.addWidget(chk)

        top_bar.addStretch()

        self.lbl_counts = QLabel("")
        top_bar.addWidget(self.lbl_counts)

        self.lbl_status = QLabel(f"{STREAM_NAME}: OFF")
        self.lbl_status.setProperty("class", "status")
        self.lbl_status.setStyleSheet("background-color: #ddd; padding: 4px 8px; border-radius: 4px;")
        top_bar.addWidget(self.lbl_status)

        layout.addLayout(top_bar)

        # ======================================================================
        # Main content area
        # ======================================================================
        splitter = QSplitter(Qt.Orientation.Horizontal)

        left_splitter = QSplitter(Qt.Orientation.Vertical)
        self.skyplot = SkyplotWidget()
        left_splitter.addWidget(self.skyplot)
        self.sat_stats = SatelliteCountWidget()
        left_splitter.addWidget(self.sat_stats)
        left_splitter.setSizes([650, 220])
        left_splitter.setCollapsible(0, False)
        left_splitter.setCollapsible(1, False)
        splitter.addWidget(left_splitter)

        self.main_tabs = QTabWidget()

        # === Tab 1: Dashboard ===
        tab_over = QWidget()
        vbox_over = QVBoxLayout(tab_over)

        h_top = QHBoxLayout()
        self.fix_panel = FixPanel()
        h_top.addWidget(self.fix_panel, 2)
        self.bar_chart = SnrBarWidget()
        self.bar_chart.setMinimumHeight(220)
        h_top.addWidget(self.bar_chart, 5)
        vbox_over.addLayout(h_top)

        vbox_over.addWidget(QLabel("<b>Satellites in view</b>"))
        headers = ["ID", "Sys", "El(°)", "Az(°)", "SNR (dBHz)", "Used"]
        self.table = QTableWidget()
        self.table.setColumnCount(len(headers))
        self.table.setHorizontalHeaderLabels(headers)
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        vbox_over.addWidget(self.table)

        self.main_tabs.addTab(tab_over, "Dashboard")

        # === Tab 2: NMEA Stream ===
        tab_stream = QWidget()
        vbox_stream = QVBoxLayout(tab_stream)

        h_ctrl = QHBoxLayout()
        self.btn_pause = QPushButton("Pause")
        self.btn_pause.setCheckable(True)
        self.btn_pause.toggled.connect(self.on_pause_toggled)
        h_ctrl.addWidget(self.btn_pause)
        btn_clear = QPushButton("Clear")
        btn_clear.clicked.connect(self.clear_stream)
        h_ctrl.addWidget(btn_clear)
        h_ctrl.addStretch()
        vbox_stream.addLayout(h_ctrl)

        self.stream_view = QPlainTextEdit()
        self.stream_view.setObjectName("NmeaStream")
        self.stream_view.setReadOnly(True)
        self.stream_view.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        self.stream_view.setMaximumBlockCount(self.config.display.max_log_lines)
        font = QFont("Monospace")
        font.setStyleHint(QFont.StyleHint.Monospace)
        self.stream_view.setFont(font)
        vbox_stream.addWidget(self.stream_view)

        self.main_tabs.addTab(tab_stream, "NMEA Stream")
        self.main_tabs.currentChanged.connect(self.on_tab_changed)

        splitter.addWidget(self.main_tabs)
        splitter.setStretchFactor(0, 4)
        splitter.setStretchFactor(1, 5)
        splitter.setCollapsible(0, False)

        layout.addWidget(splitter, stretch=1)

        # ======================================================================
        # Log output area
        # ======================================================================
        self.log_area = QTextEdit()
        self.log_area.setReadOnly(True)
        self.log_area.setMaximumHeight(90)
        self.log_area.setStyleSheet("font-family: Monospace; border: 1px solid #ccc;")
        self.max_log_lines = 500
        layout.addWidget(self.log_area)

        self.refresh_ports()

    # --- Port selection ---
    def refresh_ports(self):
        current = self.port_combo.currentText() or self.config.serial.port
        ports = SerialClient.list_available_ports()
        self.port_combo.clear()
        self.port_combo.addItems(ports)
        if current:
            self.port_combo.setCurrentText(current)
        if not ports:
            self.signals.log_signal.emit("No serial ports found")

    # --- Stream control ---
    def start_reading(self):
        port = self.port_combo.currentText().strip()
        if not port:
            self.signals.log_signal.emit("No serial port selected")
            return
        try:
            baudrate = int(self.baud_combo.currentText())
        except ValueError:
            self.signals.log_signal.emit(f"Invalid baud rate: {self.baud_combo.currentText()}")
            return

        update_serial_settings({'port': port, 'baudrate': baudrate})
        self.restart_streams()

        self.btn_start.setEnabled(False)
        self.btn_stop.setEnabled(True)
        self.port_combo.setEnabled(False)
        self.baud_combo.setEnabled(False)

    def stop_reading(self):
        self.stop_streams()
        self.btn_start.setEnabled(True)
        self.btn_stop.setEnabled(False)
        self.port_combo.setEnabled(True)
        self.baud_combo.setEnabled(True)

    def stop_streams(self):
        """Stop the reader/processing threads and any active recording."""
        self.stop_recording()

        threads = [t for t in (self.reader_thread, self.processing_thread) if t is not None]
        if threads:
            self.signals.log_signal.emit("Stopping threads...")
            for t in threads:
                t.stop()
            for rb in (self.ring_buffer, self.recording_buffer):
                if rb is not None:
                    rb.close()
            for t in threads:
                t.join(timeout=2.0)

        self.reader_thread = None
        self.processing_thread = None
        self.ring_buffer = None
        self.recording_buffer = None

    def restart_streams(self):
        """
        Reinitialize the acquisition pipeline with the current serial settings.

        Procedure:
        1. Stop existing threads and close their buffers
        2. Clear satellite/fix state so nothing from the last session lingers
        3. Create a fresh NmeaHandler
        4. Start SerialReaderThread -> RingBuffer -> SentenceProcessingThread
        """
        self.signals.log_signal.emit("=== Starting stream ===")
        self.stop_streams()

        self.merged_satellites.clear()
        self.sat_last_seen.clear()
        self.fix = FixState()
        self.num_in_view = None
        self._record_snapshot = (self.fix, {})
        self.last_table_rows = None

        self.handler = NmeaHandler(strict_checksum=self.config.strict_checksum)

        serial_cfg = self.config.serial
        settings = {
            'port': serial_cfg.port,
            'baudrate': serial_cfg.baudrate,
            'timeout': serial_cfg.timeout,
            'read_size': serial_cfg.read_size,
            'poll_interval': serial_cfg.poll_interval,
            'retry_interval': serial_cfg.retry_interval,
        }

        self.ring_buffer = RingBuffer(maxsize=1000)
        # Independent buffer for the recorder
        self.recording_buffer = RingBuffer(maxsize=5000)

        self.reader_thread = SerialReaderThread(STREAM_NAME, settings, self.ring_buffer,
                                                self.signals, self.recording_buffer)
        self.processing_thread = SentenceProcessingThread(STREAM_NAME, self.ring_buffer,
                                                          self.handler, self.signals)
        self.processing_thread.start()
        self.reader_thread.start()

        self.signals.log_signal.emit(f"Active GNSS systems: {', '.join(sorted(self.active_systems))}")
        self.refresh_all_widgets()

    # --- Incoming data ---
    @Slot(object)
    def on_fix(self, fix):
        self.fix = fix
        self._record_snapshot = (fix, dict(self.merged_satellites))
        self.request_refresh()

    @Slot(object)
    def on_sky(self, snapshot):
        """
        Replace the constellation view with a freshly merged snapshot.

        Satellites missing from the snapshot are kept until they go stale.
        """
        now = time.time()
        for key, sat in snapshot.satellites.items():
            self.merged_satellites[key] = sat
            self.sat_last_seen[key] = now
        self.num_in_view = len(self.merged_satellites)
        self._record_snapshot = (self.fix, dict(self.merged_satellites))
        self.request_refresh()

    def request_refresh(self):
        now = time.time()
        if now - self.last_gui_update_time >= self.gui_update_interval:
            self.refresh_all_widgets()
            self.last_gui_update_time = now
            self.pending_update = False
        else:
            self.pending_update = True

    def _check_pending_update(self):
        if self.pending_update:
            now = time.time()
            if now - self.last_gui_update_time >= self.gui_update_interval:
                self.refresh_all_widgets()
                self.last_gui_update_time = now
                self.pending_update = False

    def cleanup_stale_satellites(self):
        """Remove satellites the receiver stopped reporting, refresh the recording info."""
        now = time.time()
        timeout = self.config.display.stale_timeout
        to_remove = [key for key, last in self.sat_last_seen.items() if now - last > timeout]
        for key in to_remove:
            self.merged_satellites.pop(key, None)
            self.sat_last_seen.pop(key, None)
        if to_remove:
            self.num_in_view = len(self.merged_satellites)
            self._record_snapshot = (self.fix, dict(self.merged_satellites))
            self.request_refresh()

        if self.recording_dialog is not None:
            self.update_recording_info_display(self.recording_dialog)

    def on_filter_changed(self):
        self.active_systems = {k for k, chk in self.chk_sys.items() if chk.isChecked()}
        self.last_table_rows = None
        self.refresh_all_widgets()

    def on_tab_changed(self, index):
        self.current_tab_index = index

    def refresh_all_widgets(self):
        """
        Refresh every widget from the current state.

        The skyplot, count history and fix panel are always visible; the SNR chart and
        satellite table are only redrawn when the Dashboard tab is shown.
        """
        satellites_snapshot = dict(self.merged_satellites)

        self.skyplot.update_satellites(satellites_snapshot, self.active_systems)
        self.sat_stats.update_data(satellites_snapshot, self.active_systems)
        self.fix_panel.update_fix(self.fix, self.num_in_view)

        if self.current_tab_index == 0:
            self.bar_chart.update_data(satellites_snapshot, self.active_systems)
            self.update_table(satellites_snapshot)

        if self.handler is not None:
            self.lbl_counts.setText(
                f"Sentences: {sum(self.handler.sentence_counts.values())}  "
                f"Rejected: {self.handler.error_count}"
            )

    def update_table(self, satellites):
        rows = []
        for key, sat in sorted(satellites.items()):
            if sat.sys_id not in self.active_systems:
                continue
            rows.append((
                key,
                SYS_NAMES.get(sat.sys_id, sat.sys_id),
                f"{sat.elevation:.0f}" if sat.elevation is not None else "-",
                f"{sat.azimuth:.0f}" if sat.azimuth is not None else "-",
                sat.snr,
                "Yes" if sat.used_in_fix else "",
            ))

        # Skip the rebuild when nothing changed
        if rows == self.last_table_rows:
            return
        self.last_table_rows = rows

        self.table.setUpdatesEnabled(False)
        try:
            self.table.setRowCount(len(rows))
            for row_idx, row in enumerate(rows):
                snr = row[4]
                values = list(row[:4]) + [f"{snr:.0f}" if snr is not None else "-", row[5]]
                for col_idx, val in enumerate(values):
                    item = QTableWidgetItem(str(val))
                    item.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
                    if col_idx == 0:
                        item.setForeground(QColor(get_sys_color(row[0][0])))
                        item.setFont(QFont("Arial", 9, QFont.Weight.Bold))
                    elif col_idx == 4 and snr is not None:
                        # SNR: green (good >40), red (poor <30)
                        if snr > 40:
                            item.setForeground(QColor("green"))
                        elif snr < 30:
                            item.setForeground(QColor("red"))
                    self.table.setItem(row_idx, col_idx, item)
        finally:
            self.table.setUpdatesEnabled(True)

    # --- NMEA stream panel ---
    @Slot(str)
    def append_sentence(self, line):
        if self.stream_paused:
            self.paused_lines.append(line)
            return
        self.stream_view.appendPlainText(line)
        # Stick to the bottom
        bar = self.stream_view.verticalScrollBar()
        bar.setValue(bar.maximum())

    def on_pause_toggled(self, paused):
        self.stream_paused = paused
        self.btn_pause.setText("Resume" if paused else "Pause")
        if not paused and self.paused_lines:
            self.stream_view.appendPlainText("\n".join(self.paused_lines))
            self.paused_lines.clear()
            bar = self.stream_view.verticalScrollBar()
            bar.setValue(bar.maximum())

    def clear_stream(self):
        self.stream_view.clear()
        self.paused_lines.clear()

    # --- Recording ---
    def open_recording_dialog(self):
        dlg = RecordingDialog(self, self.recording_settings, self.recording_active)
        dlg.recording_toggled.connect(self.handle_recording_toggle)
        dlg.finished.connect(self.on_recording_dialog_closed)
        self.recording_dialog = dlg
        self.update_recording_info_display(dlg)
        dlg.show()
        return dlg

    def handle_recording_toggle(self, start_recording):
        if start_recording:
            if self.recording_dialog is not None:
                self.recording_settings = self.recording_dialog.get_settings()
            if not self.start_recording() and self.recording_dialog is not None:
                self.recording_dialog.set_recording(False)
        else:
            self.stop_recording()
        if self.recording_dialog is not None:
            self.update_recording_info_display(self.recording_dialog)

    def on_recording_dialog_closed(self, result):
        if self.recording_dialog is not None:
            self.recording_settings = self.recording_dialog.get_settings()
            self.recording_dialog = None

    def update_recording_info_display(self, dialog):
        settings = self.recording_settings
        if self.recording_active and self.recording_thread is not None:
            hours, remainder = divmod(int(self.recording_thread.duration), 3600)
            minutes, seconds = divmod(remainder, 60)
            info_text = (
                "Status: RECORDING\n"
                f"Format: {settings.get('format', 'nmea').upper()}\n"
                f"Directory: {settings.get('directory', '')}\n"
                f"Files recorded: {self.recording_thread.file_count}\n"
                f"Duration: {hours:02d}:{minutes:02d}:{seconds:02d}\n"
                f"Current file: {self.recording_thread.current_filename or 'N/A'}\n"
                f"Rows written: {self.recording_thread.lines_written}\n"
            )
        else:
            info_text = (
                "Status: NOT RECORDING\n"
                "Click 'Start Recording' to begin.\n"
                f"Output dir: {settings.get('directory') or 'Not set'}\n"
                f"Format: {settings.get('format', 'nmea').upper()}\n"
            )
        dialog.update_recording_info(info_text)

    def start_recording(self):
        """
        Start the recording thread.

        Returns:
            bool: True if recording is running afterwards
        """
        if self.recording_active:
            return True

        if not self.recording_settings.get('directory'):
            self.signals.log_signal.emit("Recording: output directory not set")
            return False
        if self.reader_thread is None:
            self.signals.log_signal.emit("Recording: start reading first")
            return False

        # Only record what arrives from now on
        self.recording_buffer.clear()
        try:
            self.recording_thread = RecordingThread(
                settings=self.recording_settings,
                line_buffer=self.recording_buffer,
                snapshot_provider=lambda: self._record_snapshot,
                log_callback=self.signals.log_signal.emit,
                prefix=self.config.serial.port,
            )
        except ValueError as e:
            self.signals.log_signal.emit(f"Recording: {e}")
            return False

        self.recording_active = True
        self.recording_thread.start()
        self.signals.log_signal.emit(f"Recording started -> {self.recording_settings['directory']}")
        return True

    def stop_recording(self):
        if not self.recording_active:
            return
        if self.recording_thread is not None:
            self.recording_thread.stop()
            self.recording_thread.join(timeout=2.0)
        self.recording_thread = None
        self.recording_active = False
        self.signals.log_signal.emit("Recording stopped")

        if self.recording_dialog is not None:
            self.recording_dialog.set_recording(False)
            self.update_recording_info_display(self.recording_dialog)

    # --- Config ---
    def open_config_dialog(self):
        dlg = SerialConfigDialog(self)
        if dlg.exec() == QDialog.DialogCode.Accepted:
            settings = dlg.get_settings()
            if settings['port']:
                self.port_combo.setCurrentText(settings['port'])
            self.baud_combo.setCurrentText(str(settings['baudrate']))

            self.stream_view.setMaximumBlockCount(settings['max_log_lines'])
            self.paused_lines = deque(self.paused_lines, maxlen=settings['max_log_lines'])

            self.active_systems = set(settings['target_systems'])
            for sys_char, chk in self.chk_sys.items():
                chk.blockSignals(True)
                chk.setChecked(sys_char in self.active_systems)
                chk.blockSignals(False)
            self.on_filter_changed()

            if self.reader_thread is not None:
                self.restart_streams()

    # --- Log / status ---
    @Slot(str)
    def append_log(self, text):
        """
        Append a timestamped message to the log area.

        Batch removes 100 lines once max_log_lines is exceeded.
        """
        self.log_area.append(f"[{datetime.now().strftime('%H:%M:%S')}] {text}")

        doc = self.log_area.document()
        if doc.blockCount() > self.max_log_lines:
            cursor = self.log_area.textCursor()
            cursor.movePosition(cursor.MoveOperation.Start)
            for _ in range(100):
                cursor.movePosition(cursor.MoveOperation.Down, cursor.MoveMode.KeepAnchor)
            cursor.removeSelectedText()

    @Slot(str, bool)
    def update_status(self, name, connected):
        color = "#2A692D" if connected else "#6D2F2B"
        self.lbl_status.setText(f"{name}: {'ON' if connected else 'OFF'}")
        self.lbl_status.setStyleSheet(
            f"background-color: {color}; color: white; padding: 4px 8px; "
            f"border-radius: 4px; font-weight: bold;"
        )

    def closeEvent(self, event):
        """Stop recording and all threads before the window goes away."""
        self.stop_streams()
        self.cleanup_timer.stop()
        self.gui_update_timer.stop()
        event.accept()

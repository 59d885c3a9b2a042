import importlib.util

from PySide6.QtWidgets import (QDialog, QVBoxLayout, QGroupBox, QFormLayout, QLineEdit,
                               QCheckBox, QHBoxLayout, QPushButton, QFileDialog, QMessageBox,
                               QStyle, QComboBox, QLabel, QSpinBox, QDoubleSpinBox, QSizePolicy,
                               QListWidget, QRadioButton, QFrame, QTextEdit, QDialogButtonBox)
from PySide6.QtCore import Qt, Signal

from nmeaview.core.global_config import (BAUDRATES, get_global_config, update_serial_settings,
                                         update_display_settings, update_general_settings)
from nmeaview.core.recorder import SATELLITE_FIELDS, FIX_FIELDS
from nmeaview.core.serial_client import SerialClient


START_STYLE = """
    QPushButton {
        background-color: #4CAF50;
        color: white;
        font-weight: bold;
        border: none;
        border-radius: 4px;
        padding: 8px 16px;
    }
    QPushButton:hover { background-color: #45a049; }
    QPushButton:pressed { background-color: #3d8b40; }
"""

STOP_STYLE = """
    QPushButton {
        background-color: #f44336;
        color: white;
        font-weight: bold;
        border: none;
        border-radius: 4px;
        padding: 8px 16px;
    }
    QPushButton:hover { background-color: #da190b; }
    QPushButton:pressed { background-color: #c1170a; }
"""


class SerialConfigDialog(QDialog):
    """Serial connection and display settings, optionally loaded from a Python config file."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Serial Settings")
        self.resize(460, 420)
        self.config = get_global_config()
        self.init_ui()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setSpacing(10)
        layout.setContentsMargins(10, 10, 10, 10)

        # Serial port
        grp_serial = QGroupBox("GPS Dongle")
        fl_serial = QFormLayout()
        fl_serial.setFieldGrowthPolicy(QFormLayout.ExpandingFieldsGrow)

        self.port_combo = QComboBox()
        self.port_combo.setEditable(True)
        self.btn_refresh = QPushButton()
        self.btn_refresh.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_BrowserReload))
        self.btn_refresh.setToolTip("Rescan serial ports")
        self.btn_refresh.clicked.connect(self.refresh_ports)
        h = QHBoxLayout()
        h.addWidget(self.port_combo, 1)
        h.addWidget(self.btn_refresh)
        fl_serial.addRow("Serial Port:", h)

        self.baud_combo = QComboBox()
        self.baud_combo.addItems([str(b) for b in BAUDRATES])
        self.baud_combo.setCurrentText(str(self.config.serial.baudrate))
        fl_serial.addRow("Baud Rate:", self.baud_combo)

        self.timeout_spin = QDoubleSpinBox()
        self.timeout_spin.setRange(0.1, 10.0)
        self.timeout_spin.setSingleStep(0.1)
        self.timeout_spin.setSuffix(" s")
        self.timeout_spin.setValue(self.config.serial.timeout)
        fl_serial.addRow("Read Timeout:", self.timeout_spin)

        self.poll_spin = QSpinBox()
        self.poll_spin.setRange(0, 2000)
        self.poll_spin.setSingleStep(50)
        self.poll_spin.setSuffix(" ms")
        self.poll_spin.setValue(int(self.config.serial.poll_interval * 1000))
        fl_serial.addRow("Poll Interval:", self.poll_spin)

        grp_serial.setLayout(fl_serial)
        layout.addWidget(grp_serial)

        # Display / decoding
        grp_general = QGroupBox("General Settings")
        fl_general = QFormLayout()
        fl_general.setFieldGrowthPolicy(QFormLayout.ExpandingFieldsGrow)

        self.max_lines_spin = QSpinBox()
        self.max_lines_spin.setRange(50, 100000)
        self.max_lines_spin.setValue(self.config.display.max_log_lines)
        fl_general.addRow("NMEA lines kept:", self.max_lines_spin)

        self.stale_spin = QDoubleSpinBox()
        self.stale_spin.setRange(1.0, 600.0)
        self.stale_spin.setSuffix(" s")
        self.stale_spin.setValue(self.config.display.stale_timeout)
        fl_general.addRow("Drop satellites after:", self.stale_spin)

        self.target_systems = QLineEdit(",".join(self.config.target_systems))
        self.target_systems.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        fl_general.addRow("Target Systems (comma-separated):", self.target_systems)

        self.chk_strict = QCheckBox("Reject sentences without checksum")
        self.chk_strict.setChecked(self.config.strict_checksum)
        fl_general.addRow(self.chk_strict)

        grp_general.setLayout(fl_general)
        layout.addWidget(grp_general)
        layout.addStretch()

        # Buttons
        btns = QHBoxLayout()
        b_load = QPushButton("Load File")
        open_icon = self.style().standardIcon(QStyle.StandardPixmap.SP_DirOpenIcon)
        if not open_icon.isNull():
            b_load.setIcon(open_icon)
        b_load.clicked.connect(self.load_file)

        b_ok = QPushButton("Apply")
        save_icon = self.style().standardIcon(QStyle.StandardPixmap.SP_DialogSaveButton)
        if not save_icon.isNull():
            b_ok.setIcon(save_icon)
        b_ok.clicked.connect(self.accept)
        b_cancel = QPushButton("Cancel")
        b_cancel.clicked.connect(self.reject)

        btns.addWidget(b_load)
        btns.addStretch()
        btns.addWidget(b_cancel)
        btns.addWidget(b_ok)
        layout.addLayout(btns)

        self.refresh_ports()
        if self.config.serial.port:
            self.port_combo.setCurrentText(self.config.serial.port)

    def refresh_ports(self):
        current = self.port_combo.currentText()
        self.port_combo.clear()
        self.port_combo.addItems(SerialClient.list_available_ports())
        if current:
            self.port_combo.setCurrentText(current)

    def load_file(self):
        f, _ = QFileDialog.getOpenFileName(self, "Select Config", "", "Python (*.py)")
        if f:
            try:
                spec = importlib.util.spec_from_file_location("cfg", f)
                m = importlib.util.module_from_spec(spec)
                spec.loader.exec_module(m)

                if hasattr(m, 'SERIAL_PORT'): self.port_combo.setCurrentText(str(m.SERIAL_PORT))
                if hasattr(m, 'BAUDRATE'): self.baud_combo.setCurrentText(str(m.BAUDRATE))
                if hasattr(m, 'TIMEOUT'): self.timeout_spin.setValue(float(m.TIMEOUT))

                if hasattr(m, 'TARGET_SYSTEMS'):
                    systems = m.TARGET_SYSTEMS
                    if isinstance(systems, (list, tuple)):
                        self.target_systems.setText(','.join(systems))
                    else:
                        self.target_systems.setText(str(systems))

            except Exception as e:
                QMessageBox.warning(self, "Error", str(e))

    def get_settings(self):
        """Apply the dialog values to the global configuration and return them as a dict."""
        try:
            baudrate = int(self.baud_combo.currentText())
        except ValueError:
            baudrate = 9600

        target_systems = [s.strip().upper() for s in self.target_systems.text().split(',') if s.strip()]
        if not target_systems:
            target_systems = ['G', 'R', 'E', 'C', 'J', 'S']

        serial_settings = {
            'port': self.port_combo.currentText().strip(),
            'baudrate': baudrate,
            'timeout': self.timeout_spin.value(),
            'poll_interval': self.poll_spin.value() / 1000.0,
        }
        display_settings = {
            'max_log_lines': self.max_lines_spin.value(),
            'stale_timeout': self.stale_spin.value(),
        }
        general_settings = {
            'target_systems': target_systems,
            'strict_checksum': self.chk_strict.isChecked(),
        }
        update_serial_settings(serial_settings)
        update_display_settings(display_settings)
        update_general_settings(general_settings)

        return {**serial_settings, **display_settings, **general_settings}


class RecordingDialog(QDialog):
    """Dialog to configure session recording and start/stop it.

    Options:
    - output directory
    - file split interval (minutes)
    - sampling interval (seconds, sampled formats only)
    - save format: raw NMEA, satellite CSV, fix CSV
    - columns to save (CSV formats)
    """

    recording_toggled = Signal(bool)

    def __init__(self, parent=None, settings=None, is_recording=False):
        super().__init__(parent)
        self.setWindowTitle("Recording")
        self.setModal(True)
        self.resize(520, 500)
        self.is_recording = is_recording
        settings = settings or {}

        form = QFormLayout(self)

        # Output directory
        self.dir_edit = QLineEdit()
        self.btn_browse = QPushButton("Browse")
        self.btn_browse.clicked.connect(self.browse)
        h = QHBoxLayout()
        h.addWidget(self.dir_edit)
        h.addWidget(self.btn_browse)
        form.addRow("Output directory:", h)

        self.split_spin = QSpinBox()
        self.split_spin.setRange(1, 24 * 60)
        self.split_spin.setSuffix(" min")
        self.split_spin.setMinimumHeight(30)
        form.addRow("Split every:", self.split_spin)

        self.sample_spin = QSpinBox()
        self.sample_spin.setRange(1, 3600)
        self.sample_spin.setSuffix(" s")
        self.sample_spin.setMinimumHeight(30)
        form.addRow("Sample interval:", self.sample_spin)

        format_group = QGroupBox("Save Format")
        format_layout = QVBoxLayout()
        self.radio_nmea = QRadioButton("Raw NMEA (.nmea)")
        self.radio_csv = QRadioButton("Satellite table CSV (select fields)")
        self.radio_fix = QRadioButton("Position fix CSV (select fields)")
        format_layout.addWidget(self.radio_nmea)
        format_layout.addWidget(self.radio_csv)
        format_layout.addWidget(self.radio_fix)
        format_group.setLayout(format_layout)
        form.addRow(format_group)

        self.fields_label = QLabel("Fields to save:")
        form.addRow(self.fields_label)
        self.fields_list = QListWidget()
        self.fields_list.setSelectionMode(self.fields_list.SelectionMode.MultiSelection)
        form.addRow(self.fields_list)

        separator = QFrame()
        separator.setFrameShape(QFrame.Shape.HLine)
        separator.setFrameShadow(QFrame.Shadow.Sunken)
        form.addRow(separator)

        self.btn_start_stop = QPushButton("Start Recording")
        self.btn_start_stop.clicked.connect(self.toggle_recording)
        self.btn_start_stop.setMinimumHeight(40)
        self.start_icon = self.style().standardIcon(QStyle.StandardPixmap.SP_MediaPlay)
        self.stop_icon = self.style().standardIcon(QStyle.StandardPixmap.SP_MediaStop)
        form.addRow(self.btn_start_stop)

        self.recording_info = QTextEdit()
        self.recording_info.setMaximumHeight(100)
        self.recording_info.setReadOnly(True)
        self.recording_info.setStyleSheet("font-family: Consolas, monospace; font-size: 9pt;")
        form.addRow("Recording Info:", self.recording_info)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        buttons.rejected.connect(self.reject)
        form.addRow(buttons)

        self.dir_edit.setText(settings.get("directory", ""))
        self.split_spin.setValue(settings.get("split_minutes", 60))
        self.sample_spin.setValue(settings.get("sample_interval", 1))

        format_type = settings.get("format", "nmea")
        {'csv': self.radio_csv, 'fix': self.radio_fix}.get(format_type, self.radio_nmea).setChecked(True)
        self._selected_fields = settings.get("fields") or []

        self.radio_nmea.toggled.connect(self.on_format_changed)
        self.radio_csv.toggled.connect(self.on_format_changed)
        self.radio_fix.toggled.connect(self.on_format_changed)

        self.on_format_changed()
        self.update_recording_state()

    def selected_format(self):
        if self.radio_csv.isChecked():
            return "csv"
        if self.radio_fix.isChecked():
            return "fix"
        return "nmea"

    def on_format_changed(self, *_):
        """Swap the field list for the selected format; raw NMEA has no columns."""
        if not self.sender() or self.sender().isChecked():
            format_type = self.selected_format()
            available = FIX_FIELDS if format_type == 'fix' else SATELLITE_FIELDS
            selected = [f for f in self._selected_fields if f in available] or available

            self.fields_list.clear()
            for f in available:
                self.fields_list.addItem(f)
                item = self.fields_list.findItems(f, Qt.MatchFlag.MatchExactly)[0]
                item.setSelected(f in selected)

            is_csv = format_type != 'nmea'
            self.fields_label.setVisible(is_csv)
            self.fields_list.setVisible(is_csv)
            self.sample_spin.setEnabled(is_csv and not self.is_recording)

    def browse(self):
        d = QFileDialog.getExistingDirectory(self, "Select output directory")
        if d:
            self.dir_edit.setText(d)

    def toggle_recording(self):
        """Toggle recording state and emit signal."""
        self.is_recording = not self.is_recording
        self.recording_toggled.emit(self.is_recording)
        self.update_recording_state()

    def set_recording(self, is_recording: bool):
        """Reflect a state change made outside the dialog (e.g. recorder failed to start)."""
        self.is_recording = is_recording
        self.update_recording_state()

    def update_recording_state(self):
        if self.is_recording:
            self.btn_start_stop.setText("Stop Recording")
            self.btn_start_stop.setIcon(self.stop_icon)
            self.btn_start_stop.setStyleSheet(STOP_STYLE)
        else:
            self.btn_start_stop.setText("Start Recording")
            self.btn_start_stop.setIcon(self.start_icon)
            self.btn_start_stop.setStyleSheet(START_STYLE)

        # Settings are locked during recording
        editable = not self.is_recording
        for w in (self.dir_edit, self.btn_browse, self.split_spin, self.radio_nmea,
                  self.radio_csv, self.radio_fix, self.fields_list):
            w.setEnabled(editable)
        self.sample_spin.setEnabled(editable and self.selected_format() != 'nmea')

    def update_recording_info(self, info_text):
        self.recording_info.setText(info_text)

    def get_settings(self):
        format_type = self.selected_format()
        fields = []
        if format_type != 'nmea':
            # Column order follows the list, not the click order
            items = [self.fields_list.item(i) for i in range(self.fields_list.count())]
            fields = [it.text() for it in items if it.isSelected()]
        self._selected_fields = fields or self._selected_fields
        return {
            "directory": self.dir_edit.text(),
            "split_minutes": int(self.split_spin.value()),
            "sample_interval": int(self.sample_spin.value()),
            "format": format_type,
            "fields": fields,
        }

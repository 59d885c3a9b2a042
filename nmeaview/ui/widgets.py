# ui/widgets.py
from datetime import datetime

import numpy as np
import matplotlib
matplotlib.use('QtAgg')
from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.figure import Figure
from PySide6.QtWidgets import QApplication, QFormLayout, QFrame, QLabel
from PySide6.QtGui import QFont

from nmeaview.core.geo_utils import sky_to_polar, format_coordinate
from nmeaview.ui.gnss_colordef import get_sys_color, get_snr_color, SYSTEM_NAMES


def _theme(dark_bg="#161A23"):
    palette = QApplication.palette()
    is_dark = palette.color(palette.ColorRole.Window).lightness() < 128
    return {
        'bg': dark_bg if is_dark else "#FFFFFF",
        'fg': "#B1B6BC" if is_dark else "#0F172A",
        'grid': "#1D2435" if is_dark else "#CBD5E1",
        'accent': "#1D2E4A",
        'text_muted': "#94A3B8",
        'is_dark': is_dark,
    }


class SkyplotWidget(FigureCanvas):
    """
    Polar constellation plot: north up, azimuth clockwise, zenith in the centre.

    Satellites used in the solution are drawn filled, the others hollow.
    """
    def __init__(self, parent=None):
        self.theme = _theme()

        self.fig = Figure(figsize=(4, 4), dpi=100, facecolor=self.theme['bg'])
        self.ax = self.fig.add_subplot(111, projection='polar')

        super().__init__(self.fig)
        self.setParent(parent)
        self.init_plot()

        self.scatter_artists = []
        self.text_artists = []

    def init_plot(self):
        ax = self.ax
        ax.set_facecolor(self.theme['bg'])

        # North up, clockwise
        ax.set_theta_zero_location('N')
        ax.set_theta_direction(-1)

        # Radius is the zenith angle: 0 in the centre, horizon at 90
        ax.set_rlim(0, 90)
        ax.set_yticks([0, 30, 60, 90])
        ax.set_yticklabels(['90°', '60°', '30°', '0°'],
                           fontsize=8, color=self.theme['text_muted'])

        ax.set_thetagrids([0, 45, 90, 135, 180, 225, 270, 315],
                          ['N', '45', 'E', '135', 'S', '225', 'W', '315'],
                          fontsize=9, fontweight='bold', color=self.theme['fg'])

        ax.grid(True, color=self.theme['grid'], linestyle='--', linewidth=1, alpha=0.5)
        ax.set_title("SATELLITE SKYPLOT", pad=20, fontsize=10,
                     fontweight='bold', color=self.theme['accent'], alpha=0.8)

        ax.fill(np.linspace(0, 2*np.pi, 100), np.full(100, 90),
                color=self.theme['accent'], alpha=0.03)

    def update_satellites(self, satellites, active_systems):
        while self.scatter_artists:
            self.scatter_artists.pop().remove()
        while self.text_artists:
            self.text_artists.pop().remove()

        for key, sat in dict(satellites).items():
            if sat.sys_id not in active_systems:
                continue
            if sat.elevation is None or sat.azimuth is None:
                continue

            theta, r = sky_to_polar(sat.elevation, sat.azimuth)
            color = get_sys_color(sat.sys_id)

            scatter = self.ax.scatter(
                theta, r,
                facecolors=color if sat.used_in_fix else 'none',
                s=160,
                alpha=0.9,
                edgecolors=color,
                linewidth=1.8,
                zorder=3
            )
            text = self.ax.text(
                theta, r, key,
                fontsize=7,
                ha='center', va='center',
                fontweight='bold',
                color='white' if (sat.used_in_fix or self.theme['is_dark']) else 'black',
                clip_on=True,
                zorder=4
            )
            self.scatter_artists.append(scatter)
            self.text_artists.append(text)

        self.draw_idle()


class SnrBarWidget(FigureCanvas):
    """Signal strength per satellite in view, colored by strength band."""

    def __init__(self, parent=None):
        self.theme = _theme()
        self.theme['muted'] = self.theme['text_muted']

        self.fig = Figure(figsize=(8, 3.5), dpi=100, facecolor=self.theme['bg'])
        self.ax = self.fig.add_subplot(111)
        super().__init__(self.fig)
        self.setParent(parent)

        self.fig.subplots_adjust(bottom=0.22, top=0.92, left=0.07, right=0.97)
        self.init_plot()

    def init_plot(self):
        ax = self.ax
        ax.set_facecolor(self.theme['bg'])
        ax.set_ylim(0, 60)
        ax.set_ylabel("SNR (dB-Hz)", color=self.theme['muted'], fontsize=10, fontweight='bold')

        # Weak / medium / strong bands
        ax.axhspan(0, 30, color='#FF0000', alpha=0.05)
        ax.axhspan(30, 40, color='#FFA500', alpha=0.03)
        ax.axhspan(40, 60, color='#00FF00', alpha=0.05)

        ax.grid(True, axis='y', color=self.theme['grid'], linestyle='--', alpha=0.4)
        ax.spines['top'].set_visible(False)
        ax.spines['right'].set_visible(False)
        ax.spines['left'].set_color(self.theme['grid'])
        ax.spines['bottom'].set_color(self.theme['grid'])
        ax.tick_params(colors=self.theme['muted'], labelsize=9)

    def update_data(self, satellites, active_systems):
        self.ax.clear()
        self.init_plot()

        valid = {k: s for k, s in dict(satellites).items() if s.sys_id in active_systems}
        keys = sorted(valid)

        if not keys:
            self.ax.text(0.5, 0.5, "Waiting for GSV data...",
                         ha='center', va='center', transform=self.ax.transAxes,
                         color=self.theme['muted'], fontsize=12)
            self.draw_idle()
            return

        x = np.arange(len(keys))
        values = [valid[k].snr or 0.0 for k in keys]
        colors = [get_snr_color(valid[k].snr) for k in keys]
        edges = [get_sys_color(valid[k].sys_id) if valid[k].used_in_fix else self.theme['bg'] for k in keys]

        bars = self.ax.bar(x, values, width=0.7, color=colors, alpha=0.85,
                           edgecolor=edges, linewidth=1.2)
        for rect, value in zip(bars, values):
            if value > 0:
                self.ax.text(rect.get_x() + rect.get_width() / 2, value + 1, f"{value:.0f}",
                             ha='center', va='bottom', fontsize=7, color=self.theme['fg'])

        self.ax.set_xticks(x)
        self.ax.set_xticklabels(keys, rotation=90, color=self.theme['fg'], fontsize=8)
        self.ax.set_xlim(-0.6, max(len(keys), 8) - 0.4)

        self.draw_idle()


class SatelliteCountWidget(FigureCanvas):
    """Satellites in view per constellation over time (stacked areas) plus satellites used."""

    def __init__(self, parent=None, max_history=60*60):
        self.theme = _theme()
        self.theme['text'] = "#E2E8F0" if self.theme['is_dark'] else "#1E293B"

        self.fig = Figure(figsize=(5, 2.2), dpi=100, facecolor=self.theme['bg'])
        self.ax = self.fig.add_subplot(111)

        super().__init__(self.fig)
        self.setParent(parent)
        self.setMinimumHeight(150)

        self.systems = SYSTEM_NAMES
        self.colors = {sys: get_sys_color(sys) for sys in self.systems}

        # One sample per refresh
        self.time_history = []
        self.sat_history = {sys: [] for sys in self.systems}
        self.used_history = []
        self.max_history = max_history

        self.init_plot()

    def init_plot(self):
        ax = self.ax
        ax.set_facecolor(self.theme['bg'])
        ax.set_xlabel("Samples", fontsize=9, color=self.theme['text_muted'])
        ax.set_ylabel("Count", fontsize=9, color=self.theme['text_muted'])
        ax.tick_params(colors=self.theme['text_muted'], labelsize=8)
        ax.grid(True, linestyle=':', alpha=0.3, color=self.theme['grid'])
        ax.set_axisbelow(True)
        ax.spines['top'].set_visible(False)
        ax.spines['right'].set_visible(False)
        ax.spines['left'].set_color(self.theme['grid'])
        ax.spines['bottom'].set_color(self.theme['grid'])

    def update_data(self, satellites, active_systems):
        """
        Append one sample and redraw.

        Args:
            satellites: {key: SatelliteState, ...}
            active_systems: set of active system chars {'G', 'R', 'E', ...}
        """
        sys_counts = {sys: 0 for sys in self.systems}
        used = 0
        for sat in dict(satellites).values():
            if sat.sys_id in sys_counts:
                sys_counts[sat.sys_id] += 1
            if sat.used_in_fix and sat.sys_id in active_systems:
                used += 1

        self.time_history.append(datetime.now())
        for sys in self.systems:
            self.sat_history[sys].append(sys_counts[sys])
        self.used_history.append(used)

        if len(self.time_history) > self.max_history:
            self.time_history.pop(0)
            self.used_history.pop(0)
            for sys in self.systems:
                self.sat_history[sys].pop(0)

        self.ax.clear()
        self.init_plot()

        x = np.arange(len(self.time_history))
        bottom = np.zeros(len(self.time_history))
        for sys in (s for s in self.systems if s in active_systems):
            counts = np.array(self.sat_history[sys])
            self.ax.fill_between(x, bottom, bottom + counts, label=self.systems[sys],
                                 color=self.colors[sys], alpha=0.2, edgecolor='none')
            self.ax.plot(x, bottom + counts, color=self.colors[sys], linewidth=0.5, alpha=0.9)
            bottom += counts

        self.ax.plot(x, self.used_history, color=self.theme['text'], linewidth=1.0,
                     linestyle='--', label='Used')

        y_max = max(16, int(np.max(bottom) * 1.2) if len(bottom) else 16)
        self.ax.set_ylim(0, y_max)
        self.ax.set_xlim(0, max(len(x), 10))
        self.ax.text(0.98, 0.05, f'In view: {int(bottom[-1])}  Used: {used}',
                     transform=self.ax.transAxes, fontsize=7, fontweight='bold',
                     color=self.theme['text'], horizontalalignment='right',
                     bbox=dict(boxstyle='round', facecolor=self.theme['grid'],
                               alpha=0.8, edgecolor='none', pad=1.5))

        self.fig.tight_layout()
        self.draw_idle()


class FixPanel(QFrame):
    """Read-only form with the current position and fix status."""

    ROWS = [
        ('latitude', "Latitude:"),
        ('longitude', "Longitude:"),
        ('altitude', "Altitude:"),
        ('quality', "Fix quality:"),
        ('fix_type', "Fix type:"),
        ('sats', "Satellites used / in view:"),
        ('dop', "HDOP / PDOP / VDOP:"),
        ('speed', "Speed / Course:"),
        ('utc', "UTC:"),
    ]

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setObjectName("Panel")
        self.coord_style = 'deg'

        form = QFormLayout(self)
        value_font = QFont("Monospace", 10)
        value_font.setStyleHint(QFont.StyleHint.Monospace)

        self.labels = {}
        for key, title in self.ROWS:
            lbl = QLabel("-")
            lbl.setFont(value_font)
            self.labels[key] = lbl
            form.addRow(title, lbl)

    def update_fix(self, fix, num_in_view=None):
        def fmt(value, spec, suffix=""):
            return f"{value:{spec}}{suffix}" if value is not None else "-"

        self.labels['latitude'].setText(format_coordinate(fix.latitude, True, self.coord_style))
        self.labels['longitude'].setText(format_coordinate(fix.longitude, False, self.coord_style))
        self.labels['altitude'].setText(fmt(fix.altitude, '.1f', " m"))

        quality = self.labels['quality']
        quality.setText(fix.quality_text)
        quality.setStyleSheet(f"color: {'#2A692D' if fix.has_fix else '#6D2F2B'}; font-weight: bold;")

        self.labels['fix_type'].setText(fix.fix_type_text)
        in_view = str(num_in_view) if num_in_view is not None else "-"
        self.labels['sats'].setText(f"{fmt(fix.num_sats, 'd')} / {in_view}")
        self.labels['dop'].setText(f"{fmt(fix.hdop, '.2f')} / {fmt(fix.pdop, '.2f')} / {fmt(fix.vdop, '.2f')}")
        self.labels['speed'].setText(f"{fmt(fix.speed_knots, '.1f', ' kn')} / {fmt(fix.course, '.1f', '°')}")

        utc = fix.timestamp.strftime('%H:%M:%S') if fix.timestamp else "-"
        if fix.datestamp:
            utc = f"{fix.datestamp.isoformat()} {utc}"
        self.labels['utc'].setText(utc)

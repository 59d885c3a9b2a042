from PySide6.QtWidgets import QApplication
from PySide6.QtGui import QPalette


def get_app_stylesheet():
    """
    Blue-toned stylesheet following the current palette (dark or light).
    """
    palette = QApplication.palette()
    base_color = palette.color(QPalette.ColorRole.Window)
    is_dark = base_color.lightness() < 128

    if is_dark:
        bg_main    = "#0F121A"
        bg_card    = "#1C212D"
        bg_input   = "#161A23"
        bg_hover   = "#2D3446"
        border     = "#2F374A"
        fg_main    = "#E2E8F0"
        fg_muted   = "#94A3B8"
        accent     = "#3B82F6"
        selection  = "#1E3A8A"
        stream_bg  = "#0B0E14"
    else:
        bg_main    = "#F8FAFC"
        bg_card    = "#FFFFFF"
        bg_input   = "#F1F5F9"
        bg_hover   = "#E2E8F0"
        border     = "#CBD5E1"
        fg_main    = "#0F172A"
        fg_muted   = "#64748B"
        accent     = "#2563EB"
        selection  = "#DBEAFE"
        stream_bg  = "#FFFFFF"

    radius = "6px"
    font_stack = "Inter, 'Segoe UI', Roboto, 'Helvetica Neue', Arial"

    return f"""
    QWidget {{
        background-color: {bg_main};
        color: {fg_main};
        font-family: {font_stack};
        font-size: 13px;
        outline: none;
    }}

    QFrame#Panel {{
        background-color: {bg_card};
        border: 1px solid {border};
        border-radius: {radius};
    }}

    QPushButton {{
        background-color: {bg_input};
        border: 1px solid {border};
        color: {fg_main};
        padding: 6px 15px;
        border-radius: {radius};
        font-weight: 500;
    }}
    QPushButton:hover {{
        background-color: {bg_hover};
        border-color: {accent};
    }}
    QPushButton:pressed {{
        background-color: {accent};
        color: white;
    }}
    QPushButton:disabled {{
        color: {fg_muted};
    }}

    QLineEdit, QTextEdit, QPlainTextEdit, QSpinBox, QDoubleSpinBox, QComboBox {{
        background-color: {bg_input};
        border: 1px solid {border};
        border-radius: {radius};
        padding: 5px 8px;
        selection-background-color: {accent};
    }}
    QLineEdit:focus, QComboBox:focus {{
        border: 1px solid {accent};
    }}

    /* Raw sentence panel */
    QPlainTextEdit#NmeaStream {{
        background-color: {stream_bg};
        font-family: Consolas, 'DejaVu Sans Mono', Monospace;
        font-size: 12px;
    }}

    QTabWidget::pane {{
        border: 1px solid {border};
        top: -1px;
        background-color: {bg_card};
        border-radius: {radius};
    }}
    QTabBar::tab {{
        background-color: {bg_main};
        color: {fg_muted};
        padding: 8px 20px;
        margin-right: 4px;
        border: 1px solid {border};
        border-bottom: none;
        border-top-left-radius: {radius};
        border-top-right-radius: {radius};
    }}
    QTabBar::tab:selected {{
        background-color: {bg_card};
        color: {accent};
        font-weight: bold;
        border-bottom: 2px solid {bg_card};
    }}

    QHeaderView::section {{
        background-color: {bg_input};
        color: {fg_muted};
        padding: 6px;
        border: none;
        border-right: 1px solid {border};
        border-bottom: 1px solid {border};
        font-weight: bold;
    }}
    QTableWidget {{
        gridline-color: {border};
        background-color: {bg_card};
        alternate-background-color: {bg_input};
        selection-background-color: {selection};
    }}

    QMenu, QComboBox QAbstractItemView {{
        background-color: {bg_card};
        border: 1px solid {border};
        padding: 4px;
    }}

    QSplitter::handle {{
        background-color: {border};
    }}

    QLabel {{
        background-color: transparent;
        color: {fg_main};
        padding: 2px;
    }}

    QLabel[class="status"] {{
        background-color: {bg_hover};
        border: 1px solid {border};
        border-radius: 10px;
        padding: 2px 10px;
        font-weight: bold;
        font-size: 11px;
    }}
    """

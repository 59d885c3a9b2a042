# ui/app_manager.py
from PySide6.QtCore import QObject
from PySide6.QtGui import QPalette, QColor

from nmeaview.ui.viewer_window import ViewerWindow


class AppManager(QObject):
    """
    Application manager - applies the global style and owns the viewer window
    """

    def __init__(self, app):
        super().__init__()
        self.app = app
        self.viewer_window = None

        self.apply_global_style()

    def apply_global_style(self):
        """Apply global application style"""
        self.app.setStyle("Fusion")
        palette = QPalette()

        palette.setColor(QPalette.ColorRole.Window, QColor(250, 250, 250))
        palette.setColor(QPalette.ColorRole.Base, QColor(255, 255, 255))
        palette.setColor(QPalette.ColorRole.AlternateBase, QColor(245, 245, 245))

        palette.setColor(QPalette.ColorRole.WindowText, QColor(30, 30, 30))
        palette.setColor(QPalette.ColorRole.Text, QColor(20, 20, 20))

        palette.setColor(QPalette.ColorRole.Button, QColor(245, 245, 245))
        palette.setColor(QPalette.ColorRole.ButtonText, QColor(30, 30, 30))

        palette.setColor(QPalette.ColorRole.Highlight, QColor(52, 125, 255))
        palette.setColor(QPalette.ColorRole.HighlightedText, QColor(255, 255, 255))

        self.app.setPalette(palette)

        font = self.app.font()
        font.setPointSize(9)
        self.app.setFont(font)

    def show_viewer(self):
        if not self.viewer_window:
            self.viewer_window = ViewerWindow()
        self.viewer_window.show()

    def cleanup(self):
        """Clean up resources"""
        if self.viewer_window:
            self.viewer_window.close()
            self.viewer_window = None

#!/usr/bin/env python3
"""
GPS NMEA Viewer
Main GUI Application Entry Point
"""

import logging
import os
import sys

from PySide6.QtWidgets import QApplication

from nmeaview import __version__
from nmeaview.ui.app_manager import AppManager


def main():
    logging.basicConfig(
        level=os.environ.get("NMEAVIEW_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv)
    app.setApplicationName("GPS NMEA Viewer")
    app.setApplicationVersion(__version__)

    manager = AppManager(app)
    app.aboutToQuit.connect(manager.cleanup)
    manager.show_viewer()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()

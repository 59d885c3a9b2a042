"""
Global Configuration Module

This module provides a centralized configuration storage for the serial connection
and display settings that can be accessed by all functions throughout the application.
"""

from typing import Dict, Any, List
from dataclasses import dataclass, field


# Baud rates offered in the UI. u-blox modules ship at 9600, some are set to 38400.
BAUDRATES = [4800, 9600, 19200, 38400, 57600, 115200]


@dataclass
class SerialSettings:
    """
    Data class representing the GPS dongle serial connection.
    """
    port: str = ""              # e.g. 'COM3', '/dev/ttyUSB0' or a pyserial URL
    baudrate: int = 9600
    timeout: float = 1.0        # Read timeout in seconds
    read_size: int = 1024       # Max bytes per read
    poll_interval: float = 0.2  # Pause between reads in seconds
    retry_interval: float = 3.0 # Wait before reopening a lost port


@dataclass
class DisplaySettings:
    """
    GUI refresh and retention settings.
    """
    max_log_lines: int = 500         # Raw NMEA lines kept in the stream panel
    stale_timeout: float = 5.0       # Drop satellites not reported for this long
    gui_update_interval: float = 0.3 # Minimum interval between widget refreshes


@dataclass
class GlobalConfig:
    """
    Global configuration container for the entire application.
    """
    serial: SerialSettings = field(default_factory=SerialSettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)

    # GNSS system filters (G=GPS, R=GLONASS, E=Galileo, C=BeiDou, J=QZSS, S=SBAS)
    target_systems: List[str] = field(default_factory=lambda: ['G', 'R', 'E', 'C', 'J', 'S'])

    # Reject sentences without a '*hh' checksum
    strict_checksum: bool = False

    def update_serial_settings(self, settings: Dict[str, Any]) -> None:
        """
        Update serial settings.

        Only keys that exist on SerialSettings are applied; unknown keys are ignored.

        Args:
            settings: Dictionary containing the settings to update
        """
        for key, value in settings.items():
            if hasattr(self.serial, key):
                setattr(self.serial, key, value)

    def update_display_settings(self, settings: Dict[str, Any]) -> None:
        for key, value in settings.items():
            if hasattr(self.display, key):
                setattr(self.display, key, value)

    def update_general_settings(self, settings: Dict[str, Any]) -> None:
        """
        Update general settings like target_systems and strict_checksum.

        Args:
            settings: Dictionary containing the general settings to update
        """
        for key, value in settings.items():
            if key in ('serial', 'display'):
                continue
            if hasattr(self, key):
                setattr(self, key, value)


# Create a singleton instance of GlobalConfig that can be imported and used globally
global_config = GlobalConfig()


def get_global_config() -> GlobalConfig:
    """
    Get the global configuration instance.

    Returns:
        GlobalConfig instance
    """
    return global_config


def get_serial_settings() -> SerialSettings:
    """Convenience function to get the serial settings."""
    return global_config.serial


def update_serial_settings(settings: Dict[str, Any]) -> None:
    """Convenience function to update serial settings."""
    global_config.update_serial_settings(settings)


def update_display_settings(settings: Dict[str, Any]) -> None:
    """Convenience function to update display settings."""
    global_config.update_display_settings(settings)


def update_general_settings(settings: Dict[str, Any]) -> None:
    """
    Convenience function to update general settings like target_systems.

    Args:
        settings: Dictionary containing the general settings to update
    """
    global_config.update_general_settings(settings)

"""GPS NMEA serial viewer."""

__version__ = "0.1"

"""
Serial Port Client Module

This module implements the serial port client used to receive NMEA 0183 text from a
GPS dongle. Ports are opened through ``serial.serial_for_url`` so that plain device
names ('COM3', '/dev/ttyUSB0') and pyserial URLs ('loop://', 'socket://host:port')
are handled the same way.

Key Features:
- Serial port connection management (baud rate, 8N1 framing, read timeout)
- Port discovery for the port selector
- Non-blocking friendly reads (returns whatever is buffered, up to a limit)
"""

import logging

import serial
import serial.tools.list_ports


logger = logging.getLogger(__name__)


class SerialClient:
    """
    Serial port client for receiving NMEA sentences.

    Attributes:
        port (str): Serial port name (e.g., 'COM3', '/dev/ttyUSB0')
        baudrate (int): Baud rate for serial communication (e.g., 9600)
        timeout (float): Read timeout in seconds
        ser (serial.Serial): Active serial port connection
    """

    def __init__(self, port: str, baudrate: int = 9600, timeout: float = 1.0):
        """
        Initialize serial client with port parameters.

        Args:
            port (str): Serial port name (e.g., 'COM3' on Windows, '/dev/ttyUSB0' on Linux)
            baudrate (int): Baud rate (default: 9600)
            timeout (float): Read timeout in seconds (default: 1.0)
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.ser = None

    @classmethod
    def from_config(cls):
        """
        Create a SerialClient instance from global configuration settings.

        Returns:
            SerialClient instance initialized with configuration values

        Raises:
            ValueError: If no serial port has been selected
        """
        from .global_config import get_serial_settings

        settings = get_serial_settings()
        if not settings.port:
            raise ValueError("Cannot create SerialClient: no serial port selected")

        return cls(settings.port, settings.baudrate, settings.timeout)

    @property
    def is_open(self) -> bool:
        return bool(self.ser and self.ser.is_open)

    def connect(self) -> serial.Serial:
        """
        Establish serial port connection.

        Returns:
            serial.Serial: Connected serial port object ready for data reception

        Raises:
            serial.SerialException: When port cannot be opened or is invalid
        """
        try:
            self.ser = serial.serial_for_url(
                self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                stopbits=serial.STOPBITS_ONE,
                parity=serial.PARITY_NONE,
                timeout=self.timeout
            )
        except (serial.SerialException, ValueError) as e:
            self.ser = None
            raise serial.SerialException(f"Cannot open {self.port}@{self.baudrate}: {e}") from e

        if not self.ser.is_open:
            self.ser = None
            raise serial.SerialException(f"Failed to open port {self.port}")

        logger.info("Opened %s at %d baud", self.port, self.baudrate)
        return self.ser

    def close(self):
        """
        Close the serial port connection. Safe to call when already closed.
        """
        if self.ser is not None and self.ser.is_open:
            try:
                self.ser.close()
            except serial.SerialException as e:
                logger.warning("Error closing %s: %s", self.port, e)
            else:
                logger.info("Closed %s", self.port)
        self.ser = None

    def read(self, size: int = 1024) -> bytes:
        """
        Read data from serial port.

        Blocks for at most ``timeout`` seconds waiting for the first byte, then returns
        everything already buffered (capped at ``size``).

        Args:
            size (int): Maximum number of bytes to read

        Returns:
            bytes: Data read from serial port (empty on timeout)

        Raises:
            serial.PortNotOpenError: If serial port is not open
        """
        if not self.is_open:
            raise serial.PortNotOpenError()

        waiting = self.ser.in_waiting
        return self.ser.read(min(max(waiting, 1), size))

    def write(self, data: bytes) -> int:
        """
        Write data to serial port.

        Args:
            data (bytes): Data to write

        Returns:
            int: Number of bytes written

        Raises:
            serial.PortNotOpenError: If serial port is not open
        """
        if not self.is_open:
            raise serial.PortNotOpenError()

        return self.ser.write(data)

    @staticmethod
    def list_available_ports():
        """
        List all available serial ports on the system.

        Returns:
            list: Sorted list of available serial port names
        """
        try:
            return sorted(port.device for port in serial.tools.list_ports.comports())
        except (OSError, serial.SerialException) as e:
            logger.warning("Port enumeration failed: %s", e)
            return []

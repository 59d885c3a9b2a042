"""Tests for the serial client, using pyserial's loop:// URL handler."""

from types import SimpleNamespace

import pytest
import serial

from nmeaview.core import global_config as config_module
from nmeaview.core.global_config import GlobalConfig
from nmeaview.core.serial_client import SerialClient


@pytest.fixture
def fresh_config(monkeypatch):
    cfg = GlobalConfig()
    monkeypatch.setattr(config_module, "global_config", cfg)
    return cfg


@pytest.fixture
def loop_client():
    client = SerialClient("loop://", baudrate=9600, timeout=0.1)
    client.connect()
    yield client
    client.close()


def test_loopback_read(loop_client):
    assert loop_client.is_open
    loop_client.write(b"$GPGGA,1*00\r\n")
    assert loop_client.read(1024) == b"$GPGGA,1*00\r\n"


def test_read_capped_at_size(loop_client):
    loop_client.write(b"0123456789")
    assert loop_client.read(4) == b"0123"
    assert loop_client.read(1024) == b"456789"


def test_read_timeout_returns_empty(loop_client):
    assert loop_client.read(1024) == b""


def test_close_is_idempotent(loop_client):
    loop_client.close()
    loop_client.close()
    assert not loop_client.is_open


def test_read_without_connect():
    client = SerialClient("loop://")
    with pytest.raises(serial.PortNotOpenError):
        client.read()
    with pytest.raises(serial.SerialException):
        client.write(b"x")


def test_connect_failure_wrapped():
    client = SerialClient("/dev/nmeaview-no-such-port", baudrate=4800)
    with pytest.raises(serial.SerialException, match="nmeaview-no-such-port@4800"):
        client.connect()
    assert not client.is_open


def test_from_config(fresh_config):
    fresh_config.update_serial_settings({"port": "loop://", "baudrate": 38400, "timeout": 0.5})
    client = SerialClient.from_config()
    assert (client.port, client.baudrate, client.timeout) == ("loop://", 38400, 0.5)


def test_from_config_without_port(fresh_config):
    with pytest.raises(ValueError):
        SerialClient.from_config()


def test_list_available_ports(monkeypatch):
    ports = [SimpleNamespace(device="/dev/ttyUSB1"), SimpleNamespace(device="/dev/ttyUSB0")]
    monkeypatch.setattr(serial.tools.list_ports, "comports", lambda: ports)
    assert SerialClient.list_available_ports() == ["/dev/ttyUSB0", "/dev/ttyUSB1"]


def test_list_available_ports_failure(monkeypatch):
    def broken():
        raise OSError("no sysfs")
    monkeypatch.setattr(serial.tools.list_ports, "comports", broken)
    assert SerialClient.list_available_ports() == []

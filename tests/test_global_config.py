"""Tests for the global configuration container."""

from nmeaview.core.global_config import GlobalConfig, SerialSettings, DisplaySettings


def test_defaults():
    cfg = GlobalConfig()
    assert cfg.serial == SerialSettings(port="", baudrate=9600, timeout=1.0, read_size=1024,
                                        poll_interval=0.2, retry_interval=3.0)
    assert cfg.display.max_log_lines == 500
    assert cfg.display.stale_timeout == 5.0
    assert cfg.target_systems == ['G', 'R', 'E', 'C', 'J', 'S']
    assert cfg.strict_checksum is False


def test_instances_do_not_share_lists():
    a, b = GlobalConfig(), GlobalConfig()
    a.target_systems.remove('S')
    assert 'S' in b.target_systems


def test_update_serial_ignores_unknown_keys():
    cfg = GlobalConfig()
    cfg.update_serial_settings({"port": "COM3", "baudrate": 4800, "parity": "E"})
    assert cfg.serial.port == "COM3"
    assert cfg.serial.baudrate == 4800
    assert not hasattr(cfg.serial, "parity")


def test_update_display():
    cfg = GlobalConfig()
    cfg.update_display_settings({"max_log_lines": 1000})
    assert cfg.display == DisplaySettings(max_log_lines=1000)


def test_general_settings_cannot_replace_sections():
    cfg = GlobalConfig()
    cfg.update_general_settings({"target_systems": ['G'], "strict_checksum": True, "serial": None})
    assert cfg.target_systems == ['G']
    assert cfg.strict_checksum is True
    assert isinstance(cfg.serial, SerialSettings)

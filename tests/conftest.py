"""Shared pytest configuration and fixtures for the NMEA viewer test suite."""

import sys
from functools import reduce
from operator import xor
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# NMEA helpers
# =============================================================================

def nmea(body: str) -> str:
    """Wrap a sentence body ('GPGGA,...') with '$' and its '*hh' checksum."""
    checksum = reduce(xor, map(ord, body), 0)
    return f"${body}*{checksum:02X}"


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class StubSignal:
    """Stands in for a Qt Signal: records every emit() call."""

    def __init__(self):
        self.calls = []

    def emit(self, *args):
        self.calls.append(args if len(args) > 1 else args[0])


class StubSignals:
    """Same attributes as StreamSignals, without Qt."""

    def __init__(self):
        self.log_signal = StubSignal()
        self.sentence_signal = StubSignal()
        self.fix_signal = StubSignal()
        self.sky_signal = StubSignal()
        self.status_signal = StubSignal()


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def signals():
    return StubSignals()


@pytest.fixture
def gga_fix():
    """3D GPS fix at 48°07.038'N 11°31.000'E."""
    return nmea("GPGGA,123519,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,")


@pytest.fixture
def gga_no_fix():
    return nmea("GPGGA,123520,,,,,0,00,99.99,,,,,,")


@pytest.fixture
def rmc_valid():
    return nmea("GPRMC,123519,A,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W")


@pytest.fixture
def gsa_3d():
    return nmea("GPGSA,A,3,04,05,,09,12,,,24,,,,,2.5,1.3,2.1")


@pytest.fixture
def gsv_cycle():
    """Two-sentence GPS GSV cycle, 8 satellites; PRN 12 is in view but not tracked."""
    return [
        nmea("GPGSV,2,1,08,04,40,083,46,05,17,308,41,09,07,344,39,12,64,138,"),
        nmea("GPGSV,2,2,08,24,58,210,44,25,32,040,30,29,09,250,18,31,05,120,"),
    ]

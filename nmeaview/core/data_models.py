"""
Data models for GPS fix information and satellites in view.
"""
from dataclasses import dataclass, field
from datetime import date, time
from typing import Dict, Optional


FIX_QUALITY_NAMES = {
    0: "Invalid",
    1: "GPS fix",
    2: "DGPS fix",
    3: "PPS fix",
    4: "RTK fixed",
    5: "RTK float",
    6: "Estimated",
    7: "Manual",
    8: "Simulation",
}

FIX_TYPE_NAMES = {
    1: "No fix",
    2: "2D",
    3: "3D",
}


@dataclass
class SatelliteState:
    """
    A single satellite as reported by a GSV sentence.
    """
    sys_id: str                        # 'G', 'R', 'E', 'C', 'J', 'S'
    prn: int                           # Satellite ID

    elevation: Optional[float] = None  # Degrees (0-90)
    azimuth: Optional[float] = None    # Degrees (0-360), true north
    snr: Optional[float] = None        # dB-Hz, None when not tracking
    used_in_fix: bool = False

    @property
    def key(self) -> str:
        return f"{self.sys_id}{self.prn:02d}"


@dataclass
class FixState:
    """
    Receiver position/time solution merged from GGA, RMC, GSA and GLL.
    """
    timestamp: Optional[time] = None   # UTC time of day
    datestamp: Optional[date] = None
    latitude: Optional[float] = None   # Signed decimal degrees
    longitude: Optional[float] = None
    altitude: Optional[float] = None   # Meters above mean sea level

    fix_quality: int = 0               # GGA quality indicator
    fix_type: int = 1                  # GSA mode (1=none, 2=2D, 3=3D)
    num_sats: Optional[int] = None     # Satellites used in solution
    status: Optional[str] = None       # RMC 'A' (valid) / 'V' (warning)

    hdop: Optional[float] = None
    pdop: Optional[float] = None
    vdop: Optional[float] = None
    speed_knots: Optional[float] = None
    course: Optional[float] = None

    @property
    def has_fix(self) -> bool:
        if self.fix_quality > 0:
            return True
        return self.status == 'A' and self.latitude is not None

    @property
    def quality_text(self) -> str:
        return FIX_QUALITY_NAMES.get(self.fix_quality, f"Unknown ({self.fix_quality})")

    @property
    def fix_type_text(self) -> str:
        return FIX_TYPE_NAMES.get(self.fix_type, f"Unknown ({self.fix_type})")


@dataclass
class SkySnapshot:
    """
    Constellation view assembled from the latest complete GSV cycles.
    """
    talker: str
    num_in_view: int = 0
    satellites: Dict[str, SatelliteState] = field(default_factory=dict)

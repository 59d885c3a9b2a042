"""
Geometry and formatting helpers for positions and the satellite sky plot.
"""
import numpy as np


def sky_to_polar(elevation, azimuth):
    """
    Map elevation/azimuth to sky plot polar coordinates.

    The plot has north up and azimuth growing clockwise (set on the axes), the zenith at
    the centre and the horizon on the outer ring, so the radius is the zenith angle.

    Args:
        elevation: Degrees above the horizon (scalar or array), clipped to 0-90
        azimuth: Degrees from true north (scalar or array), wrapped to 0-360

    Returns:
        (theta_rad, radius_deg)
    """
    el = np.clip(np.asarray(elevation, dtype=float), 0.0, 90.0)
    az = np.mod(np.asarray(azimuth, dtype=float), 360.0)
    return np.radians(az), 90.0 - el


def format_coordinate(value, is_latitude: bool, style: str = 'deg') -> str:
    """
    Format signed decimal degrees for display.

    Args:
        value: Decimal degrees or None
        is_latitude: Pick N/S instead of E/W
        style: 'deg' (12.3456789° N) or 'dms' (12° 20' 44.444" N)

    Returns:
        str: Formatted coordinate, '-' when value is None
    """
    if value is None:
        return '-'
    hemi = ('N' if value >= 0 else 'S') if is_latitude else ('E' if value >= 0 else 'W')
    a = abs(value)
    if style == 'dms':
        deg = int(a)
        minutes_full = (a - deg) * 60.0
        minutes = int(minutes_full)
        seconds = (minutes_full - minutes) * 60.0
        # Avoid 60.000" from rounding
        if round(seconds, 3) >= 60.0:
            seconds = 0.0
            minutes += 1
        if minutes >= 60:
            minutes = 0
            deg += 1
        return f"{deg}° {minutes:02d}' {seconds:06.3f}\" {hemi}"
    return f"{a:.7f}° {hemi}"

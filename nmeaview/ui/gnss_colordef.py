SYSTEM_NAMES = {
    'G': 'GPS',
    'R': 'GLONASS',
    'E': 'Galileo',
    'C': 'BeiDou',
    'J': 'QZSS',
    'S': 'SBAS',
}


def get_sys_color(sys_char):
    """
    Return a predefined color (hex string) based on satellite system identifier.

    Parameters
    ----------
    sys_char : str
        Single-character system identifier:
        'G' = GPS, 'R' = GLONASS, 'E' = Galileo,
        'C' = BeiDou, 'J' = QZSS, 'S' = SBAS.

    Returns
    -------
    str
        Hex color code associated with the satellite system.
    """
    colors = {
        'G': '#5E8C61',  # GPS - forest green
        'R': '#B05E5E',  # GLONASS - rust red
        'E': '#5B84B1',  # Galileo - steel blue
        'C': '#8E77A4',  # BeiDou - grey violet
        'J': '#C48D4D',  # QZSS - ochre
        'S': '#7F8C8D'   # SBAS - cool grey
    }
    return colors.get(sys_char, '#555555')


def get_snr_color(snr):
    """
    Color for a carrier-to-noise value, matching the bands drawn behind the SNR chart.

    Parameters
    ----------
    snr : float or None
        Signal strength in dB-Hz. None means the satellite is in view but not tracked.

    Returns
    -------
    str
        Hex color code.
    """
    if snr is None:
        return '#95A5A6'  # not tracked
    if snr < 20:
        return '#C0392B'
    if snr < 30:
        return '#E67E22'
    if snr < 40:
        return '#D4AC0D'
    return '#27AE60'

"""
Turns NMEA 0183 text lines into fix and satellite-in-view updates.

Sentence decoding and checksum validation are done by pynmea2; this module only keeps
the receiver state that spans several sentences:
  - the fix, merged from GGA / RMC / GSA / GLL
  - GSV cycles, which list the satellites in view four at a time
  - the set of satellites used in the solution (GSA)
"""
import logging
import time
from collections import Counter
from dataclasses import replace
from datetime import date, time as time_of_day
from typing import Dict, List, Optional, Set, Tuple

import pynmea2

from .data_models import FixState, SatelliteState, SkySnapshot


logger = logging.getLogger(__name__)

TALKER_SYSTEMS = {
    'GP': 'G',
    'GL': 'R',
    'GA': 'E',
    'GB': 'C',
    'BD': 'C',
    'GQ': 'J',
    'QZ': 'J',
}

# NMEA 4.10 GSA system ID field
GSA_SYSTEM_IDS = {
    '1': 'G',
    '2': 'R',
    '3': 'E',
    '4': 'C',
    '5': 'J',
}


def system_from_prn(prn: int) -> str:
    """
    Derive the constellation from an NMEA satellite number (mixed 'GN' talker and
    SBAS/extended numbers reported under 'GP').
    """
    if 1 <= prn <= 32:
        return 'G'
    if 33 <= prn <= 64 or 120 <= prn <= 158:
        return 'S'
    if 65 <= prn <= 96:
        return 'R'
    if 193 <= prn <= 200:
        return 'J'
    if 201 <= prn <= 264 or 401 <= prn <= 437:
        return 'C'
    if 301 <= prn <= 336:
        return 'E'
    return 'G'


def system_for(talker: str, prn: int) -> str:
    if talker in ('GP', 'GN') or talker not in TALKER_SYSTEMS:
        return system_from_prn(prn)
    return TALKER_SYSTEMS[talker]


def _to_float(value) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value) -> Optional[int]:
    f = _to_float(value)
    return int(f) if f is not None else None


class NmeaHandler:
    """
    Stateful NMEA decoder.

    ``process_line`` returns a list of ``(kind, payload)`` events, where kind is
    ``'fix'`` (payload: FixState copy) or ``'sky'`` (payload: SkySnapshot).
    Bad input is counted and logged, never raised.
    """

    def __init__(self, strict_checksum: bool = False, max_cycle_age: float = 10.0, clock=time.monotonic):
        """
        Args:
            strict_checksum: Reject sentences that carry no checksum at all.
            max_cycle_age: GSV cycles older than this (seconds) are left out of snapshots.
            clock: Monotonic time source, injectable for tests.
        """
        self.strict_checksum = strict_checksum
        self.max_cycle_age = max_cycle_age
        self.clock = clock
        self.reset()

    def reset(self):
        self.fix = FixState()
        self.sentence_counts = Counter()
        self.error_count = 0
        self.unsupported_count = 0
        # (talker, signal_id) -> list of satellites collected so far in the cycle
        self._pending_cycles: Dict[Tuple[str, str], list] = {}
        self._pending_next: Dict[Tuple[str, str], int] = {}
        # (talker, signal_id) -> (commit time, satellites)
        self._cycles: Dict[Tuple[str, str], Tuple[float, List[SatelliteState]]] = {}
        # GSA group -> keys of satellites used in the solution
        self._used: Dict[str, Set[str]] = {}

    @property
    def used_keys(self) -> Set[str]:
        keys = set()
        for group in self._used.values():
            keys |= group
        return keys

    def process_line(self, line: str) -> List[tuple]:
        """
        Decode one sentence and update state.

        Args:
            line: A single NMEA sentence, e.g. '$GPGGA,...*47'

        Returns:
            list of (kind, payload) events produced by this sentence.
        """
        line = line.strip()
        if not line.startswith(('$', '!')):
            self.error_count += 1
            return []

        try:
            msg = pynmea2.parse(line, check=self.strict_checksum)
        except pynmea2.ChecksumError as e:
            self.error_count += 1
            logger.debug("Checksum mismatch: %s (%s)", line, e)
            return []
        except pynmea2.SentenceTypeError:
            self.unsupported_count += 1
            return []
        except pynmea2.ParseError as e:
            self.error_count += 1
            logger.debug("Unparsable sentence: %s (%s)", line, e)
            return []

        if not isinstance(msg, pynmea2.TalkerSentence):
            # Proprietary ($P...) and query sentences carry no fix data
            self.unsupported_count += 1
            return []
        sentence_type = msg.sentence_type
        self.sentence_counts[sentence_type] += 1

        handler = getattr(self, f"_handle_{sentence_type.lower()}", None)
        if handler is None:
            return []

        try:
            return handler(msg)
        except (ValueError, TypeError, AttributeError) as e:
            # Field-level garbage that passed the checksum
            self.error_count += 1
            logger.debug("Bad %s fields: %s (%s)", sentence_type, line, e)
            return []

    # -------------------------------------------------------------------------
    # Fix sentences
    # -------------------------------------------------------------------------
    def _fix_event(self):
        return [('fix', replace(self.fix))]

    def _apply_time(self, msg):
        if isinstance(msg.timestamp, time_of_day):
            self.fix.timestamp = msg.timestamp

    def _apply_position(self, msg):
        """Copy lat/lon from a LatLonFix sentence when both fields are present."""
        if msg.lat and msg.lat_dir and msg.lon and msg.lon_dir:
            lat = msg.latitude
            lon = msg.longitude
            if -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0:
                self.fix.latitude = lat
                self.fix.longitude = lon

    def _handle_gga(self, msg):
        fix = self.fix
        self._apply_time(msg)
        fix.fix_quality = _to_int(msg.gps_qual) or 0
        fix.num_sats = _to_int(msg.num_sats)
        fix.hdop = _to_float(msg.horizontal_dil)
        if fix.fix_quality > 0:
            self._apply_position(msg)
            fix.altitude = _to_float(msg.altitude)
        return self._fix_event()

    def _handle_rmc(self, msg):
        fix = self.fix
        self._apply_time(msg)
        if isinstance(msg.datestamp, date):
            fix.datestamp = msg.datestamp
        fix.status = msg.status or None
        if msg.status == 'A':
            self._apply_position(msg)
            fix.speed_knots = _to_float(msg.spd_over_grnd)
            fix.course = _to_float(msg.true_course)
        return self._fix_event()

    def _handle_gll(self, msg):
        self._apply_time(msg)
        if msg.status == 'A':
            self._apply_position(msg)
        return self._fix_event()

    def _handle_gsa(self, msg):
        fix = self.fix
        fix.fix_type = _to_int(msg.mode_fix_type) or 1
        fix.pdop = _to_float(msg.pdop)
        fix.hdop = _to_float(msg.hdop)
        fix.vdop = _to_float(msg.vdop)

        system_id = msg.data[17] if len(msg.data) > 17 else ''
        forced_sys = GSA_SYSTEM_IDS.get(system_id)

        # Without a system ID, a 'GN' receiver sends one GSA per constellation, so the
        # group comes from the PRNs. SBAS is kept in the GPS group.
        if forced_sys:
            groups = {forced_sys: set()}
        elif msg.talker == 'GN':
            groups = {}
        else:
            groups = {TALKER_SYSTEMS.get(msg.talker, msg.talker): set()}

        for i in range(1, 13):
            prn = _to_int(getattr(msg, f"sv_id{i:02d}"))
            if prn is None:
                continue
            if forced_sys == 'G':
                # SBAS is reported under the GPS system ID, keyed as GSV keys it
                sys_id = system_from_prn(prn)
            elif forced_sys:
                sys_id = forced_sys
            else:
                sys_id = system_for(msg.talker, prn)
            if forced_sys:
                group = forced_sys
            elif msg.talker == 'GN':
                group = 'G' if sys_id == 'S' else sys_id
            else:
                group = next(iter(groups))
            groups.setdefault(group, set()).add(f"{sys_id}{prn:02d}")

        # An empty 'GN' GSA without a system ID names no group, so nothing is cleared
        self._used.update(groups)
        return self._fix_event()

    # -------------------------------------------------------------------------
    # Satellites in view
    # -------------------------------------------------------------------------
    def _handle_gsv(self, msg):
        num_messages = _to_int(msg.num_messages)
        msg_num = _to_int(msg.msg_num)
        if not num_messages or not msg_num or msg_num > num_messages:
            self.error_count += 1
            return []

        # NMEA 4.10 appends a signal ID after the satellite blocks
        n_fields = len(msg.data)
        signal_id = msg.data[-1] if (n_fields - 3) % 4 == 1 else ''
        cycle = (msg.talker, signal_id)

        # A trailing signal ID must not be read as the PRN of a fifth block
        n_blocks = min(4, (n_fields - 3) // 4)
        sats = []
        for i in range(1, n_blocks + 1):
            prn = _to_int(getattr(msg, f"sv_prn_num_{i}"))
            if prn is None:
                continue
            sats.append(SatelliteState(
                sys_id=system_for(msg.talker, prn),
                prn=prn,
                elevation=_to_float(getattr(msg, f"elevation_deg_{i}")),
                azimuth=_to_float(getattr(msg, f"azimuth_{i}")),
                snr=_to_float(getattr(msg, f"snr_{i}")),
            ))

        if msg_num == 1:
            self._pending_cycles[cycle] = sats
        elif self._pending_next.get(cycle) == msg_num:
            self._pending_cycles[cycle].extend(sats)
        else:
            # Missed a sentence of this cycle, wait for the next one to start
            self._pending_cycles.pop(cycle, None)
            self._pending_next.pop(cycle, None)
            return []

        if msg_num < num_messages:
            self._pending_next[cycle] = msg_num + 1
            return []

        self._pending_next.pop(cycle, None)
        self._cycles[cycle] = (self.clock(), self._pending_cycles.pop(cycle))
        return [('sky', self.snapshot(msg.talker))]

    def snapshot(self, talker: str = 'GN') -> SkySnapshot:
        """
        Merge the latest complete GSV cycles of every talker/signal.

        A satellite reported on several signals keeps its position and the strongest SNR.
        """
        now = self.clock()
        used = self.used_keys
        merged: Dict[str, SatelliteState] = {}

        for cycle, (stamp, sats) in list(self._cycles.items()):
            if now - stamp > self.max_cycle_age:
                del self._cycles[cycle]
                continue
            for sat in sats:
                key = sat.key
                current = merged.get(key)
                if current is None:
                    merged[key] = replace(sat, used_in_fix=key in used)
                    continue
                if current.elevation is None:
                    current.elevation = sat.elevation
                if current.azimuth is None:
                    current.azimuth = sat.azimuth
                if sat.snr is not None and (current.snr is None or sat.snr > current.snr):
                    current.snr = sat.snr

        return SkySnapshot(talker=talker, num_in_view=len(merged), satellites=merged)

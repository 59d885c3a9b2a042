"""Tests for NMEA sentence decoding and receiver state tracking."""

from datetime import date, time

import pytest

from nmeaview.core.nmea_handler import NmeaHandler, system_for, system_from_prn
from conftest import nmea


@pytest.fixture
def handler(clock):
    return NmeaHandler(clock=clock)


def _fix(events):
    kinds = [kind for kind, _ in events]
    assert kinds == ['fix']
    return events[0][1]


# =============================================================================
# Constellation mapping
# =============================================================================

@pytest.mark.parametrize("prn, expected", [
    (1, 'G'), (32, 'G'), (33, 'S'), (51, 'S'), (65, 'R'), (96, 'R'),
    (120, 'S'), (158, 'S'), (193, 'J'), (201, 'C'), (301, 'E'), (401, 'C'),
])
def test_system_from_prn(prn, expected):
    assert system_from_prn(prn) == expected


def test_talker_overrides_prn_range():
    assert system_for('GL', 5) == 'R'
    assert system_for('GA', 11) == 'E'
    assert system_for('GB', 7) == 'C'
    assert system_for('GN', 70) == 'R'
    assert system_for('GP', 46) == 'S'


# =============================================================================
# Fix sentences
# =============================================================================

def test_gga_sets_position_and_quality(handler, gga_fix):
    fix = _fix(handler.process_line(gga_fix))

    assert fix.latitude == pytest.approx(48.1173, abs=1e-6)
    assert fix.longitude == pytest.approx(11.516667, abs=1e-6)
    assert fix.altitude == pytest.approx(545.4)
    assert fix.fix_quality == 1
    assert fix.num_sats == 8
    assert fix.hdop == pytest.approx(0.9)
    assert fix.timestamp.replace(tzinfo=None) == time(12, 35, 19)
    assert fix.has_fix
    assert fix.quality_text == "GPS fix"


def test_gga_without_fix_keeps_last_position(handler, gga_fix, gga_no_fix):
    handler.process_line(gga_fix)
    fix = _fix(handler.process_line(gga_no_fix))

    assert fix.fix_quality == 0
    assert not fix.has_fix
    assert fix.latitude == pytest.approx(48.1173, abs=1e-6)
    assert fix.num_sats == 0
    assert fix.timestamp.replace(tzinfo=None) == time(12, 35, 20)


def test_gga_empty_fields_are_none(handler, gga_no_fix):
    fix = _fix(handler.process_line(gga_no_fix))
    assert fix.latitude is None
    assert fix.longitude is None
    assert fix.altitude is None


def test_rmc_valid(handler, rmc_valid):
    fix = _fix(handler.process_line(rmc_valid))

    assert fix.status == 'A'
    assert fix.datestamp == date(1994, 3, 23)
    assert fix.speed_knots == pytest.approx(22.4)
    assert fix.course == pytest.approx(84.4)
    assert fix.latitude == pytest.approx(48.1173, abs=1e-6)
    assert fix.has_fix


def test_rmc_void_does_not_move_position(handler):
    fix = _fix(handler.process_line(
        nmea("GPRMC,123519,V,4807.038,N,01131.000,E,,,230394,,")
    ))
    assert fix.status == 'V'
    assert fix.latitude is None
    assert not fix.has_fix


def test_southern_western_hemisphere(handler):
    fix = _fix(handler.process_line(
        nmea("GNGGA,010203.00,3351.500,S,15112.600,W,2,10,1.0,20.0,M,,,,")
    ))
    assert fix.latitude == pytest.approx(-33.858333, abs=1e-6)
    assert fix.longitude == pytest.approx(-151.21, abs=1e-6)
    assert fix.quality_text == "DGPS fix"


def test_gll_sets_position(handler):
    fix = _fix(handler.process_line(nmea("GPGLL,4916.45,N,12311.12,W,225444,A,")))
    assert fix.latitude == pytest.approx(49.274167, abs=1e-6)
    assert fix.longitude == pytest.approx(-123.185333, abs=1e-6)


def test_gsa_sets_fix_type_dops_and_used(handler, gsa_3d):
    fix = _fix(handler.process_line(gsa_3d))

    assert fix.fix_type == 3
    assert fix.fix_type_text == "3D"
    assert fix.pdop == pytest.approx(2.5)
    assert fix.hdop == pytest.approx(1.3)
    assert fix.vdop == pytest.approx(2.1)
    assert handler.used_keys == {'G04', 'G05', 'G09', 'G12', 'G24'}


def test_gsa_groups_by_system_id(handler):
    handler.process_line(nmea("GNGSA,A,3,04,05,,,,,,,,,,,1.8,1.0,1.5,1"))
    handler.process_line(nmea("GNGSA,A,3,70,71,,,,,,,,,,,1.8,1.0,1.5,2"))
    assert handler.used_keys == {'G04', 'G05', 'R70', 'R71'}

    # A later GPS report replaces only the GPS group
    handler.process_line(nmea("GNGSA,A,3,07,,,,,,,,,,,,1.8,1.0,1.5,1"))
    assert handler.used_keys == {'G07', 'R70', 'R71'}


def test_gsa_without_system_id_groups_by_prn(handler):
    # NMEA 4.0 'GN' receivers: one GSA per constellation, no system ID field
    handler.process_line(nmea("GNGSA,A,3,04,05,09,,,,,,,,,,1.8,1.0,1.5"))
    handler.process_line(nmea("GNGSA,A,3,70,71,,,,,,,,,,,1.8,1.0,1.5"))
    assert handler.used_keys == {'G04', 'G05', 'G09', 'R70', 'R71'}

    handler.process_line(nmea("GNGSA,A,3,07,,,,,,,,,,,,1.8,1.0,1.5"))
    assert handler.used_keys == {'G07', 'R70', 'R71'}

    # Nothing listed: no group to clear
    handler.process_line(nmea("GNGSA,A,1,,,,,,,,,,,,,99.99,99.99,99.99"))
    assert handler.used_keys == {'G07', 'R70', 'R71'}


def test_gsa_gps_system_id_keeps_sbas_keys(handler):
    handler.process_line(nmea("GNGSA,A,3,04,46,,,,,,,,,,,1.8,1.0,1.5,1"))
    assert handler.used_keys == {'G04', 'S46'}

    events = handler.process_line(nmea("GPGSV,1,1,02,04,40,083,46,46,30,200,40,1"))
    satellites = events[0][1].satellites
    assert satellites['G04'].used_in_fix
    assert satellites['S46'].used_in_fix


def test_fix_event_is_a_copy(handler, gga_fix, gga_no_fix):
    first = _fix(handler.process_line(gga_fix))
    handler.process_line(gga_no_fix)
    assert first.fix_quality == 1


# =============================================================================
# Satellites in view
# =============================================================================

def test_gsv_cycle_produces_snapshot(handler, gsv_cycle):
    assert handler.process_line(gsv_cycle[0]) == []
    events = handler.process_line(gsv_cycle[1])

    assert [kind for kind, _ in events] == ['sky']
    snapshot = events[0][1]
    assert snapshot.talker == 'GP'
    assert snapshot.num_in_view == 8
    assert set(snapshot.satellites) == {'G04', 'G05', 'G09', 'G12', 'G24', 'G25', 'G29', 'G31'}

    g04 = snapshot.satellites['G04']
    assert (g04.elevation, g04.azimuth, g04.snr) == (40.0, 83.0, 46.0)
    assert snapshot.satellites['G12'].snr is None


def test_gsv_marks_used_satellites(handler, gsa_3d, gsv_cycle):
    handler.process_line(gsa_3d)
    for line in gsv_cycle:
        events = handler.process_line(line)
    satellites = events[0][1].satellites
    assert satellites['G04'].used_in_fix
    assert not satellites['G25'].used_in_fix


def test_gsv_out_of_order_discards_cycle(handler, gsv_cycle):
    assert handler.process_line(gsv_cycle[1]) == []
    assert handler.snapshot().satellites == {}


def test_gsv_single_sentence_with_signal_id(handler):
    # NMEA 4.10: three satellites followed by signal ID 7
    events = handler.process_line(
        nmea("GAGSV,1,1,03,11,45,120,40,12,30,200,35,19,10,300,,7")
    )
    satellites = events[0][1].satellites
    assert set(satellites) == {'E11', 'E12', 'E19'}
    assert satellites['E19'].snr is None


def test_gsv_merges_signals_keeping_strongest(handler):
    handler.process_line(nmea("GPGSV,1,1,01,07,50,100,30,1"))
    events = handler.process_line(nmea("GPGSV,1,1,01,07,,,42,8"))
    sat = events[0][1].satellites['G07']
    assert sat.snr == 42.0
    assert sat.elevation == 50.0
    assert sat.azimuth == 100.0


def test_gsv_merges_constellations(handler):
    handler.process_line(nmea("GPGSV,1,1,01,07,50,100,30"))
    events = handler.process_line(nmea("GLGSV,1,1,01,70,20,220,25"))
    assert set(events[0][1].satellites) == {'G07', 'R70'}


def test_old_cycles_expire(handler, clock):
    handler.process_line(nmea("GPGSV,1,1,01,07,50,100,30"))
    clock.advance(11.0)
    events = handler.process_line(nmea("GLGSV,1,1,01,70,20,220,25"))
    assert set(events[0][1].satellites) == {'R70'}


def test_gsv_bad_message_numbers(handler):
    assert handler.process_line(nmea("GPGSV,1,2,01,07,50,100,30")) == []
    assert handler.error_count == 1


# =============================================================================
# Rejected input
# =============================================================================

def test_checksum_mismatch_rejected(handler):
    line = nmea("GPGGA,123519,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,")
    bad = line[:-2] + ("00" if line[-2:] != "00" else "01")
    assert handler.process_line(bad) == []
    assert handler.error_count == 1
    assert handler.fix.latitude is None


def test_missing_checksum_accepted_unless_strict(clock):
    line = "$GPGGA,123519,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,"
    assert NmeaHandler(clock=clock).process_line(line)

    strict = NmeaHandler(strict_checksum=True, clock=clock)
    assert strict.process_line(line) == []
    assert strict.error_count == 1


@pytest.mark.parametrize("line", ["", "garbage", "GPGGA,1,2,3", "$", "$GPGGA"])
def test_garbage_is_counted_not_raised(handler, line):
    assert handler.process_line(line) == []
    assert handler.error_count + handler.unsupported_count == 1


def test_unsupported_sentences(handler):
    assert handler.process_line(nmea("GPZZZ,1,2,3")) == []
    assert handler.process_line(nmea("PUBX,00,123519.00,4807.038,N")) == []
    assert handler.unsupported_count == 2
    assert handler.error_count == 0


def test_known_but_unused_type_is_counted(handler):
    assert handler.process_line(nmea("GPVTG,084.4,T,077.8,M,022.4,N,041.5,K,A")) == []
    assert handler.sentence_counts['VTG'] == 1


def test_sentence_counts_and_reset(handler, gga_fix, rmc_valid):
    handler.process_line(gga_fix)
    handler.process_line(gga_fix)
    handler.process_line(rmc_valid)
    assert handler.sentence_counts['GGA'] == 2
    assert handler.sentence_counts['RMC'] == 1

    handler.reset()
    assert not handler.sentence_counts
    assert handler.fix.latitude is None

"""Tests for sky plot mapping and coordinate formatting."""

import math

import numpy as np
import pytest

from nmeaview.core.geo_utils import sky_to_polar, format_coordinate


def test_zenith_is_centre():
    theta, r = sky_to_polar(90, 123)
    assert r == pytest.approx(0.0)


def test_horizon_is_outer_ring():
    theta, r = sky_to_polar(0, 90)
    assert r == pytest.approx(90.0)
    assert theta == pytest.approx(math.pi / 2)


def test_clipping_and_wrapping():
    theta, r = sky_to_polar(-5, 370)
    assert r == pytest.approx(90.0)
    assert theta == pytest.approx(math.radians(10))


def test_arrays():
    theta, r = sky_to_polar(np.array([0, 45, 90]), np.array([0, 180, 270]))
    np.testing.assert_allclose(r, [90, 45, 0])
    np.testing.assert_allclose(theta, np.radians([0, 180, 270]))


def test_format_degrees():
    assert format_coordinate(48.1173, True) == "48.1173000° N"
    assert format_coordinate(-11.5, False) == "11.5000000° W"


def test_format_dms():
    assert format_coordinate(48.1173, True, 'dms') == "48° 07' 02.280\" N"
    assert format_coordinate(-0.5, False, 'dms') == "0° 30' 00.000\" W"


def test_format_dms_rounding_carry():
    assert format_coordinate(10.9999999, True, 'dms') == "11° 00' 00.000\" N"


def test_format_missing():
    assert format_coordinate(None, True) == '-'

from __future__ import annotations

import math

import pytest

from almanac.angles import (
    ABERRATION,
    ARCSECONDS_PER_RADIAN,
    degree_mod,
    float_equal,
    radian_mod,
    radians_mod_360,
    to_radians,
    wrap_pi,
)
from almanac.coordinates import (
    EclipticCoordinates,
    EquatorialCoordinates,
    GeographicCoordinates,
    ecliptic_to_equatorial,
    equatorial_to_ecliptic,
    greenwich_mean_sidereal_time,
)

OBLIQUITY_J2000 = to_radians(23.4392911)


def test_angle_normalisation():
    assert radian_mod(-0.5) == pytest.approx(2 * math.pi - 0.5)
    assert radian_mod(7 * math.pi) == pytest.approx(math.pi)
    assert 0.0 <= radian_mod(-1e-18) < 2 * math.pi
    assert degree_mod(-30.0) == pytest.approx(330.0)
    assert degree_mod(720.0) == 0.0
    assert wrap_pi(3 * math.pi / 2) == pytest.approx(-math.pi / 2)
    assert wrap_pi(math.pi) == pytest.approx(math.pi)
    assert radians_mod_360(to_radians(10.0) - to_radians(350.0)) == pytest.approx(to_radians(20.0))


def test_float_equal_uses_angle_tolerance():
    assert float_equal(1.0, 1.0 + 5e-10)
    assert not float_equal(1.0, 1.0 + 5e-9)
    assert float_equal(1.0, 1.1, tolerance=0.2)


def test_aberration_constant():
    assert ABERRATION * ARCSECONDS_PER_RADIAN == pytest.approx(20.5)


def test_pollux_ecliptic_to_equatorial():
    # Meeus, Astronomical Algorithms, example 13.a.
    ecliptic = EclipticCoordinates(longitude=to_radians(113.215630), latitude=to_radians(6.684170))
    equatorial = ecliptic_to_equatorial(ecliptic, OBLIQUITY_J2000)
    assert math.degrees(equatorial.right_ascension) == pytest.approx(116.328942, abs=1e-5)
    assert math.degrees(equatorial.declination) == pytest.approx(28.026183, abs=1e-5)


def test_right_ascension_is_normalised():
    ecliptic = EclipticCoordinates(longitude=to_radians(300.0), latitude=0.0)
    equatorial = ecliptic_to_equatorial(ecliptic, OBLIQUITY_J2000)
    assert 0.0 <= equatorial.right_ascension < 2 * math.pi
    assert equatorial.declination < 0.0


@pytest.mark.parametrize(
    "lon_deg, lat_deg, obliquity_deg",
    [
        (0.0, 0.0, 23.44),
        (45.0, 10.0, 23.44),
        (179.5, -60.0, 23.44),
        (270.0, 5.0, 24.2),
        (359.9, -1.3, 22.1),
        (123.4, 85.0, 23.44),
    ],
)
def test_equatorial_round_trip(lon_deg, lat_deg, obliquity_deg):
    obliquity = to_radians(obliquity_deg)
    original = EclipticCoordinates(longitude=to_radians(lon_deg), latitude=to_radians(lat_deg))
    back = equatorial_to_ecliptic(ecliptic_to_equatorial(original, obliquity), obliquity)
    assert wrap_pi(back.longitude - original.longitude) == pytest.approx(0.0, abs=1e-10)
    assert back.latitude == pytest.approx(original.latitude, abs=1e-10)


def test_equinox_point_maps_to_origin():
    equatorial = ecliptic_to_equatorial(EclipticCoordinates(0.0, 0.0), OBLIQUITY_J2000)
    assert equatorial == EquatorialCoordinates(right_ascension=0.0, declination=0.0)


def test_solstice_declination_equals_obliquity():
    equatorial = ecliptic_to_equatorial(
        EclipticCoordinates(longitude=math.pi / 2, latitude=0.0), OBLIQUITY_J2000
    )
    assert equatorial.declination == pytest.approx(OBLIQUITY_J2000)
    assert equatorial.right_ascension == pytest.approx(math.pi / 2)


def test_greenwich_mean_sidereal_time_meeus_example():
    # Meeus example 12.a: 1987 April 10, 0h UT -> 13h10m46.3668s.
    expected = (13 + 10 / 60 + 46.3668 / 3600) * 15.0
    gmst = math.degrees(greenwich_mean_sidereal_time(2446895.5))
    assert gmst == pytest.approx(expected, abs=1e-5)


def test_geographic_coordinates_from_degrees():
    geo = GeographicCoordinates.from_degrees(116.3833, 39.9)
    assert geo.longitude == pytest.approx(math.radians(116.3833))
    assert geo.latitude == pytest.approx(math.radians(39.9))
    with pytest.raises(ValueError):
        GeographicCoordinates.from_degrees(0.0, 91.0)

from __future__ import annotations

import math

import pytest

from almanac.angles import ARCSECONDS_PER_RADIAN, wrap_pi
from almanac.ephemeris import (
    DEFAULT_FLAGS,
    Body,
    CalcFlag,
    EphemerisProvider,
    MeeusEphemeris,
    resolve_ephemeris_source,
)
from almanac.errors import ProviderError


def test_meeus_is_a_provider(meeus: MeeusEphemeris) -> None:
    assert isinstance(meeus, EphemerisProvider)


def test_meeus_sun_example_25a(meeus: MeeusEphemeris) -> None:
    # 1992 October 13.0 TD; Meeus gives an apparent longitude of 199.90895°.
    lon, lat, dist, lon_rate, lat_rate, dist_rate = meeus.calc_body(2448908.5, Body.SUN)
    assert math.degrees(lon) == pytest.approx(199.90895, abs=1e-3)
    assert lat == 0.0
    assert dist == pytest.approx(0.99766, abs=1e-5)
    assert 0.0165 < lon_rate < 0.0178
    assert lat_rate == 0.0
    # Earth approaches perihelion through the autumn.
    assert dist_rate < 0.0


def test_meeus_true_position_drops_aberration(meeus: MeeusEphemeris) -> None:
    flags = DEFAULT_FLAGS | CalcFlag.NO_NUTATION
    apparent = meeus.calc_body(2460000.5, Body.SUN, flags)[0]
    geometric = meeus.calc_body(2460000.5, Body.SUN, flags | CalcFlag.TRUE_POSITION)[0]
    difference = wrap_pi(apparent - geometric) * ARCSECONDS_PER_RADIAN
    assert difference == pytest.approx(-20.5, abs=0.5)


def test_meeus_flags_degrees_and_no_speed(meeus: MeeusEphemeris) -> None:
    radians = meeus.calc_body(2460000.5, Body.SUN)
    degrees = meeus.calc_body(2460000.5, Body.SUN, CalcFlag.NONE)
    assert degrees[0] == pytest.approx(math.degrees(radians[0]))
    assert degrees[3:] == (0.0, 0.0, 0.0)


def test_meeus_nutation_example_22a(meeus: MeeusEphemeris) -> None:
    # 1987 April 10, 0h TD.
    true_eps, mean_eps, dpsi, deps = meeus.calc_ecliptic_nutation(2446895.5)
    assert dpsi * ARCSECONDS_PER_RADIAN == pytest.approx(-3.788, abs=0.5)
    assert deps * ARCSECONDS_PER_RADIAN == pytest.approx(9.443, abs=0.2)
    assert math.degrees(mean_eps) == pytest.approx(23.440946, abs=1e-5)
    assert true_eps == pytest.approx(mean_eps + deps)


def test_meeus_rejects_other_bodies(meeus: MeeusEphemeris) -> None:
    with pytest.raises(ProviderError, match="moon"):
        meeus.calc_body(2460000.5, Body.MOON)


def test_meeus_rejects_out_of_range_instants(meeus: MeeusEphemeris) -> None:
    with pytest.raises(ProviderError):
        meeus.calc_body(100.0, Body.SUN)
    with pytest.raises(ProviderError):
        meeus.calc_ecliptic_nutation(9_000_000.0)


def test_body_accepts_string_values(meeus: MeeusEphemeris) -> None:
    assert meeus.calc_body(2460000.5, "sun") == meeus.calc_body(2460000.5, Body.SUN)
    assert Body.JUPITER.naif_name == "JUPITER BARYCENTER"


def test_resolve_ephemeris_source_errors(tmp_path) -> None:
    with pytest.raises(ProviderError, match="not found"):
        resolve_ephemeris_source(tmp_path / "missing")
    with pytest.raises(ProviderError, match="No .bsp"):
        resolve_ephemeris_source(tmp_path)
    text = tmp_path / "kernel.txt"
    text.write_text("not a kernel")
    with pytest.raises(ProviderError, match=".bsp extension"):
        resolve_ephemeris_source(text)

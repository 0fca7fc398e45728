from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List

import erfa
import numpy as np
import pytest
import spiceypy as spice

from almanac.angles import radian_mod
from almanac.astronomy import Astronomy
from almanac.coordinates import GeographicCoordinates
from almanac.ephemeris import DEFAULT_FLAGS, Body, CalcFlag, MeeusEphemeris
from almanac.errors import ProviderError

AU_KM = 149597870.700
STEP_HOURS = 6
MEAN_SOLAR_MOTION = 0.017202  # rad/day


class LinearEphemeris:
    """Sun moving uniformly in longitude; rates may be misreported on purpose."""

    def __init__(
        self,
        epoch: float = 2451545.0,
        longitude: float = 0.0,
        speed: float = MEAN_SOLAR_MOTION,
        reported_speed: float | None = None,
        delta_t: float = 0.0,
    ) -> None:
        self.epoch = epoch
        self.longitude = longitude
        self.speed = speed
        self.reported_speed = speed if reported_speed is None else reported_speed
        self._delta_t = delta_t
        self.calls: List[float] = []

    def calc_body(self, jd_et: float, body: Body, flags: CalcFlag = DEFAULT_FLAGS):
        if Body(body) is not Body.SUN:
            raise ProviderError(f"unsupported body {body}")
        self.calls.append(jd_et)
        lon = radian_mod(self.longitude + self.speed * (jd_et - self.epoch))
        return (lon, 0.0, 1.0, self.reported_speed, 0.0, 0.0)

    def calc_ecliptic_nutation(self, jd_et: float, flags: CalcFlag = DEFAULT_FLAGS):
        eps = math.radians(23.4392911)
        return (eps, eps, 0.0, 0.0)

    def delta_t(self, jd_ut: float) -> float:
        return self._delta_t


GREENWICH = GeographicCoordinates(longitude=0.0, latitude=math.radians(51.4769))


@pytest.fixture
def linear_provider() -> LinearEphemeris:
    return LinearEphemeris()


@pytest.fixture(scope="session")
def meeus() -> MeeusEphemeris:
    return MeeusEphemeris()


@pytest.fixture
def greenwich() -> GeographicCoordinates:
    return GREENWICH


def make_astronomy(provider, jd_ut: float, geo: GeographicCoordinates = GREENWICH) -> Astronomy:
    return Astronomy.at(geo, jd_ut, provider)


# ---------------------------------------------------------------------------
# Synthetic SPK kernel covering 2025 built from ERFA's Earth ephemeris.
# ---------------------------------------------------------------------------


def _datetime_to_tt(dt: datetime) -> tuple[float, float]:
    utc1, utc2 = erfa.dtf2d(
        "UTC",
        dt.year,
        dt.month,
        dt.day,
        dt.hour,
        dt.minute,
        dt.second + dt.microsecond / 1_000_000,
    )
    tai1, tai2 = erfa.utctai(utc1, utc2)
    return erfa.taitt(tai1, tai2)


def _datetime_to_et(dt: datetime) -> float:
    tt1, tt2 = _datetime_to_tt(dt)
    return (tt1 - erfa.DJ00) * erfa.DAYSEC + tt2 * erfa.DAYSEC


def _sun_and_earth_states(dt: datetime) -> tuple[np.ndarray, np.ndarray]:
    tt1, tt2 = _datetime_to_tt(dt)
    pvh, pvb = erfa.epv00(tt1, tt2)
    sun_state = np.concatenate(
        [-np.array(pvh[0]) * AU_KM, -np.array(pvh[1]) * (AU_KM / erfa.DAYSEC)]
    )
    earth_state = np.concatenate(
        [np.array(pvb[0]) * AU_KM, np.array(pvb[1]) * (AU_KM / erfa.DAYSEC)]
    )
    return sun_state, earth_state


def _generate_test_kernel(output: Path) -> None:
    if output.exists():
        return
    start = datetime(2025, 1, 1, tzinfo=timezone.utc)
    end = datetime(2026, 1, 1, tzinfo=timezone.utc)
    step = timedelta(hours=STEP_HOURS)
    sun_states: list[np.ndarray] = []
    earth_states: list[np.ndarray] = []
    ets: list[float] = []
    current = start
    while current <= end:
        sun_state, earth_state = _sun_and_earth_states(current)
        sun_states.append(sun_state)
        earth_states.append(earth_state)
        ets.append(_datetime_to_et(current))
        current += step
    step_seconds = ets[1] - ets[0]
    handle = spice.spkopn(str(output), "SUNTEST", 0)
    try:
        spice.spkw08(
            handle, 10, 399, "J2000", ets[0], ets[-1], "SUNTEST", 7,
            len(ets), np.array(sun_states, dtype=float), ets[0], step_seconds,
        )
        spice.spkw08(
            handle, 399, 0, "J2000", ets[0], ets[-1], "EARTHTEST", 7,
            len(ets), np.array(earth_states, dtype=float), ets[0], step_seconds,
        )
    finally:
        spice.spkcls(handle)


@pytest.fixture(scope="session")
def kernel_dir(tmp_path_factory: pytest.TempPathFactory) -> Path:
    directory = tmp_path_factory.mktemp("kernels")
    _generate_test_kernel(directory / "sun_2025.bsp")
    yield directory
    spice.kclear()

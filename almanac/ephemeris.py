"""Ephemeris providers backing the almanac computation core.

The core only talks to the :class:`EphemerisProvider` capability. Two
implementations ship with the package:

* :class:`SpiceEphemeris` reads JPL DE kernels through :mod:`spiceypy` and
  uses ERFA for the Earth-orientation models.
* :class:`MeeusEphemeris` is a kernel-free, low-precision solar model that is
  good to a few arcseconds over several millennia.
"""

from __future__ import annotations

import json
import logging
import math
from enum import Enum, IntFlag
from pathlib import Path
from threading import Lock
from typing import ClassVar, List, Protocol, Set, Tuple, runtime_checkable

import erfa
import numpy as np
import spiceypy as spice
from spiceypy.utils.exceptions import SpiceyError

from .angles import ARCSECONDS_PER_RADIAN, radian_mod, to_degrees, to_radians, wrap_pi
from .errors import ProviderError
from .timescale import JD_J2000, SECONDS_PER_DAY, delta_t_seconds

__all__ = [
    "Body",
    "CalcFlag",
    "DEFAULT_FLAGS",
    "EphemerisProvider",
    "MeeusEphemeris",
    "SpiceEphemeris",
    "resolve_ephemeris_source",
]

LOGGER = logging.getLogger(__name__)

AU_KM = 149_597_870.7

BodyState = Tuple[float, float, float, float, float, float]
NutationState = Tuple[float, float, float, float]


class Body(str, Enum):
    """Bodies that can be requested from a provider."""

    SUN = "sun"
    MOON = "moon"
    MERCURY = "mercury"
    VENUS = "venus"
    MARS = "mars"
    JUPITER = "jupiter"
    SATURN = "saturn"
    URANUS = "uranus"
    NEPTUNE = "neptune"
    PLUTO = "pluto"

    @property
    def naif_name(self) -> str:
        return _NAIF_NAMES[self]


# DE kernels carry barycentres for the outer planets only.
_NAIF_NAMES = {
    Body.SUN: "SUN",
    Body.MOON: "MOON",
    Body.MERCURY: "MERCURY",
    Body.VENUS: "VENUS",
    Body.MARS: "MARS BARYCENTER",
    Body.JUPITER: "JUPITER BARYCENTER",
    Body.SATURN: "SATURN BARYCENTER",
    Body.URANUS: "URANUS BARYCENTER",
    Body.NEPTUNE: "NEPTUNE BARYCENTER",
    Body.PLUTO: "PLUTO BARYCENTER",
}


class CalcFlag(IntFlag):
    """Options controlling provider output."""

    NONE = 0
    SPEED = 1
    RADIANS = 2
    # Geometric position: no light-time or aberration correction.
    TRUE_POSITION = 4
    # Mean equinox of date: no nutation in longitude.
    NO_NUTATION = 8


DEFAULT_FLAGS = CalcFlag.SPEED | CalcFlag.RADIANS


@runtime_checkable
class EphemerisProvider(Protocol):
    """Capability consumed by :class:`almanac.astronomy.Astronomy`."""

    def calc_body(self, jd_et: float, body: Body, flags: CalcFlag = DEFAULT_FLAGS) -> BodyState:
        """Return ``(lon, lat, dist, lon_rate, lat_rate, dist_rate)`` for *body*.

        Distances are AU and rates are per day. Raises :class:`ProviderError`
        for unsupported bodies or instants.
        """

    def calc_ecliptic_nutation(
        self, jd_et: float, flags: CalcFlag = DEFAULT_FLAGS
    ) -> NutationState:
        """Return ``(true_obliquity, mean_obliquity, dpsi, deps)``."""

    def delta_t(self, jd_ut: float) -> float:
        """Return ΔT in seconds for a UT Julian Day."""


def _split_jd(jd: float) -> Tuple[float, float]:
    whole = float(int(jd))
    return whole, jd - whole


def _apply_flags(values: BodyState, flags: CalcFlag) -> BodyState:
    lon, lat, dist, lon_rate, lat_rate, dist_rate = values
    if not flags & CalcFlag.SPEED:
        lon_rate = lat_rate = dist_rate = 0.0
    if not flags & CalcFlag.RADIANS:
        lon, lat = to_degrees(lon), to_degrees(lat)
        lon_rate, lat_rate = to_degrees(lon_rate), to_degrees(lat_rate)
    return (lon, lat, dist, lon_rate, lat_rate, dist_rate)


def _apply_angle_flags(values: NutationState, flags: CalcFlag) -> NutationState:
    if flags & CalcFlag.RADIANS:
        return values
    return tuple(to_degrees(value) for value in values)  # type: ignore[return-value]


def _spherical_state(position: np.ndarray, velocity: np.ndarray) -> BodyState:
    """Spherical coordinates and their rates for a cartesian state."""

    x, y, z = (float(value) for value in position)
    vx, vy, vz = (float(value) for value in velocity)
    rho2 = x * x + y * y
    rho = math.sqrt(rho2)
    r = math.sqrt(rho2 + z * z)
    if rho == 0.0:
        raise ProviderError("Degenerate state vector: body lies on the ecliptic pole")
    r_dot = (x * vx + y * vy + z * vz) / r
    lon = radian_mod(math.atan2(y, x))
    lat = math.asin(z / r)
    lon_rate = (x * vy - y * vx) / rho2
    lat_rate = (vz * r - z * r_dot) / (r * rho)
    return (lon, lat, r, lon_rate, lat_rate, r_dot)


def resolve_ephemeris_source(path: str | Path) -> Path:
    """Validate that *path* is a ``.bsp`` file or a directory containing one.

    Kernels are never downloaded here; acquiring them is the deployment's job.
    """

    candidate = Path(path).expanduser()
    if candidate.is_file():
        if candidate.suffix.lower() != ".bsp":
            raise ProviderError(f"Ephemeris file must have .bsp extension: {candidate}")
        return candidate
    if candidate.is_dir():
        if not any(candidate.glob("*.bsp")):
            raise ProviderError(f"No .bsp ephemeris files found in directory: {candidate}")
        return candidate
    raise ProviderError(f"Ephemeris path not found: {candidate}")


class SpiceEphemeris:
    """Provider backed by JPL DE kernels loaded into the CSPICE kernel pool."""

    _loaded_paths: ClassVar[Set[str]] = set()
    _load_lock: ClassVar[Lock] = Lock()

    def __init__(self, source: str | Path) -> None:
        resolved = resolve_ephemeris_source(source)
        if resolved.is_dir():
            self.files: List[Path] = sorted(
                file for file in resolved.iterdir()
                if file.is_file() and file.suffix.lower() == ".bsp"
            )
        else:
            self.files = [resolved]
        self._ensure_kernels_loaded()

    @property
    def file_names(self) -> List[str]:
        return [file.name for file in self.files]

    def _ensure_kernels_loaded(self) -> None:
        with self._load_lock:
            # The kernel pool may have been cleared behind our back.
            if spice.ktotal("SPK") == 0:
                self._loaded_paths.clear()
            pending = [file for file in self.files if str(file) not in self._loaded_paths]
            if not pending:
                return
            for file in pending:
                try:
                    spice.furnsh(str(file))
                except SpiceyError as exc:
                    raise ProviderError(f"Failed to load ephemeris file '{file}': {exc}") from exc
                self._loaded_paths.add(str(file))
            LOGGER.info(
                json.dumps({"event": "ephemeris_loaded", "files": [file.name for file in pending]})
            )

    def calc_body(self, jd_et: float, body: Body, flags: CalcFlag = DEFAULT_FLAGS) -> BodyState:
        self._ensure_kernels_loaded()
        body = Body(body)
        et = (jd_et - JD_J2000) * SECONDS_PER_DAY
        abcorr = "NONE" if flags & CalcFlag.TRUE_POSITION else "LT+S"
        try:
            state, _ = spice.spkezr(body.naif_name, et, "J2000", abcorr, "EARTH")
        except SpiceyError as exc:
            raise ProviderError(
                f"Ephemeris query for {body.value} at JD(ET) {jd_et:.6f} failed: {exc}"
            ) from exc

        date1, date2 = _split_jd(jd_et)
        rotation = np.array(erfa.ecm06(date1, date2), dtype=float)
        position = rotation @ np.array(state[:3], dtype=float)
        velocity = rotation @ (np.array(state[3:], dtype=float) * SECONDS_PER_DAY)
        lon, lat, dist, lon_rate, lat_rate, dist_rate = _spherical_state(position, velocity)
        if not flags & CalcFlag.NO_NUTATION:
            dpsi, _ = erfa.nut06a(date1, date2)
            lon = radian_mod(lon + float(dpsi))
        values = (lon, lat, dist / AU_KM, lon_rate, lat_rate, dist_rate / AU_KM)
        return _apply_flags(values, flags)

    def calc_ecliptic_nutation(
        self, jd_et: float, flags: CalcFlag = DEFAULT_FLAGS
    ) -> NutationState:
        date1, date2 = _split_jd(jd_et)
        mean_obliquity = float(erfa.obl06(date1, date2))
        dpsi, deps = erfa.nut06a(date1, date2)
        values = (mean_obliquity + float(deps), mean_obliquity, float(dpsi), float(deps))
        return _apply_angle_flags(values, flags)

    def delta_t(self, jd_ut: float) -> float:
        return delta_t_seconds(jd_ut)


class MeeusEphemeris:
    """Low-precision analytic Sun (Meeus ch. 25) with IAU 1980 leading nutation terms."""

    # Roughly years -2000 .. +6000.
    MIN_JD = 990557.5
    MAX_JD = 3912547.5

    # Step for the central-difference rates, in days.
    RATE_STEP = 0.01

    def _check_range(self, jd: float) -> None:
        if not self.MIN_JD <= jd <= self.MAX_JD:
            raise ProviderError(
                f"JD(ET) {jd:.6f} outside analytic model range "
                f"[{self.MIN_JD}, {self.MAX_JD}]"
            )

    @staticmethod
    def _centuries(jd: float) -> float:
        return (jd - JD_J2000) / 36525.0

    @classmethod
    def _nutation(cls, jd: float) -> Tuple[float, float]:
        t = cls._centuries(jd)
        omega = to_radians(125.04452 - 1934.136261 * t)
        sun = to_radians(280.4665 + 36000.7698 * t)
        moon = to_radians(218.3165 + 481267.8813 * t)
        dpsi = (
            -17.20 * math.sin(omega)
            - 1.32 * math.sin(2 * sun)
            - 0.23 * math.sin(2 * moon)
            + 0.21 * math.sin(2 * omega)
        )
        deps = (
            9.20 * math.cos(omega)
            + 0.57 * math.cos(2 * sun)
            + 0.10 * math.cos(2 * moon)
            - 0.09 * math.cos(2 * omega)
        )
        return dpsi / ARCSECONDS_PER_RADIAN, deps / ARCSECONDS_PER_RADIAN

    @classmethod
    def _mean_obliquity(cls, jd: float) -> float:
        t = cls._centuries(jd)
        seconds = 84381.448 - 46.8150 * t - 0.00059 * t * t + 0.001813 * t * t * t
        return seconds / ARCSECONDS_PER_RADIAN

    @classmethod
    def _sun(cls, jd: float, flags: CalcFlag) -> Tuple[float, float]:
        """Sun longitude (radians) and distance (AU)."""

        t = cls._centuries(jd)
        mean_longitude = 280.46646 + 36000.76983 * t + 0.0003032 * t * t
        mean_anomaly = to_radians(357.52911 + 35999.05029 * t - 0.0001537 * t * t)
        eccentricity = 0.016708634 - 0.000042037 * t - 0.0000001267 * t * t
        centre = (
            (1.914602 - 0.004817 * t - 0.000014 * t * t) * math.sin(mean_anomaly)
            + (0.019993 - 0.000101 * t) * math.sin(2 * mean_anomaly)
            + 0.000289 * math.sin(3 * mean_anomaly)
        )
        true_anomaly = mean_anomaly + to_radians(centre)
        distance = (
            1.000001018 * (1 - eccentricity * eccentricity)
            / (1 + eccentricity * math.cos(true_anomaly))
        )
        longitude = to_radians(mean_longitude + centre)
        if not flags & CalcFlag.NO_NUTATION:
            longitude += cls._nutation(jd)[0]
        if not flags & CalcFlag.TRUE_POSITION:
            longitude -= 20.4898 / ARCSECONDS_PER_RADIAN / distance
        return radian_mod(longitude), distance

    def calc_body(self, jd_et: float, body: Body, flags: CalcFlag = DEFAULT_FLAGS) -> BodyState:
        body = Body(body)
        if body is not Body.SUN:
            raise ProviderError(f"Analytic ephemeris does not support body '{body.value}'")
        self._check_range(jd_et)
        longitude, distance = self._sun(jd_et, flags)
        lon_rate = dist_rate = 0.0
        if flags & CalcFlag.SPEED:
            h = self.RATE_STEP
            before_lon, before_dist = self._sun(jd_et - h, flags)
            after_lon, after_dist = self._sun(jd_et + h, flags)
            lon_rate = wrap_pi(after_lon - before_lon) / (2 * h)
            dist_rate = (after_dist - before_dist) / (2 * h)
        values = (longitude, 0.0, distance, lon_rate, 0.0, dist_rate)
        return _apply_flags(values, flags)

    def calc_ecliptic_nutation(
        self, jd_et: float, flags: CalcFlag = DEFAULT_FLAGS
    ) -> NutationState:
        self._check_range(jd_et)
        dpsi, deps = self._nutation(jd_et)
        mean_obliquity = self._mean_obliquity(jd_et)
        return _apply_angle_flags((mean_obliquity + deps, mean_obliquity, dpsi, deps), flags)

    def delta_t(self, jd_ut: float) -> float:
        return delta_t_seconds(jd_ut)

"""Body query context binding an observer and an instant to a provider."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple, Optional

from .angles import ABERRATION, RADIAN_180, RADIAN_360, radian_mod
from .coordinates import (
    EclipticCoordinates,
    EclipticProperties,
    EquatorialCoordinates,
    GeographicCoordinates,
    PlanetProperties,
    ecliptic_to_equatorial,
    greenwich_mean_sidereal_time,
)
from .ephemeris import DEFAULT_FLAGS, Body, EphemerisProvider
from .timescale import EphemerisTime

__all__ = ["Astronomy", "HourAngle"]


class HourAngle(NamedTuple):
    angle: float
    planet: PlanetProperties
    equatorial: EquatorialCoordinates


@dataclass(frozen=True)
class Astronomy:
    """Read-only query context for one observer and one instant.

    Instances hold no mutable state, so a single context may be shared
    between threads as long as the provider tolerates concurrent reads.
    """

    geo: GeographicCoordinates
    time: EphemerisTime
    provider: EphemerisProvider

    @classmethod
    def at(
        cls, geo: GeographicCoordinates, jd_ut: float, provider: EphemerisProvider
    ) -> "Astronomy":
        return cls(
            geo=geo,
            time=EphemerisTime.from_ut(jd_ut, provider.delta_t(jd_ut)),
            provider=provider,
        )

    @property
    def jd_ut(self) -> float:
        return self.time.jd_ut

    @property
    def jd_et(self) -> float:
        return self.time.jd_et

    def time_at(self, jd_ut: float) -> EphemerisTime:
        """Pair *jd_ut* with its ephemeris time using the provider's ΔT."""

        return EphemerisTime.from_ut(jd_ut, self.provider.delta_t(jd_ut))

    def ecliptic(self, instant: Optional[EphemerisTime] = None) -> EclipticProperties:
        """Obliquity and nutation at *instant* (defaults to the context instant)."""

        jd_et = (instant or self.time).jd_et
        true_obliquity, mean_obliquity, dpsi, deps = self.provider.calc_ecliptic_nutation(
            jd_et, DEFAULT_FLAGS
        )
        return EclipticProperties(
            true_obliquity=true_obliquity,
            mean_obliquity=mean_obliquity,
            nutation_in_longitude=dpsi,
            nutation_in_obliquity=deps,
        )

    def planet(self, body: Body, instant: Optional[EphemerisTime] = None) -> PlanetProperties:
        """Ecliptic position and rates of *body* at *instant*."""

        jd_et = (instant or self.time).jd_et
        lon, lat, dist, lon_rate, lat_rate, dist_rate = self.provider.calc_body(
            jd_et, body, DEFAULT_FLAGS
        )
        return PlanetProperties(
            body=Body(body),
            ecliptic=EclipticCoordinates(longitude=lon, latitude=lat, distance=dist),
            speed_in_longitude=lon_rate,
            speed_in_latitude=lat_rate,
            speed_in_distance=dist_rate,
        )

    def equatorial(self, body: Body, with_correction: bool = False) -> EquatorialCoordinates:
        ecliptic = self.ecliptic()
        planet = self.planet(body)
        obliquity = ecliptic.true_obliquity if with_correction else ecliptic.mean_obliquity
        return ecliptic_to_equatorial(planet.ecliptic, obliquity)

    def sidereal_time(self, with_correction: bool = False) -> float:
        """Greenwich sidereal time; apparent when *with_correction* is set."""

        sidereal = greenwich_mean_sidereal_time(self.jd_et)
        if with_correction:
            ecliptic = self.ecliptic()
            sidereal += ecliptic.nutation_in_longitude * math.cos(ecliptic.true_obliquity)
        return radian_mod(sidereal)

    def hour_angle(self, body: Body, with_correction: bool = False) -> HourAngle:
        """Local hour angle of *body* in ``(-π, π]``, positive west of the meridian.

        *with_correction* selects the true obliquity and the equation of the
        equinoxes; otherwise mean quantities are used throughout.
        """

        ecliptic = self.ecliptic()
        raw = self.planet(body)
        planet = raw.with_longitude(raw.ecliptic.longitude - ABERRATION)

        obliquity = ecliptic.true_obliquity if with_correction else ecliptic.mean_obliquity
        equatorial = ecliptic_to_equatorial(planet.ecliptic, obliquity)

        sidereal = greenwich_mean_sidereal_time(self.jd_et)
        if with_correction:
            sidereal += ecliptic.nutation_in_longitude * math.cos(ecliptic.true_obliquity)

        # Longitude is east positive: H = θ0 + λ − α.
        angle = radian_mod(sidereal + self.geo.longitude - equatorial.right_ascension)
        if angle > RADIAN_180:
            angle -= RADIAN_360
        return HourAngle(angle=angle, planet=planet, equatorial=equatorial)

"""Coordinate value objects and closed-form frame transforms.

All angles are radians. Value objects are frozen; corrections produce new
instances instead of mutating the ones returned by the provider.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from .angles import degree_mod, radian_mod, to_radians
from .timescale import JD_J2000

if TYPE_CHECKING:  # pragma: no cover
    from .ephemeris import Body

__all__ = [
    "EclipticCoordinates",
    "EclipticProperties",
    "EquatorialCoordinates",
    "GeographicCoordinates",
    "PlanetProperties",
    "ecliptic_to_equatorial",
    "equatorial_to_ecliptic",
    "greenwich_mean_sidereal_time",
]

DAYS_PER_JULIAN_CENTURY = 36525.0


@dataclass(frozen=True)
class GeographicCoordinates:
    """Observer position; longitude is east positive."""

    longitude: float
    latitude: float

    @classmethod
    def from_degrees(cls, longitude: float, latitude: float) -> "GeographicCoordinates":
        if not -90.0 <= latitude <= 90.0:
            raise ValueError(f"latitude out of range: {latitude}")
        return cls(longitude=to_radians(longitude), latitude=to_radians(latitude))


@dataclass(frozen=True)
class EclipticCoordinates:
    longitude: float
    latitude: float
    distance: float = 0.0


@dataclass(frozen=True)
class EquatorialCoordinates:
    right_ascension: float
    declination: float


@dataclass(frozen=True)
class EclipticProperties:
    """Earth-orientation parameters for one ephemeris instant."""

    true_obliquity: float
    mean_obliquity: float
    nutation_in_longitude: float
    nutation_in_obliquity: float


@dataclass(frozen=True)
class PlanetProperties:
    """State of a body at one ephemeris instant (rates per day)."""

    body: "Body"
    ecliptic: EclipticCoordinates
    speed_in_longitude: float
    speed_in_latitude: float
    speed_in_distance: float

    @property
    def distance(self) -> float:
        return self.ecliptic.distance

    def with_longitude(self, longitude: float) -> "PlanetProperties":
        return replace(self, ecliptic=replace(self.ecliptic, longitude=longitude))


def ecliptic_to_equatorial(
    ecliptic: EclipticCoordinates, obliquity: float
) -> EquatorialCoordinates:
    """Rotate ecliptic longitude/latitude into right ascension/declination.

    Pass the true obliquity for nutation-corrected coordinates and the mean
    obliquity otherwise.
    """

    lon, lat = ecliptic.longitude, ecliptic.latitude
    sin_eps, cos_eps = math.sin(obliquity), math.cos(obliquity)
    right_ascension = math.atan2(
        math.sin(lon) * cos_eps - math.tan(lat) * sin_eps, math.cos(lon)
    )
    declination = math.asin(
        math.sin(lat) * cos_eps + math.cos(lat) * sin_eps * math.sin(lon)
    )
    return EquatorialCoordinates(
        right_ascension=radian_mod(right_ascension), declination=declination
    )


def equatorial_to_ecliptic(
    equatorial: EquatorialCoordinates, obliquity: float, distance: float = 0.0
) -> EclipticCoordinates:
    """Inverse of :func:`ecliptic_to_equatorial`."""

    ra, dec = equatorial.right_ascension, equatorial.declination
    sin_eps, cos_eps = math.sin(obliquity), math.cos(obliquity)
    longitude = math.atan2(
        math.sin(ra) * cos_eps + math.tan(dec) * sin_eps, math.cos(ra)
    )
    latitude = math.asin(
        math.sin(dec) * cos_eps - math.cos(dec) * sin_eps * math.sin(ra)
    )
    return EclipticCoordinates(
        longitude=radian_mod(longitude), latitude=latitude, distance=distance
    )


def greenwich_mean_sidereal_time(jd: float) -> float:
    """Greenwich mean sidereal time in radians, Meeus (12.4)."""

    days = jd - JD_J2000
    t = days / DAYS_PER_JULIAN_CENTURY
    theta = (
        280.46061837
        + 360.98564736629 * days
        + 0.000387933 * t * t
        - t * t * t / 38710000.0
    )
    return radian_mod(to_radians(degree_mod(theta)))

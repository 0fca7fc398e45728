"""Angle constants and circular normalisation helpers."""

from __future__ import annotations

import math

RADIAN_180 = math.pi
RADIAN_360 = 2.0 * math.pi
ARCSECONDS_PER_RADIAN = 180.0 * 3600.0 / math.pi

# Constant of annual aberration, 20.5 arcseconds.
ABERRATION = 20.5 / ARCSECONDS_PER_RADIAN

ANGLE_TOLERANCE = 1e-9


def to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


def radian_mod(angle: float) -> float:
    """Normalise *angle* into ``[0, 2π)``."""

    result = math.fmod(angle, RADIAN_360)
    if result < 0:
        result += RADIAN_360
    # fmod of a tiny negative value can round up to exactly 2π.
    if result >= RADIAN_360:
        result -= RADIAN_360
    return result


# Longitude offsets measured from a reference longitude live in the same range.
radians_mod_360 = radian_mod


def degree_mod(angle: float) -> float:
    """Normalise *angle* (degrees) into ``[0, 360)``."""

    result = math.fmod(angle, 360.0)
    if result < 0:
        result += 360.0
    if result >= 360.0:
        result -= 360.0
    return result


def wrap_pi(angle: float) -> float:
    """Map *angle* into ``(-π, π]``."""

    result = radian_mod(angle)
    if result > RADIAN_180:
        result -= RADIAN_360
    return result


def float_equal(a: float, b: float, tolerance: float = ANGLE_TOLERANCE) -> bool:
    return abs(a - b) <= tolerance

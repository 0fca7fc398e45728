"""Astronomical coordinate and time-inversion engine."""

from .astronomy import Astronomy, HourAngle
from .coordinates import GeographicCoordinates
from .ephemeris import Body, CalcFlag, EphemerisProvider, MeeusEphemeris, SpiceEphemeris
from .errors import AstronomyError, DivergentSearchError, ProviderError
from .solar_terms import SOLAR_TERM_NAMES, solar_term_table, solar_terms
from .solver import longitude_to_time

__all__ = [
    "Astronomy",
    "AstronomyError",
    "Body",
    "CalcFlag",
    "DivergentSearchError",
    "EphemerisProvider",
    "GeographicCoordinates",
    "HourAngle",
    "MeeusEphemeris",
    "ProviderError",
    "SOLAR_TERM_NAMES",
    "SpiceEphemeris",
    "longitude_to_time",
    "solar_term_table",
    "solar_terms",
]

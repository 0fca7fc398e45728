"""The 24 solar terms: instants when the Sun's longitude crosses 15° multiples."""

from __future__ import annotations

import json
import logging
import time
from typing import List, NamedTuple, Sequence, Tuple

from .angles import to_radians
from .astronomy import Astronomy
from .ephemeris import Body
from .solver import longitude_to_time
from .timescale import EphemerisTime, date_to_julian_day

__all__ = [
    "SOLAR_TERM_CODES",
    "SOLAR_TERM_LONGITUDES",
    "SOLAR_TERM_NAMES",
    "SolarTerm",
    "solar_ecliptic_longitude_to_time",
    "solar_term_table",
    "solar_terms",
    "year_reference",
]

LOGGER = logging.getLogger(__name__)

# Index i corresponds to an apparent solar longitude of 15°·i.
SOLAR_TERM_NAMES: Tuple[str, ...] = (
    "春分", "清明", "谷雨", "立夏", "小满", "芒种",
    "夏至", "小暑", "大暑", "立秋", "处暑", "白露",
    "秋分", "寒露", "霜降", "立冬", "小雪", "大雪",
    "冬至", "小寒", "大寒", "立春", "雨水", "惊蛰",
)

SOLAR_TERM_CODES: Tuple[str, ...] = (
    "Z2", "J3", "Z3", "J4", "Z4", "J5",
    "Z5", "J6", "Z6", "J7", "Z7", "J8",
    "Z8", "J9", "Z9", "J10", "Z10", "J11",
    "Z11", "J12", "Z12", "J1", "Z1", "J2",
)

SOLAR_TERM_LONGITUDES: Tuple[float, ...] = tuple(to_radians(15.0 * i) for i in range(24))


class SolarTerm(NamedTuple):
    index: int
    code: str
    name: str
    longitude: float
    instant: EphemerisTime


def year_reference(astronomy: Astronomy, year: int) -> EphemerisTime:
    """Noon UT on 1 January of *year*, the anchor for every search of that year."""

    return astronomy.time_at(date_to_julian_day(year, 1, 1, 12))


def solar_ecliptic_longitude_to_time(
    astronomy: Astronomy, year: int, longitudes: Sequence[float]
) -> List[EphemerisTime]:
    """Instants within *year* at which the Sun reaches each of *longitudes*.

    Every search starts from the same 1 January reference state, so the
    results do not depend on the order of *longitudes*.
    """

    reference = year_reference(astronomy, year)
    state = astronomy.planet(Body.SUN, reference)
    return [longitude_to_time(astronomy, reference, state, longitude) for longitude in longitudes]


def solar_terms(astronomy: Astronomy, year: int) -> Tuple[EphemerisTime, ...]:
    """The 24 solar terms of *year*, index-aligned with :data:`SOLAR_TERM_NAMES`."""

    start = time.perf_counter()
    instants = tuple(solar_ecliptic_longitude_to_time(astronomy, year, SOLAR_TERM_LONGITUDES))
    LOGGER.info(
        json.dumps(
            {
                "event": "solar_terms",
                "year": year,
                "duration_ms": round((time.perf_counter() - start) * 1000.0, 3),
            }
        )
    )
    return instants


def solar_term_table(astronomy: Astronomy, year: int) -> List[SolarTerm]:
    """Solar terms of *year* in chronological order (小寒 in January first)."""

    terms = [
        SolarTerm(
            index,
            SOLAR_TERM_CODES[index],
            SOLAR_TERM_NAMES[index],
            SOLAR_TERM_LONGITUDES[index],
            instant,
        )
        for index, instant in enumerate(solar_terms(astronomy, year))
    ]
    return sorted(terms, key=lambda term: term.instant.jd_ut)

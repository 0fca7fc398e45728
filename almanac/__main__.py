"""Print the 24 solar terms of one or more years.

Usage::

    python -m almanac [year | start-end | y1,y2,...] [--offset-hours H] [--bsp PATH]
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import UTC, datetime
from typing import List, Optional

from astropy.time import Time, TimeDelta

from .astronomy import Astronomy
from .config import Settings
from .coordinates import GeographicCoordinates
from .errors import AstronomyError
from .ephemeris import SpiceEphemeris
from .solar_terms import solar_term_table, year_reference
from .timescale import date_to_julian_day


def parse_year_arguments(arg: str) -> List[int]:
    """Parse a single year, an inclusive range or a comma separated list."""

    years: List[int] = []
    parts = [p.strip() for p in arg.split(",") if p.strip()]
    if not parts:
        raise ValueError("empty year argument")

    for part in parts:
        if "-" in part:
            start_str, end_str = part.split("-", 1)
            start = int(start_str)
            end = int(end_str)
            if end < start:
                raise ValueError(f"range {part} ends before it starts")
            years.extend(range(start, end + 1))
        else:
            years.append(int(part))

    seen = set()
    ordered_years: List[int] = []
    for year in years:
        if year not in seen:
            ordered_years.append(year)
            seen.add(year)
    return ordered_years


def _local_time(jd_ut: float, offset_hours: float) -> Time:
    return Time(jd_ut, format="jd", scale="utc") + TimeDelta(offset_hours * 3600.0, format="sec")


def _format_time(value: Time) -> str:
    return value.to_value("iso", subfmt="date_hms")


def _print_year(astronomy: Astronomy, year: int, offset_hours: float) -> None:
    reference = year_reference(astronomy, year)
    print(f"{year}  (UTC{offset_hours:+g})")
    print(
        f"  JD(UT): {reference.jd_ut:.6f}  JD(ET): {reference.jd_et:.6f}  "
        f"ΔT: {reference.delta_t:.2f}s"
    )
    for term in solar_term_table(astronomy, year):
        local = _format_time(_local_time(term.instant.jd_ut, offset_hours))
        print(f"  {term.code:>3} {term.name}  {local}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="almanac", description="Solar terms calculator")
    parser.add_argument("years", nargs="?", help="year, start-end range or comma separated list")
    parser.add_argument("--offset-hours", type=float, default=None, help="display offset from UTC")
    parser.add_argument("--bsp", default=None, help="JPL DE kernel file or directory")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(message)s")

    try:
        settings = Settings.from_env()
        years = (
            parse_year_arguments(args.years) if args.years else [datetime.now(UTC).year]
        )
    except ValueError as exc:
        print(f"invalid argument: {exc}", file=sys.stderr)
        return 2

    offset_hours = settings.offset_hours if args.offset_hours is None else args.offset_hours
    try:
        if args.bsp:
            provider = SpiceEphemeris(args.bsp)
        else:
            provider = settings.build_provider()
        # Solar longitude is geocentric; the observer does not matter here.
        geo = GeographicCoordinates(longitude=0.0, latitude=0.0)
        for idx, year in enumerate(years):
            if idx:
                print()
            astronomy = Astronomy.at(geo, date_to_julian_day(year, 1, 1, 12), provider)
            _print_year(astronomy, year, offset_hours)
    except AstronomyError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Julian Day (UT) and Ephemeris Time primitives."""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import erfa

__all__ = [
    "SECONDS_PER_DAY",
    "EphemerisTime",
    "date_to_julian_day",
    "datetime_to_julian_day",
    "delta_t_seconds",
    "julian_day_to_datetime",
]

SECONDS_PER_DAY = erfa.DAYSEC
JD_J2000 = erfa.DJ00
DAYS_PER_JULIAN_YEAR = 365.25

# ERFA calendar routines reject anything earlier than this.
MIN_YEAR = -4799
MIN_JD = -68569.5
MAX_JD = 1e9

_DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def _check_calendar_date(year: int, month: int, day: int) -> None:
    if year < MIN_YEAR:
        raise ValueError(f"Year {year} is earlier than {MIN_YEAR}")
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month {month} in {year}-{month}-{day}")
    days = _DAYS_IN_MONTH[month - 1] + (1 if month == 2 and calendar.isleap(year) else 0)
    if not 1 <= day <= days:
        raise ValueError(f"Invalid day {day} in {year}-{month}-{day}")


def date_to_julian_day(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: float = 0.0,
) -> float:
    """Return the Julian Day of a proleptic Gregorian calendar instant (UT)."""

    _check_calendar_date(year, month, day)
    djm0, djm = erfa.cal2jd(year, month, day)
    fraction = (hour + minute / 60.0 + second / 3600.0) / 24.0
    return float(djm0) + float(djm) + fraction


def datetime_to_julian_day(dt: datetime) -> float:
    """Convert a timezone-aware datetime into a UT Julian Day."""

    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC)")
    dt_utc = dt.astimezone(UTC)
    return date_to_julian_day(
        dt_utc.year,
        dt_utc.month,
        dt_utc.day,
        dt_utc.hour,
        dt_utc.minute,
        dt_utc.second + dt_utc.microsecond / 1_000_000,
    )


def julian_day_to_datetime(jd: float) -> datetime:
    """Convert a Julian Day into a UTC datetime (microsecond resolution)."""

    if not MIN_JD <= jd <= MAX_JD:
        raise ValueError(f"Julian Day {jd} is outside the supported calendar range")
    whole = math.floor(jd)
    year, month, day, fraction = erfa.jd2cal(whole, jd - whole)
    midnight = datetime(int(year), int(month), int(day), tzinfo=UTC)
    return midnight + timedelta(microseconds=round(float(fraction) * SECONDS_PER_DAY * 1e6))


def delta_t_seconds(jd_ut: float) -> float:
    """ΔT = TT − UT in seconds.

    Stephenson & Morrison long-term parabola with its 14-century periodic term;
    sub-second near the present and smooth across the historical range.
    """

    year = 2000.0 + (jd_ut - JD_J2000) / DAYS_PER_JULIAN_YEAR
    t = (year - 1825.0) / 100.0
    return -150.568 + 31.4115 * t * t + 284.8436 * math.cos(2.0 * math.pi * (t + 0.75) / 14.0)


@dataclass(frozen=True)
class EphemerisTime:
    """A UT Julian Day paired with its ephemeris-time counterpart."""

    jd_ut: float
    jd_et: float

    @classmethod
    def from_ut(cls, jd_ut: float, delta_t: float) -> "EphemerisTime":
        """Build the pair from a UT Julian Day and ΔT in seconds."""

        return cls(jd_ut=jd_ut, jd_et=jd_ut + delta_t / SECONDS_PER_DAY)

    @property
    def delta_t(self) -> float:
        return (self.jd_et - self.jd_ut) * SECONDS_PER_DAY

    def to_datetime(self) -> datetime:
        return julian_day_to_datetime(self.jd_ut)

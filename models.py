"""Pydantic models for API requests and responses."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from almanac.ephemeris import Body

Source = Literal["CSPICE-DE", "MEEUS"]


def _validate_offset(value: Optional[float]) -> Optional[float]:
    if value is None:
        return value
    if not -24.0 <= value <= 24.0:
        raise ValueError("offset_hours must be within ±24 hours")
    return value


class SolarTermsQueryParams(BaseModel):
    """Validated query parameters for the ``/solar-terms`` endpoint."""

    # datetime starts at year 1; the analytic model ends early in 6000.
    year: int = Field(..., ge=1, le=5999, description="Gregorian year")
    offset_hours: Optional[float] = Field(
        None,
        description="Optional fixed offset in hours applied to derive local times",
    )

    @field_validator("offset_hours")
    def validate_offset_hours(cls, value: Optional[float]) -> Optional[float]:
        return _validate_offset(value)


class HourAngleQueryParams(BaseModel):
    """Validated query parameters for the ``/hour-angle`` endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    lon: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees (east positive)")
    instant: datetime = Field(..., alias="datetime", description="Instant (ISO-8601, UTC if naive)")
    body: Body = Field(Body.SUN, description="Body to locate")
    corrected: bool = Field(
        False, description="Use true obliquity and apparent sidereal time"
    )

    @field_validator("instant")
    def validate_instant(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class SolarTermEntry(BaseModel):
    index: int = Field(..., description="Index i of the term (longitude 15°·i)")
    code: str
    name: str
    longitude_deg: float
    utc: str = Field(..., description="Instant in UTC (ISO-8601)")
    local: Optional[str] = Field(None, description="Instant in local time when offset provided")
    jd_ut: float
    jd_et: float


class SolarTermsResponse(BaseModel):
    """Solar terms of one year in chronological order."""

    ok: bool = True
    year: int
    offset_hours: Optional[float] = None
    terms: List[SolarTermEntry]
    source: Source


class HourAngleResponse(BaseModel):
    ok: bool = True
    body: Body
    datetime_utc: str
    latitude: float
    longitude: float
    corrected: bool
    hour_angle_deg: float = Field(..., description="Hour angle in (-180, 180], west positive")
    right_ascension_deg: float
    declination_deg: float
    ecliptic_longitude_deg: float
    ecliptic_latitude_deg: float
    jd_ut: float
    jd_et: float
    source: Source


class HealthResponse(BaseModel):
    """Health-check response."""

    ok: bool = True
    ephemeris_loaded: bool
    source: Source
    files: List[str]


class ErrorResponse(BaseModel):
    """Error payload."""

    ok: bool = False
    code: str
    error: str

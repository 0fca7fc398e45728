"""FastAPI application exposing solar terms and hour-angle computations."""

from __future__ import annotations

import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta, timezone
from typing import Annotated, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from almanac.angles import to_degrees
from almanac.astronomy import Astronomy
from almanac.config import Settings
from almanac.coordinates import GeographicCoordinates
from almanac.ephemeris import EphemerisProvider, SpiceEphemeris
from almanac.errors import DivergentSearchError, ProviderError
from almanac.solar_terms import SolarTerm, solar_term_table
from almanac.timescale import date_to_julian_day, datetime_to_julian_day, julian_day_to_datetime
from models import (
    ErrorResponse,
    HealthResponse,
    HourAngleQueryParams,
    HourAngleResponse,
    SolarTermEntry,
    SolarTermsQueryParams,
    SolarTermsResponse,
)

logging.basicConfig(level=logging.INFO, format="%(message)s")
LOGGER = logging.getLogger("almanac-api")

APP_DESCRIPTION = "Solar terms and hour angles from JPL DE or analytic ephemerides"

PROVIDER: Optional[EphemerisProvider] = None
EPHEMERIS_FILES: List[str] = []


@asynccontextmanager
async def lifespan(app: FastAPI):
    global PROVIDER, EPHEMERIS_FILES
    settings = Settings.from_env()
    try:
        PROVIDER = settings.build_provider()
    except ProviderError as exc:
        LOGGER.error(json.dumps({"event": "ephemeris_load_failed", "error": str(exc)}))
        raise
    EPHEMERIS_FILES = PROVIDER.file_names if isinstance(PROVIDER, SpiceEphemeris) else []
    LOGGER.info(
        json.dumps(
            {
                "event": "startup",
                "ephemeris_source": _source_name(PROVIDER),
                "files": EPHEMERIS_FILES,
            }
        )
    )
    yield
    PROVIDER = None
    EPHEMERIS_FILES = []


app = FastAPI(
    title="Almanac API",
    description=APP_DESCRIPTION,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


def _source_name(provider: Optional[EphemerisProvider]) -> str:
    return "CSPICE-DE" if isinstance(provider, SpiceEphemeris) else "MEEUS"


def _provider() -> EphemerisProvider:
    if PROVIDER is None:
        raise HTTPException(status_code=503, detail="Ephemeris provider is not initialised")
    return PROVIDER


def _format_utc(dt: datetime) -> str:
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _format_local(dt: datetime, offset_hours: Optional[float]) -> Optional[str]:
    if offset_hours is None:
        return None
    offset = timezone(timedelta(hours=offset_hours))
    return dt.astimezone(offset).isoformat()


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    payload = ErrorResponse(code=code, error=message)
    LOGGER.error(json.dumps({"event": "error", "code": code, "message": message}))
    return JSONResponse(status_code=status_code, content=payload.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = ", ".join(error["msg"] for error in exc.errors())
    return _error_response(422, "validation_error", messages)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled exception", exc_info=exc)
    return _error_response(500, "internal_error", "Unhandled server error")


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(
        ok=True,
        ephemeris_loaded=PROVIDER is not None,
        source=_source_name(PROVIDER),
        files=EPHEMERIS_FILES,
    )


def _solar_term_entries(
    table: List[SolarTerm], offset_hours: Optional[float]
) -> List[SolarTermEntry]:
    entries = []
    for term in table:
        instant = term.instant.to_datetime()
        entries.append(
            SolarTermEntry(
                index=term.index,
                code=term.code,
                name=term.name,
                longitude_deg=round(to_degrees(term.longitude), 6),
                utc=_format_utc(instant),
                local=_format_local(instant, offset_hours),
                jd_ut=term.instant.jd_ut,
                jd_et=term.instant.jd_et,
            )
        )
    return entries


@app.get(
    "/solar-terms",
    response_model=SolarTermsResponse,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def solar_terms_endpoint(
    params: Annotated[SolarTermsQueryParams, Query()],
) -> SolarTermsResponse:
    start_time = time.perf_counter()
    provider = _provider()
    geo = GeographicCoordinates(longitude=0.0, latitude=0.0)
    try:
        astronomy = Astronomy.at(geo, date_to_julian_day(params.year, 1, 1, 12), provider)
        table = solar_term_table(astronomy, params.year)
        terms = _solar_term_entries(table, params.offset_hours)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except ProviderError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except DivergentSearchError as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    duration_ms = (time.perf_counter() - start_time) * 1000.0
    LOGGER.info(
        json.dumps(
            {
                "event": "solar_terms",
                "year": params.year,
                "duration_ms": round(duration_ms, 3),
            }
        )
    )
    return SolarTermsResponse(
        year=params.year,
        offset_hours=params.offset_hours,
        terms=terms,
        source=_source_name(provider),
    )


@app.get(
    "/hour-angle",
    response_model=HourAngleResponse,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def hour_angle_endpoint(
    params: Annotated[HourAngleQueryParams, Query()],
) -> HourAngleResponse:
    start_time = time.perf_counter()
    provider = _provider()
    geo = GeographicCoordinates.from_degrees(params.lon, params.lat)
    try:
        jd_ut = datetime_to_julian_day(params.instant)
        astronomy = Astronomy.at(geo, jd_ut, provider)
        result = astronomy.hour_angle(params.body, with_correction=params.corrected)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except ProviderError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    response = HourAngleResponse(
        body=params.body,
        datetime_utc=_format_utc(julian_day_to_datetime(jd_ut)),
        latitude=params.lat,
        longitude=params.lon,
        corrected=params.corrected,
        hour_angle_deg=to_degrees(result.angle),
        right_ascension_deg=to_degrees(result.equatorial.right_ascension),
        declination_deg=to_degrees(result.equatorial.declination),
        ecliptic_longitude_deg=to_degrees(result.planet.ecliptic.longitude),
        ecliptic_latitude_deg=to_degrees(result.planet.ecliptic.latitude),
        jd_ut=astronomy.jd_ut,
        jd_et=astronomy.jd_et,
        source=_source_name(provider),
    )

    duration_ms = (time.perf_counter() - start_time) * 1000.0
    LOGGER.info(
        json.dumps(
            {
                "event": "hour_angle",
                "lat": params.lat,
                "lon": params.lon,
                "body": params.body.value,
                "corrected": params.corrected,
                "duration_ms": round(duration_ms, 3),
            }
        )
    )
    return response

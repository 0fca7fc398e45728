"""Invert a body's ecliptic longitude to find when it reaches a target."""

from __future__ import annotations

import json
import logging
import math

from .angles import ANGLE_TOLERANCE, float_equal, radians_mod_360, to_degrees, wrap_pi
from .astronomy import Astronomy
from .coordinates import PlanetProperties
from .errors import DivergentSearchError
from .timescale import EphemerisTime

__all__ = ["longitude_to_time", "target_delta"]

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 50
DEFAULT_EPS_DAYS = 1e-8


def target_delta(first_longitude: float, target: float) -> float:
    """Target longitude as a forward offset from *first_longitude*, in ``[0, 2π)``."""

    return radians_mod_360(target - first_longitude)


def longitude_to_time(
    astronomy: Astronomy,
    reference: EphemerisTime,
    reference_state: PlanetProperties,
    target: float,
    *,
    tolerance: float = ANGLE_TOLERANCE,
    eps_days: float = DEFAULT_EPS_DAYS,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> EphemerisTime:
    """Find the first instant at or after *reference* where the longitude equals *target*.

    Longitudes are tracked as offsets from the reference longitude so that the
    body crossing 0°/360° does not look like a jump of a full revolution. Each
    step is a Newton correction ``residual / speed_in_longitude``.

    Raises
    ------
    DivergentSearchError
        If the longitude rate is not finite or not strictly positive, or the
        search has not converged after *max_iterations* steps.
    """

    first_longitude = reference_state.ecliptic.longitude
    wanted = target_delta(first_longitude, target)

    instant = reference
    state = reference_state
    last_delta = 0.0
    residual = wanted

    for iteration in range(max_iterations + 1):
        # Only the first step may span more than half a revolution.
        residual = wanted - last_delta if iteration == 0 else wrap_pi(wanted - last_delta)
        if float_equal(residual, 0.0, tolerance):
            break
        if iteration == max_iterations:
            raise DivergentSearchError(
                f"Longitude search for {to_degrees(target):.6f} deg did not converge "
                f"after {max_iterations} iterations",
                iterations=iteration,
                residual=residual,
            )

        speed = state.speed_in_longitude
        if not math.isfinite(speed) or speed <= 0.0:
            raise DivergentSearchError(
                f"Cannot advance longitude search for {state.body.value}: "
                f"rate {speed!r} rad/day at JD(UT) {instant.jd_ut:.6f}",
                iterations=iteration,
                residual=residual,
            )

        step = residual / speed
        instant = astronomy.time_at(instant.jd_ut + step)
        state = astronomy.planet(state.body, instant)
        last_delta = radians_mod_360(state.ecliptic.longitude - first_longitude)
        if abs(step) < eps_days:
            residual = wrap_pi(wanted - last_delta)
            break

    LOGGER.debug(
        json.dumps(
            {
                "event": "solver_converged",
                "body": state.body.value,
                "target_deg": round(to_degrees(target), 9),
                "iterations": iteration,
                "residual": residual,
                "jd_ut": instant.jd_ut,
            }
        )
    )
    return instant

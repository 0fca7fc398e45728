"""Exception hierarchy shared by the almanac computation core."""

from __future__ import annotations


class AstronomyError(RuntimeError):
    """Base class for failures raised while computing astronomical quantities."""


class ProviderError(AstronomyError):
    """Raised when the ephemeris provider cannot answer a query.

    Covers missing kernels, unsupported bodies and instants outside the
    coverage of the loaded ephemeris. Never retried by the core.
    """


class DivergentSearchError(AstronomyError):
    """Raised when the longitude search fails to converge."""

    def __init__(self, message: str, *, iterations: int, residual: float) -> None:
        super().__init__(message)
        self.iterations = iterations
        self.residual = residual

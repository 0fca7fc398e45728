"""Front-end configuration read from the environment.

The computation core never reads this module; front ends build a
:class:`Settings` value and pass the resulting provider explicitly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .ephemeris import EphemerisProvider, MeeusEphemeris, SpiceEphemeris

DEFAULT_OFFSET_HOURS = 8.0


@dataclass(frozen=True)
class Settings:
    ephemeris_path: Optional[Path] = None
    offset_hours: float = DEFAULT_OFFSET_HOURS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        bsp = env.get("DE_BSP")
        raw_offset = env.get("ALMANAC_OFFSET_HOURS")
        offset_hours = DEFAULT_OFFSET_HOURS
        if raw_offset:
            try:
                offset_hours = float(raw_offset)
            except ValueError as exc:
                raise ValueError(f"ALMANAC_OFFSET_HOURS must be a number: {raw_offset!r}") from exc
            if not -24.0 <= offset_hours <= 24.0:
                raise ValueError("ALMANAC_OFFSET_HOURS must be within ±24 hours")
        return cls(
            ephemeris_path=Path(bsp).expanduser() if bsp else None,
            offset_hours=offset_hours,
        )

    def build_provider(self) -> EphemerisProvider:
        """SPICE kernels when ``DE_BSP`` is set, the analytic model otherwise."""

        if self.ephemeris_path is None:
            return MeeusEphemeris()
        return SpiceEphemeris(self.ephemeris_path)

"""
Tunable thresholds for the extraction engine.

The century pivot and the adult-age filter are empirical values carried over
from the field deployment; they are settings rather than constants so they
can be adjusted without touching the strategies that use them.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

ENV_PREFIX = "SCAN_EXTRACTOR_"


class ExtractionSettings(BaseModel):
    """Thresholds shared by the MRZ decoder and the birth-date cascade."""

    # yy > (current year % 100) + offset → 19yy, else 20yy
    century_pivot_offset: int = 20
    # The year heuristic only keeps years implying at least this age
    min_adult_age: int = 18
    # Accepted ages lie in [0, max_age)
    max_age: int = 120
    # Accepted birth years lie in (min_birth_year, current year]
    min_birth_year: int = 1900
    citizen_countries: frozenset[str] = Field(
        default_factory=lambda: frozenset({"United States", "USA", "US"})
    )

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ExtractionSettings:
        """Build settings from ``SCAN_EXTRACTOR_*`` environment variables.

        Unset variables keep their defaults. Integer variables that do not
        parse raise pydantic's ``ValidationError``.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}

        for name in ("century_pivot_offset", "min_adult_age", "max_age", "min_birth_year"):
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is not None and raw.strip():
                overrides[name] = raw.strip()

        countries = env.get(ENV_PREFIX + "CITIZEN_COUNTRIES")
        if countries:
            overrides["citizen_countries"] = frozenset(
                c.strip() for c in countries.split(",") if c.strip()
            )

        return cls.model_validate(overrides)

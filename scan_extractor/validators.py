"""
Plausibility gates for extracted values.

Each check takes a candidate value and returns a list of ValidationFinding
objects: an empty list means the value is accepted. Callers discard any
value that produced a finding and move on to the next strategy; the
findings themselves only end up in the report for debugging.
"""

from __future__ import annotations

from datetime import date

from .config import ExtractionSettings
from .dates import calculate_age
from .models import Severity, Strategy, ValidationFinding


def check_birth_date(
    born: date,
    today: date,
    settings: ExtractionSettings,
    strategy: Strategy,
) -> list[ValidationFinding]:
    """A birth date must fall in (min_birth_year, today.year] and give an
    age in [0, max_age)."""
    findings: list[ValidationFinding] = []

    if not settings.min_birth_year < born.year <= today.year:
        findings.append(
            ValidationFinding(
                severity=Severity.WARNING,
                code="IMPLAUSIBLE_BIRTH_DATE",
                field="date_of_birth",
                message=(
                    f"Birth year {born.year} from {strategy.value} is outside "
                    f"({settings.min_birth_year}, {today.year}]. Discarded."
                ),
                details={"candidate": born.isoformat(), "strategy": strategy.value},
            )
        )
        return findings

    age = calculate_age(born, today)
    if not 0 <= age < settings.max_age:
        findings.append(
            ValidationFinding(
                severity=Severity.WARNING,
                code="IMPLAUSIBLE_AGE",
                field="age",
                message=(
                    f"Birth date {born.isoformat()} from {strategy.value} gives "
                    f"age {age}, outside [0, {settings.max_age}). Discarded."
                ),
                details={
                    "candidate": born.isoformat(),
                    "age": age,
                    "strategy": strategy.value,
                },
            )
        )

    return findings


def is_plausible_issuance_date(issued: date, today: date, settings: ExtractionSettings) -> bool:
    """Documents cannot be issued in the future or before the birth-year floor."""
    return settings.min_birth_year < issued.year and issued <= today


def is_plausible_expiry_date(expires: date, today: date, settings: ExtractionSettings) -> bool:
    """Expiry dates may lie in the future, but not beyond a human lifetime."""
    return settings.min_birth_year < expires.year <= today.year + settings.max_age

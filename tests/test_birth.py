"""
Test suite for date handling and the date-of-birth cascade.

"Today" is pinned everywhere: ages and century pivots depend on it.

Run: pytest tests/ -v
"""

from __future__ import annotations

from datetime import date

import pytest

from scan_extractor.config import ExtractionSettings
from scan_extractor.dates import (
    calculate_age,
    date_candidates,
    first_date_in,
    normalize_date_text,
    repair_digits,
    resolve_century,
)
from scan_extractor.extractor_birth import (
    BirthCandidate,
    birth_year_mention,
    labeled_date,
    resolve_birth,
    year_heuristic,
)
from scan_extractor.models import Severity, Strategy
from scan_extractor.normalize import normalize
from scan_extractor.validators import (
    check_birth_date,
    is_plausible_expiry_date,
    is_plausible_issuance_date,
)


TODAY = date(2026, 10, 19)
SETTINGS = ExtractionSettings()


# ═══════════════════════════════════════════════════════════════════════
# CENTURY RESOLUTION
# ═══════════════════════════════════════════════════════════════════════


class TestResolveCentury:
    """Pivot for 2026 with the default offset is 26 + 20 = 46."""

    @pytest.mark.parametrize("yy", [0, 10, 25, 26])
    def test_up_to_current_year_is_2000s(self, yy):
        assert resolve_century(yy, TODAY) == 2000 + yy

    @pytest.mark.parametrize("yy", [47, 85, 99])
    def test_above_pivot_is_1900s(self, yy):
        assert resolve_century(yy, TODAY) == 1900 + yy

    def test_exactly_at_pivot_is_2000s(self):
        assert resolve_century(46, TODAY) == 2046

    def test_offset_is_configurable(self):
        assert resolve_century(30, TODAY, pivot_offset=0) == 1930

    @pytest.mark.parametrize("yy", [-1, 100])
    def test_not_two_digits_raises(self, yy):
        with pytest.raises(ValueError, match="two-digit"):
            resolve_century(yy, TODAY)


# ═══════════════════════════════════════════════════════════════════════
# AGE
# ═══════════════════════════════════════════════════════════════════════


class TestCalculateAge:
    def test_birthday_passed(self):
        assert calculate_age(date(1990, 5, 14), TODAY) == 36

    def test_birthday_not_yet_reached(self):
        assert calculate_age(date(1990, 12, 1), TODAY) == 35

    def test_birthday_today(self):
        assert calculate_age(date(2000, 10, 19), TODAY) == 26

    def test_born_today(self):
        assert calculate_age(TODAY, TODAY) == 0


# ═══════════════════════════════════════════════════════════════════════
# FREE-TEXT DATES
# ═══════════════════════════════════════════════════════════════════════


class TestDateParsing:
    def test_repair_digits(self):
        assert repair_digits("9OO5l4") == "900514"
        assert repair_digits("BG") == "86"

    def test_normalize_date_text(self):
        assert normalize_date_text("1990年5月14日") == "1990/5/14"
        assert normalize_date_text("14.05-1990") == "14/05/1990"

    def test_candidate_order(self):
        assert list(date_candidates("1990-05-14"))[0] == date(1990, 5, 14)
        assert list(date_candidates("14/05/1990"))[0] == date(1990, 5, 14)

    def test_day_first_before_month_first(self):
        candidates = list(date_candidates("03/04/2021"))
        assert candidates[0] == date(2021, 4, 3)
        assert candidates[1] == date(2021, 3, 4)

    def test_impossible_layout_skipped(self):
        assert list(date_candidates("05/14/1990"))[0] == date(1990, 5, 14)

    def test_month_names(self):
        assert first_date_in("14 May 1990") == date(1990, 5, 14)
        assert first_date_in("May 14, 1990") == date(1990, 5, 14)

    def test_first_date_in_value_with_trailing_text(self):
        assert first_date_in("2031-03-12   Sex: M") == date(2031, 3, 12)

    def test_accept_predicate(self):
        assert first_date_in("1850-01-01 or 1950-01-01", lambda d: d.year > 1900) == date(1950, 1, 1)

    def test_no_date(self):
        assert first_date_in("no dates here") is None


# ═══════════════════════════════════════════════════════════════════════
# PLAUSIBILITY GATES
# ═══════════════════════════════════════════════════════════════════════


class TestPlausibility:
    def test_plausible_birth_date(self):
        assert check_birth_date(date(1990, 5, 14), TODAY, SETTINGS, Strategy.MRZ) == []

    def test_future_birth_year(self):
        findings = check_birth_date(date(2030, 1, 1), TODAY, SETTINGS, Strategy.MRZ)
        assert len(findings) == 1
        assert findings[0].severity == Severity.WARNING
        assert findings[0].code == "IMPLAUSIBLE_BIRTH_DATE"
        assert findings[0].details["strategy"] == "mrz"

    def test_birth_year_floor_is_exclusive(self):
        findings = check_birth_date(date(1900, 6, 1), TODAY, SETTINGS, Strategy.LABELED_DATE)
        assert findings[0].code == "IMPLAUSIBLE_BIRTH_DATE"

    def test_later_this_year_gives_negative_age(self):
        findings = check_birth_date(date(2026, 12, 1), TODAY, SETTINGS, Strategy.LABELED_DATE)
        assert findings[0].code == "IMPLAUSIBLE_AGE"
        assert findings[0].details["age"] == -1

    def test_age_ceiling(self):
        settings = ExtractionSettings(max_age=30)
        findings = check_birth_date(date(1990, 5, 14), TODAY, settings, Strategy.MRZ)
        assert findings[0].code == "IMPLAUSIBLE_AGE"

    def test_issuance_date(self):
        assert is_plausible_issuance_date(date(2021, 2, 3), TODAY, SETTINGS)
        assert not is_plausible_issuance_date(date(2027, 1, 1), TODAY, SETTINGS)
        assert not is_plausible_issuance_date(date(1899, 1, 1), TODAY, SETTINGS)

    def test_expiry_date(self):
        assert is_plausible_expiry_date(date(2031, 3, 12), TODAY, SETTINGS)
        assert not is_plausible_expiry_date(date(2200, 1, 1), TODAY, SETTINGS)


# ═══════════════════════════════════════════════════════════════════════
# DOB STRATEGIES
# ═══════════════════════════════════════════════════════════════════════


class TestBirthStrategies:
    def test_labeled_iso_date(self):
        candidate = labeled_date(normalize("Date of Birth: 1990-05-14"), TODAY, SETTINGS)
        assert candidate == BirthCandidate(date(1990, 5, 14), Strategy.LABELED_DATE)

    def test_labeled_day_first_date(self):
        candidate = labeled_date(normalize("DOB 14/05/1990 Sex F"), TODAY, SETTINGS)
        assert candidate.date_of_birth == date(1990, 5, 14)

    def test_labeled_cjk_date(self):
        candidate = labeled_date(normalize("生年月日: 1990年5月14日"), TODAY, SETTINGS)
        assert candidate.date_of_birth == date(1990, 5, 14)

    def test_labeled_month_name(self):
        candidate = labeled_date(normalize("Born 14 May 1990 in Leeds"), TODAY, SETTINGS)
        assert candidate.date_of_birth == date(1990, 5, 14)

    def test_date_before_label(self):
        candidate = labeled_date(normalize("14.05.1990 (date of birth)"), TODAY, SETTINGS)
        assert candidate.date_of_birth == date(1990, 5, 14)

    def test_labeled_date_out_of_range_skipped(self):
        assert labeled_date(normalize("Date of Birth: 1890-01-01"), TODAY, SETTINGS) is None

    def test_birth_year_mention(self):
        candidate = birth_year_mention(normalize("The holder was born in 1985."), TODAY, SETTINGS)
        assert candidate == BirthCandidate(date(1985, 1, 1), Strategy.BIRTH_YEAR_MENTION)

    def test_year_before_birth_word(self):
        candidate = birth_year_mention(normalize("1972 year of birth"), TODAY, SETTINGS)
        assert candidate.date_of_birth == date(1972, 1, 1)

    def test_year_heuristic_picks_most_recent_adult_year(self):
        scan = normalize("Member since 2019. Ref 1979 / 1992.")
        candidate = year_heuristic(scan, TODAY, SETTINGS)
        assert candidate == BirthCandidate(date(1992, 1, 1), Strategy.YEAR_HEURISTIC)

    def test_year_heuristic_adult_age_configurable(self):
        scan = normalize("Member since 2019. Ref 1979 / 1992.")
        settings = ExtractionSettings(min_adult_age=40)
        assert year_heuristic(scan, TODAY, settings).date_of_birth == date(1979, 1, 1)

    def test_year_heuristic_nothing_adult(self):
        assert year_heuristic(normalize("Issued 2020"), TODAY, SETTINGS) is None


# ═══════════════════════════════════════════════════════════════════════
# DOB CASCADE
# ═══════════════════════════════════════════════════════════════════════


class TestResolveBirth:
    def test_labeled_date_with_age(self):
        resolution, findings = resolve_birth(
            normalize("Date of Birth: 1990-05-14"), TODAY, SETTINGS
        )
        assert resolution.date_of_birth == date(1990, 5, 14)
        assert resolution.birth_year == 1990
        assert resolution.age == 36
        assert resolution.strategy == Strategy.LABELED_DATE
        assert findings == []

    def test_born_in_year(self):
        resolution, _ = resolve_birth(
            normalize("The applicant was born in 1985 in Ohio."), TODAY, SETTINGS
        )
        assert resolution.birth_year == 1985
        assert resolution.date_of_birth == date(1985, 1, 1)
        assert resolution.strategy == Strategy.BIRTH_YEAR_MENTION

    def test_mrz_candidate_wins(self):
        mrz = BirthCandidate(date(1988, 2, 29), Strategy.MRZ)
        resolution, _ = resolve_birth(
            normalize("Date of Birth: 1990-05-14"), TODAY, SETTINGS, mrz_candidate=mrz
        )
        assert resolution.date_of_birth == date(1988, 2, 29)
        assert resolution.strategy == Strategy.MRZ

    def test_implausible_mrz_falls_through_with_finding(self):
        mrz = BirthCandidate(date(2030, 1, 1), Strategy.MRZ)
        resolution, findings = resolve_birth(
            normalize("Date of Birth: 1990-05-14"), TODAY, SETTINGS, mrz_candidate=mrz
        )
        assert resolution.strategy == Strategy.LABELED_DATE
        assert [f.code for f in findings] == ["IMPLAUSIBLE_BIRTH_DATE"]

    def test_nothing_found(self):
        resolution, findings = resolve_birth(normalize("Sex: F"), TODAY, SETTINGS)
        assert resolution is None
        assert findings == []

    def test_age_is_idempotent_and_in_range(self):
        scan = normalize("Date of Birth: 1990-05-14")
        first, _ = resolve_birth(scan, TODAY, SETTINGS)
        second, _ = resolve_birth(scan, TODAY, SETTINGS)
        assert first == second
        assert first.age == calculate_age(first.date_of_birth, TODAY)
        assert 0 <= first.age < SETTINGS.max_age

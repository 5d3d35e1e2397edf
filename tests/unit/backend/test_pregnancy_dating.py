"""
Unit tests for pregnancy dating calculations.

Tests the core logic for:
- EDD from LMP and EDD precedence (corrected > scan > lmp)
- LMP-based and scan-based gestational age
- Trimester boundaries, days until EDD, progress
- Display formatting and the combined dating summary

Every test pins "today"; nothing depends on the wall clock.
"""

from datetime import date, datetime, timedelta

import pytest

from maternity.services.pregnancy_dating import (
    GestationalAge,
    PregnancyDates,
    build_dating_summary,
    calculate_edd_from_lmp,
    days_until_edd,
    format_date,
    format_datetime,
    gestational_age,
    gestational_age_from_lmp,
    gestational_age_from_scan_edd,
    get_estimated_edd,
    get_estimated_edd_source,
    get_final_edd,
    get_final_edd_source,
    get_trimester,
    is_due,
    pregnancy_progress_percent,
)


TODAY = date(2024, 9, 1)


# =============================================================================
# Test calculate_edd_from_lmp
# =============================================================================

class TestCalculateEddFromLmp:
    """Tests for LMP + 280 days."""

    def test_adds_280_calendar_days(self):
        assert calculate_edd_from_lmp(date(2024, 1, 1)) == date(2024, 10, 7)

    def test_crosses_year_end(self):
        assert calculate_edd_from_lmp(date(2023, 6, 15)) == date(2024, 3, 21)

    def test_counts_leap_day(self):
        """Feb 29 2024 is inside the window and counts as a day."""
        lmp = date(2023, 12, 1)
        assert calculate_edd_from_lmp(lmp) == date(2024, 9, 6)
        assert (calculate_edd_from_lmp(lmp) - lmp).days == 280

    def test_datetime_input_drops_time_of_day(self):
        edd = calculate_edd_from_lmp(datetime(2024, 1, 1, 23, 45))
        assert edd == date(2024, 10, 7)
        assert not isinstance(edd, datetime)


# =============================================================================
# Test EDD precedence
# =============================================================================

class TestEstimatedEdd:
    """Scan EDD beats LMP dating."""

    def test_scan_edd_returned_verbatim(self):
        record = PregnancyDates(lmp_date=date(2024, 3, 1), scan_edd=date(2024, 12, 20))
        assert get_estimated_edd(record) == date(2024, 12, 20)
        assert get_estimated_edd_source(record) == "scan"

    def test_scan_edd_ignores_lmp_value(self):
        for lmp in (date(2023, 1, 1), date(2024, 3, 1), date(2024, 8, 30)):
            record = PregnancyDates(lmp_date=lmp, scan_edd=date(2024, 12, 20))
            assert get_estimated_edd(record) == date(2024, 12, 20)

    def test_falls_back_to_lmp(self):
        record = PregnancyDates(lmp_date=date(2024, 1, 1))
        assert get_estimated_edd(record) == date(2024, 10, 7)
        assert get_estimated_edd_source(record) == "lmp"

    def test_no_dates_is_not_computable(self):
        record = PregnancyDates()
        assert get_estimated_edd(record) is None
        assert get_estimated_edd_source(record) is None


class TestFinalEdd:
    """Corrected EDD beats scan and LMP."""

    def test_corrected_edd_wins_over_scan_and_lmp(self):
        record = PregnancyDates(
            lmp_date=date(2024, 3, 1),
            scan_edd=date(2024, 12, 20),
            corrected_edd=date(2024, 12, 1),
        )
        assert get_final_edd(record) == date(2024, 12, 1)
        assert get_final_edd_source(record) == "corrected"

    def test_scan_used_without_correction(self):
        record = PregnancyDates(lmp_date=date(2024, 3, 1), scan_edd=date(2024, 12, 20))
        assert get_final_edd(record) == date(2024, 12, 20)
        assert get_final_edd_source(record) == "scan"

    def test_fallback_chain_to_lmp(self):
        record = PregnancyDates(lmp_date=date(2024, 3, 1))
        assert get_final_edd(record) == calculate_edd_from_lmp(date(2024, 3, 1))
        assert get_final_edd_source(record) == "lmp"

    def test_has_corrected_edd_follows_the_date(self):
        assert PregnancyDates(corrected_edd=date(2024, 12, 1)).has_corrected_edd is True
        assert PregnancyDates(lmp_date=date(2024, 3, 1)).has_corrected_edd is False


# =============================================================================
# Test gestational age
# =============================================================================

class TestGestationalAge:
    """Tests for weeks/days decomposition and LMP-based GA."""

    def test_decomposition_invariant(self):
        for n in range(0, 301):
            ga = GestationalAge.from_days(n)
            assert ga.weeks == n // 7
            assert 0 <= ga.days <= 6
            assert ga.weeks * 7 + ga.days == n
            assert ga.total_days == n

    def test_lmp_ga_from_elapsed_days(self):
        ga = gestational_age_from_lmp(date(2024, 3, 1), today=TODAY)
        assert ga == GestationalAge(weeks=26, days=2)
        assert ga.to_dict() == {"weeks": 26, "days": 2}
        assert str(ga) == "26w 2d"

    def test_reference_and_anchor_form(self):
        assert gestational_age(TODAY, date(2024, 3, 1)) == GestationalAge(26, 2)

    def test_lmp_ga_on_lmp_day_is_zero(self):
        assert gestational_age_from_lmp(TODAY, today=TODAY) == GestationalAge(0, 0)

    def test_future_lmp_is_not_clamped(self):
        """LMP dating does not clamp; scan dating does (see below)."""
        ga = gestational_age_from_lmp(date(2024, 9, 4), today=TODAY)
        assert ga.total_days == -3
        assert ga.weeks < 0


class TestScanGestationalAge:
    """Scan GA = 280 - days remaining, clamped at zero."""

    def test_scan_edd_today_is_40_weeks(self):
        assert gestational_age_from_scan_edd(TODAY, today=TODAY) == GestationalAge(40, 0)

    def test_scan_edd_in_100_days(self):
        ga = gestational_age_from_scan_edd(TODAY + timedelta(days=100), today=TODAY)
        assert ga == GestationalAge.from_days(180)

    def test_exactly_280_days_away_is_zero(self):
        ga = gestational_age_from_scan_edd(TODAY + timedelta(days=280), today=TODAY)
        assert ga == GestationalAge(0, 0)

    @pytest.mark.parametrize("days_away", [281, 300, 1000])
    def test_more_than_280_days_away_clamps_to_zero(self, days_away):
        ga = gestational_age_from_scan_edd(TODAY + timedelta(days=days_away), today=TODAY)
        assert ga == GestationalAge(0, 0)

    def test_past_scan_edd_keeps_counting(self):
        ga = gestational_age_from_scan_edd(TODAY - timedelta(days=10), today=TODAY)
        assert ga == GestationalAge(41, 3)


# =============================================================================
# Test trimester, days until EDD, progress
# =============================================================================

class TestTrimester:
    """Trimester boundaries at weeks 14 and 28."""

    @pytest.mark.parametrize("weeks,expected", [
        (0, 1), (1, 1), (13, 1),
        (14, 2), (27, 2),
        (28, 3), (40, 3), (42, 3),
    ])
    def test_boundaries(self, weeks, expected):
        assert get_trimester(weeks).trimester == expected

    def test_labels(self):
        assert get_trimester(10).label == "First Trimester"
        assert get_trimester(20).label == "Second Trimester"
        assert get_trimester(30).to_dict() == {"trimester": 3, "label": "Third Trimester"}


class TestDaysUntilEdd:
    def test_signed_day_count(self):
        assert days_until_edd(date(2024, 9, 11), today=TODAY) == 10
        assert days_until_edd(TODAY, today=TODAY) == 0
        assert days_until_edd(date(2024, 8, 29), today=TODAY) == -3

    def test_due_when_zero_or_less(self):
        assert is_due(0) is True
        assert is_due(-5) is True
        assert is_due(1) is False


class TestProgressPercent:
    def test_linear_up_to_40_weeks(self):
        assert pregnancy_progress_percent(0) == 0
        assert pregnancy_progress_percent(20) == 50.0
        assert pregnancy_progress_percent(40) == 100.0

    def test_clamped_at_100(self):
        assert pregnancy_progress_percent(43) == 100.0


# =============================================================================
# Test formatting
# =============================================================================

class TestFormatting:
    def test_format_date(self):
        assert format_date(date(2024, 3, 1)) == "1 Mar 2024"
        assert format_date(date(2024, 12, 25)) == "25 Dec 2024"

    def test_format_datetime_afternoon(self):
        assert format_datetime(datetime(2024, 3, 1, 14, 30)) == "1 Mar 2024, 02:30 pm"

    def test_format_datetime_midnight_and_noon(self):
        assert format_datetime(datetime(2024, 3, 1, 0, 5)) == "1 Mar 2024, 12:05 am"
        assert format_datetime(datetime(2024, 3, 1, 12, 0)) == "1 Mar 2024, 12:00 pm"


# =============================================================================
# Test build_dating_summary
# =============================================================================

class TestBuildDatingSummary:
    """Tests for the combined dating view."""

    def test_lmp_only_scenario(self):
        """LMP 1 Mar 2024, no scan, no correction, as of 1 Sep 2024 (184 days)."""
        record = PregnancyDates(lmp_date=date(2024, 3, 1))

        summary = build_dating_summary(record, today=TODAY)

        assert summary["as_of"] == "2024-09-01"
        assert summary["gestational_age"] == {"weeks": 26, "days": 2}
        assert summary["scan_gestational_age"] is None
        assert summary["estimated_edd"] == "2024-12-06"
        assert summary["final_edd"] == "2024-12-06"
        assert summary["final_edd_source"] == "lmp"
        assert summary["final_edd_source_text"] == "Calculated from LMP"
        assert summary["trimester"]["trimester"] == 2
        assert summary["days_until_edd"] == 96
        assert summary["is_due"] is False
        assert summary["progress_percent"] == 65.0
        assert summary["display"]["final_edd"] == "6 Dec 2024"
        assert summary["display"]["gestational_age"] == "26w 2d"

    def test_corrected_edd_drives_countdown(self):
        record = PregnancyDates(
            lmp_date=date(2024, 3, 1),
            scan_edd=date(2024, 12, 10),
            corrected_edd=date(2024, 8, 30),
        )

        summary = build_dating_summary(record, today=TODAY)

        assert summary["estimated_edd"] == "2024-12-10"
        assert summary["estimated_edd_source"] == "scan"
        assert summary["final_edd"] == "2024-08-30"
        assert summary["final_edd_source_text"] == "Calculated from Corrected EDD"
        assert summary["days_until_edd"] == -2
        assert summary["is_due"] is True
        # Both GA variants are reported separately
        assert summary["lmp_gestational_age"] == {"weeks": 26, "days": 2}
        assert summary["scan_gestational_age"] == GestationalAge.from_days(280 - 100).to_dict()

    def test_scan_countdown_reported_beside_final_countdown(self):
        record = PregnancyDates(
            lmp_date=date(2024, 3, 1),
            scan_edd=date(2024, 12, 10),
            corrected_edd=date(2024, 8, 30),
        )

        summary = build_dating_summary(record, today=TODAY)

        assert summary["scan_days_until_edd"] == 100
        assert summary["days_until_edd"] == -2

    def test_no_scan_countdown_without_scan_edd(self):
        summary = build_dating_summary(PregnancyDates(lmp_date=date(2024, 3, 1)), today=TODAY)
        assert summary["scan_days_until_edd"] is None

    def test_scan_only_uses_scan_ga(self):
        record = PregnancyDates(scan_edd=TODAY + timedelta(days=70))

        summary = build_dating_summary(record, today=TODAY)

        assert summary["lmp_gestational_age"] is None
        assert summary["gestational_age"] == {"weeks": 30, "days": 0}
        assert summary["trimester"]["trimester"] == 3
        assert summary["display"]["lmp_date"] == "--"

    def test_no_dates_renders_placeholders(self):
        summary = build_dating_summary(PregnancyDates(), today=TODAY)

        assert summary["gestational_age"] is None
        assert summary["trimester"] is None
        assert summary["final_edd"] is None
        assert summary["final_edd_source"] is None
        assert summary["days_until_edd"] is None
        assert summary["is_due"] is None
        assert summary["display"] == {
            "lmp_date": "--",
            "estimated_edd": "--",
            "final_edd": "--",
            "gestational_age": "--",
        }

    def test_pinned_today_is_repeatable(self):
        record = PregnancyDates(lmp_date=date(2024, 3, 1))
        assert build_dating_summary(record, today=TODAY) == build_dating_summary(record, today=TODAY)

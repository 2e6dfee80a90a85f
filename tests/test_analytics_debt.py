"""Tests for sleepdebt.analytics.debt -- nightly and cumulative debt."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from sleepdebt.analytics.debt import (
    DebtSeverity,
    MissingDataStrategy,
    SleepDebtCalculator,
    _months_before,
)
from sleepdebt.errors import ErrorKind, InvalidDateRangeError, InvalidParameterError

from tests.conftest import MONDAY, make_degenerate, make_record, nightly


@pytest.fixture
def calc() -> SleepDebtCalculator:
    return SleepDebtCalculator()


class TestNightlyDebt:
    def test_shortfall(self, calc):
        assert calc.calculate_nightly_debt(make_record(MONDAY, 6.5)) == pytest.approx(1.5)

    def test_surplus_floors_at_zero(self, calc):
        assert calc.calculate_nightly_debt(make_record(MONDAY, 9.0)) == 0.0

    def test_override_target(self, calc):
        assert calc.calculate_nightly_debt(make_record(MONDAY, 6.0), 7.0) == pytest.approx(1.0)

    def test_negative_target_rejected(self, calc):
        with pytest.raises(InvalidParameterError):
            calc.calculate_nightly_debt(make_record(MONDAY, 6.0), -1.0)

    def test_zero_target_is_no_debt(self, calc):
        assert calc.calculate_nightly_debt(make_record(MONDAY, 6.0), 0.0) == 0.0

    def test_constructor_rejects_bad_target(self):
        with pytest.raises(InvalidParameterError):
            SleepDebtCalculator(-1.0)


class TestCumulativeDebt:
    def test_use_average_scenario(self, calc):
        wednesday = MONDAY + timedelta(days=2)
        records = [make_record(MONDAY, 8.0), make_record(wednesday, 4.0)]
        result = calc.calculate_cumulative_debt(
            records, MONDAY, MONDAY + timedelta(days=6), MissingDataStrategy.USE_AVERAGE
        )
        # Wed: 4h; 5 missing days at 8 - mean(8, 4) = 2h
        assert result.total_debt_hours == pytest.approx(14.0)
        assert len(result.missing_days) == 5
        assert result.daily_debt_hours[MONDAY] == 0.0
        assert result.daily_debt_hours[wednesday] == pytest.approx(4.0)
        assert result.total_actual_sleep_hours == pytest.approx(12.0)
        assert result.total_recommended_sleep_hours == pytest.approx(56.0)
        assert result.average_debt_per_night_hours == pytest.approx(2.0)
        assert result.formatted_total_debt == "14h 0m"

    def test_every_day_has_an_entry(self, calc):
        start, end = MONDAY, MONDAY + timedelta(days=9)
        result = calc.calculate_cumulative_debt(nightly(MONDAY, [7.0, 6.0]), start, end)
        assert list(result.daily_debt_hours) == [start + timedelta(days=i) for i in range(10)]
        assert result.available_days + len(result.missing_days) == 10

    def test_totals_match_daily_sum(self, calc):
        records = nightly(MONDAY, [7.0, 5.5, 9.0, 6.0])
        result = calc.calculate_cumulative_debt(
            records, MONDAY, MONDAY + timedelta(days=13), MissingDataStrategy.INTERPOLATE
        )
        assert result.total_debt_hours == pytest.approx(sum(result.daily_debt_hours.values()))
        assert all(v >= 0 for v in result.daily_debt_hours.values())

    def test_missing_days_ascending(self, calc):
        records = [make_record(MONDAY + timedelta(days=3), 7.0)]
        result = calc.calculate_cumulative_debt(records, MONDAY, MONDAY + timedelta(days=6))
        assert list(result.missing_days) == sorted(result.missing_days)
        assert MONDAY + timedelta(days=3) not in result.missing_days

    def test_single_day_period(self, calc):
        result = calc.calculate_cumulative_debt([make_record(MONDAY, 6.0)], MONDAY, MONDAY)
        assert result.total_debt_hours == pytest.approx(2.0)
        assert result.missing_days == ()

    def test_timestamps_truncated_to_days(self, calc):
        result = calc.calculate_cumulative_debt(
            [], datetime.combine(MONDAY, datetime.min.time()) + timedelta(hours=15),
            datetime.combine(MONDAY, datetime.min.time()) + timedelta(days=1, hours=2),
            MissingDataStrategy.CONSERVATIVE,
        )
        assert len(result.daily_debt_hours) == 2

    def test_invalid_range_raises(self, calc):
        with pytest.raises(InvalidDateRangeError) as exc_info:
            calc.calculate_cumulative_debt([], MONDAY, MONDAY - timedelta(days=1))
        assert exc_info.value.kind == ErrorKind.INVALID_RANGE

    def test_idempotent(self, calc):
        records = nightly(MONDAY, [7.0, 6.0, 5.0])
        end = MONDAY + timedelta(days=6)
        a = calc.calculate_cumulative_debt(records, MONDAY, end)
        b = calc.calculate_cumulative_debt(records, MONDAY, end)
        assert a == b

    def test_more_sleep_never_more_debt(self, calc):
        end = MONDAY + timedelta(days=6)
        short = calc.calculate_cumulative_debt(
            [make_record(MONDAY, 5.0)], MONDAY, end, MissingDataStrategy.CONSERVATIVE
        )
        longer = calc.calculate_cumulative_debt(
            [make_record(MONDAY, 7.0)], MONDAY, end, MissingDataStrategy.CONSERVATIVE
        )
        assert longer.total_debt_hours <= short.total_debt_hours

    def test_first_record_per_day_wins(self, calc):
        records = [
            make_record(MONDAY, 6.0, record_id="first"),
            make_record(MONDAY, 8.0, record_id="second"),
        ]
        result = calc.calculate_cumulative_debt(records, MONDAY, MONDAY)
        assert result.total_debt_hours == pytest.approx(2.0)

    def test_records_outside_period_ignored(self, calc):
        records = [make_record(MONDAY - timedelta(days=3), 2.0)]
        result = calc.calculate_cumulative_debt(
            records, MONDAY, MONDAY, MissingDataStrategy.ASSUME_RECOMMENDED
        )
        assert result.total_debt_hours == 0.0
        assert result.total_actual_sleep_hours == 0.0

    def test_degenerate_record_skipped_and_reported(self, calc):
        records = [make_record(MONDAY, 7.0), make_degenerate(MONDAY + timedelta(days=1))]
        result = calc.calculate_cumulative_debt(
            records, MONDAY, MONDAY + timedelta(days=1), MissingDataStrategy.CONSERVATIVE
        )
        assert result.rejected_record_ids == ("bad",)
        assert MONDAY + timedelta(days=1) in result.missing_days
        assert result.total_debt_hours == pytest.approx(9.0)

    def test_planned_records_are_missing_days(self, calc):
        records = [make_record(MONDAY, 8.0, is_planned=True)]
        result = calc.calculate_cumulative_debt(
            records, MONDAY, MONDAY, MissingDataStrategy.CONSERVATIVE
        )
        assert result.missing_days == (MONDAY,)
        assert result.total_debt_hours == pytest.approx(8.0)
        assert result.total_actual_sleep_hours == 0.0

    def test_strategy_recorded(self, calc):
        result = calc.calculate_cumulative_debt([], MONDAY, MONDAY, MissingDataStrategy.INTERPOLATE)
        assert result.strategy == MissingDataStrategy.INTERPOLATE

    def test_efficiency(self, calc):
        result = calc.calculate_cumulative_debt(nightly(MONDAY, [6.0, 6.0]), MONDAY,
                                                MONDAY + timedelta(days=1))
        assert result.efficiency == pytest.approx(75.0)

    @pytest.mark.parametrize("strategy", list(MissingDataStrategy))
    def test_zero_target(self, calc, strategy):
        records = [make_record(MONDAY, 6.0), make_record(MONDAY + timedelta(days=3), 5.0)]
        result = calc.calculate_cumulative_debt(
            records, MONDAY, MONDAY + timedelta(days=6), strategy, recommended_hours=0.0
        )
        assert result.total_debt_hours == 0.0
        assert result.total_recommended_sleep_hours == 0.0
        assert result.efficiency == 0.0
        assert result.severity == DebtSeverity.MINIMAL

    def test_zero_target_constructor(self):
        result = SleepDebtCalculator(0.0).calculate_cumulative_debt(
            [make_record(MONDAY, 6.0)], MONDAY, MONDAY
        )
        assert result.total_debt_hours == 0.0
        assert result.efficiency == 0.0

    @pytest.mark.parametrize("strategy", list(MissingDataStrategy))
    def test_higher_target_never_less_debt(self, calc, strategy):
        records = [
            make_record(MONDAY, 6.0),
            make_record(MONDAY + timedelta(days=2), 9.0),
            make_record(MONDAY + timedelta(days=7), 4.5),
            make_record(MONDAY + timedelta(days=8), 7.0),
        ]
        end = MONDAY + timedelta(days=13)
        totals = [
            calc.calculate_cumulative_debt(
                records, MONDAY, end, strategy, recommended_hours=target
            ).total_debt_hours
            for target in (0.0, 4.0, 6.0, 7.0, 7.5, 8.0, 9.0, 12.0)
        ]
        assert all(b >= a for a, b in zip(totals, totals[1:]))

    def test_to_dict(self, calc):
        result = calc.calculate_cumulative_debt([make_record(MONDAY, 6.0)], MONDAY, MONDAY)
        d = result.to_dict()
        assert d["period"] == {"start": MONDAY.isoformat(), "end": MONDAY.isoformat()}
        assert d["total_debt_hours"] == 2.0
        assert d["severity"] == "Minimal"
        assert d["daily_debt_hours"] == {MONDAY.isoformat(): 2.0}


class TestMissingStrategies:
    def test_assume_recommended(self, calc):
        assert calc.handle_missing_entry(MONDAY, [make_record(MONDAY, 3.0)],
                                         MissingDataStrategy.ASSUME_RECOMMENDED) == 0.0

    def test_conservative(self, calc):
        assert calc.handle_missing_entry(MONDAY, [make_record(MONDAY, 8.0)],
                                         MissingDataStrategy.CONSERVATIVE) == 8.0

    def test_use_average_without_data_is_full_debt(self, calc):
        assert calc.handle_missing_entry(MONDAY, [], MissingDataStrategy.USE_AVERAGE) == 8.0

    def test_use_average_floors_at_zero(self, calc):
        records = [make_record(MONDAY, 10.0)]
        assert calc.handle_missing_entry(MONDAY, records, MissingDataStrategy.USE_AVERAGE) == 0.0

    def test_weekly_pattern_uses_same_weekday(self, calc):
        records = [
            make_record(MONDAY - timedelta(days=7), 6.0),
            make_record(MONDAY - timedelta(days=14), 5.0),
            make_record(MONDAY - timedelta(days=1), 8.0),  # Sunday
        ]
        debt = calc.handle_missing_entry(MONDAY, records, MissingDataStrategy.USE_WEEKLY_PATTERN)
        assert debt == pytest.approx(2.5)

    def test_weekly_pattern_falls_back_to_average(self, calc):
        records = [make_record(MONDAY + timedelta(days=1), 6.0)]  # Tuesday only
        debt = calc.handle_missing_entry(MONDAY, records, MissingDataStrategy.USE_WEEKLY_PATTERN)
        assert debt == pytest.approx(2.0)

    def test_weekly_pattern_without_data_is_full_debt(self, calc):
        debt = calc.handle_missing_entry(MONDAY, [], MissingDataStrategy.USE_WEEKLY_PATTERN)
        assert debt == 8.0

    def test_interpolate_between_neighbours(self, calc):
        records = [make_record(MONDAY, 8.0), make_record(MONDAY + timedelta(days=2), 6.0)]
        debt = calc.handle_missing_entry(MONDAY + timedelta(days=1), records,
                                         MissingDataStrategy.INTERPOLATE)
        # 7h interpolated -> 1h debt
        assert debt == pytest.approx(1.0)

    def test_interpolate_uneven_gap(self, calc):
        records = [make_record(MONDAY, 8.0), make_record(MONDAY + timedelta(days=4), 4.0)]
        debt = calc.handle_missing_entry(MONDAY + timedelta(days=1), records,
                                         MissingDataStrategy.INTERPOLATE)
        assert debt == pytest.approx(1.0)

    def test_interpolate_one_side_only(self, calc):
        records = [make_record(MONDAY, 5.0)]
        debt = calc.handle_missing_entry(MONDAY + timedelta(days=3), records,
                                         MissingDataStrategy.INTERPOLATE)
        assert debt == pytest.approx(3.0)
        debt = calc.handle_missing_entry(MONDAY - timedelta(days=3), records,
                                         MissingDataStrategy.INTERPOLATE)
        assert debt == pytest.approx(3.0)

    def test_interpolate_without_neighbours_is_zero_debt(self, calc):
        assert calc.handle_missing_entry(MONDAY, [], MissingDataStrategy.INTERPOLATE) == 0.0

    def test_interpolation_scenario_in_period(self, calc):
        records = [make_record(MONDAY, 8.0), make_record(MONDAY + timedelta(days=2), 6.0)]
        result = calc.calculate_cumulative_debt(
            records, MONDAY, MONDAY + timedelta(days=2), MissingDataStrategy.INTERPOLATE
        )
        assert result.daily_debt_hours[MONDAY + timedelta(days=1)] == pytest.approx(1.0)
        assert result.total_debt_hours == pytest.approx(3.0)


class TestSeverity:
    @pytest.mark.parametrize("debt, expected", [
        (0.0, DebtSeverity.MINIMAL),
        (4.999, DebtSeverity.MINIMAL),
        (5.0, DebtSeverity.MODERATE),
        (14.999, DebtSeverity.MODERATE),
        (15.0, DebtSeverity.SIGNIFICANT),
        (29.999, DebtSeverity.SIGNIFICANT),
        (30.0, DebtSeverity.SEVERE),
        (100.0, DebtSeverity.SEVERE),
    ])
    def test_boundaries(self, debt, expected):
        assert DebtSeverity.from_debt(debt) == expected


class TestRecoveryTime:
    def test_zero_debt(self):
        assert SleepDebtCalculator.calculate_recovery_time(0.0) == 0

    def test_rounds_up(self):
        assert SleepDebtCalculator.calculate_recovery_time(7.2) == 8

    def test_custom_rate(self):
        assert SleepDebtCalculator.calculate_recovery_time(3.0, 0.5) == 6

    def test_non_positive_rate_rejected(self):
        with pytest.raises(InvalidParameterError):
            SleepDebtCalculator.calculate_recovery_time(3.0, 0.0)


class TestConveniencePeriods:
    def test_weekly_covers_eight_days(self, calc):
        today = date(2026, 3, 15)
        result = calc.get_weekly_debt([], today=today)
        assert result.period.start == date(2026, 3, 8)
        assert result.period.end == today
        assert len(result.daily_debt_hours) == 8

    def test_monthly_uses_calendar_month(self, calc):
        result = calc.get_monthly_debt([], today=date(2026, 3, 15))
        assert result.period.start == date(2026, 2, 15)

    def test_monthly_clamps_short_month(self, calc):
        result = calc.get_monthly_debt([], today=date(2026, 3, 31))
        assert result.period.start == date(2026, 2, 28)

    def test_months_before_crosses_year(self):
        assert _months_before(date(2026, 1, 10), 1) == date(2025, 12, 10)

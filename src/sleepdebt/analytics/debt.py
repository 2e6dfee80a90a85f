"""Nightly and cumulative sleep-debt calculation.

Debt for a night is the shortfall against the recommended hours, floored at
zero.  Over a period every calendar day is visited: days with a real record
use it directly, the rest are *missing days* whose debt is estimated by a
:class:`MissingDataStrategy`.
"""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Sequence

import structlog

from sleepdebt.analytics.features import mean_hours, same_weekday
from sleepdebt.analytics.records import (
    DateInterval,
    SleepRecord,
    as_day,
    format_hours,
    partition_valid,
    records_in,
)
from sleepdebt.errors import InvalidDateRangeError, InvalidParameterError

logger = structlog.get_logger()

DEFAULT_RECOMMENDED_HOURS = 8.0


class MissingDataStrategy(str, Enum):
    """How to estimate debt for a day with no real record."""

    ASSUME_RECOMMENDED = "assume_recommended"  # optimistic: target was met
    USE_AVERAGE = "use_average"
    USE_WEEKLY_PATTERN = "use_weekly_pattern"  # same-weekday average
    CONSERVATIVE = "conservative"  # pessimistic: no sleep at all
    INTERPOLATE = "interpolate"  # linear between neighbouring records


class DebtSeverity(str, Enum):
    MINIMAL = "Minimal"
    MODERATE = "Moderate"
    SIGNIFICANT = "Significant"
    SEVERE = "Severe"

    @classmethod
    def from_debt(cls, total_debt: float) -> DebtSeverity:
        if total_debt < 5:
            return cls.MINIMAL
        if total_debt < 15:
            return cls.MODERATE
        if total_debt < 30:
            return cls.SIGNIFICANT
        return cls.SEVERE


@dataclass(frozen=True)
class SleepDebtResult:
    """Outcome of one cumulative-debt calculation."""

    total_debt_hours: float
    average_debt_per_night_hours: float
    total_actual_sleep_hours: float
    total_recommended_sleep_hours: float
    missing_days: tuple[date, ...]
    daily_debt_hours: dict[date, float]
    period: DateInterval
    strategy: MissingDataStrategy = MissingDataStrategy.USE_WEEKLY_PATTERN
    rejected_record_ids: tuple[str, ...] = ()

    @property
    def efficiency(self) -> float:
        """Actual over recommended sleep, as a percentage."""
        if self.total_recommended_sleep_hours <= 0:
            return 0.0
        return self.total_actual_sleep_hours / self.total_recommended_sleep_hours * 100.0

    @property
    def severity(self) -> DebtSeverity:
        return DebtSeverity.from_debt(self.total_debt_hours)

    @property
    def available_days(self) -> int:
        return len(self.daily_debt_hours) - len(self.missing_days)

    @property
    def formatted_total_debt(self) -> str:
        return format_hours(self.total_debt_hours)

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": {"start": self.period.start.isoformat(), "end": self.period.end.isoformat()},
            "strategy": self.strategy.value,
            "total_debt_hours": round(self.total_debt_hours, 2),
            "average_debt_per_night_hours": round(self.average_debt_per_night_hours, 2),
            "total_actual_sleep_hours": round(self.total_actual_sleep_hours, 2),
            "total_recommended_sleep_hours": round(self.total_recommended_sleep_hours, 2),
            "efficiency_pct": round(self.efficiency, 1),
            "severity": self.severity.value,
            "missing_days": [d.isoformat() for d in self.missing_days],
            "daily_debt_hours": {
                d.isoformat(): round(v, 2) for d, v in self.daily_debt_hours.items()
            },
            "rejected_record_ids": list(self.rejected_record_ids),
        }

    def __repr__(self) -> str:
        return (
            f"SleepDebtResult(debt={self.total_debt_hours:.1f}h, "
            f"severity={self.severity.value}, "
            f"missing={len(self.missing_days)}/{len(self.daily_debt_hours)}, "
            f"eff={self.efficiency:.0f}%)"
        )


def _months_before(day: date, months: int) -> date:
    """Same day-of-month ``months`` earlier, clamped to the month's length."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


class SleepDebtCalculator:
    """Computes nightly and cumulative debt against a recommended-hours target."""

    def __init__(self, recommended_hours: float = DEFAULT_RECOMMENDED_HOURS) -> None:
        _check_recommended(recommended_hours)
        self.recommended_hours = recommended_hours
        self.logger = logger.bind(component="debt_calculator")

    def calculate_nightly_debt(
        self,
        record: SleepRecord,
        recommended_hours: float | None = None,
    ) -> float:
        target = self._target(recommended_hours)
        return max(0.0, target - record.duration_hours)

    def calculate_cumulative_debt(
        self,
        records: Sequence[SleepRecord],
        start_date: date | datetime,
        end_date: date | datetime,
        strategy: MissingDataStrategy = MissingDataStrategy.USE_WEEKLY_PATTERN,
        recommended_hours: float | None = None,
    ) -> SleepDebtResult:
        """Debt for every day from ``start_date`` to ``end_date`` inclusive.

        Args:
            records: Snapshot of sleep records; degenerate ones are skipped.
            start_date: First day of the period.
            end_date: Last day of the period.
            strategy: Estimation policy for days without a real record.
            recommended_hours: Override of the calculator's target.

        Returns:
            SleepDebtResult covering exactly the days of the period.

        Raises:
            InvalidDateRangeError: ``start_date`` falls after ``end_date``.
        """
        start, end = as_day(start_date), as_day(end_date)
        if start > end:
            raise InvalidDateRangeError(start, end)
        period = DateInterval(start, end)
        target = self._target(recommended_hours)

        valid, rejected = partition_valid(records)
        available = [r for r in records_in(valid, period) if not r.is_planned]

        # First record per day wins; duplicates are the caller's concern.
        by_day: dict[date, SleepRecord] = {}
        for rec in available:
            by_day.setdefault(rec.day, rec)

        total_debt = 0.0
        total_actual = 0.0
        total_recommended = 0.0
        missing: list[date] = []
        daily: dict[date, float] = {}

        for day in period:
            total_recommended += target
            rec = by_day.get(day)
            if rec is not None:
                debt = max(0.0, target - rec.duration_hours)
                total_actual += rec.duration_hours
            else:
                missing.append(day)
                debt = self.handle_missing_entry(day, available, strategy, target)
            total_debt += debt
            daily[day] = debt

        self.logger.debug(
            "Cumulative debt calculated",
            period=str(period),
            strategy=strategy.value,
            total_debt=round(total_debt, 2),
            missing=len(missing),
            rejected=len(rejected),
        )

        return SleepDebtResult(
            total_debt_hours=total_debt,
            average_debt_per_night_hours=total_debt / period.day_count,
            total_actual_sleep_hours=total_actual,
            total_recommended_sleep_hours=total_recommended,
            missing_days=tuple(missing),
            daily_debt_hours=daily,
            period=period,
            strategy=strategy,
            rejected_record_ids=tuple(r.id for r in rejected),
        )

    # ------------------------------------------------------------------
    # Missing-day estimation
    # ------------------------------------------------------------------

    def handle_missing_entry(
        self,
        day: date | datetime,
        available_records: Sequence[SleepRecord],
        strategy: MissingDataStrategy,
        recommended_hours: float | None = None,
    ) -> float:
        """Estimated debt for a day with no real record."""
        target = self._target(recommended_hours)
        day = as_day(day)

        if strategy == MissingDataStrategy.ASSUME_RECOMMENDED:
            return 0.0

        if strategy == MissingDataStrategy.USE_AVERAGE:
            avg = mean_hours(available_records)
            if avg is None:
                return target
            return max(0.0, target - avg)

        if strategy == MissingDataStrategy.USE_WEEKLY_PATTERN:
            same_day = same_weekday(available_records, day)
            if not same_day:
                return self.handle_missing_entry(
                    day, available_records, MissingDataStrategy.USE_AVERAGE, target
                )
            return max(0.0, target - mean_hours(same_day))

        if strategy == MissingDataStrategy.CONSERVATIVE:
            return target

        if strategy == MissingDataStrategy.INTERPOLATE:
            return max(0.0, target - self._interpolate(day, available_records, target))

        raise InvalidParameterError("strategy", strategy, "a MissingDataStrategy")

    @staticmethod
    def _interpolate(
        day: date,
        available_records: Sequence[SleepRecord],
        fallback_hours: float,
    ) -> float:
        """Linearly interpolated duration from the nearest records either side.

        With one neighbour its duration is used as-is; with none the
        recommended hours are assumed, which yields zero debt.
        """
        before: SleepRecord | None = None
        after: SleepRecord | None = None
        for rec in sorted(available_records, key=lambda r: r.day):
            if rec.day < day:
                before = rec
            elif rec.day > day:
                after = rec
                break

        if before is not None and after is not None:
            span = (after.day - before.day).days
            ratio = (day - before.day).days / span
            return before.duration_hours + (after.duration_hours - before.duration_hours) * ratio
        if before is not None:
            return before.duration_hours
        if after is not None:
            return after.duration_hours
        return fallback_hours

    # ------------------------------------------------------------------
    # Recovery and convenience periods
    # ------------------------------------------------------------------

    @staticmethod
    def calculate_recovery_time(current_debt: float, daily_recovery_rate: float = 1.0) -> int:
        """Whole days needed to repay ``current_debt`` at ``daily_recovery_rate`` h/day."""
        if daily_recovery_rate <= 0:
            raise InvalidParameterError("daily_recovery_rate", daily_recovery_rate, "> 0")
        if current_debt <= 0:
            return 0
        return int(math.ceil(current_debt / daily_recovery_rate))

    def get_weekly_debt(
        self,
        records: Sequence[SleepRecord],
        today: date | None = None,
        strategy: MissingDataStrategy = MissingDataStrategy.USE_WEEKLY_PATTERN,
    ) -> SleepDebtResult:
        """Debt over [today - 7 days, today]."""
        period = DateInterval.ending(today or date.today(), 7)
        return self.calculate_cumulative_debt(records, period.start, period.end, strategy)

    def get_monthly_debt(
        self,
        records: Sequence[SleepRecord],
        today: date | None = None,
        strategy: MissingDataStrategy = MissingDataStrategy.USE_WEEKLY_PATTERN,
    ) -> SleepDebtResult:
        """Debt over [today - 1 month, today]."""
        end = today or date.today()
        return self.calculate_cumulative_debt(records, _months_before(end, 1), end, strategy)

    def _target(self, recommended_hours: float | None) -> float:
        if recommended_hours is None:
            return self.recommended_hours
        _check_recommended(recommended_hours)
        return recommended_hours


def _check_recommended(hours: float) -> None:
    if hours < 0:
        raise InvalidParameterError("recommended_hours", hours, ">= 0")

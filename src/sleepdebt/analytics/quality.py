"""Data-quality assessment of a record set over a period.

Four signals describe how much the available data can be trusted:

  completeness -- share of days in the period with at least one real record
  consistency  -- 1 - std(duration) / 4h, floored at 0
  recency      -- real records in the trailing 7 days / 7 (not clamped)
  weekend      -- whether weekend and weekday means differ by > 0.5h

Planned records (synthesised from the usual schedule) and degenerate
records never count as data here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Sequence

from sleepdebt.analytics.features import mean_hours, population_std_hours, weekend_split
from sleepdebt.analytics.records import DateInterval, SleepRecord, real_records, records_in

# Standard deviation (hours) at which consistency bottoms out.
MAX_STD_HOURS = 4.0
RECENCY_WINDOW_DAYS = 7
WEEKEND_DIFF_HOURS = 0.5

# (lower bound, grade), checked top-down
GRADE_BOUNDS = [
    (0.9, "A"),
    (0.8, "B"),
    (0.7, "C"),
    (0.6, "D"),
]


@dataclass(frozen=True)
class DataQuality:
    """Quality signals for one (records, period) pair."""

    completeness: float  # 0-1
    consistency: float  # 0-1
    recency: float  # 0-1 normally, may exceed 1 with several records per day
    has_weekend_pattern: bool
    total_days: int
    available_days: int

    @property
    def overall_score(self) -> float:
        return (self.completeness + self.consistency + self.recency) / 3.0

    @property
    def grade(self) -> str:
        score = self.overall_score
        for bound, letter in GRADE_BOUNDS:
            if score >= bound:
                return letter
        return "F"

    def to_dict(self) -> dict[str, Any]:
        return {
            "completeness": round(self.completeness, 3),
            "consistency": round(self.consistency, 3),
            "recency": round(self.recency, 3),
            "has_weekend_pattern": self.has_weekend_pattern,
            "total_days": self.total_days,
            "available_days": self.available_days,
            "overall_score": round(self.overall_score, 3),
            "grade": self.grade,
        }

    def __repr__(self) -> str:
        return (
            f"DataQuality(grade={self.grade}, "
            f"completeness={self.completeness:.0%}, "
            f"consistency={self.consistency:.2f}, "
            f"recency={self.recency:.2f})"
        )


# ---------------------------------------------------------------------------
# Individual signals
# ---------------------------------------------------------------------------


def assess_consistency(records: Sequence[SleepRecord]) -> float:
    """Regularity score from the population std of durations.

    Needs at least two records; returns 0.0 otherwise.
    """
    std = population_std_hours(records)
    if std is None:
        return 0.0
    return max(0.0, 1.0 - std / MAX_STD_HOURS)


def assess_recency(records: Sequence[SleepRecord], period: DateInterval) -> float:
    """Records dated within the 7 days ending at ``period.end``, over 7."""
    window = DateInterval(period.end - timedelta(days=RECENCY_WINDOW_DAYS - 1), period.end)
    recent = records_in(records, window)
    return len(recent) / float(RECENCY_WINDOW_DAYS)


def has_weekend_pattern(records: Sequence[SleepRecord]) -> bool:
    """True when weekend and weekday mean durations differ by more than 0.5h."""
    weekday, weekend = weekend_split(records)
    if not weekday or not weekend:
        return False
    return abs(mean_hours(weekend) - mean_hours(weekday)) > WEEKEND_DIFF_HOURS


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def assess_data_quality(records: Sequence[SleepRecord], period: DateInterval) -> DataQuality:
    """Assess completeness, consistency, recency and weekend pattern.

    Args:
        records: Snapshot of sleep records.  Planned and degenerate
            records are ignored.
        period: Inclusive day range being evaluated.

    Returns:
        A DataQuality value.
    """
    real = real_records(records)
    in_period = records_in(real, period)

    total_days = max(1, period.day_count)
    available_days = len({r.day for r in in_period})

    return DataQuality(
        completeness=available_days / total_days,
        consistency=assess_consistency(in_period),
        recency=assess_recency(real, period),
        has_weekend_pattern=has_weekend_pattern(real),
        total_days=total_days,
        available_days=available_days,
    )

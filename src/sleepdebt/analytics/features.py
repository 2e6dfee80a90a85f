"""Duration statistics shared by the calculator and the quality assessor.

Thin numpy wrappers over the ``duration_hours`` of a record list, plus the
weekday/weekend split used for pattern detection.
"""

from __future__ import annotations

from datetime import date
from typing import Sequence

import numpy as np

from sleepdebt.analytics.records import SleepRecord

# date.weekday(): Monday=0 .. Sunday=6
WEEKEND_DAYS = (5, 6)


def durations(records: Sequence[SleepRecord]) -> np.ndarray:
    """Durations in hours as a float64 array."""
    return np.asarray([r.duration_hours for r in records], dtype=np.float64)


def mean_hours(records: Sequence[SleepRecord]) -> float | None:
    """Mean duration, or None for an empty list."""
    if len(records) == 0:
        return None
    return float(np.mean(durations(records)))


def population_std_hours(records: Sequence[SleepRecord]) -> float | None:
    """Population standard deviation (ddof=0) of durations.

    Returns None if fewer than 2 records are provided.
    """
    if len(records) < 2:
        return None
    return float(np.std(durations(records), ddof=0))


def is_weekend(day: date) -> bool:
    return day.weekday() in WEEKEND_DAYS


def same_weekday(records: Sequence[SleepRecord], day: date) -> list[SleepRecord]:
    """Records attributed to the same day of the week as ``day``."""
    weekday = day.weekday()
    return [r for r in records if r.day.weekday() == weekday]


def weekend_split(
    records: Sequence[SleepRecord],
) -> tuple[list[SleepRecord], list[SleepRecord]]:
    """Split records into (weekday, weekend) by the calendar day of ``date``."""
    weekday: list[SleepRecord] = []
    weekend: list[SleepRecord] = []
    for rec in records:
        (weekend if is_weekend(rec.day) else weekday).append(rec)
    return weekday, weekend

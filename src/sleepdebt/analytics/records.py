"""Core value types: sleep records, quality ratings and day-granular intervals.

All types here are frozen.  Callers that "edit" a record (quality rating,
description, tags) get a new record back from :meth:`SleepRecord.with_metadata`;
the calculators only ever read them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Iterator, Sequence

import structlog

from sleepdebt.errors import DegenerateRecordError, InvalidDateRangeError

logger = structlog.get_logger()


class SleepQuality(str, Enum):
    """Five-point subjective sleep rating."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    TERRIBLE = "Terrible"

    @property
    def score(self) -> int:
        """Numeric value used for averaging (Terrible=1 .. Excellent=5)."""
        return _QUALITY_SCORES[self]


_QUALITY_SCORES = {
    SleepQuality.EXCELLENT: 5,
    SleepQuality.GOOD: 4,
    SleepQuality.FAIR: 3,
    SleepQuality.POOR: 2,
    SleepQuality.TERRIBLE: 1,
}


def as_day(value: date | datetime) -> date:
    """Truncate a timestamp to its calendar day (dates pass through)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def format_hours(hours: float) -> str:
    """Render fractional hours as ``"7h 30m"``."""
    whole = int(hours)
    minutes = int((hours - whole) * 60)
    return f"{whole}h {minutes}m"


@dataclass(frozen=True)
class SleepRecord:
    """One night's (or nap's) sleep entry.

    ``duration_hours`` defaults to the wall-clock span between ``bedtime`` and
    ``wake_time``.  Reconstructed sessions pass the asleep-only total instead.
    """

    id: str
    date: datetime | date  # the day this sleep is attributed to
    bedtime: datetime
    wake_time: datetime
    duration_hours: float | None = None
    quality: SleepQuality | None = None
    description: str | None = None
    tags: tuple[str, ...] = ()
    is_planned: bool = False  # synthetic, derived from the usual schedule
    saved: bool = True

    def __post_init__(self) -> None:
        if self.duration_hours is None:
            span = (self.wake_time - self.bedtime).total_seconds() / 3600.0
            object.__setattr__(self, "duration_hours", span)
        if not isinstance(self.tags, tuple):
            object.__setattr__(self, "tags", tuple(self.tags))

    @property
    def day(self) -> date:
        return as_day(self.date)

    @property
    def is_valid(self) -> bool:
        """False when wake time does not follow bedtime or duration is negative."""
        return self.wake_time > self.bedtime and self.duration_hours >= 0

    def check(self) -> SleepRecord:
        """Return self, or raise DegenerateRecordError if not valid."""
        if not self.is_valid:
            raise DegenerateRecordError(self.id, self.bedtime, self.wake_time)
        return self

    @property
    def formatted_duration(self) -> str:
        return format_hours(self.duration_hours)

    @property
    def has_metadata(self) -> bool:
        return self.quality is not None or bool(self.description) or bool(self.tags)

    def with_metadata(
        self,
        quality: SleepQuality | None = None,
        description: str | None = None,
        tags: Iterable[str] = (),
    ) -> SleepRecord:
        """Return a copy carrying user-entered metadata."""
        return replace(self, quality=quality, description=description, tags=tuple(tags))

    def __repr__(self) -> str:
        kind = "planned" if self.is_planned else "real"
        return (
            f"SleepRecord({self.id!r}, {self.day.isoformat()}, "
            f"{self.duration_hours:.2f}h, {kind})"
        )


@dataclass(frozen=True)
class DateInterval:
    """Closed ``[start, end]`` range of calendar days.

    Both ends are inclusive.  Timestamps are truncated to their day, so two
    intervals built from different times on the same days compare equal and
    hash the same.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_day(self.start))
        object.__setattr__(self, "end", as_day(self.end))
        if self.start > self.end:
            raise InvalidDateRangeError(self.start, self.end)

    @classmethod
    def ending(cls, end: date | datetime, days: int) -> DateInterval:
        """Interval from ``days`` days before ``end`` up to ``end``."""
        end_day = as_day(end)
        return cls(end_day - timedelta(days=days), end_day)

    @property
    def day_count(self) -> int:
        return (self.end - self.start).days + 1

    def days(self) -> list[date]:
        """Every calendar day in the interval, oldest first."""
        return list(iter(self))

    def __iter__(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, date):
            return False
        return self.start <= as_day(value) <= self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


# ---------------------------------------------------------------------------
# Record filtering
# ---------------------------------------------------------------------------


def partition_valid(
    records: Sequence[SleepRecord],
) -> tuple[list[SleepRecord], list[SleepRecord]]:
    """Split records into (valid, rejected), logging each rejected record."""
    valid: list[SleepRecord] = []
    rejected: list[SleepRecord] = []
    for rec in records:
        if rec.is_valid:
            valid.append(rec)
        else:
            rejected.append(rec)
            logger.warning(
                "Skipping degenerate sleep record",
                record_id=rec.id,
                bedtime=rec.bedtime.isoformat(),
                wake_time=rec.wake_time.isoformat(),
                duration_hours=rec.duration_hours,
            )
    return valid, rejected


def real_records(records: Iterable[SleepRecord]) -> list[SleepRecord]:
    """Valid, non-planned records only."""
    return [r for r in records if not r.is_planned and r.is_valid]


def records_in(records: Iterable[SleepRecord], period: DateInterval) -> list[SleepRecord]:
    """Records whose attributed day falls inside ``period``."""
    return [r for r in records if r.day in period]

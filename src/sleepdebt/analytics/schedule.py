"""Usual-schedule helpers: planned records, record merging and overlap checks.

These sit in front of the calculators.  Planned records generated here
carry ``is_planned=True`` so the debt and quality code can tell them apart
from logged sleep.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Sequence

import structlog

from sleepdebt.analytics.records import SleepRecord
from sleepdebt.errors import DegenerateRecordError, OverlappingRecordError

logger = structlog.get_logger()

FILL_DAYS = 30
DUPLICATE_TOLERANCE = timedelta(seconds=60)


@dataclass(frozen=True)
class UserSchedule:
    """The user's habitual bedtime and wake time."""

    usual_bedtime: time
    usual_wake_time: time

    def night_of(self, day: date, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
        """Bedtime/wake-time pair for ``day``; wake rolls over midnight if needed."""
        bedtime = datetime.combine(day, self.usual_bedtime, tzinfo=tz)
        wake_time = datetime.combine(day, self.usual_wake_time, tzinfo=tz)
        if wake_time <= bedtime:
            wake_time += timedelta(days=1)
        return bedtime, wake_time


def fill_missing_days_with_schedule(
    records: Sequence[SleepRecord],
    schedule: UserSchedule,
    today: date | None = None,
    days: int = FILL_DAYS,
) -> list[SleepRecord]:
    """Add a planned record for every day in the last ``days`` days without one.

    Args:
        records: Existing records (real or planned).
        schedule: Usual bedtime / wake time.
        today: Most recent day to cover (default: today).
        days: How many days back from ``today`` to cover, inclusive of today.

    Planned times take the timezone of the first timezone-aware record, if any.

    Returns:
        Existing plus planned records, most recent first.
    """
    end = today or date.today()
    existing = {r.day for r in records}
    result = list(records)
    tz = next((r.bedtime.tzinfo for r in records if r.bedtime.tzinfo is not None), None)

    for offset in range(days):
        day = end - timedelta(days=offset)
        if day in existing:
            continue
        bedtime, wake_time = schedule.night_of(day, tz)
        result.append(SleepRecord(
            id=f"planned-{day.isoformat()}",
            date=day,
            bedtime=bedtime,
            wake_time=wake_time,
            is_planned=True,
            saved=False,
        ))

    result.sort(key=lambda r: _sort_key(r.date), reverse=True)
    return result


def _sort_key(value: date | datetime) -> datetime:
    """Wall-clock ordering key; comparable across naive and aware values."""
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime.combine(value, time.min)


def _comparable(*values: datetime) -> tuple[datetime, ...]:
    """Drop tzinfo from all values when naive and aware ones are mixed."""
    if len({v.tzinfo is None for v in values}) > 1:
        return tuple(v.replace(tzinfo=None) for v in values)
    return values


def is_duplicate(a: SleepRecord, b: SleepRecord, tolerance: timedelta = DUPLICATE_TOLERANCE) -> bool:
    """Same session: bedtime and wake time each within ``tolerance``."""
    a_bed, a_wake, b_bed, b_wake = _comparable(a.bedtime, a.wake_time, b.bedtime, b.wake_time)
    return abs(a_bed - b_bed) < tolerance and abs(a_wake - b_wake) < tolerance


def merge_records(
    existing: Sequence[SleepRecord],
    incoming: Iterable[SleepRecord],
    tolerance: timedelta = DUPLICATE_TOLERANCE,
) -> list[SleepRecord]:
    """Add ``incoming`` records that are new by id and by time, newest first."""
    merged = list(existing)
    known_ids = {r.id for r in merged}

    for rec in incoming:
        if rec.id in known_ids:
            continue
        if any(is_duplicate(rec, other, tolerance) for other in merged):
            logger.debug("Skipping duplicate sleep record", record_id=rec.id,
                         bedtime=rec.bedtime.isoformat())
            continue
        merged.append(rec)
        known_ids.add(rec.id)

    merged.sort(key=lambda r: _sort_key(r.date), reverse=True)
    return merged


def has_time_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """Half-open ranges overlap when each starts before the other ends."""
    start1, end1, start2, end2 = _comparable(start1, end1, start2, end2)
    return start1 < end2 and start2 < end1


def validate_no_overlap(
    records: Iterable[SleepRecord],
    bedtime: datetime,
    wake_time: datetime,
) -> list[SleepRecord]:
    """Check a new [bedtime, wake_time) against existing records.

    Returns:
        Overlapping planned records, which the caller should replace.

    Raises:
        DegenerateRecordError: ``wake_time`` is not after ``bedtime``.
        OverlappingRecordError: A real record overlaps the new times.
    """
    if wake_time <= bedtime:
        raise DegenerateRecordError("new", bedtime, wake_time)
    displaced: list[SleepRecord] = []
    for rec in records:
        if not has_time_overlap(bedtime, wake_time, rec.bedtime, rec.wake_time):
            continue
        if rec.is_planned:
            displaced.append(rec)
        else:
            raise OverlappingRecordError(rec.id)
    return displaced


def sleep_duration_label(bedtime: time, wake_time: time) -> str:
    """Duration between two times of day, e.g. ``"8h"`` or ``"7h 30m"``.

    A wake time at or before bedtime is taken to be on the next day.
    """
    bed_min = bedtime.hour * 60 + bedtime.minute
    wake_min = wake_time.hour * 60 + wake_time.minute
    duration = wake_min - bed_min
    if duration <= 0:
        duration += 24 * 60
    hours, minutes = divmod(duration, 60)
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"

"""Sleep session reconstruction from raw stage-tagged interval samples.

A data source hands over a flat, unordered stream of ``[start, end)``
intervals, each tagged with a stage.  Intervals separated by no more than
:data:`SESSION_GAP` are merged into one session.  Each session becomes one
:class:`SleepRecord` whose bounds span every in-bed and asleep sample but
whose duration counts the asleep samples only.

Time in bed without a confirmed asleep stage is not sleep, so a session made
only of in-bed samples is dropped unless ``keep_in_bed_only`` is set, in
which case it surfaces as a zero-duration record.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable

import structlog

from sleepdebt.analytics.records import SleepRecord

logger = structlog.get_logger()

SESSION_GAP = timedelta(hours=2)


class SampleStage(str, Enum):
    """Stage tag carried by a raw interval sample."""

    IN_BED = "in_bed"
    ASLEEP = "asleep"
    ASLEEP_UNSPECIFIED = "asleep_unspecified"
    ASLEEP_CORE = "asleep_core"
    ASLEEP_DEEP = "asleep_deep"
    ASLEEP_REM = "asleep_rem"
    AWAKE = "awake"

    @property
    def is_asleep(self) -> bool:
        """True for the generic asleep tag and every asleep sub-stage."""
        return self in _ASLEEP_STAGES


_ASLEEP_STAGES = frozenset({
    SampleStage.ASLEEP,
    SampleStage.ASLEEP_UNSPECIFIED,
    SampleStage.ASLEEP_CORE,
    SampleStage.ASLEEP_DEEP,
    SampleStage.ASLEEP_REM,
})


@dataclass(frozen=True)
class SleepSample:
    """A single stage-tagged interval from the data source."""

    start: datetime
    end: datetime
    stage: SampleStage

    @property
    def hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600.0


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


def group_sessions(
    samples: Iterable[SleepSample],
    max_gap: timedelta = SESSION_GAP,
) -> list[list[SleepSample]]:
    """Sort samples by start and split wherever the gap exceeds ``max_gap``.

    The gap is measured from the previous sample's end to the current
    sample's start.
    """
    ordered = sorted(samples, key=lambda s: s.start)
    sessions: list[list[SleepSample]] = []
    current: list[SleepSample] = []
    last_end: datetime | None = None

    for sample in ordered:
        if current and last_end is not None and sample.start - last_end > max_gap:
            sessions.append(current)
            current = [sample]
        else:
            current.append(sample)
        last_end = sample.end

    if current:
        sessions.append(current)
    return sessions


def _session_record(
    index: int,
    session: list[SleepSample],
    keep_in_bed_only: bool,
) -> SleepRecord | None:
    in_bed = [s for s in session if s.stage == SampleStage.IN_BED]
    asleep = [s for s in session if s.stage.is_asleep]

    if not in_bed and not asleep:
        return None
    if not asleep and not keep_in_bed_only:
        logger.debug(
            "Dropping in-bed-only session",
            start=session[0].start.isoformat(),
            samples=len(in_bed),
        )
        return None

    tracked = in_bed + asleep
    earliest = min(s.start for s in tracked)
    latest = max(s.end for s in tracked)
    asleep_hours = sum(s.hours for s in asleep)

    return SleepRecord(
        id=f"{earliest.timestamp()}-{index}",
        date=earliest,
        bedtime=earliest,
        wake_time=latest,
        duration_hours=asleep_hours,
        is_planned=False,
    )


def _wall_clock_if_mixed(samples: list[SleepSample]) -> list[SleepSample]:
    aware = {t.tzinfo is not None for s in samples for t in (s.start, s.end)}
    if len(aware) < 2:
        return samples
    return [
        SleepSample(s.start.replace(tzinfo=None), s.end.replace(tzinfo=None), s.stage)
        for s in samples
    ]


def reconstruct_sessions(
    samples: Iterable[SleepSample],
    max_gap: timedelta = SESSION_GAP,
    keep_in_bed_only: bool = False,
) -> list[SleepRecord]:
    """Turn raw interval samples into one sleep record per session.

    Args:
        samples: Unordered stage-tagged intervals.
        max_gap: Largest end-to-start gap that still joins two samples.
        keep_in_bed_only: Emit zero-duration records for sessions that have
            in-bed samples but no asleep samples instead of dropping them.

    Naive and timezone-aware samples in one stream are compared by wall clock.

    Returns:
        Sleep records, most recent first.
    """
    valid: list[SleepSample] = []
    for s in _wall_clock_if_mixed(list(samples)):
        if s.end <= s.start:
            logger.warning(
                "Skipping degenerate sample",
                start=s.start.isoformat(),
                end=s.end.isoformat(),
                stage=s.stage.value,
            )
            continue
        valid.append(s)

    records: list[SleepRecord] = []
    for index, session in enumerate(group_sessions(valid, max_gap)):
        record = _session_record(index, session, keep_in_bed_only)
        if record is not None:
            records.append(record)

    records.sort(key=lambda r: r.date, reverse=True)
    return records

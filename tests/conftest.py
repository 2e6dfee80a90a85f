"""Shared fixtures and helpers for the sleepdebt test suite."""

from __future__ import annotations

import json
from datetime import date, datetime, time, timedelta
from pathlib import Path

import pytest
import structlog

from sleepdebt.analytics.records import SleepRecord
from sleepdebt.analytics.sessions import SampleStage, SleepSample

# A Monday; MONDAY + 5 is Saturday.
MONDAY = date(2026, 3, 2)


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any logging configuration a CLI test installed."""
    yield
    structlog.reset_defaults()


# ---------------------------------------------------------------------------
# Record-building helpers
# ---------------------------------------------------------------------------


def make_record(
    day: date,
    hours: float,
    bedtime: time = time(23, 0),
    record_id: str | None = None,
    is_planned: bool = False,
    **kwargs,
) -> SleepRecord:
    """Build a record attributed to ``day`` lasting ``hours`` from ``bedtime``."""
    start = datetime.combine(day, bedtime)
    return SleepRecord(
        id=record_id or f"r-{day.isoformat()}",
        date=day,
        bedtime=start,
        wake_time=start + timedelta(hours=hours),
        is_planned=is_planned,
        **kwargs,
    )


def make_degenerate(day: date, record_id: str = "bad") -> SleepRecord:
    """Record whose wake time equals its bedtime."""
    start = datetime.combine(day, time(23, 0))
    return SleepRecord(id=record_id, date=day, bedtime=start, wake_time=start)


def nightly(start: date, hours: list[float]) -> list[SleepRecord]:
    """One record per consecutive day from ``start``."""
    return [make_record(start + timedelta(days=i), h) for i, h in enumerate(hours)]


# ---------------------------------------------------------------------------
# Sample-building helpers
# ---------------------------------------------------------------------------


def make_sample(
    start: datetime,
    hours: float,
    stage: SampleStage = SampleStage.ASLEEP_CORE,
) -> SleepSample:
    return SleepSample(start=start, end=start + timedelta(hours=hours), stage=stage)


@pytest.fixture
def overnight_samples() -> list[SleepSample]:
    """In bed 22:00-06:00 with core 23:00-03:00 and REM 03:00-05:00."""
    night = datetime(2026, 3, 1, 22, 0)
    return [
        make_sample(night, 8.0, SampleStage.IN_BED),
        make_sample(night + timedelta(hours=1), 4.0, SampleStage.ASLEEP_CORE),
        make_sample(night + timedelta(hours=5), 2.0, SampleStage.ASLEEP_REM),
    ]


# ---------------------------------------------------------------------------
# JSONL file helpers
# ---------------------------------------------------------------------------


def write_jsonl(path: Path, entries: list) -> Path:
    """Write a list of dicts (or raw strings) as JSONL to the given path."""
    with open(path, "w") as f:
        for entry in entries:
            line = entry if isinstance(entry, str) else json.dumps(entry)
            f.write(line + "\n")
    return path


def record_entry(day: date, hours: float, record_id: str | None = None, **extra) -> dict:
    """JSONL entry for a record starting at 23:00 on ``day``."""
    start = datetime.combine(day, time(23, 0))
    entry = {
        "id": record_id or f"r-{day.isoformat()}",
        "date": day.isoformat(),
        "bedtime": start.isoformat(),
        "wake_time": (start + timedelta(hours=hours)).isoformat(),
    }
    entry.update(extra)
    return entry


def sample_entry(start: datetime, hours: float, stage: str) -> dict:
    return {
        "start": start.isoformat(),
        "end": (start + timedelta(hours=hours)).isoformat(),
        "stage": stage,
    }

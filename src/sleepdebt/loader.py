"""Load raw samples and sleep records from JSONL files.

Sample lines::

    {"start": "2026-03-01T22:00:00", "end": "2026-03-01T23:00:00", "stage": "in_bed"}

Record lines::

    {"id": "a1", "bedtime": "2026-03-01T23:00:00", "wake_time": "2026-03-02T07:00:00",
     "date": "2026-03-01", "quality": "Good", "is_planned": false}

``date`` defaults to the bedtime and ``duration_hours`` to the wall-clock
span.  Stage tags may be snake_case (``asleep_core``) or camelCase
(``asleepCore``).
"""

from __future__ import annotations

import json
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Iterable, TypeVar

import structlog

from sleepdebt.analytics.records import SleepQuality, SleepRecord
from sleepdebt.analytics.sessions import SampleStage, SleepSample
from sleepdebt.errors import MalformedInputError

logger = structlog.get_logger()

T = TypeVar("T")

_CAMEL = re.compile(r"(?<=[a-z])(?=[A-Z])")


def parse_stage(value: str) -> SampleStage:
    """Map a stage tag (snake or camel case) to a SampleStage."""
    key = _CAMEL.sub("_", value.strip()).lower().replace("-", "_")
    try:
        return SampleStage(key)
    except ValueError:
        raise MalformedInputError(f"unknown stage {value!r}") from None


def _timestamp(entry: dict[str, Any], key: str) -> datetime:
    if key not in entry:
        raise MalformedInputError(f"missing field {key!r}")
    try:
        return datetime.fromisoformat(entry[key])
    except (TypeError, ValueError):
        raise MalformedInputError(f"bad timestamp in {key!r}: {entry[key]!r}") from None


def _check_same_awareness(start: datetime, end: datetime) -> None:
    if (start.tzinfo is None) != (end.tzinfo is None):
        raise MalformedInputError("cannot mix timezone-aware and naive timestamps")


def sample_from_dict(entry: dict[str, Any]) -> SleepSample:
    if "stage" not in entry:
        raise MalformedInputError("missing field 'stage'")
    start = _timestamp(entry, "start")
    end = _timestamp(entry, "end")
    _check_same_awareness(start, end)
    return SleepSample(start=start, end=end, stage=parse_stage(str(entry["stage"])))


def record_from_dict(entry: dict[str, Any]) -> SleepRecord:
    bedtime = _timestamp(entry, "bedtime")
    wake_time = _timestamp(entry, "wake_time")
    _check_same_awareness(bedtime, wake_time)

    raw_date = entry.get("date")
    if raw_date is None:
        day: date | datetime = bedtime
    else:
        try:
            day = datetime.fromisoformat(raw_date)
        except (TypeError, ValueError):
            raise MalformedInputError(f"bad date {raw_date!r}") from None

    quality = entry.get("quality")
    if quality is not None:
        try:
            quality = SleepQuality(quality)
        except ValueError:
            raise MalformedInputError(f"unknown quality {quality!r}") from None

    duration = entry.get("duration_hours")
    if duration is not None:
        try:
            duration = float(duration)
        except (TypeError, ValueError):
            raise MalformedInputError(f"bad duration_hours {duration!r}") from None

    tags = entry.get("tags") or []
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise MalformedInputError(f"tags must be a list of strings, got {tags!r}")

    is_planned = entry.get("is_planned", False)
    if not isinstance(is_planned, bool):
        raise MalformedInputError(f"is_planned must be true or false, got {is_planned!r}")

    try:
        return SleepRecord(
            id=str(entry.get("id") or f"{bedtime.timestamp()}"),
            date=day,
            bedtime=bedtime,
            wake_time=wake_time,
            duration_hours=duration,
            quality=quality,
            description=entry.get("description"),
            tags=tuple(tags),
            is_planned=is_planned,
        )
    except TypeError as e:
        raise MalformedInputError(f"inconsistent record fields: {e}") from None


def record_to_dict(record: SleepRecord) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": record.id,
        "date": record.date.isoformat(),
        "bedtime": record.bedtime.isoformat(),
        "wake_time": record.wake_time.isoformat(),
        "duration_hours": round(record.duration_hours, 4),
        "is_planned": record.is_planned,
    }
    if record.quality is not None:
        d["quality"] = record.quality.value
    if record.description:
        d["description"] = record.description
    if record.tags:
        d["tags"] = list(record.tags)
    return d


def _read_jsonl(
    path: str | Path,
    convert: Callable[[dict[str, Any]], T],
    strict: bool,
) -> list[T]:
    items: list[T] = []
    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
                if not isinstance(entry, dict):
                    raise MalformedInputError("expected a JSON object", line_num)
                items.append(convert(entry))
            except json.JSONDecodeError as e:
                if strict:
                    raise MalformedInputError(f"invalid JSON: {e.msg}", line_num) from e
                logger.warning("Skipping invalid JSON line", path=str(path), line=line_num)
            except MalformedInputError as e:
                if strict:
                    raise MalformedInputError(e.reason, line_num) from e
                logger.warning("Skipping malformed line", path=str(path), line=line_num,
                               reason=e.reason)
    return items


def load_samples(path: str | Path, strict: bool = False) -> list[SleepSample]:
    """Read stage-tagged samples from a JSONL file.

    Malformed lines are logged and skipped unless ``strict`` is set.
    """
    return _read_jsonl(path, sample_from_dict, strict)


def load_records(path: str | Path, strict: bool = False) -> list[SleepRecord]:
    """Read sleep records from a JSONL file.

    Malformed lines are logged and skipped unless ``strict`` is set, in
    which case degenerate records (wake time not after bedtime) also raise.
    """
    records = _read_jsonl(path, record_from_dict, strict)
    if strict:
        for rec in records:
            rec.check()
    return records


def write_records(path: str | Path, records: Iterable[SleepRecord]) -> Path:
    """Write records as JSONL; returns the path written."""
    out = Path(path)
    with open(out, "w") as f:
        for rec in records:
            f.write(json.dumps(record_to_dict(rec)) + "\n")
    return out

"""Typed errors raised by the sleep-debt engine.

Every error carries a closed :class:`ErrorKind` plus the structured fields
that caused it.  The message is derived from those fields; presentation
layers are expected to build their own user-facing text from ``kind`` and
the payload rather than parsing ``str(exc)``.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of failure categories."""

    INVALID_RANGE = "invalid_range"
    DEGENERATE_RECORD = "degenerate_record"
    INVALID_PARAMETER = "invalid_parameter"
    OVERLAPPING_RECORD = "overlapping_record"
    MALFORMED_INPUT = "malformed_input"


class SleepDebtError(ValueError):
    """Base class for all validation failures originating from caller input."""

    kind: ErrorKind

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    def to_dict(self) -> dict[str, Any]:
        """Kind plus payload, without the formatted message."""
        payload = {
            k: (v.isoformat() if isinstance(v, (date, datetime)) else v)
            for k, v in vars(self).items()
            if k != "kind"
        }
        return {"kind": self.kind.value, **payload}


class InvalidDateRangeError(SleepDebtError):
    """Start of a calculation period falls after its end."""

    def __init__(self, start: date, end: date) -> None:
        super().__init__(
            ErrorKind.INVALID_RANGE,
            f"start {start.isoformat()} is after end {end.isoformat()}",
        )
        self.start = start
        self.end = end


class DegenerateRecordError(SleepDebtError):
    """A record whose wake time does not follow its bedtime."""

    def __init__(self, record_id: str, bedtime: datetime, wake_time: datetime) -> None:
        super().__init__(
            ErrorKind.DEGENERATE_RECORD,
            f"record {record_id!r} wakes at {wake_time.isoformat()} "
            f"which is not after bedtime {bedtime.isoformat()}",
        )
        self.record_id = record_id
        self.bedtime = bedtime
        self.wake_time = wake_time


class InvalidParameterError(SleepDebtError):
    """A configuration value outside its accepted range."""

    def __init__(self, name: str, value: Any, expected: str) -> None:
        super().__init__(
            ErrorKind.INVALID_PARAMETER,
            f"{name}={value!r} is invalid: expected {expected}",
        )
        self.name = name
        self.value = value
        self.expected = expected


class OverlappingRecordError(SleepDebtError):
    """A new record would overlap an existing confirmed record."""

    def __init__(self, record_id: str) -> None:
        super().__init__(
            ErrorKind.OVERLAPPING_RECORD,
            f"times overlap existing record {record_id!r}",
        )
        self.record_id = record_id


class MalformedInputError(SleepDebtError):
    """An input line or mapping could not be turned into a sample or record."""

    def __init__(self, reason: str, line: int | None = None) -> None:
        where = f"line {line}: " if line is not None else ""
        super().__init__(ErrorKind.MALFORMED_INPUT, f"{where}{reason}")
        self.reason = reason
        self.line = line

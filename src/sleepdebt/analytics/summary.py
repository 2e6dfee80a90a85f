"""Debt summary aggregator.

Flattens an :class:`AutomatedResult` into a single JSON-serializable
:class:`DebtSummary`, and totals wall-clock sleep per day for charting.
"""

from __future__ import annotations

import json
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Iterable

from sleepdebt.analytics.automation import AutomatedResult
from sleepdebt.analytics.records import SleepRecord


@dataclass
class DebtSummary:
    """A period's sleep-debt report."""

    start: str  # ISO date strings
    end: str

    # Debt
    total_debt_hours: float = 0.0
    average_debt_per_night_hours: float = 0.0
    formatted_total_debt: str = "0h 0m"
    severity: str = ""
    efficiency_pct: float = 0.0
    recovery_days: int = 0
    missing_days: int = 0
    available_days: int = 0

    # Quality
    quality_grade: str = "F"
    quality_score: float = 0.0
    confidence_level: str = ""
    is_reliable: bool = False

    # Strategy / advice
    strategy: str = ""
    needs_notification: bool = False
    recommendations: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict (JSON-friendly)."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"DebtSummary({self.start}..{self.end}: "
            f"debt={self.total_debt_hours:.1f}h, "
            f"severity={self.severity}, "
            f"grade={self.quality_grade}, "
            f"strategy={self.strategy})"
        )


def build_debt_summary(result: AutomatedResult) -> DebtSummary:
    """Build a flat summary from an automated calculation."""
    debt = result.debt
    quality = result.quality
    return DebtSummary(
        start=debt.period.start.isoformat(),
        end=debt.period.end.isoformat(),
        total_debt_hours=round(debt.total_debt_hours, 2),
        average_debt_per_night_hours=round(debt.average_debt_per_night_hours, 2),
        formatted_total_debt=debt.formatted_total_debt,
        severity=debt.severity.value,
        efficiency_pct=round(debt.efficiency, 1),
        recovery_days=result.recovery_days,
        missing_days=len(debt.missing_days),
        available_days=debt.available_days,
        quality_grade=quality.grade,
        quality_score=round(quality.overall_score, 3),
        confidence_level=result.confidence_level,
        is_reliable=result.is_reliable,
        strategy=result.strategy.value,
        needs_notification=result.needs_notification,
        recommendations=[r.to_dict() for r in result.recommendations],
    )


# ---------------------------------------------------------------------------
# Per-day totals
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DailySleepTotal:
    day: date
    hours: float
    label: str  # Good / Fair / Poor


def _label(hours: float) -> str:
    if hours >= 7:
        return "Good"
    if hours >= 6:
        return "Fair"
    return "Poor"


def daily_sleep_totals(
    records: Iterable[SleepRecord],
    since: date | None = None,
) -> list[DailySleepTotal]:
    """Sum bedtime-to-wake hours per attributed day, newest first.

    Args:
        records: Records to total; planned ones are included.
        since: Drop days before this one.
    """
    totals: dict[date, float] = defaultdict(float)
    for rec in records:
        if since is not None and rec.day < since:
            continue
        totals[rec.day] += (rec.wake_time - rec.bedtime).total_seconds() / 3600.0

    return [
        DailySleepTotal(day=d, hours=h, label=_label(h))
        for d, h in sorted(totals.items(), reverse=True)
    ]

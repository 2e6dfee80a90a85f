"""Analytics pipeline: raw samples to a debt summary.

Consumes the stage-tagged samples produced by :func:`sleepdebt.loader.load_samples`
(or any data source), reconstructs sessions, optionally pads missing days
from the user's usual schedule, and runs the automated calculator.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

from sleepdebt.analytics.automation import AutomatedCalculator, AutomatedResult
from sleepdebt.analytics.debt import DEFAULT_RECOMMENDED_HOURS
from sleepdebt.analytics.records import DateInterval, SleepRecord
from sleepdebt.analytics.schedule import UserSchedule, fill_missing_days_with_schedule, merge_records
from sleepdebt.analytics.sessions import SleepSample, reconstruct_sessions
from sleepdebt.analytics.strategy import AutomationSettings
from sleepdebt.analytics.summary import DebtSummary, build_debt_summary


@dataclass(frozen=True)
class PipelineOutput:
    records: tuple[SleepRecord, ...]
    result: AutomatedResult
    summary: DebtSummary


def run_pipeline(
    samples: Iterable[SleepSample],
    existing: Sequence[SleepRecord] = (),
    schedule: UserSchedule | None = None,
    settings: AutomationSettings | None = None,
    recommended_hours: float = DEFAULT_RECOMMENDED_HOURS,
    period: DateInterval | None = None,
    today: date | None = None,
    keep_in_bed_only: bool = False,
) -> PipelineOutput:
    """Run the full pipeline on raw samples.

    Args:
        samples: Stage-tagged interval samples.
        existing: Previously known records (e.g. manual entries) to merge with.
        schedule: Usual schedule; when given, empty days get planned records.
        settings: Automation preferences.
        recommended_hours: Nightly sleep target.
        period: Days to evaluate (default: last 30 days ending ``today``).
        today: Reference day (default: today).
        keep_in_bed_only: Keep sessions with no asleep samples as zero-hour records.

    Returns:
        The record list used, the automated result, and its flat summary.
    """
    day = today or date.today()

    sessions = reconstruct_sessions(samples, keep_in_bed_only=keep_in_bed_only)
    records = merge_records(existing, sessions)
    if schedule is not None:
        records = fill_missing_days_with_schedule(records, schedule, today=day)

    calculator = AutomatedCalculator(settings, recommended_hours=recommended_hours)
    result = calculator.automatic_calculate_debt(records, period=period, today=day)

    return PipelineOutput(
        records=tuple(records),
        result=result,
        summary=build_debt_summary(result),
    )

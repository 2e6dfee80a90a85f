"""CLI for the sleepdebt toolkit."""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Callable

import click

from sleepdebt.errors import MalformedInputError, SleepDebtError


def _settings_options(func: Callable) -> Callable:
    """Options shared by every command that runs the automated calculator."""
    options = [
        click.option("--settings", "settings_file", type=click.Path(exists=True),
                     default=None, help="JSON file with automation settings."),
        click.option("--goal", type=click.Choice(["motivation", "health", "accuracy", "balanced"]),
                     default=None, help="Primary tracking goal."),
        click.option("--static", "static_mode", is_flag=True,
                     help="Pick the strategy from the goal only."),
        click.option("--threshold", type=float, default=None,
                     help="Completeness below which tracking advice is given (0-1)."),
        click.option("--recommended-hours", default=8.0, help="Nightly sleep target in hours."),
        click.option("--start", type=click.DateTime(["%Y-%m-%d"]), default=None,
                     help="First day of the period (default: 30 days before --today)."),
        click.option("--end", type=click.DateTime(["%Y-%m-%d"]), default=None,
                     help="Last day of the period (default: --today)."),
        click.option("--today", type=click.DateTime(["%Y-%m-%d"]), default=None,
                     help="Reference day (default: today)."),
        click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON."),
        click.option("--output", "-o", default=None, help="Write the summary JSON to a file."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_settings(settings_file: str | None, goal: str | None,
                    static_mode: bool, threshold: float | None):
    from sleepdebt.analytics.strategy import AutomationSettings

    data: dict = {}
    if settings_file:
        with open(settings_file) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise MalformedInputError(f"settings file: {e.msg}", e.lineno) from e
        if not isinstance(data, dict):
            raise MalformedInputError("settings file must hold a JSON object")
    if goal is not None:
        data["primary_goal"] = goal
    if static_mode:
        data["adaptive_strategy"] = False
    if threshold is not None:
        data["data_quality_threshold"] = threshold
    return AutomationSettings.from_dict(data)


def _build_period(start: datetime | None, end: datetime | None, today: date):
    from sleepdebt.analytics.automation import DEFAULT_PERIOD_DAYS
    from sleepdebt.analytics.records import DateInterval

    if start is None and end is None:
        return None
    end_day = end.date() if end else today
    if start is None:
        return DateInterval.ending(end_day, DEFAULT_PERIOD_DAYS)
    return DateInterval(start.date(), end_day)


def _report(result, as_json: bool, output: str | None) -> None:
    from sleepdebt.analytics.summary import build_debt_summary

    summary = build_debt_summary(result)
    if as_json:
        click.echo(result.to_json())
    else:
        debt = result.debt
        quality = result.quality
        click.echo(f"\n{'=' * 60}")
        click.echo(f"  Sleep Debt: {summary.start} .. {summary.end}")
        click.echo(f"{'=' * 60}")
        click.echo(f"  Total debt:   {debt.formatted_total_debt} ({debt.severity.value})")
        click.echo(f"  Per night:    {debt.average_debt_per_night_hours:.1f} h")
        click.echo(f"  Efficiency:   {debt.efficiency:.0f}%")
        click.echo(f"  Missing days: {len(debt.missing_days)}/{len(debt.daily_debt_hours)}")
        click.echo(f"  Strategy:     {result.strategy.value}")
        click.echo(f"  Data quality: {quality.grade} "
                   f"(completeness {quality.completeness:.0%}, "
                   f"consistency {quality.consistency:.2f}, "
                   f"recency {quality.recency:.2f})")
        click.echo(f"  Confidence:   {result.confidence_level}")
        click.echo(f"  Recovery:     {result.recovery_days} day(s) at 1h/day")
        if debt.rejected_record_ids:
            click.echo(f"  Rejected:     {', '.join(debt.rejected_record_ids)}")
        click.echo(f"{'-' * 60}")
        for rec in result.recommendations:
            click.echo(f"  * {rec.title}: {rec.description}")
        click.echo(f"{'=' * 60}")

    if output:
        with open(output, "w") as f:
            f.write(summary.to_json())
        click.echo(f"\nSummary written to {output}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging on stderr.")
def main(verbose: bool) -> None:
    """sleepdebt: quality-aware sleep debt estimation."""
    from sleepdebt.log import configure_logging

    configure_logging(verbose)


@main.command("analyze")
@click.argument("file", type=click.Path(exists=True))
@_settings_options
def analyze_cmd(file: str, settings_file: str | None, goal: str | None, static_mode: bool,
                threshold: float | None, recommended_hours: float, start: datetime | None,
                end: datetime | None, today: datetime | None, as_json: bool,
                output: str | None) -> None:
    """Estimate sleep debt from a JSONL file of sleep records."""
    from sleepdebt.analytics.automation import AutomatedCalculator
    from sleepdebt.loader import load_records

    try:
        ref_day = today.date() if today else date.today()
        settings = _build_settings(settings_file, goal, static_mode, threshold)
        records = load_records(file)
        calculator = AutomatedCalculator(settings, recommended_hours=recommended_hours)
        result = calculator.automatic_calculate_debt(
            records, period=_build_period(start, end, ref_day), today=ref_day
        )
    except SleepDebtError as e:
        raise click.ClickException(str(e)) from e

    _report(result, as_json, output)


@main.command("sessions")
@click.argument("file", type=click.Path(exists=True))
@click.option("--output", "-o", default=None, help="Write reconstructed records as JSONL.")
@click.option("--keep-in-bed-only", is_flag=True,
              help="Keep sessions without asleep samples as zero-hour records.")
def sessions_cmd(file: str, output: str | None, keep_in_bed_only: bool) -> None:
    """Reconstruct sleep sessions from a JSONL file of stage samples."""
    from sleepdebt.analytics.sessions import reconstruct_sessions
    from sleepdebt.loader import load_samples, write_records

    try:
        samples = load_samples(file)
    except SleepDebtError as e:
        raise click.ClickException(str(e)) from e

    records = reconstruct_sessions(samples, keep_in_bed_only=keep_in_bed_only)
    click.echo(f"{len(samples)} samples -> {len(records)} session(s)")
    for rec in records:
        click.echo(f"  {rec.day.isoformat()}  "
                   f"{rec.bedtime:%H:%M} -> {rec.wake_time:%H:%M}  "
                   f"asleep {rec.formatted_duration}")

    if output:
        write_records(output, records)
        click.echo(f"\nRecords written to {output}")


@main.command("pipeline")
@click.argument("file", type=click.Path(exists=True))
@click.option("--records", "records_file", type=click.Path(exists=True), default=None,
              help="Existing JSONL records to merge with the reconstructed sessions.")
@click.option("--bedtime", type=click.DateTime(["%H:%M"]), default=None,
              help="Usual bedtime (HH:MM); fills empty days with planned records.")
@click.option("--wake-time", type=click.DateTime(["%H:%M"]), default=None,
              help="Usual wake time (HH:MM).")
@_settings_options
def pipeline_cmd(file: str, records_file: str | None, bedtime: datetime | None,
                 wake_time: datetime | None, settings_file: str | None, goal: str | None,
                 static_mode: bool, threshold: float | None, recommended_hours: float,
                 start: datetime | None, end: datetime | None, today: datetime | None,
                 as_json: bool, output: str | None) -> None:
    """Run samples -> sessions -> debt on a JSONL file of stage samples."""
    from sleepdebt.analytics.pipeline import run_pipeline
    from sleepdebt.analytics.schedule import UserSchedule
    from sleepdebt.loader import load_records, load_samples

    if (bedtime is None) != (wake_time is None):
        raise click.UsageError("--bedtime and --wake-time must be given together.")

    try:
        ref_day = today.date() if today else date.today()
        settings = _build_settings(settings_file, goal, static_mode, threshold)
        schedule = None
        if bedtime is not None:
            schedule = UserSchedule(bedtime.time(), wake_time.time())
        out = run_pipeline(
            load_samples(file),
            existing=load_records(records_file) if records_file else (),
            schedule=schedule,
            settings=settings,
            recommended_hours=recommended_hours,
            period=_build_period(start, end, ref_day),
            today=ref_day,
        )
    except SleepDebtError as e:
        raise click.ClickException(str(e)) from e

    _report(out.result, as_json, output)


@main.command("schedule")
@click.option("--no-weekly", is_flag=True, help="Disable the weekly recalculation.")
@click.option("--today", type=click.DateTime(["%Y-%m-%d"]), default=None,
              help="Reference day (default: today).")
def schedule_cmd(no_weekly: bool, today: datetime | None) -> None:
    """Show the periodic recalculations a scheduler should run."""
    from sleepdebt.analytics.automation import AutomatedCalculator
    from sleepdebt.analytics.strategy import AutomationSettings

    calculator = AutomatedCalculator(AutomationSettings(weekly_recalculation=not no_weekly))
    ref_day = today.date() if today else date.today()
    for calc in calculator.schedule_automatic_calculations():
        period = calc.resolve_period(ref_day)
        click.echo(f"  {calc.frequency.value:<8} {calc.period.value:<13} "
                   f"{calc.mode.value:<14} {period}")


if __name__ == "__main__":
    main()

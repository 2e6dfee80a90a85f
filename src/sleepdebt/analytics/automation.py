"""Automated debt calculation: quality -> strategy -> debt -> advice.

:class:`AutomatedCalculator` composes the calculator, assessor, selector and
recommendation engine for a single "calculate debt now" call.  It also
describes (but never runs) the periodic recalculations a host scheduler
should perform.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Sequence

import structlog

from sleepdebt.analytics.debt import (
    DEFAULT_RECOMMENDED_HOURS,
    MissingDataStrategy,
    SleepDebtCalculator,
    SleepDebtResult,
)
from sleepdebt.analytics.quality import DataQuality, assess_data_quality
from sleepdebt.analytics.recommendations import Recommendation, generate_recommendations
from sleepdebt.analytics.records import DateInterval, SleepRecord
from sleepdebt.analytics.strategy import AutomationSettings, select_strategy

logger = structlog.get_logger()

DEFAULT_PERIOD_DAYS = 30
RELIABLE_SCORE = 0.6

# (lower bound, label), checked top-down
CONFIDENCE_BOUNDS = [
    (0.85, "Very High"),
    (0.7, "High"),
    (0.55, "Medium"),
    (0.4, "Low"),
]


@dataclass(frozen=True)
class AutomatedResult:
    """Everything one automated calculation produced."""

    debt: SleepDebtResult
    quality: DataQuality
    strategy: MissingDataStrategy
    recommendations: tuple[Recommendation, ...]
    settings: AutomationSettings

    @property
    def is_reliable(self) -> bool:
        return self.quality.overall_score > RELIABLE_SCORE

    @property
    def confidence_level(self) -> str:
        score = self.quality.overall_score
        for bound, label in CONFIDENCE_BOUNDS:
            if score >= bound:
                return label
        return "Very Low"

    @property
    def needs_notification(self) -> bool:
        """Debt has reached the user's notification threshold."""
        return self.debt.total_debt_hours >= self.settings.notification_threshold

    @property
    def recovery_days(self) -> int:
        return SleepDebtCalculator.calculate_recovery_time(self.debt.total_debt_hours)

    def to_dict(self) -> dict[str, Any]:
        return {
            "debt": self.debt.to_dict(),
            "quality": self.quality.to_dict(),
            "strategy": self.strategy.value,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "settings": self.settings.to_dict(),
            "is_reliable": self.is_reliable,
            "confidence_level": self.confidence_level,
            "needs_notification": self.needs_notification,
            "recovery_days": self.recovery_days,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"AutomatedResult(debt={self.debt.total_debt_hours:.1f}h, "
            f"strategy={self.strategy.value}, "
            f"grade={self.quality.grade}, "
            f"confidence={self.confidence_level})"
        )


# ---------------------------------------------------------------------------
# Scheduling descriptors
# ---------------------------------------------------------------------------


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class PeriodPreset(str, Enum):
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    LAST_90_DAYS = "last_90_days"

    @property
    def days(self) -> int:
        return {"last_7_days": 7, "last_30_days": 30, "last_90_days": 90}[self.value]


class CalculationMode(str, Enum):
    ADAPTIVE = "adaptive"
    COMPREHENSIVE = "comprehensive"
    MINIMAL = "minimal"


@dataclass(frozen=True)
class ScheduledCalculation:
    frequency: Frequency
    period: PeriodPreset
    mode: CalculationMode

    def resolve_period(self, today: date | None = None) -> DateInterval:
        """Concrete interval this descriptor covers when run on ``today``."""
        return DateInterval.ending(today or date.today(), self.period.days)

    def to_dict(self) -> dict[str, str]:
        return {
            "frequency": self.frequency.value,
            "period": self.period.value,
            "mode": self.mode.value,
        }


@dataclass(frozen=True)
class ScheduledCalculations:
    calculations: tuple[ScheduledCalculation, ...]

    def __iter__(self):
        return iter(self.calculations)

    def __len__(self) -> int:
        return len(self.calculations)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class AutomatedCalculator:
    """Quality-aware façade over the debt calculator.

    Args:
        settings: Automation preferences, fixed for this instance.
        recommended_hours: Nightly sleep target.
        calculator: Optional pre-built calculator (its target wins).
    """

    def __init__(
        self,
        settings: AutomationSettings | None = None,
        recommended_hours: float = DEFAULT_RECOMMENDED_HOURS,
        calculator: SleepDebtCalculator | None = None,
    ) -> None:
        self.settings = settings if settings is not None else AutomationSettings()
        self.calculator = calculator or SleepDebtCalculator(recommended_hours)
        self.logger = logger.bind(component="automated_calculator")
        self._cache_lock = threading.Lock()
        self._quality_cache: dict[DateInterval, DataQuality] = {}

    @property
    def quality_cache(self) -> Mapping[DateInterval, DataQuality]:
        """Read-only snapshot of the last quality seen per period.

        Diagnostic only; calculations never read it.
        """
        with self._cache_lock:
            return MappingProxyType(dict(self._quality_cache))

    def default_period(self, today: date | None = None) -> DateInterval:
        return DateInterval.ending(today or date.today(), DEFAULT_PERIOD_DAYS)

    def automatic_calculate_debt(
        self,
        records: Sequence[SleepRecord],
        period: DateInterval | None = None,
        today: date | None = None,
    ) -> AutomatedResult:
        """Assess, pick a strategy, compute debt and advise in one call.

        Args:
            records: Snapshot of sleep records (copied before use).
            period: Days to evaluate; defaults to the last 30 days.
            today: Reference day for the default period.

        Returns:
            AutomatedResult bundling debt, quality, strategy and advice.
        """
        snapshot = list(records)
        period = period or self.default_period(today)

        quality = assess_data_quality(snapshot, period)
        strategy = select_strategy(quality, self.settings)
        debt = self.calculator.calculate_cumulative_debt(
            snapshot, period.start, period.end, strategy=strategy
        )
        recommendations = generate_recommendations(debt, quality, self.settings)

        with self._cache_lock:
            self._quality_cache[period] = quality

        self.logger.info(
            "Automated debt calculation complete",
            period=str(period),
            strategy=strategy.value,
            grade=quality.grade,
            total_debt=round(debt.total_debt_hours, 2),
        )

        return AutomatedResult(
            debt=debt,
            quality=quality,
            strategy=strategy,
            recommendations=tuple(recommendations),
            settings=self.settings,
        )

    def schedule_automatic_calculations(
        self,
        records: Sequence[SleepRecord] = (),
    ) -> ScheduledCalculations:
        """Declarative list of recalculations a host scheduler should run.

        ``records`` is accepted for interface symmetry and not inspected.
        """
        scheduled = [
            ScheduledCalculation(Frequency.DAILY, PeriodPreset.LAST_7_DAYS, CalculationMode.ADAPTIVE),
        ]
        if self.settings.weekly_recalculation:
            scheduled.append(
                ScheduledCalculation(Frequency.WEEKLY, PeriodPreset.LAST_30_DAYS, CalculationMode.ADAPTIVE)
            )
        scheduled.append(
            ScheduledCalculation(Frequency.MONTHLY, PeriodPreset.LAST_90_DAYS, CalculationMode.COMPREHENSIVE)
        )
        return ScheduledCalculations(tuple(scheduled))

"""Advisory recommendations derived from debt severity and data quality.

Recommendations are plain records: a kind, a fixed title, a templated
description and the numbers that went into it.  Order is fixed: data
collection first, then exactly one severity-driven item, then routine and
recency advice.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from sleepdebt.analytics.debt import DebtSeverity, SleepDebtResult
from sleepdebt.analytics.quality import DataQuality
from sleepdebt.analytics.strategy import AutomationSettings

CONSISTENCY_FLOOR = 0.5
RECENCY_FLOOR = 0.5


class RecommendationKind(str, Enum):
    MAINTAIN = "maintain"
    GRADUAL_IMPROVEMENT = "gradual_improvement"
    ACTIVE_RECOVERY = "active_recovery"
    URGENT_ATTENTION = "urgent_attention"
    IMPROVE_DATA_COLLECTION = "improve_data_collection"
    ESTABLISH_ROUTINE = "establish_routine"
    RECENT_TRACKING = "recent_tracking"


TITLES = {
    RecommendationKind.MAINTAIN: "Keep It Up!",
    RecommendationKind.GRADUAL_IMPROVEMENT: "Gradual Sleep Improvement",
    RecommendationKind.ACTIVE_RECOVERY: "Active Sleep Recovery",
    RecommendationKind.URGENT_ATTENTION: "Urgent Sleep Attention Needed",
    RecommendationKind.IMPROVE_DATA_COLLECTION: "Improve Sleep Tracking",
    RecommendationKind.ESTABLISH_ROUTINE: "Establish Sleep Routine",
    RecommendationKind.RECENT_TRACKING: "Recent Data Needed",
}


@dataclass(frozen=True)
class Recommendation:
    """One advisory item."""

    kind: RecommendationKind
    title: str
    description: str
    debt_hours: float | None = None
    current_rate: float | None = None
    target_rate: float | None = None

    # -- constructors, one per kind ------------------------------------

    @classmethod
    def maintain(cls) -> Recommendation:
        return cls._make(
            RecommendationKind.MAINTAIN,
            "Your sleep debt is minimal. Continue your current habits.",
        )

    @classmethod
    def gradual_improvement(cls, debt_hours: float) -> Recommendation:
        return cls._make(
            RecommendationKind.GRADUAL_IMPROVEMENT,
            f"You have {debt_hours:.1f} hours of sleep debt. "
            "Try going to bed 15-30 minutes earlier.",
            debt_hours=debt_hours,
        )

    @classmethod
    def active_recovery(cls, debt_hours: float) -> Recommendation:
        return cls._make(
            RecommendationKind.ACTIVE_RECOVERY,
            f"You have {debt_hours:.1f} hours of sleep debt. "
            "Consider weekend recovery sleep and earlier bedtimes.",
            debt_hours=debt_hours,
        )

    @classmethod
    def urgent_attention(cls, debt_hours: float) -> Recommendation:
        return cls._make(
            RecommendationKind.URGENT_ATTENTION,
            f"You have {debt_hours:.1f} hours of sleep debt. "
            "This may impact your health. Prioritize sleep immediately.",
            debt_hours=debt_hours,
        )

    @classmethod
    def improve_data_collection(cls, current_rate: float, target: float) -> Recommendation:
        return cls._make(
            RecommendationKind.IMPROVE_DATA_COLLECTION,
            f"Only {current_rate * 100:.0f}% of sleep data available. "
            f"Aim for {target * 100:.0f}% for better insights.",
            current_rate=current_rate,
            target_rate=target,
        )

    @classmethod
    def establish_routine(cls) -> Recommendation:
        return cls._make(
            RecommendationKind.ESTABLISH_ROUTINE,
            "Your sleep patterns are inconsistent. "
            "Try to maintain regular bedtimes and wake times.",
        )

    @classmethod
    def recent_tracking(cls) -> Recommendation:
        return cls._make(
            RecommendationKind.RECENT_TRACKING,
            "Recent sleep data is missing. "
            "Consistent tracking helps provide better insights.",
        )

    @classmethod
    def _make(cls, kind: RecommendationKind, description: str, **numbers: float) -> Recommendation:
        return cls(kind=kind, title=TITLES[kind], description=description, **numbers)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "title": self.title,
            "description": self.description,
        }
        for key in ("debt_hours", "current_rate", "target_rate"):
            value = getattr(self, key)
            if value is not None:
                d[key] = round(value, 3)
        return d


def severity_recommendation(severity: DebtSeverity, debt_hours: float) -> Recommendation:
    if severity == DebtSeverity.MINIMAL:
        return Recommendation.maintain()
    if severity == DebtSeverity.MODERATE:
        return Recommendation.gradual_improvement(debt_hours)
    if severity == DebtSeverity.SIGNIFICANT:
        return Recommendation.active_recovery(debt_hours)
    return Recommendation.urgent_attention(debt_hours)


def generate_recommendations(
    debt_result: SleepDebtResult,
    quality: DataQuality,
    settings: AutomationSettings,
) -> list[Recommendation]:
    """Ordered advisory list for a debt result and its data quality."""
    recs: list[Recommendation] = []

    if quality.completeness < settings.data_quality_threshold:
        recs.append(Recommendation.improve_data_collection(
            quality.completeness, settings.data_quality_threshold
        ))

    recs.append(severity_recommendation(debt_result.severity, debt_result.total_debt_hours))

    if quality.consistency < CONSISTENCY_FLOOR:
        recs.append(Recommendation.establish_routine())
    if quality.recency < RECENCY_FLOOR:
        recs.append(Recommendation.recent_tracking())

    return recs

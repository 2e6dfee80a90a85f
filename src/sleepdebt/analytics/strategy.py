"""Missing-data strategy selection.

Adaptive mode walks a small decision tree over the data-quality signals and
only consults the user's tracking goal when the data is too sparse to speak
for itself.  Static mode maps the goal straight to a strategy.  The two
modes disagree for ``accuracy`` and ``balanced``; that is intended.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Mapping

import structlog

from sleepdebt.analytics.debt import MissingDataStrategy
from sleepdebt.analytics.quality import DataQuality
from sleepdebt.errors import InvalidParameterError

logger = structlog.get_logger()


class TrackingGoal(str, Enum):
    """What the user wants the debt figure to favour."""

    MOTIVATION = "motivation"
    HEALTH = "health"
    ACCURACY = "accuracy"
    BALANCED = "balanced"

    @property
    def display_name(self) -> str:
        return _GOAL_TEXT[self][0]

    @property
    def description(self) -> str:
        return _GOAL_TEXT[self][1]


_GOAL_TEXT = {
    TrackingGoal.MOTIVATION: ("Motivation", "Encourage yourself to get enough sleep"),
    TrackingGoal.HEALTH: ("Health Tracking", "Conservative health tracking"),
    TrackingGoal.ACCURACY: ("Accuracy", "Most accurate calculation"),
    TrackingGoal.BALANCED: ("Balanced", "Balance of all approaches"),
}


@dataclass(frozen=True)
class AutomationSettings:
    """User preferences for the automated calculator."""

    primary_goal: TrackingGoal = TrackingGoal.BALANCED
    data_quality_threshold: float = 0.7  # completeness below this triggers advice
    adaptive_strategy: bool = True
    weekly_recalculation: bool = True
    notification_threshold: float = 10.0  # hours of debt

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "primary_goal", TrackingGoal(self.primary_goal))
        except ValueError:
            raise InvalidParameterError(
                "primary_goal", self.primary_goal, "one of " + ", ".join(g.value for g in TrackingGoal)
            ) from None
        if not 0.0 <= self.data_quality_threshold <= 1.0:
            raise InvalidParameterError(
                "data_quality_threshold", self.data_quality_threshold, "a value in [0, 1]"
            )
        if self.notification_threshold < 0:
            raise InvalidParameterError(
                "notification_threshold", self.notification_threshold, ">= 0"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AutomationSettings:
        """Build settings from a plain mapping, ignoring unknown keys."""
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["primary_goal"] = self.primary_goal.value
        return d


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

_STATIC = {
    TrackingGoal.MOTIVATION: MissingDataStrategy.ASSUME_RECOMMENDED,
    TrackingGoal.HEALTH: MissingDataStrategy.CONSERVATIVE,
    TrackingGoal.ACCURACY: MissingDataStrategy.INTERPOLATE,
    TrackingGoal.BALANCED: MissingDataStrategy.USE_WEEKLY_PATTERN,
}


def static_strategy(goal: TrackingGoal) -> MissingDataStrategy:
    """Fixed goal-to-strategy table."""
    return _STATIC[goal]


def adaptive_strategy(quality: DataQuality, goal: TrackingGoal) -> MissingDataStrategy:
    """Decision tree over data quality; first matching branch wins."""
    if quality.completeness > 0.85 and quality.consistency > 0.7:
        return MissingDataStrategy.INTERPOLATE
    if quality.completeness > 0.7 and quality.has_weekend_pattern:
        return MissingDataStrategy.USE_WEEKLY_PATTERN
    if quality.completeness > 0.5:
        return MissingDataStrategy.USE_AVERAGE

    # Sparse data: fall back on what the user cares about
    if goal == TrackingGoal.MOTIVATION:
        return MissingDataStrategy.ASSUME_RECOMMENDED
    if goal == TrackingGoal.HEALTH:
        return MissingDataStrategy.CONSERVATIVE
    if goal == TrackingGoal.ACCURACY:
        return MissingDataStrategy.USE_AVERAGE
    if quality.recency > 0.5:
        return MissingDataStrategy.USE_AVERAGE
    return MissingDataStrategy.CONSERVATIVE


def select_strategy(quality: DataQuality, settings: AutomationSettings) -> MissingDataStrategy:
    """Pick the imputation strategy for the given quality and settings."""
    if settings.adaptive_strategy:
        strategy = adaptive_strategy(quality, settings.primary_goal)
    else:
        strategy = static_strategy(settings.primary_goal)
    logger.debug(
        "Strategy selected",
        strategy=strategy.value,
        adaptive=settings.adaptive_strategy,
        goal=settings.primary_goal.value,
        completeness=round(quality.completeness, 3),
    )
    return strategy

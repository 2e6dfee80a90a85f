"""Analytics engine for estimating sleep debt from sparse sleep history.

Modules:
    records         -- SleepRecord, SleepQuality, DateInterval
    features        -- Duration statistics (mean, population std, weekday split)
    sessions        -- Session reconstruction from stage-tagged samples
    debt            -- Nightly / cumulative debt with missing-day strategies
    quality         -- Completeness, consistency, recency, weekend pattern
    strategy        -- Adaptive and static missing-data strategy selection
    recommendations -- Advisory recommendations from severity and quality
    automation      -- Automated calculator and scheduling descriptors
    schedule        -- Planned records, record merging, overlap checks
    summary         -- Flat debt summary and per-day totals
    pipeline        -- Samples-to-summary pipeline
"""

from sleepdebt.analytics.records import (
    SleepRecord,
    SleepQuality,
    DateInterval,
)
from sleepdebt.analytics.sessions import (
    SampleStage,
    SleepSample,
    reconstruct_sessions,
)
from sleepdebt.analytics.debt import (
    SleepDebtCalculator,
    SleepDebtResult,
    DebtSeverity,
    MissingDataStrategy,
)
from sleepdebt.analytics.quality import assess_data_quality, DataQuality
from sleepdebt.analytics.strategy import (
    select_strategy,
    AutomationSettings,
    TrackingGoal,
)
from sleepdebt.analytics.recommendations import (
    generate_recommendations,
    Recommendation,
    RecommendationKind,
)
from sleepdebt.analytics.automation import (
    AutomatedCalculator,
    AutomatedResult,
    ScheduledCalculation,
    ScheduledCalculations,
)
from sleepdebt.analytics.schedule import (
    UserSchedule,
    fill_missing_days_with_schedule,
    merge_records,
)
from sleepdebt.analytics.summary import build_debt_summary, DebtSummary
from sleepdebt.analytics.pipeline import run_pipeline

__all__ = [
    # records
    "SleepRecord",
    "SleepQuality",
    "DateInterval",
    # sessions
    "SampleStage",
    "SleepSample",
    "reconstruct_sessions",
    # debt
    "SleepDebtCalculator",
    "SleepDebtResult",
    "DebtSeverity",
    "MissingDataStrategy",
    # quality
    "assess_data_quality",
    "DataQuality",
    # strategy
    "select_strategy",
    "AutomationSettings",
    "TrackingGoal",
    # recommendations
    "generate_recommendations",
    "Recommendation",
    "RecommendationKind",
    # automation
    "AutomatedCalculator",
    "AutomatedResult",
    "ScheduledCalculation",
    "ScheduledCalculations",
    # schedule
    "UserSchedule",
    "fill_missing_days_with_schedule",
    "merge_records",
    # summary
    "build_debt_summary",
    "DebtSummary",
    # pipeline
    "run_pipeline",
]

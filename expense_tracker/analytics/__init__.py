"""
Analytics Core

Pure, synchronous functions over immutable expense and profile snapshots.
Nothing in this package performs I/O; the service facade loads the data,
calls in here and stores the result.
"""

from expense_tracker.analytics.achievements import (
    ACHIEVEMENT_CATALOG,
    CATALOG_VERSION,
    AchievementDefinition,
    AchievementMetric,
    AchievementResult,
    AchievementState,
    build_achievement_state,
    recompute_achievements,
)
from expense_tracker.analytics.daily import (
    build_daily_history,
    calendar_days,
    classify_budget_status,
    classify_progress,
    daily_progress,
    evaluate_day,
    monthly_analysis,
    tracked_range,
    weekly_analysis,
)
from expense_tracker.analytics.health import (
    HealthInputs,
    classify_tier,
    score_health,
)
from expense_tracker.analytics.insights import (
    analyze_finances,
    analyze_patterns,
    generate_alerts,
    generate_recommendations,
)
from expense_tracker.analytics.streaks import StreakTracker, recompute_streak
from expense_tracker.analytics.summary import (
    compute_summary,
    export_csv,
    filter_expenses,
    monthly_totals,
    prepare_export,
)
from expense_tracker.analytics.trends import (
    analyze_trends,
    classify_category_trends,
    detect_duplicates,
    project_next_month,
)

__all__ = [
    # Summary
    "compute_summary",
    "export_csv",
    "filter_expenses",
    "monthly_totals",
    "prepare_export",
    # Daily evaluation
    "build_daily_history",
    "calendar_days",
    "classify_budget_status",
    "classify_progress",
    "daily_progress",
    "evaluate_day",
    "monthly_analysis",
    "tracked_range",
    "weekly_analysis",
    # Streaks
    "StreakTracker",
    "recompute_streak",
    # Achievements
    "ACHIEVEMENT_CATALOG",
    "CATALOG_VERSION",
    "AchievementDefinition",
    "AchievementMetric",
    "AchievementResult",
    "AchievementState",
    "build_achievement_state",
    "recompute_achievements",
    # Trends and insights
    "analyze_finances",
    "analyze_patterns",
    "analyze_trends",
    "classify_category_trends",
    "detect_duplicates",
    "generate_alerts",
    "generate_recommendations",
    "project_next_month",
    # Health
    "HealthInputs",
    "classify_tier",
    "score_health",
]

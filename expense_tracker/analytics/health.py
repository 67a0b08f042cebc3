"""
Financial Health Scorer

A composite 0-100 score built from four weighted components:

    adherence  share of tracked days spent under or near the daily limit
    streak     current streak relative to the longest one
    trend      loses a third for every category trending upwards
    alerts     high severity alerts cost 2/3, medium 1/3, low nothing

Only days with data count as tracked. With no tracked days at all the
score is the configured insufficient-data default and the result is
flagged, so the UI can tell "fair" from "unknown".
"""

from typing import Optional

from pydantic import BaseModel, Field

from expense_tracker.analytics.streaks import COMPLIANT_STATUSES
from expense_tracker.config import AnalyticsSettings, get_settings
from expense_tracker.models.insights import (
    CategoryTrend,
    FinancialAlert,
    HealthScore,
    HealthTier,
    Severity,
    TrendDirection,
)
from expense_tracker.models.tracker import DailyExpenses, DailyStreak


# Penalty units per alert, out of ALERT_PENALTY_UNITS
ALERT_PENALTIES = {
    Severity.HIGH: 2,
    Severity.MEDIUM: 1,
    Severity.LOW: 0,
}
ALERT_PENALTY_UNITS = 3
TREND_PENALTY_UNITS = 3

TIER_FLOORS = (
    (80, HealthTier.EXCELLENT),
    (60, HealthTier.GOOD),
    (40, HealthTier.FAIR),
)


class HealthInputs(BaseModel):
    """Everything the score is derived from."""

    history: list[DailyExpenses] = Field(default_factory=list)
    streak: DailyStreak = Field(default_factory=DailyStreak)
    category_trends: list[CategoryTrend] = Field(default_factory=list)
    alerts: list[FinancialAlert] = Field(default_factory=list)


def classify_tier(score: int) -> HealthTier:
    for floor, tier in TIER_FLOORS:
        if score >= floor:
            return tier
    return HealthTier.POOR


def _adherence(history: list[DailyExpenses]) -> float:
    tracked = [day for day in history if day.has_data]
    compliant = sum(1 for day in tracked if day.budget_status in COMPLIANT_STATUSES)
    return compliant / len(tracked)


def _streak_strength(streak: DailyStreak) -> float:
    if streak.longest_streak == 0:
        return 0.0
    return streak.current_streak / streak.longest_streak


def _trend_stability(category_trends: list[CategoryTrend]) -> float:
    increasing = sum(
        1 for t in category_trends if t.direction == TrendDirection.INCREASING
    )
    return max(0.0, 1 - increasing / TREND_PENALTY_UNITS)


def _alert_calm(alerts: list[FinancialAlert]) -> float:
    penalty = sum(ALERT_PENALTIES[a.severity] for a in alerts)
    return max(0.0, 1 - penalty / ALERT_PENALTY_UNITS)


def score_health(
    inputs: HealthInputs,
    settings: Optional[AnalyticsSettings] = None,
) -> HealthScore:
    """
    Compute the health score.

    Args:
        inputs: History, streak, category trends and alerts
        settings: Weights and the insufficient-data default

    Returns:
        HealthScore with the points contributed by each component
    """
    settings = settings or get_settings().analytics

    if not any(day.has_data for day in inputs.history):
        score = settings.insufficient_data_score
        return HealthScore(
            score=score,
            tier=classify_tier(score),
            components={},
            insufficient_data=True,
        )

    components = {
        "adherence": settings.health_weight_adherence * _adherence(inputs.history),
        "streak": settings.health_weight_streak * _streak_strength(inputs.streak),
        "trend": settings.health_weight_trend * _trend_stability(inputs.category_trends),
        "alerts": settings.health_weight_alerts * _alert_calm(inputs.alerts),
    }
    score = max(0, min(100, round(sum(components.values()))))

    return HealthScore(
        score=score,
        tier=classify_tier(score),
        components={name: round(points, 2) for name, points in components.items()},
    )

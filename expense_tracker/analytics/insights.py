"""
Insight Generator

Per-category spending patterns, alerts and recommendations, bundled with
the trend analysis and the health score into one FinancialInsight.

ALERT RULES (reference month vs complete months before it):
- high spending:  month total > high_spending_ratio x average monthly total
- category spike: category total > category_spike_ratio x the category's
                  average monthly total
- volatility:     increasing category whose amounts have a standard
                  deviation above half their average

RECOMMENDATION RULES:
- budget:      average expense > 500 and the category is increasing
- consistency: standard deviation > 0.6 x average expense
- savings:     the category with the highest average expense, above 300
Recommendations are sorted by confidence, highest first.
"""

from datetime import date
from decimal import Decimal
from statistics import pstdev
from typing import Iterable, Optional, Union

import structlog

from expense_tracker.analytics.health import HealthInputs, score_health
from expense_tracker.analytics.periods import (
    group_by_month,
    month_key,
    month_keys_ending,
    shift_month,
    sort_expenses,
    total_of,
)
from expense_tracker.analytics.trends import (
    MIN_TREND_MONTHS,
    analyze_trends,
    classify_category_trends,
    detect_duplicates,
    project_next_month,
)
from expense_tracker.config import get_settings
from expense_tracker.models.expense import Expense, ExpenseCategory
from expense_tracker.models.insights import (
    AlertType,
    CategoryTrend,
    ExpensePattern,
    FinancialAlert,
    FinancialInsight,
    Recommendation,
    RecommendationType,
    Severity,
    TrendDirection,
)
from expense_tracker.models.tracker import DailyExpenses, DailyStreak
from expense_tracker.validation import parse_day


logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")

VOLATILITY_RATIO = Decimal("0.5")
CONSISTENCY_RATIO = Decimal("0.6")
BUDGET_RECOMMENDATION_MIN_AVERAGE = Decimal("500")
SAVINGS_RECOMMENDATION_MIN_AVERAGE = Decimal("300")


def _months_spanned(first: date, last: date) -> int:
    return (last.year - first.year) * 12 + last.month - first.month + 1


def _average_monthly(totals: list[Decimal]) -> Optional[Decimal]:
    """Average of the months that had any spending; None if there were none."""
    active = [t for t in totals if t > 0]
    if not active:
        return None
    return sum(active, Decimal("0")) / len(active)


def analyze_patterns(
    expenses: Iterable[Expense],
    category_trends: Optional[list[CategoryTrend]] = None,
) -> list[ExpensePattern]:
    """
    One pattern per category with at least one expense, highest average
    expense first.

    Args:
        expenses: The expense log
        category_trends: Directions to attach; categories not listed are stable
    """
    ordered = sort_expenses(expenses)
    if not ordered:
        return []

    directions = {t.category: t.direction for t in (category_trends or [])}
    span = _months_spanned(ordered[0].date, ordered[-1].date)

    patterns = []
    for category in ExpenseCategory:
        in_category = [e for e in ordered if e.category == category]
        if not in_category:
            continue
        amounts = [e.amount for e in in_category]
        average = sum(amounts, Decimal("0")) / len(amounts)
        patterns.append(ExpensePattern(
            category=category,
            average_amount=average.quantize(CENT),
            frequency=round(len(in_category) / span, 4),
            trend=directions.get(category, TrendDirection.STABLE),
            std_deviation=pstdev(amounts).quantize(CENT),
            last_occurrence=in_category[-1].date,
        ))

    # Stable sort keeps enum order among equal averages
    return sorted(patterns, key=lambda p: p.average_amount, reverse=True)


def generate_alerts(
    expenses: Iterable[Expense],
    patterns: list[ExpensePattern],
    reference_date: Union[date, str],
    history_months: Optional[int] = None,
) -> list[FinancialAlert]:
    """
    Alerts about the reference month compared with the complete months
    before it.
    """
    settings = get_settings().analytics
    reference = parse_day(reference_date, field="reference_date")
    history_months = history_months or settings.trend_months

    expenses = list(expenses)
    current_key = month_key(reference)
    by_month = group_by_month(expenses)
    current = by_month.get(current_key, [])
    past_keys = month_keys_ending(shift_month(reference, -1), history_months)

    alerts = []

    monthly_average = _average_monthly(
        [total_of(by_month.get(key, [])) for key in past_keys]
    )
    current_total = total_of(current)
    ratio = Decimal(str(settings.high_spending_ratio))
    if monthly_average is not None and current_total > monthly_average * ratio:
        alerts.append(FinancialAlert(
            id=f"high-spending-{current_key}",
            type=AlertType.WARNING,
            title="Elevated Spending Alert",
            message=(
                f"This month's spending is more than {round((ratio - 1) * 100)}% "
                "higher than your average. Consider reviewing your expenses."
            ),
            severity=Severity.HIGH,
        ))

    spike = Decimal(str(settings.category_spike_ratio))
    for pattern in patterns:
        category_average = _average_monthly([
            total_of(e for e in by_month.get(key, []) if e.category == pattern.category)
            for key in past_keys
        ])
        category_total = total_of(e for e in current if e.category == pattern.category)
        if category_average is not None and category_total > category_average * spike:
            alerts.append(FinancialAlert(
                id=f"category-spike-{pattern.category.value}",
                type=AlertType.WARNING,
                category=pattern.category,
                title=f"{pattern.category.value} Spending Spike",
                message=(
                    f"Your {pattern.category.value.lower()} spending is "
                    "significantly higher this month."
                ),
                severity=Severity.MEDIUM,
            ))

    for pattern in patterns:
        if (
            pattern.trend == TrendDirection.INCREASING
            and pattern.std_deviation > pattern.average_amount * VOLATILITY_RATIO
        ):
            alerts.append(FinancialAlert(
                id=f"volatility-{pattern.category.value}",
                type=AlertType.INFO,
                category=pattern.category,
                title="Inconsistent Spending Pattern",
                message=(
                    f"Your {pattern.category.value.lower()} expenses vary "
                    "significantly. Consider setting a budget."
                ),
                severity=Severity.LOW,
            ))

    return alerts


def generate_recommendations(patterns: list[ExpensePattern]) -> list[Recommendation]:
    """Actionable suggestions, highest confidence first."""
    recommendations = []

    for pattern in patterns:
        name = pattern.category.value
        if (
            pattern.average_amount > BUDGET_RECOMMENDATION_MIN_AVERAGE
            and pattern.trend == TrendDirection.INCREASING
        ):
            suggested = (pattern.average_amount * Decimal("0.85")).quantize(Decimal("1"))
            recommendations.append(Recommendation(
                id=f"budget-{name}",
                type=RecommendationType.BUDGET,
                category=pattern.category,
                title=f"Optimize {name} Spending",
                description=(
                    f"You're spending above average in {name.lower()}. "
                    "Consider setting a monthly budget."
                ),
                potential_savings=(pattern.average_amount * Decimal("0.15")).quantize(CENT),
                confidence=75,
                priority=Severity.MEDIUM,
                action_steps=[
                    f"Set a monthly {name.lower()} budget of {suggested}",
                    "Track expenses more closely in this category",
                    "Look for cheaper alternatives",
                ],
            ))

    for pattern in patterns:
        if pattern.std_deviation > pattern.average_amount * CONSISTENCY_RATIO:
            name = pattern.category.value
            recommendations.append(Recommendation(
                id=f"consistency-{name}",
                type=RecommendationType.PATTERN,
                category=pattern.category,
                title="Stabilize Spending Pattern",
                description=(
                    f"Your {name.lower()} expenses are inconsistent. "
                    "Regular budgeting could help."
                ),
                potential_savings=(pattern.std_deviation * Decimal("0.3")).quantize(CENT),
                confidence=60,
                priority=Severity.LOW,
                action_steps=[
                    "Set a consistent monthly budget",
                    "Plan expenses in advance",
                    "Review spending weekly",
                ],
            ))

    if patterns and patterns[0].average_amount > SAVINGS_RECOMMENDATION_MIN_AVERAGE:
        highest = patterns[0]
        recommendations.append(Recommendation(
            id="savings-opportunity",
            type=RecommendationType.SAVINGS,
            category=highest.category,
            title="Major Savings Opportunity",
            description=(
                f"{highest.category.value} is your highest expense category. "
                "Small reductions could lead to significant savings."
            ),
            potential_savings=(highest.average_amount * Decimal("0.2")).quantize(CENT),
            confidence=80,
            priority=Severity.HIGH,
            action_steps=[
                "Analyze each expense in this category",
                "Look for subscription services to cancel",
                "Find more cost-effective alternatives",
                "Set spending alerts",
            ],
        ))

    return sorted(recommendations, key=lambda r: r.confidence, reverse=True)


def analyze_finances(
    expenses: Iterable[Expense],
    history: list[DailyExpenses],
    streak: DailyStreak,
    reference_date: Union[date, str],
    trend_months: Optional[int] = None,
) -> FinancialInsight:
    """
    Run every analysis over one expense log.

    Args:
        expenses: The expense log
        history: Daily evaluations over the tracked range
        streak: Current streak counters
        reference_date: The "today" all month windows are anchored to
        trend_months: Months of history to compare (at least 3)
    """
    reference = parse_day(reference_date, field="reference_date")
    expenses = [e for e in expenses if e.date <= reference]
    months = max(trend_months or get_settings().analytics.trend_months, MIN_TREND_MONTHS)

    category_trends = classify_category_trends(expenses, reference, months=months)
    patterns = analyze_patterns(expenses, category_trends)
    alerts = generate_alerts(expenses, patterns, reference, history_months=months)
    recommendations = generate_recommendations(patterns)
    health = score_health(HealthInputs(
        history=history,
        streak=streak,
        category_trends=category_trends,
        alerts=alerts,
    ))

    insight = FinancialInsight(
        total_insights=len(patterns) + len(alerts) + len(recommendations),
        health=health,
        patterns=patterns,
        trends=analyze_trends(expenses, months, reference),
        category_trends=category_trends,
        alerts=alerts,
        recommendations=recommendations,
        duplicates=detect_duplicates(expenses),
        projections=project_next_month(expenses, reference),
    )

    logger.debug(
        "finances_analyzed",
        reference_date=reference.isoformat(),
        patterns=len(patterns),
        alerts=len(alerts),
        recommendations=len(recommendations),
        health_score=health.score,
    )
    return insight

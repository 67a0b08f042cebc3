"""
Trend Analyzer

Month-over-month growth, per-category trend direction, probable duplicate
expenses and next-month projections.

GROWTH RATE POLICY:
- previous month had no transactions -> growth_rate None, is_new_data True
- previous month had transactions summing to 0 -> growth_rate 0.0
- otherwise (current - previous) / previous * 100
Never Infinity, never NaN.

CATEGORY TRENDS AND PROJECTIONS look at complete months only: the months
strictly before the reference month. A month in progress would otherwise
always look like a drop.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Union

from rapidfuzz.distance import Levenshtein

from expense_tracker.analytics.periods import (
    category_totals,
    group_by_month,
    month_key,
    month_keys_ending,
    shift_month,
    sort_expenses,
    total_of,
)
from expense_tracker.config import get_settings
from expense_tracker.models.expense import Expense, ExpenseCategory, empty_breakdown
from expense_tracker.models.insights import (
    CategoryTrend,
    DuplicateExpense,
    MonthlyProjection,
    SpendingTrend,
    TrendDirection,
)
from expense_tracker.validation import InvalidInputError, parse_day


MIN_TREND_MONTHS = 3

# Duplicate confidence: share of the score given to closeness in time
DUPLICATE_TIME_WEIGHT = 0.6
DUPLICATE_DESCRIPTION_WEIGHT = 0.4

# Projection confidence grows with each month of history
PROJECTION_BASE_CONFIDENCE = 40
PROJECTION_CONFIDENCE_PER_MONTH = 15
PROJECTION_HORIZON_DECAY = 10


def growth_rate(
    current_total: Decimal,
    previous_total: Decimal,
    previous_count: int,
) -> tuple[Optional[float], bool]:
    """(growth rate in percent, is_new_data) per the policy above."""
    if previous_count == 0:
        return None, True
    if previous_total == 0:
        return 0.0, False
    return float((current_total - previous_total) / previous_total * 100), False


def analyze_trends(
    expenses: Iterable[Expense],
    months: int,
    reference_date: Union[date, str],
) -> list[SpendingTrend]:
    """
    Totals and growth of `months` consecutive months ending at the
    reference month, oldest first. Empty months are included.
    """
    if months < 1:
        raise InvalidInputError("months must be at least 1", field="months", value=months)
    reference = parse_day(reference_date, field="reference_date")

    by_month = group_by_month(expenses)
    keys = month_keys_ending(reference, months)
    previous_key = month_key(shift_month(reference, -months))

    trends = []
    for key in keys:
        current = by_month.get(key, [])
        previous = by_month.get(previous_key, [])
        total = total_of(current)
        rate, is_new = growth_rate(total, total_of(previous), len(previous))
        trends.append(SpendingTrend(
            month=key,
            total=total,
            transaction_count=len(current),
            category_breakdown=category_totals(current),
            growth_rate=rate,
            is_new_data=is_new,
        ))
        previous_key = key
    return trends


def classify_direction(
    totals: list[Decimal],
    noise_threshold: float,
) -> TrendDirection:
    """
    increasing: every month rises by more than the threshold over the last
    decreasing: every month falls by more than the threshold
    stable:     anything else
    """
    if len(totals) < 2:
        return TrendDirection.STABLE

    threshold = Decimal(str(noise_threshold))
    steps = list(zip(totals, totals[1:]))
    if all(current > previous * (1 + threshold) for previous, current in steps):
        return TrendDirection.INCREASING
    if all(current < previous * (1 - threshold) for previous, current in steps):
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


def classify_category_trends(
    expenses: Iterable[Expense],
    reference_date: Union[date, str],
    months: Optional[int] = None,
    noise_threshold: Optional[float] = None,
) -> list[CategoryTrend]:
    """
    Trend direction of every category over the last `months` complete months.

    Raises:
        InvalidInputError: If fewer than 3 months are requested
    """
    settings = get_settings().analytics
    months = settings.trend_months if months is None else months
    if noise_threshold is None:
        noise_threshold = settings.trend_noise_threshold
    if months < MIN_TREND_MONTHS:
        raise InvalidInputError(
            f"Trend classification needs at least {MIN_TREND_MONTHS} months",
            field="months",
            value=months,
        )
    reference = parse_day(reference_date, field="reference_date")

    keys = month_keys_ending(shift_month(reference, -1), months)
    by_month = group_by_month(expenses)
    per_month = [category_totals(by_month.get(key, [])) for key in keys]

    result = []
    for category in ExpenseCategory:
        totals = [month_totals[category] for month_totals in per_month]
        result.append(CategoryTrend(
            category=category,
            direction=classify_direction(totals, noise_threshold),
            months=keys,
            monthly_totals=totals,
        ))
    return result


def description_similarity(first: str, second: str) -> float:
    """
    1 minus the edit distance over the longer description, case and
    padding ignored. Two empty descriptions are identical.
    """
    return Levenshtein.normalized_similarity(
        first.strip().lower(), second.strip().lower()
    )


def duplicate_confidence(days_apart: int, window_days: int, similarity: float) -> int:
    """
    100 for an identical description on the same day, lower as the gap
    grows and the descriptions diverge.
    """
    time_score = 1 - days_apart / (window_days + 1)
    score = DUPLICATE_TIME_WEIGHT * time_score + DUPLICATE_DESCRIPTION_WEIGHT * similarity
    return max(0, min(100, round(score * 100)))


def detect_duplicates(
    expenses: Iterable[Expense],
    window_days: Optional[int] = None,
) -> list[DuplicateExpense]:
    """
    Pairs with identical amount and category logged within the window.

    Pairs are reported in chronological order of the earlier expense.
    """
    if window_days is None:
        window_days = get_settings().analytics.duplicate_window_days

    ordered = sort_expenses(expenses)
    pairs = []
    for index, first in enumerate(ordered):
        for second in ordered[index + 1:]:
            gap = (second.date - first.date).days
            if gap > window_days:
                break
            if second.amount != first.amount or second.category != first.category:
                continue

            similarity = description_similarity(first.description, second.description)
            reason = f"Same amount and category, {gap} day(s) apart"
            if similarity == 1.0:
                reason += ", identical description"
            pairs.append(DuplicateExpense(
                original=first.id,
                duplicate=second.id,
                confidence=duplicate_confidence(gap, window_days, similarity),
                days_apart=gap,
                description_similarity=round(similarity, 4),
                reason=reason,
            ))
    return pairs


def projection_confidence(
    based_on_months: int,
    months_ahead: int = 1,
) -> int:
    """Fewer months of history, or a more distant month, lowers confidence."""
    settings = get_settings().analytics
    confidence = min(
        settings.projection_max_confidence,
        PROJECTION_BASE_CONFIDENCE + PROJECTION_CONFIDENCE_PER_MONTH * based_on_months,
    )
    confidence -= PROJECTION_HORIZON_DECAY * (months_ahead - 1)
    return max(settings.projection_min_confidence, confidence)


def project_next_month(
    expenses: Iterable[Expense],
    reference_date: Union[date, str],
    based_on_months: Optional[int] = None,
    horizon: int = 1,
) -> list[MonthlyProjection]:
    """
    Project the months after the reference month.

    Each category is projected at the average of its totals over the
    `based_on_months` complete months before the reference month.

    Raises:
        InvalidInputError: If based_on_months or horizon is below 1
    """
    if based_on_months is None:
        based_on_months = get_settings().analytics.projection_months
    if based_on_months < 1:
        raise InvalidInputError(
            "based_on_months must be at least 1",
            field="based_on_months",
            value=based_on_months,
        )
    if horizon < 1:
        raise InvalidInputError("horizon must be at least 1", field="horizon", value=horizon)
    reference = parse_day(reference_date, field="reference_date")

    keys = month_keys_ending(shift_month(reference, -1), based_on_months)
    by_month = group_by_month(expenses)
    sums = empty_breakdown()
    for key in keys:
        for category, amount in category_totals(by_month.get(key, [])).items():
            sums[category] += amount

    per_category = {
        category: (amount / based_on_months).quantize(Decimal("0.01"))
        for category, amount in sums.items()
    }
    projected_total = sum(per_category.values(), Decimal("0"))

    return [
        MonthlyProjection(
            month=month_key(shift_month(reference, ahead)),
            projected_total=projected_total,
            category_projections=per_category,
            confidence=projection_confidence(based_on_months, ahead),
            based_on_months=based_on_months,
        )
        for ahead in range(1, horizon + 1)
    ]

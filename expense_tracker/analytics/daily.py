"""
Daily Budget Evaluator

Turns the expenses of one calendar day into a DailyExpenses record:
total spent, remaining budget and a tri-state status.

    under   total_spent <  near_threshold x limit
    near    near_threshold x limit <= total_spent <= limit
    over    total_spent >  limit

A zero limit makes any positive spend 'over' and zero spend 'under'.

The dashboard card (daily_progress) uses four bands instead: excellent up
to 50% of the limit, good up to 75%, warning up to 100%, then over.

DAILY BUDGET POLICY: a category's daily budget is its monthly budget divided
by the number of calendar days of the month being evaluated. The same
policy is used by the category achievements and the monthly analysis.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Union

from expense_tracker.analytics.periods import (
    category_totals,
    group_by_day,
    iter_days,
    month_key,
    total_of,
)
from expense_tracker.analytics.summary import percentage_of, rank_categories
from expense_tracker.config import get_settings
from expense_tracker.models.expense import Expense, ExpenseCategory
from expense_tracker.models.profile import UserProfile, days_in_month
from expense_tracker.models.tracker import (
    BudgetStatus,
    CalendarDay,
    CalendarStatus,
    CategoryBudgetUsage,
    DailyAverages,
    DailyExpenses,
    DailyProgress,
    MonthlyAnalysis,
    ProgressStatus,
    WeeklyAnalysis,
)
from expense_tracker.validation import (
    InvalidDateError,
    InvalidProfileError,
    parse_day,
    validate_profile,
)


DAYS_PER_WEEK = 7
WEEKLY_TOP_CATEGORIES = 5

# Upper bound of each progress band, as a share of the daily limit
PROGRESS_BANDS = (
    (Decimal("0.50"), ProgressStatus.EXCELLENT),
    (Decimal("0.75"), ProgressStatus.GOOD),
    (Decimal("1"), ProgressStatus.WARNING),
)


def _near_threshold(value: Optional[float]) -> Decimal:
    if value is None:
        value = get_settings().analytics.near_budget_threshold
    return Decimal(str(value))


def classify_budget_status(
    total_spent: Decimal,
    limit: Decimal,
    near_threshold: Optional[float] = None,
) -> BudgetStatus:
    """Pure function of spend and limit."""
    if limit == 0:
        return BudgetStatus.OVER if total_spent > 0 else BudgetStatus.UNDER
    if total_spent > limit:
        return BudgetStatus.OVER
    if total_spent >= limit * _near_threshold(near_threshold):
        return BudgetStatus.NEAR
    return BudgetStatus.UNDER


def daily_limit_for(
    profile: UserProfile,
    day: date,
    category: Optional[ExpenseCategory] = None,
) -> Decimal:
    """
    The limit that applies to a day.

    Raises:
        InvalidProfileError: If a category is requested but has no budget
    """
    if category is None:
        return profile.daily_limit

    budget = profile.budget_for(category)
    if budget is None:
        raise InvalidProfileError(
            f"No budget configured for category {category.value}",
            field="category_budgets",
            value=category.value,
        )
    return budget.daily_budget_on(day)


def evaluate_day(
    day: Union[date, str],
    profile: UserProfile,
    expenses_on_date: Iterable[Expense],
    category: Optional[ExpenseCategory] = None,
    near_threshold: Optional[float] = None,
) -> DailyExpenses:
    """
    Evaluate one calendar day against the profile's limit.

    Args:
        day: The day, as a date or ISO YYYY-MM-DD string
        profile: Budget configuration
        expenses_on_date: Expenses logged on that day
        category: Evaluate one category against its own daily budget

    Raises:
        InvalidDateError: Malformed day, or an expense dated another day
        InvalidProfileError: Negative limits or budgets
    """
    target = parse_day(day)
    profile = validate_profile(profile)
    limit = daily_limit_for(profile, target, category)

    selected = []
    for expense in expenses_on_date:
        if expense.date != target:
            raise InvalidDateError(
                f"Expense {expense.id} is dated {expense.date}, not {target}",
                field="expenses_on_date",
                value=expense.id,
            )
        if category is None or expense.category == category:
            selected.append(expense)

    total = total_of(selected)
    return DailyExpenses(
        date=target,
        expenses=[e.id for e in selected],
        total_spent=total,
        daily_limit=limit,
        remaining_budget=limit - total,
        budget_status=classify_budget_status(total, limit, near_threshold),
    )


def classify_progress(spent: Decimal, limit: Decimal) -> ProgressStatus:
    """Band of the dashboard card; a zero limit rates any spend as over."""
    for share, status in PROGRESS_BANDS:
        if spent <= limit * share:
            return status
    return ProgressStatus.OVER


def daily_progress(
    expenses: Iterable[Expense],
    profile: UserProfile,
    reference_date: Union[date, str],
) -> DailyProgress:
    """
    Progress of the reference day against the overall daily limit.

    warnings_reached lists the profile's limit-warning thresholds that
    the spend has met, empty when warnings are disabled or nothing was
    spent.

    Raises:
        InvalidDateError: Malformed reference date
        InvalidProfileError: Negative limits or budgets
    """
    day = parse_day(reference_date, field="reference_date")
    profile = validate_profile(profile)
    limit = profile.daily_limit

    todays = [e for e in expenses if e.date == day]
    spent = total_of(todays)

    warnings = profile.notification_settings.limit_warnings
    reached = []
    if warnings.enabled and spent > 0:
        reached = [t for t in warnings.thresholds if spent * 100 >= limit * t]

    top = rank_categories(category_totals(todays), spent, limit=1, include_empty=False)
    return DailyProgress(
        date=day,
        spent=spent,
        budget=limit,
        percentage=percentage_of(spent, limit),
        status=classify_progress(spent, limit),
        transactions=len(todays),
        top_category=top[0].category if top else None,
        warnings_reached=reached,
    )


def build_daily_history(
    expenses: Iterable[Expense],
    profile: UserProfile,
    start: Union[date, str],
    end: Union[date, str],
    near_threshold: Optional[float] = None,
) -> list[DailyExpenses]:
    """
    One evaluation per calendar day in [start, end], oldest first.

    Days without expenses are included; they are the "no data" days the
    streak tracker treats as violations.
    """
    first = parse_day(start, field="start")
    last = parse_day(end, field="end")
    if last < first:
        raise InvalidDateError(
            f"History end {last} is before start {first}",
            field="end",
            value=last,
        )

    by_day = group_by_day(e for e in expenses if first <= e.date <= last)
    return [
        evaluate_day(day, profile, by_day.get(day, []), near_threshold=near_threshold)
        for day in iter_days(first, last)
    ]


def tracked_range(
    expenses: Iterable[Expense],
    reference_date: date,
) -> Optional[tuple[date, date]]:
    """From the first logged day up to the reference day, if anything was logged."""
    dates = [e.date for e in expenses if e.date <= reference_date]
    if not dates:
        return None
    return min(dates), reference_date


def weekly_analysis(
    expenses: Iterable[Expense],
    profile: UserProfile,
    week_start: Union[date, str],
) -> WeeklyAnalysis:
    """Seven days starting at week_start."""
    start = parse_day(week_start, field="week_start")
    end = start + timedelta(days=DAYS_PER_WEEK - 1)
    profile = validate_profile(profile)

    week = [e for e in expenses if start <= e.date <= end]
    total = total_of(week)
    weekly_budget = profile.daily_limit * DAYS_PER_WEEK
    by_day = group_by_day(week)

    within_limit = sum(
        1 for day in iter_days(start, end)
        if total_of(by_day.get(day, [])) <= profile.daily_limit
    )

    return WeeklyAnalysis(
        week_start=start,
        week_end=end,
        total_spent=total,
        budget_used=percentage_of(total, weekly_budget),
        daily_averages=DailyAverages(
            spent=(total / DAYS_PER_WEEK).quantize(Decimal("0.01")),
            budget=profile.daily_limit,
        ),
        streak_days=within_limit,
        top_categories=rank_categories(
            category_totals(week),
            total,
            limit=WEEKLY_TOP_CATEGORIES,
            include_empty=False,
        ),
    )


def monthly_analysis(
    expenses: Iterable[Expense],
    profile: UserProfile,
    year: int,
    month: int,
) -> MonthlyAnalysis:
    """One calendar month with per-category budget usage."""
    try:
        start = date(year, month, 1)
    except ValueError as e:
        raise InvalidDateError(str(e), field="month", value=f"{year}-{month}") from e
    profile = validate_profile(profile)

    key = month_key(start)
    month_days = days_in_month(year, month)
    end = start.replace(day=month_days)
    month_expenses = [e for e in expenses if e.month_key == key]
    total = total_of(month_expenses)
    totals = category_totals(month_expenses)
    by_day = group_by_day(month_expenses)

    breakdown = []
    for share in rank_categories(totals, total, include_empty=False):
        budget = profile.budget_for(share.category)
        breakdown.append(CategoryBudgetUsage(
            category=share.category,
            spent=share.amount,
            budget=budget.monthly_budget if budget else Decimal("0"),
            percentage=share.percentage,
        ))

    monthly_budget = profile.monthly_limit(year, month)
    return MonthlyAnalysis(
        month=key,
        total_spent=total,
        total_budget=monthly_budget,
        budget_used=percentage_of(total, monthly_budget),
        daily_averages=DailyAverages(
            spent=(total / month_days).quantize(Decimal("0.01")),
            budget=profile.daily_limit,
        ),
        category_breakdown=breakdown,
        streak_days=sum(
            1 for day in iter_days(start, end)
            if total_of(by_day.get(day, [])) <= profile.daily_limit
        ),
    )


def calendar_days(
    expenses: Iterable[Expense],
    profile: UserProfile,
    year: int,
    month: int,
    reference_date: Union[date, str],
) -> list[CalendarDay]:
    """Cells of the monthly calendar view."""
    today = parse_day(reference_date, field="reference_date")
    try:
        start = date(year, month, 1)
    except ValueError as e:
        raise InvalidDateError(str(e), field="month", value=f"{year}-{month}") from e
    profile = validate_profile(profile)

    end = start.replace(day=days_in_month(year, month))
    by_day = group_by_day(e for e in expenses if start <= e.date <= end)

    cells = []
    for day in iter_days(start, end):
        logged = by_day.get(day, [])
        spent = total_of(logged)
        if logged:
            status = (
                CalendarStatus.COMPLETED
                if spent <= profile.daily_limit
                else CalendarStatus.OVER_BUDGET
            )
        elif day < today:
            status = CalendarStatus.INCOMPLETE
        else:
            status = CalendarStatus.NO_DATA

        cells.append(CalendarDay(
            date=day,
            spent=spent,
            budget=profile.daily_limit,
            status=status,
            is_today=day == today,
            is_current_month=(day.year, day.month) == (today.year, today.month),
        ))
    return cells

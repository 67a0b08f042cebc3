"""
Achievement Engine

A fixed, versioned catalog of achievements, each measured by a progress
function over the current derived state.

GUARANTEES:
- Unlock happens when progress >= target and the achievement is not
  already unlocked
- Unlocking is idempotent: an achievement unlocked in a previous pass keeps
  its unlocked_at and is pinned at progress == target
- Achievements unlocked in the same pass share one timestamp and are
  reported in catalog declaration order

Bump CATALOG_VERSION whenever a definition's id, metric or target changes.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.analytics.periods import (
    group_by_day,
    group_by_month,
    iter_days,
    month_key,
    shift_month,
    total_of,
)
from expense_tracker.config import get_settings
from expense_tracker.models.expense import Expense, ExpenseCategory, utc_now
from expense_tracker.models.profile import UserProfile
from expense_tracker.models.tracker import (
    Achievement,
    AchievementType,
    DailyStreak,
)


CATALOG_VERSION = 1


class AchievementMetric(str, Enum):
    """What an achievement's progress measures."""
    CURRENT_STREAK = "current_streak"
    EXPENSES_LOGGED = "expenses_logged"
    DAYS_TRACKED = "days_tracked"
    CUMULATIVE_SAVINGS = "cumulative_savings"
    CATEGORY_COMPLIANCE = "category_compliance"


class AchievementDefinition(BaseModel):
    """One entry of the catalog."""
    model_config = ConfigDict(frozen=True)

    id: str
    type: AchievementType
    metric: AchievementMetric
    title: str
    description: str
    icon: str
    target: Decimal = Field(..., gt=0)
    category: Optional[ExpenseCategory] = None


ACHIEVEMENT_CATALOG: tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        id="first-expense",
        type=AchievementType.MILESTONE,
        metric=AchievementMetric.EXPENSES_LOGGED,
        title="First Step",
        description="You logged your first expense!",
        icon="🎯",
        target=Decimal("1"),
    ),
    AchievementDefinition(
        id="streak-7",
        type=AchievementType.STREAK,
        metric=AchievementMetric.CURRENT_STREAK,
        title="Week Warrior",
        description="7 days in a row!",
        icon="🔥",
        target=Decimal("7"),
    ),
    AchievementDefinition(
        id="days-tracked-30",
        type=AchievementType.MILESTONE,
        metric=AchievementMetric.DAYS_TRACKED,
        title="Habit Builder",
        description="Expenses logged on 30 different days",
        icon="📅",
        target=Decimal("30"),
    ),
    AchievementDefinition(
        id="streak-30",
        type=AchievementType.STREAK,
        metric=AchievementMetric.CURRENT_STREAK,
        title="Monthly Master",
        description="30 days in a row!",
        icon="💎",
        target=Decimal("30"),
    ),
    AchievementDefinition(
        id="expenses-50",
        type=AchievementType.MILESTONE,
        metric=AchievementMetric.EXPENSES_LOGGED,
        title="Dedicated Logger",
        description="50 expenses logged",
        icon="📝",
        target=Decimal("50"),
    ),
    AchievementDefinition(
        id="saver-100",
        type=AchievementType.SAVING,
        metric=AchievementMetric.CUMULATIVE_SAVINGS,
        title="Penny Saver",
        description="100 kept under your monthly budgets",
        icon="🐷",
        target=Decimal("100"),
    ),
    AchievementDefinition(
        id="food-focus",
        type=AchievementType.CATEGORY,
        metric=AchievementMetric.CATEGORY_COMPLIANCE,
        title="Mindful Eater",
        description="30 days within your food budget",
        icon="🍽️",
        target=Decimal("30"),
        category=ExpenseCategory.FOOD,
    ),
    AchievementDefinition(
        id="shopping-control",
        type=AchievementType.CATEGORY,
        metric=AchievementMetric.CATEGORY_COMPLIANCE,
        title="Smart Shopper",
        description="30 days within your shopping budget",
        icon="🛍️",
        target=Decimal("30"),
        category=ExpenseCategory.SHOPPING,
    ),
    AchievementDefinition(
        id="streak-100",
        type=AchievementType.STREAK,
        metric=AchievementMetric.CURRENT_STREAK,
        title="Century Club",
        description="100 days in a row!",
        icon="🏆",
        target=Decimal("100"),
    ),
    AchievementDefinition(
        id="saver-1000",
        type=AchievementType.SAVING,
        metric=AchievementMetric.CUMULATIVE_SAVINGS,
        title="Super Saver",
        description="1000 kept under your monthly budgets",
        icon="🏦",
        target=Decimal("1000"),
    ),
)


class AchievementState(BaseModel):
    """The derived signals achievements are measured against."""

    streak: DailyStreak = Field(default_factory=DailyStreak)
    expenses_logged: int = Field(default=0, ge=0)
    days_tracked: int = Field(default=0, ge=0)
    cumulative_savings: Decimal = Field(default=Decimal("0"), ge=0)
    category_compliance: dict[ExpenseCategory, int] = Field(
        default_factory=dict,
        description="Compliant days in the rolling window, per budgeted category"
    )


class AchievementResult(BaseModel):
    achievements: list[Achievement] = Field(default_factory=list)
    newly_unlocked: list[str] = Field(
        default_factory=list,
        description="IDs unlocked by this pass, in catalog order"
    )

    @property
    def unlocked(self) -> list[Achievement]:
        return [a for a in self.achievements if a.is_unlocked]


def measure(definition: AchievementDefinition, state: AchievementState) -> Decimal:
    """Current progress towards one achievement."""
    if definition.metric == AchievementMetric.CURRENT_STREAK:
        return Decimal(state.streak.current_streak)
    if definition.metric == AchievementMetric.EXPENSES_LOGGED:
        return Decimal(state.expenses_logged)
    if definition.metric == AchievementMetric.DAYS_TRACKED:
        return Decimal(state.days_tracked)
    if definition.metric == AchievementMetric.CUMULATIVE_SAVINGS:
        return state.cumulative_savings
    if definition.metric == AchievementMetric.CATEGORY_COMPLIANCE:
        return Decimal(state.category_compliance.get(definition.category, 0))
    raise ValueError(f"Unknown achievement metric: {definition.metric}")


def _achievement(
    definition: AchievementDefinition,
    progress: Decimal,
    unlocked_at: Optional[datetime],
) -> Achievement:
    return Achievement(
        id=definition.id,
        type=definition.type,
        title=definition.title,
        description=definition.description,
        icon=definition.icon,
        unlocked_at=unlocked_at,
        progress=progress,
        target=definition.target,
    )


def recompute_achievements(
    state: AchievementState,
    previous: Optional[Iterable[Achievement]] = None,
    now: Optional[datetime] = None,
    catalog: tuple[AchievementDefinition, ...] = ACHIEVEMENT_CATALOG,
) -> AchievementResult:
    """
    Measure every achievement and unlock the ones that reached their target.

    Args:
        state: Current derived signals
        previous: Achievements from an earlier pass (unlock timestamps kept)
        now: Timestamp for achievements unlocked by this pass
    """
    now = now or utc_now()
    unlocked_before = {
        a.id: a.unlocked_at for a in (previous or []) if a.unlocked_at is not None
    }

    achievements = []
    newly_unlocked = []
    for definition in catalog:
        if definition.id in unlocked_before:
            achievements.append(_achievement(
                definition, definition.target, unlocked_before[definition.id]
            ))
            continue

        progress = measure(definition, state)
        if progress >= definition.target:
            achievements.append(_achievement(definition, definition.target, now))
            newly_unlocked.append(definition.id)
        else:
            achievements.append(_achievement(definition, progress, None))

    return AchievementResult(achievements=achievements, newly_unlocked=newly_unlocked)


def cumulative_savings(
    expenses: Iterable[Expense],
    profile: UserProfile,
    reference_date: date,
) -> Decimal:
    """
    Amount kept under the monthly budget, summed over completed months.

    Months run from the first logged month up to the month before the
    reference month; the month in progress is not counted. Overspent months
    contribute zero.
    """
    by_month = group_by_month(e for e in expenses if e.date <= reference_date)
    if not by_month:
        return Decimal("0")

    current_key = month_key(reference_date)
    first_key = min(by_month)
    savings = Decimal("0")
    cursor = date(int(first_key[:4]), int(first_key[5:]), 1)
    while month_key(cursor) < current_key:
        spent = total_of(by_month.get(month_key(cursor), []))
        budget = profile.monthly_limit(cursor.year, cursor.month)
        savings += max(Decimal("0"), budget - spent)
        cursor = shift_month(cursor, 1)
    return savings


def category_compliance(
    expenses: Iterable[Expense],
    profile: UserProfile,
    reference_date: date,
    window_days: int,
) -> dict[ExpenseCategory, int]:
    """
    Days within each budgeted category's daily budget over the trailing window.

    The window ends at the reference day and never starts before the first
    logged day. Categories without a budget are not reported.
    """
    logged = [e for e in expenses if e.date <= reference_date]
    if not logged:
        return {}

    first_day = min(e.date for e in logged)
    start = max(first_day, reference_date - timedelta(days=window_days - 1))
    by_day = group_by_day(e for e in logged if e.date >= start)

    compliance = {}
    for budget in profile.category_budgets:
        compliance[budget.category] = sum(
            1 for day in iter_days(start, reference_date)
            if total_of(
                e for e in by_day.get(day, []) if e.category == budget.category
            ) <= budget.daily_budget_on(day)
        )
    return compliance


def build_achievement_state(
    expenses: Iterable[Expense],
    profile: UserProfile,
    streak: DailyStreak,
    reference_date: date,
    window_days: Optional[int] = None,
) -> AchievementState:
    """Collect every signal the catalog measures."""
    if window_days is None:
        window_days = get_settings().analytics.category_window_days

    expenses = [e for e in expenses if e.date <= reference_date]
    return AchievementState(
        streak=streak,
        expenses_logged=len(expenses),
        days_tracked=len({e.date for e in expenses}),
        cumulative_savings=cumulative_savings(expenses, profile, reference_date),
        category_compliance=category_compliance(
            expenses, profile, reference_date, window_days
        ),
    )

"""
Daily Tracker Models

Derived read-models of the daily budget tracker: per-day budget status,
streaks, achievements and the weekly/monthly/calendar views.

CRITICAL: None of these is a source of truth. They are recomputed from the
expense log and the profile on every query. The only exception is the
unlock timestamp of an achievement, which must survive recomputation.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from expense_tracker.models.expense import RECORD_CONFIG, CategoryShare, ExpenseCategory


FROZEN_RECORD_CONFIG = ConfigDict(**RECORD_CONFIG, frozen=True)


# =============================================================================
# ENUMS
# =============================================================================

class BudgetStatus(str, Enum):
    """Tri-state status of one day against its limit."""
    UNDER = "under"  # below the near threshold
    NEAR = "near"    # between the near threshold and the limit, inclusive
    OVER = "over"    # strictly above the limit


class StreakType(str, Enum):
    """Rule a day must satisfy to extend a streak."""
    UNDER_BUDGET = "under_budget"
    LOGGED_EXPENSES = "logged_expenses"


class StreakState(str, Enum):
    NO_STREAK = "no_streak"
    ACTIVE = "active"
    BROKEN = "broken"


class AchievementType(str, Enum):
    STREAK = "streak"
    SAVING = "saving"
    CATEGORY = "category"
    MILESTONE = "milestone"


class CalendarStatus(str, Enum):
    """Status of one cell of the monthly calendar."""
    COMPLETED = "completed"      # logged and within the limit
    INCOMPLETE = "incomplete"    # past day with nothing logged
    OVER_BUDGET = "over_budget"
    NO_DATA = "no_data"          # today or future, nothing logged


class ProgressStatus(str, Enum):
    """Rating of the day so far, by share of the daily limit spent."""
    EXCELLENT = "excellent"  # at most 50%
    GOOD = "good"            # at most 75%
    WARNING = "warning"      # at most 100%
    OVER = "over"


# =============================================================================
# DAILY MODELS
# =============================================================================

class DailyExpenses(BaseModel):
    """
    Budget evaluation of one calendar day.

    Acts as a cache keyed by date: any add/update/delete touching the
    date invalidates it.
    """
    model_config = FROZEN_RECORD_CONFIG

    date: date
    expenses: list[str] = Field(
        default_factory=list,
        description="IDs of the expenses logged on this day"
    )
    total_spent: Decimal = Decimal("0")
    daily_limit: Decimal = Decimal("0")
    remaining_budget: Decimal = Field(
        ...,
        description="daily_limit - total_spent, negative when over"
    )
    budget_status: BudgetStatus

    @property
    def has_data(self) -> bool:
        """Was anything logged on this day?"""
        return len(self.expenses) > 0


class DailyProgress(BaseModel):
    """The "today" card of the dashboard."""
    model_config = RECORD_CONFIG

    date: date
    spent: Decimal
    budget: Decimal
    percentage: float = Field(
        ...,
        ge=0,
        description="Spend as a percentage of the daily limit, 0 for a zero limit"
    )
    status: ProgressStatus
    transactions: int = Field(..., ge=0)
    top_category: Optional[ExpenseCategory] = None
    warnings_reached: list[int] = Field(
        default_factory=list,
        description="Profile warning thresholds (percent) the spend has reached"
    )


class DailyStreak(BaseModel):
    """
    Streak counters under one streak rule.

    INVARIANT: longest_streak >= current_streak >= 0.
    """
    model_config = FROZEN_RECORD_CONFIG

    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_streak_date: Optional[date] = Field(
        default=None,
        description="Most recently evaluated day, whatever its outcome"
    )
    streak_type: StreakType = StreakType.UNDER_BUDGET

    @model_validator(mode='after')
    def validate_counters(self) -> 'DailyStreak':
        if self.longest_streak < self.current_streak:
            raise ValueError("longestStreak cannot be below currentStreak")
        return self


class Achievement(BaseModel):
    """
    An achievement from the catalog with its progress.

    unlocked_at is set at most once. After unlock, progress is pinned
    at target.
    """
    model_config = RECORD_CONFIG

    id: str
    type: AchievementType
    title: str
    description: str
    icon: str = ""
    unlocked_at: Optional[datetime] = None
    progress: Decimal = Field(default=Decimal("0"), ge=0)
    target: Decimal = Field(..., gt=0)

    @property
    def is_unlocked(self) -> bool:
        return self.unlocked_at is not None

    @model_validator(mode='after')
    def validate_progress(self) -> 'Achievement':
        if self.unlocked_at is not None and self.progress > self.target:
            raise ValueError("Unlocked achievement progress cannot exceed target")
        return self


# =============================================================================
# PERIOD VIEWS
# =============================================================================

class DailyAverages(BaseModel):
    model_config = RECORD_CONFIG

    spent: Decimal
    budget: Decimal


class WeeklyAnalysis(BaseModel):
    """Seven-day view starting at week_start."""
    model_config = RECORD_CONFIG

    week_start: date
    week_end: date
    total_spent: Decimal
    budget_used: float = Field(
        ...,
        description="Percentage of the weekly budget (daily limit x 7) used"
    )
    daily_averages: DailyAverages
    streak_days: int = Field(..., ge=0, le=7)
    top_categories: list[CategoryShare] = Field(default_factory=list)


class CategoryBudgetUsage(BaseModel):
    model_config = RECORD_CONFIG

    category: ExpenseCategory
    spent: Decimal
    budget: Decimal
    percentage: float = Field(
        ...,
        description="Share of the month's total spent in this category"
    )


class MonthlyAnalysis(BaseModel):
    """Calendar month view with per-category budget usage."""
    model_config = RECORD_CONFIG

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    total_spent: Decimal
    total_budget: Decimal
    budget_used: float
    daily_averages: DailyAverages
    category_breakdown: list[CategoryBudgetUsage] = Field(default_factory=list)
    streak_days: int = Field(..., ge=0)


class CalendarDay(BaseModel):
    model_config = RECORD_CONFIG

    date: date
    spent: Decimal
    budget: Decimal
    status: CalendarStatus
    is_today: bool
    is_current_month: bool

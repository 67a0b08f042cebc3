"""
User Profile Models

Exactly one active profile exists per installation. It carries the daily
limit and the per-category monthly budgets every budget computation uses.

DESIGN DECISION: Budget fields are NOT range-constrained here. A profile
can be loaded from storage as-is; whether its numbers are usable is decided
by ProfileValidator, which reports the offending field instead of failing
deep inside pydantic.
"""

import calendar
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from expense_tracker.models.expense import RECORD_CONFIG, ExpenseCategory, utc_now


# Share of income assumed to be available for day-to-day expenses
DEFAULT_SPENDING_SHARE = Decimal("0.7")
DEFAULT_DAYS_PER_MONTH = 30


def days_in_month(year: int, month: int) -> int:
    """Number of calendar days in a month."""
    return calendar.monthrange(year, month)[1]


class CategoryBudget(BaseModel):
    """
    Monthly budget for one category.

    The daily budget is derived, never stored: monthly budget divided by
    the number of calendar days in the month being evaluated.
    """
    model_config = RECORD_CONFIG

    category: ExpenseCategory
    monthly_budget: Decimal

    def daily_budget_on(self, day: date) -> Decimal:
        """Daily share of the monthly budget for the month containing day."""
        return self.monthly_budget / days_in_month(day.year, day.month)


class DailyReminder(BaseModel):
    model_config = RECORD_CONFIG

    enabled: bool = False
    time: str = Field(
        default="18:00",
        pattern=r"^([01]\d|2[0-3]):[0-5]\d$",
        description="HH:MM local time"
    )


class LimitWarnings(BaseModel):
    model_config = RECORD_CONFIG

    enabled: bool = True
    thresholds: list[int] = Field(
        default_factory=lambda: [75, 90, 100],
        description="Percentages of the daily limit that trigger a warning"
    )

    @field_validator('thresholds')
    @classmethod
    def sort_thresholds(cls, v: list[int]) -> list[int]:
        """Thresholds are percentages, kept in ascending order."""
        if any(t <= 0 or t > 200 for t in v):
            raise ValueError("Warning thresholds must be in (0, 200]")
        return sorted(set(v))


class AchievementNotifications(BaseModel):
    model_config = RECORD_CONFIG

    enabled: bool = True


class NotificationSettings(BaseModel):
    """Notification preferences (delivery itself is a UI concern)."""
    model_config = RECORD_CONFIG

    enabled: bool = False
    daily_reminder: DailyReminder = Field(default_factory=DailyReminder)
    limit_warnings: LimitWarnings = Field(default_factory=LimitWarnings)
    achievements: AchievementNotifications = Field(
        default_factory=AchievementNotifications
    )


class UserProfile(BaseModel):
    """The single active budget configuration."""
    model_config = RECORD_CONFIG

    id: str = Field(default_factory=lambda: str(uuid4()), min_length=1)
    monthly_income: Decimal = Decimal("0")
    currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="ISO 4217 code; the core never converts currencies"
    )
    daily_limit: Decimal = Field(
        ...,
        description="Maximum intended spend per calendar day"
    )
    category_budgets: list[CategoryBudget] = Field(default_factory=list)
    notification_settings: NotificationSettings = Field(
        default_factory=NotificationSettings
    )
    language: str = "en"
    timezone: str = "UTC"
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def budget_for(self, category: ExpenseCategory) -> Optional[CategoryBudget]:
        """The budget configured for a category, if any."""
        for budget in self.category_budgets:
            if budget.category == category:
                return budget
        return None

    def monthly_limit(self, year: int, month: int) -> Decimal:
        """Overall monthly budget implied by the daily limit."""
        return self.daily_limit * days_in_month(year, month)

    def to_record(self) -> dict:
        """JSON-ready representation for storage."""
        return self.model_dump(mode="json", by_alias=True)


def create_default_profile(
    monthly_income: Decimal,
    currency: str = "USD",
    language: str = "en",
    timezone: str = "UTC",
) -> UserProfile:
    """
    Build the profile proposed during onboarding.

    The recommended daily limit assumes 70% of income goes to expenses,
    spread over a 30-day month.
    """
    income = Decimal(str(monthly_income))
    daily_limit = (income * DEFAULT_SPENDING_SHARE / DEFAULT_DAYS_PER_MONTH)
    return UserProfile(
        monthly_income=income,
        currency=currency,
        daily_limit=daily_limit.quantize(Decimal("0.01")),
        language=language,
        timezone=timezone,
    )

"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.expense import (
    CategoryShare,
    Expense,
    ExpenseCategory,
    ExpenseFilters,
    ExpenseSummary,
    ExportData,
    empty_breakdown,
    utc_now,
)
from expense_tracker.models.profile import (
    CategoryBudget,
    NotificationSettings,
    UserProfile,
    create_default_profile,
    days_in_month,
)
from expense_tracker.models.tracker import (
    Achievement,
    AchievementType,
    BudgetStatus,
    CalendarDay,
    CalendarStatus,
    CategoryBudgetUsage,
    DailyAverages,
    DailyExpenses,
    DailyProgress,
    DailyStreak,
    MonthlyAnalysis,
    ProgressStatus,
    StreakState,
    StreakType,
    WeeklyAnalysis,
)
from expense_tracker.models.insights import (
    AlertType,
    CategoryTrend,
    DuplicateExpense,
    ExpensePattern,
    FinancialAlert,
    FinancialInsight,
    HealthScore,
    HealthTier,
    MonthlyProjection,
    Recommendation,
    RecommendationType,
    Severity,
    SpendingTrend,
    TrendDirection,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "CategoryShare",
    "Expense",
    "ExpenseCategory",
    "ExpenseFilters",
    "ExpenseSummary",
    "ExportData",
    "empty_breakdown",
    "utc_now",
    # Profile models
    "CategoryBudget",
    "NotificationSettings",
    "UserProfile",
    "create_default_profile",
    "days_in_month",
    # Tracker models
    "Achievement",
    "AchievementType",
    "BudgetStatus",
    "CalendarDay",
    "CalendarStatus",
    "CategoryBudgetUsage",
    "DailyAverages",
    "DailyExpenses",
    "DailyProgress",
    "DailyStreak",
    "MonthlyAnalysis",
    "ProgressStatus",
    "StreakState",
    "StreakType",
    "WeeklyAnalysis",
    # Insight models
    "AlertType",
    "CategoryTrend",
    "DuplicateExpense",
    "ExpensePattern",
    "FinancialAlert",
    "FinancialInsight",
    "HealthScore",
    "HealthTier",
    "MonthlyProjection",
    "Recommendation",
    "RecommendationType",
    "Severity",
    "SpendingTrend",
    "TrendDirection",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]

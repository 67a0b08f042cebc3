"""
Insight Models

Pure derived read-models produced by the trend analyzer, the insight
generator and the health scorer. They carry no identity beyond the
computation that produced them; alerts and recommendations get synthetic
ids only so the UI can key them.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from expense_tracker.models.expense import (
    RECORD_CONFIG,
    ExpenseCategory,
    empty_breakdown,
    utc_now,
)


# =============================================================================
# ENUMS
# =============================================================================

class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class AlertType(str, Enum):
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"
    DANGER = "danger"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecommendationType(str, Enum):
    BUDGET = "budget"
    SAVINGS = "savings"
    PATTERN = "pattern"
    OPTIMIZATION = "optimization"


class HealthTier(str, Enum):
    EXCELLENT = "excellent"  # [80, 100]
    GOOD = "good"            # [60, 80)
    FAIR = "fair"            # [40, 60)
    POOR = "poor"            # [0, 40)


# =============================================================================
# TREND MODELS
# =============================================================================

class SpendingTrend(BaseModel):
    """
    Totals of one calendar month and its growth over the previous month.

    growth_rate is None when the previous month had no transactions at
    all; is_new_data is then True. A previous month with transactions that
    sum to zero yields a growth rate of 0.0 instead.
    """
    model_config = RECORD_CONFIG

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    total: Decimal
    transaction_count: int = Field(..., ge=0)
    category_breakdown: dict[ExpenseCategory, Decimal] = Field(
        default_factory=empty_breakdown
    )
    growth_rate: Optional[float] = Field(
        default=None,
        description="Percentage change from the previous month"
    )
    is_new_data: bool = False


class CategoryTrend(BaseModel):
    """Direction of one category across consecutive months."""
    model_config = RECORD_CONFIG

    category: ExpenseCategory
    direction: TrendDirection
    months: list[str] = Field(
        default_factory=list,
        description="Compared months, oldest first"
    )
    monthly_totals: list[Decimal] = Field(default_factory=list)


class DuplicateExpense(BaseModel):
    """A pair of expenses that are probably the same purchase logged twice."""
    model_config = RECORD_CONFIG

    original: str = Field(..., description="ID of the earlier expense")
    duplicate: str = Field(..., description="ID of the later expense")
    confidence: int = Field(..., ge=0, le=100)
    days_apart: int = Field(..., ge=0)
    description_similarity: float = Field(..., ge=0.0, le=1.0)
    reason: str


class MonthlyProjection(BaseModel):
    """Expected spending of a future month."""
    model_config = RECORD_CONFIG

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    projected_total: Decimal
    category_projections: dict[ExpenseCategory, Decimal] = Field(
        default_factory=empty_breakdown
    )
    confidence: int = Field(..., ge=0, le=100)
    based_on_months: int = Field(..., ge=1)


# =============================================================================
# INSIGHT MODELS
# =============================================================================

class ExpensePattern(BaseModel):
    """Spending habits of one category."""
    model_config = RECORD_CONFIG

    category: ExpenseCategory
    average_amount: Decimal
    frequency: float = Field(..., ge=0.0, description="Expenses per month")
    trend: TrendDirection
    std_deviation: Decimal = Field(
        ...,
        ge=0,
        description="Population standard deviation of the amounts, not their variance"
    )
    last_occurrence: date


class FinancialAlert(BaseModel):
    model_config = RECORD_CONFIG

    id: str
    type: AlertType
    category: Optional[ExpenseCategory] = Field(
        default=None,
        description="None for alerts about overall spending"
    )
    title: str
    message: str
    severity: Severity
    actionable: bool = True
    created_at: datetime = Field(default_factory=utc_now)


class Recommendation(BaseModel):
    model_config = RECORD_CONFIG

    id: str
    type: RecommendationType
    category: Optional[ExpenseCategory] = None
    title: str
    description: str
    potential_savings: Decimal = Field(..., ge=0)
    confidence: int = Field(..., ge=0, le=100)
    priority: Severity
    action_steps: list[str] = Field(default_factory=list)


class HealthScore(BaseModel):
    """Composite 0-100 financial health indicator."""
    model_config = RECORD_CONFIG

    score: int = Field(..., ge=0, le=100)
    tier: HealthTier
    components: dict[str, float] = Field(
        default_factory=dict,
        description="Points contributed by each weighted component"
    )
    insufficient_data: bool = False


class FinancialInsight(BaseModel):
    """Everything the insights screen shows, computed in one pass."""
    model_config = RECORD_CONFIG

    total_insights: int = Field(..., ge=0)
    health: HealthScore
    patterns: list[ExpensePattern] = Field(default_factory=list)
    trends: list[SpendingTrend] = Field(default_factory=list)
    category_trends: list[CategoryTrend] = Field(default_factory=list)
    alerts: list[FinancialAlert] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    duplicates: list[DuplicateExpense] = Field(default_factory=list)
    projections: list[MonthlyProjection] = Field(default_factory=list)

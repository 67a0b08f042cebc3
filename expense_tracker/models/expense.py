"""
Core Data Models for Expense Tracker

These models define the strict schemas for the canonical expense log.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for key-value storage (camelCase JSON, ISO dates)
4. Stay immutable: an edit produces a new record

DESIGN DECISION: Amounts are Decimal, never float. Category totals must add
up to the all-time total exactly, which floats cannot guarantee.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current wall-clock instant (timezone aware, UTC)."""
    return datetime.now(timezone.utc)


# Shared configuration for records exchanged with storage and the UI
RECORD_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    str_strip_whitespace=True,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: The set is closed. Custom categories are a presentation
    concern; the analytics core only ever sees these six.

    Declaration order matters: it breaks ties when ranking categories.
    """
    FOOD = "Food"
    TRANSPORTATION = "Transportation"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    OTHER = "Other"


def empty_breakdown() -> dict[ExpenseCategory, Decimal]:
    """A per-category total with every category present at zero."""
    return {category: Decimal("0") for category in ExpenseCategory}


# =============================================================================
# CORE EXPENSE MODEL
# =============================================================================

class Expense(BaseModel):
    """
    A single logged expense.

    CRITICAL: Records are frozen. Use with_changes() to edit, which
    refreshes updated_at and keeps id and created_at untouched.
    """
    model_config = ConfigDict(**RECORD_CONFIG, frozen=True)

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        min_length=1,
        description="Unique expense ID, stable for the lifetime of the store"
    )
    date: date
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Amount in the profile currency"
    )
    category: ExpenseCategory
    description: str = Field(
        default="",
        max_length=200,
        description="Free-text description"
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode='after')
    def validate_timestamps(self) -> 'Expense':
        """An expense cannot be updated before it was created."""
        # Naive and aware datetimes are not comparable
        same_kind = (self.created_at.tzinfo is None) == (self.updated_at.tzinfo is None)
        if same_kind and self.updated_at < self.created_at:
            raise ValueError("updatedAt cannot be before createdAt")
        return self

    @property
    def month_key(self) -> str:
        """Calendar month of the expense as YYYY-MM."""
        return self.date.strftime("%Y-%m")

    def with_changes(
        self,
        now: Optional[datetime] = None,
        **changes,
    ) -> 'Expense':
        """
        Return an edited copy of this expense.

        Raises:
            ValueError: If an immutable field is targeted or the
                        edited record fails validation.
        """
        # Edits may arrive keyed by field name or by camelCase alias
        names = {to_camel(name): name for name in Expense.model_fields}
        changes = {names.get(key, key): value for key, value in changes.items()}

        protected = {"id", "created_at", "updated_at"} & changes.keys()
        if protected:
            raise ValueError(f"Cannot change immutable fields: {sorted(protected)}")

        data = self.model_dump()
        data.update(changes)
        data["updated_at"] = now or utc_now()
        return Expense.model_validate(data)

    def to_record(self) -> dict:
        """JSON-ready representation for storage."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# SUMMARY MODELS
# =============================================================================

class CategoryShare(BaseModel):
    """A category total annotated with its share of the overall total."""
    model_config = RECORD_CONFIG

    category: ExpenseCategory
    amount: Decimal
    percentage: float = Field(
        ...,
        ge=0.0,
        le=100.0,
        description="amount / total * 100, 0 when the total is 0"
    )


class ExpenseSummary(BaseModel):
    """Dashboard totals for the whole log and the reference month."""
    model_config = RECORD_CONFIG

    total_expenses: Decimal = Field(
        ...,
        description="All-time total, no filtering"
    )
    monthly_total: Decimal = Field(
        ...,
        description="Total for the calendar month containing the reference date"
    )
    category_breakdown: dict[ExpenseCategory, Decimal] = Field(
        default_factory=empty_breakdown,
        description="All-time total per category, every category present"
    )
    top_categories: list[CategoryShare] = Field(
        default_factory=list,
        max_length=3,
    )


class ExpenseFilters(BaseModel):
    """Filters used by the expense list and the export dialog."""
    model_config = RECORD_CONFIG

    date_from: Optional[date] = None
    date_to: Optional[date] = None
    category: Optional[ExpenseCategory] = None
    search: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Case-insensitive match on description or category"
    )

    @model_validator(mode='after')
    def validate_range(self) -> 'ExpenseFilters':
        """Validate the date range."""
        if self.date_from and self.date_to and self.date_to < self.date_from:
            raise ValueError("dateTo cannot be before dateFrom")
        return self


class ExportData(BaseModel):
    """Filtered expenses plus the statistics shown in an export."""
    model_config = RECORD_CONFIG

    expenses: list[Expense] = Field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    average_amount: Decimal = Decimal("0")
    transaction_count: int = Field(default=0, ge=0)
    category_breakdown: list[CategoryShare] = Field(default_factory=list)
    monthly_totals: dict[str, Decimal] = Field(
        default_factory=dict,
        description="YYYY-MM -> total, oldest month first"
    )

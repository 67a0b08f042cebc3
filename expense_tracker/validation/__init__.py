"""Boundary validation package."""

from expense_tracker.validation.errors import (
    ExpenseTrackerError,
    InvalidDateError,
    InvalidExpenseError,
    InvalidInputError,
    InvalidProfileError,
)
from expense_tracker.validation.validator import (
    ExpenseValidator,
    ProfileValidator,
    ensure_non_negative,
    parse_day,
    validate_profile,
)

__all__ = [
    "ExpenseTrackerError",
    "ExpenseValidator",
    "InvalidDateError",
    "InvalidExpenseError",
    "InvalidInputError",
    "InvalidProfileError",
    "ProfileValidator",
    "ensure_non_negative",
    "parse_day",
    "validate_profile",
]

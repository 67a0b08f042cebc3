"""
Error Taxonomy

Every rejection carries the offending field and value so the presentation
layer can tell the user exactly what to fix.

Empty datasets are deliberately NOT represented here: an empty expense log
is valid input and every analytics function degrades to zero totals.
"""

from typing import Any, Optional


class ExpenseTrackerError(Exception):
    """Base exception for the expense tracker."""
    pass


class InvalidInputError(ExpenseTrackerError, ValueError):
    """Input rejected at the boundary of the analytics core."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value

    def to_dict(self) -> dict:
        """Serializable form for audit events and UI messages."""
        return {
            "error": type(self).__name__,
            "field": self.field,
            "value": None if self.value is None else str(self.value),
            "message": self.message,
        }


class InvalidDateError(InvalidInputError):
    """Malformed or out-of-range calendar day."""
    pass


class InvalidProfileError(InvalidInputError):
    """Negative budgets or limits, or missing required profile fields."""
    pass


class InvalidExpenseError(InvalidInputError):
    """Malformed expense record (amount, category, description...)."""
    pass

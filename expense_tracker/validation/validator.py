"""
Boundary Validation

DESIGN DECISION: Malformed input is rejected BEFORE it reaches the
analytics core. The aggregators, evaluators and scorers assume well-formed
records and never discover bad data mid-computation.

Validation happens in two stages:

STAGE 1 - SCHEMA VALIDATION (raises):
- Type checking, required fields, ISO calendar days
- Non-negative amounts and budgets, closed category set
- Failures raise InvalidDateError / InvalidExpenseError / InvalidProfileError
  naming the offending field

STAGE 2 - SEMANTIC CHECKS (warns):
- Dates far in the future
- Unusually large or zero amounts
- These never block; they are returned for the UI to display

IMPORTANT: Validation NEVER silently fixes issues.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import ValidationError

from expense_tracker.config import get_settings
from expense_tracker.models.expense import Expense
from expense_tracker.models.profile import UserProfile
from expense_tracker.validation.errors import (
    InvalidDateError,
    InvalidExpenseError,
    InvalidProfileError,
)


# Years outside this range are treated as typos
MIN_YEAR = 1970
MAX_YEAR = 2100

DATE_FIELDS = {"date", "date_from", "date_to", "dateFrom", "dateTo"}


def parse_day(value: Any, field: str = "date") -> date:
    """
    Parse a calendar day given as a date or an ISO YYYY-MM-DD string.

    Raises:
        InvalidDateError: If the value is not a well-formed calendar day
                          or lies outside the supported year range.
    """
    if isinstance(value, date) and not hasattr(value, "hour"):
        day = value
    elif isinstance(value, str):
        text = value.strip()
        if len(text) != 10:
            raise InvalidDateError(
                f"'{value}' is not a calendar day (expected YYYY-MM-DD)",
                field=field,
                value=value,
            )
        try:
            day = date.fromisoformat(text)
        except ValueError:
            raise InvalidDateError(
                f"'{value}' is not a valid calendar day",
                field=field,
                value=value,
            )
    else:
        raise InvalidDateError(
            f"Expected a calendar day, got {type(value).__name__}",
            field=field,
            value=value,
        )

    if not MIN_YEAR <= day.year <= MAX_YEAR:
        raise InvalidDateError(
            f"{day.isoformat()} is outside the supported range "
            f"({MIN_YEAR}-{MAX_YEAR})",
            field=field,
            value=value,
        )
    return day


def ensure_non_negative(
    value: Decimal,
    field: str,
) -> Decimal:
    """Reject a negative limit or budget."""
    if value < 0:
        raise InvalidProfileError(
            f"{field} cannot be negative (got {value})",
            field=field,
            value=value,
        )
    return value


def _first_error(exc: ValidationError) -> tuple[str, str, Any]:
    """Field path, message and input of the first pydantic error."""
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ())) or "record"
    return field, error.get("msg", str(exc)), error.get("input")


class ExpenseValidator:
    """
    Validates raw expense records through a two-stage pipeline.

    Stage 1 produces an Expense or raises.
    Stage 2 returns human-readable warnings.
    """

    def __init__(self):
        self._settings = get_settings().app

    def validate(self, raw: Union[dict, Expense]) -> Expense:
        """
        Stage 1: turn a raw record into an Expense.

        Raises:
            InvalidDateError: If the date is malformed or out of range
            InvalidExpenseError: For any other schema problem
        """
        if isinstance(raw, Expense):
            parse_day(raw.date)
            return raw

        if not isinstance(raw, dict):
            raise InvalidExpenseError(
                f"Expected a mapping, got {type(raw).__name__}",
                field="record",
                value=raw,
            )

        # Dates are checked first so a bad date is reported as such
        if "date" not in raw:
            raise InvalidExpenseError("date is required", field="date")
        parse_day(raw["date"])

        try:
            return Expense.model_validate(raw)
        except ValidationError as e:
            field, message, value = _first_error(e)
            if field.split(".")[0] in DATE_FIELDS:
                raise InvalidDateError(message, field=field, value=value) from e
            raise InvalidExpenseError(
                f"{field}: {message}",
                field=field,
                value=value,
            ) from e

    def validate_changes(self, expense: Expense, changes: dict) -> Expense:
        """Apply an edit and validate the result."""
        if "date" in changes:
            changes = {**changes, "date": parse_day(changes["date"])}
        try:
            return expense.with_changes(**changes)
        except ValidationError as e:
            field, message, value = _first_error(e)
            raise InvalidExpenseError(
                f"{field}: {message}",
                field=field,
                value=value,
            ) from e
        except ValueError as e:
            raise InvalidExpenseError(str(e), field="record") from e

    def semantic_warnings(
        self,
        expense: Expense,
        today: date,
    ) -> list[str]:
        """
        Stage 2: non-blocking checks.

        Returns a list of warnings for the user to double check.
        """
        warnings = []

        max_future = today + timedelta(days=self._settings.future_date_tolerance_days)
        if expense.date > max_future:
            warnings.append(f"Expense date ({expense.date}) is in the future")

        max_amount = Decimal(str(self._settings.max_expense_amount))
        if expense.amount > max_amount:
            warnings.append(f"Amount ({expense.amount:,.2f}) seems unusually high")

        if expense.amount == 0:
            warnings.append("Amount is zero")

        return warnings


class ProfileValidator:
    """Validates the user profile before it is saved or used."""

    def validate(self, raw: Union[dict, UserProfile]) -> UserProfile:
        """
        Turn a raw profile into a usable UserProfile.

        Raises:
            InvalidProfileError: Negative limit, income or budget, duplicate
                                 category budgets, or missing fields.
        """
        if isinstance(raw, UserProfile):
            profile = raw
        else:
            try:
                profile = UserProfile.model_validate(raw)
            except ValidationError as e:
                field, message, value = _first_error(e)
                raise InvalidProfileError(
                    f"{field}: {message}",
                    field=field,
                    value=value,
                ) from e

        ensure_non_negative(profile.daily_limit, "daily_limit")
        ensure_non_negative(profile.monthly_income, "monthly_income")

        seen = set()
        for budget in profile.category_budgets:
            ensure_non_negative(
                budget.monthly_budget,
                f"category_budgets.{budget.category.value}.monthly_budget",
            )
            if budget.category in seen:
                raise InvalidProfileError(
                    f"Duplicate budget for category {budget.category.value}",
                    field="category_budgets",
                    value=budget.category.value,
                )
            seen.add(budget.category)

        return profile


def validate_profile(profile: Optional[UserProfile]) -> UserProfile:
    """Shortcut used by the analytics entry points."""
    if profile is None:
        raise InvalidProfileError("A user profile is required", field="profile")
    return ProfileValidator().validate(profile)

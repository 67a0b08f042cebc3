"""
Tests for boundary validation.
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from expense_tracker.models import CategoryBudget, ExpenseCategory, UserProfile
from expense_tracker.validation import (
    ExpenseValidator,
    InvalidDateError,
    InvalidExpenseError,
    InvalidInputError,
    InvalidProfileError,
    ProfileValidator,
    parse_day,
    validate_profile,
)


class TestParseDay:
    """Tests for calendar day parsing."""

    def test_accepts_iso_string(self):
        """Test a well-formed ISO day."""
        assert parse_day("2024-02-29") == date(2024, 2, 29)

    def test_accepts_date(self):
        """Test that date objects pass through."""
        assert parse_day(date(2024, 1, 1)) == date(2024, 1, 1)

    @pytest.mark.parametrize("value", ["2023-02-29", "2024-13-01", "24-01-01", "yesterday", ""])
    def test_rejects_malformed(self, value):
        """Test that impossible or malformed days are rejected."""
        with pytest.raises(InvalidDateError) as exc_info:
            parse_day(value, field="reference_date")
        assert exc_info.value.field == "reference_date"

    def test_rejects_out_of_range_year(self):
        """Test the supported year range."""
        with pytest.raises(InvalidDateError):
            parse_day("1900-01-01")

    def test_rejects_other_types(self):
        """Test that numbers are not days."""
        with pytest.raises(InvalidDateError):
            parse_day(20240101)

    def test_error_is_a_value_error(self):
        """Test that callers can catch plain ValueError."""
        with pytest.raises(ValueError):
            parse_day("nope")


class TestExpenseValidator:
    """Tests for expense record validation."""

    def test_valid_record(self):
        """Test that a raw record becomes an Expense."""
        expense = ExpenseValidator().validate({
            "date": "2024-03-05",
            "amount": "12.50",
            "category": "Food",
            "description": "Lunch",
        })
        assert expense.amount == Decimal("12.50")

    def test_bad_date_reported_as_date_error(self):
        """Test that a malformed date names the date field."""
        with pytest.raises(InvalidDateError) as exc_info:
            ExpenseValidator().validate({
                "date": "2024-02-30",
                "amount": "1",
                "category": "Food",
            })
        assert exc_info.value.field == "date"

    def test_missing_date(self):
        """Test that a record without a date is rejected."""
        with pytest.raises(InvalidExpenseError):
            ExpenseValidator().validate({"amount": "1", "category": "Food"})

    def test_negative_amount(self):
        """Test that the amount field is named in the error."""
        with pytest.raises(InvalidExpenseError) as exc_info:
            ExpenseValidator().validate({
                "date": "2024-03-05",
                "amount": "-5",
                "category": "Food",
            })
        assert exc_info.value.field == "amount"

    def test_non_mapping_rejected(self):
        """Test that only mappings are accepted."""
        with pytest.raises(InvalidExpenseError):
            ExpenseValidator().validate(["2024-03-05", 1])

    def test_semantic_warnings(self, make_expense):
        """Test that future dates and zero amounts only warn."""
        validator = ExpenseValidator()
        future = make_expense("2024-03-10", "0")
        warnings = validator.semantic_warnings(future, today=date(2024, 3, 1))
        assert any("future" in w for w in warnings)
        assert "Amount is zero" in warnings

    def test_validate_changes(self, make_expense):
        """Test that an edit is validated."""
        validator = ExpenseValidator()
        expense = make_expense("2024-03-05", "10")
        with pytest.raises(InvalidInputError):
            validator.validate_changes(expense, {"amount": "-1"})
        edited = validator.validate_changes(expense, {"date": "2024-03-06"})
        assert edited.date == date(2024, 3, 6)

    @pytest.mark.parametrize("key, name", [
        ("id", "id"),
        ("createdAt", "created_at"),
        ("created_at", "created_at"),
        ("updatedAt", "updated_at"),
        ("updated_at", "updated_at"),
    ])
    def test_changes_cannot_touch_identity_or_timestamps(self, make_expense, key, name):
        """Test that immutable fields are rejected under either spelling."""
        expense = make_expense("2024-03-05", "10")
        stamp = datetime(1999, 1, 1, tzinfo=timezone.utc)
        value = "other" if key == "id" else stamp

        with pytest.raises(InvalidExpenseError) as exc_info:
            ExpenseValidator().validate_changes(expense, {key: value})
        assert exc_info.value.field == "record"
        assert name in str(exc_info.value)

    def test_edit_refreshes_updated_at(self, make_expense):
        """Test that an edit keeps createdAt and moves updatedAt forward."""
        expense = make_expense("2024-03-05", "10")
        edited = ExpenseValidator().validate_changes(expense, {"description": "Dinner"})

        assert edited.id == expense.id
        assert edited.created_at == expense.created_at
        assert edited.updated_at > expense.updated_at


class TestProfileValidator:
    """Tests for profile validation."""

    def test_negative_daily_limit(self):
        """Test that a negative daily limit is rejected."""
        with pytest.raises(InvalidProfileError) as exc_info:
            ProfileValidator().validate(UserProfile(daily_limit=Decimal("-1")))
        assert exc_info.value.field == "daily_limit"

    def test_negative_category_budget(self):
        """Test that a negative category budget is rejected."""
        profile = UserProfile(
            daily_limit=Decimal("10"),
            category_budgets=[
                CategoryBudget(category=ExpenseCategory.FOOD, monthly_budget=Decimal("-5")),
            ],
        )
        with pytest.raises(InvalidProfileError):
            ProfileValidator().validate(profile)

    def test_duplicate_category_budget(self):
        """Test that a category can only have one budget."""
        profile = UserProfile(
            daily_limit=Decimal("10"),
            category_budgets=[
                CategoryBudget(category=ExpenseCategory.FOOD, monthly_budget=Decimal("5")),
                CategoryBudget(category=ExpenseCategory.FOOD, monthly_budget=Decimal("6")),
            ],
        )
        with pytest.raises(InvalidProfileError):
            ProfileValidator().validate(profile)

    def test_missing_daily_limit(self):
        """Test that a raw profile without a daily limit is rejected."""
        with pytest.raises(InvalidProfileError) as exc_info:
            ProfileValidator().validate({"currency": "USD"})
        assert "dailyLimit" in exc_info.value.field or "daily_limit" in exc_info.value.field

    def test_missing_profile(self):
        """Test that analytics require a profile."""
        with pytest.raises(InvalidProfileError):
            validate_profile(None)

    def test_error_to_dict(self):
        """Test the serializable error form."""
        try:
            ProfileValidator().validate(UserProfile(daily_limit=Decimal("-1")))
        except InvalidProfileError as e:
            payload = e.to_dict()
        assert payload["error"] == "InvalidProfileError"
        assert payload["field"] == "daily_limit"

"""
Tests for the summary aggregator, filters and export.
"""

import pytest
from datetime import date
from decimal import Decimal

from expense_tracker.analytics import (
    compute_summary,
    export_csv,
    filter_expenses,
    monthly_totals,
    prepare_export,
)
from expense_tracker.models import ExpenseCategory, ExpenseFilters
from expense_tracker.validation import InvalidDateError


class TestComputeSummary:
    """Tests for compute_summary."""

    def test_empty_log(self):
        """Test that an empty log yields zero totals, not an error."""
        summary = compute_summary([], "2024-03-15")
        assert summary.total_expenses == Decimal("0")
        assert summary.monthly_total == Decimal("0")
        assert all(v == Decimal("0") for v in summary.category_breakdown.values())
        assert len(summary.top_categories) <= 3
        assert all(share.percentage == 0.0 for share in summary.top_categories)

    def test_totals_and_monthly_total(self, make_expense):
        """Test all-time and reference-month totals."""
        expenses = [
            make_expense("2024-02-28", "10.00", ExpenseCategory.FOOD),
            make_expense("2024-03-01", "20.50", ExpenseCategory.BILLS),
            make_expense("2024-03-31", "5.25", ExpenseCategory.FOOD),
        ]
        summary = compute_summary(expenses, date(2024, 3, 15))

        assert summary.total_expenses == Decimal("35.75")
        assert summary.monthly_total == Decimal("25.75")
        assert summary.category_breakdown[ExpenseCategory.FOOD] == Decimal("15.25")

    def test_breakdown_sums_to_total(self, make_expense):
        """Test that the per-category breakdown adds up exactly."""
        expenses = [
            make_expense("2024-03-01", "0.10", ExpenseCategory.FOOD),
            make_expense("2024-03-01", "0.20", ExpenseCategory.SHOPPING),
            make_expense("2024-03-02", "0.30", ExpenseCategory.OTHER),
            make_expense("2024-03-03", "99.99", ExpenseCategory.BILLS),
        ]
        summary = compute_summary(expenses, "2024-03-03")
        assert sum(summary.category_breakdown.values()) == summary.total_expenses
        assert set(summary.category_breakdown) == set(ExpenseCategory)

    def test_top_categories_sorted(self, make_expense):
        """Test that the top categories are at most three, highest first."""
        expenses = [
            make_expense("2024-03-01", "5", ExpenseCategory.FOOD),
            make_expense("2024-03-01", "50", ExpenseCategory.BILLS),
            make_expense("2024-03-01", "20", ExpenseCategory.SHOPPING),
            make_expense("2024-03-01", "25", ExpenseCategory.ENTERTAINMENT),
        ]
        top = compute_summary(expenses, "2024-03-01").top_categories

        assert [s.category for s in top] == [
            ExpenseCategory.BILLS,
            ExpenseCategory.ENTERTAINMENT,
            ExpenseCategory.SHOPPING,
        ]
        assert top[0].percentage == pytest.approx(50.0)
        assert all(a.amount >= b.amount for a, b in zip(top, top[1:]))

    def test_ties_keep_declaration_order(self, make_expense):
        """Test that equal amounts are ranked in category declaration order."""
        expenses = [
            make_expense("2024-03-01", "10", ExpenseCategory.OTHER),
            make_expense("2024-03-01", "10", ExpenseCategory.TRANSPORTATION),
        ]
        top = compute_summary(expenses, "2024-03-01").top_categories
        assert top[0].category == ExpenseCategory.TRANSPORTATION
        assert top[1].category == ExpenseCategory.OTHER

    def test_invalid_reference_date(self):
        """Test that a malformed reference date is rejected."""
        with pytest.raises(InvalidDateError):
            compute_summary([], "2024-02-30")


class TestFiltersAndExport:
    """Tests for list filters and export preparation."""

    def test_filter_by_range_category_and_search(self, make_expense):
        """Test that all filters combine."""
        expenses = [
            make_expense("2024-03-01", "5", ExpenseCategory.FOOD, "Coffee beans"),
            make_expense("2024-03-02", "6", ExpenseCategory.FOOD, "Lunch"),
            make_expense("2024-03-03", "7", ExpenseCategory.SHOPPING, "Coffee mug"),
            make_expense("2024-04-01", "8", ExpenseCategory.FOOD, "Coffee"),
        ]
        filters = ExpenseFilters(
            date_from=date(2024, 3, 1),
            date_to=date(2024, 3, 31),
            category=ExpenseCategory.FOOD,
            search="COFFEE",
        )
        result = filter_expenses(expenses, filters)
        assert [e.description for e in result] == ["Coffee beans"]

    def test_no_filters_returns_everything(self, make_expense):
        """Test that missing filters select the whole log."""
        expenses = [make_expense("2024-03-01", "5")]
        assert filter_expenses(expenses) == expenses

    def test_prepare_export_statistics(self, make_expense):
        """Test export totals, average and monthly totals."""
        expenses = [
            make_expense("2024-02-10", "10", ExpenseCategory.FOOD),
            make_expense("2024-03-10", "20", ExpenseCategory.BILLS),
            make_expense("2024-03-11", "30", ExpenseCategory.BILLS),
        ]
        export = prepare_export(expenses)

        assert export.total_amount == Decimal("60")
        assert export.average_amount == Decimal("20.00")
        assert export.transaction_count == 3
        assert export.category_breakdown[0].category == ExpenseCategory.BILLS
        assert list(export.monthly_totals) == ["2024-02", "2024-03"]

    def test_prepare_export_empty(self):
        """Test that an empty export has zero statistics."""
        export = prepare_export([])
        assert export.transaction_count == 0
        assert export.average_amount == Decimal("0")

    def test_monthly_totals(self, make_expense):
        """Test totals per month."""
        expenses = [
            make_expense("2024-03-10", "1.5"),
            make_expense("2024-01-10", "2"),
            make_expense("2024-03-11", "1.5"),
        ]
        assert monthly_totals(expenses) == {
            "2024-01": Decimal("2"),
            "2024-03": Decimal("3.0"),
        }

    def test_export_csv(self, make_expense):
        """Test the CSV rendering."""
        expenses = [
            make_expense("2024-03-02", "6.00", ExpenseCategory.FOOD, "Lunch, with tip"),
            make_expense("2024-03-01", "5.00", ExpenseCategory.BILLS, "Phone"),
        ]
        lines = export_csv(expenses).splitlines()
        assert lines[0] == "Date,Category,Description,Amount"
        assert lines[1] == "2024-03-01,Bills,Phone,5.00"
        assert lines[2] == '2024-03-02,Food,"Lunch, with tip",6.00'

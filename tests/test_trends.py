"""
Tests for the trend analyzer.
"""

import pytest
from datetime import date
from decimal import Decimal

from expense_tracker.analytics import (
    analyze_trends,
    classify_category_trends,
    detect_duplicates,
    project_next_month,
)
from expense_tracker.analytics.trends import (
    classify_direction,
    description_similarity,
    growth_rate,
)
from expense_tracker.models import ExpenseCategory, TrendDirection
from expense_tracker.validation import InvalidInputError


class TestGrowthRate:
    """Tests for the growth rate policy."""

    def test_no_previous_transactions(self):
        """Test the sentinel when the previous month had nothing logged."""
        assert growth_rate(Decimal("100"), Decimal("0"), 0) == (None, True)

    def test_previous_total_zero(self):
        """Test zero-amount transactions in the previous month."""
        assert growth_rate(Decimal("100"), Decimal("0"), 2) == (0.0, False)

    def test_percentage(self):
        """Test an ordinary month-over-month change."""
        rate, is_new = growth_rate(Decimal("150"), Decimal("100"), 3)
        assert rate == pytest.approx(50.0)
        assert is_new is False


class TestAnalyzeTrends:
    """Tests for analyze_trends."""

    def test_consecutive_months_with_gaps(self, make_expense):
        """Test that empty months are reported and growth follows the policy."""
        expenses = [
            make_expense("2024-01-15", "100"),
            make_expense("2024-03-10", "50", ExpenseCategory.BILLS),
            make_expense("2024-04-02", "75"),
        ]
        trends = analyze_trends(expenses, 4, "2024-04-20")

        assert [t.month for t in trends] == ["2024-01", "2024-02", "2024-03", "2024-04"]
        assert trends[0].growth_rate is None and trends[0].is_new_data
        assert trends[1].total == Decimal("0")
        assert trends[1].growth_rate == pytest.approx(-100.0)
        assert trends[2].growth_rate is None and trends[2].is_new_data
        assert trends[3].growth_rate == pytest.approx(50.0)
        assert trends[2].category_breakdown[ExpenseCategory.BILLS] == Decimal("50")

    def test_growth_never_infinite(self, make_expense):
        """Test that growth from a zero-total month is 0, not infinity."""
        expenses = [
            make_expense("2024-01-15", "0"),
            make_expense("2024-02-15", "10"),
        ]
        trends = analyze_trends(expenses, 1, "2024-02-20")
        assert trends[0].growth_rate == 0.0
        assert trends[0].is_new_data is False

    def test_empty_log(self):
        """Test that an empty log yields empty months."""
        trends = analyze_trends([], 3, "2024-04-20")
        assert len(trends) == 3
        assert all(t.total == Decimal("0") and t.transaction_count == 0 for t in trends)

    def test_invalid_months(self):
        """Test that at least one month is required."""
        with pytest.raises(InvalidInputError):
            analyze_trends([], 0, "2024-04-20")


class TestCategoryTrends:
    """Tests for classify_category_trends."""

    def test_direction_rules(self):
        """Test increasing, decreasing and stable classification."""
        up = [Decimal("100"), Decimal("110"), Decimal("121")]
        down = [Decimal("100"), Decimal("90"), Decimal("80")]
        noisy = [Decimal("100"), Decimal("104"), Decimal("120")]
        assert classify_direction(up, 0.05) == TrendDirection.INCREASING
        assert classify_direction(down, 0.05) == TrendDirection.DECREASING
        assert classify_direction(noisy, 0.05) == TrendDirection.STABLE

    def test_uses_complete_months(self, make_expense):
        """Test that the reference month in progress is not compared."""
        expenses = [
            make_expense("2024-01-10", "100", ExpenseCategory.FOOD),
            make_expense("2024-02-10", "150", ExpenseCategory.FOOD),
            make_expense("2024-03-10", "200", ExpenseCategory.FOOD),
            make_expense("2024-04-01", "1", ExpenseCategory.FOOD),
            make_expense("2024-01-10", "100", ExpenseCategory.BILLS),
            make_expense("2024-02-10", "100", ExpenseCategory.BILLS),
            make_expense("2024-03-10", "100", ExpenseCategory.BILLS),
        ]
        trends = {t.category: t for t in classify_category_trends(expenses, "2024-04-15")}

        assert trends[ExpenseCategory.FOOD].direction == TrendDirection.INCREASING
        assert trends[ExpenseCategory.FOOD].months == ["2024-01", "2024-02", "2024-03"]
        assert trends[ExpenseCategory.BILLS].direction == TrendDirection.STABLE
        assert trends[ExpenseCategory.OTHER].direction == TrendDirection.STABLE

    def test_requires_three_months(self):
        """Test that fewer than three months are rejected."""
        with pytest.raises(InvalidInputError) as exc_info:
            classify_category_trends([], "2024-04-15", months=2)
        assert exc_info.value.field == "months"

    def test_empty_log_is_stable(self):
        """Test that an empty log has no trends."""
        trends = classify_category_trends([], "2024-04-15")
        assert len(trends) == len(ExpenseCategory)
        assert all(t.direction == TrendDirection.STABLE for t in trends)


class TestDuplicates:
    """Tests for detect_duplicates."""

    def test_same_day_identical(self, make_expense):
        """Test that an identical same-day pair has full confidence."""
        first = make_expense("2024-03-01", "12.50", ExpenseCategory.FOOD, "Lunch")
        second = make_expense("2024-03-01", "12.50", ExpenseCategory.FOOD, "lunch ")
        duplicates = detect_duplicates([second, first])

        assert len(duplicates) == 1
        assert duplicates[0].original == first.id
        assert duplicates[0].duplicate == second.id
        assert duplicates[0].confidence == 100
        assert duplicates[0].days_apart == 0

    def test_window_and_amount(self, make_expense):
        """Test that pairs outside the window or with other amounts are ignored."""
        expenses = [
            make_expense("2024-03-01", "10", ExpenseCategory.FOOD, "Pizza"),
            make_expense("2024-03-03", "10", ExpenseCategory.FOOD, "Pizza"),
            make_expense("2024-03-08", "10", ExpenseCategory.FOOD, "Pizza"),
            make_expense("2024-03-03", "11", ExpenseCategory.FOOD, "Pizza"),
            make_expense("2024-03-03", "10", ExpenseCategory.BILLS, "Pizza"),
        ]
        duplicates = detect_duplicates(expenses, window_days=3)

        assert len(duplicates) == 1
        assert duplicates[0].days_apart == 2
        assert 0 < duplicates[0].confidence < 100

    def test_confidence_drops_with_distance(self, make_expense):
        """Test that a larger gap gives lower confidence."""
        base = make_expense("2024-03-01", "10", description="Taxi")
        near = detect_duplicates([base, make_expense("2024-03-02", "10", description="Taxi")])
        far = detect_duplicates([base, make_expense("2024-03-04", "10", description="Taxi")])
        assert near[0].confidence > far[0].confidence

    def test_description_similarity(self):
        """Test the similarity measure."""
        assert description_similarity("Coffee", " coffee") == 1.0
        assert description_similarity("Coffee", "Rent") < 0.5
        assert description_similarity("coffee", "coffe") == pytest.approx(5 / 6)
        assert description_similarity("", "") == 1.0


class TestProjections:
    """Tests for project_next_month."""

    def test_trailing_average(self, make_expense):
        """Test per-category averages over complete months."""
        expenses = [
            make_expense("2024-01-10", "90", ExpenseCategory.FOOD),
            make_expense("2024-02-10", "120", ExpenseCategory.FOOD),
            make_expense("2024-03-10", "150", ExpenseCategory.FOOD),
            make_expense("2024-03-11", "30", ExpenseCategory.BILLS),
            make_expense("2024-04-02", "999", ExpenseCategory.FOOD),
        ]
        [projection] = project_next_month(expenses, "2024-04-15", based_on_months=3)

        assert projection.month == "2024-05"
        assert projection.category_projections[ExpenseCategory.FOOD] == Decimal("120.00")
        assert projection.category_projections[ExpenseCategory.BILLS] == Decimal("10.00")
        assert projection.projected_total == Decimal("130.00")
        assert projection.based_on_months == 3

    def test_confidence_grows_and_decays(self):
        """Test confidence against history length and horizon."""
        one = project_next_month([], "2024-04-15", based_on_months=1)[0]
        three = project_next_month([], "2024-04-15", based_on_months=3)[0]
        six = project_next_month([], "2024-04-15", based_on_months=6)[0]
        assert one.confidence < three.confidence <= six.confidence <= 85

        horizon = project_next_month([], "2024-04-15", based_on_months=3, horizon=3)
        assert [p.month for p in horizon] == ["2024-05", "2024-06", "2024-07"]
        confidences = [p.confidence for p in horizon]
        assert confidences == sorted(confidences, reverse=True)
        assert min(confidences) >= 30

    def test_empty_log(self):
        """Test that an empty log projects zero."""
        [projection] = project_next_month([], "2024-04-15")
        assert projection.projected_total == Decimal("0")

    def test_invalid_based_on_months(self):
        """Test that at least one month of history is required."""
        with pytest.raises(InvalidInputError):
            project_next_month([], "2024-04-15", based_on_months=0)

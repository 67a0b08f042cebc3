"""
Summary Aggregator

Reduces the expense log into the dashboard totals: all-time total, total of
the reference month, per-category breakdown and the top three categories.

Also hosts the list filters and the export preparation, which are the same
reduction applied to a filtered subset.

GUARANTEE: sum(category_breakdown.values()) == total_expenses, exactly.
All arithmetic is Decimal; only percentages are floats.
"""

import csv
import io
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Union

from expense_tracker.analytics.periods import (
    category_totals,
    group_by_month,
    month_key,
    sort_expenses,
    total_of,
)
from expense_tracker.models.expense import (
    CategoryShare,
    Expense,
    ExpenseCategory,
    ExpenseFilters,
    ExpenseSummary,
    ExportData,
)
from expense_tracker.validation import parse_day


TOP_CATEGORY_COUNT = 3
CSV_HEADERS = ["Date", "Category", "Description", "Amount"]


def percentage_of(amount: Decimal, total: Decimal) -> float:
    """amount / total * 100, or 0 when there is no total."""
    if total == 0:
        return 0.0
    return float(amount / total * 100)


def rank_categories(
    breakdown: dict[ExpenseCategory, Decimal],
    total: Decimal,
    limit: Optional[int] = None,
    include_empty: bool = True,
) -> list[CategoryShare]:
    """
    Categories sorted by amount, highest first.

    Ties keep the enumeration declaration order (sorted() is stable and
    the enum is iterated in declaration order).
    """
    ordered = sorted(
        (category for category in ExpenseCategory),
        key=lambda category: breakdown.get(category, Decimal("0")),
        reverse=True,
    )
    if not include_empty:
        ordered = [c for c in ordered if breakdown.get(c, Decimal("0")) > 0]
    if limit is not None:
        ordered = ordered[:limit]

    return [
        CategoryShare(
            category=category,
            amount=breakdown.get(category, Decimal("0")),
            percentage=percentage_of(breakdown.get(category, Decimal("0")), total),
        )
        for category in ordered
    ]


def compute_summary(
    expenses: Iterable[Expense],
    reference_date: Union[date, str],
) -> ExpenseSummary:
    """
    Dashboard summary of the expense log.

    Args:
        expenses: The full expense log, in any order
        reference_date: A day inside the month reported as monthly_total

    Raises:
        InvalidDateError: If reference_date is not a calendar day
    """
    reference = parse_day(reference_date, field="reference_date")
    expenses = list(expenses)

    total = total_of(expenses)
    current_month = month_key(reference)
    monthly = total_of(e for e in expenses if e.month_key == current_month)
    breakdown = category_totals(expenses)

    return ExpenseSummary(
        total_expenses=total,
        monthly_total=monthly,
        category_breakdown=breakdown,
        top_categories=rank_categories(breakdown, total, limit=TOP_CATEGORY_COUNT),
    )


def filter_expenses(
    expenses: Iterable[Expense],
    filters: Optional[ExpenseFilters] = None,
) -> list[Expense]:
    """Apply list filters; the date range is inclusive on both ends."""
    if filters is None:
        return list(expenses)

    search = (filters.search or "").lower()
    result = []
    for expense in expenses:
        if filters.date_from and expense.date < filters.date_from:
            continue
        if filters.date_to and expense.date > filters.date_to:
            continue
        if filters.category and expense.category != filters.category:
            continue
        if search and (
            search not in expense.description.lower()
            and search not in expense.category.value.lower()
        ):
            continue
        result.append(expense)
    return result


def monthly_totals(expenses: Iterable[Expense]) -> dict[str, Decimal]:
    """Total per YYYY-MM, oldest month first."""
    grouped = group_by_month(expenses)
    return {key: total_of(grouped[key]) for key in sorted(grouped)}


def prepare_export(
    expenses: Iterable[Expense],
    filters: Optional[ExpenseFilters] = None,
) -> ExportData:
    """Filtered expenses with the statistics shown in an export."""
    selected = sort_expenses(filter_expenses(expenses, filters))
    total = total_of(selected)
    count = len(selected)

    return ExportData(
        expenses=selected,
        total_amount=total,
        average_amount=(total / count).quantize(Decimal("0.01")) if count else Decimal("0"),
        transaction_count=count,
        category_breakdown=rank_categories(
            category_totals(selected), total, include_empty=False
        ),
        monthly_totals=monthly_totals(selected),
    )


def export_csv(expenses: Iterable[Expense]) -> str:
    """Render expenses as CSV (Date, Category, Description, Amount)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for expense in sort_expenses(expenses):
        writer.writerow([
            expense.date.isoformat(),
            expense.category.value,
            expense.description,
            str(expense.amount),
        ])
    return buffer.getvalue()

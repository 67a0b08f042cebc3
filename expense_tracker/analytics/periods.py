"""
Calendar helpers shared by the analytics modules.

All windows use calendar-day semantics: an expense dated 2024-03-31 belongs
to March no matter which timezone the device is in.
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Iterator

from expense_tracker.models.expense import Expense, ExpenseCategory, empty_breakdown
from expense_tracker.models.profile import days_in_month


def month_key(day: date) -> str:
    return day.strftime("%Y-%m")


def month_start(day: date) -> date:
    return day.replace(day=1)


def month_end(day: date) -> date:
    return day.replace(day=days_in_month(day.year, day.month))


def shift_month(day: date, months: int) -> date:
    """First day of the month `months` away from the month containing day."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_keys_ending(reference: date, count: int) -> list[str]:
    """`count` consecutive month keys ending at the reference month, oldest first."""
    return [month_key(shift_month(reference, offset)) for offset in range(1 - count, 1)]


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day in [start, end]."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def sort_expenses(expenses: Iterable[Expense]) -> list[Expense]:
    """Chronological order, stable for expenses logged on the same day."""
    return sorted(
        expenses,
        key=lambda e: (e.date, e.created_at.timestamp(), e.id),
    )


def total_of(expenses: Iterable[Expense]) -> Decimal:
    return sum((e.amount for e in expenses), Decimal("0"))


def group_by_day(expenses: Iterable[Expense]) -> dict[date, list[Expense]]:
    groups = defaultdict(list)
    for expense in expenses:
        groups[expense.date].append(expense)
    return dict(groups)


def group_by_month(expenses: Iterable[Expense]) -> dict[str, list[Expense]]:
    groups = defaultdict(list)
    for expense in expenses:
        groups[expense.month_key].append(expense)
    return dict(groups)


def category_totals(expenses: Iterable[Expense]) -> dict[ExpenseCategory, Decimal]:
    """Per-category totals with every category present."""
    totals = empty_breakdown()
    for expense in expenses:
        totals[expense.category] += expense.amount
    return totals

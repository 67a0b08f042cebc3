"""
Shared fixtures for the Expense Tracker tests.

Test strategy:
1. Unit tests for the pure analytics functions (no storage)
2. Storage tests against the in-memory store and pytest's tmp_path
3. Service tests wiring everything together in memory
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from expense_tracker.config import get_settings
from expense_tracker.models import (
    CategoryBudget,
    Expense,
    ExpenseCategory,
    UserProfile,
)


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Run every test against the built-in defaults."""
    for name in (
        "EXPENSE_TRACKER_ANALYTICS_NEAR_BUDGET_THRESHOLD",
        "EXPENSE_TRACKER_STORAGE_BACKEND",
        "EXPENSE_TRACKER_STORAGE_DATA_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_expense():
    """Factory for expenses with deterministic creation times."""
    counter = {"n": 0}

    def _make(day, amount, category=ExpenseCategory.FOOD, description="", **kwargs):
        counter["n"] += 1
        created = datetime(2020, 1, 1, tzinfo=timezone.utc).replace(
            microsecond=counter["n"]
        )
        return Expense(
            id=kwargs.pop("id", f"exp-{counter['n']}"),
            date=date.fromisoformat(day) if isinstance(day, str) else day,
            amount=Decimal(str(amount)),
            category=category,
            description=description,
            created_at=kwargs.pop("created_at", created),
            updated_at=kwargs.pop("updated_at", created),
            **kwargs,
        )

    return _make


@pytest.fixture
def profile():
    """Daily limit 50 with food and shopping budgets."""
    return UserProfile(
        id="profile-1",
        monthly_income=Decimal("3000"),
        daily_limit=Decimal("50"),
        category_budgets=[
            CategoryBudget(category=ExpenseCategory.FOOD, monthly_budget=Decimal("310")),
            CategoryBudget(category=ExpenseCategory.SHOPPING, monthly_budget=Decimal("150")),
        ],
    )

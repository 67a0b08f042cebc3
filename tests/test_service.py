"""
End-to-end tests for the service facade.

Everything runs against the in-memory store; the audit trail shares the
store so tests can assert on what was recorded.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.models import (
    AuditEventType,
    ExpenseCategory,
    ProgressStatus,
    StreakState,
)
from expense_tracker.orchestrator import (
    ExpenseTrackerService,
    build_snapshot,
    create_app_components,
    streak_history,
)
from expense_tracker.services.storage import (
    InMemoryKeyValueStore,
    KeyValueAuditStorage,
    KeyValueExpenseStorage,
    NotFoundError,
    StorageUnavailableError,
)
from expense_tracker.services.storage.repository import (
    ACHIEVEMENTS_KEY,
    AUDIT_KEY,
    PROFILE_KEY,
)
from expense_tracker.validation import InvalidDateError, InvalidProfileError


def raw_expense(day, amount, category="Food", description=""):
    return {
        "date": day,
        "amount": amount,
        "category": category,
        "description": description,
    }


@pytest.fixture
def components():
    store = InMemoryKeyValueStore()
    service, storage, audit_logger = create_app_components(store=store)
    audit_storage = KeyValueAuditStorage(store)
    return service, storage, audit_storage, store


def event_types(store):
    records = asyncio.run(store.get(AUDIT_KEY)) or []
    return [AuditEventType(r["event_type"]) for r in records]


class FlakyStore(InMemoryKeyValueStore):
    """Fails the first `failures` reads."""

    def __init__(self, failures):
        super().__init__()
        self.failures = failures

    async def get(self, key):
        if self.failures:
            self.failures -= 1
            raise StorageUnavailableError("store is busy")
        return await super().get(key)


class TestExpenseLog:
    """Tests for editing the log through the service."""

    def test_add_update_delete_clear(self, components):
        """Test the full edit cycle and its audit trail."""
        service, _, _, store = components

        async def scenario():
            expense, warnings = await service.add_expense(
                raw_expense("2024-03-01", "12.50", description="Lunch"),
                today=date(2024, 3, 1),
            )
            assert warnings == []
            updated = await service.update_expense(expense.id, {"amount": "15"})
            assert updated.amount == Decimal("15")
            assert updated.created_at == expense.created_at

            second, _ = await service.add_expense(raw_expense("2024-03-02", "3", "Bills"))
            await service.delete_expense(second.id)
            assert [e.id for e in await service.list_expenses()] == [expense.id]
            assert await service.clear_expenses() == 1
            assert await service.list_expenses() == []

        asyncio.run(scenario())
        assert event_types(store) == [
            AuditEventType.EXPENSE_ADDED,
            AuditEventType.EXPENSE_UPDATED,
            AuditEventType.EXPENSE_ADDED,
            AuditEventType.EXPENSE_DELETED,
            AuditEventType.EXPENSES_CLEARED,
        ]

    def test_rejected_expense_is_audited(self, components):
        """Test that invalid input raises and leaves a trace, not a record."""
        service, storage, audit_storage, _ = components
        correlation_id = create_correlation_id()

        with pytest.raises(InvalidDateError):
            asyncio.run(service.add_expense(
                raw_expense("2024-02-30", "1"),
                correlation_id=correlation_id,
            ))

        assert asyncio.run(storage.list_expenses()) == []
        [event] = asyncio.run(audit_storage.get_events_by_correlation_id(correlation_id))
        assert event.event_type == AuditEventType.VALIDATION_FAILED
        assert event.details["field"] == "date"

    def test_warnings_do_not_block(self, components):
        """Test that semantic warnings are returned with the stored expense."""
        service, storage, _, _ = components
        expense, warnings = asyncio.run(service.add_expense(
            raw_expense("2024-06-01", "0"),
            today=date(2024, 3, 1),
        ))
        assert len(warnings) == 2
        assert asyncio.run(storage.get_expense(expense.id)) == expense

    def test_update_missing_expense(self, components):
        """Test editing an id that is not in the log."""
        service = components[0]
        with pytest.raises(NotFoundError):
            asyncio.run(service.update_expense("nope", {"amount": "1"}))


class TestProfile:
    """Tests for profile handling."""

    def test_onboard(self, components):
        """Test the default profile from monthly income."""
        service = components[0]
        profile = asyncio.run(service.onboard(Decimal("3000"), currency="EUR"))

        assert profile.daily_limit == Decimal("70.00")
        assert asyncio.run(service.get_profile()) == profile

    def test_negative_limit_rejected(self, components, profile):
        """Test that a negative daily limit never reaches storage."""
        service = components[0]
        bad = profile.model_copy(update={"daily_limit": Decimal("-1")})
        with pytest.raises(InvalidProfileError):
            asyncio.run(service.save_profile(bad))
        assert asyncio.run(service.get_profile()) is None


class TestComputeSnapshot:
    """Tests for the analytics recomputation."""

    def test_without_profile(self, components):
        """Test that budget views stay empty until a profile exists."""
        service, _, _, store = components
        asyncio.run(service.add_expense(raw_expense("2024-03-01", "10")))

        snapshot = asyncio.run(service.compute_snapshot("2024-03-02"))

        assert snapshot.has_profile is False
        assert snapshot.summary.total_expenses == Decimal("10")
        assert snapshot.today is None
        assert snapshot.progress is None
        assert snapshot.history == []
        assert ACHIEVEMENTS_KEY not in store.keys()
        assert service.snapshot is snapshot

    def test_with_profile(self, components, profile):
        """Test the populated views and persisted achievements."""
        service, storage, _, store = components

        async def scenario():
            await service.save_profile(profile)
            for day in ("2024-03-01", "2024-03-02", "2024-03-03"):
                await service.add_expense(raw_expense(day, "10"))
            return await service.compute_snapshot("2024-03-04")

        snapshot = asyncio.run(scenario())

        assert snapshot.has_profile is True
        assert [d.date for d in snapshot.history][-1] == date(2024, 3, 4)
        # The empty reference day does not break the streak
        assert snapshot.streak.current_streak == 3
        assert snapshot.streak_state == StreakState.ACTIVE
        assert snapshot.today.total_spent == Decimal("0")
        assert snapshot.progress.status == ProgressStatus.EXCELLENT
        assert snapshot.progress.transactions == 0
        assert snapshot.weekly.week_start == date(2024, 3, 4)
        assert snapshot.monthly.month == "2024-03"
        assert len(snapshot.calendar) == 31
        assert "first-expense" in snapshot.newly_unlocked
        assert asyncio.run(storage.get_achievements()) == snapshot.achievements
        assert AuditEventType.ACHIEVEMENT_UNLOCKED in event_types(store)

    def test_recompute_is_idempotent(self, components, profile):
        """Test that a second pass unlocks nothing and keeps timestamps."""
        service = components[0]

        async def scenario():
            await service.save_profile(profile)
            await service.add_expense(raw_expense("2024-03-01", "10"))
            first = await service.compute_snapshot("2024-03-01")
            second = await service.compute_snapshot("2024-03-01")
            return first, second

        first, second = asyncio.run(scenario())
        assert first.newly_unlocked
        assert second.newly_unlocked == []
        assert second.achievements == first.achievements

    def test_invalid_stored_profile_is_audited(self, components, profile):
        """Test that a stored profile failing validation aborts the recompute."""
        service, _, _, store = components
        record = profile.to_record()
        record["dailyLimit"] = "-5"
        asyncio.run(store.set(PROFILE_KEY, record))

        with pytest.raises(InvalidProfileError):
            asyncio.run(service.compute_snapshot("2024-03-01"))
        assert service.snapshot is None
        assert event_types(store) == [AuditEventType.SYSTEM_ERROR]

    def test_transient_storage_failure_is_retried(self, profile):
        """Test that loading state survives a busy store."""
        store = FlakyStore(failures=1)
        service = ExpenseTrackerService(
            KeyValueExpenseStorage(store),
            audit_logger=AuditLogger(),
            retry_attempts=3,
        )
        snapshot = asyncio.run(service.compute_snapshot("2024-03-01"))
        assert snapshot.expense_count == 0

    def test_storage_failure_keeps_previous_snapshot(self):
        """Test that a failed recompute raises and leaves the cache alone."""
        store = FlakyStore(failures=0)
        service = ExpenseTrackerService(
            KeyValueExpenseStorage(store),
            audit_logger=AuditLogger(),
            retry_attempts=2,
        )
        previous = asyncio.run(service.compute_snapshot("2024-03-01"))

        store.failures = 10
        with pytest.raises(StorageUnavailableError):
            asyncio.run(service.compute_snapshot("2024-03-02"))
        assert service.snapshot is previous


class TestBuildSnapshot:
    """Tests for the pure snapshot computation."""

    def test_over_budget_day_breaks_streak(self, make_expense, profile):
        """Test that an over-budget day resets the current streak."""
        expenses = [
            make_expense("2024-03-01", "10"),
            make_expense("2024-03-02", "60"),
            make_expense("2024-03-03", "10"),
        ]
        snapshot = build_snapshot(expenses, profile, [], date(2024, 3, 3))

        assert snapshot.streak.current_streak == 1
        assert snapshot.streak.longest_streak == 1

    def test_streak_history_keeps_logged_reference_day(self, make_expense, profile):
        """Test that the reference day counts once something is logged."""
        expenses = [make_expense("2024-03-01", "10")]
        snapshot = build_snapshot(expenses, profile, [], date(2024, 3, 1))

        assert len(streak_history(snapshot.history, date(2024, 3, 1))) == 1
        assert snapshot.streak.current_streak == 1

    def test_categories_in_summary(self, make_expense, profile):
        """Test that the summary ranks categories by spend."""
        expenses = [
            make_expense("2024-03-01", "10", ExpenseCategory.FOOD),
            make_expense("2024-03-01", "30", ExpenseCategory.BILLS),
        ]
        snapshot = build_snapshot(expenses, profile, [], date(2024, 3, 1))
        assert snapshot.summary.top_categories[0].category == ExpenseCategory.BILLS


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

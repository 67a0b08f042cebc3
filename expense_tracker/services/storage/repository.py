"""
Key-Value Backed Repositories

Typed storage for the expense log, the profile, achievements and the audit
trail, laid out over any KeyValueStoreInterface:

    expense-tracker-expenses      list of expense records (camelCase JSON)
    dailyTracker_userProfile      the profile record
    dailyTracker_achievements     achievement progress and unlock timestamps
    expense-tracker-audit         append-only list of audit events

Every read parses records back through the pydantic models. A record that
no longer validates is logged and skipped instead of making the whole log
unreadable.
"""

from typing import Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from expense_tracker.analytics.periods import sort_expenses
from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.expense import Expense
from expense_tracker.models.profile import UserProfile
from expense_tracker.models.tracker import Achievement
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    ExpenseStorageInterface,
    KeyValueStoreInterface,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)

EXPENSES_KEY = "expense-tracker-expenses"
PROFILE_KEY = "dailyTracker_userProfile"
ACHIEVEMENTS_KEY = "dailyTracker_achievements"
AUDIT_KEY = "expense-tracker-audit"

# Oldest audit events are dropped beyond this many
MAX_AUDIT_EVENTS = 5000


class KeyValueExpenseStorage(ExpenseStorageInterface):
    """
    Expense log, profile and achievements kept under fixed keys.

    The whole log is one value, so each write rewrites it. That is fine for
    one user's personal expenses.
    """

    def __init__(self, store: KeyValueStoreInterface):
        self._store = store

    async def _read_records(self, key: str) -> list[dict]:
        value = await self._store.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            raise StorageError(f"Expected a list under '{key}', got {type(value).__name__}")
        return value

    async def _read_expenses(self) -> list[Expense]:
        expenses = []
        for record in await self._read_records(EXPENSES_KEY):
            try:
                expenses.append(Expense.model_validate(record))
            except ValidationError as e:
                logger.warning(
                    "expense_record_skipped",
                    record_id=record.get("id") if isinstance(record, dict) else None,
                    error=str(e),
                )
        return expenses

    async def _write_expenses(self, expenses: list[Expense]) -> None:
        await self._store.set(
            EXPENSES_KEY,
            [e.to_record() for e in sort_expenses(expenses)],
        )

    async def list_expenses(self) -> list[Expense]:
        return sort_expenses(await self._read_expenses())

    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        for expense in await self._read_expenses():
            if expense.id == expense_id:
                return expense
        return None

    async def add_expense(self, expense: Expense) -> Expense:
        expenses = await self._read_expenses()
        if any(e.id == expense.id for e in expenses):
            raise DuplicateError(f"Expense already exists: {expense.id}")
        expenses.append(expense)
        await self._write_expenses(expenses)
        return expense

    async def update_expense(self, expense: Expense) -> Expense:
        expenses = await self._read_expenses()
        for index, existing in enumerate(expenses):
            if existing.id == expense.id:
                expenses[index] = expense
                await self._write_expenses(expenses)
                return expense
        raise NotFoundError(f"Expense not found: {expense.id}")

    async def delete_expense(self, expense_id: str) -> bool:
        expenses = await self._read_expenses()
        remaining = [e for e in expenses if e.id != expense_id]
        if len(remaining) == len(expenses):
            raise NotFoundError(f"Expense not found: {expense_id}")
        await self._write_expenses(remaining)
        return True

    async def clear_expenses(self) -> int:
        count = len(await self._read_records(EXPENSES_KEY))
        await self._store.delete(EXPENSES_KEY)
        return count

    async def get_profile(self) -> Optional[UserProfile]:
        record = await self._store.get(PROFILE_KEY)
        if record is None:
            return None
        try:
            return UserProfile.model_validate(record)
        except ValidationError as e:
            raise StorageError(f"Stored profile is invalid: {e}") from e

    async def save_profile(self, profile: UserProfile) -> UserProfile:
        await self._store.set(PROFILE_KEY, profile.to_record())
        return profile

    async def get_achievements(self) -> list[Achievement]:
        achievements = []
        for record in await self._read_records(ACHIEVEMENTS_KEY):
            try:
                achievements.append(Achievement.model_validate(record))
            except ValidationError as e:
                logger.warning("achievement_record_skipped", error=str(e))
        return achievements

    async def save_achievements(self, achievements: list[Achievement]) -> None:
        await self._store.set(
            ACHIEVEMENTS_KEY,
            [a.model_dump(mode="json", by_alias=True) for a in achievements],
        )


class KeyValueAuditStorage(AuditStorageInterface):
    """Append-only audit trail kept as one list value."""

    def __init__(
        self,
        store: KeyValueStoreInterface,
        max_events: int = MAX_AUDIT_EVENTS,
    ):
        self._store = store
        self._max_events = max_events

    async def _read_events(self) -> list[AuditEvent]:
        records = await self._store.get(AUDIT_KEY) or []
        events = []
        for record in records:
            try:
                events.append(AuditEvent.model_validate(record))
            except ValidationError:
                continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            records = await self._store.get(AUDIT_KEY) or []
            records.append(event.to_record())
            await self._store.set(AUDIT_KEY, records[-self._max_events:])
            return True
        except StorageError as e:
            # Don't raise - audit logging should not break the main flow
            logger.error("audit_append_failed", event_id=str(event.event_id), error=str(e))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in await self._read_events()
            if e.correlation_id == correlation_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(
            await self._read_events(),
            key=lambda e: e.timestamp,
            reverse=True,
        )
        return events[:limit]

"""
Storage Ports

DESIGN DECISION: Persistence is an injected port. The analytics core never
touches storage; the service facade reads a snapshot through these
interfaces, computes, and writes back.

Two layers:
1. KeyValueStoreInterface - JSON-serializable values by string key
   (browser localStorage, a JSON file, a dict in tests)
2. ExpenseStorageInterface / AuditStorageInterface - typed records on top
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.expense import Expense
from expense_tracker.models.profile import UserProfile
from expense_tracker.models.tracker import Achievement


class KeyValueStoreInterface(ABC):
    """
    Abstract key-value store.

    Values are anything json.dumps accepts. Missing keys read as None.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """
        Read a value.

        Args:
            key: The storage key

        Returns:
            The stored value, or None if the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """
        Write a value, replacing any previous one.

        Raises:
            StorageError: If the value cannot be stored
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for the expense log, the profile and achievements.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def list_expenses(self) -> list[Expense]:
        """
        List every expense.

        Returns:
            Expenses in chronological order (date, then creation time)
        """
        pass

    @abstractmethod
    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        """
        Retrieve an expense by its ID.

        Returns:
            The expense if found, None otherwise
        """
        pass

    @abstractmethod
    async def add_expense(self, expense: Expense) -> Expense:
        """
        Append an expense to the log.

        Raises:
            DuplicateError: If an expense with the same ID exists
        """
        pass

    @abstractmethod
    async def update_expense(self, expense: Expense) -> Expense:
        """
        Replace an existing expense.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> bool:
        """
        Delete an expense by ID.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        pass

    @abstractmethod
    async def clear_expenses(self) -> int:
        """
        Remove every expense.

        Returns:
            Number of expenses removed
        """
        pass

    @abstractmethod
    async def get_profile(self) -> Optional[UserProfile]:
        """
        Retrieve the user profile.

        Returns:
            The profile, or None before onboarding
        """
        pass

    @abstractmethod
    async def save_profile(self, profile: UserProfile) -> UserProfile:
        """Store the user profile, replacing any previous one."""
        pass

    @abstractmethod
    async def get_achievements(self) -> list[Achievement]:
        """
        Retrieve stored achievement progress.

        Returns:
            Achievements from the last recomputation, empty if none
        """
        pass

    @abstractmethod
    async def save_achievements(self, achievements: list[Achievement]) -> None:
        """Store achievement progress and unlock timestamps."""
        pass


class AuditStorageInterface(ABC):
    """
    Where audit events are kept.

    Implementations only ever append; stored events are not rewritten.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Add one event to the end of the trail.

        Returns:
            True once the event is stored
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one save of an expense).

        Returns:
            Events sharing the id, oldest first
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        The latest events, newest first, at most `limit` of them.
        """
        pass


class StorageError(Exception):
    """Raised when a storage operation cannot complete."""
    pass


class NotFoundError(StorageError):
    """No record with the requested id."""
    pass


class DuplicateError(StorageError):
    """A record with the same id is already stored."""
    pass


class StorageUnavailableError(StorageError):
    """The storage backend could not be reached or read."""
    pass

"""Storage services package."""

from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    ExpenseStorageInterface,
    KeyValueStoreInterface,
    NotFoundError,
    StorageError,
    StorageUnavailableError,
)
from expense_tracker.services.storage.key_value import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
)
from expense_tracker.services.storage.repository import (
    KeyValueAuditStorage,
    KeyValueExpenseStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ExpenseStorageInterface",
    "KeyValueStoreInterface",
    # Implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueAuditStorage",
    "KeyValueExpenseStorage",
    # Errors
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    "StorageUnavailableError",
]

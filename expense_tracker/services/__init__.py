"""Services package."""

from expense_tracker.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    ExpenseStorageInterface,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueAuditStorage,
    KeyValueExpenseStorage,
    KeyValueStoreInterface,
    NotFoundError,
    StorageError,
    StorageUnavailableError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "DuplicateError",
    "ExpenseStorageInterface",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueAuditStorage",
    "KeyValueExpenseStorage",
    "KeyValueStoreInterface",
    "NotFoundError",
    "StorageError",
    "StorageUnavailableError",
]

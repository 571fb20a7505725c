"""Services package."""

from budgetbuddy.services.storage import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ConnectionError,
    DuplicateError,
    InMemoryStorage,
    NotFoundError,
    ReminderStorageInterface,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "BudgetStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "InMemoryStorage",
    "NotFoundError",
    "ReminderStorageInterface",
    "StorageError",
    "TransactionStorageInterface",
]

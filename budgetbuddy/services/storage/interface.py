"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the classification/budget/reminder logic decoupled from storage

The interface is intentionally simple - we're not building a full ORM.
Every query is scoped to one owner.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from budgetbuddy.models.audit import AuditEvent
from budgetbuddy.models.budget import BudgetSet
from budgetbuddy.models.reminder import Reminder
from budgetbuddy.models.transaction import Transaction


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage.

    Transactions are immutable: there is no update operation.
    """

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> bool:
        """
        Save a new transaction.

        Raises:
            DuplicateError: If a transaction with this ID exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_transaction(
        self,
        owner_id: str,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        """Return the owner's transaction, or None."""
        pass

    @abstractmethod
    async def list_transactions(self, owner_id: str) -> list[Transaction]:
        """
        List all of the owner's transactions, newest first.
        """
        pass

    @abstractmethod
    async def delete_transaction(self, owner_id: str, transaction_id: UUID) -> bool:
        """
        Delete one of the owner's transactions.

        Returns:
            True if deleted, False if no such transaction for this owner
        """
        pass


class BudgetStorageInterface(ABC):
    """Abstract interface for per-user budget sets."""

    @abstractmethod
    async def get_budget_set(self, owner_id: str) -> BudgetSet:
        """
        Return the owner's budget set.

        Owners that never set a budget get an empty set.
        """
        pass

    @abstractmethod
    async def save_budget_set(self, budget_set: BudgetSet) -> bool:
        """Replace the owner's budget set."""
        pass


class ReminderStorageInterface(ABC):
    """Abstract interface for reminder storage."""

    @abstractmethod
    async def save_reminder(self, reminder: Reminder) -> bool:
        """
        Save a new reminder.

        Raises:
            DuplicateError: If a reminder with this ID exists
        """
        pass

    @abstractmethod
    async def get_reminder(self, owner_id: str, reminder_id: UUID) -> Optional[Reminder]:
        """Return the owner's reminder, or None."""
        pass

    @abstractmethod
    async def update_reminder(self, reminder: Reminder) -> bool:
        """
        Replace an existing reminder.

        Raises:
            NotFoundError: If the reminder doesn't exist for its owner
        """
        pass

    @abstractmethod
    async def list_reminders(self, owner_id: str) -> list[Reminder]:
        """List all of the owner's reminders (unordered)."""
        pass

    @abstractmethod
    async def delete_reminder(self, owner_id: str, reminder_id: UUID) -> bool:
        """
        Delete one of the owner's reminders.

        Returns:
            True if deleted, False if no such reminder for this owner
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event to the log."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity, in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass

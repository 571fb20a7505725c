"""
In-Memory Storage

Implements every storage interface with plain dictionaries. Used by the
test suite and as the fallback when Google Sheets isn't configured.
Data lives only as long as the process. Writes take a threading lock
since one store can be shared by several Streamlit session threads.
"""

import threading
from typing import Optional
from uuid import UUID

from budgetbuddy.models.audit import AuditEvent
from budgetbuddy.models.budget import BudgetSet
from budgetbuddy.models.reminder import Reminder
from budgetbuddy.models.transaction import Transaction
from budgetbuddy.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    DuplicateError,
    NotFoundError,
    ReminderStorageInterface,
    TransactionStorageInterface,
)


class InMemoryStorage(
    TransactionStorageInterface,
    BudgetStorageInterface,
    ReminderStorageInterface,
    AuditStorageInterface,
):
    """Dictionary-backed implementation of all storage interfaces."""

    def __init__(self):
        self._transactions: dict[UUID, Transaction] = {}
        self._budgets: dict[str, BudgetSet] = {}
        self._reminders: dict[UUID, Reminder] = {}
        self._events: list[AuditEvent] = []
        self._lock = threading.Lock()

    # -- transactions ---------------------------------------------------------

    async def save_transaction(self, transaction: Transaction) -> bool:
        with self._lock:
            if transaction.id in self._transactions:
                raise DuplicateError(f"Transaction already exists: {transaction.id}")
            self._transactions[transaction.id] = transaction
        return True

    async def get_transaction(
        self,
        owner_id: str,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        transaction = self._transactions.get(transaction_id)
        if transaction is None or transaction.owner_id != owner_id:
            return None
        return transaction

    async def list_transactions(self, owner_id: str) -> list[Transaction]:
        owned = [t for t in self._transactions.values() if t.owner_id == owner_id]
        owned.sort(key=lambda t: t.occurred_at, reverse=True)
        return owned

    async def delete_transaction(self, owner_id: str, transaction_id: UUID) -> bool:
        with self._lock:
            transaction = self._transactions.get(transaction_id)
            if transaction is None or transaction.owner_id != owner_id:
                return False
            del self._transactions[transaction_id]
        return True

    # -- budgets --------------------------------------------------------------

    async def get_budget_set(self, owner_id: str) -> BudgetSet:
        return self._budgets.get(owner_id) or BudgetSet(owner_id=owner_id)

    async def save_budget_set(self, budget_set: BudgetSet) -> bool:
        with self._lock:
            self._budgets[budget_set.owner_id] = budget_set
        return True

    # -- reminders ------------------------------------------------------------

    async def save_reminder(self, reminder: Reminder) -> bool:
        with self._lock:
            if reminder.id in self._reminders:
                raise DuplicateError(f"Reminder already exists: {reminder.id}")
            self._reminders[reminder.id] = reminder
        return True

    async def get_reminder(self, owner_id: str, reminder_id: UUID) -> Optional[Reminder]:
        reminder = self._reminders.get(reminder_id)
        if reminder is None or reminder.owner_id != owner_id:
            return None
        return reminder

    async def update_reminder(self, reminder: Reminder) -> bool:
        with self._lock:
            existing = self._reminders.get(reminder.id)
            if existing is None or existing.owner_id != reminder.owner_id:
                raise NotFoundError(f"Reminder not found: {reminder.id}")
            self._reminders[reminder.id] = reminder
        return True

    async def list_reminders(self, owner_id: str) -> list[Reminder]:
        return [r for r in self._reminders.values() if r.owner_id == owner_id]

    async def delete_reminder(self, owner_id: str, reminder_id: UUID) -> bool:
        with self._lock:
            reminder = self._reminders.get(reminder_id)
            if reminder is None or reminder.owner_id != owner_id:
                return False
            del self._reminders[reminder_id]
        return True

    # -- audit ----------------------------------------------------------------

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

"""
Main Orchestrator for BudgetBuddy

This module ties together all the components and defines the
end-to-end flows for:
1. Transactions (validate → classify if needed → save → audit)
2. Budgets (transactions + limits → report; limit changes)
3. Reminders (create / edit / complete / delete → urgency views and alerts)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is saved without passing validation
- Every saved transaction has a category
- A completed reminder stays completed
- Every write is audited

The core engines (classifier, aggregator, urgency) are pure functions.
This is the only layer that talks to storage and the audit log.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import structlog

from budgetbuddy.audit import AuditLogger, create_correlation_id
from budgetbuddy.budget import (
    aggregate_budget,
    daily_cash_flow,
    summarize_cash_flow,
)
from budgetbuddy.classification import classify, parse_quick_entry
from budgetbuddy.config import get_settings
from budgetbuddy.models.audit import AuditEventType
from budgetbuddy.models.budget import (
    BudgetReport,
    BudgetSet,
    CashFlowSummary,
    DailyCashFlow,
)
from budgetbuddy.models.reminder import (
    Reminder,
    ReminderAlertSummary,
    ReminderCategory,
    ReminderState,
    ReminderUpdate,
)
from budgetbuddy.models.transaction import (
    NewTransaction,
    QuickEntry,
    Transaction,
    TransactionKind,
)
from budgetbuddy.models.validation import ValidationResult
from budgetbuddy.reminders import compute_reminder_states, summarize_alerts
from budgetbuddy.services.storage import (
    BudgetStorageInterface,
    InMemoryStorage,
    NotFoundError,
    ReminderStorageInterface,
    StorageError,
    TransactionStorageInterface,
)
from budgetbuddy.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsBudgetStorage,
    GoogleSheetsClient,
    GoogleSheetsReminderStorage,
    GoogleSheetsTransactionStorage,
)
from budgetbuddy.validation import (
    SubmissionRejected,
    SubmissionValidator,
    parse_amount,
    parse_datetime,
)


logger = structlog.get_logger("budgetbuddy.orchestrator")


class InvalidReminderTransition(Exception):
    """A completed reminder cannot be reopened."""

    def __init__(self, reminder_id: UUID):
        self.reminder_id = reminder_id
        super().__init__(f"Reminder {reminder_id} is completed and cannot be reopened")


def _issue_dicts(result: ValidationResult) -> list[dict]:
    return [
        {"field": i.field, "type": i.issue_type, "message": i.message}
        for i in result.issues
        if i.severity == "error"
    ]


class _AuditedFlow:
    """Shared rejection and storage-error handling for the flows."""

    def __init__(self, audit_logger: Optional[AuditLogger]):
        self._audit_logger = audit_logger

    async def _reject(
        self,
        result: ValidationResult,
        owner_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_submission_rejected(
                entity_type=result.entity_type,
                owner_id=owner_id,
                issues=_issue_dicts(result),
                correlation_id=correlation_id,
            )
        raise SubmissionRejected(result)

    async def _storage_call(self, operation: str, call, correlation_id: UUID):
        """Await a storage coroutine; audit and re-raise any StorageError."""
        try:
            return await call
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation=operation,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise


class TransactionFlow(_AuditedFlow):
    """
    Orchestrates adding, listing and deleting transactions.

    Flow:
    1. Validate → raw amount / description / kind / date
    2. Classify → only when the user left the category blank
    3. Save → persist to storage
    4. Audit → saved (and auto-assigned, when classified)
    """

    def __init__(
        self,
        storage: TransactionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[SubmissionValidator] = None,
    ):
        super().__init__(audit_logger)
        self._storage = storage
        self._validator = validator or SubmissionValidator()

    async def submit(
        self,
        owner_id: str,
        amount: Any,
        description: Any,
        category: Optional[str] = None,
        kind: Any = None,
        occurred_at: Any = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Transaction, ValidationResult]:
        """
        Validate, classify and save a transaction.

        Returns:
            (saved_transaction, validation_result)
            The result may carry warnings for the UI to show.

        Raises:
            SubmissionRejected: validation found errors
            StorageError: the store failed
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_transaction(
            amount=amount,
            description=description,
            kind=kind,
            occurred_at=occurred_at,
            category=category,
        )
        if not result.is_valid:
            await self._reject(result, owner_id, correlation_id)

        fields = {
            "owner_id": owner_id,
            "amount": parse_amount(amount),
            "description": description,
            "category": category,
            "kind": TransactionKind(str(getattr(kind, "value", kind or "expense")).lower()),
        }
        if occurred_at not in (None, ""):
            fields["occurred_at"] = parse_datetime(occurred_at)
        submission = NewTransaction(**fields)

        auto_assigned = submission.category is None
        final_category = (
            classify(submission.description, submission.kind)
            if auto_assigned
            else submission.category
        )
        transaction = Transaction.from_submission(submission, final_category)

        await self._storage_call(
            "save_transaction",
            self._storage.save_transaction(transaction),
            correlation_id,
        )

        if self._audit_logger:
            if auto_assigned:
                await self._audit_logger.log_category_auto_assigned(
                    transaction, correlation_id
                )
            await self._audit_logger.log_transaction_saved(transaction, correlation_id)

        return transaction, result

    async def quick_entry(
        self,
        owner_id: str,
        text: str,
        amount: Any,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Transaction, ValidationResult]:
        """
        Save a one-line entry such as "paid for lunch at cafe".

        Kind, description and category are all derived from the text.
        """
        entry: QuickEntry = parse_quick_entry(text)
        return await self.submit(
            owner_id=owner_id,
            amount=amount,
            description=entry.description,
            category=entry.category,
            kind=entry.kind,
            correlation_id=correlation_id,
        )

    async def delete(
        self,
        owner_id: str,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Delete a transaction.

        Raises:
            NotFoundError: the owner has no such transaction
        """
        correlation_id = correlation_id or create_correlation_id()

        deleted = await self._storage_call(
            "delete_transaction",
            self._storage.delete_transaction(owner_id, transaction_id),
            correlation_id,
        )
        if not deleted:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        if self._audit_logger:
            await self._audit_logger.log_transaction_deleted(
                owner_id=owner_id,
                transaction_id=transaction_id,
                correlation_id=correlation_id,
            )

    async def cash_flow(self, owner_id: str) -> CashFlowSummary:
        """Income vs expenses over all of the owner's transactions."""
        return summarize_cash_flow(await self.list(owner_id))

    async def daily_cash_flow(self, owner_id: str) -> list[DailyCashFlow]:
        return daily_cash_flow(await self.list(owner_id))

    async def list(self, owner_id: str) -> list[Transaction]:
        """All of the owner's transactions, newest first."""
        return await self._storage_call(
            "list_transactions",
            self._storage.list_transactions(owner_id),
            create_correlation_id(),
        )


class BudgetFlow(_AuditedFlow):
    """
    Orchestrates budget reports and limit changes.

    The report is recomputed from raw transactions every time; nothing
    derived is stored.
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        budget_storage: BudgetStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[SubmissionValidator] = None,
    ):
        super().__init__(audit_logger)
        self._transactions = transaction_storage
        self._budgets = budget_storage
        self._validator = validator or SubmissionValidator()

    async def get_budget_set(self, owner_id: str) -> BudgetSet:
        return await self._storage_call(
            "get_budget_set",
            self._budgets.get_budget_set(owner_id),
            create_correlation_id(),
        )

    async def report(self, owner_id: str) -> BudgetReport:
        """Current spend against every budgeted category."""
        correlation_id = create_correlation_id()
        transactions = await self._storage_call(
            "list_transactions",
            self._transactions.list_transactions(owner_id),
            correlation_id,
        )
        budget_set = await self._storage_call(
            "get_budget_set",
            self._budgets.get_budget_set(owner_id),
            correlation_id,
        )

        app_settings = get_settings().app
        return aggregate_budget(
            transactions,
            budget_set.categories,
            near_limit_percent=app_settings.near_limit_percent,
            over_limit_percent=app_settings.over_limit_percent,
        )

    async def set_limit(
        self,
        owner_id: str,
        name: str,
        limit: Any,
        correlation_id: Optional[UUID] = None,
    ) -> BudgetSet:
        """
        Create or change one category's limit.

        Raises:
            SubmissionRejected: blank name or invalid limit
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_budget_limit(name, limit)
        if not result.is_valid:
            await self._reject(result, owner_id, correlation_id)

        new_limit: Decimal = parse_amount(limit)
        current = await self.get_budget_set(owner_id)
        existing = current.find(name)
        updated = current.with_limit(name, new_limit)

        await self._storage_call(
            "save_budget_set",
            self._budgets.save_budget_set(updated),
            correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_budget_limit_updated(
                owner_id=owner_id,
                category=name.strip().lower(),
                old_limit=str(existing.limit) if existing else None,
                new_limit=str(new_limit),
                correlation_id=correlation_id,
            )

        return updated


class ReminderFlow(_AuditedFlow):
    """
    Orchestrates reminders and their urgency views.

    The list view and the alert poll both go through
    compute_reminder_states(), with the configured urgency window.
    """

    def __init__(
        self,
        storage: ReminderStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[SubmissionValidator] = None,
    ):
        super().__init__(audit_logger)
        self._storage = storage
        self._validator = validator or SubmissionValidator()

    async def _get_owned(self, owner_id: str, reminder_id: UUID, correlation_id: UUID) -> Reminder:
        reminder = await self._storage_call(
            "get_reminder",
            self._storage.get_reminder(owner_id, reminder_id),
            correlation_id,
        )
        if reminder is None:
            raise NotFoundError(f"Reminder not found: {reminder_id}")
        return reminder

    async def create(
        self,
        owner_id: str,
        title: Any,
        due_date: Any,
        category: Any = None,
        correlation_id: Optional[UUID] = None,
    ) -> Reminder:
        """
        Validate and save a new reminder.

        Raises:
            SubmissionRejected: missing title, bad due date or unknown category
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_reminder(title, due_date, category)
        if not result.is_valid:
            await self._reject(result, owner_id, correlation_id)

        reminder = Reminder(
            owner_id=owner_id,
            title=title,
            due_date=parse_datetime(due_date),
            category=ReminderCategory(
                str(getattr(category, "value", category or "other")).lower()
            ),
        )

        await self._storage_call(
            "save_reminder",
            self._storage.save_reminder(reminder),
            correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_reminder_event(
                AuditEventType.REMINDER_CREATED,
                reminder,
                correlation_id,
                details={"due_date": reminder.due_date.isoformat()},
            )

        return reminder

    async def update(
        self,
        owner_id: str,
        reminder_id: UUID,
        title: Any = None,
        due_date: Any = None,
        category: Any = None,
        is_completed: Optional[bool] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Reminder:
        """
        Edit a reminder's title, due date, category or completion.

        None leaves a field unchanged.

        Raises:
            SubmissionRejected: blank title, bad due date or unknown category
            NotFoundError: the owner has no such reminder
            InvalidReminderTransition: attempt to reopen a completed reminder
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_reminder_update(title, due_date, category)
        if not result.is_valid:
            await self._reject(result, owner_id, correlation_id)

        changes = ReminderUpdate(
            title=title,
            due_date=parse_datetime(due_date) if due_date is not None else None,
            category=(
                ReminderCategory(str(getattr(category, "value", category)).lower())
                if category not in (None, "") else None
            ),
            is_completed=is_completed,
        )

        current = await self._get_owned(owner_id, reminder_id, correlation_id)
        if current.is_completed and changes.is_completed is False:
            raise InvalidReminderTransition(reminder_id)

        updated = current.apply(
            title=changes.title,
            due_date=changes.due_date,
            category=changes.category,
            is_completed=changes.is_completed,
        )

        await self._storage_call(
            "update_reminder",
            self._storage.update_reminder(updated),
            correlation_id,
        )

        if self._audit_logger:
            newly_completed = updated.is_completed and not current.is_completed
            await self._audit_logger.log_reminder_event(
                AuditEventType.REMINDER_COMPLETED if newly_completed
                else AuditEventType.REMINDER_UPDATED,
                updated,
                correlation_id,
                details=changes.model_dump(mode="json", exclude_none=True),
            )

        return updated

    async def complete(
        self,
        owner_id: str,
        reminder_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Reminder:
        """Mark a reminder completed. Completing twice is a no-op."""
        correlation_id = correlation_id or create_correlation_id()

        current = await self._get_owned(owner_id, reminder_id, correlation_id)
        if current.is_completed:
            return current

        return await self.update(
            owner_id,
            reminder_id,
            is_completed=True,
            correlation_id=correlation_id,
        )

    async def delete(
        self,
        owner_id: str,
        reminder_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Delete a reminder.

        Raises:
            NotFoundError: the owner has no such reminder
        """
        correlation_id = correlation_id or create_correlation_id()

        current = await self._get_owned(owner_id, reminder_id, correlation_id)
        await self._storage_call(
            "delete_reminder",
            self._storage.delete_reminder(owner_id, reminder_id),
            correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_reminder_event(
                AuditEventType.REMINDER_DELETED,
                current,
                correlation_id,
            )

    async def list_with_states(
        self,
        owner_id: str,
        now: Optional[datetime] = None,
    ) -> list[ReminderState]:
        """The owner's reminders with urgency, in display order."""
        reminders = await self._storage_call(
            "list_reminders",
            self._storage.list_reminders(owner_id),
            create_correlation_id(),
        )
        return compute_reminder_states(
            reminders,
            now,
            urgent_window=get_settings().app.urgent_window,
        )

    async def alerts(
        self,
        owner_id: str,
        now: Optional[datetime] = None,
    ) -> ReminderAlertSummary:
        """What a periodic alert poll should show right now."""
        return summarize_alerts(await self.list_with_states(owner_id, now))


def create_app_components(
    use_storage: bool = True,
) -> tuple[TransactionFlow, BudgetFlow, ReminderFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    When False, or when Sheets isn't configured,
                    everything runs on in-memory storage.

    Returns:
        (transaction_flow, budget_flow, reminder_flow, sheets_client)
    """
    sheets_client = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            transaction_storage = GoogleSheetsTransactionStorage(sheets_client)
            budget_storage = GoogleSheetsBudgetStorage(sheets_client)
            reminder_storage = GoogleSheetsReminderStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            use_storage = False

    if not use_storage:
        memory = InMemoryStorage()
        transaction_storage = memory
        budget_storage = memory
        reminder_storage = memory
        audit_logger = AuditLogger()  # Local-only logging

    validator = SubmissionValidator()

    transaction_flow = TransactionFlow(
        storage=transaction_storage,
        audit_logger=audit_logger,
        validator=validator,
    )
    budget_flow = BudgetFlow(
        transaction_storage=transaction_storage,
        budget_storage=budget_storage,
        audit_logger=audit_logger,
        validator=validator,
    )
    reminder_flow = ReminderFlow(
        storage=reminder_storage,
        audit_logger=audit_logger,
        validator=validator,
    )

    return transaction_flow, budget_flow, reminder_flow, sheets_client

"""
Flow tests

Async flows are driven with asyncio.run() against in-memory storage.
"""

import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from budgetbuddy.audit import AuditLogger
from budgetbuddy.models import (
    AuditEventType,
    BudgetStatus,
    ReminderCategory,
    TransactionKind,
    UrgencyState,
)
from budgetbuddy.orchestrator import (
    BudgetFlow,
    InvalidReminderTransition,
    ReminderFlow,
    TransactionFlow,
    create_app_components,
)
from budgetbuddy.services.storage import InMemoryStorage, NotFoundError, StorageError
from budgetbuddy.validation import SubmissionRejected


class FailingStorage(InMemoryStorage):
    """In-memory storage whose transaction writes always fail."""

    async def save_transaction(self, transaction):
        raise StorageError("sheet unavailable")


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def audit_logger(storage):
    return AuditLogger(storage)


async def event_types(storage):
    return [event.event_type for event in await storage.get_recent_events()]


class TestTransactionFlow:
    """Tests for TransactionFlow."""

    def test_submit_classifies_missing_category(self, storage, audit_logger):
        """Test that a blank category is filled by the classifier."""
        flow = TransactionFlow(storage, audit_logger)

        async def scenario():
            transaction, result = await flow.submit("asha", "250", "Lunch at cafe")
            saved = await storage.get_transaction("asha", transaction.id)
            return transaction, result, saved, await event_types(storage)

        transaction, result, saved, events = asyncio.run(scenario())
        assert result.is_valid
        assert transaction.category == "food"
        assert transaction.amount == Decimal("250")
        assert saved == transaction
        assert AuditEventType.CATEGORY_AUTO_ASSIGNED in events
        assert AuditEventType.TRANSACTION_SAVED in events

    def test_submit_keeps_given_category(self, storage, audit_logger):
        """Test that a user-chosen category is not overridden."""
        flow = TransactionFlow(storage, audit_logger)

        async def scenario():
            transaction, _ = await flow.submit(
                "asha", "99.50", "Lunch at cafe", category="Entertainment"
            )
            return transaction, await event_types(storage)

        transaction, events = asyncio.run(scenario())
        assert transaction.category == "entertainment"
        assert AuditEventType.CATEGORY_AUTO_ASSIGNED not in events

    def test_income_submission(self, storage):
        """Test that income is classified as income."""
        flow = TransactionFlow(storage)
        transaction, _ = asyncio.run(
            flow.submit("asha", "50000", "Monthly salary", kind="income")
        )
        assert transaction.kind == TransactionKind.INCOME
        assert transaction.category == "income"

    def test_invalid_submission_is_rejected_and_audited(self, storage, audit_logger):
        """Test that nothing is saved when validation fails."""
        flow = TransactionFlow(storage, audit_logger)

        async def scenario():
            with pytest.raises(SubmissionRejected) as excinfo:
                await flow.submit("asha", "-5", "Lunch")
            return excinfo.value, await flow.list("asha"), await event_types(storage)

        error, transactions, events = asyncio.run(scenario())
        assert error.result.error_count == 1
        assert transactions == []
        assert events == [AuditEventType.SUBMISSION_REJECTED]

    def test_storage_failure_is_audited_and_reraised(self):
        """Test that storage errors propagate after being logged."""
        storage = FailingStorage()
        flow = TransactionFlow(storage, AuditLogger(storage))

        async def scenario():
            with pytest.raises(StorageError):
                await flow.submit("asha", "10", "Tea")
            return await event_types(storage)

        assert asyncio.run(scenario()) == [AuditEventType.STORAGE_ERROR]

    def test_quick_entry(self, storage):
        """Test a one-line expense entry."""
        flow = TransactionFlow(storage)
        transaction, _ = asyncio.run(flow.quick_entry("asha", "paid for lunch at cafe", "180"))
        assert transaction.kind == TransactionKind.EXPENSE
        assert transaction.description == "lunch at cafe"
        assert transaction.category == "food"

    def test_list_is_per_owner_newest_first(self, storage):
        """Test listing order and owner isolation."""
        flow = TransactionFlow(storage)

        async def scenario():
            await flow.submit("asha", "10", "Tea", occurred_at="2024-04-01")
            await flow.submit("asha", "20", "Coffee", occurred_at="2024-04-03")
            await flow.submit("ravi", "30", "Bus", occurred_at="2024-04-02")
            return await flow.list("asha")

        transactions = asyncio.run(scenario())
        assert [t.description for t in transactions] == ["Coffee", "Tea"]

    def test_delete(self, storage, audit_logger):
        """Test deleting a transaction."""
        flow = TransactionFlow(storage, audit_logger)

        async def scenario():
            transaction, _ = await flow.submit("asha", "10", "Tea")
            await flow.delete("asha", transaction.id)
            return await flow.list("asha"), await event_types(storage)

        transactions, events = asyncio.run(scenario())
        assert transactions == []
        assert events[0] == AuditEventType.TRANSACTION_DELETED

    def test_delete_other_owners_transaction(self, storage):
        """Test that owners can't delete each other's records."""
        flow = TransactionFlow(storage)

        async def scenario():
            transaction, _ = await flow.submit("asha", "10", "Tea")
            with pytest.raises(NotFoundError):
                await flow.delete("ravi", transaction.id)
            return await flow.list("asha")

        assert len(asyncio.run(scenario())) == 1

    def test_delete_missing(self, storage):
        """Test deleting an unknown id."""
        flow = TransactionFlow(storage)
        with pytest.raises(NotFoundError):
            asyncio.run(flow.delete("asha", uuid4()))

    def test_cash_flow(self, storage):
        """Test the cash flow summary over stored transactions."""
        flow = TransactionFlow(storage)

        async def scenario():
            await flow.submit("asha", "1000", "Salary", kind="income")
            await flow.submit("asha", "400", "Rent")
            return await flow.cash_flow("asha")

        summary = asyncio.run(scenario())
        assert summary.balance == Decimal("600")
        assert summary.balance == summary.total_income - summary.total_expenses


class TestBudgetFlow:
    """Tests for BudgetFlow."""

    def test_report_combines_limits_and_spend(self, storage):
        """Test an end-to-end budget report."""
        transactions = TransactionFlow(storage)
        budgets = BudgetFlow(storage, storage)

        async def scenario():
            await budgets.set_limit("asha", "food", "500")
            await transactions.submit("asha", "450", "Dinner")
            await transactions.submit("asha", "70", "Movie tickets")
            return await budgets.report("asha")

        report = asyncio.run(scenario())
        food = report.for_category("food")
        assert food.spent == Decimal("450")
        assert food.status == BudgetStatus.NEAR_LIMIT
        assert report.uncategorized_breakdown == {"entertainment": Decimal("70")}

    def test_set_limit_updates_and_audits(self, storage, audit_logger):
        """Test changing an existing limit."""
        budgets = BudgetFlow(storage, storage, audit_logger)

        async def scenario():
            await budgets.set_limit("asha", "Food", "500")
            updated = await budgets.set_limit("asha", "food", "800")
            events = await storage.get_recent_events()
            return updated, events

        updated, events = asyncio.run(scenario())
        assert len(updated.categories) == 1
        assert updated.find("food").limit == Decimal("800")
        assert events[0].event_type == AuditEventType.BUDGET_LIMIT_UPDATED
        assert events[0].details["old_limit"] == "500"
        assert events[0].details["new_limit"] == "800"

    def test_negative_limit_rejected(self, storage):
        """Test that invalid limits are not saved."""
        budgets = BudgetFlow(storage, storage)

        async def scenario():
            with pytest.raises(SubmissionRejected):
                await budgets.set_limit("asha", "food", "-1")
            return await budgets.get_budget_set("asha")

        assert asyncio.run(scenario()).categories == []


class TestReminderFlow:
    """Tests for ReminderFlow."""

    def test_create_and_list_with_states(self, storage, audit_logger):
        """Test creating reminders and reading their urgency."""
        flow = ReminderFlow(storage, audit_logger)
        now = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

        async def scenario():
            await flow.create("asha", "Rent", "2024-06-20T09:00", "rent")
            await flow.create("asha", "Electricity", now + timedelta(hours=5), "utilities")
            await flow.create("asha", "Insurance", now - timedelta(days=1))
            return await flow.list_with_states("asha", now), await event_types(storage)

        states, events = asyncio.run(scenario())
        assert [item.reminder.title for item in states] == ["Insurance", "Electricity", "Rent"]
        assert [item.state for item in states] == [
            UrgencyState.OVERDUE,
            UrgencyState.URGENT,
            UrgencyState.UPCOMING,
        ]
        assert states[2].reminder.category == ReminderCategory.RENT
        assert events.count(AuditEventType.REMINDER_CREATED) == 3

    def test_create_rejects_invalid(self, storage):
        """Test reminder validation in the flow."""
        flow = ReminderFlow(storage)
        with pytest.raises(SubmissionRejected):
            asyncio.run(flow.create("asha", "", None))

    def test_complete(self, storage, audit_logger):
        """Test completing a reminder."""
        flow = ReminderFlow(storage, audit_logger)

        async def scenario():
            reminder = await flow.create("asha", "Rent", "2030-01-01")
            done = await flow.complete("asha", reminder.id)
            again = await flow.complete("asha", reminder.id)
            states = await flow.list_with_states("asha")
            return done, again, states, await event_types(storage)

        done, again, states, events = asyncio.run(scenario())
        assert done.is_completed
        assert again == done
        assert states[0].state == UrgencyState.COMPLETED
        assert events.count(AuditEventType.REMINDER_COMPLETED) == 1

    def test_reopening_is_rejected(self, storage):
        """Test that a completed reminder stays completed."""
        flow = ReminderFlow(storage)

        async def scenario():
            reminder = await flow.create("asha", "Rent", "2030-01-01")
            await flow.complete("asha", reminder.id)
            with pytest.raises(InvalidReminderTransition):
                await flow.update("asha", reminder.id, is_completed=False)
            return await storage.get_reminder("asha", reminder.id)

        assert asyncio.run(scenario()).is_completed

    def test_update_fields(self, storage):
        """Test editing title and due date."""
        flow = ReminderFlow(storage)
        new_due = datetime(2031, 2, 1, 9, 0, tzinfo=timezone.utc)

        async def scenario():
            reminder = await flow.create("asha", "Rent", "2030-01-01")
            return await flow.update(
                "asha",
                reminder.id,
                title="Rent (Feb)",
                due_date=new_due,
            )

        updated = asyncio.run(scenario())
        assert updated.title == "Rent (Feb)"
        assert updated.due_date == new_due
        assert not updated.is_completed

    def test_update_rejects_invalid(self, storage, audit_logger):
        """Test that edits go through validation and are audited when rejected."""
        flow = ReminderFlow(storage, audit_logger)

        async def scenario():
            reminder = await flow.create("asha", "Rent", "2030-01-01")
            with pytest.raises(SubmissionRejected) as excinfo:
                await flow.update(
                    "asha", reminder.id, title="  ", due_date="someday", category="fitness"
                )
            return excinfo.value, await storage.get_reminder("asha", reminder.id), await event_types(storage)

        rejected, stored, events = asyncio.run(scenario())
        assert {issue.field for issue in rejected.result.issues} == {"title", "due_date", "category"}
        assert stored.title == "Rent"
        assert AuditEventType.SUBMISSION_REJECTED in events

    def test_update_missing(self, storage):
        """Test editing an unknown reminder."""
        flow = ReminderFlow(storage)
        with pytest.raises(NotFoundError):
            asyncio.run(flow.update("asha", uuid4(), title="x"))

    def test_delete(self, storage):
        """Test deleting a reminder."""
        flow = ReminderFlow(storage)

        async def scenario():
            reminder = await flow.create("asha", "Rent", "2030-01-01")
            await flow.delete("asha", reminder.id)
            with pytest.raises(NotFoundError):
                await flow.delete("asha", reminder.id)
            return await flow.list_with_states("asha")

        assert asyncio.run(scenario()) == []

    def test_alerts(self, storage):
        """Test the alert poll."""
        flow = ReminderFlow(storage)
        now = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

        async def scenario():
            await flow.create("asha", "Water bill", now + timedelta(hours=2), "utilities")
            await flow.create("asha", "Netflix", now + timedelta(days=10), "subscriptions")
            return await flow.alerts("asha", now)

        summary = asyncio.run(scenario())
        assert summary.urgent_count == 1
        assert summary.message == "You have 1 urgent reminder(s)"


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_in_memory_components(self):
        """Test wiring without Google Sheets."""
        transaction_flow, budget_flow, reminder_flow, sheets_client = (
            create_app_components(use_storage=False)
        )
        assert sheets_client is None

        async def scenario():
            await budget_flow.set_limit("asha", "food", "100")
            await transaction_flow.submit("asha", "30", "Lunch")
            return await budget_flow.report("asha")

        report = asyncio.run(scenario())
        assert report.for_category("food").spent == Decimal("30")

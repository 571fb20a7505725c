"""
Tests for BudgetBuddy models

Test strategy:
1. Unit tests for models, engines and validators
2. Flow tests against in-memory storage
3. No real API calls in tests
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from budgetbuddy.models import (
    BudgetCategory,
    BudgetSet,
    NewTransaction,
    Reminder,
    ReminderCategory,
    Transaction,
    TransactionKind,
    ValidationIssue,
    ValidationResult,
    ensure_utc,
)
from budgetbuddy.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestTimestamps:
    """Tests for UTC normalization."""

    def test_naive_datetime_is_treated_as_utc(self):
        """Test that naive datetimes get UTC attached unchanged."""
        value = ensure_utc(datetime(2024, 3, 1, 9, 30))
        assert value.tzinfo == timezone.utc
        assert value.hour == 9

    def test_aware_datetime_is_converted(self):
        """Test that other offsets are converted to UTC."""
        ist = timezone(timedelta(hours=5, minutes=30))
        value = ensure_utc(datetime(2024, 3, 1, 9, 30, tzinfo=ist))
        assert value == datetime(2024, 3, 1, 4, 0, tzinfo=timezone.utc)


class TestTransactionModels:
    """Tests for transaction Pydantic models."""

    def test_new_transaction_defaults(self):
        """Test that kind defaults to expense and category to None."""
        submission = NewTransaction(
            owner_id="asha",
            amount=Decimal("250.00"),
            description="Lunch at cafe",
        )
        assert submission.kind == TransactionKind.EXPENSE
        assert submission.category is None
        assert submission.occurred_at.tzinfo == timezone.utc

    def test_blank_category_means_classify(self):
        """Test that an empty category string is treated as missing."""
        submission = NewTransaction(
            owner_id="asha",
            amount=Decimal("10"),
            description="Tea",
            category="   ",
        )
        assert submission.category is None

    def test_category_is_lowercased(self):
        """Test that categories are stored lower-case."""
        submission = NewTransaction(
            owner_id="asha",
            amount=Decimal("10"),
            description="Tea",
            category="Food",
        )
        assert submission.category == "food"

    def test_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValueError):
            NewTransaction(owner_id="asha", amount=Decimal("0"), description="x")
        with pytest.raises(ValueError):
            NewTransaction(owner_id="asha", amount=Decimal("-5"), description="x")

    def test_rejects_more_than_two_decimal_places(self):
        """Test that sub-paisa amounts are rejected."""
        with pytest.raises(ValueError):
            NewTransaction(owner_id="asha", amount=Decimal("1.005"), description="x")

    def test_transaction_requires_category(self):
        """Test that a persisted transaction cannot have an empty category."""
        with pytest.raises(ValueError):
            Transaction(
                owner_id="asha",
                amount=Decimal("10"),
                description="Tea",
                category="",
            )

    def test_from_submission_keeps_fields(self):
        """Test building a transaction from a submission."""
        submission = NewTransaction(
            owner_id="asha",
            amount=Decimal("50000"),
            description="Salary",
            kind=TransactionKind.INCOME,
        )
        transaction = Transaction.from_submission(submission, "income")
        assert transaction.owner_id == "asha"
        assert transaction.amount == Decimal("50000")
        assert transaction.category == "income"
        assert transaction.is_income
        assert not transaction.is_expense

    def test_transaction_is_frozen(self):
        """Test that saved transactions are immutable."""
        transaction = Transaction(
            owner_id="asha",
            amount=Decimal("10"),
            description="Tea",
            category="food",
        )
        with pytest.raises(ValueError):
            transaction.amount = Decimal("20")


class TestBudgetModels:
    """Tests for budget Pydantic models."""

    def test_category_name_is_lowercased(self):
        """Test that budget category names are normalized."""
        category = BudgetCategory(name=" Food ", limit=Decimal("100"))
        assert category.name == "food"

    def test_rejects_negative_limit(self):
        """Test that negative limits are rejected."""
        with pytest.raises(ValueError):
            BudgetCategory(name="food", limit=Decimal("-1"))

    def test_zero_limit_is_allowed(self):
        """Test that a zero limit is a valid budget."""
        assert BudgetCategory(name="food", limit=Decimal("0")).limit == Decimal("0")

    def test_duplicate_names_rejected(self):
        """Test that a budget set can't hold the same category twice."""
        with pytest.raises(ValueError):
            BudgetSet(
                owner_id="asha",
                categories=[
                    BudgetCategory(name="food", limit=Decimal("100")),
                    BudgetCategory(name="Food", limit=Decimal("200")),
                ],
            )

    def test_with_limit_replaces_existing(self):
        """Test that with_limit changes an existing category in place."""
        budget_set = BudgetSet(
            owner_id="asha",
            categories=[
                BudgetCategory(name="food", limit=Decimal("100")),
                BudgetCategory(name="transport", limit=Decimal("50")),
            ],
        )
        updated = budget_set.with_limit("Food", Decimal("300"))
        assert [c.name for c in updated.categories] == ["food", "transport"]
        assert updated.find("food").limit == Decimal("300")
        # Original untouched
        assert budget_set.find("food").limit == Decimal("100")

    def test_with_limit_appends_new(self):
        """Test that with_limit adds unknown categories."""
        updated = BudgetSet(owner_id="asha").with_limit("shopping", Decimal("500"))
        assert updated.find("SHOPPING").limit == Decimal("500")

    def test_find_missing_returns_none(self):
        """Test lookup of a category that isn't budgeted."""
        assert BudgetSet(owner_id="asha").find("food") is None


class TestReminderModels:
    """Tests for reminder Pydantic models."""

    def test_reminder_defaults(self):
        """Test reminder default values."""
        reminder = Reminder(
            owner_id="asha",
            title="Electricity bill",
            due_date=datetime(2024, 5, 10, 9, 0),
        )
        assert reminder.category == ReminderCategory.OTHER
        assert reminder.is_completed is False
        assert reminder.due_date.tzinfo == timezone.utc

    def test_rejects_empty_title(self):
        """Test that reminders need a title."""
        with pytest.raises(ValueError):
            Reminder(owner_id="asha", title="  ", due_date=datetime(2024, 5, 10))

    def test_apply_changes_fields_and_bumps_updated_at(self):
        """Test that apply() returns an edited copy."""
        reminder = Reminder(
            owner_id="asha",
            title="Rent",
            due_date=datetime(2024, 5, 1),
            category=ReminderCategory.RENT,
            updated_at=datetime(2024, 1, 1),
        )
        edited = reminder.apply(title="Rent for May", is_completed=True)

        assert edited.id == reminder.id
        assert edited.title == "Rent for May"
        assert edited.is_completed is True
        assert edited.category == ReminderCategory.RENT
        assert edited.updated_at > reminder.updated_at
        assert reminder.title == "Rent"


class TestValidationModels:
    """Tests for validation result models."""

    def test_warnings_and_errors_are_separated(self):
        """Test ValidationResult helper properties."""
        result = ValidationResult(
            entity_type="transaction",
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Valid amount is required",
                    severity="error",
                ),
                ValidationIssue(
                    field="occurred_at",
                    issue_type="future_date",
                    message="Date is in the future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1
        assert result.warnings == ["Date is in the future"]

    def test_rejects_unknown_severity(self):
        """Test that severity is a closed set."""
        with pytest.raises(ValueError):
            ValidationIssue(
                field="amount",
                issue_type="missing",
                message="x",
                severity="fatal",
            )


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.TRANSACTION_SAVED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_sheets_row(self):
        """Test conversion to Google Sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.REMINDER_CREATED,
            owner_id="asha",
            description="Reminder created: Rent",
            details={"due_date": "2024-05-01"},
        )
        row = event.to_sheets_row()
        assert len(row) == 12
        assert row[2] == "reminder_created"
        assert row[4] == "asha"
        assert row[9] == '{"due_date": "2024-05-01"}'
        assert row[11] == "False"

    def test_builder_submission_rejected_is_warning(self):
        """Test that rejected submissions are logged as warnings."""
        event = AuditEventBuilder.submission_rejected(
            entity_type="transaction",
            owner_id="asha",
            issues=[{"field": "amount"}],
            correlation_id=None,
        )
        assert event.event_type == AuditEventType.SUBMISSION_REJECTED
        assert event.severity == AuditSeverity.WARNING
        assert event.details == {"issues": [{"field": "amount"}]}

    def test_builder_reminder_event_description(self):
        """Test reminder event descriptions name the action."""
        reminder = Reminder(owner_id="asha", title="Rent", due_date=datetime(2024, 5, 1))
        event = AuditEventBuilder.reminder_event(
            event_type=AuditEventType.REMINDER_COMPLETED,
            reminder_id=reminder.id,
            owner_id=reminder.owner_id,
            title=reminder.title,
            correlation_id=None,
        )
        assert event.description == "Reminder completed: Rent"
        assert event.entity_type == "reminder"
        assert event.entity_id == reminder.id

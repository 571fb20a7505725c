"""
Data Models Package

This package contains all Pydantic models used in BudgetBuddy.
All data flowing through the system must conform to these schemas.
"""

from budgetbuddy.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from budgetbuddy.models.base import ensure_utc, utc_now
from budgetbuddy.models.budget import (
    BudgetCategory,
    BudgetReport,
    BudgetSet,
    BudgetStatus,
    BudgetTotals,
    CashFlowSummary,
    CategoryBudgetReport,
    DailyCashFlow,
)
from budgetbuddy.models.reminder import (
    Reminder,
    ReminderAlertSummary,
    ReminderCategory,
    ReminderState,
    ReminderUpdate,
    UrgencyState,
)
from budgetbuddy.models.transaction import (
    NewTransaction,
    QuickEntry,
    Transaction,
    TransactionKind,
)
from budgetbuddy.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Transaction models
    "NewTransaction",
    "QuickEntry",
    "Transaction",
    "TransactionKind",
    # Budget models
    "BudgetCategory",
    "BudgetReport",
    "BudgetSet",
    "BudgetStatus",
    "BudgetTotals",
    "CashFlowSummary",
    "CategoryBudgetReport",
    "DailyCashFlow",
    # Reminder models
    "Reminder",
    "ReminderAlertSummary",
    "ReminderCategory",
    "ReminderState",
    "ReminderUpdate",
    "UrgencyState",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Helpers
    "ensure_utc",
    "utc_now",
]

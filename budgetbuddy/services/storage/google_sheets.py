"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the persistent backend because:
1. Users can view and export their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (fine for a personal budget)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)

Amounts are written as Decimal strings with RAW input so Sheets never
turns them into floats.
"""

import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from budgetbuddy.config import get_settings
from budgetbuddy.models.audit import AuditEvent, AuditEventType, AuditSeverity
from budgetbuddy.models.base import ensure_utc
from budgetbuddy.models.budget import BudgetCategory, BudgetSet
from budgetbuddy.models.reminder import Reminder, ReminderCategory
from budgetbuddy.models.transaction import Transaction, TransactionKind
from budgetbuddy.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    ReminderStorageInterface,
    StorageError,
    TransactionStorageInterface,
)


logger = structlog.get_logger(__name__)


TRANSACTION_COLUMNS = [
    "id",
    "owner_id",
    "amount",
    "description",
    "category",
    "kind",
    "occurred_at",
    "created_at",
]

# One row per (owner, category)
BUDGET_COLUMNS = [
    "owner_id",
    "name",
    "limit",
    "updated_at",
]

REMINDER_COLUMNS = [
    "id",
    "owner_id",
    "title",
    "due_date",
    "category",
    "is_completed",
    "created_at",
    "updated_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "owner_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

# Duplicates and missing rows are answers, not transient failures
_sheets_retry = retry(
    retry=retry_if_not_exception_type((DuplicateError, NotFoundError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def _cell_getter(row: list) -> Callable[..., str]:
    """Index into a row, treating missing trailing cells as empty."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @_sheets_retry
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS
        )

    def get_budgets_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.budgets_sheet_name, BUDGET_COLUMNS, rows=200
        )

    def get_reminders_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.reminders_sheet_name, REMINDER_COLUMNS
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        # More rows for audit log
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


# =============================================================================
# TRANSACTIONS
# =============================================================================

class GoogleSheetsTransactionStorage(TransactionStorageInterface):
    """Transactions as rows, one transaction per row."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _transaction_to_row(self, transaction: Transaction) -> list:
        return [
            str(transaction.id),
            transaction.owner_id,
            str(transaction.amount),
            transaction.description,
            transaction.category,
            transaction.kind.value,
            transaction.occurred_at.isoformat(),
            transaction.created_at.isoformat(),
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        safe_get = _cell_getter(row)
        return Transaction(
            id=UUID(safe_get(0)),
            owner_id=safe_get(1),
            amount=Decimal(safe_get(2)),
            description=safe_get(3),
            category=safe_get(4),
            kind=TransactionKind(safe_get(5)),
            occurred_at=datetime.fromisoformat(safe_get(6)),
            created_at=datetime.fromisoformat(safe_get(7)),
        )

    def _owned_rows(self, owner_id: str) -> list[tuple[int, list]]:
        """(sheet row number, row) pairs for the owner, skipping the header."""
        sheet = self._client.get_transactions_sheet()
        all_rows = sheet.get_all_values()
        return [
            (idx, row)
            for idx, row in enumerate(all_rows[1:], start=2)
            if len(row) > 1 and row[1] == owner_id
        ]

    @_sheets_retry
    async def save_transaction(self, transaction: Transaction) -> bool:
        if await self.get_transaction(transaction.owner_id, transaction.id):
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_row(
                self._transaction_to_row(transaction),
                value_input_option="RAW",
            )
            return True
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

    async def get_transaction(
        self,
        owner_id: str,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        try:
            for _, row in self._owned_rows(owner_id):
                if row[0] == str(transaction_id):
                    return self._row_to_transaction(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get transaction: {e}")

    async def list_transactions(self, owner_id: str) -> list[Transaction]:
        try:
            rows = self._owned_rows(owner_id)
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

        transactions = []
        for idx, row in rows:
            try:
                transactions.append(self._row_to_transaction(row))
            except (ValueError, TypeError, InvalidOperation) as e:
                logger.warning("malformed_transaction_row", row_number=idx, error=str(e))

        transactions.sort(key=lambda t: t.occurred_at, reverse=True)
        return transactions

    async def delete_transaction(self, owner_id: str, transaction_id: UUID) -> bool:
        try:
            sheet = self._client.get_transactions_sheet()
            for idx, row in self._owned_rows(owner_id):
                if row[0] == str(transaction_id):
                    sheet.delete_rows(idx)
                    return True
            return False
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")


# =============================================================================
# BUDGETS
# =============================================================================

class GoogleSheetsBudgetStorage(BudgetStorageInterface):
    """Budget limits as one row per (owner, category)."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def get_budget_set(self, owner_id: str) -> BudgetSet:
        try:
            sheet = self._client.get_budgets_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to load budget: {e}")

        categories = []
        seen = set()
        updated_at = None
        for idx, row in enumerate(all_rows, start=2):
            safe_get = _cell_getter(row)
            if safe_get(0) != owner_id:
                continue
            try:
                category = BudgetCategory(name=safe_get(1), limit=Decimal(safe_get(2)))
                row_updated = ensure_utc(datetime.fromisoformat(safe_get(3))) if safe_get(3) else None
            except (ValueError, TypeError, InvalidOperation) as e:
                logger.warning("malformed_budget_row", row_number=idx, error=str(e))
                continue
            # First row wins for names that differ only by case
            if category.name in seen:
                logger.warning("duplicate_budget_row", row_number=idx, category=category.name)
                continue
            seen.add(category.name)
            categories.append(category)
            if row_updated:
                updated_at = max(updated_at, row_updated) if updated_at else row_updated

        if updated_at is None:
            return BudgetSet(owner_id=owner_id, categories=categories)
        return BudgetSet(owner_id=owner_id, categories=categories, updated_at=updated_at)

    @_sheets_retry
    async def save_budget_set(self, budget_set: BudgetSet) -> bool:
        """Rewrite the owner's rows, leaving other owners untouched."""
        try:
            sheet = self._client.get_budgets_sheet()
            all_rows = sheet.get_all_values()

            # Delete bottom-up so row numbers stay valid
            owned = [
                idx for idx, row in enumerate(all_rows[1:], start=2)
                if row and row[0] == budget_set.owner_id
            ]
            for idx in reversed(owned):
                sheet.delete_rows(idx)

            rows = [
                [
                    budget_set.owner_id,
                    category.name,
                    str(category.limit),
                    budget_set.updated_at.isoformat(),
                ]
                for category in budget_set.categories
            ]
            if rows:
                sheet.append_rows(rows, value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save budget: {e}")


# =============================================================================
# REMINDERS
# =============================================================================

class GoogleSheetsReminderStorage(ReminderStorageInterface):
    """Reminders as rows, one reminder per row."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _reminder_to_row(self, reminder: Reminder) -> list:
        return [
            str(reminder.id),
            reminder.owner_id,
            reminder.title,
            reminder.due_date.isoformat(),
            reminder.category.value,
            str(reminder.is_completed),
            reminder.created_at.isoformat(),
            reminder.updated_at.isoformat(),
        ]

    def _row_to_reminder(self, row: list) -> Reminder:
        safe_get = _cell_getter(row)
        return Reminder(
            id=UUID(safe_get(0)),
            owner_id=safe_get(1),
            title=safe_get(2),
            due_date=datetime.fromisoformat(safe_get(3)),
            category=ReminderCategory(safe_get(4, "other")),
            is_completed=safe_get(5).lower() == "true",
            created_at=datetime.fromisoformat(safe_get(6)),
            updated_at=datetime.fromisoformat(safe_get(7)),
        )

    def _find_row(self, owner_id: str, reminder_id: UUID) -> Optional[tuple[int, list]]:
        sheet = self._client.get_reminders_sheet()
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if len(row) > 1 and row[0] == str(reminder_id) and row[1] == owner_id:
                return idx, row
        return None

    @_sheets_retry
    async def save_reminder(self, reminder: Reminder) -> bool:
        try:
            if self._find_row(reminder.owner_id, reminder.id):
                raise DuplicateError(f"Reminder already exists: {reminder.id}")
            sheet = self._client.get_reminders_sheet()
            sheet.append_row(self._reminder_to_row(reminder), value_input_option="RAW")
            return True
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save reminder: {e}")

    async def get_reminder(self, owner_id: str, reminder_id: UUID) -> Optional[Reminder]:
        try:
            found = self._find_row(owner_id, reminder_id)
            return self._row_to_reminder(found[1]) if found else None
        except Exception as e:
            raise StorageError(f"Failed to get reminder: {e}")

    async def update_reminder(self, reminder: Reminder) -> bool:
        try:
            found = self._find_row(reminder.owner_id, reminder.id)
            if found is None:
                raise NotFoundError(f"Reminder not found: {reminder.id}")

            idx, _ = found
            sheet = self._client.get_reminders_sheet()
            last_column = rowcol_to_a1(idx, len(REMINDER_COLUMNS))
            sheet.update(
                range_name=f"A{idx}:{last_column}",
                values=[self._reminder_to_row(reminder)],
                value_input_option="RAW",
            )
            return True
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update reminder: {e}")

    async def list_reminders(self, owner_id: str) -> list[Reminder]:
        try:
            sheet = self._client.get_reminders_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to list reminders: {e}")

        reminders = []
        for idx, row in enumerate(all_rows, start=2):
            if len(row) < 2 or row[1] != owner_id:
                continue
            try:
                reminders.append(self._row_to_reminder(row))
            except (ValueError, TypeError, InvalidOperation) as e:
                logger.warning("malformed_reminder_row", row_number=idx, error=str(e))
        return reminders

    async def delete_reminder(self, owner_id: str, reminder_id: UUID) -> bool:
        try:
            found = self._find_row(owner_id, reminder_id)
            if found is None:
                return False
            self._client.get_reminders_sheet().delete_rows(found[0])
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete reminder: {e}")


# =============================================================================
# AUDIT
# =============================================================================

class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        safe_get = _cell_getter(row)
        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            owner_id=safe_get(4) or None,
            entity_type=safe_get(5) or None,
            entity_id=UUID(safe_get(6)) if safe_get(6) else None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
            is_user_action=safe_get(11).lower() == "true",
        )

    def _all_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, TypeError, InvalidOperation) as e:
                logger.warning("malformed_audit_row", event_id=row[0], error=str(e))
        return events

    @_sheets_retry
    async def append_event(self, event: AuditEvent) -> bool:
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = [
                e for e in self._all_events()
                if e.entity_type == entity_type and e.entity_id == entity_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = self._all_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        # Newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
